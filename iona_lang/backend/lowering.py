"""Per-compilation table of lowered declarations.

Each declaration is lowered once; later requests return the cached result.
Emission resolves every named type through the lookup methods here, which
abort the compilation when a referenced declaration was never lowered.
"""
from __future__ import annotations
from typing import Dict, Iterable, Iterator, Union

from iona_lang.backend.enums import LoweredSumType, lower_sum_type
from iona_lang.backend.structs import LoweredStruct, lower_struct
from iona_lang.internals import errors as er
from iona_lang.semantics.ast import StructDecl, SumTypeDecl, TypeDecl
from iona_lang.semantics.generics.registry import TemplateRegistry

Lowered = Union[LoweredSumType, LoweredStruct]


class LoweringTable:
    def __init__(self, registry: TemplateRegistry) -> None:
        self.registry = registry
        self.sum_types: Dict[str, LoweredSumType] = {}
        self.structs: Dict[str, LoweredStruct] = {}

    def lower(self, decl: TypeDecl, provenance: str = "<input>") -> Lowered:
        """Lower `decl`, or return the cached lowering of that name."""
        if isinstance(decl, SumTypeDecl):
            cached = self.sum_types.get(decl.name)
            if cached is None:
                cached = lower_sum_type(decl, self.registry, provenance)
                self.sum_types[decl.name] = cached
            return cached
        if isinstance(decl, StructDecl):
            cached = self.structs.get(decl.name)
            if cached is None:
                cached = lower_struct(decl, self.registry, provenance)
                self.structs[decl.name] = cached
            return cached
        er.raise_internal_error("CE0001", node=type(decl).__name__)

    def lower_all(self, decls: Iterable[TypeDecl], provenance: str = "<input>") -> None:
        for decl in decls:
            self.lower(decl, provenance)

    def sum_type(self, name: str, *, owner: str, provenance: str) -> LoweredSumType:
        found = self.sum_types.get(name)
        if found is None:
            er.raise_fatal("CE3002", filename=provenance, name=name, owner=owner, provenance=provenance)
        return found

    def struct(self, name: str, *, owner: str, provenance: str) -> LoweredStruct:
        found = self.structs.get(name)
        if found is None:
            er.raise_fatal("CE3003", filename=provenance, name=name, owner=owner, provenance=provenance)
        return found

    def resolve(self, name: str, *, owner: str, provenance: str) -> Lowered:
        """Lowered sum type or struct called `name`."""
        found = self.sum_types.get(name) or self.structs.get(name)
        if found is None:
            er.raise_fatal("CE3004", filename=provenance, name=name, owner=owner, provenance=provenance)
        return found

    def __contains__(self, name: str) -> bool:
        return name in self.sum_types or name in self.structs

    def __iter__(self) -> Iterator[Lowered]:
        yield from self.sum_types.values()
        yield from self.structs.values()


__all__ = ["Lowered", "LoweringTable"]
