# backend/structs.py
"""Struct lowering: declared fields in order, with resolved dependencies."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

from iona_lang.backend.types import TypeDependencies, resolve_dependencies
from iona_lang.semantics.ast import StructDecl
from iona_lang.semantics.generics.registry import TemplateRegistry
from iona_lang.semantics.typesys import Type


@dataclass(frozen=True)
class LoweredField:
    name: str
    ty: Type


@dataclass(frozen=True)
class LoweredStruct:
    name: str
    fields: Tuple[LoweredField, ...]
    deps: TypeDependencies
    provenance: str = "<input>"


def lower_struct(decl: StructDecl, registry: TemplateRegistry,
                 provenance: str = "<input>") -> LoweredStruct:
    deps = resolve_dependencies((f.ty for f in decl.fields), registry,
                                owner=decl.name, provenance=provenance)
    fields = tuple(LoweredField(f.name, f.ty) for f in decl.fields)
    return LoweredStruct(decl.name, fields, deps, provenance)


__all__ = ["LoweredField", "LoweredStruct", "lower_struct"]
