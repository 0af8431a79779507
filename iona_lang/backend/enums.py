# backend/enums.py
"""Sum-type lowering.

C has no tagged unions, so every sum type becomes three definitions:

    typedef enum { SOME, NONE, } MaybeStates;     // tag, declaration order
    typedef union { void* Some; } MaybeValues;    // one member per payload
    struct Maybe { MaybeStates tag; MaybeValues data; };

A sum type whose variants carry no payload gets no union and a wrapper with
the tag alone. Lowering is pure; `LoweringTable` memoizes it per compilation.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from iona_lang.backend.types import TypeDependencies, resolve_dependencies
from iona_lang.semantics.ast import SumTypeDecl
from iona_lang.semantics.generics.name_mangling import tag_constant
from iona_lang.semantics.generics.registry import TemplateInstantiation, TemplateRegistry
from iona_lang.semantics.typesys import TemplateRef, Type


def tag_enum_name(name: str) -> str:
    return f"{name}States"


def payload_union_name(name: str) -> str:
    return f"{name}Values"


@dataclass(frozen=True)
class TagEnum:
    name: str
    constants: Tuple[str, ...]  # index = tag ordinal

    def ordinal(self, constant: str) -> int:
        return self.constants.index(constant)


@dataclass(frozen=True)
class PayloadField:
    variant: str
    ty: Type
    instantiation: Optional[TemplateInstantiation] = None  # set for generic payloads


@dataclass(frozen=True)
class PayloadUnion:
    name: str
    fields: Tuple[PayloadField, ...]


@dataclass(frozen=True)
class LoweredSumType:
    name: str
    tag_enum: TagEnum
    payload_union: Optional[PayloadUnion]
    deps: TypeDependencies
    provenance: str = "<input>"

    @property
    def wrapper_fields(self) -> Tuple[Tuple[str, str], ...]:
        """(field name, type name) pairs of the wrapper struct."""
        if self.payload_union is None:
            return (("tag", self.tag_enum.name),)
        return (("tag", self.tag_enum.name), ("data", self.payload_union.name))

    def tag_of(self, variant: str) -> int:
        return self.tag_enum.ordinal(tag_constant(variant))

    def payload_of(self, variant: str) -> Optional[Type]:
        if self.payload_union is None:
            return None
        for f in self.payload_union.fields:
            if f.variant == variant:
                return f.ty
        return None


def lower_sum_type(decl: SumTypeDecl, registry: TemplateRegistry,
                   provenance: str = "<input>") -> LoweredSumType:
    """Lower one sum-type declaration.

    Generic payloads must already be instantiated in `registry`; a missing
    one aborts with a registry lookup error naming this sum type.
    """
    tag_enum = TagEnum(tag_enum_name(decl.name), tuple(tag_constant(v.name) for v in decl.variants))

    payloads = [v for v in decl.variants if v.payload is not None]
    deps = resolve_dependencies((v.payload for v in payloads), registry,
                                owner=decl.name, provenance=provenance)

    union = None
    if payloads:
        fields = []
        for v in payloads:
            inst = None
            if isinstance(v.payload, TemplateRef):
                inst = registry.lookup(v.payload.template_id, v.payload.element,
                                       owner=decl.name, provenance=provenance)
            fields.append(PayloadField(v.name, v.payload, inst))
        union = PayloadUnion(payload_union_name(decl.name), tuple(fields))

    return LoweredSumType(decl.name, tag_enum, union, deps, provenance)


__all__ = [
    "TagEnum", "PayloadField", "PayloadUnion", "LoweredSumType",
    "lower_sum_type", "tag_enum_name", "payload_union_name",
]
