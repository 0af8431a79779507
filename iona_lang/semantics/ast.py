# semantics/ast.py
"""
Declaration IR handed to the backend by the type checker.

Every declaration carries an optional source span so diagnostics can point at
the declaration-IR file it came from.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Union

from iona_lang.internals.report import Span
from iona_lang.semantics.typesys import Type, TemplateRef


@dataclass(frozen=True)
class VariantDecl:
    name: str
    payload: Optional[Type] = None
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class SumTypeDecl:
    """Tagged union; variant order is the tag ordinal order."""
    name: str
    variants: tuple[VariantDecl, ...]
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class FieldDecl:
    name: str
    ty: Type
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class StructDecl:
    name: str
    fields: tuple[FieldDecl, ...]
    loc: Optional[Span] = field(default=None, compare=False)


@dataclass(frozen=True)
class TemplateUse:
    """Top-level usage of a generic container (`use Array<String>;`)."""
    ref: TemplateRef
    loc: Optional[Span] = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return str(self.ref)


@dataclass(frozen=True)
class HooksDecl:
    """Deep-copy / destroy symbols for a declared type used as an element."""
    name: str
    drop: Optional[str] = None
    clone: Optional[str] = None
    loc: Optional[Span] = field(default=None, compare=False)


TypeDecl = Union[SumTypeDecl, StructDecl]
Item = Union[SumTypeDecl, StructDecl, TemplateUse, HooksDecl]


@dataclass
class Program:
    """One declaration-IR file (or an in-memory equivalent)."""
    items: list[Item]
    provenance: str = "<input>"
    source_label: Optional[str] = None  # `source "...";` override

    @property
    def label(self) -> str:
        return self.source_label or self.provenance

    @property
    def sum_types(self) -> list[SumTypeDecl]:
        return [i for i in self.items if isinstance(i, SumTypeDecl)]

    @property
    def structs(self) -> list[StructDecl]:
        return [i for i in self.items if isinstance(i, StructDecl)]

    @property
    def hooks(self) -> list[HooksDecl]:
        return [i for i in self.items if isinstance(i, HooksDecl)]

    @property
    def emittable(self) -> list[Item]:
        """Items that produce output, in declaration order."""
        return [i for i in self.items if not isinstance(i, HooksDecl)]
