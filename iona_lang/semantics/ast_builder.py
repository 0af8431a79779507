"""Build declaration IR objects from a Lark parse tree.

The builder walks the tree produced by `grammar.lark` and returns a
`Program`. Every declaration keeps the span of its parse-tree node so later
diagnostics can point into the IR file.
"""
from __future__ import annotations
from typing import List, Optional

from lark import Token, Tree

from iona_lang.internals.errors import raise_fatal
from iona_lang.internals.report import span_of
from iona_lang.semantics.ast import (
    FieldDecl, HooksDecl, Item, Program, StructDecl, SumTypeDecl, TemplateUse, VariantDecl,
)
from iona_lang.semantics.typesys import BuiltinType, NamedType, TemplateRef, Type

HOOK_KINDS = ("drop", "clone")


def _trees(children: list, data: str) -> List[Tree]:
    return [c for c in children if isinstance(c, Tree) and c.data == data]


def _first_name(children: list) -> Optional[Token]:
    for c in children:
        if isinstance(c, Token) and c.type == "NAME":
            return c
    return None


def _first_type(children: list) -> Optional[Tree]:
    for c in children:
        if isinstance(c, Tree) and c.data in ("name_t", "generic_type_t"):
            return c
    return None


def _unquote(token: Token) -> str:
    return str(token)[1:-1].replace('\\"', '"').replace("\\\\", "\\")


class ASTBuilder:
    def __init__(self, provenance: str = "<input>") -> None:
        self.provenance = provenance

    def build(self, tree: Tree) -> Program:
        items: List[Item] = []
        source_label: Optional[str] = None

        for node in tree.children:
            match node.data:
                case "source_item":
                    source_label = _unquote(node.children[0])
                case "enum_def":
                    items.append(self._enum(node))
                case "struct_def":
                    items.append(self._struct(node))
                case "use_item":
                    items.append(TemplateUse(self._type(node.children[0]), loc=span_of(node)))
                case "hooks_def":
                    items.append(self._hooks(node))

        return Program(items, provenance=self.provenance, source_label=source_label)

    def _enum(self, node: Tree) -> SumTypeDecl:
        variants = []
        for v in _trees(node.children, "variant"):
            payload_node = _first_type(v.children)
            payload = self._type(payload_node) if payload_node is not None else None
            variants.append(VariantDecl(str(_first_name(v.children)), payload, loc=span_of(v)))
        return SumTypeDecl(str(_first_name(node.children)), tuple(variants), loc=span_of(node))

    def _struct(self, node: Tree) -> StructDecl:
        fields = []
        for f in _trees(node.children, "field"):
            fields.append(FieldDecl(str(_first_name(f.children)), self._type(_first_type(f.children)),
                                    loc=span_of(f)))
        return StructDecl(str(_first_name(node.children)), tuple(fields), loc=span_of(node))

    def _hooks(self, node: Tree) -> HooksDecl:
        symbols = {}
        for h in _trees(node.children, "hook"):
            kind, symbol = (str(t) for t in h.children)
            if kind not in HOOK_KINDS:
                raise_fatal("CE3501", span=span_of(h), filename=self.provenance,
                            reason=f"unknown hook '{kind}' (expected one of: {', '.join(HOOK_KINDS)})")
            symbols[kind] = symbol
        return HooksDecl(str(_first_name(node.children)), drop=symbols.get("drop"),
                         clone=symbols.get("clone"), loc=span_of(node))

    def _type(self, node: Tree) -> Type:
        """Parse a type node: builtin names, declared names and `Template<type>`."""
        name = str(_first_name(node.children))
        if node.data == "generic_type_t":
            return TemplateRef(name, self._type(_first_type(node.children)))
        builtin = BuiltinType.from_name(name)
        if builtin is not None:
            return builtin
        return NamedType(name)


__all__ = ["ASTBuilder"]
