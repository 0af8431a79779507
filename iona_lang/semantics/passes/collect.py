# semantics/passes/collect.py
"""Collection pass over the declaration IR.

Registers struct and sum-type declarations, element hooks and every template
instantiation the program uses, after checking the structural properties the
backend relies on:

- No duplicate declaration names (structs and sum types share a namespace)
- No duplicate variants/fields, no empty sum types or structs
- Tag constants unique within and across sum types (C enumerators are global)
- No C keywords as declaration, field or variant names
- Every named type and template referenced is known
- No declaration needs its own complete definition
- Declared names do not collide with generated instantiation names

Type correctness is the checker's business and is not re-validated here.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from iona_lang.internals import errors as er
from iona_lang.internals.errors import ERR
from iona_lang.internals.report import Reporter, Span
from iona_lang.semantics.ast import (
    HooksDecl, Program, StructDecl, SumTypeDecl, TemplateUse, TypeDecl,
)
from iona_lang.semantics.generics.name_mangling import is_c_keyword, tag_constant
from iona_lang.semantics.generics.registry import HookSymbols, TemplateRegistry
from iona_lang.semantics.generics.templates import get_template
from iona_lang.semantics.typesys import (
    BuiltinType, NamedType, TemplateRef, Type, iter_template_refs, named_types_in,
)


@dataclass
class DeclarationTable:
    """Declared structs and sum types of one compilation."""
    sum_types: Dict[str, SumTypeDecl] = field(default_factory=dict)
    structs: Dict[str, StructDecl] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)
    # declaration name → provenance of the file that declared it
    origin: Dict[str, str] = field(default_factory=dict)
    # tag constant → owning sum type
    tags: Dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> Optional[TypeDecl]:
        return self.sum_types.get(name) or self.structs.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.sum_types or name in self.structs

    def owns_heap(self, ty: Type, _seen: Optional[Set[str]] = None) -> bool:
        """Whether values of `ty` own heap memory that needs a destructor."""
        match ty:
            case BuiltinType.STRING | TemplateRef():
                return True
            case NamedType(name=name):
                seen = _seen if _seen is not None else set()
                if name in seen:
                    return False
                seen.add(name)
                return any(self.owns_heap(t, seen) for t in member_types(self.get(name)))
        return False


def member_types(decl: Optional[TypeDecl]) -> Iterator[Type]:
    """Field types of a struct, payload types of a sum type."""
    if isinstance(decl, SumTypeDecl):
        for variant in decl.variants:
            if variant.payload is not None:
                yield variant.payload
    elif isinstance(decl, StructDecl):
        for f in decl.fields:
            yield f.ty


def _referenced_types(item) -> Iterator[Tuple[Type, Optional[Span]]]:
    if isinstance(item, SumTypeDecl):
        for variant in item.variants:
            if variant.payload is not None:
                yield variant.payload, variant.loc or item.loc
    elif isinstance(item, StructDecl):
        for f in item.fields:
            yield f.ty, f.loc or item.loc
    elif isinstance(item, TemplateUse):
        yield item.ref, item.loc


class CollectorPass:
    """Validate declarations and populate the registry for one compilation.

    May be run over several programs in turn; they then share one
    declaration namespace and one registry.
    """

    def __init__(self, reporter: Reporter, registry: TemplateRegistry,
                 table: Optional[DeclarationTable] = None) -> None:
        self.r = reporter
        self.registry = registry
        self.table = table if table is not None else DeclarationTable()

    def run(self, program: Program) -> None:
        filename = program.provenance
        for item in program.items:
            if isinstance(item, SumTypeDecl):
                self._collect_sum_type(item, filename)
            elif isinstance(item, StructDecl):
                self._collect_struct(item, filename)

        for hooks in program.hooks:
            self._collect_hooks(hooks, filename)

        valid_refs = self._check_references(program, filename)
        self._check_value_cycles(program, filename)
        self._instantiate(program, valid_refs, filename)

    def _collect_sum_type(self, decl: SumTypeDecl, filename: str) -> None:
        if not self._claim_name(decl.name, decl.loc, filename):
            return
        if not decl.variants:
            er.emit(self.r, ERR.CE2003, decl.loc, filename, name=decl.name)

        seen: Set[str] = set()
        own_tags: Dict[str, str] = {}
        for variant in decl.variants:
            if variant.name in seen:
                er.emit(self.r, ERR.CE2002, variant.loc or decl.loc, filename,
                        variant=variant.name, name=decl.name)
                continue
            seen.add(variant.name)
            self._check_spelling("variant", variant.name, decl.name, variant.loc or decl.loc, filename)
            tag = tag_constant(variant.name)
            if tag in own_tags:
                er.emit(self.r, ERR.CE2011, variant.loc or decl.loc, filename,
                        variant=variant.name, other=own_tags[tag], name=decl.name, tag=tag)
                continue
            own_tags[tag] = variant.name
            other = self.table.tags.get(tag)
            if other is not None and other != decl.name:
                er.emit(self.r, ERR.CE2006, variant.loc or decl.loc, filename,
                        tag=tag, name=decl.name, other=other)
            else:
                self.table.tags[tag] = decl.name

        self.table.sum_types[decl.name] = decl

    def _collect_struct(self, decl: StructDecl, filename: str) -> None:
        if not self._claim_name(decl.name, decl.loc, filename):
            return
        if not decl.fields:
            er.emit(self.r, ERR.CE2012, decl.loc, filename, name=decl.name)
        seen: Set[str] = set()
        for f in decl.fields:
            if f.name in seen:
                er.emit(self.r, ERR.CE2008, f.loc or decl.loc, filename, field=f.name, name=decl.name)
            seen.add(f.name)
            self._check_spelling("field", f.name, decl.name, f.loc or decl.loc, filename)
        self.table.structs[decl.name] = decl

    def _claim_name(self, name: str, loc: Optional[Span], filename: str) -> bool:
        if name in self.table:
            er.emit(self.r, ERR.CE2001, loc, filename, name=name)
            return False
        self._check_spelling("type", name, name, loc, filename)
        self.table.order.append(name)
        self.table.origin[name] = filename
        return True

    def _check_spelling(self, what: str, ident: str, owner: str, loc: Optional[Span], filename: str) -> None:
        if is_c_keyword(ident):
            er.emit(self.r, ERR.CE2013, loc, filename, what=what, ident=ident, name=owner)

    def _collect_hooks(self, hooks: HooksDecl, filename: str) -> None:
        if hooks.name not in self.table:
            er.emit(self.r, ERR.CE2009, hooks.loc, filename, name=hooks.name)
            return
        for inst in self.registry:
            if hooks.name in inst.named:
                er.emit(self.r, ERR.CW2102, hooks.loc, filename, name=hooks.name, instance=str(inst))
        self.registry.register_hooks(hooks.name, HookSymbols(clone=hooks.clone, drop=hooks.drop))

    def _check_references(self, program: Program, filename: str) -> List[TemplateRef]:
        """Report unknown names/templates; return the template refs safe to instantiate."""
        valid: List[TemplateRef] = []
        for item in program.emittable:
            owner = item.name
            for ty, loc in _referenced_types(item):
                if not self._type_is_known(ty, owner, loc, filename):
                    continue
                for ref in iter_template_refs(ty):
                    if ref not in valid:
                        valid.append(ref)
        return valid

    def _type_is_known(self, ty: Type, owner: str, loc: Optional[Span], filename: str) -> bool:
        match ty:
            case BuiltinType():
                return True
            case NamedType(name=name):
                if name not in self.table:
                    er.emit(self.r, ERR.CE2005, loc, filename, name=name, owner=owner)
                    return False
                return True
            case TemplateRef(template_id=template_id, element=element):
                known = self._type_is_known(element, owner, loc, filename)
                if get_template(template_id) is None:
                    er.emit(self.r, ERR.CE2004, loc, filename, template=template_id, usage=str(ty))
                    return False
                return known
        er.raise_internal_error("CE0001", node=type(ty).__name__)

    def _check_value_cycles(self, program: Program, filename: str) -> None:
        """No declaration may need its own complete definition.

        Array elements count: the generated array code takes `sizeof` of the
        element and passes it by value.
        """
        for decl in program.sum_types + program.structs:
            path = self._value_path(decl.name, decl.name, [])
            if path is not None:
                er.emit(self.r, ERR.CE2010, decl.loc, filename,
                        name=decl.name, path=" -> ".join([decl.name] + path))

    def _value_path(self, target: str, current: str, path: List[str]) -> Optional[List[str]]:
        for ty in member_types(self.table.get(current)):
            for name in named_types_in(ty):
                if name == target:
                    return path + [name]
                if name in path:
                    continue
                found = self._value_path(target, name, path + [name])
                if found is not None:
                    return found
        return None

    def _instantiate(self, program: Program, refs: List[TemplateRef], filename: str) -> None:
        for ref in refs:
            inst = self.registry.instantiate_ref(ref)
            if inst.type_name in self.table:
                er.emit(self.r, ERR.CE2007, None, filename, name=inst.type_name, instance=str(inst))
            for name in inst.named:
                if self.table.owns_heap(NamedType(name)) and inst.hooks.drop is None:
                    er.emit(self.r, ERR.CW2101, None, filename, element=name, instance=str(inst))


__all__ = ["CollectorPass", "DeclarationTable", "member_types"]
