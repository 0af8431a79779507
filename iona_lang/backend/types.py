"""Target spelling and dependency resolution for IR types.

`c_type` is the single place that decides how an IR type is written in C.
`resolve_dependencies` collects what a definition needs emitted before it:
runtime headers, template instantiations and declared types.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Tuple

from iona_lang.internals.errors import raise_internal_error
from iona_lang.runtime import RuntimeModule
from iona_lang.semantics.generics.registry import (
    BUILTIN_RUNTIME, TemplateInstantiation, TemplateRegistry,
)
from iona_lang.semantics.typesys import BuiltinType, NamedType, TemplateRef, Type


_BUILTIN_C_NAMES = {
    BuiltinType.INTEGER: "Integer",
    BuiltinType.FLOAT: "Float",
    BuiltinType.BOOLEAN: "bool",
    BuiltinType.STRING: "String",
    BuiltinType.SLOT: "void*",
}


@dataclass(frozen=True)
class TypeDependencies:
    """Artifacts one definition refers to, each list in first-seen order."""
    runtime: Tuple[RuntimeModule, ...] = ()
    instances: Tuple[TemplateInstantiation, ...] = ()
    named: Tuple[str, ...] = ()


def c_type(ty: Type, registry: TemplateRegistry, *, owner: str = "<unknown>",
           provenance: str = "<input>") -> str:
    """C spelling of `ty` as a field, payload or element type.

    Args:
        ty: The IR type.
        registry: Registry holding the instantiation of any TemplateRef.
        owner: Declaration the type belongs to, for lookup failures.
        provenance: Source label, for lookup failures.

    Returns:
        The C type, e.g. "Integer", "void*", "struct Point", "StringArray".
    """
    match ty:
        case BuiltinType():
            return _BUILTIN_C_NAMES[ty]
        case NamedType(name=name):
            return f"struct {name}"
        case TemplateRef(template_id=template_id, element=element):
            return registry.lookup(template_id, element, owner=owner, provenance=provenance).type_name
    raise_internal_error("CE0001", node=type(ty).__name__)


def resolve_dependencies(types: Iterable[Type], registry: TemplateRegistry, *,
                         owner: str, provenance: str) -> TypeDependencies:
    """Resolve what the given member types need defined first.

    Template usages are looked up, not instantiated: an instantiation that
    was never registered aborts with a registry lookup error naming `owner`.
    """
    runtime: list[RuntimeModule] = []
    instances: list[TemplateInstantiation] = []
    named: list[str] = []

    for ty in types:
        match ty:
            case BuiltinType():
                module = BUILTIN_RUNTIME.get(ty)
                if module is not None and module not in runtime:
                    runtime.append(module)
            case NamedType(name=name):
                if name not in named:
                    named.append(name)
            case TemplateRef(template_id=template_id, element=element):
                inst = registry.lookup(template_id, element, owner=owner, provenance=provenance)
                if inst not in instances:
                    instances.append(inst)
            case _:
                raise_internal_error("CE0001", node=type(ty).__name__)

    return TypeDependencies(tuple(runtime), tuple(instances), tuple(named))


__all__ = ["TypeDependencies", "c_type", "resolve_dependencies"]
