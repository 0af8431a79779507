from __future__ import annotations
from enum import Enum
from typing import Union
from dataclasses import dataclass

class BuiltinType(Enum):
    INTEGER = "Integer"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    STRING = "String"
    # Type-erased generic slot (a payload left generic by the checker)
    SLOT = "Slot"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> "BuiltinType | None":
        for member in cls:
            if member.value == name:
                return member
        return None

@dataclass(frozen=True)
class NamedType:
    """Reference to a declared struct or sum type."""
    name: str

    def __str__(self) -> str:
        return self.name

@dataclass(frozen=True)
class TemplateRef:
    """A generic-container usage, e.g. Array<String>.

    The checker hands these over fully resolved: the element is itself a
    concrete type (possibly another TemplateRef).
    """
    template_id: str
    element: "Type"

    def __str__(self) -> str:
        return f"{self.template_id}<{self.element}>"

Type = Union[BuiltinType, NamedType, TemplateRef]


def iter_template_refs(ty: Type):
    """Yield every TemplateRef inside `ty`, innermost first."""
    if isinstance(ty, TemplateRef):
        yield from iter_template_refs(ty.element)
        yield ty


def named_types_in(ty: Type) -> tuple[str, ...]:
    """Names of declared types `ty` mentions, outermost first."""
    match ty:
        case NamedType(name=name):
            return (name,)
        case TemplateRef(element=element):
            return named_types_in(element)
    return ()


__all__ = ["BuiltinType", "NamedType", "TemplateRef", "Type", "iter_template_refs", "named_types_in"]
