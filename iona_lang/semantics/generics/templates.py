"""Generic-container template catalogue.

A template describes a family of containers parameterized by one element
type. The catalogue itself is immutable process-wide data; instantiation
state lives in a per-compilation `TemplateRegistry`.

Usage:
    # Look up a template while collecting declarations
    template = get_template("Array")

    # Make another container family available
    register_template(MyTemplate())
"""

from __future__ import annotations
from typing import Optional, Protocol

from iona_lang.runtime import RuntimeModule
from iona_lang.semantics.generics.name_mangling import instance_type_name


class TemplateDefinition(Protocol):
    """Interface every container template implements."""

    @property
    def name(self) -> str:
        """Template id used in declaration IR (e.g. "Array")."""
        ...

    @property
    def operations(self) -> tuple[str, ...]:
        """Operation names generated per instantiation, in emission order."""
        ...

    @property
    def runtime(self) -> tuple[RuntimeModule, ...]:
        """Runtime headers every instantiation needs regardless of element."""
        ...

    def type_name(self, element_name: str) -> str:
        ...


class ArrayTemplate:
    """Growable array of T: `{T* data, size_t len, size_t capacity}`."""

    name = "Array"
    operations = (
        "with_capacity", "new", "free", "reserve", "push", "pop",
        "slice", "get", "set", "clone",
    )
    runtime = (RuntimeModule.MEMORY,)
    initial_capacity = 8

    def type_name(self, element_name: str) -> str:
        return instance_type_name(self.name, element_name)


_TEMPLATES: dict[str, TemplateDefinition] = {}


def register_template(template: TemplateDefinition) -> None:
    if template.name in _TEMPLATES:
        raise ValueError(f"template '{template.name}' is already registered")
    _TEMPLATES[template.name] = template


def get_template(name: str) -> Optional[TemplateDefinition]:
    return _TEMPLATES.get(name)


register_template(ArrayTemplate())
