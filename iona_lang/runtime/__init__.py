"""Runtime support library catalogue.

The generated C code links against three headers shipped in `runtime/c/`:

- numbers.h: Integer/Float wrappers with saturating arithmetic
- memory.h:  checked allocation used by every growable buffer
- strings.h: growable byte strings

`iona_lang.runtime.numbers`, `.strings` and `.arrays` implement the same
semantics as Python value types. Code emission only consults this catalogue
(header names, layers and exported symbols); it never re-derives behaviour.
"""

from __future__ import annotations
from enum import Enum, IntEnum
from importlib.resources import files
from pathlib import Path
from typing import Iterable


class RuntimeLayer(IntEnum):
    """Emission order of runtime support: numeric first, buffers second."""
    NUMERIC = 0
    BUFFER = 1


class RuntimeModule(Enum):
    NUMBERS = "numbers"
    MEMORY = "memory"
    STRINGS = "strings"

    def __str__(self) -> str:
        return self.value

    @property
    def header(self) -> str:
        return f"{self.value}.h"

    @property
    def layer(self) -> RuntimeLayer:
        return _LAYERS[self]

    @property
    def requires(self) -> tuple["RuntimeModule", ...]:
        return _REQUIRES[self]

    @property
    def types(self) -> tuple[str, ...]:
        """C type names the header defines."""
        return _TYPES[self]

    @property
    def symbols(self) -> tuple[str, ...]:
        """C functions the header exports, in header order."""
        return _SYMBOLS[self]


_LAYERS = {
    RuntimeModule.NUMBERS: RuntimeLayer.NUMERIC,
    RuntimeModule.MEMORY: RuntimeLayer.BUFFER,
    RuntimeModule.STRINGS: RuntimeLayer.BUFFER,
}

_REQUIRES: dict[RuntimeModule, tuple[RuntimeModule, ...]] = {
    RuntimeModule.NUMBERS: (),
    RuntimeModule.MEMORY: (),
    RuntimeModule.STRINGS: (RuntimeModule.MEMORY,),
}

_TYPES: dict[RuntimeModule, tuple[str, ...]] = {
    RuntimeModule.NUMBERS: ("Integer", "Float"),
    RuntimeModule.MEMORY: (),
    RuntimeModule.STRINGS: ("String",),
}

_SYMBOLS: dict[RuntimeModule, tuple[str, ...]] = {
    RuntimeModule.NUMBERS: (
        "integer_from", "float_from",
        "integer_show", "float_show",
        "integer_equals", "float_equals",
        "saturating_add", "saturating_sub", "saturating_mul", "saturating_div",
        "saturating_add_float", "saturating_sub_float",
        "saturating_mul_float", "saturating_div_float",
    ),
    RuntimeModule.MEMORY: (
        "iona_alloc", "iona_realloc",
    ),
    RuntimeModule.STRINGS: (
        "string_from", "string_with_capacity", "string_free",
        "string_append", "string_slice", "string_compare",
        "string_char_at", "string_set_char", "string_clone", "string_as_cstr",
    ),
}


def with_requirements(modules: Iterable[RuntimeModule]) -> tuple[RuntimeModule, ...]:
    """Close `modules` over header requirements, requirements first."""
    ordered: list[RuntimeModule] = []

    def visit(module: RuntimeModule) -> None:
        if module in ordered:
            return
        for dep in module.requires:
            visit(dep)
        ordered.append(module)

    for module in modules:
        visit(module)
    return tuple(ordered)


def header_source(module: RuntimeModule) -> str:
    """Text of the shipped C header for `module`."""
    return files("iona_lang.runtime").joinpath("c", module.header).read_text(encoding="utf-8")


def copy_headers(dest: Path, modules: Iterable[RuntimeModule] = tuple(RuntimeModule)) -> list[Path]:
    """Write the headers for `modules` (and what they include) into `dest`."""
    dest.mkdir(parents=True, exist_ok=True)
    written = []
    for module in with_requirements(modules):
        path = dest / module.header
        path.write_text(header_source(module), encoding="utf-8")
        written.append(path)
    return written


__all__ = [
    "RuntimeLayer", "RuntimeModule", "with_requirements", "header_source", "copy_headers",
]
