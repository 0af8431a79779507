# backend/generics/array.py
"""C definitions for one `Array<T>` instantiation.

Layout `{T* data, size_t len, size_t capacity}` with the runtime's growth
rule (`max(capacity * 2, required)`) and clamped slicing. Index access and
pop report failure through a `bool` result and write the element through an
out-parameter. Elements with hooks are deep-copied on get/slice/clone and
destroyed on set/free.
"""
from __future__ import annotations
from typing import Callable, Dict, List

from iona_lang.backend.types import c_type
from iona_lang.semantics.generics.name_mangling import guard_macro
from iona_lang.semantics.generics.registry import TemplateInstantiation, TemplateRegistry
from iona_lang.semantics.generics.templates import ArrayTemplate


class _Ctx:
    """Names shared by every operation of one instantiation."""

    def __init__(self, inst: TemplateInstantiation, registry: TemplateRegistry, provenance: str) -> None:
        self.inst = inst
        self.array = inst.type_name
        self.elem = c_type(inst.element, registry, owner=str(inst), provenance=provenance)
        self.clone = inst.hooks.clone
        self.drop = inst.hooks.drop

    def fn(self, op: str) -> str:
        return self.inst.symbol(op)

    def copy_of(self, expr: str) -> str:
        """Expression producing an owned copy of the element lvalue `expr`."""
        return f"{self.clone}(&{expr})" if self.clone else expr


def _with_capacity(c: _Ctx) -> List[str]:
    return [
        f"static inline {c.array} {c.fn('with_capacity')}(size_t capacity) {{",
        f"\t{c.array} arr;",
        f"\tarr.data = iona_alloc(capacity * sizeof({c.elem}), \"{c.fn('with_capacity')}\");",
        "\tarr.len = 0;",
        "\tarr.capacity = capacity;",
        "\treturn arr;",
        "}",
    ]


def _new(c: _Ctx) -> List[str]:
    return [
        f"static inline {c.array} {c.fn('new')}(void) {{",
        f"\treturn {c.fn('with_capacity')}({ArrayTemplate.initial_capacity});",
        "}",
    ]


def _free(c: _Ctx) -> List[str]:
    lines = [f"static inline void {c.fn('free')}({c.array}* arr) {{"]
    if c.drop:
        lines += [
            "\tfor (size_t i = 0; i < arr->len; i++) {",
            f"\t\t{c.drop}(&arr->data[i]);",
            "\t}",
        ]
    lines += [
        "\tfree(arr->data);",
        "\tarr->data = NULL;",
        "\tarr->len = 0;",
        "\tarr->capacity = 0;",
        "}",
    ]
    return lines


def _reserve(c: _Ctx) -> List[str]:
    return [
        f"static inline void {c.fn('reserve')}({c.array}* arr, size_t additional) {{",
        "\tsize_t required = arr->len + additional;",
        "\tif (required <= arr->capacity) return;",
        "",
        "\tsize_t new_capacity = arr->capacity * 2;",
        "\tif (new_capacity < required) new_capacity = required;",
        f"\tarr->data = iona_realloc(arr->data, new_capacity * sizeof({c.elem}), \"{c.fn('reserve')}\");",
        "\tarr->capacity = new_capacity;",
        "}",
    ]


def _push(c: _Ctx) -> List[str]:
    return [
        f"static inline void {c.fn('push')}({c.array}* arr, {c.elem} elem) {{",
        f"\t{c.fn('reserve')}(arr, 1);",
        "\tarr->data[arr->len++] = elem;",
        "}",
    ]


def _pop(c: _Ctx) -> List[str]:
    return [
        f"static inline bool {c.fn('pop')}({c.array}* arr, {c.elem}* out) {{",
        "\tif (arr->len == 0) return false;",
        "\t*out = arr->data[--arr->len];",
        "\treturn true;",
        "}",
    ]


def _slice(c: _Ctx) -> List[str]:
    lines = [
        f"static inline {c.array} {c.fn('slice')}(const {c.array}* arr, size_t start, size_t end) {{",
        "\tif (end > arr->len) end = arr->len;",
        "\tif (start > end) start = end;",
        "",
        "\tsize_t slice_len = end - start;",
        f"\t{c.array} result = {c.fn('with_capacity')}(slice_len);",
    ]
    if c.clone:
        lines += [
            "\tfor (size_t i = 0; i < slice_len; i++) {",
            f"\t\tresult.data[i] = {c.copy_of('arr->data[start + i]')};",
            "\t}",
        ]
    else:
        lines.append(f"\tmemcpy(result.data, arr->data + start, slice_len * sizeof({c.elem}));")
    lines += [
        "\tresult.len = slice_len;",
        "\treturn result;",
        "}",
    ]
    return lines


def _get(c: _Ctx) -> List[str]:
    return [
        f"static inline bool {c.fn('get')}(const {c.array}* arr, size_t index, {c.elem}* out) {{",
        "\tif (index >= arr->len) return false;",
        f"\t*out = {c.copy_of('arr->data[index]')};",
        "\treturn true;",
        "}",
    ]


def _set(c: _Ctx) -> List[str]:
    lines = [
        f"static inline bool {c.fn('set')}({c.array}* arr, size_t index, {c.elem} elem) {{",
        "\tif (index >= arr->len) return false;",
    ]
    if c.drop:
        lines.append(f"\t{c.drop}(&arr->data[index]);")
    lines += [
        "\tarr->data[index] = elem;",
        "\treturn true;",
        "}",
    ]
    return lines


def _clone(c: _Ctx) -> List[str]:
    return [
        f"static inline {c.array} {c.fn('clone')}(const {c.array}* arr) {{",
        f"\treturn {c.fn('slice')}(arr, 0, arr->len);",
        "}",
    ]


_OPERATIONS: Dict[str, Callable[[_Ctx], List[str]]] = {
    "with_capacity": _with_capacity,
    "new": _new,
    "free": _free,
    "reserve": _reserve,
    "push": _push,
    "pop": _pop,
    "slice": _slice,
    "get": _get,
    "set": _set,
    "clone": _clone,
}


def render_array(inst: TemplateInstantiation, registry: TemplateRegistry,
                 provenance: str = "<input>", annotate: bool = True) -> str:
    """Render the guarded C definitions of `inst`.

    Args:
        inst: A registered Array instantiation.
        registry: Registry used to spell the element type.
        provenance: Source label for lookup failures.
        annotate: Emit the `// Array<T>` comment above the typedef.

    Returns:
        C text without a trailing newline.
    """
    c = _Ctx(inst, registry, provenance)
    guard = guard_macro(inst.symbol_prefix)

    lines = [f"#ifndef {guard}", f"#define {guard}", ""]
    if annotate:
        lines.append(f"// {inst}")
    lines += [
        "typedef struct {",
        f"\t{c.elem}* data;",
        "\tsize_t len;",
        "\tsize_t capacity;",
        f"}} {c.array};",
    ]
    for op in inst.operations:
        lines.append("")
        lines += _OPERATIONS[op](c)
    lines += ["", f"#endif // {guard}"]
    return "\n".join(lines)


__all__ = ["render_array"]
