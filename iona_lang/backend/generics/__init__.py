"""Per-template code generators for the C target."""
from __future__ import annotations
from typing import Callable, Dict

from iona_lang.backend.generics.array import render_array
from iona_lang.internals.errors import raise_internal_error
from iona_lang.semantics.generics.registry import TemplateInstantiation, TemplateRegistry

CRenderer = Callable[..., str]

_C_RENDERERS: Dict[str, CRenderer] = {
    "Array": render_array,
}


def register_c_renderer(template_id: str, renderer: CRenderer) -> None:
    _C_RENDERERS[template_id] = renderer


def render_instantiation(inst: TemplateInstantiation, registry: TemplateRegistry,
                         provenance: str = "<input>", annotate: bool = True) -> str:
    renderer = _C_RENDERERS.get(inst.template_id)
    if renderer is None:
        raise_internal_error("CE0004", template=inst.template_id, target="c")
    return renderer(inst, registry, provenance=provenance, annotate=annotate)


__all__ = ["render_instantiation", "register_c_renderer", "render_array"]
