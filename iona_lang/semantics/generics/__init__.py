"""Template catalogue, name mangling and the per-compilation registry."""

from .registry import HookSymbols, TemplateInstantiation, TemplateRegistry
from .templates import ArrayTemplate, TemplateDefinition, get_template, register_template

__all__ = [
    "ArrayTemplate",
    "HookSymbols",
    "TemplateDefinition",
    "TemplateInstantiation",
    "TemplateRegistry",
    "get_template",
    "register_template",
]
