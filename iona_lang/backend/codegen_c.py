# backend/codegen_c.py
"""C code emission.

One call to `CodeEmitter.emit` produces one compilation unit: a provenance
header, the standard includes, one `#include` per runtime header the unit
needs, then every instantiation, sum type and struct in emission-plan order.
Rendering is a pure function of the plan, so the same input always yields
byte-identical text.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from iona_lang.backend.dependency_graph import Artifact, ArtifactKind, EmissionPlanner
from iona_lang.backend.enums import LoweredSumType
from iona_lang.backend.generics import render_instantiation
from iona_lang.backend.lowering import LoweringTable
from iona_lang.backend.structs import LoweredStruct
from iona_lang.backend.types import c_type
from iona_lang.internals.errors import raise_internal_error
from iona_lang.runtime import RuntimeModule
from iona_lang.semantics.ast import Item
from iona_lang.semantics.generics.registry import TemplateInstantiation, TemplateRegistry

STANDARD_INCLUDES = ("stdbool.h", "stdint.h")

_RUNTIME_KINDS = (ArtifactKind.NUMERIC_RUNTIME, ArtifactKind.BUFFER_RUNTIME)


@dataclass(frozen=True)
class EmittedDeclaration:
    kind: ArtifactKind
    name: str
    text: str


@dataclass(frozen=True)
class CompilationUnit:
    """Rendered output for one input, in emission order."""
    provenance: str
    declarations: Tuple[EmittedDeclaration, ...]
    runtime_modules: Tuple[RuntimeModule, ...] = ()

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(d.name for d in self.declarations)

    @property
    def text(self) -> str:
        parts = [f"// source: {self.provenance}\n\n"]
        parts.extend(f"#include <{header}>\n" for header in STANDARD_INCLUDES)
        body = []
        for decl in self.declarations:
            if decl.kind in _RUNTIME_KINDS:
                parts.append(decl.text + "\n")
            else:
                body.append(decl.text + "\n\n")
        parts.append("\n")
        parts.extend(body)
        return "".join(parts)


def render_sum_type(lowered: LoweredSumType, registry: TemplateRegistry) -> str:
    """Tag enum, payload union (if any) and wrapper struct of one sum type."""
    blocks = []

    lines = ["typedef enum {"]
    lines += [f"\t{constant}," for constant in lowered.tag_enum.constants]
    lines.append(f"}} {lowered.tag_enum.name};")
    blocks.append("\n".join(lines))

    union = lowered.payload_union
    if union is not None:
        lines = ["typedef union {"]
        for f in union.fields:
            spelled = c_type(f.ty, registry, owner=lowered.name, provenance=lowered.provenance)
            lines.append(f"\t{spelled} {f.variant};")
        lines.append(f"}} {union.name};")
        blocks.append("\n".join(lines))

    lines = [f"struct {lowered.name} {{"]
    lines += [f"\t{type_name} {field_name};" for field_name, type_name in lowered.wrapper_fields]
    lines.append("};")
    blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


def render_struct(lowered: LoweredStruct, registry: TemplateRegistry) -> str:
    lines = [f"struct {lowered.name} {{"]
    for f in lowered.fields:
        spelled = c_type(f.ty, registry, owner=lowered.name, provenance=lowered.provenance)
        lines.append(f"\t{spelled} {f.name};")
    lines.append("};")
    return "\n".join(lines)


class CodeEmitter:
    """Render emission plans as C compilation units.

    Args:
        registry: The compilation's template registry.
        lowering: The compilation's lowered declarations.
        annotate: Put a `// Template<Element>` comment above each instantiation.
    """

    def __init__(self, registry: TemplateRegistry, lowering: LoweringTable, annotate: bool = True) -> None:
        self.registry = registry
        self.lowering = lowering
        self.annotate = annotate
        self.planner = EmissionPlanner(registry, lowering)

    def emit(self, items: Sequence[Item], provenance: str) -> CompilationUnit:
        """Emit one unit for `items`.

        Raises:
            RegistryLookupError: A referenced instantiation, sum type or
                struct was never registered.
        """
        plan = self.planner.plan(items, provenance)
        declarations: List[EmittedDeclaration] = []
        runtime: List[RuntimeModule] = []
        for artifact in plan:
            if isinstance(artifact.payload, RuntimeModule):
                runtime.append(artifact.payload)
            declarations.append(EmittedDeclaration(artifact.kind, artifact.name,
                                                   self._render(artifact, provenance)))
        return CompilationUnit(provenance, tuple(declarations), tuple(runtime))

    def _render(self, artifact: Artifact, provenance: str) -> str:
        payload = artifact.payload
        match payload:
            case RuntimeModule():
                return f'#include "{payload.header}"'
            case TemplateInstantiation():
                return render_instantiation(payload, self.registry, provenance=provenance, annotate=self.annotate)
            case LoweredSumType():
                return render_sum_type(payload, self.registry)
            case LoweredStruct():
                return render_struct(payload, self.registry)
        raise_internal_error("CE0001", node=type(payload).__name__)


__all__ = [
    "CodeEmitter", "CompilationUnit", "EmittedDeclaration",
    "render_sum_type", "render_struct", "STANDARD_INCLUDES",
]
