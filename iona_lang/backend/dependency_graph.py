"""Dependency graph and emission plan for one compilation unit.

Every emittable definition is an *artifact*: a runtime header include, a
template instantiation, a lowered sum type or a lowered struct. Artifacts
reference each other (a sum type with an `Array<String>` payload needs
`StringArray`, which needs `strings.h`, which needs `memory.h`). The plan is
a topological order of that graph where each artifact appears once, after
everything it references.

Ties are broken by layer (runtime numeric, runtime buffer, instantiations,
sum types, structs) and then by first use in the input, so the same input
always produces the same order.
"""
from __future__ import annotations
import heapq
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from iona_lang.backend.enums import LoweredSumType
from iona_lang.backend.lowering import Lowered, LoweringTable
from iona_lang.backend.structs import LoweredStruct
from iona_lang.internals.errors import raise_internal_error
from iona_lang.runtime import RuntimeLayer, RuntimeModule
from iona_lang.semantics.ast import HooksDecl, Item, StructDecl, SumTypeDecl, TemplateUse
from iona_lang.semantics.generics.registry import TemplateInstantiation, TemplateRegistry


class ArtifactKind(IntEnum):
    """Layer rank of an artifact; lower ranks are emitted first on ties."""
    NUMERIC_RUNTIME = 0
    BUFFER_RUNTIME = 1
    INSTANTIATION = 2
    SUM_TYPE = 3
    STRUCT = 4


ArtifactPayload = Union[RuntimeModule, TemplateInstantiation, LoweredSumType, LoweredStruct]
ArtifactKey = Tuple[ArtifactKind, str]


@dataclass(frozen=True)
class Artifact:
    kind: ArtifactKind
    name: str
    payload: ArtifactPayload = field(compare=False, hash=False)

    @property
    def key(self) -> ArtifactKey:
        return (self.kind, self.name)

    def __str__(self) -> str:
        return self.name

    @classmethod
    def of(cls, payload: ArtifactPayload) -> "Artifact":
        match payload:
            case RuntimeModule():
                kind = (ArtifactKind.NUMERIC_RUNTIME if payload.layer == RuntimeLayer.NUMERIC
                        else ArtifactKind.BUFFER_RUNTIME)
                return cls(kind, payload.header, payload)
            case TemplateInstantiation():
                return cls(ArtifactKind.INSTANTIATION, payload.type_name, payload)
            case LoweredSumType():
                return cls(ArtifactKind.SUM_TYPE, payload.name, payload)
            case LoweredStruct():
                return cls(ArtifactKind.STRUCT, payload.name, payload)
        raise_internal_error("CE0001", node=type(payload).__name__)


class DependencyGraph:
    """Tracks which artifacts depend on which other artifacts."""

    def __init__(self) -> None:
        self.nodes: Dict[ArtifactKey, Artifact] = {}
        self.edges: Dict[ArtifactKey, List[ArtifactKey]] = {}  # artifact → what it references
        self._discovery: Dict[ArtifactKey, int] = {}

    def add_artifact(self, artifact: Artifact) -> bool:
        """Add a node; returns False when it was already present."""
        if artifact.key in self.nodes:
            return False
        self.nodes[artifact.key] = artifact
        self.edges[artifact.key] = []
        self._discovery[artifact.key] = len(self._discovery)
        return True

    def add_dependency(self, from_key: ArtifactKey, to_key: ArtifactKey) -> None:
        """Record that `from_key` must be emitted after `to_key`."""
        deps = self.edges.setdefault(from_key, [])
        if to_key not in deps:
            deps.append(to_key)

    def get_dependencies(self, key: ArtifactKey) -> List[ArtifactKey]:
        return self.edges.get(key, [])

    def topological_order(self) -> List[Artifact]:
        """Kahn's algorithm, ready nodes popped by (layer, discovery index).

        Raises:
            RuntimeError: CE0002 when the graph has a cycle.
        """
        in_degree = {key: 0 for key in self.nodes}
        dependents: Dict[ArtifactKey, List[ArtifactKey]] = {key: [] for key in self.nodes}
        for key, deps in self.edges.items():
            for dep in deps:
                in_degree[key] += 1
                dependents[dep].append(key)

        ready = [(key[0], self._discovery[key], key) for key, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)
        result: List[Artifact] = []

        while ready:
            _, _, current = heapq.heappop(ready)
            result.append(self.nodes[current])
            for dependent in dependents[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, (dependent[0], self._discovery[dependent], dependent))

        if len(result) != len(self.nodes):
            cycle = self._find_cycle()
            raise_internal_error("CE0002", cycle=" -> ".join(k[1] for k in cycle + cycle[:1]))
        return result

    def _find_cycle(self) -> List[ArtifactKey]:
        """Find and return a cycle in the graph using DFS."""
        visited = set()
        rec_stack = set()

        def dfs(node: ArtifactKey, path: List[ArtifactKey]) -> Optional[List[ArtifactKey]]:
            visited.add(node)
            rec_stack.add(node)
            path.append(node)

            for neighbor in self.edges.get(node, []):
                if neighbor not in visited:
                    found = dfs(neighbor, path.copy())
                    if found:
                        return found
                elif neighbor in rec_stack:
                    return path[path.index(neighbor):]

            rec_stack.remove(node)
            return None

        for node in self.nodes:
            if node not in visited:
                found = dfs(node, [])
                if found:
                    return found
        return []

    def __repr__(self) -> str:
        total_edges = sum(len(deps) for deps in self.edges.values())
        return f"DependencyGraph({len(self.nodes)} artifacts, {total_edges} edges)"


class EmissionPlanner:
    """Build the ordered, deduplicated artifact list for one unit."""

    def __init__(self, registry: TemplateRegistry, lowering: LoweringTable) -> None:
        self.registry = registry
        self.lowering = lowering

    def plan(self, items: Sequence[Item], provenance: str) -> List[Artifact]:
        """Order every artifact the items need.

        Args:
            items: Declarations in input order; hooks declarations produce nothing.
            provenance: Source label used in lookup failures.

        Returns:
            Artifacts in emission order, each exactly once.

        Raises:
            RegistryLookupError: A referenced instantiation or declaration
                was never registered.
        """
        graph = DependencyGraph()
        for item in items:
            root = self._root(item, provenance)
            if root is not None:
                self._visit(graph, root, provenance)
        return graph.topological_order()

    def _root(self, item: Item, provenance: str) -> Optional[Artifact]:
        match item:
            case SumTypeDecl(name=name):
                return Artifact.of(self.lowering.sum_type(name, owner=name, provenance=provenance))
            case StructDecl(name=name):
                return Artifact.of(self.lowering.struct(name, owner=name, provenance=provenance))
            case TemplateUse(ref=ref):
                inst = self.registry.lookup(ref.template_id, ref.element,
                                            owner=str(ref), provenance=provenance)
                return Artifact.of(inst)
            case HooksDecl():
                return None
        raise_internal_error("CE0001", node=type(item).__name__)

    def _visit(self, graph: DependencyGraph, artifact: Artifact, provenance: str) -> None:
        if not graph.add_artifact(artifact):
            return
        for dep in self._references(artifact, provenance):
            self._visit(graph, dep, provenance)
            graph.add_dependency(artifact.key, dep.key)

    def _references(self, artifact: Artifact, provenance: str) -> List[Artifact]:
        payload = artifact.payload
        match payload:
            case RuntimeModule():
                return [Artifact.of(m) for m in payload.requires]
            case TemplateInstantiation():
                owner = str(payload)
                refs = [Artifact.of(m) for m in payload.runtime]
                refs += [Artifact.of(self.registry.lookup(n.template_id, n.element,
                                                          owner=owner, provenance=provenance))
                         for n in payload.nested]
                refs += [Artifact.of(self._named(name, owner, provenance)) for name in payload.named]
                return refs
            case LoweredSumType() | LoweredStruct():
                deps = payload.deps
                refs = [Artifact.of(m) for m in deps.runtime]
                refs += [Artifact.of(inst) for inst in deps.instances]
                refs += [Artifact.of(self._named(name, payload.name, provenance)) for name in deps.named]
                return refs
        raise_internal_error("CE0001", node=type(payload).__name__)

    def _named(self, name: str, owner: str, provenance: str) -> Lowered:
        return self.lowering.resolve(name, owner=owner, provenance=provenance)


__all__ = ["ArtifactKind", "Artifact", "DependencyGraph", "EmissionPlanner"]
