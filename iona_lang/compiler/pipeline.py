"""Backend orchestration: declaration IR in, compilation units out."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from llvmlite import ir

from iona_lang.backend.codegen_c import CodeEmitter, CompilationUnit
from iona_lang.backend.codegen_llvm import LLVMEmitter
from iona_lang.backend.dependency_graph import EmissionPlanner
from iona_lang.backend.lowering import LoweringTable
from iona_lang.internals.parser import load_declarations, parse_declarations
from iona_lang.internals.report import Reporter
from iona_lang.runtime import RuntimeModule, with_requirements
from iona_lang.semantics.ast import Program, StructDecl, SumTypeDecl
from iona_lang.semantics.generics.registry import TemplateRegistry
from iona_lang.semantics.passes.collect import CollectorPass


class Compilation:
    """One backend run over one or more declaration-IR programs.

    Owns its template registry, declaration table and lowering table; two
    compilations never see each other's instantiations.

    Usage:
        comp = Compilation()
        comp.add_file(Path("core.iona"))
        if not comp.reporter.has_errors:
            comp.lower()
            units = comp.emit_c()
    """

    def __init__(self, reporter: Optional[Reporter] = None) -> None:
        self.reporter = reporter or Reporter()
        self.registry = TemplateRegistry()
        self.collector = CollectorPass(self.reporter, self.registry)
        self.lowering = LoweringTable(self.registry)
        self.programs: List[Program] = []

    @property
    def declarations(self):
        return self.collector.table

    def add_program(self, program: Program) -> Program:
        """Validate `program` and register its declarations and instantiations."""
        self.collector.run(program)
        self.programs.append(program)
        return program

    def add_source(self, src: str, provenance: str = "<input>") -> Program:
        return self.add_program(parse_declarations(src, provenance=provenance))

    def add_file(self, path: Path, provenance: Optional[str] = None) -> Program:
        return self.add_program(load_declarations(path, provenance=provenance))

    def lower(self) -> None:
        """Lower every sum type and struct collected so far.

        Call only when the reporter has no errors: lowering trusts the
        collect pass to have rejected malformed declarations.
        """
        for program in self.programs:
            decls = [i for i in program.items if isinstance(i, (SumTypeDecl, StructDecl))]
            self.lowering.lower_all(decls, program.label)

    def emit_c(self, annotate: bool = True) -> List[CompilationUnit]:
        """One C unit per program, in the order programs were added."""
        emitter = CodeEmitter(self.registry, self.lowering, annotate=annotate)
        return [emitter.emit(p.items, p.label) for p in self.programs]

    def emit_llvm(self) -> List[Tuple[Program, ir.Module]]:
        emitter = LLVMEmitter(self.registry, self.lowering)
        return [(p, emitter.emit(p.items, p.label)) for p in self.programs]

    def runtime_modules(self) -> Tuple[RuntimeModule, ...]:
        """Runtime headers any unit of this compilation includes."""
        planner = EmissionPlanner(self.registry, self.lowering)
        modules: List[RuntimeModule] = []
        for program in self.programs:
            for artifact in planner.plan(program.items, program.label):
                if isinstance(artifact.payload, RuntimeModule) and artifact.payload not in modules:
                    modules.append(artifact.payload)
        return with_requirements(modules)


__all__ = ["Compilation"]
