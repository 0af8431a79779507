"""
LLVM type-layout backend.

Lowers the same emission plan as the C backend into an `llvmlite` module:
runtime value types and template instantiations become identified struct
types, sum types become `{i32 tag, [N x iA] data}` (A = payload
alignment, so the payload sits where the C union does), structs their field
lists. Every runtime symbol and every instantiation operation is declared,
so the module can be linked against objects compiled from the C output.

API:
    from iona_lang.backend.codegen_llvm import LLVMEmitter
    module = LLVMEmitter(registry, lowering).emit(program.items, program.label)
    print(str(module))

Each `emit` call builds its module in a fresh `ir.Context`; identified type
names never leak between units or compilations.
"""
from __future__ import annotations
from typing import Dict, List, Sequence, Tuple

from llvmlite import ir

from iona_lang.backend.dependency_graph import EmissionPlanner
from iona_lang.backend.enums import LoweredSumType
from iona_lang.backend.lowering import LoweringTable
from iona_lang.backend.sizing import TypeSizing
from iona_lang.backend.structs import LoweredStruct
from iona_lang.internals.errors import raise_internal_error
from iona_lang.runtime import RuntimeModule
from iona_lang.semantics.ast import Item
from iona_lang.semantics.generics.registry import TemplateInstantiation, TemplateRegistry
from iona_lang.semantics.typesys import BuiltinType, NamedType, TemplateRef, Type

INT8 = ir.IntType(8)
INT32 = ir.IntType(32)
INT64 = ir.IntType(64)
BOOL = ir.IntType(1)
DOUBLE = ir.DoubleType()
VOID = ir.VoidType()
CHAR_PTR = INT8.as_pointer()


class LLVMEmitter:
    """Build one LLVM module per compilation unit."""

    def __init__(self, registry: TemplateRegistry, lowering: LoweringTable) -> None:
        self.registry = registry
        self.lowering = lowering
        self.planner = EmissionPlanner(registry, lowering)

        # Per-emit state
        self.context: ir.Context = ir.Context()
        self.module: ir.Module = ir.Module(context=self.context)
        self.sizing: TypeSizing = TypeSizing(lowering)
        self.funcs: Dict[str, ir.Function] = {}

    def emit(self, items: Sequence[Item], provenance: str) -> ir.Module:
        """Emit the LLVM module for `items`.

        Raises:
            RegistryLookupError: A referenced instantiation, sum type or
                struct was never registered.
        """
        self.context = ir.Context()
        self.module = ir.Module(name=provenance, context=self.context)
        self.sizing = TypeSizing(self.lowering, provenance)
        self.funcs = {}

        for artifact in self.planner.plan(items, provenance):
            payload = artifact.payload
            match payload:
                case RuntimeModule():
                    self._emit_runtime(payload)
                case TemplateInstantiation():
                    self._emit_instantiation(payload)
                case LoweredSumType():
                    self._emit_sum_type(payload)
                case LoweredStruct():
                    self._emit_struct(payload)
                case _:
                    raise_internal_error("CE0001", node=type(payload).__name__)
        return self.module

    # ---- types ----

    def identified(self, name: str) -> ir.IdentifiedStructType:
        return self.context.get_identified_type(name)

    def llvm_type(self, ty: Type) -> ir.Type:
        """LLVM type of an IR type used as a field, payload or element."""
        match ty:
            case BuiltinType.INTEGER:
                return self.identified("Integer")
            case BuiltinType.FLOAT:
                return self.identified("Float")
            case BuiltinType.STRING:
                return self.identified("String")
            case BuiltinType.BOOLEAN:
                return INT8
            case BuiltinType.SLOT:
                return CHAR_PTR
            case NamedType(name=name):
                return self.identified(name)
            case TemplateRef(template_id=template_id, element=element):
                inst = self.registry.lookup(template_id, element, owner=str(ty), provenance=self.module.name)
                return self.identified(inst.type_name)
        raise_internal_error("CE0001", node=type(ty).__name__)

    def _declare(self, name: str, ret: ir.Type, args: List[ir.Type]) -> ir.Function:
        func = ir.Function(self.module, ir.FunctionType(ret, args), name=name)
        self.funcs[name] = func
        return func

    # ---- artifacts ----

    def _emit_runtime(self, module: RuntimeModule) -> None:
        if module is RuntimeModule.NUMBERS:
            self.identified("Integer").set_body(INT64)
            self.identified("Float").set_body(DOUBLE)
        elif module is RuntimeModule.STRINGS:
            self.identified("String").set_body(CHAR_PTR, INT64, INT64)

        signatures = runtime_signatures(module, self.identified)
        for symbol in module.symbols:
            ret, args = signatures[symbol]
            self._declare(symbol, ret, args)

    def _emit_instantiation(self, inst: TemplateInstantiation) -> None:
        if inst.template_id != "Array":
            raise_internal_error("CE0004", template=inst.template_id, target="llvm")

        elem = self.llvm_type(inst.element)
        arr = self.identified(inst.type_name)
        arr.set_body(elem.as_pointer(), INT64, INT64)
        arr_ptr = arr.as_pointer()

        signatures: Dict[str, Tuple[ir.Type, List[ir.Type]]] = {
            "with_capacity": (arr, [INT64]),
            "new": (arr, []),
            "free": (VOID, [arr_ptr]),
            "reserve": (VOID, [arr_ptr, INT64]),
            "push": (VOID, [arr_ptr, elem]),
            "pop": (BOOL, [arr_ptr, elem.as_pointer()]),
            "slice": (arr, [arr_ptr, INT64, INT64]),
            "get": (BOOL, [arr_ptr, INT64, elem.as_pointer()]),
            "set": (BOOL, [arr_ptr, INT64, elem]),
            "clone": (arr, [arr_ptr]),
        }
        for op in inst.operations:
            ret, args = signatures[op]
            self._declare(inst.symbol(op), ret, args)

    def _emit_sum_type(self, lowered: LoweredSumType) -> None:
        wrapper = self.identified(lowered.name)
        if lowered.payload_union is None:
            wrapper.set_body(INT32)
            return
        # Integer elements of the payload's alignment put `data` at the offset
        # and stride the C union gets
        align = self.sizing.payload_alignment(lowered)
        count = self.sizing.payload_size_bytes(lowered) // align
        wrapper.set_body(INT32, ir.ArrayType(ir.IntType(align * 8), count))

    def _emit_struct(self, lowered: LoweredStruct) -> None:
        self.identified(lowered.name).set_body(*(self.llvm_type(f.ty) for f in lowered.fields))


def runtime_signatures(module: RuntimeModule, identified) -> Dict[str, Tuple[ir.Type, List[ir.Type]]]:
    """(return type, argument types) of every C symbol a runtime header exports."""
    if module is RuntimeModule.MEMORY:
        return {
            "iona_alloc": (CHAR_PTR, [INT64, CHAR_PTR]),
            "iona_realloc": (CHAR_PTR, [CHAR_PTR, INT64, CHAR_PTR]),
        }

    if module is RuntimeModule.NUMBERS:
        integer, flt = identified("Integer"), identified("Float")
        sigs: Dict[str, Tuple[ir.Type, List[ir.Type]]] = {
            "integer_from": (integer, [INT64]),
            "float_from": (flt, [DOUBLE]),
            "integer_show": (CHAR_PTR, [integer]),
            "float_show": (CHAR_PTR, [flt]),
            "integer_equals": (BOOL, [integer, integer]),
            "float_equals": (BOOL, [flt, flt]),
        }
        for op in ("add", "sub", "mul", "div"):
            sigs[f"saturating_{op}"] = (integer, [integer, integer])
            sigs[f"saturating_{op}_float"] = (flt, [flt, flt])
        return sigs

    string = identified("String")
    string_ptr = string.as_pointer()
    return {
        "string_from": (string, [CHAR_PTR]),
        "string_with_capacity": (string, [INT64]),
        "string_free": (VOID, [string_ptr]),
        "string_append": (VOID, [string_ptr, string_ptr]),
        "string_slice": (string, [string_ptr, INT64, INT64]),
        "string_compare": (INT32, [string_ptr, string_ptr]),
        "string_char_at": (BOOL, [string_ptr, INT64, CHAR_PTR]),
        "string_set_char": (BOOL, [string_ptr, INT64, INT8]),
        "string_clone": (string, [string_ptr]),
        "string_as_cstr": (CHAR_PTR, [string_ptr]),
    }


__all__ = ["LLVMEmitter", "runtime_signatures"]
