from __future__ import annotations

from llvmlite import ir

from iona_lang.backend.codegen_llvm import BOOL, INT8, INT32, INT64
from iona_lang.backend.sizing import TypeSizing
from iona_lang.semantics.typesys import BuiltinType, NamedType, TemplateRef

from conftest import CORE_IR, PETS_IR


def identified_types(module: ir.Module):
    return module.context.identified_types


def test_sum_type_payload_is_aligned_like_the_c_union(compile_ir):
    ((program, module),) = compile_ir(CORE_IR).emit_llvm()
    assert module.name == "./stdlib/core.iona"
    types = identified_types(module)
    assert list(types) == ["Maybe", "Result"]
    maybe = types["Maybe"]
    assert maybe.elements[0] == INT32
    assert maybe.elements[1] == ir.ArrayType(INT64, 1)


def test_payloadless_sum_type_is_tag_only(compile_ir):
    ((_, module),) = compile_ir("enum Flag { On, Off }").emit_llvm()
    assert identified_types(module)["Flag"].elements == (INT32,)


def test_runtime_types_and_symbols_are_declared(compile_ir):
    ((_, module),) = compile_ir(PETS_IR).emit_llvm()
    types = identified_types(module)
    assert list(types) == ["Integer", "Float", "Pets"]
    assert types["Integer"].elements == (INT64,)
    assert types["Pets"].elements[1] == ir.ArrayType(INT64, 1)

    add = module.get_global("saturating_add")
    assert isinstance(add, ir.Function)
    assert add.function_type.return_type is types["Integer"]
    assert module.get_global("float_equals").function_type.return_type == BOOL


def test_array_instantiation_layout_and_operations(compile_ir):
    ((_, module),) = compile_ir("use Array<String>;").emit_llvm()
    types = identified_types(module)
    assert list(types) == ["String", "StringArray"]

    arr = types["StringArray"]
    assert len(arr.elements) == 3
    assert isinstance(arr.elements[0], ir.PointerType)
    assert arr.elements[1:] == (INT64, INT64)

    for op in ("with_capacity", "new", "free", "reserve", "push", "pop", "slice", "get", "set", "clone"):
        assert isinstance(module.get_global(f"string_array_{op}"), ir.Function)
    assert module.get_global("string_array_pop").function_type.return_type == BOOL
    assert module.get_global("iona_alloc") is not None
    assert module.get_global("string_clone") is not None


def test_struct_fields(compile_ir):
    comp = compile_ir("enum Flag { On, Off }\nstruct Animal { legs: Integer, hair: Boolean, flag: Flag }")
    ((_, module),) = comp.emit_llvm()
    types = identified_types(module)
    animal = types["Animal"]
    assert animal.elements == (types["Integer"], INT8, types["Flag"])


def test_each_emit_uses_a_fresh_context(compile_ir):
    comp = compile_ir(CORE_IR)
    ((_, first),) = comp.emit_llvm()
    ((_, second),) = comp.emit_llvm()
    assert first.context is not second.context
    assert str(first) == str(second)


def test_payload_element_follows_payload_alignment(compile_ir):
    comp = compile_ir(
        "enum Flag { On(Boolean), Off }\n"
        "enum Named { Label(String), Blank }\n"
        "enum Nested { Inner(Flag), Empty }"
    )
    ((_, module),) = comp.emit_llvm()
    types = identified_types(module)
    assert types["Flag"].elements[1] == ir.ArrayType(INT8, 1)
    assert types["Named"].elements[1] == ir.ArrayType(INT64, 3)
    assert types["Nested"].elements[1] == ir.ArrayType(INT32, 2)


def test_sizes(compile_ir):
    comp = compile_ir(
        "enum Flag { On(Boolean), Off }\n"
        "enum Pets { Dog, Cat(Integer) }\n"
        "enum Maybe { Some(Slot), None }\n"
        "struct Animal { legs: Integer, hair: Boolean, name: String }\n"
        "struct Holder { flag: Flag, n: Integer }\n"
        "struct Boxed { on: Boolean, value: Maybe }"
    )
    sizing = TypeSizing(comp.lowering)
    assert sizing.get_type_size_bytes(BuiltinType.BOOLEAN) == 1
    assert sizing.get_type_size_bytes(TemplateRef("Array", BuiltinType.INTEGER)) == 24
    assert sizing.get_type_size_bytes(NamedType("Flag")) == 8
    assert sizing.get_type_size_bytes(NamedType("Pets")) == 16
    assert sizing.get_type_size_bytes(NamedType("Maybe")) == 16
    assert sizing.get_type_size_bytes(NamedType("Animal")) == 40
    assert sizing.get_type_size_bytes(NamedType("Holder")) == 16
    assert sizing.get_type_size_bytes(NamedType("Boxed")) == 24
    assert sizing.get_type_alignment(NamedType("Animal")) == 8
    assert sizing.get_type_alignment(NamedType("Flag")) == 4
    assert sizing.get_type_alignment(NamedType("Maybe")) == 8
