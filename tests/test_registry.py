from __future__ import annotations

import pytest

from iona_lang.internals.errors import RegistryLookupError
from iona_lang.runtime import RuntimeModule
from iona_lang.semantics.generics.name_mangling import guard_macro, snake_case
from iona_lang.semantics.generics.registry import HookSymbols, TemplateRegistry
from iona_lang.semantics.typesys import BuiltinType, NamedType, TemplateRef


def test_instantiate_is_memoized_by_identity():
    registry = TemplateRegistry()
    first = registry.instantiate("Array", BuiltinType.STRING)
    second = registry.instantiate("Array", BuiltinType.STRING)
    assert first is second
    assert len(registry) == 1


def test_string_array_names_and_symbols():
    registry = TemplateRegistry()
    inst = registry.instantiate("Array", BuiltinType.STRING)
    assert inst.type_name == "StringArray"
    assert inst.symbol_prefix == "string_array"
    assert inst.symbol("push") == "string_array_push"
    assert inst.symbols[0] == "string_array_with_capacity"
    assert inst.runtime == (RuntimeModule.MEMORY, RuntimeModule.STRINGS)
    assert inst.hooks == HookSymbols(clone="string_clone", drop="string_free")


def test_unknown_operation_is_internal_error():
    inst = TemplateRegistry().instantiate("Array", BuiltinType.INTEGER)
    with pytest.raises(RuntimeError, match="CE0003"):
        inst.symbol("sort")


def test_nested_instantiation_registers_inner_first():
    registry = TemplateRegistry()
    outer = registry.instantiate("Array", TemplateRef("Array", BuiltinType.INTEGER))
    assert outer.type_name == "IntegerArrayArray"
    assert outer.symbol_prefix == "integer_array_array"

    inner = registry.get("Array", BuiltinType.INTEGER)
    assert inner is not None
    assert outer.nested == (inner,)
    assert [i.type_name for i in registry] == ["IntegerArray", "IntegerArrayArray"]
    assert outer.hooks == HookSymbols(clone="integer_array_clone", drop="integer_array_free")


def test_trivial_elements_have_no_hooks():
    registry = TemplateRegistry()
    assert registry.instantiate("Array", BuiltinType.BOOLEAN).hooks.trivial
    assert registry.instantiate("Array", BuiltinType.SLOT).runtime == (RuntimeModule.MEMORY,)


def test_named_element_uses_registered_hooks():
    registry = TemplateRegistry()
    registry.register_hooks("Pets", HookSymbols(clone="pets_clone", drop="pets_drop"))
    inst = registry.instantiate("Array", NamedType("Pets"))
    assert inst.type_name == "PetsArray"
    assert inst.named == ("Pets",)
    assert inst.hooks.drop == "pets_drop"


def test_unknown_template_is_fatal():
    with pytest.raises(Exception, match="CE2004"):
        TemplateRegistry().instantiate("Map", BuiltinType.INTEGER)


def test_lookup_of_unregistered_pair_names_owner_and_provenance():
    registry = TemplateRegistry()
    with pytest.raises(RegistryLookupError) as exc:
        registry.lookup("Array", BuiltinType.FLOAT, owner="Maybe", provenance="core.iona")
    assert exc.value.code == "CE3001"
    assert "Array<Float>" in exc.value.text
    assert "Maybe" in exc.value.text
    assert exc.value.filename == "core.iona"


def test_registries_are_independent():
    a = TemplateRegistry()
    b = TemplateRegistry()
    a.instantiate("Array", BuiltinType.STRING)
    assert ("Array", BuiltinType.STRING) in a
    assert ("Array", BuiltinType.STRING) not in b


@pytest.mark.parametrize("name, expected", [
    ("StringArray", "string_array"),
    ("IntegerArrayArray", "integer_array_array"),
    ("HTTPCodeArray", "http_code_array"),
])
def test_snake_case(name, expected):
    assert snake_case(name) == expected


def test_guard_macro():
    assert guard_macro("string_array") == "STRING_ARRAY_DEFINED"
