from __future__ import annotations

import pytest

from iona_lang.backend.enums import lower_sum_type
from iona_lang.backend.lowering import LoweringTable
from iona_lang.internals.errors import RegistryLookupError
from iona_lang.runtime import RuntimeModule
from iona_lang.semantics.ast import SumTypeDecl, VariantDecl
from iona_lang.semantics.generics.registry import TemplateRegistry
from iona_lang.semantics.typesys import BuiltinType, TemplateRef

from conftest import CORE_IR, PETS_IR


def test_maybe_lowers_to_tag_union_and_wrapper(compile_ir):
    comp = compile_ir(CORE_IR)
    maybe = comp.lowering.sum_type("Maybe", owner="test", provenance="test")
    assert maybe.tag_enum.name == "MaybeStates"
    assert maybe.tag_enum.constants == ("SOME", "NONE")
    assert maybe.payload_union.name == "MaybeValues"
    assert [(f.variant, f.ty) for f in maybe.payload_union.fields] == [("Some", BuiltinType.SLOT)]
    assert maybe.wrapper_fields == (("tag", "MaybeStates"), ("data", "MaybeValues"))
    assert maybe.provenance == "./stdlib/core.iona"


def test_pets_tags_follow_declaration_order(compile_ir):
    pets = compile_ir(PETS_IR).lowering.sum_type("Pets", owner="test", provenance="test")
    assert [pets.tag_of(v) for v in ("Dog", "Fish", "Bird", "Cat")] == [0, 1, 2, 3]
    assert pets.payload_of("Cat") is BuiltinType.INTEGER
    assert pets.payload_of("Dog") is None
    assert pets.deps.runtime == (RuntimeModule.NUMBERS,)


def test_payloadless_sum_type_has_no_union(compile_ir):
    flag = compile_ir("enum Flag { On, Off }").lowering.sum_type("Flag", owner="t", provenance="t")
    assert flag.payload_union is None
    assert flag.wrapper_fields == (("tag", "FlagStates"),)


def test_lowering_is_deterministic():
    decl = SumTypeDecl("Shape", (VariantDecl("Circle", BuiltinType.FLOAT),
                                 VariantDecl("Label", BuiltinType.STRING),
                                 VariantDecl("Empty")))
    assert lower_sum_type(decl, TemplateRegistry()) == lower_sum_type(decl, TemplateRegistry())


def test_generic_payload_references_registered_instantiation():
    registry = TemplateRegistry()
    inst = registry.instantiate("Array", BuiltinType.STRING)
    decl = SumTypeDecl("Lines", (VariantDecl("Many", TemplateRef("Array", BuiltinType.STRING)),))
    lowered = lower_sum_type(decl, registry)
    assert lowered.payload_union.fields[0].instantiation is inst
    assert lowered.deps.instances == (inst,)


def test_unregistered_generic_payload_is_fatal():
    decl = SumTypeDecl("Lines", (VariantDecl("Many", TemplateRef("Array", BuiltinType.STRING)),))
    with pytest.raises(RegistryLookupError) as exc:
        lower_sum_type(decl, TemplateRegistry(), "lines.iona")
    assert exc.value.code == "CE3001"
    assert "Lines" in exc.value.text


def test_lowering_table_memoizes_and_rejects_unknown_names():
    table = LoweringTable(TemplateRegistry())
    decl = SumTypeDecl("Flag", (VariantDecl("On"), VariantDecl("Off")))
    first = table.lower(decl, "a.iona")
    assert table.lower(decl, "b.iona") is first
    assert "Flag" in table

    with pytest.raises(RegistryLookupError) as exc:
        table.sum_type("Maybe", owner="Holder", provenance="a.iona")
    assert exc.value.code == "CE3002"
    with pytest.raises(RegistryLookupError) as exc:
        table.struct("Flag", owner="Holder", provenance="a.iona")
    assert exc.value.code == "CE3003"
    with pytest.raises(RegistryLookupError) as exc:
        table.resolve("Point", owner="Holder", provenance="a.iona")
    assert exc.value.code == "CE3004"
