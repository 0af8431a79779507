from __future__ import annotations

import pytest

from iona_lang.internals.errors import FatalCompilationError
from iona_lang.internals.parser import load_declarations, parse_declarations
from iona_lang.semantics.ast import HooksDecl, StructDecl, SumTypeDecl, TemplateUse
from iona_lang.semantics.typesys import BuiltinType, NamedType, TemplateRef

from conftest import CORE_IR


def test_parse_core_declarations():
    program = parse_declarations(CORE_IR, provenance="core.ir")
    assert program.provenance == "core.ir"
    assert program.label == "./stdlib/core.iona"
    assert [d.name for d in program.sum_types] == ["Maybe", "Result"]

    maybe = program.sum_types[0]
    assert [v.name for v in maybe.variants] == ["Some", "None"]
    assert maybe.variants[0].payload is BuiltinType.SLOT
    assert maybe.variants[1].payload is None
    assert maybe.variants[0].loc.line == 4


def test_label_defaults_to_provenance():
    program = parse_declarations("enum Flag { On, Off }", provenance="flags.iona")
    assert program.source_label is None
    assert program.label == "flags.iona"


def test_structs_uses_and_hooks():
    program = parse_declarations("""
        // animals
        struct Animal { legs: Integer, hair: Boolean, tags: Array<String>, }
        use Array<Array<Integer>>;
        hooks Animal { drop: animal_free, clone: animal_clone }
        struct Shelter { pets: Array<Animal> }
    """)
    animal, use, hooks, shelter = program.items
    assert isinstance(animal, StructDecl)
    assert [(f.name, f.ty) for f in animal.fields] == [
        ("legs", BuiltinType.INTEGER),
        ("hair", BuiltinType.BOOLEAN),
        ("tags", TemplateRef("Array", BuiltinType.STRING)),
    ]
    assert isinstance(use, TemplateUse)
    assert use.ref == TemplateRef("Array", TemplateRef("Array", BuiltinType.INTEGER))
    assert hooks == HooksDecl("Animal", drop="animal_free", clone="animal_clone")
    assert shelter.fields[0].ty == TemplateRef("Array", NamedType("Animal"))
    assert program.emittable == [animal, use, shelter]


def test_empty_input_is_an_empty_program():
    assert parse_declarations("").items == []


def test_unknown_hook_kind_is_rejected():
    with pytest.raises(FatalCompilationError) as exc:
        parse_declarations("struct S { x: Integer }\nhooks S { copy: s_copy }")
    assert exc.value.code == "CE3501"
    assert "copy" in exc.value.text


def test_syntax_error_carries_location():
    with pytest.raises(FatalCompilationError) as exc:
        parse_declarations("enum Maybe {\n  Some(Slot)\n  None\n}", provenance="bad.iona")
    assert exc.value.code == "CE3501"
    assert exc.value.filename == "bad.iona"
    assert exc.value.span is not None and exc.value.span.line == 3


def test_missing_semicolon_hint():
    with pytest.raises(FatalCompilationError) as exc:
        parse_declarations("use Array<String>\nenum A { X }")
    assert "';'" in exc.value.text


def test_load_missing_file(tmp_path):
    with pytest.raises(FatalCompilationError) as exc:
        load_declarations(tmp_path / "nope.iona")
    assert exc.value.code == "CE3500"


def test_load_file_uses_path_as_provenance(tmp_path):
    path = tmp_path / "pets.iona"
    path.write_text("enum Pets { Dog, Cat(Integer) }", encoding="utf-8")
    program = load_declarations(path)
    assert program.provenance == str(path)
    assert isinstance(program.items[0], SumTypeDecl)
