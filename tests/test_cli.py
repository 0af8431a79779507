from __future__ import annotations

import pytest

from iona_lang.compiler.cli import build_parser, main

from conftest import CORE_C, CORE_IR, PETS_IR


@pytest.fixture
def write_ir(tmp_path):
    def _write(name: str, text: str) -> str:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


def test_version(capsys):
    assert main(["--version"]) == 0
    assert "iona-emit" in capsys.readouterr().out


def test_requires_a_source(capsys):
    assert main([]) == 2
    assert "SOURCE" in capsys.readouterr().err


def test_unit_printed_to_stdout(write_ir, capsys):
    src = write_ir("core.iona", CORE_IR)
    assert main([src]) == 0
    assert capsys.readouterr().out == CORE_C


def test_provenance_override(write_ir, capsys):
    src = write_ir("pets.iona", PETS_IR)
    assert main([src, "--provenance", "zoo/pets.iona"]) == 0
    assert capsys.readouterr().out.startswith("// source: zoo/pets.iona\n")


def test_provenance_needs_single_source(write_ir):
    a = write_ir("a.iona", "enum A { X }")
    b = write_ir("b.iona", "enum B { Y }")
    assert main([a, b, "--provenance", "x"]) == 2


def test_out_dir_and_runtime_dir(write_ir, tmp_path, capsys):
    src = write_ir("pets.iona", PETS_IR)
    out_dir = tmp_path / "out"
    runtime_dir = tmp_path / "rt"
    assert main([src, "--out-dir", str(out_dir), "--runtime-dir", str(runtime_dir)]) == 0

    text = (out_dir / "pets.c").read_text(encoding="utf-8")
    assert '#include "numbers.h"' in text
    assert sorted(p.name for p in runtime_dir.iterdir()) == ["numbers.h"]
    assert "wrote" in capsys.readouterr().out


def test_llvm_target(write_ir, tmp_path):
    src = write_ir("core.iona", CORE_IR)
    assert main([src, "--target", "llvm", "--out-dir", str(tmp_path / "out")]) == 0
    text = (tmp_path / "out" / "core.ll").read_text(encoding="utf-8")
    assert '%"Maybe" = type {i32, [1 x i64]}' in text


def test_no_annotate(write_ir, capsys):
    src = write_ir("arr.iona", "use Array<String>;")
    assert main([src, "--no-annotate"]) == 0
    assert "// Array<String>" not in capsys.readouterr().out


def test_collect_errors_exit_2_without_output(write_ir, tmp_path, capsys):
    src = write_ir("dup.iona", "enum A { X }\nenum A { Y }")
    out_dir = tmp_path / "out"
    assert main([src, "--no-color", "--out-dir", str(out_dir)]) == 2
    assert "[CE2001]" in capsys.readouterr().err
    assert not (out_dir / "dup.c").exists()


def test_warnings_exit_1(write_ir, capsys):
    src = write_ir("people.iona", "struct Person { name: String }\nuse Array<Person>;")
    assert main([src, "--no-color"]) == 1
    captured = capsys.readouterr()
    assert "[CW2101]" in captured.err
    assert "} PersonArray;" in captured.out


def test_parse_error_exit_2(write_ir, capsys):
    src = write_ir("bad.iona", "enum {")
    assert main([src, "--no-color"]) == 2
    assert "[CE3501]" in capsys.readouterr().err


def test_missing_file_exit_2(tmp_path, capsys):
    assert main([str(tmp_path / "missing.iona"), "--no-color"]) == 2
    assert "[CE3500]" in capsys.readouterr().err


def test_parser_defaults():
    args = build_parser().parse_args(["x.iona"])
    assert args.target == "c"
    assert args.out_dir is None
    assert not args.no_annotate


@pytest.mark.parametrize("position", [0, 1])
def test_diagnostics_show_source_line_for_every_input(write_ir, capsys, position):
    clean = write_ir("clean.iona", "enum Flag { On, Off }")
    broken = write_ir("broken.iona", "struct S { x: Integer }\nstruct S { y: Float }")
    sources = [broken, clean] if position == 0 else [clean, broken]
    assert main(sources + ["--no-color"]) == 2
    err = capsys.readouterr().err
    assert "[CE2001]" in err
    assert "  | struct S { y: Float }\n  ` ^" in err
