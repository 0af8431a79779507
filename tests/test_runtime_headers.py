from __future__ import annotations

import re

import pytest

from iona_lang.runtime import RuntimeLayer, RuntimeModule, copy_headers, header_source, with_requirements


@pytest.mark.parametrize("module", list(RuntimeModule))
def test_header_defines_every_catalogued_symbol(module):
    text = header_source(module)
    for symbol in module.symbols:
        assert re.search(rf"\b{symbol}\(", text), f"{symbol} missing from {module.header}"
    for type_name in module.types:
        assert re.search(rf"}}\s*{type_name};", text), f"{type_name} missing from {module.header}"


def test_strings_header_includes_memory():
    assert '#include "memory.h"' in header_source(RuntimeModule.STRINGS)
    assert RuntimeModule.STRINGS.requires == (RuntimeModule.MEMORY,)


def test_layers():
    assert RuntimeModule.NUMBERS.layer == RuntimeLayer.NUMERIC
    assert RuntimeModule.MEMORY.layer == RuntimeLayer.BUFFER
    assert RuntimeModule.STRINGS.layer == RuntimeLayer.BUFFER


def test_with_requirements_puts_dependencies_first():
    assert with_requirements([RuntimeModule.STRINGS]) == (RuntimeModule.MEMORY, RuntimeModule.STRINGS)
    assert with_requirements([RuntimeModule.NUMBERS, RuntimeModule.STRINGS, RuntimeModule.MEMORY]) == (
        RuntimeModule.NUMBERS, RuntimeModule.MEMORY, RuntimeModule.STRINGS,
    )


def test_copy_headers(tmp_path):
    written = copy_headers(tmp_path / "rt", [RuntimeModule.STRINGS])
    assert [p.name for p in written] == ["memory.h", "strings.h"]
    assert (tmp_path / "rt" / "strings.h").read_text(encoding="utf-8") == header_source(RuntimeModule.STRINGS)
