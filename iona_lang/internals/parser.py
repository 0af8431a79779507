"""Lark parser setup for the declaration IR."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from lark import Lark, UnexpectedInput

from iona_lang.internals.errors import raise_fatal
from iona_lang.internals.report import Span
from iona_lang.semantics.ast import Program
from iona_lang.semantics.ast_builder import ASTBuilder

GRAMMAR_PATH = Path(__file__).parent.parent / "grammar.lark"


@lru_cache(maxsize=1)
def _parser() -> Lark:
    return Lark.open(
        str(GRAMMAR_PATH),
        parser="lalr",
        propagate_positions=True,
        maybe_placeholders=False,
        lexer="basic",
    )


def improve_parse_error(e: UnexpectedInput) -> str:
    """First line of lark's message plus a hint for the usual mistakes."""
    error_text = str(e).strip().splitlines()[0] if str(e).strip() else type(e).__name__
    expected = getattr(e, "expected", None) or getattr(e, "allowed", None) or set()
    if "SEMICOLON" in expected:
        return f"{error_text}\nHint: `source` and `use` items end with ';'"
    if "MORETHAN" in expected:
        return f"{error_text}\nHint: close the template argument list with '>'"
    return error_text


def parse_declarations(src: str, provenance: str = "<input>", dump_parse: bool = False) -> Program:
    """Parse declaration IR text into a `Program`.

    Raises:
        FatalCompilationError: CE3501 when the text is not valid declaration IR.
    """
    try:
        tree = _parser().parse(src)
    except UnexpectedInput as e:
        line = getattr(e, "line", -1)
        column = getattr(e, "column", -1)
        span = Span(line, column, line, column) if line > 0 else None
        raise_fatal("CE3501", span=span, filename=provenance, reason=improve_parse_error(e))
    if dump_parse:
        print(tree.pretty())
    return ASTBuilder(provenance).build(tree)


def load_declarations(path: Path, provenance: Optional[str] = None, dump_parse: bool = False) -> Program:
    """Read and parse one declaration-IR file.

    Args:
        path: File to read.
        provenance: Label for diagnostics and output; defaults to the path as given.

    Raises:
        FatalCompilationError: CE3500 when the file cannot be read, CE3501
            when it cannot be parsed.
    """
    label = provenance or str(path)
    try:
        src = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise_fatal("CE3500", filename=label, path=str(path), reason=getattr(e, "strerror", None) or str(e))
    return parse_declarations(src, provenance=label, dump_parse=dump_parse)


__all__ = ["parse_declarations", "load_declarations", "improve_parse_error", "GRAMMAR_PATH"]
