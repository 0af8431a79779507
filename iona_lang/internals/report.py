from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Any

from lark import Token

class C:
    """ANSI color/style escape codes."""
    RESET = "\x1b[0m"
    BOLD  = "\x1b[1m"
    DIM   = "\x1b[2m"
    RED   = "\x1b[31m"
    YELLOW = "\x1b[33m"
    CYAN  = "\x1b[36m"
    GRAY  = "\x1b[90m"

@dataclass(frozen=True)
class Span:
    line: int
    col: int
    end_line: int
    end_col: int

@dataclass
class Diagnostic:
    kind: str
    code: str
    message: str
    span: Optional[Span] = None
    filename: Optional[str] = None  # Declaration IR file (provenance) the diagnostic belongs to

def span_of(t: Any) -> Optional[Span]:
    """Best-effort span for a lark tree meta object or token."""
    if isinstance(t, Token):
        line = getattr(t, "line", None)
        col = getattr(t, "column", None)
        if line is not None and col is not None:
            return Span(line, col, t.end_line or line, t.end_column or col)
        return None
    m = getattr(t, "meta", t)
    if getattr(m, "empty", True):
        return None
    return Span(m.line, m.column, m.end_line, m.end_column)


def _display_path(filename: str) -> str:
    """Relative `./path` when under the cwd, the bare name otherwise."""
    try:
        rel_path = Path(filename).resolve().relative_to(Path.cwd())
        return f"./{rel_path}"
    except ValueError:
        return Path(filename).name if filename.startswith("/") else filename


class Reporter:
    def __init__(self, source: Optional[str] = None, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.items: List[Diagnostic] = []

    def error(self, code: str, msg: str, span: Optional[Span], filename: Optional[str] = None):
        self.items.append(Diagnostic("error", code, msg, span, filename=filename or self.filename))

    def warn(self, code: str, msg: str, span: Optional[Span], filename: Optional[str] = None):
        self.items.append(Diagnostic("warning", code, msg, span, filename=filename or self.filename))

    @property
    def has_errors(self) -> bool:
        return any(d.kind == "error" for d in self.items)

    @property
    def has_warnings(self) -> bool:
        return any(d.kind == "warning" for d in self.items)

    def codes(self) -> List[str]:
        """Diagnostic codes in report order (handy for tests and summaries)."""
        return [d.code for d in self.items]

    def _source_lines(self, d: Diagnostic) -> Optional[List[str]]:
        if self.source is not None and d.filename in (None, self.filename):
            return self.source.splitlines()
        if d.filename is None:
            return None
        try:
            return Path(d.filename).read_text(encoding="utf-8").splitlines()
        except OSError:
            return None

    def format(self, use_color: bool = True) -> str:
        """Render all diagnostics.

        use_color → ANSI colorize location/kind/markers
        """
        out: List[str] = []

        for d in self.items:
            filename = _display_path(d.filename or self.filename)
            loc = f"{filename}:{d.span.line}:{d.span.col}" if d.span else filename

            # Ensure message ends with period
            message = d.message if d.message.endswith('.') else f"{d.message}."

            if use_color:
                kind = f"{C.BOLD}{C.RED}error{C.RESET}" if d.kind == "error" else f"{C.BOLD}{C.YELLOW}warning{C.RESET}"
                head = f"{C.CYAN}{loc}{C.RESET}: {kind} [{C.DIM}{d.code}{C.RESET}]: {message}"
            else:
                head = f"{loc}: {d.kind} [{d.code}]: {message}"
            out.append(head)

            if d.span is None:
                continue
            src_lines = self._source_lines(d)
            if src_lines is None:
                continue
            line_idx = d.span.line - 1
            line_text = src_lines[line_idx] if 0 <= line_idx < len(src_lines) else ""
            start = max(1, d.span.col)
            caret = " " * (start - 1) + "^"
            if use_color:
                color = C.RED if d.kind == "error" else C.YELLOW
                caret = f"{color}{caret}{C.RESET}"
            out.append(f"  | {line_text}")
            out.append(f"  ` {caret}")

        return "\n".join(out)

    def print(self, stream=None, use_color: Optional[bool] = None) -> None:
        """Print diagnostics to `stream` (default: sys.stderr).

        Color is auto-enabled for TTY unless NO_COLOR or TERM=dumb.
        """
        import os, sys
        stream = stream or sys.stderr

        if use_color is None:
            is_tty = getattr(stream, "isatty", lambda: False)()
            no_color = os.getenv("NO_COLOR") is not None
            dumb = os.getenv("TERM") == "dumb"
            use_color = bool(is_tty and not no_color and not dumb)

        text = self.format(use_color=use_color)
        if text:
            print(text, file=stream)
