"""CLI entry point and argument parsing."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Tuple

from iona_lang.internals.version import print_banner

SUFFIXES = {"c": ".c", "llvm": ".ll"}


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="iona-emit",
        description="Lower Iona declaration IR to C (or LLVM) compilation units",
    )
    ap.add_argument("sources", nargs="*", metavar="SOURCE", help="Declaration IR files (.iona)")
    ap.add_argument("--version", action="store_true", help="Show version and exit")
    ap.add_argument("--out-dir", metavar="DIR",
                    help="Write one unit per SOURCE into DIR (default: print to stdout)")
    ap.add_argument("--target", choices=sorted(SUFFIXES), default="c",
                    help="Output language (default: c)")
    ap.add_argument("--provenance", metavar="LABEL",
                    help="Source label for the unit header (single SOURCE only)")
    ap.add_argument("--runtime-dir", metavar="DIR",
                    help="Copy the runtime headers the units include into DIR")
    ap.add_argument("--no-annotate", action="store_true",
                    help="Omit the `// Template<Element>` comment above instantiations")
    ap.add_argument("--no-color", action="store_true", help="Disable ANSI colors in diagnostics")
    ap.add_argument("--dump-parse", action="store_true", help="Print the raw Lark tree of each SOURCE")
    return ap


def _render(comp, target: str, annotate: bool) -> List[Tuple[str, str, str]]:
    """(provenance, label, text) per program; nothing is written yet."""
    if target == "llvm":
        return [(p.provenance, p.label, str(module)) for p, module in comp.emit_llvm()]
    return [(p.provenance, unit.provenance, unit.text)
            for p, unit in zip(comp.programs, comp.emit_c(annotate=annotate))]


def main(argv: list[str] | None = None) -> int:
    """Backend entry point.

    Returns:
        Exit code (0=success, 1=warnings, 2=errors).
    """
    ap = build_parser()
    args = ap.parse_args(argv)

    if args.version:
        print_banner()
        return 0

    if not args.sources:
        print("error: at least one SOURCE is required", file=sys.stderr)
        return 2

    if args.provenance and len(args.sources) != 1:
        print("error: --provenance requires exactly one SOURCE", file=sys.stderr)
        return 2

    from iona_lang.compiler.pipeline import Compilation
    from iona_lang.internals import errors as er
    from iona_lang.internals.parser import load_declarations
    from iona_lang.internals.report import Reporter
    from iona_lang.runtime import copy_headers

    reporter = Reporter(filename=args.sources[0])
    use_color = False if args.no_color else None
    comp = Compilation(reporter)

    if args.out_dir:
        print_banner()

    try:
        for source in args.sources:
            program = load_declarations(Path(source), dump_parse=args.dump_parse)
            if args.provenance:
                program.source_label = args.provenance
            comp.add_program(program)

        if reporter.has_errors:
            reporter.print(use_color=use_color)
            return 2

        comp.lower()
        rendered = _render(comp, args.target, annotate=not args.no_annotate)
        runtime = comp.runtime_modules() if args.runtime_dir else ()
    except er.FatalCompilationError as e:
        e.report(reporter)
        reporter.print(use_color=use_color)
        return 2

    if args.out_dir:
        out_dir = Path(args.out_dir)
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
            for source, label, text in rendered:
                out_path = out_dir / (Path(source).stem + SUFFIXES[args.target])
                out_path.write_text(text, encoding="utf-8")
                print(f"wrote {out_path} ({label})")
        except OSError as e:
            er.emit(reporter, er.ERR.CE3502, None, path=str(out_dir), reason=e.strerror or str(e))
    else:
        for _, _, text in rendered:
            sys.stdout.write(text)

    if args.runtime_dir:
        try:
            for path in copy_headers(Path(args.runtime_dir), runtime):
                if args.out_dir:
                    print(f"wrote {path}")
        except OSError as e:
            er.emit(reporter, er.ERR.CE3502, None, path=args.runtime_dir, reason=e.strerror or str(e))

    reporter.print(use_color=use_color)
    if reporter.has_errors:
        return 2
    return 1 if reporter.has_warnings else 0


if __name__ == "__main__":
    sys.exit(main())
