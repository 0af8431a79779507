from __future__ import annotations
import sys, platform

from iona_lang import __version__ as app_ver, __dev__ as is_dev

def _get_versions() -> dict[str, str]:

    # llvmlite + LLVM (best-effort; don't crash if the native library is missing)
    llvmlite_ver = "unknown"
    llvm_lib_ver = "unknown"
    try:
        import llvmlite
        from llvmlite import binding as llvm
        llvmlite_ver = getattr(llvmlite, "__version__", "unknown")
        llvm_lib_ver = ".".join(map(str, (getattr(llvm, "llvm_version_info", None) or ()))) or "unknown"
    except (ImportError, OSError):
        pass

    import lark
    return {
        "app": app_ver,
        "python": platform.python_version(),
        "lark": getattr(lark, "__version__", "unknown"),
        "llvmlite": llvmlite_ver,
        "llvm": llvm_lib_ver,
    }

def version_text() -> str:
    v = _get_versions()
    dev_marker = " (dev)" if is_dev else ""
    return (
        f"iona-emit {v['app']}{dev_marker}\n"
        f"Python {v['python']} • lark {v['lark']} • llvmlite {v['llvmlite']} • LLVM {v['llvm']}"
    )

def print_banner(stream=None) -> None:
    stream = stream or sys.stdout
    # Only use ANSI styling on an interactive terminal
    if getattr(stream, "isatty", lambda: False)():
        BOLD, RESET = "\x1b[1m", "\x1b[0m"
    else:
        BOLD, RESET = "", ""
    head, _, tail = version_text().partition("\n")
    print(f"{BOLD}{head}{RESET}\n{tail}", file=stream)
