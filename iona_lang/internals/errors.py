# internals/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, NoReturn, Optional

from iona_lang.internals.report import Span, Reporter


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    GENERAL   = "general"
    NAME      = "name"
    TYPE      = "type"
    TEMPLATE  = "template"
    EMIT      = "emit"
    IO        = "io"
    RUNTIME   = "runtime"
    INTERNAL  = "internal"


@dataclass(frozen=True)
class ErrorMessage:
    code: str
    severity: Severity
    text: str
    category: Category = Category.GENERAL
    doc: str = ""


REGISTRY: Dict[str, ErrorMessage] = {}

class _ErrorCatalog:
    def __init__(self, backing: Dict[str, ErrorMessage]) -> None:
        self._registry = backing

    def __getattr__(self, name: str) -> ErrorMessage:
        try:
            return self._registry[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __getitem__(self, code: str) -> ErrorMessage:
        return self._registry[code]


ERR = _ErrorCatalog(REGISTRY)


class FatalCompilationError(RuntimeError):
    """A failure that aborts the whole compilation run.

    Carries the catalog code so the driver can report it like any other
    diagnostic before exiting with status 2.
    """

    def __init__(self, code: str, text: str, span: Optional[Span] = None,
                 filename: Optional[str] = None) -> None:
        super().__init__(f"{code}: {text}")
        self.code = code
        self.text = text
        self.span = span
        self.filename = filename

    def report(self, r: Reporter) -> None:
        r.error(self.code, self.text, self.span, filename=self.filename)


class RegistryLookupError(FatalCompilationError):
    """A referenced instantiation, sum type or struct was never registered."""


class AllocationFailure(FatalCompilationError):
    """A runtime buffer could not obtain the memory it needed."""


class BufferIndexError(IndexError):
    """Invalid index, or pop from an empty buffer."""

    def __init__(self, code: str, text: str) -> None:
        super().__init__(f"{code}: {text}")
        self.code = code


def emit(r: Reporter, em: ErrorMessage, span: Optional[Span], filename: Optional[str] = None, **kwargs) -> None:
    text = _fmt(em.code, **kwargs)
    if em.severity == Severity.ERROR:
        r.error(em.code, text, span, filename=filename)
    else:
        r.warn(em.code, text, span, filename=filename)

def raise_internal_error(code: str, **kwargs) -> NoReturn:
    """Raise a RuntimeError for internal compiler errors.

    Internal errors (CE0xxx codes) indicate compiler bugs, not defects in
    the declaration IR handed to the backend.

    Args:
        code: Error code (e.g., "CE0002")
        **kwargs: Format parameters for the error message

    Raises:
        RuntimeError: Always raises with formatted error message
    """
    text = _fmt(code, **kwargs)
    raise RuntimeError(f"{code}: {text}")

def raise_fatal(code: str, span: Optional[Span] = None, filename: Optional[str] = None, **kwargs) -> NoReturn:
    """Abort compilation with the fatal error class matching the code's category."""
    msg = _get(code)
    text = _fmt(code, **kwargs)
    if msg.category == Category.EMIT:
        raise RegistryLookupError(code, text, span, filename)
    if msg.category == Category.RUNTIME:
        raise AllocationFailure(code, text, span, filename)
    raise FatalCompilationError(code, text, span, filename)

def buffer_index_error(code: str, **kwargs) -> BufferIndexError:
    return BufferIndexError(code, _fmt(code, **kwargs))


#
# --- Helpers
#

def _add(msg: ErrorMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate error code {REGISTRY[msg.code]} in {msg}")
    REGISTRY[msg.code] = msg

def _get(code: str) -> ErrorMessage:
    try:
        return REGISTRY[code]
    except KeyError:
        raise KeyError(f"unknown error code: {code}")

def _fmt(code: str, **kwargs) -> str:
    msg = _get(code)
    try:
        return msg.text.format(**kwargs)
    except KeyError as key_error:
        missing = key_error.args[0]
        raise KeyError(f"missing text key '{missing}' for {code} "
                       f"(needed by: {msg.text!r})") from None

#
# --- Registry population
#

# Internal errors (compiler bugs) - CE0xxx range
_add(ErrorMessage("CE0001", Severity.ERROR,
    "unknown type node '{node}'",
    Category.INTERNAL, "Found an unexpected type object in the declaration IR."))

_add(ErrorMessage("CE0002", Severity.ERROR,
    "dependency cycle between emitted artifacts: {cycle}",
    Category.INTERNAL, "Containers of themselves must go through an indirection; the checker should have rejected this."))

_add(ErrorMessage("CE0003", Severity.ERROR,
    "unknown template operation '{op}' for '{instance}'",
    Category.INTERNAL, "Asked for a symbol outside the per-instantiation operation set."))

_add(ErrorMessage("CE0004", Severity.ERROR,
    "no code generator for template '{template}' (target {target})",
    Category.INTERNAL, "A template was added to the catalogue without a matching backend renderer."))

# Declaration IR structure - CE2xxx range
_add(ErrorMessage("CE2001", Severity.ERROR,
    "duplicate declaration '{name}'",
    Category.NAME, "Struct and sum type names share one namespace."))

_add(ErrorMessage("CE2002", Severity.ERROR,
    "duplicate variant '{variant}' in sum type '{name}'",
    Category.TYPE, "Variant tags must be unique within a sum type."))

_add(ErrorMessage("CE2003", Severity.ERROR,
    "sum type '{name}' declares no variants",
    Category.TYPE, "An empty tag enumeration is not valid C."))

_add(ErrorMessage("CE2004", Severity.ERROR,
    "unknown template '{template}' in '{usage}'",
    Category.TEMPLATE, "Only templates in the catalogue can be instantiated."))

_add(ErrorMessage("CE2005", Severity.ERROR,
    "unknown type '{name}' referenced by '{owner}'",
    Category.TYPE, "Named payload and field types must be declared structs or sum types."))

_add(ErrorMessage("CE2006", Severity.ERROR,
    "tag constant '{tag}' of sum type '{name}' collides with sum type '{other}'",
    Category.NAME, "C enumeration constants share the global namespace."))

_add(ErrorMessage("CE2007", Severity.ERROR,
    "declaration '{name}' collides with the generated type name of '{instance}'",
    Category.NAME, "Instantiation type names are derived from template and element names."))

_add(ErrorMessage("CE2008", Severity.ERROR,
    "duplicate field '{field}' in struct '{name}'",
    Category.TYPE))

_add(ErrorMessage("CE2009", Severity.ERROR,
    "hooks declared for unknown type '{name}'",
    Category.TYPE, "Element hooks can only be attached to declared structs or sum types."))

_add(ErrorMessage("CE2010", Severity.ERROR,
    "type '{name}' needs its own complete definition through '{path}'",
    Category.TYPE, "Fields, payloads and array elements must be defined before use; refer back through a Slot payload instead."))

_add(ErrorMessage("CE2011", Severity.ERROR,
    "variants '{other}' and '{variant}' of sum type '{name}' share tag constant '{tag}'",
    Category.NAME, "Tag constants are the upper-cased variant names; names differing only in case collide."))

_add(ErrorMessage("CE2012", Severity.ERROR,
    "struct '{name}' declares no fields",
    Category.TYPE, "An empty struct is not valid C."))

_add(ErrorMessage("CE2013", Severity.ERROR,
    "{what} name '{ident}' in '{name}' is a reserved C keyword",
    Category.NAME, "Declaration, field and variant names are spelled verbatim in the generated C."))

_add(ErrorMessage("CW2101", Severity.WARNING,
    "element type '{element}' of '{instance}' owns heap memory but has no drop hook; freeing the array will leak",
    Category.TEMPLATE, "Register a drop hook for the element type with a `hooks` declaration."))

_add(ErrorMessage("CW2102", Severity.WARNING,
    "hooks for '{name}' come after '{instance}' was instantiated; that instantiation keeps the default hooks",
    Category.TEMPLATE, "Declare `hooks` before the first program that uses the type as a container element."))

# Emission - CE3xxx range
_add(ErrorMessage("CE3001", Severity.ERROR,
    "template instantiation '{instance}' was never registered (required by '{owner}' in {provenance})",
    Category.EMIT, "The upstream type checker did not hand this instantiation to the registry."))

_add(ErrorMessage("CE3002", Severity.ERROR,
    "sum type '{name}' was never lowered (required by '{owner}' in {provenance})",
    Category.EMIT))

_add(ErrorMessage("CE3003", Severity.ERROR,
    "struct '{name}' was never registered (required by '{owner}' in {provenance})",
    Category.EMIT))

_add(ErrorMessage("CE3004", Severity.ERROR,
    "type '{name}' was never registered (required by '{owner}' in {provenance})",
    Category.EMIT))

_add(ErrorMessage("CE3500", Severity.ERROR,
    "cannot read declaration IR '{path}': {reason}",
    Category.IO))

_add(ErrorMessage("CE3501", Severity.ERROR,
    "cannot parse declaration IR: {reason}",
    Category.IO))

_add(ErrorMessage("CE3502", Severity.ERROR,
    "cannot write '{path}': {reason}",
    Category.IO))

# Runtime library - CE4xxx range
_add(ErrorMessage("CE4001", Severity.ERROR,
    "fatal runtime error: failed to allocate {capacity} slots for {buffer}",
    Category.RUNTIME, "Allocation failure aborts the run; no partial output is written."))

_add(ErrorMessage("CE4002", Severity.ERROR,
    "index {index} out of range for {buffer} of length {length}",
    Category.GENERAL))

_add(ErrorMessage("CE4003", Severity.ERROR,
    "pop from empty {buffer}",
    Category.GENERAL))
