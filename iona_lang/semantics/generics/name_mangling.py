"""Name mangling utilities for template instantiations.

Instantiation names follow the runtime convention: the element name is
prepended to the template name for the concrete type (`StringArray`) and the
snake_case form of that name prefixes every generated operation
(`string_array_push`).
"""

import re

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """CamelCase → snake_case.

    Examples:
        StringArray -> string_array
        IntegerArrayArray -> integer_array_array
        HTTPCodeArray -> http_code_array
    """
    return _CAMEL_BOUNDARY_RE.sub("_", name).lower()


def instance_type_name(template_name: str, element_name: str) -> str:
    """Concrete type name for `template_name<element>`.

    Examples:
        Array<String> -> StringArray
        Array<Array<Integer>> -> IntegerArrayArray
    """
    return f"{element_name}{template_name}"


def symbol_prefix(type_name: str) -> str:
    return snake_case(type_name)


def guard_macro(prefix: str) -> str:
    """Include-guard macro protecting one instantiation's definitions."""
    return f"{prefix.upper()}_DEFINED"


def tag_constant(variant_name: str) -> str:
    """Enumeration constant for a sum-type variant (`Some` -> `SOME`)."""
    return variant_name.upper()


# C11 keywords; declaration, field and variant names are spelled verbatim in C
C_KEYWORDS = frozenset({
    "auto", "break", "case", "char", "const", "continue", "default", "do",
    "double", "else", "enum", "extern", "float", "for", "goto", "if",
    "inline", "int", "long", "register", "restrict", "return", "short",
    "signed", "sizeof", "static", "struct", "switch", "typedef", "union",
    "unsigned", "void", "volatile", "while",
    "_Alignas", "_Alignof", "_Atomic", "_Bool", "_Complex", "_Generic",
    "_Imaginary", "_Noreturn", "_Static_assert", "_Thread_local",
})


def is_c_keyword(name: str) -> bool:
    return name in C_KEYWORDS
