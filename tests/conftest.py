from __future__ import annotations

import pytest

from iona_lang.compiler.pipeline import Compilation

CORE_IR = """\
source "./stdlib/core.iona";

enum Maybe {
    Some(Slot),
    None,
}

enum Result {
    Okay(Slot),
    Error(Slot),
}
"""

PETS_IR = """\
enum Pets { Dog, Fish, Bird, Cat(Integer) }
"""

CORE_C = """\
// source: ./stdlib/core.iona

#include <stdbool.h>
#include <stdint.h>

typedef enum {
\tSOME,
\tNONE,
} MaybeStates;

typedef union {
\tvoid* Some;
} MaybeValues;

struct Maybe {
\tMaybeStates tag;
\tMaybeValues data;
};

typedef enum {
\tOKAY,
\tERROR,
} ResultStates;

typedef union {
\tvoid* Okay;
\tvoid* Error;
} ResultValues;

struct Result {
\tResultStates tag;
\tResultValues data;
};

"""

PETS_C = """\
// source: test.iona

#include <stdbool.h>
#include <stdint.h>
#include "numbers.h"

typedef enum {
\tDOG,
\tFISH,
\tBIRD,
\tCAT,
} PetsStates;

typedef union {
\tInteger Cat;
} PetsValues;

struct Pets {
\tPetsStates tag;
\tPetsValues data;
};

"""


@pytest.fixture
def compile_ir():
    """Collect and lower declaration IR text; fails the test on diagnostics errors."""
    def _compile(src: str, provenance: str = "test.iona") -> Compilation:
        comp = Compilation()
        comp.add_source(src, provenance)
        assert not comp.reporter.has_errors, comp.reporter.format(use_color=False)
        comp.lower()
        return comp
    return _compile


@pytest.fixture
def collect_ir():
    """Collect declaration IR text and return the compilation, errors and all."""
    def _collect(src: str, provenance: str = "test.iona") -> Compilation:
        comp = Compilation()
        comp.add_source(src, provenance)
        return comp
    return _collect
