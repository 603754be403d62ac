"""untypedconst – flag untyped constants used as values of defined types.

Passing a bare literal where a defined scalar type is expected
(``F(5)`` for ``func F(d Meters)``) silently gives up the type safety
the defined type was meant to provide.  This package implements an
analysis pass that reports such uses at call arguments, return values,
channel sends, composite-literal elements and index expressions.

Submodules
----------
ast, types, typesinfo
    The host model: syntax tree, type/object model and per-expression
    type facts of one checked package.
dump
    Loads a checked package from an S-expression dump.
inspector
    Pre-order traversal with a node-type filter.
classifier
    Decides whether a constant expression is still untyped.
reporting
    The reporting policy and the ``Pass`` handed to the analysis.
analyzer
    The ``untypedconst`` pass itself: site dispatch and entry points.
diagnostics
    The ``Diagnostic`` record and its text / JSON output.
main
    Command-line interface.

Usage
-----
Command-line::

    python -m untypedconst units.sexp

Programmatic::

    from untypedconst.dump import load_dump_file
    from untypedconst.analyzer import run_analyzer

    diagnostics = run_analyzer(load_dump_file("units.sexp"))
"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
]
