"""untypedconst/analyzer.py – The ``untypedconst`` analysis pass.

Visits every call, return, send, composite literal and index
expression of a package and hands each expression that sits where a
value of a known type is expected to :func:`check_and_report`, with a
message template describing the site.

Usage
-----
>>> from untypedconst.dump import load_dump_file
>>> from untypedconst.analyzer import run_analyzer
>>> for diag in run_analyzer(load_dump_file("units.sexp")):
...     print(diag.to_gcc_format())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional

from untypedconst import ast as A
from untypedconst.diagnostics import Diagnostic
from untypedconst.inspector import Inspector
from untypedconst.reporting import Pass, check_and_report
from untypedconst.types import Func
from untypedconst.typesinfo import callee

if TYPE_CHECKING:
    from untypedconst.dump import Unit

__all__ = [
    "Analyzer",
    "ANALYZER",
    "run",
    "run_analyzer",
    "MSG_CALL_ARG",
    "MSG_RETURN",
    "MSG_SEND",
    "MSG_COMPOSITE_KEY",
    "MSG_COMPOSITE_VALUE",
    "MSG_COMPOSITE_ELEMENT",
    "MSG_INDEX",
]

logger = logging.getLogger(__name__)

# Each template holds exactly one %q placeholder for the type name.
MSG_CALL_ARG = "passing naked literal to parameter of defined type %q"
MSG_RETURN = "returning naked literal as defined type %q"
MSG_SEND = "sending naked literal to channel of defined type %q"
MSG_COMPOSITE_KEY = "using naked literal as composite literal's element key of defined type %q"
MSG_COMPOSITE_VALUE = "using naked literal as composite literal's element value of defined type %q"
MSG_COMPOSITE_ELEMENT = "using naked literal as composite literal's element of defined type %q"
MSG_INDEX = "using naked literal for indexing the value whose key type is defined type %q"


@dataclass(frozen=True)
class Analyzer:
    """Static description of an analysis pass."""

    name: str
    doc: str
    run: Callable[[Pass], None]

    def __repr__(self) -> str:
        return f"<Analyzer '{self.name}'>"


# ═════════════════════════════════════════════════════════════════════════
#  Site dispatch
# ═════════════════════════════════════════════════════════════════════════

def _process_call_expr(pass_: Pass, call: A.CallExpr) -> None:
    # Conversions and builtin calls have no parameters of defined type.
    if not isinstance(callee(pass_.info, call), Func):
        return
    for arg in call.args:
        check_and_report(pass_, arg, MSG_CALL_ARG)


def _process_return_stmt(pass_: Pass, ret: A.ReturnStmt) -> None:
    for res in ret.results:
        check_and_report(pass_, res, MSG_RETURN)


def _process_send_stmt(pass_: Pass, send: A.SendStmt) -> None:
    check_and_report(pass_, send.value, MSG_SEND)


def _process_composite_lit(pass_: Pass, comp: A.CompositeLit) -> None:
    for elt in comp.elts:
        if isinstance(elt, A.KeyValueExpr):
            # map or struct element
            check_and_report(pass_, elt.key, MSG_COMPOSITE_KEY)
            check_and_report(pass_, elt.value, MSG_COMPOSITE_VALUE)
        else:
            # slice or array element
            check_and_report(pass_, elt, MSG_COMPOSITE_ELEMENT)


def _process_index_expr(pass_: Pass, idx: A.IndexExpr) -> None:
    check_and_report(pass_, idx.index, MSG_INDEX)


_DISPATCH = {
    A.CallExpr: _process_call_expr,
    A.ReturnStmt: _process_return_stmt,
    A.SendStmt: _process_send_stmt,
    A.CompositeLit: _process_composite_lit,
    A.IndexExpr: _process_index_expr,
}


def run(pass_: Pass) -> None:
    """Entry point of the pass: walk the package and report findings."""
    inspector = Inspector(pass_.files)

    def visit(node: A.Node) -> None:
        _DISPATCH[type(node)](pass_, node)

    inspector.preorder(_DISPATCH.keys(), visit)


ANALYZER = Analyzer(
    name="untypedconst",
    doc="checks if an untyped constant expressions is used as a value of defined type",
    run=run,
)


def run_analyzer(
    unit: Unit,
    analyzer: Analyzer = ANALYZER,
    report: Optional[Callable[[Diagnostic], None]] = None,
) -> List[Diagnostic]:
    """Run *analyzer* over one loaded unit and return its diagnostics.

    If *report* is given, every diagnostic is also passed to it as
    soon as it is produced.
    """
    found: List[Diagnostic] = []

    def sink(diag: Diagnostic) -> None:
        found.append(diag)
        if report is not None:
            report(diag)

    pass_ = Pass(
        analyzer=analyzer,
        pkg=unit.package,
        files=unit.files,
        info=unit.info,
        report=sink,
    )
    analyzer.run(pass_)
    logger.info(
        "%s: %d diagnostic(s) in package %s",
        analyzer.name, len(found), unit.package.path,
    )
    return found
