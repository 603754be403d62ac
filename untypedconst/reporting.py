"""untypedconst/reporting.py – Decide whether a candidate is worth a diagnostic.

``check_and_report`` is the reporting policy: it takes one expression
found at a site that expects a value of some type, and reports it when

1. the expression has a constant value,
2. that constant expression is untyped,
3. its inferred type is a named type,
4. whose underlying type is a basic (scalar) type, and
5. the named type is exported, or belongs to the package under
   analysis.

Unexported types of *other* packages are never reported: the author of
the analysed code cannot name them, so the finding could not be fixed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from untypedconst import ast as A
from untypedconst.classifier import is_untyped_const_expr
from untypedconst.diagnostics import Diagnostic
from untypedconst.types import Basic, Named, Object, Package
from untypedconst.typesinfo import TypesInfo

if TYPE_CHECKING:
    from untypedconst.analyzer import Analyzer

__all__ = ["Pass", "check_and_report", "format_message"]

logger = logging.getLogger(__name__)


@dataclass
class Pass:
    """Everything the host hands the analysis for one package.

    ``report`` is the diagnostic sink.  The pass holds no other state.
    """

    analyzer: Analyzer
    pkg: Package
    files: Sequence[A.File]
    info: TypesInfo
    report: Callable[[Diagnostic], None] = field(repr=False)

    def scope_lookup(self, name: str) -> Optional[Object]:
        """Look *name* up in the package's top-level scope."""
        return self.pkg.scope.lookup(name)


def format_message(template: str, type_name: str) -> str:
    """Fill the single ``%q`` placeholder of *template* with *type_name*.

    The name is rendered as a double-quoted string literal.
    """
    return template.replace("%q", json.dumps(type_name), 1)


def check_and_report(pass_: Pass, expr: A.Expr, template: str) -> None:
    """Report *expr* if it is an untyped constant used as a named scalar type.

    *template* must contain exactly one ``%q`` placeholder.
    """
    tv = pass_.info.facts_of(expr)
    if not tv.is_constant:
        return
    if not is_untyped_const_expr(expr, pass_.info, pass_.scope_lookup):
        return

    named = tv.type
    if not isinstance(named, Named):
        return
    if not isinstance(named.underlying(), Basic):
        return

    obj = named.obj
    same_package = obj.pkg is not None and obj.pkg.path == pass_.pkg.path
    if not (obj.exported or same_package):
        logger.debug(
            "%s: not reporting unexported foreign type %s", expr.pos, named,
        )
        return

    pass_.report(Diagnostic(
        start=expr.pos,
        end=expr.end,
        message=format_message(template, str(named)),
        category=pass_.analyzer.name,
    ))
