"""untypedconst/classifier.py – Is a constant expression still untyped?

A constant expression is *untyped* while its representation still
adapts to the context it is used in: ``5`` can become an ``int``, a
``float64`` or a ``Meters``.  Once any operand fixes the type
(``Meters(5) + 3``) the whole expression is typed.

Rules, applied after stripping parentheses:

* basic literals are untyped;
* ``true``, ``false`` and ``iota`` are untyped;
* any other identifier is untyped iff the package-level constant it
  names was declared without a type;
* a unary expression has the typedness of its operand;
* a comparison is always untyped (it yields an untyped boolean);
  any other binary expression is untyped iff both operands are;
* ``complex``, ``real`` and ``imag`` applied to untyped arguments are
  untyped; every other call, type conversions included, is typed.

The caller guarantees that *expr* has a constant value.
"""

from __future__ import annotations

import logging
from typing import Callable, FrozenSet, Optional

from untypedconst import ast as A
from untypedconst.types import Basic, Builtin, Const, Object
from untypedconst.typesinfo import TypesInfo, callee

__all__ = [
    "UNTYPED_IDENT_NAMES",
    "COMPARISON_OPERATORS",
    "UNTYPED_NUMERIC_BUILTINS",
    "is_untyped_const_expr",
]

logger = logging.getLogger(__name__)

#: Predeclared identifiers that denote untyped constants.
UNTYPED_IDENT_NAMES: FrozenSet[str] = frozenset({"true", "false", "iota"})

COMPARISON_OPERATORS: FrozenSet[str] = frozenset({"==", "!=", "<", "<=", ">", ">="})

#: Builtins that keep untyped arguments untyped.
UNTYPED_NUMERIC_BUILTINS: FrozenSet[str] = frozenset({"complex", "real", "imag"})

ConstLookup = Callable[[str], Optional[Object]]


def is_untyped_const_expr(
    expr: A.Expr,
    info: TypesInfo,
    lookup: ConstLookup,
) -> bool:
    """Report whether the constant expression *expr* is untyped.

    Parameters
    ----------
    expr:
        An expression the type checker recorded a constant value for.
    info:
        Type facts of the package, used to resolve call targets.
    lookup:
        Top-level scope lookup of the package being analysed.
    """
    e = A.unparen(expr)

    if isinstance(e, A.BasicLit):
        return True

    if isinstance(e, A.Ident):
        if e.name in UNTYPED_IDENT_NAMES:
            return True
        obj = lookup(e.name)
        if not isinstance(obj, Const):
            # A constant-valued identifier must name a package constant.
            logger.warning(
                "%s: identifier %r has a constant value but names no "
                "package-level constant", e.pos, e.name,
            )
            return False
        return isinstance(obj.type, Basic) and obj.type.is_untyped

    if isinstance(e, A.UnaryExpr):
        return is_untyped_const_expr(e.x, info, lookup)

    if isinstance(e, A.BinaryExpr):
        if e.op in COMPARISON_OPERATORS:
            return True
        return (
            is_untyped_const_expr(e.x, info, lookup)
            and is_untyped_const_expr(e.y, info, lookup)
        )

    if isinstance(e, A.CallExpr):
        fn = callee(info, e)
        if not isinstance(fn, Builtin) or fn.name not in UNTYPED_NUMERIC_BUILTINS:
            return False
        return all(is_untyped_const_expr(arg, info, lookup) for arg in e.args)

    # Index, key-value, selector, star, composite and type syntax never
    # form a constant expression on their own.
    logger.warning("%s: unexpected node type: %s", e.pos, type(e).__name__)
    return False
