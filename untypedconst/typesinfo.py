"""untypedconst/typesinfo.py – Per-expression facts from the type checker.

``TypesInfo`` is the read-only query object the analysis receives from
its host: for every expression it records the inferred type and, when
the expression is constant-foldable, its constant value; for every
identifier it records the object the identifier denotes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional, Union

from untypedconst import ast as A
from untypedconst.types import Builtin, Func, Object, Type, TypeName


class Mode(Enum):
    """Addressing mode of a checked expression."""

    VALUE = auto()
    CONSTANT = auto()
    TYPE = auto()
    BUILTIN = auto()
    VOID = auto()


@dataclass(frozen=True, slots=True)
class TypeAndValue:
    """Type fact for one expression.

    ``value`` is not None iff the expression is a constant expression.
    """

    type: Optional[Type]
    value: Any = None
    mode: Mode = Mode.VALUE

    @property
    def is_constant(self) -> bool:
        return self.value is not None

    @property
    def is_type(self) -> bool:
        return self.mode is Mode.TYPE


_NO_FACTS = TypeAndValue(type=None)


@dataclass
class TypesInfo:
    """Type facts for one package, keyed by node identity."""

    types: Dict[A.Node, TypeAndValue] = field(default_factory=dict)
    uses: Dict[A.Ident, Object] = field(default_factory=dict)

    def record(self, expr: A.Node, tv: TypeAndValue) -> None:
        self.types[expr] = tv

    def facts_of(self, expr: A.Node) -> TypeAndValue:
        """Facts for *expr*; an empty record if the checker recorded none."""
        return self.types.get(expr, _NO_FACTS)

    def type_of(self, expr: A.Node) -> Optional[Type]:
        tv = self.types.get(expr)
        if tv is not None and tv.type is not None:
            return tv.type
        if isinstance(expr, A.Ident):
            obj = self.uses.get(expr)
            if obj is not None:
                return obj.type
        return None

    def object_of(self, ident: A.Ident) -> Optional[Object]:
        return self.uses.get(ident)


def callee(info: TypesInfo, call: A.CallExpr) -> Optional[Union[Func, Builtin]]:
    """Return the function or builtin called by *call*.

    Returns None for type conversions ``T(x)`` and for calls through
    function-valued expressions (closures, fields, map lookups).
    """
    fun = A.unparen(call.fun)
    if info.facts_of(fun).is_type:
        return None

    # Explicit instantiation of a generic function: F[T](...)
    if isinstance(fun, A.IndexExpr):
        fun = A.unparen(fun.x)

    obj: Optional[Object] = None
    if isinstance(fun, A.Ident):
        obj = info.uses.get(fun)
    elif isinstance(fun, A.SelectorExpr):
        obj = info.uses.get(fun.sel)

    if isinstance(obj, TypeName):
        return None
    if isinstance(obj, (Func, Builtin)):
        return obj
    return None
