"""untypedconst/dump.py – Load a type-checked package from an S-expression dump.

A front end that has parsed and type-checked one package serialises
it as a single S-expression: the package's top-level declarations,
the packages it imports, and the syntax of each source file annotated
with the facts the type checker inferred.  This module maps that dump
onto :mod:`untypedconst.ast`, :mod:`untypedconst.types` and
:class:`~untypedconst.typesinfo.TypesInfo`.

Design principles
-----------------
* **Head-symbol dispatch** – every form ``(tag ...)`` is dispatched on
  ``tag`` to a function registered with ``@_register``.
* **Keyword attributes** – facts ride on the syntax as trailing
  ``:key value`` pairs so a dump reads like annotated source.
* **Derive what is derivable** – missing end positions, addressing
  modes, and the values of literals and constant identifiers are
  computed rather than required.
* **Fail fast** – anything unexpected raises :class:`DumpError`.

Surface syntax (overview)
-------------------------
::

    (package "<path>" <name>
      (imports (package ...)*)
      (scope <decl>*)
      (file "<name>" <func-decl or stmt>*)*)

    ;; declarations
    (typename N <type>)   (const N <type> <value>)
    (var N <type>)        (func N <type>?)

    ;; types
    (basic int)  (basic untyped-int)  (ref N)  (ref "<path>" N)
    (slice T)  (array 4 T)  (map K V)  (chan T)  (pointer T)
    (struct (field N T)*)  (signature (params T*) (results T*))
    (interface)

    ;; expressions, each followed by optional attributes
    ;;   :pos (L C)  :end (L C)  :type T  :value V  :mode M
    ;;   :obj (const|var|func|method|builtin|typename|package ["<path>"] N)
    (lit INT "5")  (ident N)  (paren E)  (unary "-" E)
    (binary "+" E E)  (call E E*)  (selector E N)  (index E E)
    (key-value E E)  (composite T E*)  (star E)  (type "[]Meters")

    ;; statements
    (block S*)  (expr-stmt E)  (assign "=" (lhs E*) (rhs E*))
    (return E*)  (send E E)  (if E BLOCK ELSE?)
    (for :init S :cond E :post S BLOCK)  (func-decl N BLOCK)

Public API
----------
``load_dump(text, source="<string>") -> Unit``
``load_dump_file(path) -> Unit``
"""

from __future__ import annotations

import codecs
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import sexpdata
from sexpdata import Symbol

from untypedconst import ast as A
from untypedconst.errors import DumpError, UnresolvedNameError
from untypedconst.types import (
    Array,
    Builtin,
    Chan,
    Const,
    Func,
    Interface,
    Map,
    Named,
    Object,
    Package,
    PkgName,
    Pointer,
    Signature,
    Slice,
    Struct,
    Type,
    TypeName,
    Var,
    basic,
)
from untypedconst.typesinfo import Mode, TypeAndValue, TypesInfo

__all__ = ["Unit", "load_dump", "load_dump_file"]

logger = logging.getLogger(__name__)

Sexp = Any  # Union[list, Symbol, str, int, float, bool]


@dataclass
class Unit:
    """One loaded package: the input of a single analysis run."""

    package: Package
    files: List[A.File] = field(default_factory=list)
    info: TypesInfo = field(default_factory=TypesInfo)
    source: str = "<string>"


# ═══════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════

def _is_keyword(s: Sexp) -> bool:
    return isinstance(s, Symbol) and str(s).startswith(":")


def _sym_name(s: Sexp) -> str:
    """Extract the string name from a ``sexpdata.Symbol``, or raise."""
    if isinstance(s, Symbol):
        return str(s)
    raise DumpError(f"expected symbol, got {type(s).__name__}", form=s)


def _expect_list(s: Sexp, *, min_len: int = 0, tag: Optional[str] = None) -> list:
    """Assert that *s* is a list, optionally with a minimum length and head tag."""
    if not isinstance(s, list):
        raise DumpError(
            f"expected list{f' ({tag} ...)' if tag else ''}, "
            f"got {type(s).__name__}",
            form=s,
        )
    if len(s) < min_len:
        raise DumpError(
            f"form too short: expected at least {min_len} elements", form=s,
        )
    if tag is not None and _head(s) != tag:
        raise DumpError(f"expected ({tag} ...)", form=s)
    return s


def _head(s: list) -> str:
    """Return the head symbol name of a list form ``(tag ...)``."""
    if not s:
        raise DumpError("unexpected empty list")
    return _sym_name(s[0])


def _as_str(s: Sexp) -> str:
    """Coerce *s* to a Python ``str`` – accepts Symbol or string literal."""
    if isinstance(s, str):  # Symbol is a str subclass
        return str(s)
    raise DumpError(f"expected string or symbol, got {type(s).__name__}", form=s)


def _as_int(s: Sexp) -> int:
    if isinstance(s, int) and not isinstance(s, bool):
        return s
    raise DumpError(f"expected integer, got {type(s).__name__}", form=s)


def _split_attrs(items: list) -> Tuple[list, Dict[str, Sexp]]:
    """Separate positional items from trailing ``:key value`` pairs."""
    positional: list = []
    attrs: Dict[str, Sexp] = {}
    i = 0
    while i < len(items):
        item = items[i]
        if _is_keyword(item):
            if i + 1 >= len(items):
                raise DumpError(f"attribute {item} has no value", form=items)
            attrs[str(item)[1:]] = items[i + 1]
            i += 2
        else:
            positional.append(item)
            i += 1
    return positional, attrs


# ═══════════════════════════════════════════════════════════════════════
#  Dispatch registry
# ═══════════════════════════════════════════════════════════════════════

_TYPE_DISPATCH: Dict[str, Callable[..., Type]] = {}
_EXPR_DISPATCH: Dict[str, Callable[..., A.Expr]] = {}
_STMT_DISPATCH: Dict[str, Callable[..., A.Node]] = {}


def _register(table: dict, tag: str):
    """Decorator: register a loader function under *tag* in *table*."""
    def deco(fn):
        table[tag] = fn
        return fn
    return deco


class _Loader:
    """Per-dump state: current package, file and collected facts."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pkg: Optional[Package] = None
        self.file: str = source
        self.info = TypesInfo()
        self.packages: Dict[str, Package] = {}

    # -- positions ------------------------------------------------------

    def pos(self, attrs: Dict[str, Sexp], key: str = "pos") -> Optional[A.Pos]:
        raw = attrs.get(key)
        if raw is None:
            return None
        lst = _expect_list(raw, min_len=2)
        return A.Pos(self.file, _as_int(lst[0]), _as_int(lst[1]))

    def span(
        self,
        attrs: Dict[str, Sexp],
        children: Tuple[A.Node, ...],
        width: Optional[int] = None,
        closing: int = 0,
    ) -> Tuple[A.Pos, A.Pos]:
        """Start and end of a node.

        ``width`` gives a leaf's text length; ``closing`` is the width
        of a closing bracket following the last child.
        """
        start = self.pos(attrs)
        end = self.pos(attrs, "end")
        if start is None:
            start = children[0].pos if children else A.Pos(self.file, 0, 0)
        if end is None:
            if width is not None:
                end = start.shifted(width)
            elif children:
                end = children[-1].end.shifted(closing)
            else:
                end = start
        return start, end

    # -- package resolution ---------------------------------------------

    def package_by_path(self, path: str) -> Package:
        assert self.pkg is not None
        if path == self.pkg.path:
            return self.pkg
        found = self.pkg.imports.get(path) or self.packages.get(path)
        if found is None:
            raise UnresolvedNameError("package", path)
        return found


# ═══════════════════════════════════════════════════════════════════════
#  Types
# ═══════════════════════════════════════════════════════════════════════

def _load_type(ld: _Loader, s: Sexp) -> Type:
    lst = _expect_list(s, min_len=1)
    tag = _head(lst)
    fn = _TYPE_DISPATCH.get(tag)
    if fn is None:
        raise DumpError(f"unknown type form ({tag} ...)", form=s)
    return fn(ld, lst)


@_register(_TYPE_DISPATCH, "basic")
def _type_basic(ld: _Loader, s: list) -> Type:
    _expect_list(s, min_len=2)
    name = _as_str(s[1])
    try:
        return basic(name)
    except KeyError:
        raise DumpError(f"unknown basic type {name!r}", form=s) from None


@_register(_TYPE_DISPATCH, "ref")
def _type_ref(ld: _Loader, s: list) -> Type:
    _expect_list(s, min_len=2)
    assert ld.pkg is not None
    if len(s) >= 3:
        pkg = ld.package_by_path(_as_str(s[1]))
        name = _as_str(s[2])
        obj = pkg.scope.lookup(name)
    else:
        name = _as_str(s[1])
        pkg = ld.pkg
        obj = ld.pkg.scope.lookup_parent(name)
    if not isinstance(obj, TypeName) or obj.type is None:
        raise UnresolvedNameError("type", name, pkg.path)
    return obj.type


@_register(_TYPE_DISPATCH, "slice")
def _type_slice(ld: _Loader, s: list) -> Type:
    _expect_list(s, min_len=2)
    return Slice(_load_type(ld, s[1]))


@_register(_TYPE_DISPATCH, "array")
def _type_array(ld: _Loader, s: list) -> Type:
    _expect_list(s, min_len=3)
    return Array(_as_int(s[1]), _load_type(ld, s[2]))


@_register(_TYPE_DISPATCH, "map")
def _type_map(ld: _Loader, s: list) -> Type:
    _expect_list(s, min_len=3)
    return Map(_load_type(ld, s[1]), _load_type(ld, s[2]))


@_register(_TYPE_DISPATCH, "chan")
def _type_chan(ld: _Loader, s: list) -> Type:
    _expect_list(s, min_len=2)
    return Chan(_load_type(ld, s[1]))


@_register(_TYPE_DISPATCH, "pointer")
def _type_pointer(ld: _Loader, s: list) -> Type:
    _expect_list(s, min_len=2)
    return Pointer(_load_type(ld, s[1]))


@_register(_TYPE_DISPATCH, "struct")
def _type_struct(ld: _Loader, s: list) -> Type:
    fields = []
    for f in s[1:]:
        fl = _expect_list(f, min_len=3, tag="field")
        fields.append((_as_str(fl[1]), _load_type(ld, fl[2])))
    return Struct(tuple(fields))


@_register(_TYPE_DISPATCH, "signature")
def _type_signature(ld: _Loader, s: list) -> Type:
    params: Tuple[Type, ...] = ()
    results: Tuple[Type, ...] = ()
    for part in s[1:]:
        pl = _expect_list(part, min_len=1)
        types = tuple(_load_type(ld, t) for t in pl[1:])
        tag = _head(pl)
        if tag == "params":
            params = types
        elif tag == "results":
            results = types
        else:
            raise DumpError(f"unknown signature part ({tag} ...)", form=part)
    return Signature(params, results)


@_register(_TYPE_DISPATCH, "interface")
def _type_interface(ld: _Loader, s: list) -> Type:
    return Interface()


# ═══════════════════════════════════════════════════════════════════════
#  Constant values
# ═══════════════════════════════════════════════════════════════════════

def _load_value(s: Sexp) -> Any:
    if isinstance(s, Symbol):
        name = str(s)
        if name == "true":
            return True
        if name == "false":
            return False
        raise DumpError(f"unknown constant value {name!r}", form=s)
    if isinstance(s, (bool, int, float, str)):
        return s
    if isinstance(s, list) and s and _head(s) == "complex":
        _expect_list(s, min_len=3)
        parts = s[1:3]
        if not all(isinstance(p, (int, float)) and not isinstance(p, bool) for p in parts):
            raise DumpError("complex parts must be numbers", form=s)
        return complex(*parts)
    raise DumpError("unsupported constant value", form=s)


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] == "`":
        return text[1:-1]
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        body = text[1:-1]
        # unicode_escape works on bytes; keep non-ASCII characters intact
        return codecs.decode(body.encode("raw_unicode_escape"), "unicode_escape")
    return text


def _literal_value(kind: A.LitKind, text: str) -> Any:
    """Constant value of a literal, spelled the Go way."""
    digits = text.replace("_", "")
    try:
        if kind is A.LitKind.INT:
            if len(digits) > 1 and digits[0] == "0" and digits.isdigit():
                return int(digits, 8)
            return int(digits, 0)
        if kind is A.LitKind.FLOAT:
            if digits.lower().startswith("0x"):
                return float.fromhex(digits)
            return float(digits)
        if kind is A.LitKind.IMAG:
            return complex(0, float(digits[:-1]))
        if kind is A.LitKind.CHAR:
            return ord(_unquote(text))
        return _unquote(text)
    except (ValueError, TypeError) as exc:
        raise DumpError(f"malformed {kind.value} literal {text!r}: {exc}") from None


_LITERAL_TYPES = {
    A.LitKind.INT: "untyped int",
    A.LitKind.FLOAT: "untyped float",
    A.LitKind.IMAG: "untyped complex",
    A.LitKind.CHAR: "untyped rune",
    A.LitKind.STRING: "untyped string",
}


# ═══════════════════════════════════════════════════════════════════════
#  Declarations
# ═══════════════════════════════════════════════════════════════════════

def _load_scope(ld: _Loader, pkg: Package, decls: list) -> None:
    """Populate *pkg*'s scope.

    Type names are entered first so declarations may refer to types
    declared later in the same scope.
    """
    pending: List[Tuple[Named, Sexp]] = []
    for d in decls:
        dl = _expect_list(d, min_len=2)
        if _head(dl) != "typename":
            continue
        _expect_list(dl, min_len=3)
        obj = TypeName(_as_str(dl[1]), pkg=pkg)
        named = Named(obj)
        obj.type = named
        _declare(pkg, obj, d)
        pending.append((named, dl[2]))
    while pending:
        waiting: List[Tuple[Named, Sexp]] = []
        for named, underlying in pending:
            typ = _load_type(ld, underlying)
            if isinstance(typ, Named) and typ in (n for n, _ in pending):
                waiting.append((named, underlying))
            else:
                named.set_underlying(typ)
        if len(waiting) == len(pending):
            names = ", ".join(str(n) for n, _ in waiting)
            raise DumpError(f"invalid recursive type declaration: {names}")
        pending = waiting

    for d in decls:
        dl = _expect_list(d, min_len=2)
        tag = _head(dl)
        name = _as_str(dl[1])
        if tag == "typename":
            continue
        if tag == "const":
            _expect_list(dl, min_len=4)
            obj: Object = Const(name, _load_type(ld, dl[2]), pkg, _load_value(dl[3]))
        elif tag == "var":
            _expect_list(dl, min_len=3)
            obj = Var(name, _load_type(ld, dl[2]), pkg)
        elif tag == "func":
            sig = _load_type(ld, dl[2]) if len(dl) > 2 else Signature()
            obj = Func(name, sig, pkg)
        else:
            raise DumpError(f"unknown declaration ({tag} ...)", form=d)
        _declare(pkg, obj, d)


def _declare(pkg: Package, obj: Object, form: Sexp) -> None:
    if pkg.scope.insert(obj) is not None:
        raise DumpError(f"{obj.name!r} redeclared in package {pkg.path!r}", form=form)


def _load_package(ld: _Loader, s: Sexp, *, imported: bool = False) -> Package:
    lst = _expect_list(s, min_len=3, tag="package")
    pkg = Package(_as_str(lst[1]), _as_str(lst[2]))
    if pkg.path in ld.packages:
        return ld.packages[pkg.path]
    ld.packages[pkg.path] = pkg

    outer = ld.pkg
    ld.pkg = pkg
    sections = [_expect_list(part, min_len=1) for part in lst[3:]]
    for part in sections:
        if _head(part) == "imports":
            for imp in part[1:]:
                dep = _load_package(ld, imp, imported=True)
                pkg.imports[dep.path] = dep
                pkg.scope.insert(PkgName(dep.name, None, pkg, imported=dep))
    for part in sections:
        if _head(part) == "scope":
            _load_scope(ld, pkg, part[1:])
    for part in sections:
        tag = _head(part)
        if tag in ("imports", "scope"):
            continue
        if tag != "file":
            raise DumpError(f"unknown package section ({tag} ...)", form=part)
        if imported:
            logger.debug("ignoring files of imported package %s", pkg.path)
    ld.pkg = outer
    return pkg


# ═══════════════════════════════════════════════════════════════════════
#  Expressions
# ═══════════════════════════════════════════════════════════════════════

def _load_expr(ld: _Loader, s: Sexp) -> A.Expr:
    lst = _expect_list(s, min_len=1)
    tag = _head(lst)
    fn = _EXPR_DISPATCH.get(tag)
    if fn is None:
        raise DumpError(f"unknown expression form ({tag} ...)", form=s)
    positional, attrs = _split_attrs(lst[1:])
    return fn(ld, positional, attrs)


def _record(
    ld: _Loader,
    node: A.Expr,
    attrs: Dict[str, Sexp],
    *,
    default_type: Optional[Type] = None,
    default_value: Any = None,
    default_mode: Mode = Mode.VALUE,
) -> A.Expr:
    """Record the type facts carried by *attrs* for *node*."""
    typ = _load_type(ld, attrs["type"]) if "type" in attrs else default_type
    value = _load_value(attrs["value"]) if "value" in attrs else default_value
    if "mode" in attrs:
        try:
            mode = Mode[_as_str(attrs["mode"]).upper()]
        except KeyError:
            raise DumpError("unknown mode", form=attrs["mode"]) from None
    elif value is not None:
        mode = Mode.CONSTANT
    else:
        mode = default_mode
    if typ is not None or value is not None or mode is not Mode.VALUE:
        ld.info.record(node, TypeAndValue(type=typ, value=value, mode=mode))
    return node


_OBJ_KINDS = {
    "const": Const,
    "var": Var,
    "func": Func,
    "method": Func,
    "builtin": Builtin,
    "typename": TypeName,
    "package": PkgName,
}


def _resolve_obj(ld: _Loader, s: Sexp, ident_type: Optional[Type]) -> Object:
    lst = _expect_list(s, min_len=2)
    kind = _head(lst)
    cls = _OBJ_KINDS.get(kind)
    if cls is None:
        raise DumpError(f"unknown object kind {kind!r}", form=s)
    assert ld.pkg is not None
    if len(lst) >= 3:
        pkg = ld.package_by_path(_as_str(lst[1]))
        name = _as_str(lst[2])
        obj = pkg.scope.lookup(name)
    else:
        pkg = ld.pkg
        name = _as_str(lst[1])
        obj = pkg.scope.lookup_parent(name)

    if kind in ("var", "method") and not isinstance(obj, cls):
        # Locals, parameters and methods live outside package scope.
        return cls(name, ident_type, pkg)
    if not isinstance(obj, cls):
        raise UnresolvedNameError(kind, name, pkg.path)
    return obj


def _ident(ld: _Loader, name: str, attrs: Dict[str, Sexp], scope_pkg: Optional[Package] = None) -> A.Ident:
    start, end = ld.span(attrs, (), width=len(name))
    node = A.Ident(name, start, end)
    declared = _load_type(ld, attrs["type"]) if "type" in attrs else None

    obj: Optional[Object] = None
    if "obj" in attrs:
        obj = _resolve_obj(ld, attrs["obj"], declared)
    elif scope_pkg is not None:
        obj = scope_pkg.scope.lookup(name)
    else:
        assert ld.pkg is not None
        obj = ld.pkg.scope.lookup_parent(name)
    if obj is not None:
        ld.info.uses[node] = obj

    mode = Mode.VALUE
    if isinstance(obj, TypeName):
        mode = Mode.TYPE
    elif isinstance(obj, Builtin):
        mode = Mode.BUILTIN
    const_value = obj.value if isinstance(obj, Const) else None
    obj_type = obj.type if obj is not None and not isinstance(obj, PkgName) else None
    _record(
        ld, node, attrs,
        default_type=obj_type,
        default_value=const_value,
        default_mode=mode,
    )
    return node


@_register(_EXPR_DISPATCH, "ident")
def _expr_ident(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if len(pos) != 1:
        raise DumpError("expected (ident NAME ...)", form=pos)
    return _ident(ld, _as_str(pos[0]), attrs)


@_register(_EXPR_DISPATCH, "lit")
def _expr_lit(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if len(pos) != 2:
        raise DumpError("expected (lit KIND TEXT ...)", form=pos)
    try:
        kind = A.LitKind(_as_str(pos[0]).upper())
    except ValueError:
        raise DumpError("unknown literal kind", form=pos[0]) from None
    text = _as_str(pos[1])
    start, end = ld.span(attrs, (), width=len(text))
    node = A.BasicLit(kind, text, start, end)
    return _record(
        ld, node, attrs,
        default_type=basic(_LITERAL_TYPES[kind]),
        default_value=_literal_value(kind, text),
    )


@_register(_EXPR_DISPATCH, "type")
def _expr_type(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if len(pos) != 1:
        raise DumpError("expected (type TEXT ...)", form=pos)
    text = _as_str(pos[0])
    start, end = ld.span(attrs, (), width=len(text))
    return _record(ld, A.TypeExpr(text, start, end), attrs, default_mode=Mode.TYPE)


@_register(_EXPR_DISPATCH, "paren")
def _expr_paren(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if len(pos) != 1:
        raise DumpError("expected (paren EXPR ...)", form=pos)
    x = _load_expr(ld, pos[0])
    start, end = ld.span(attrs, (x,), closing=1)
    if "pos" not in attrs:
        start = x.pos.shifted(-1)
    inner = ld.info.facts_of(x)
    return _record(
        ld, A.ParenExpr(x, start, end), attrs,
        default_type=inner.type,
        default_value=inner.value,
        default_mode=inner.mode,
    )


@_register(_EXPR_DISPATCH, "unary")
def _expr_unary(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if len(pos) != 2:
        raise DumpError("expected (unary OP EXPR ...)", form=pos)
    op = _as_str(pos[0])
    x = _load_expr(ld, pos[1])
    start, end = ld.span(attrs, (x,))
    if "pos" not in attrs:
        start = x.pos.shifted(-len(op))
    return _record(ld, A.UnaryExpr(op, x, start, end), attrs)


@_register(_EXPR_DISPATCH, "binary")
def _expr_binary(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if len(pos) != 3:
        raise DumpError("expected (binary OP EXPR EXPR ...)", form=pos)
    op = _as_str(pos[0])
    x = _load_expr(ld, pos[1])
    y = _load_expr(ld, pos[2])
    start, end = ld.span(attrs, (x, y))
    return _record(ld, A.BinaryExpr(op, x, y, start, end), attrs)


@_register(_EXPR_DISPATCH, "call")
def _expr_call(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if not pos:
        raise DumpError("expected (call FUN ARG* ...)", form=pos)
    fun = _load_expr(ld, pos[0])
    args = tuple(_load_expr(ld, a) for a in pos[1:])
    start, end = ld.span(attrs, (fun,) + args, closing=1)
    return _record(ld, A.CallExpr(fun, args, start, end), attrs)


@_register(_EXPR_DISPATCH, "selector")
def _expr_selector(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if len(pos) != 2:
        raise DumpError("expected (selector EXPR NAME ...)", form=pos)
    x = _load_expr(ld, pos[0])
    qualifier = ld.info.uses.get(x) if isinstance(x, A.Ident) else None
    sel_name = _as_str(pos[1])
    sel_attrs: Dict[str, Sexp] = {"pos": [x.end.line, x.end.column + 1]}
    for key in ("obj", "type", "value", "mode"):
        if key in attrs:
            sel_attrs[key] = attrs[key]
    if isinstance(qualifier, PkgName) and qualifier.imported is not None:
        sel = _ident(ld, sel_name, sel_attrs, scope_pkg=qualifier.imported)
    elif "obj" in attrs:
        sel = _ident(ld, sel_name, sel_attrs)
    else:
        # Field or method without object information.
        start, end = ld.span(sel_attrs, (), width=len(sel_name))
        sel = A.Ident(sel_name, start, end)
    start, end = ld.span(attrs, (x, sel))
    sel_facts = ld.info.facts_of(sel)
    node = A.SelectorExpr(x, sel, start, end)
    return _record(
        ld, node, {k: v for k, v in attrs.items() if k != "obj"},
        default_type=sel_facts.type,
        default_value=sel_facts.value,
        default_mode=sel_facts.mode,
    )


@_register(_EXPR_DISPATCH, "index")
def _expr_index(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if len(pos) != 2:
        raise DumpError("expected (index EXPR EXPR ...)", form=pos)
    x = _load_expr(ld, pos[0])
    index = _load_expr(ld, pos[1])
    start, end = ld.span(attrs, (x, index), closing=1)
    return _record(ld, A.IndexExpr(x, index, start, end), attrs)


@_register(_EXPR_DISPATCH, "key-value")
def _expr_key_value(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if len(pos) != 2:
        raise DumpError("expected (key-value EXPR EXPR ...)", form=pos)
    key = _load_expr(ld, pos[0])
    value = _load_expr(ld, pos[1])
    start, end = ld.span(attrs, (key, value))
    return A.KeyValueExpr(key, value, start, end)


@_register(_EXPR_DISPATCH, "composite")
def _expr_composite(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if not pos:
        raise DumpError("expected (composite TYPE ELT* ...)", form=pos)
    typ: Optional[A.Expr] = None
    if not (isinstance(pos[0], Symbol) and str(pos[0]) == "_"):
        typ = _load_expr(ld, pos[0])
    elts = tuple(_load_expr(ld, e) for e in pos[1:])
    children = ((typ,) if typ is not None else ()) + elts
    start, end = ld.span(attrs, children, closing=1)
    return _record(ld, A.CompositeLit(typ, elts, start, end), attrs)


@_register(_EXPR_DISPATCH, "star")
def _expr_star(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Expr:
    if len(pos) != 1:
        raise DumpError("expected (star EXPR ...)", form=pos)
    x = _load_expr(ld, pos[0])
    start, end = ld.span(attrs, (x,))
    if "pos" not in attrs:
        start = x.pos.shifted(-1)
    return _record(ld, A.StarExpr(x, start, end), attrs)


# ═══════════════════════════════════════════════════════════════════════
#  Statements
# ═══════════════════════════════════════════════════════════════════════

def _load_stmt(ld: _Loader, s: Sexp) -> A.Node:
    lst = _expect_list(s, min_len=1)
    tag = _head(lst)
    fn = _STMT_DISPATCH.get(tag)
    if fn is None:
        raise DumpError(f"unknown statement form ({tag} ...)", form=s)
    positional, attrs = _split_attrs(lst[1:])
    return fn(ld, positional, attrs)


def _load_block(ld: _Loader, s: Sexp) -> A.BlockStmt:
    node = _load_stmt(ld, s)
    if not isinstance(node, A.BlockStmt):
        raise DumpError("expected (block ...)", form=s)
    return node


@_register(_STMT_DISPATCH, "block")
def _stmt_block(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Node:
    stmts = tuple(_load_stmt(ld, st) for st in pos)
    start, end = ld.span(attrs, stmts, closing=1)
    return A.BlockStmt(stmts, start, end)


@_register(_STMT_DISPATCH, "expr-stmt")
def _stmt_expr(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Node:
    if len(pos) != 1:
        raise DumpError("expected (expr-stmt EXPR)", form=pos)
    x = _load_expr(ld, pos[0])
    start, end = ld.span(attrs, (x,))
    return A.ExprStmt(x, start, end)


@_register(_STMT_DISPATCH, "assign")
def _stmt_assign(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Node:
    if len(pos) != 3:
        raise DumpError("expected (assign TOK (lhs ...) (rhs ...))", form=pos)
    tok = _as_str(pos[0])
    lhs_form = _expect_list(pos[1], tag="lhs")
    rhs_form = _expect_list(pos[2], tag="rhs")
    lhs = tuple(_load_expr(ld, e) for e in lhs_form[1:])
    rhs = tuple(_load_expr(ld, e) for e in rhs_form[1:])
    start, end = ld.span(attrs, lhs + rhs)
    return A.AssignStmt(lhs, tok, rhs, start, end)


@_register(_STMT_DISPATCH, "return")
def _stmt_return(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Node:
    results = tuple(_load_expr(ld, e) for e in pos)
    start, end = ld.span(attrs, results)
    return A.ReturnStmt(results, start, end)


@_register(_STMT_DISPATCH, "send")
def _stmt_send(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Node:
    if len(pos) != 2:
        raise DumpError("expected (send CHAN VALUE)", form=pos)
    chan = _load_expr(ld, pos[0])
    value = _load_expr(ld, pos[1])
    start, end = ld.span(attrs, (chan, value))
    return A.SendStmt(chan, value, start, end)


@_register(_STMT_DISPATCH, "if")
def _stmt_if(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Node:
    if len(pos) not in (2, 3):
        raise DumpError("expected (if COND BLOCK ELSE?)", form=pos)
    cond = _load_expr(ld, pos[0])
    body = _load_block(ld, pos[1])
    orelse = _load_stmt(ld, pos[2]) if len(pos) == 3 else None
    children = (cond, body) + ((orelse,) if orelse is not None else ())
    start, end = ld.span(attrs, children)
    return A.IfStmt(cond, body, orelse, start, end)


@_register(_STMT_DISPATCH, "for")
def _stmt_for(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Node:
    if len(pos) != 1:
        raise DumpError("expected (for [:init S] [:cond E] [:post S] BLOCK)", form=pos)
    init = _load_stmt(ld, attrs["init"]) if "init" in attrs else None
    cond = _load_expr(ld, attrs["cond"]) if "cond" in attrs else None
    post = _load_stmt(ld, attrs["post"]) if "post" in attrs else None
    body = _load_block(ld, pos[0])
    children = tuple(n for n in (init, cond, post, body) if n is not None)
    start, end = ld.span(attrs, children)
    return A.ForStmt(body, init, cond, post, start, end)


@_register(_STMT_DISPATCH, "func-decl")
def _stmt_func_decl(ld: _Loader, pos: list, attrs: Dict[str, Sexp]) -> A.Node:
    if len(pos) != 2:
        raise DumpError("expected (func-decl NAME BLOCK)", form=pos)
    name = _as_str(pos[0])
    name_attrs: Dict[str, Sexp] = {}
    if "pos" in attrs:
        p = ld.pos(attrs)
        assert p is not None
        name_attrs["pos"] = [p.line, p.column + len("func ")]
    ident = A.Ident(name, *ld.span(name_attrs, (), width=len(name)))
    assert ld.pkg is not None
    obj = ld.pkg.scope.lookup(name)
    if isinstance(obj, Func):
        ld.info.uses[ident] = obj
    body = _load_block(ld, pos[1])
    start, end = ld.span(attrs, (ident, body))
    return A.FuncDecl(ident, body, start, end)


def _load_file(ld: _Loader, s: Sexp) -> A.File:
    lst = _expect_list(s, min_len=2, tag="file")
    ld.file = _as_str(lst[1])
    decls = tuple(_load_stmt(ld, d) for d in lst[2:])
    start = A.Pos(ld.file, 1, 1)
    end = decls[-1].end if decls else start
    return A.File(ld.file, decls, start, end)


# ═══════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════

def load_dump(text: str, source: str = "<string>") -> Unit:
    """Load one package dump from *text*.

    Raises
    ------
    DumpError
        If *text* is not a well-formed dump.
    """
    try:
        raw = sexpdata.loads(text, nil=None, true=None)
    except Exception as exc:  # sexpdata has no common error base
        raise DumpError(f"not a valid S-expression: {exc}", source=source) from exc

    ld = _Loader(source)
    try:
        pkg = _load_package(ld, raw)
        ld.pkg = pkg
        files = [
            _load_file(ld, part)
            for part in raw[3:]
            if isinstance(part, list) and part and _head(part) == "file"
        ]
    except DumpError as exc:
        raise exc.with_source(source)

    logger.debug(
        "loaded package %s from %s: %d file(s), %d fact(s)",
        pkg.path, source, len(files), len(ld.info.types),
    )
    return Unit(package=pkg, files=files, info=ld.info, source=source)


def load_dump_file(path: Union[str, Path]) -> Unit:
    """Load one package dump from the file at *path*."""
    p = Path(path)
    return load_dump(p.read_text(encoding="utf-8"), source=str(p))
