"""untypedconst/types.py – Type and object model of a checked package.

A deliberately small mirror of what a Go type checker hands an
analysis pass: basic (predeclared) types including the *untyped*
constant kinds, composite types, named (defined) types, the objects
names resolve to, and package scopes.

Every ``Type`` answers two questions the analysis asks:

* ``underlying()`` – the representation type (identity for everything
  except :class:`Named`);
* ``str(t)`` – the display name used in messages; a named type is
  qualified by its package *path*, e.g. ``example.com/units.Meters``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


# ════════════════════════════════════════════════════════════════════════
# §1  Types
# ════════════════════════════════════════════════════════════════════════


class Type:
    """Base of all types."""

    __slots__ = ()

    def underlying(self) -> Type:
        return self


class BasicKind(Enum):
    """Predeclared scalar kinds.  The value is the spelling."""

    BOOL = "bool"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UINTPTR = "uintptr"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    COMPLEX64 = "complex64"
    COMPLEX128 = "complex128"
    STRING = "string"
    UNSAFE_POINTER = "unsafe.Pointer"

    UNTYPED_BOOL = "untyped bool"
    UNTYPED_INT = "untyped int"
    UNTYPED_RUNE = "untyped rune"
    UNTYPED_FLOAT = "untyped float"
    UNTYPED_COMPLEX = "untyped complex"
    UNTYPED_STRING = "untyped string"
    UNTYPED_NIL = "untyped nil"

    # aliases
    BYTE = "byte"
    RUNE = "rune"


_UNTYPED_KINDS = frozenset({
    BasicKind.UNTYPED_BOOL,
    BasicKind.UNTYPED_INT,
    BasicKind.UNTYPED_RUNE,
    BasicKind.UNTYPED_FLOAT,
    BasicKind.UNTYPED_COMPLEX,
    BasicKind.UNTYPED_STRING,
    BasicKind.UNTYPED_NIL,
})


@dataclass(frozen=True, slots=True)
class Basic(Type):
    kind: BasicKind

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def is_untyped(self) -> bool:
        return self.kind in _UNTYPED_KINDS

    def __str__(self) -> str:
        return self.kind.value


#: One shared instance per kind, indexed by spelling (``"untyped int"``,
#: ``"int"``, ...).  Dumps may also spell untyped kinds with a hyphen.
BASIC_TYPES: Dict[str, Basic] = {k.value: Basic(k) for k in BasicKind}


def basic(name: str) -> Basic:
    """Look up a basic type by spelling; raises ``KeyError`` if unknown."""
    return BASIC_TYPES[name.replace("-", " ")]


@dataclass(frozen=True, slots=True)
class Pointer(Type):
    elem: Type

    def __str__(self) -> str:
        return f"*{self.elem}"


@dataclass(frozen=True, slots=True)
class Slice(Type):
    elem: Type

    def __str__(self) -> str:
        return f"[]{self.elem}"


@dataclass(frozen=True, slots=True)
class Array(Type):
    length: int
    elem: Type

    def __str__(self) -> str:
        return f"[{self.length}]{self.elem}"


@dataclass(frozen=True, slots=True)
class Map(Type):
    key: Type
    elem: Type

    def __str__(self) -> str:
        return f"map[{self.key}]{self.elem}"


@dataclass(frozen=True, slots=True)
class Chan(Type):
    elem: Type

    def __str__(self) -> str:
        return f"chan {self.elem}"


@dataclass(frozen=True, slots=True)
class Struct(Type):
    fields: Tuple[Tuple[str, Type], ...] = ()

    def __str__(self) -> str:
        body = "; ".join(f"{n} {t}" for n, t in self.fields)
        return f"struct{{{body}}}"


@dataclass(frozen=True, slots=True)
class Signature(Type):
    params: Tuple[Type, ...] = ()
    results: Tuple[Type, ...] = ()

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.params)
        if not self.results:
            return f"func({params})"
        if len(self.results) == 1:
            return f"func({params}) {self.results[0]}"
        results = ", ".join(str(r) for r in self.results)
        return f"func({params}) ({results})"


@dataclass(frozen=True, slots=True)
class Interface(Type):
    def __str__(self) -> str:
        return "interface{}"


class Named(Type):
    """A defined type: its own identity over an underlying representation.

    The underlying type may be set after construction so that a dump can
    declare a type before its representation is known; it is never
    changed once set.
    """

    __slots__ = ("obj", "_underlying")

    def __init__(self, obj: TypeName, underlying: Optional[Type] = None) -> None:
        self.obj = obj
        self._underlying = underlying

    def set_underlying(self, underlying: Type) -> None:
        if self._underlying is not None:
            raise ValueError(f"underlying type of {self} already set")
        # A named type's underlying type is never itself named.
        self._underlying = underlying.underlying()

    def underlying(self) -> Type:
        if self._underlying is None:
            raise ValueError(f"underlying type of {self} not set")
        return self._underlying

    def __str__(self) -> str:
        pkg = self.obj.pkg
        if pkg is None:
            return self.obj.name
        return f"{pkg.path}.{self.obj.name}"

    def __repr__(self) -> str:
        return f"Named({self})"


# ════════════════════════════════════════════════════════════════════════
# §2  Objects
# ════════════════════════════════════════════════════════════════════════


@dataclass(eq=False)
class Object:
    """A named language entity.  ``pkg`` is None for universe objects."""

    name: str
    type: Optional[Type] = None
    pkg: Optional[Package] = field(default=None, repr=False)

    @property
    def exported(self) -> bool:
        return self.name[:1].isupper()

    def __str__(self) -> str:
        kind = type(self).__name__.lower()
        if self.pkg is None:
            return f"{kind} {self.name}"
        return f"{kind} {self.pkg.path}.{self.name}"


@dataclass(eq=False)
class Const(Object):
    value: Any = None


@dataclass(eq=False)
class Var(Object):
    pass


@dataclass(eq=False)
class Func(Object):
    pass


@dataclass(eq=False)
class Builtin(Object):
    pass


@dataclass(eq=False)
class TypeName(Object):
    pass


@dataclass(eq=False)
class PkgName(Object):
    """An imported package name, e.g. ``units`` in ``units.Meter``."""

    imported: Optional[Package] = field(default=None, repr=False)


# ════════════════════════════════════════════════════════════════════════
# §3  Scopes and packages
# ════════════════════════════════════════════════════════════════════════


class Scope:
    """Name → object table with an optional enclosing scope."""

    def __init__(self, parent: Optional[Scope] = None) -> None:
        self.parent = parent
        self._elems: Dict[str, Object] = {}

    def insert(self, obj: Object) -> Optional[Object]:
        """Insert *obj*; return the existing object on a name clash."""
        existing = self._elems.get(obj.name)
        if existing is not None:
            return existing
        self._elems[obj.name] = obj
        return None

    def lookup(self, name: str) -> Optional[Object]:
        """Look *name* up in this scope only."""
        return self._elems.get(name)

    def lookup_parent(self, name: str) -> Optional[Object]:
        """Look *name* up here, then in enclosing scopes."""
        scope: Optional[Scope] = self
        while scope is not None:
            obj = scope._elems.get(name)
            if obj is not None:
                return obj
            scope = scope.parent
        return None


class Package:
    """A checked package: import path, name and top-level scope."""

    def __init__(self, path: str, name: str) -> None:
        self.path = path
        self.name = name
        self.scope = Scope(parent=UNIVERSE)
        self.imports: Dict[str, Package] = {}

    def __repr__(self) -> str:
        return f"Package({self.path!r})"


# ════════════════════════════════════════════════════════════════════════
# §4  Universe
# ════════════════════════════════════════════════════════════════════════

_BUILTIN_FUNCS = (
    "append", "cap", "clear", "close", "complex", "copy", "delete",
    "imag", "len", "make", "max", "min", "new", "panic", "print",
    "println", "real", "recover",
)


def _make_universe() -> Scope:
    scope = Scope()
    for kind in BasicKind:
        if kind in _UNTYPED_KINDS or kind is BasicKind.UNSAFE_POINTER:
            continue
        scope.insert(TypeName(kind.value, BASIC_TYPES[kind.value]))
    error_obj = TypeName("error")
    error_obj.type = Named(error_obj, Interface())
    scope.insert(error_obj)
    scope.insert(TypeName("any", Interface()))
    scope.insert(Const("true", BASIC_TYPES["untyped bool"], True))
    scope.insert(Const("false", BASIC_TYPES["untyped bool"], False))
    scope.insert(Const("iota", BASIC_TYPES["untyped int"], 0))
    scope.insert(Var("nil", BASIC_TYPES["untyped nil"]))
    for name in _BUILTIN_FUNCS:
        scope.insert(Builtin(name))
    return scope


UNIVERSE: Scope = _make_universe()
