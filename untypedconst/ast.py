"""untypedconst/ast.py – Syntax tree of one type-checked compilation unit.

The tree is produced by :mod:`untypedconst.dump` and walked by
:mod:`untypedconst.inspector`.  Only the node kinds the analysis cares
about are modelled: the expression forms that can appear in a constant
expression, the five "site" forms, and enough statement structure to
reach them.

Design invariants
-----------------
* Every node is a frozen dataclass; children are tuples.
* Nodes compare and hash by *identity* (``eq=False``).  The type-fact
  table in :mod:`untypedconst.typesinfo` is keyed by node, and two
  literals with the same text at different positions are different
  keys.
* Every node records ``pos`` (first character) and ``end`` (one past
  the last character).
* ``Expr`` is a closed union: code that dispatches over expression
  kinds handles each member explicitly and routes anything else to a
  default branch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple, Union


# ════════════════════════════════════════════════════════════════════════
# §1  Positions
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True, order=True)
class Pos:
    """A position in a source file (1-based line and column)."""

    file: str = "<unknown>"
    line: int = 0
    column: int = 0

    def shifted(self, columns: int) -> Pos:
        return Pos(self.file, self.line, self.column + columns)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


NO_POS = Pos()


class Node:
    """Common base of all syntax nodes."""

    __slots__ = ()

    pos: Pos
    end: Pos

    def children(self) -> Iterator[Node]:
        return iter(())


# ════════════════════════════════════════════════════════════════════════
# §2  Expressions
# ════════════════════════════════════════════════════════════════════════


class LitKind(Enum):
    """Kinds of basic literal."""

    INT = "INT"
    FLOAT = "FLOAT"
    IMAG = "IMAG"
    CHAR = "CHAR"
    STRING = "STRING"


@dataclass(frozen=True, eq=False, slots=True)
class BasicLit(Node):
    """A numeric, rune or string literal, e.g. ``5`` or ``"m"``."""

    kind: LitKind
    value: str
    pos: Pos = NO_POS
    end: Pos = NO_POS


@dataclass(frozen=True, eq=False, slots=True)
class Ident(Node):
    name: str
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, eq=False, slots=True)
class ParenExpr(Node):
    x: Expr
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.x


@dataclass(frozen=True, eq=False, slots=True)
class UnaryExpr(Node):
    op: str
    x: Expr
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.x


@dataclass(frozen=True, eq=False, slots=True)
class BinaryExpr(Node):
    op: str
    x: Expr
    y: Expr
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.x
        yield self.y


@dataclass(frozen=True, eq=False, slots=True)
class CallExpr(Node):
    """A function call or a type conversion; the two share syntax."""

    fun: Expr
    args: Tuple[Expr, ...] = ()
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.fun
        yield from self.args


@dataclass(frozen=True, eq=False, slots=True)
class SelectorExpr(Node):
    """``x.sel`` – a field, method or package-qualified name."""

    x: Expr
    sel: Ident
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.x
        yield self.sel


@dataclass(frozen=True, eq=False, slots=True)
class IndexExpr(Node):
    x: Expr
    index: Expr
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.x
        yield self.index


@dataclass(frozen=True, eq=False, slots=True)
class KeyValueExpr(Node):
    """``key: value`` inside a composite literal."""

    key: Expr
    value: Expr
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.key
        yield self.value


@dataclass(frozen=True, eq=False, slots=True)
class CompositeLit(Node):
    """``T{elts...}`` for struct, array, slice and map types."""

    type: Optional[Expr]
    elts: Tuple[Expr, ...] = ()
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        if self.type is not None:
            yield self.type
        yield from self.elts


@dataclass(frozen=True, eq=False, slots=True)
class StarExpr(Node):
    x: Expr
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.x


@dataclass(frozen=True, eq=False, slots=True)
class TypeExpr(Node):
    """Type syntax kept as written, e.g. ``[]Meters`` or ``map[Key]int``."""

    text: str
    pos: Pos = NO_POS
    end: Pos = NO_POS


Expr = Union[
    BasicLit,
    Ident,
    ParenExpr,
    UnaryExpr,
    BinaryExpr,
    CallExpr,
    SelectorExpr,
    IndexExpr,
    KeyValueExpr,
    CompositeLit,
    StarExpr,
    TypeExpr,
]


def unparen(expr: Expr) -> Expr:
    """Strip any number of enclosing parentheses."""
    while isinstance(expr, ParenExpr):
        expr = expr.x
    return expr


# ════════════════════════════════════════════════════════════════════════
# §3  Statements and declarations
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, eq=False, slots=True)
class BlockStmt(Node):
    stmts: Tuple[Stmt, ...] = ()
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield from self.stmts


@dataclass(frozen=True, eq=False, slots=True)
class ExprStmt(Node):
    x: Expr
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.x


@dataclass(frozen=True, eq=False, slots=True)
class AssignStmt(Node):
    """``lhs tok rhs`` where ``tok`` is ``=``, ``:=``, ``+=`` ..."""

    lhs: Tuple[Expr, ...]
    tok: str
    rhs: Tuple[Expr, ...]
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield from self.lhs
        yield from self.rhs


@dataclass(frozen=True, eq=False, slots=True)
class ReturnStmt(Node):
    results: Tuple[Expr, ...] = ()
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield from self.results


@dataclass(frozen=True, eq=False, slots=True)
class SendStmt(Node):
    """``chan <- value``"""

    chan: Expr
    value: Expr
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.chan
        yield self.value


@dataclass(frozen=True, eq=False, slots=True)
class IfStmt(Node):
    cond: Expr
    body: BlockStmt
    orelse: Optional[Stmt] = None
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.cond
        yield self.body
        if self.orelse is not None:
            yield self.orelse


@dataclass(frozen=True, eq=False, slots=True)
class ForStmt(Node):
    body: BlockStmt
    init: Optional[Stmt] = None
    cond: Optional[Expr] = None
    post: Optional[Stmt] = None
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        if self.init is not None:
            yield self.init
        if self.cond is not None:
            yield self.cond
        if self.post is not None:
            yield self.post
        yield self.body


Stmt = Union[
    BlockStmt,
    ExprStmt,
    AssignStmt,
    ReturnStmt,
    SendStmt,
    IfStmt,
    ForStmt,
]


@dataclass(frozen=True, eq=False, slots=True)
class FuncDecl(Node):
    name: Ident
    body: BlockStmt
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield self.name
        yield self.body


@dataclass(frozen=True, eq=False, slots=True)
class File(Node):
    """Root of one source file."""

    name: str
    decls: Tuple[Union[FuncDecl, Stmt], ...] = field(default=())
    pos: Pos = NO_POS
    end: Pos = NO_POS

    def children(self) -> Iterator[Node]:
        yield from self.decls
