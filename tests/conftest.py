# tests/conftest.py
"""
Shared fixtures for the untypedconst test-suite.

Provides package dumps covering each site kind, and small builders for
constructing syntax nodes and type facts by hand so the classifier and
the reporting policy can be tested without loading a dump.
"""

from __future__ import annotations

from typing import List, Optional
from unittest.mock import MagicMock

import pytest

from untypedconst import ast as A
from untypedconst.analyzer import ANALYZER
from untypedconst.diagnostics import Diagnostic
from untypedconst.dump import Unit, load_dump
from untypedconst.reporting import Pass
from untypedconst.types import (
    Basic,
    Const,
    Named,
    Package,
    Type,
    TypeName,
    basic,
)
from untypedconst.typesinfo import Mode, TypeAndValue, TypesInfo


# ═══════════════════════════════════════════════════════════════════════
#  Package dumps
# ═══════════════════════════════════════════════════════════════════════

UNITS_PATH = "example.com/units"
OTHER_PATH = "example.com/other"

# package units
#
#   type Meters int
#   func F(d Meters)
#   func main() { F(5) }
CALL_ARG_DUMP = r'''
(package "example.com/units" units
  (scope
    (typename Meters (basic int))
    (func F (signature (params (ref Meters)))))
  (file "units.go"
    (func-decl main :pos (3 1)
      (block
        (expr-stmt
          (call (ident F :pos (4 2))
                (lit INT "5" :pos (4 4) :type (ref Meters))))))))
'''

# func G() Meters { return Meters(5) + 3 }
TYPED_RETURN_DUMP = r'''
(package "example.com/units" units
  (scope
    (typename Meters (basic int))
    (func G (signature (results (ref Meters)))))
  (file "units.go"
    (func-decl G :pos (3 1)
      (block
        (return
          (binary "+"
            (call (ident Meters :pos (4 9))
                  (lit INT "5" :pos (4 16) :type (ref Meters))
                  :type (ref Meters) :value 5)
            (lit INT "3" :pos (4 21) :type (ref Meters))
            :type (ref Meters) :value 8))))))
'''

# func H() Meters { return 5 }
UNTYPED_RETURN_DUMP = r'''
(package "example.com/units" units
  (scope
    (typename Meters (basic int))
    (func H (signature (results (ref Meters)))))
  (file "units.go"
    (func-decl H :pos (3 1)
      (block
        (return (lit INT "5" :pos (3 27) :type (ref Meters)))))))
'''

# xs := []Meters{1, 2}
COMPOSITE_DUMP = r'''
(package "example.com/units" units
  (scope
    (typename Meters (basic int)))
  (file "units.go"
    (func-decl main :pos (3 1)
      (block
        (assign ":="
          (lhs (ident xs :pos (4 2)))
          (rhs (composite (type "[]Meters" :pos (4 8) :type (slice (ref Meters)))
                          (lit INT "1" :pos (4 17) :type (ref Meters))
                          (lit INT "2" :pos (4 20) :type (ref Meters)))))))))
'''

# ch <- 5, with ch of type chan Meters
SEND_DUMP = r'''
(package "example.com/units" units
  (scope
    (typename Meters (basic int))
    (var ch (chan (ref Meters))))
  (file "units.go"
    (func-decl main :pos (5 1)
      (block
        (send (ident ch :pos (6 2))
              (lit INT "5" :pos (6 8) :type (ref Meters)))))))
'''

# m[0] where the key type is unexported: once from this package, once
# from an imported one, once exported from an imported one.
INDEX_DUMP = r'''
(package "example.com/units" units
  (imports
    (package "example.com/other" other
      (scope
        (typename key (basic int))
        (typename Key (basic int))
        (var M (map (ref key) (basic string)))
        (var N (map (ref Key) (basic string))))))
  (scope
    (typename key (basic int))
    (var m (map (ref key) (basic string))))
  (file "units.go"
    (func-decl main :pos (9 1)
      (block
        (expr-stmt
          (index (ident m :pos (10 2))
                 (lit INT "0" :pos (10 4) :type (ref key))))
        (expr-stmt
          (index (selector (ident other :pos (11 2)) M)
                 (lit INT "0" :pos (11 10) :type (ref "example.com/other" key))))
        (expr-stmt
          (index (selector (ident other :pos (12 2)) N)
                 (lit INT "0" :pos (12 10) :type (ref "example.com/other" Key))))))))
'''

# Composite map literal and struct literal with keyed elements.
#
#   type Unit string
#   type Point struct { X Meters }
#   _ = map[Unit]Meters{"m": 1}
#   _ = Point{X: 2}
KEYED_COMPOSITE_DUMP = r'''
(package "example.com/units" units
  (scope
    (typename Meters (basic int))
    (typename Unit (basic string))
    (typename Point (struct (field X (ref Meters)))))
  (file "units.go"
    (func-decl main :pos (5 1)
      (block
        (assign "="
          (lhs (ident _ :pos (6 2)))
          (rhs (composite (type "map[Unit]Meters" :pos (6 6))
                 (key-value (lit STRING "`m`" :pos (6 26) :type (ref Unit))
                            (lit INT "1" :pos (6 31) :type (ref Meters))))))
        (assign "="
          (lhs (ident _ :pos (7 2)))
          (rhs (composite (ident Point :pos (7 6))
                 (key-value (ident X :pos (7 12))
                            (lit INT "2" :pos (7 15) :type (ref Meters))))))))))
'''

# Constants and calls of every flavour.
#
#   const Ten = 10            // untyped
#   const TenM Meters = 10    // typed
#   type Flag bool
#   type Wave complex128
#   func F(d Meters)
#   func Set(f Flag)
#   func Tune(w Wave)
#   func Pair(a, b Meters)
CONSTANTS_DUMP = r'''
(package "example.com/units" units
  (scope
    (typename Meters (basic int))
    (typename Flag (basic bool))
    (typename Wave (basic complex128))
    (const Ten (basic untyped-int) 10)
    (const TenM (ref Meters) 10)
    (func F (signature (params (ref Meters))))
    (func Set (signature (params (ref Flag))))
    (func Tune (signature (params (ref Wave))))
    (func Pair (signature (params (ref Meters) (ref Meters)))))
  (file "units.go"
    (func-decl main :pos (12 1)
      (block
        (expr-stmt (call (ident F :pos (13 2)) (ident Ten :pos (13 4) :type (ref Meters))))
        (expr-stmt (call (ident F :pos (14 2)) (ident TenM :pos (14 4))))
        (expr-stmt (call (ident Set :pos (15 2))
                         (binary "<" (ident TenM :pos (15 6)) (ident TenM :pos (15 13))
                                 :type (ref Flag) :value false)))
        (expr-stmt (call (ident Set :pos (16 2)) (ident true :pos (16 6) :type (ref Flag))))
        (expr-stmt (call (ident Tune :pos (17 2))
                         (call (ident complex :pos (17 7))
                               (lit INT "1" :pos (17 15))
                               (lit INT "2" :pos (17 18))
                               :type (ref Wave) :value (complex 1 2))))
        (expr-stmt (call (ident F :pos (18 2))
                         (paren (unary "-" (lit INT "1" :pos (18 6)) :pos (18 5))
                                :pos (18 4) :type (ref Meters) :value -1)))
        (expr-stmt (call (ident Pair :pos (19 2))
                         (lit INT "1" :pos (19 7) :type (ref Meters))
                         (lit INT "2" :pos (19 10) :type (ref Meters))))
        (expr-stmt (call (ident F :pos (20 2))
                         (call (ident Meters :pos (20 4))
                               (lit INT "7" :pos (20 11) :type (ref Meters))
                               :type (ref Meters) :value 7)))
        (expr-stmt (call (ident len :pos (21 2))
                         (lit STRING "`abc`" :pos (21 6) :type (ref Meters))))))))
'''


def load(text: str) -> Unit:
    return load_dump(text, source="<test>")


# ═══════════════════════════════════════════════════════════════════════
#  Hand-built host model
# ═══════════════════════════════════════════════════════════════════════

def make_named(
    name: str,
    underlying: Type,
    pkg: Optional[Package] = None,
) -> Named:
    obj = TypeName(name, pkg=pkg)
    named = Named(obj, underlying)
    obj.type = named
    return named


def make_lit(text: str = "5", kind: A.LitKind = A.LitKind.INT, line: int = 1, col: int = 1) -> A.BasicLit:
    start = A.Pos("t.go", line, col)
    return A.BasicLit(kind, text, start, start.shifted(len(text)))


def make_pass(
    pkg: Package,
    info: Optional[TypesInfo] = None,
    report: Optional[MagicMock] = None,
) -> Pass:
    return Pass(
        analyzer=ANALYZER,
        pkg=pkg,
        files=[],
        info=info or TypesInfo(),
        report=report or MagicMock(),
    )


def constant(typ: Type, value) -> TypeAndValue:
    return TypeAndValue(type=typ, value=value, mode=Mode.CONSTANT)


def reported(report: MagicMock) -> List[Diagnostic]:
    return [c.args[0] for c in report.call_args_list]


@pytest.fixture
def units_pkg() -> Package:
    return Package(UNITS_PATH, "units")


@pytest.fixture
def other_pkg() -> Package:
    return Package(OTHER_PATH, "other")


@pytest.fixture
def meters(units_pkg: Package) -> Named:
    named = make_named("Meters", basic("int"), units_pkg)
    units_pkg.scope.insert(named.obj)
    return named


@pytest.fixture
def untyped_const(units_pkg: Package) -> Const:
    c = Const("Ten", basic("untyped int"), units_pkg, 10)
    units_pkg.scope.insert(c)
    return c


@pytest.fixture
def typed_const(units_pkg: Package, meters: Named) -> Const:
    c = Const("TenM", meters, units_pkg, 10)
    units_pkg.scope.insert(c)
    return c
