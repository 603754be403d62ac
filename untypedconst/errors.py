# untypedconst/errors.py
"""
Error types for untypedconst.

The analysis itself never fails on user input: internal-invariant
violations are logged and the affected node is treated conservatively.
Errors are raised only while *loading* a compilation unit.

Error hierarchy
───────────────
  UntypedConstError (base)
  └── DumpError              - malformed dump file
      └── UnresolvedNameError - a name absent from every scope
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "UntypedConstError",
    "DumpError",
    "UnresolvedNameError",
]


class UntypedConstError(Exception):
    """Base class for all errors raised by this package."""


class DumpError(UntypedConstError):
    """Raised when a dump cannot be mapped onto the host model.

    Attributes
    ----------
    message : what was wrong
    source  : name of the dump being loaded, if known
    form    : the offending S-expression, if any
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        form: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source = source
        self.form = form

    def with_source(self, source: str) -> DumpError:
        if self.source is None:
            self.source = source
        return self

    def __str__(self) -> str:
        text = self.message
        if self.form is not None:
            text = f"{text}: {_abbrev(self.form)}"
        if self.source:
            text = f"{self.source}: {text}"
        return text


class UnresolvedNameError(DumpError):
    """A ``ref`` or ``:obj`` names something no scope declares."""

    def __init__(self, kind: str, name: str, pkg_path: Optional[str] = None) -> None:
        where = f" in package {pkg_path!r}" if pkg_path else ""
        super().__init__(f"unresolved {kind} {name!r}{where}")
        self.kind = kind
        self.name = name
        self.pkg_path = pkg_path


def _abbrev(form: Any, limit: int = 60) -> str:
    text = repr(form)
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text
