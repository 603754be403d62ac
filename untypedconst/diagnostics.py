"""
untypedconst/diagnostics.py
═══════════════════════════

Diagnostic model and output formats.

A diagnostic is created once, handed to the pass's report sink, and
never changed afterwards.  Two serialisations are provided:

  * ``to_gcc_format()`` – ``file:line:col: message [category]``
  * ``to_json()``       – one flat dict per finding, suitable for
                          ``json.dumps`` / JSON-lines output
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, TextIO

from untypedconst.ast import Pos

__all__ = ["Diagnostic", "write_text", "write_json"]


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """
    A single finding.

    Attributes
    ----------
    start    : position of the first character of the flagged expression
    end      : position one past its last character
    message  : human-readable description
    category : name of the analyzer that produced it
    """
    start: Pos
    end: Pos
    message: str
    category: str = "untypedconst"

    def to_json(self) -> Dict[str, Any]:
        return {
            "file": self.start.file,
            "line": self.start.line,
            "column": self.start.column,
            "endLine": self.end.line,
            "endColumn": self.end.column,
            "message": self.message,
            "category": self.category,
        }

    def to_json_str(self) -> str:
        """Single-line JSON string."""
        return json.dumps(self.to_json())

    def to_gcc_format(self) -> str:
        return f"{self.start}: {self.message} [{self.category}]"


def write_text(diagnostics: Iterable[Diagnostic], stream: TextIO) -> int:
    """Write one GCC-style line per diagnostic; return the count."""
    count = 0
    for diag in diagnostics:
        stream.write(diag.to_gcc_format() + "\n")
        count += 1
    return count


def write_json(diagnostics: Iterable[Diagnostic], stream: TextIO) -> int:
    """Write all diagnostics as one JSON array; return the count."""
    items: List[Dict[str, Any]] = [d.to_json() for d in diagnostics]
    json.dump(items, stream, indent=2)
    stream.write("\n")
    return len(items)
