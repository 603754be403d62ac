#!/usr/bin/env python3
"""untypedconst/main.py – CLI entry-point.

Usage examples
--------------
    # Check one package dump, GCC-style output
    python -m untypedconst units.sexp

    # Several dumps, JSON output written to a file
    untypedconst --format json -o findings.json a.sexp b.sexp

    # Show what the loader and the pass are doing
    untypedconst -vv units.sexp

Exit codes
----------
    0   Success, no diagnostics.
    1   One or more diagnostics were reported.
    2   Infrastructure failure (missing file, malformed dump, ...).

The module doubles as ``python -m untypedconst`` via the companion
``untypedconst/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from untypedconst import __version__
from untypedconst.analyzer import ANALYZER, run_analyzer
from untypedconst.diagnostics import Diagnostic, write_json, write_text
from untypedconst.dump import load_dump_file
from untypedconst.errors import DumpError

_log = logging.getLogger("untypedconst")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_FINDINGS: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``untypedconst`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("untypedconst")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="untypedconst",
        description=ANALYZER.doc,
    )
    parser.add_argument(
        "dumps",
        metavar="DUMP",
        nargs="+",
        help="Package dump file(s) to check.",
    )
    parser.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Diagnostic output format (default: text).",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _check_all(paths: Sequence[str]) -> List[Diagnostic]:
    diagnostics: List[Diagnostic] = []
    for raw in paths:
        path = _resolve_path(raw, label="dump file")
        try:
            unit = load_dump_file(path)
        except DumpError as exc:
            _log.error("cannot load %s", exc)
            raise SystemExit(EXIT_INFRA)
        except OSError as exc:
            _log.error("cannot read %s: %s", path, exc)
            raise SystemExit(EXIT_INFRA)
        diagnostics.extend(run_analyzer(unit))
    return diagnostics


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the untypedconst CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        diagnostics = _check_all(args.dumps)
        stream = _open_output(args.output)
        try:
            if args.format == "json":
                count = write_json(diagnostics, stream)
            else:
                count = write_text(diagnostics, stream)
        finally:
            if stream is not sys.stdout:
                stream.close()
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130  # Standard UNIX convention for SIGINT
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except OSError as exc:
        _log.error("cannot write output: %s", exc)
        return EXIT_INFRA

    _log.info("%d diagnostic(s) in %d package(s)", count, len(args.dumps))
    return EXIT_FINDINGS if count else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
