"""Cyclopts CLI entrypoint for building docsplice documentation.

The ``docsplice`` console script reads a ``docsplice.yaml`` build
configuration, expands directives, resolves ``@ref`` cross references and
writes one HTML page per source page. ``docsplice check`` runs the same
pipeline without writing output, which suits CI jobs that only need to know
whether every reference resolves.

Examples
--------
Build the documentation described by the default configuration:

>>> from docsplice.cli import main
>>> main()  # doctest: +SKIP

Check a configuration in another directory:

>>> from docsplice.cli import app
>>> app(["check", "--config", "docs/docsplice.yaml"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import os
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import DEFAULT_CONFIG_NAME
from .builder import DocumentBuilder
from .config import load_build_config

if typ.TYPE_CHECKING:
    from .diagnostics import DiagnosticsCollector

DEFAULT_CONFIG = Path(DEFAULT_CONFIG_NAME)

app = App(name="docsplice", config=cyclopts.config.Env("DOCSPLICE_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _print_diagnostics(diagnostics: DiagnosticsCollector) -> None:
    """Print every diagnostic to stderr followed by a one-line summary."""
    for diagnostic in diagnostics:
        print(diagnostic.format(), file=sys.stderr)
    errors = len(diagnostics.errors)
    warnings = len(diagnostics.warnings)
    print(f"{errors} error(s), {warnings} warning(s)", file=sys.stderr)


@app.command(help="Build HTML documentation from the configured markdown pages.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to build config", env_var="DOCSPLICE_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="DOCSPLICE_OUTPUT_DIR"),
    ] = None,
    report: typ.Annotated[
        Path | None,
        Parameter(help="Write a JSON diagnostics report", env_var="DOCSPLICE_REPORT"),
    ] = None,
) -> None:
    """Build the documentation described by ``config``.

    Parameters
    ----------
    config : Path, optional
        Path to the ``docsplice.yaml`` configuration file (overridable via
        ``DOCSPLICE_CONFIG``).
    output_dir : Path or None, optional
        Override the configured output directory.
    report : Path or None, optional
        Override the configured JSON diagnostics report path.

    Raises
    ------
    SystemExit
        With status 1 when any error-severity diagnostic was raised.
    """
    build_config = load_build_config(config)
    outcome = DocumentBuilder(build_config, output_dir=output_dir, report_path=report).run()
    for path in outcome.written:
        print(f"wrote {_format_path(path)}")
    if outcome.report_path:
        print(f"wrote {_format_path(outcome.report_path)}")
    _print_diagnostics(outcome.result.diagnostics)
    if not outcome.result.ok:
        raise SystemExit(1)


@app.command(help="Expand directives and resolve references without writing output.")
def check(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to build config", env_var="DOCSPLICE_CONFIG")
    ] = DEFAULT_CONFIG,
) -> None:
    """Report diagnostics for ``config`` and exit non-zero on errors."""
    result = DocumentBuilder(load_build_config(config)).check()
    _print_diagnostics(result.diagnostics)
    if not result.ok:
        raise SystemExit(1)


def main() -> None:
    """Invoke the Cyclopts application that powers the `docsplice` command.

    Logging verbosity follows ``DOCSPLICE_LOG_LEVEL`` (default ``WARNING``).
    """
    logging.basicConfig(
        level=os.getenv("DOCSPLICE_LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
