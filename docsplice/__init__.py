"""Assemble multi-page documentation from markdown with directives and cross references.

docsplice parses an ordered set of markdown pages, expands ``docs``,
``autodocs``, ``contents``, ``index`` and ``meta`` directive fences using an
injected symbol documentation provider, and resolves ``[text](@ref)`` links to
headings and spliced symbols anywhere in the build.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``ExpansionEngine``: The directive expansion and reference resolution pipeline.

Examples
--------
>>> from docsplice import ExpansionEngine
>>> from docsplice.providers import StaticSymbolProvider
>>> result = ExpansionEngine(StaticSymbolProvider()).run([("index.md", "# Home\\n")])
>>> result.ok
True
"""

from __future__ import annotations

from .cli import app, main
from .engine import BuildResult, ExpansionEngine

__all__ = ["BuildResult", "ExpansionEngine", "app", "main"]
