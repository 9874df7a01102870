"""High-level orchestration for a complete docsplice build.

This module connects the filesystem to the expansion pipeline. It reads the
configured pages from ``source_dir`` (in configuration order), assembles the
symbol documentation provider chain, runs :class:`~docsplice.engine.ExpansionEngine`
and, unless only a check was requested, renders every resolved page through
the ``page.jinja`` template into ``output_dir``. A JSON diagnostics report is
written alongside when configured.

Example
-------
>>> from pathlib import Path
>>> from docsplice.builder import DocumentBuilder
>>> from docsplice.config import load_build_config
>>> config = load_build_config(Path("docs/docsplice.yaml"))  # doctest: +SKIP
>>> report = DocumentBuilder(config).run()  # doctest: +SKIP
>>> report.result.ok  # doctest: +SKIP
True
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import logging
import posixpath
import typing as typ
from pathlib import Path

import msgspec.json as msgspec_json
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .engine import BuildResult, ExpansionEngine, output_path
from .providers import ChainSymbolProvider, ModuleSymbolProvider, StaticSymbolProvider
from .render import HtmlContentRenderer

if typ.TYPE_CHECKING:
    from .config import BuildConfig
    from .model import Page
    from .providers import SymbolProvider

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True)
class BuildReport:
    """Outcome of :meth:`DocumentBuilder.run`.

    Attributes
    ----------
    result : BuildResult
        Resolved pages, anchor registry and diagnostics.
    written : list[Path]
        HTML files written, in page order.
    report_path : Path or None
        Location of the JSON diagnostics report, when one was written.
    """

    result: BuildResult
    written: list[Path] = dc.field(default_factory=list)
    report_path: Path | None = None


class DocumentBuilder:
    """Read sources, run the expansion pipeline and emit HTML pages."""

    def __init__(
        self,
        config: BuildConfig,
        *,
        provider: SymbolProvider | None = None,
        templates_dir: Path | None = None,
        output_dir: Path | None = None,
        report_path: Path | None = None,
    ) -> None:
        """Initialize the builder with configuration and template context.

        Parameters
        ----------
        config : BuildConfig
            Build configuration describing pages, symbol sources and output.
        provider : SymbolProvider, optional
            Symbol provider override; defaults to the chain described by the
            configuration.
        templates_dir : Path, optional
            Directory containing Jinja templates; defaults to the package templates.
        output_dir : Path, optional
            Override for the HTML output directory.
        report_path : Path, optional
            Override for the JSON diagnostics report location.
        """
        self.config = config
        self.output_dir = output_dir or config.output_dir
        self.report_path = report_path or config.report
        self.provider = provider or self._build_provider()
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.renderer = HtmlContentRenderer()
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("page.jinja")

    def _build_provider(self) -> SymbolProvider:
        providers: list[SymbolProvider] = [
            StaticSymbolProvider.from_yaml(path) for path in self.config.symbol_tables
        ]
        if self.config.python_modules:
            providers.append(ModuleSymbolProvider(self.config.python_modules))
        return ChainSymbolProvider(providers)

    def read_sources(self) -> list[tuple[str, str]]:
        """Return ``(page_id, markdown)`` pairs in configuration order.

        Raises
        ------
        FileNotFoundError
            If a configured page source does not exist.
        """
        sources: list[tuple[str, str]] = []
        for page_id in self.config.pages:
            path = self.config.source_path(page_id)
            if not path.is_file():
                msg = f"Page source '{path}' not found."
                raise FileNotFoundError(msg)
            sources.append((page_id, path.read_text(encoding="utf-8")))
        return sources

    def check(self) -> BuildResult:
        """Run the expansion pipeline without writing any output."""
        engine = ExpansionEngine(
            self.provider,
            modules=self.config.modules,
            warn_only=self.config.warn_only,
        )
        return engine.run(self.read_sources())

    def run(self) -> BuildReport:
        """Build every page and write HTML plus the optional report.

        Returns
        -------
        BuildReport
            Resolved build and the paths written. Pages are written even when
            the build has error diagnostics so problems can be inspected.
        """
        result = self.check()
        self.output_dir.mkdir(parents=True, exist_ok=True)
        generated_at = dt.datetime.now(dt.UTC)
        report = BuildReport(result=result)
        for page in result.pages:
            target = self.output_dir / output_path(page.page_id)
            target.parent.mkdir(parents=True, exist_ok=True)
            context = {
                "sitename": self.config.sitename,
                "page": page,
                "html_title": f"{page.title} · {self.config.sitename}",
                "content_html": self.renderer.page(page),
                "nav_items": self._build_nav(result.pages, page),
                "generated_at": generated_at,
            }
            target.write_text(self.template.render(**context), encoding="utf-8")
            logger.debug("rendered %s to %s", page.page_id, target)
            report.written.append(target)
        if self.report_path:
            report.report_path = self._write_report(result)
        return report

    @staticmethod
    def _build_nav(pages: list[Page], current: Page) -> list[dict[str, typ.Any]]:
        base_dir = posixpath.dirname(output_path(current.page_id)) or "."
        return [
            {
                "label": page.title,
                "href": posixpath.relpath(output_path(page.page_id), base_dir),
                "active": page.page_id == current.page_id,
            }
            for page in pages
        ]

    def _write_report(self, result: BuildResult) -> Path:
        path = typ.cast("Path", self.report_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(msgspec_json.encode(result.diagnostics.to_payload()))
        return path


__all__ = ["BuildReport", "DocumentBuilder"]
