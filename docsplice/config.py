"""Load ``docsplice.yaml`` build configuration into typed dataclasses.

The configuration names the ordered page list, where sources live, where
HTML is written, and which symbol sources feed ``docs`` directives. Relative
paths are resolved against the directory holding the configuration file.

Example
-------
.. code-block:: yaml

    sitename: Example
    source_dir: src
    output_dir: build
    pages:
      - index.md
      - guide/usage.md
    modules: [Base]
    symbol_tables: [symbols.yaml]
    warn_only: [ambiguous_ref]

>>> from pathlib import Path
>>> from docsplice.config import load_build_config
>>> config = load_build_config(Path("docs/docsplice.yaml"))  # doctest: +SKIP
>>> config.pages[0]  # doctest: +SKIP
'index.md'
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .diagnostics import DiagnosticKind


class ConfigError(ValueError):
    """Raised when the build configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class BuildConfig:
    """A fully resolved build definition sourced from YAML config."""

    pages: list[str]
    source_dir: Path
    output_dir: Path
    sitename: str = "Documentation"
    modules: list[str] = dc.field(default_factory=list)
    symbol_tables: list[Path] = dc.field(default_factory=list)
    python_modules: list[str] = dc.field(default_factory=list)
    warn_only: list[DiagnosticKind] = dc.field(default_factory=list)
    report: Path | None = None

    def source_path(self, page_id: str) -> Path:
        return self.source_dir / page_id


def _string_list(raw: dict[str, typ.Any], key: str) -> list[str]:
    value = raw.get(key) or []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        msg = f"'{key}' must be a list of strings."
        raise ConfigError(msg)
    items = [str(item).strip() for item in value]
    if any(not item for item in items):
        msg = f"'{key}' must not contain empty entries."
        raise ConfigError(msg)
    return items


def _resolve(base: Path, value: str | Path) -> Path:
    path = Path(value)
    return path if path.is_absolute() else base / path


def _parse_warn_only(values: list[str]) -> list[DiagnosticKind]:
    kinds: list[DiagnosticKind] = []
    for value in values:
        try:
            kinds.append(DiagnosticKind(value))
        except ValueError as exc:
            known = ", ".join(kind.value for kind in DiagnosticKind)
            msg = f"Unknown diagnostic kind '{value}' in 'warn_only'. Known kinds: {known}"
            raise ConfigError(msg) from exc
    return kinds


def load_build_config(path: Path) -> BuildConfig:
    """Load the YAML configuration describing a documentation build.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file.

    Returns
    -------
    BuildConfig
        Parsed configuration with paths resolved against the file's directory.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    ConfigError
        If the top-level structure is not a mapping, no pages are listed,
        page ids repeat, or a field has the wrong type.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise ConfigError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    base = path.parent

    pages = _string_list(raw, "pages")
    if not pages:
        msg = "No pages defined in build configuration."
        raise ConfigError(msg)
    if len(set(pages)) != len(pages):
        msg = "Page entries must be unique."
        raise ConfigError(msg)

    report = raw.get("report")
    return BuildConfig(
        pages=pages,
        source_dir=_resolve(base, raw.get("source_dir", "src")),
        output_dir=_resolve(base, raw.get("output_dir", "build")),
        sitename=str(raw.get("sitename") or "Documentation"),
        modules=_string_list(raw, "modules"),
        symbol_tables=[_resolve(base, item) for item in _string_list(raw, "symbol_tables")],
        python_modules=_string_list(raw, "python_modules"),
        warn_only=_parse_warn_only(_string_list(raw, "warn_only")),
        report=_resolve(base, report) if report else None,
    )


__all__ = ["BuildConfig", "ConfigError", "load_build_config"]
