"""Symbol documentation providers consumed by the symbol resolver.

The expansion engine never introspects source code itself. It asks a
:class:`SymbolProvider` for the documented symbols matching a name within a
module scope. Three providers ship with docsplice:

* :class:`StaticSymbolProvider` serves an in-memory table, optionally loaded
  from a YAML symbol table with :meth:`StaticSymbolProvider.from_yaml`.
* :class:`ModuleSymbolProvider` imports Python modules and reads docstrings;
  ``functools.singledispatch`` registrations become signed overloads.
* :class:`ChainSymbolProvider` queries several providers in order.

Example
-------
>>> from docsplice.model import Symbol
>>> from docsplice.providers import StaticSymbolProvider
>>> provider = StaticSymbolProvider([Symbol("length", "Base", None, "Length.")])
>>> [s.identity for s in provider.lookup("length", None, ["Base"])]
['Base.length']
"""

from __future__ import annotations

import collections.abc as cabc
import importlib
import inspect
import logging
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .model import Symbol
from .targets import SignatureError, normalize_signature

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Raised when a provider cannot load its symbol source."""


@typ.runtime_checkable
class SymbolProvider(typ.Protocol):
    """Capability that maps names to documented symbols."""

    def lookup(
        self,
        name: str,
        signature: str | None,
        modules: cabc.Sequence[str] | None,
    ) -> list[Symbol]:
        """Return symbols named ``name`` within ``modules`` in provider order.

        ``name`` may be bare or qualified by a module prefix; ``modules`` of
        ``None`` means no restriction. Providers may ignore ``signature``; the
        resolver filters on it.
        """
        ...

    def symbols(self, module: str) -> list[Symbol]:
        """Return every documented symbol defined in ``module``."""
        ...


def _in_scope(module: str, modules: cabc.Sequence[str] | None) -> bool:
    return modules is None or module in modules


def _matches_name(symbol: Symbol, name: str) -> bool:
    return name in (symbol.name, symbol.qualified_name)


class StaticSymbolProvider:
    """Serve symbols from an ordered in-memory table."""

    def __init__(self, symbols: cabc.Iterable[Symbol] = ()) -> None:
        self._symbols: list[Symbol] = list(symbols)

    @classmethod
    def from_yaml(cls, path: Path) -> StaticSymbolProvider:
        """Load a symbol table from YAML.

        The file holds a top-level ``symbols`` list whose entries carry
        ``module``, ``name``, optional ``signature`` and ``doc`` keys.

        Raises
        ------
        FileNotFoundError
            If ``path`` does not exist.
        ProviderError
            If the document structure or a signature is invalid.
        """
        if not path.exists():
            msg = f"Symbol table '{path}' not found."
            raise FileNotFoundError(msg)
        loader = YAML(typ="safe")
        loader.version = (1, 2)
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
        entries = loaded.get("symbols") if isinstance(loaded, dict) else None
        if not isinstance(entries, list):
            msg = f"Symbol table '{path}' must define a 'symbols' list."
            raise ProviderError(msg)
        symbols: list[Symbol] = []
        for position, entry in enumerate(entries, start=1):
            match entry:
                case {"module": str() as module, "name": str() as name}:
                    symbols.append(
                        Symbol(
                            name=name,
                            module=module,
                            signature=_load_signature(entry.get("signature"), path, position),
                            doc=str(entry.get("doc") or ""),
                        )
                    )
                case _:
                    msg = f"Entry {position} in '{path}' needs 'module' and 'name' strings."
                    raise ProviderError(msg)
        logger.debug("loaded %d symbols from %s", len(symbols), path)
        return cls(symbols)

    def add(self, symbol: Symbol) -> None:
        self._symbols.append(symbol)

    def lookup(
        self,
        name: str,
        signature: str | None,  # noqa: ARG002 - filtered by the resolver
        modules: cabc.Sequence[str] | None,
    ) -> list[Symbol]:
        return [
            symbol
            for symbol in self._symbols
            if _in_scope(symbol.module, modules) and _matches_name(symbol, name)
        ]

    def symbols(self, module: str) -> list[Symbol]:
        return [symbol for symbol in self._symbols if symbol.module == module]


def _load_signature(value: object, path: Path, position: int) -> str | None:
    if value in (None, ""):
        return None
    try:
        return normalize_signature(str(value))
    except SignatureError as exc:
        msg = f"Entry {position} in '{path}': {exc}"
        raise ProviderError(msg) from exc


class ModuleSymbolProvider:
    """Read docstrings from importable Python modules.

    Public module members (``__all__`` when defined, otherwise names without a
    leading underscore defined in the module) are documented, together with
    public methods of documented classes. A ``functools.singledispatch``
    function contributes one overload per registered type, with signature
    ``(::TypeName)``.
    """

    def __init__(self, modules: cabc.Iterable[str]) -> None:
        self.modules = list(modules)
        self._cache: dict[str, list[Symbol]] = {}

    def symbols(self, module: str) -> list[Symbol]:
        if module not in self.modules:
            return []
        if module not in self._cache:
            self._cache[module] = self._collect(module)
        return list(self._cache[module])

    def lookup(
        self,
        name: str,
        signature: str | None,  # noqa: ARG002 - filtered by the resolver
        modules: cabc.Sequence[str] | None,
    ) -> list[Symbol]:
        found: list[Symbol] = []
        for module in self.modules:
            if not _in_scope(module, modules):
                continue
            found.extend(s for s in self.symbols(module) if _matches_name(s, name))
        return found

    def _collect(self, module_name: str) -> list[Symbol]:
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            msg = f"Cannot import module '{module_name}': {exc}"
            raise ProviderError(msg) from exc
        exported = getattr(module, "__all__", None)
        if exported is None:
            exported = [
                name
                for name, value in vars(module).items()
                if not name.startswith("_")
                and getattr(value, "__module__", None) == module_name
            ]
        collected: list[Symbol] = []
        for name in exported:
            value = getattr(module, name, None)
            if value is None:
                continue
            collected.extend(self._describe(module_name, name, value))
        logger.debug("collected %d symbols from %s", len(collected), module_name)
        return collected

    def _describe(self, module: str, name: str, value: object) -> list[Symbol]:
        registry = getattr(value, "registry", None)
        if callable(value) and isinstance(registry, cabc.Mapping) and hasattr(value, "dispatch"):
            return self._describe_dispatch(module, name, value, registry)
        described = [Symbol(name=name, module=module, doc=inspect.getdoc(value) or "")]
        if inspect.isclass(value):
            for member_name, member in vars(value).items():
                if member_name.startswith("_") or not callable(member):
                    continue
                described.append(
                    Symbol(
                        name=f"{name}.{member_name}",
                        module=module,
                        doc=inspect.getdoc(member) or "",
                    )
                )
        return described

    @staticmethod
    def _describe_dispatch(
        module: str, name: str, value: object, registry: cabc.Mapping[type, object]
    ) -> list[Symbol]:
        described = [Symbol(name=name, module=module, doc=inspect.getdoc(value) or "")]
        for dispatch_type, impl in registry.items():
            if dispatch_type is object:
                continue
            described.append(
                Symbol(
                    name=name,
                    module=module,
                    signature=f"(::{dispatch_type.__name__})",
                    doc=inspect.getdoc(impl) or "",
                )
            )
        return described


class ChainSymbolProvider:
    """Concatenate the results of several providers in order."""

    def __init__(self, providers: cabc.Iterable[SymbolProvider]) -> None:
        self.providers = list(providers)

    def lookup(
        self,
        name: str,
        signature: str | None,
        modules: cabc.Sequence[str] | None,
    ) -> list[Symbol]:
        found: list[Symbol] = []
        for provider in self.providers:
            found.extend(provider.lookup(name, signature, modules))
        return found

    def symbols(self, module: str) -> list[Symbol]:
        found: list[Symbol] = []
        for provider in self.providers:
            found.extend(provider.symbols(module))
        return found


__all__ = [
    "ChainSymbolProvider",
    "ModuleSymbolProvider",
    "ProviderError",
    "StaticSymbolProvider",
    "SymbolProvider",
]
