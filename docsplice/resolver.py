"""Match target specs against the symbols a provider knows about."""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ

from .targets import signatures_match

if typ.TYPE_CHECKING:
    from .model import Symbol, TargetSpec
    from .providers import SymbolProvider

logger = logging.getLogger(__name__)

_CacheKey = tuple[str, str | None, tuple[str, ...] | None]


class SymbolResolver:
    """Resolve target specs to documented symbols with module scoping.

    A resolver lives for one build: provider answers are cached per
    ``(name, signature, module scope)``.
    """

    def __init__(
        self, provider: SymbolProvider, *, modules: cabc.Sequence[str] = ()
    ) -> None:
        """Create a resolver.

        Parameters
        ----------
        provider : SymbolProvider
            Source of documented symbols.
        modules : Sequence[str], optional
            Build-level module list. When given, only these modules are ever
            searched.
        """
        self.provider = provider
        self.modules = tuple(modules)
        self._cache: dict[_CacheKey, list[Symbol]] = {}

    def scope(
        self, current_module: str | None, target: TargetSpec
    ) -> tuple[str, ...] | None:
        """Return the modules eligible for ``target``; ``None`` is unrestricted.

        An unqualified target on a page with a current module searches that
        module only, whether or not a build-level list is configured; the
        list can still exclude it, leaving nothing to search. Submodules are
        never included implicitly. Qualified targets carry their own module
        and search the whole build-level scope.
        """
        if current_module is None or target.qualified:
            return self.modules or None
        if self.modules and current_module not in self.modules:
            return ()
        return (current_module,)

    def resolve(
        self, target: TargetSpec, allowed_modules: cabc.Sequence[str] | None
    ) -> list[Symbol]:
        """Return every symbol matching ``target`` within ``allowed_modules``.

        With a signature only exact (normalised) signature matches are kept;
        without one every same-named symbol is returned, in provider order.
        An empty list means no symbol matched.
        """
        scope = tuple(allowed_modules) if allowed_modules is not None else None
        key: _CacheKey = (target.name, target.signature, scope)
        if key not in self._cache:
            candidates = self.provider.lookup(target.name, target.signature, scope)
            self._cache[key] = [
                symbol
                for symbol in candidates
                if signatures_match(target.signature, symbol.signature)
            ]
            logger.debug(
                "resolved %s in %s to %d symbol(s)", target, scope, len(self._cache[key])
            )
        return list(self._cache[key])

    def module_symbols(self, module: str) -> list[Symbol]:
        """Return every symbol documented in ``module`` in provider order."""
        return self.provider.symbols(module)


__all__ = ["SymbolResolver"]
