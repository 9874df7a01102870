"""Build-scoped table of link targets.

Headings and spliced symbols register an :class:`~docsplice.model.Anchor`
under a unique key during expansion; listings and ``@ref`` links query the
registry afterwards. The first registration of a key wins and the registry
rejects writes once frozen, which keeps duplicate detection deterministic.

Example
-------
>>> from docsplice.model import Anchor, AnchorOrigin
>>> from docsplice.registry import AnchorRegistry, RegistrationResult
>>> registry = AnchorRegistry()
>>> anchor = Anchor("intro", AnchorOrigin.HEADING, "a.md", 0, (0, 0), "intro", "Intro", 1)
>>> registry.register(anchor) is RegistrationResult.OK
True
>>> registry.register(anchor) is RegistrationResult.DUPLICATE
True
"""

from __future__ import annotations

import collections.abc as cabc
import enum

from .model import Anchor, AnchorOrigin
from .targets import canonical_signature


class RegistrationResult(enum.Enum):
    OK = "ok"
    DUPLICATE = "duplicate"


class RegistryFrozenError(RuntimeError):
    """Raised when an anchor is registered after the registry was frozen."""


class AnchorRegistry:
    """Append-only mapping of anchor keys to resolved locations."""

    def __init__(self) -> None:
        self._anchors: dict[str, Anchor] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Reject further registrations; lookups keep working."""
        self._frozen = True

    def register(self, anchor: Anchor) -> RegistrationResult:
        """Claim ``anchor.key`` for ``anchor`` unless it is already taken.

        Raises
        ------
        RegistryFrozenError
            If the registry has been frozen.
        """
        if self._frozen:
            msg = f"Cannot register anchor '{anchor.key}' after the registry was frozen."
            raise RegistryFrozenError(msg)
        if anchor.key in self._anchors:
            return RegistrationResult.DUPLICATE
        anchor.claimed = True
        self._anchors[anchor.key] = anchor
        return RegistrationResult.OK

    def lookup(self, key: str) -> Anchor | None:
        return self._anchors.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._anchors

    def __len__(self) -> int:
        return len(self._anchors)

    def find_symbols(self, name: str, signature: str | None = None) -> list[Anchor]:
        """Return symbol anchors whose symbol is named ``name``, in build order.

        ``name`` may be the bare name, the qualified name, or a dotted suffix
        of the qualified name; a ``signature`` restricts the match further and
        is compared against the canonical form of each symbol's signature.
        """
        found: list[Anchor] = []
        for anchor in self.anchors(origin=AnchorOrigin.SYMBOL):
            symbol = anchor.symbol
            if symbol is None:
                continue
            qualified = symbol.qualified_name
            if name != qualified and not qualified.endswith(f".{name}"):
                continue
            if signature is not None and canonical_signature(symbol.signature) != signature:
                continue
            found.append(anchor)
        return found

    def anchors(
        self,
        *,
        origin: AnchorOrigin | None = None,
        pages: cabc.Collection[str] | None = None,
        modules: cabc.Collection[str] | None = None,
        max_level: int | None = None,
    ) -> list[Anchor]:
        """Return anchors ordered by page build order then in-page position.

        Parameters
        ----------
        origin : AnchorOrigin, optional
            Restrict to heading or symbol anchors.
        pages : Collection[str], optional
            Restrict to anchors owned by these page ids.
        modules : Collection[str], optional
            Restrict symbol anchors to symbols defined in these modules.
        max_level : int, optional
            Restrict heading anchors to levels up to and including this value.
        """
        selected = [
            anchor
            for anchor in self._anchors.values()
            if (origin is None or anchor.origin is origin)
            and (pages is None or anchor.page_id in pages)
            and (
                modules is None
                or (anchor.symbol is not None and anchor.symbol.module in modules)
            )
            and (
                max_level is None
                or anchor.origin is not AnchorOrigin.HEADING
                or anchor.level <= max_level
            )
        ]
        return sorted(selected, key=lambda anchor: anchor.sort_key)


__all__ = ["AnchorRegistry", "RegistrationResult", "RegistryFrozenError"]
