"""Unit tests for the anchor registry."""

from __future__ import annotations

import pytest

from docsplice.model import Anchor, AnchorOrigin, Symbol
from docsplice.registry import AnchorRegistry, RegistrationResult, RegistryFrozenError


def _heading(key: str, page_id: str, page_index: int, block: int, level: int = 1) -> Anchor:
    return Anchor(key, AnchorOrigin.HEADING, page_id, page_index, (block, 0), key, key.title(), level)


def _symbol(symbol: Symbol, page_id: str, page_index: int, entry: int) -> Anchor:
    return Anchor(
        key=symbol.identity,
        origin=AnchorOrigin.SYMBOL,
        page_id=page_id,
        page_index=page_index,
        position=(0, entry),
        anchor_id=symbol.identity,
        label=symbol.identity,
        symbol=symbol,
    )


def test_first_registration_wins() -> None:
    registry = AnchorRegistry()
    first = _heading("install", "a.md", 0, 0)
    second = _heading("install", "b.md", 1, 0)
    assert registry.register(first) is RegistrationResult.OK
    assert registry.register(second) is RegistrationResult.DUPLICATE
    assert registry.lookup("install") is first
    assert first.claimed
    assert not second.claimed
    assert "install" in registry
    assert len(registry) == 1


def test_frozen_registry_rejects_writes_but_serves_lookups() -> None:
    registry = AnchorRegistry()
    registry.register(_heading("install", "a.md", 0, 0))
    registry.freeze()
    assert registry.frozen
    with pytest.raises(RegistryFrozenError):
        registry.register(_heading("usage", "a.md", 0, 1))
    assert registry.lookup("install") is not None
    assert registry.lookup("usage") is None


def test_anchors_are_ordered_by_page_then_position() -> None:
    registry = AnchorRegistry()
    registry.register(_heading("late", "b.md", 1, 0))
    registry.register(_heading("second", "a.md", 0, 4, level=2))
    registry.register(_heading("first", "a.md", 0, 1))
    assert [a.key for a in registry.anchors()] == ["first", "second", "late"]
    assert [a.key for a in registry.anchors(pages={"a.md"})] == ["first", "second"]
    assert [a.key for a in registry.anchors(max_level=1)] == ["first", "late"]


def test_anchors_filter_by_origin_and_module() -> None:
    registry = AnchorRegistry()
    base = Symbol("length", "Base", "(::T)")
    other = Symbol("length", "Other", "(::String)")
    registry.register(_heading("api", "a.md", 0, 0))
    registry.register(_symbol(base, "a.md", 0, 0))
    registry.register(_symbol(other, "a.md", 0, 1))
    symbols = registry.anchors(origin=AnchorOrigin.SYMBOL)
    assert [a.key for a in symbols] == ["Base.length(::T)", "Other.length(::String)"]
    assert [a.key for a in registry.anchors(modules={"Other"})] == ["Other.length(::String)"]


def test_find_symbols_matches_bare_qualified_and_suffix_names() -> None:
    registry = AnchorRegistry()
    nested = Symbol("Parser.feed", "Base.io")
    base = Symbol("length", "Base", "(::T)")
    other = Symbol("length", "Other", "(::String)")
    for entry, symbol in enumerate([nested, base, other]):
        registry.register(_symbol(symbol, "a.md", 0, entry))
    assert [a.key for a in registry.find_symbols("length")] == [
        "Base.length(::T)",
        "Other.length(::String)",
    ]
    assert [a.key for a in registry.find_symbols("length", "(::String)")] == [
        "Other.length(::String)"
    ]
    assert [a.key for a in registry.find_symbols("Parser.feed")] == ["Base.io.Parser.feed"]
    assert [a.key for a in registry.find_symbols("io.Parser.feed")] == ["Base.io.Parser.feed"]
    assert registry.find_symbols("ength") == []


def test_find_symbols_compares_canonical_signatures() -> None:
    registry = AnchorRegistry()
    registry.register(_symbol(Symbol("length", "Base", "(x::T, n)"), "a.md", 0, 0))
    [anchor] = registry.find_symbols("length", "(::T, ::Any)")
    assert anchor.symbol is not None
    assert anchor.symbol.signature == "(x::T, n)"
