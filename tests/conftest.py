"""Shared fixtures for docsplice tests."""

from __future__ import annotations

import pytest

from docsplice.engine import ExpansionEngine
from docsplice.model import Symbol
from docsplice.providers import StaticSymbolProvider


@pytest.fixture
def symbols() -> list[Symbol]:
    """Return a small symbol table spanning two modules."""
    return [
        Symbol("length", "Base", "(::T)", "Return the number of items in a `T`."),
        Symbol("push!", "Base", None, "Append items to a collection."),
        Symbol("length", "Other", "(::String)", "Return the number of characters."),
    ]


@pytest.fixture
def provider(symbols: list[Symbol]) -> StaticSymbolProvider:
    """Return an in-memory provider over ``symbols``."""
    return StaticSymbolProvider(symbols)


@pytest.fixture
def engine(provider: StaticSymbolProvider) -> ExpansionEngine:
    """Return an engine over the shared provider, run inline."""
    return ExpansionEngine(provider, max_workers=1)
