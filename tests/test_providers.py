"""Unit tests for the symbol documentation providers."""

from __future__ import annotations

import textwrap
import typing as typ

import pytest

from docsplice.model import Symbol
from docsplice.providers import (
    ChainSymbolProvider,
    ModuleSymbolProvider,
    ProviderError,
    StaticSymbolProvider,
    SymbolProvider,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

SAMPLE_MODULE = "docsplice_sample_api"


@pytest.fixture
def sample_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Write an importable module with a class and a singledispatch function."""
    (tmp_path / f"{SAMPLE_MODULE}.py").write_text(
        textwrap.dedent(
            '''
            import functools

            __all__ = ["Greeter", "describe", "shout"]


            class Greeter:
                """Say hello."""

                def greet(self, name):
                    """Return a greeting for ``name``."""
                    return f"hi {name}"

                def _hidden(self):
                    return None


            @functools.singledispatch
            def describe(value):
                """Describe any value."""
                return "thing"


            @describe.register
            def _(value: int):
                """Describe an integer."""
                return "int"


            def shout(text):
                """Shout ``text``."""
                return text.upper()
            '''
        ),
        encoding="utf-8",
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    return SAMPLE_MODULE


def test_static_provider_matches_bare_and_qualified_names(provider: StaticSymbolProvider) -> None:
    assert [s.identity for s in provider.lookup("length", None, None)] == [
        "Base.length(::T)",
        "Other.length(::String)",
    ]
    assert [s.identity for s in provider.lookup("Other.length", None, None)] == [
        "Other.length(::String)"
    ]
    assert [s.identity for s in provider.lookup("length", None, ["Other"])] == [
        "Other.length(::String)"
    ]
    assert provider.lookup("length", None, []) == []
    assert isinstance(provider, SymbolProvider)


def test_static_provider_symbols_by_module(provider: StaticSymbolProvider) -> None:
    assert [s.name for s in provider.symbols("Base")] == ["length", "push!"]
    provider.add(Symbol("first", "Base"))
    assert [s.name for s in provider.symbols("Base")] == ["length", "push!", "first"]


def test_static_provider_from_yaml(tmp_path: Path) -> None:
    table = tmp_path / "symbols.yaml"
    table.write_text(
        textwrap.dedent(
            """
            symbols:
              - module: Base
                name: length
                signature: "(collection::T)"
                doc: |
                  Count the items.
              - module: Base
                name: push!
            """
        ),
        encoding="utf-8",
    )
    provider = StaticSymbolProvider.from_yaml(table)
    length, push = provider.symbols("Base")
    assert length.signature == "(::T)"
    assert length.doc == "Count the items.\n"
    assert push.signature is None
    assert push.doc == ""


def test_static_provider_from_yaml_rejects_bad_entries(tmp_path: Path) -> None:
    table = tmp_path / "symbols.yaml"
    table.write_text("symbols:\n  - name: orphan\n", encoding="utf-8")
    with pytest.raises(ProviderError, match="needs 'module' and 'name'"):
        StaticSymbolProvider.from_yaml(table)

    table.write_text("symbols:\n  - {module: Base, name: f, signature: 'x::T'}\n", encoding="utf-8")
    with pytest.raises(ProviderError, match="parentheses"):
        StaticSymbolProvider.from_yaml(table)

    table.write_text("- not a mapping\n", encoding="utf-8")
    with pytest.raises(ProviderError, match="'symbols' list"):
        StaticSymbolProvider.from_yaml(table)


def test_static_provider_from_yaml_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        StaticSymbolProvider.from_yaml(tmp_path / "missing.yaml")


def test_module_provider_reads_docstrings(sample_module: str) -> None:
    provider = ModuleSymbolProvider([sample_module])
    documented = {s.identity: s.doc for s in provider.symbols(sample_module)}
    assert documented == {
        f"{sample_module}.Greeter": "Say hello.",
        f"{sample_module}.Greeter.greet": "Return a greeting for ``name``.",
        f"{sample_module}.describe": "Describe any value.",
        f"{sample_module}.describe(::int)": "Describe an integer.",
        f"{sample_module}.shout": "Shout ``text``.",
    }


def test_module_provider_lookup_respects_scope(sample_module: str) -> None:
    provider = ModuleSymbolProvider([sample_module])
    assert [s.identity for s in provider.lookup("describe", None, None)] == [
        f"{sample_module}.describe",
        f"{sample_module}.describe(::int)",
    ]
    assert provider.lookup("describe", None, ["elsewhere"]) == []
    assert provider.symbols("elsewhere") == []


def test_module_provider_caches_imports(sample_module: str, mocker: typ.Any) -> None:
    provider = ModuleSymbolProvider([sample_module])
    collect = mocker.spy(provider, "_collect")
    provider.symbols(sample_module)
    provider.lookup("shout", None, None)
    assert collect.call_count == 1


def test_module_provider_reports_import_failures() -> None:
    provider = ModuleSymbolProvider(["docsplice_no_such_module"])
    with pytest.raises(ProviderError, match="Cannot import"):
        provider.symbols("docsplice_no_such_module")


def test_chain_provider_concatenates_in_order(provider: StaticSymbolProvider) -> None:
    extra = StaticSymbolProvider([Symbol("length", "Extra")])
    chain = ChainSymbolProvider([provider, extra])
    assert [s.module for s in chain.lookup("length", None, None)] == ["Base", "Other", "Extra"]
    assert [s.name for s in chain.symbols("Extra")] == ["length"]
