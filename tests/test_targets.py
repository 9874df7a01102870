"""Unit tests for target spec parsing and signature normalisation."""

from __future__ import annotations

import pytest

from docsplice.model import TargetSpec
from docsplice.targets import (
    SignatureError,
    normalize_signature,
    parse_target,
    signatures_match,
    strip_code_span,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("()", "()"),
        ("(x)", "(::Any)"),
        ("(x::T)", "(::T)"),
        ("(x::Vector{T},  n :: Int; kw=1)", "(::Vector{T}, ::Int)"),
        ("(x::Dict{K, V})", "(::Dict{K,V})"),
        ("(x::Int = 3)", "(::Int)"),
        ("(value: int, label: str)", "(::int, ::str)"),
        ("(::T)", "(::T)"),
    ],
)
def test_normalize_signature(raw: str, expected: str) -> None:
    assert normalize_signature(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["x::T", "(x::T", "((x)", "(x,)", "(1x)", "(x::)", "(x::T])"],
)
def test_normalize_signature_rejects_malformed(raw: str) -> None:
    with pytest.raises(SignatureError):
        normalize_signature(raw)


def test_parse_target_strips_backticks_and_normalises() -> None:
    assert parse_target("`Base.length(x::T)`") == TargetSpec("Base.length", "(::T)")


def test_parse_target_without_signature() -> None:
    target = parse_target("  length ")
    assert target == TargetSpec("length")
    assert target.signature is None
    assert not target.qualified
    assert target.key == "length"


def test_parse_target_accepts_bang_names() -> None:
    target = parse_target("Base.push!(v)")
    assert target.name == "Base.push!"
    assert target.signature == "(::Any)"
    assert target.qualified
    assert str(target) == "Base.push!(::Any)"


def test_parse_target_rejects_prose() -> None:
    with pytest.raises(SignatureError, match="Malformed target"):
        parse_target("not a target")


def test_signatures_match() -> None:
    assert signatures_match(None, "(::T)")
    assert signatures_match(None, None)
    assert signatures_match("(::T)", "(x::T)")
    assert not signatures_match("(::T)", None)
    assert not signatures_match("(::T)", "(::U)")
    assert not signatures_match("(::T)", "(")


def test_strip_code_span() -> None:
    assert strip_code_span(" `Base.length` ") == ("Base.length", True)
    assert strip_code_span("Installing") == ("Installing", False)
