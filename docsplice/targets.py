"""Parse target specs such as ``Base.length(x::T)`` and normalise signatures.

Signatures are compared after normalisation: argument names and default
values are dropped, keyword arguments after ``;`` are ignored, whitespace is
removed from type expressions and untyped arguments become ``::Any``. Python
style annotations (``x: int``) are accepted and normalised the same way.

Examples
--------
>>> from docsplice.targets import normalize_signature, parse_target
>>> normalize_signature("(x::Vector{T},  n :: Int; kw=1)")
'(::Vector{T}, ::Int)'
>>> parse_target("`Base.length(x::T)`")
TargetSpec(name='Base.length', signature='(::T)')
"""

from __future__ import annotations

import re
import typing as typ

from .model import TargetSpec

if typ.TYPE_CHECKING:
    from .model import Symbol

NAME_PATTERN = re.compile(r"[A-Za-z_][\w!]*(?:\.[A-Za-z_][\w!]*)*")
TARGET_PATTERN = re.compile(
    rf"^(?P<name>{NAME_PATTERN.pattern})\s*(?P<signature>\(.*\))?$", re.DOTALL
)
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {value: key for key, value in _OPENERS.items()}


class SignatureError(ValueError):
    """Raised when a target spec or signature fragment is malformed."""


def _split_top_level(text: str, separator: str) -> list[str]:
    """Split ``text`` on ``separator`` outside of nested brackets."""
    parts: list[str] = []
    stack: list[str] = []
    current: list[str] = []
    for char in text:
        if char in _OPENERS:
            stack.append(char)
        elif char in _CLOSERS:
            if not stack or stack[-1] != _CLOSERS[char]:
                msg = f"Unbalanced '{char}' in signature '{text}'."
                raise SignatureError(msg)
            stack.pop()
        if char == separator and not stack:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    if stack:
        msg = f"Unclosed '{stack[-1]}' in signature '{text}'."
        raise SignatureError(msg)
    parts.append("".join(current))
    return parts


def _normalize_argument(arg: str, signature: str) -> str:
    """Reduce one argument to its ``::Type`` form."""
    text = _split_top_level(arg, "=")[0].strip()
    if not text:
        msg = f"Empty argument in signature '{signature}'."
        raise SignatureError(msg)
    if "::" in text:
        _name, _sep, type_expr = text.partition("::")
    elif ":" in text:
        _name, _sep, type_expr = text.partition(":")
    else:
        if not NAME_PATTERN.fullmatch(text):
            msg = f"Invalid argument '{text}' in signature '{signature}'."
            raise SignatureError(msg)
        return "::Any"
    type_expr = re.sub(r"\s+", "", type_expr)
    if not type_expr:
        msg = f"Missing type after '::' in signature '{signature}'."
        raise SignatureError(msg)
    return f"::{type_expr}"


def normalize_signature(signature: str) -> str:
    """Return the canonical form of a parenthesised signature fragment.

    Raises
    ------
    SignatureError
        If the fragment is not wrapped in parentheses, has unbalanced
        brackets, or contains an empty or untyped-invalid argument.
    """
    text = signature.strip()
    if not (text.startswith("(") and text.endswith(")")):
        msg = f"Signature '{signature}' must be enclosed in parentheses."
        raise SignatureError(msg)
    _split_top_level(text, ",")
    inner = text[1:-1]
    positional = _split_top_level(inner, ";")[0]
    if not positional.strip():
        return "()"
    args = [_normalize_argument(arg, signature) for arg in _split_top_level(positional, ",")]
    return f"({', '.join(args)})"


def strip_code_span(text: str) -> tuple[str, bool]:
    """Return ``text`` without surrounding backticks and whether it had them."""
    stripped = text.strip()
    if len(stripped) >= 2 and stripped.startswith("`") and stripped.endswith("`"):
        return stripped.strip("`").strip(), True
    return stripped, False


def parse_target(text: str) -> TargetSpec:
    """Parse a ``docs`` line or ``@ref`` target into a :class:`TargetSpec`.

    Parameters
    ----------
    text : str
        Identifier with optional signature; surrounding backticks are ignored.

    Returns
    -------
    TargetSpec
        Target with its signature normalised.

    Raises
    ------
    SignatureError
        If the identifier or the signature fragment is malformed.
    """
    candidate, _code = strip_code_span(text)
    match = TARGET_PATTERN.match(candidate)
    if not match:
        msg = f"Malformed target '{text.strip()}'."
        raise SignatureError(msg)
    signature = match.group("signature")
    return TargetSpec(
        name=match.group("name"),
        signature=normalize_signature(signature) if signature else None,
    )


def canonical_signature(signature: str | None) -> str | None:
    """Return the normalised form of a provider signature, or it unchanged.

    >>> canonical_signature("(x::T)")
    '(::T)'
    >>> canonical_signature(None) is None
    True
    """
    if signature is None:
        return None
    try:
        return normalize_signature(signature)
    except SignatureError:
        return signature


def symbol_key(symbol: Symbol) -> str:
    """Return the registry key of ``symbol``: qualified name plus canonical signature.

    >>> from docsplice.model import Symbol
    >>> symbol_key(Symbol("length", "Base", "(x :: T)"))
    'Base.length(::T)'
    """
    return f"{symbol.qualified_name}{canonical_signature(symbol.signature) or ''}"


def signatures_match(expected: str | None, actual: str | None) -> bool:
    """Return ``True`` when ``actual`` satisfies the ``expected`` signature."""
    if expected is None:
        return True
    if actual is None:
        return False
    try:
        return normalize_signature(actual) == expected
    except SignatureError:
        return False


__all__ = [
    "SignatureError",
    "canonical_signature",
    "normalize_signature",
    "parse_target",
    "signatures_match",
    "strip_code_span",
    "symbol_key",
]
