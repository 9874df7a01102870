"""Render ``contents`` and ``index`` listings as markdown link lists."""

from __future__ import annotations

import re
import typing as typ

from .links import anchor_href

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from docsplice.model import Anchor

_LINK_TEXT_SPECIALS = re.compile(r"([\[\]])")
_INDENT = "    "


def _escape_label(text: str) -> str:
    return _LINK_TEXT_SPECIALS.sub(r"\\\1", text)


def render_contents(anchors: cabc.Sequence[Anchor], from_page_id: str) -> str:
    """Return a nested markdown list linking to heading anchors.

    Nesting follows heading levels relative to the shallowest listed heading;
    an item is never indented more than one level below its predecessor.
    """
    if not anchors:
        return ""
    base_level = min(anchor.level for anchor in anchors)
    lines: list[str] = []
    previous_depth = -1
    for anchor in anchors:
        depth = min(anchor.level - base_level, previous_depth + 1)
        href = anchor_href(from_page_id, anchor)
        lines.append(f"{_INDENT * depth}- [{_escape_label(anchor.label)}]({href})")
        previous_depth = depth
    return "\n".join(lines) + "\n\n"


def render_index(anchors: cabc.Sequence[Anchor], from_page_id: str) -> str:
    """Return a flat markdown list linking to symbol anchors."""
    if not anchors:
        return ""
    lines = [
        f"- [`{anchor.label}`]({anchor_href(from_page_id, anchor)})" for anchor in anchors
    ]
    return "\n".join(lines) + "\n\n"


__all__ = ["render_contents", "render_index"]
