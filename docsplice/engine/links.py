"""Helpers for turning page ids and anchors into relative hyperlinks."""

from __future__ import annotations

import posixpath
import typing as typ

from docsplice._constants import OUTPUT_SUFFIX, SOURCE_SUFFIX

if typ.TYPE_CHECKING:
    from docsplice.model import Anchor


def output_path(page_id: str) -> str:
    """Return the POSIX output path generated for ``page_id``.

    >>> output_path("guide/intro.md")
    'guide/intro.html'
    """
    normalized = posixpath.normpath(page_id.replace("\\", "/"))
    if normalized.endswith(SOURCE_SUFFIX):
        normalized = normalized[: -len(SOURCE_SUFFIX)]
    return f"{normalized}{OUTPUT_SUFFIX}"


def anchor_href(from_page_id: str, anchor: Anchor) -> str:
    """Return the href from ``from_page_id`` to ``anchor``.

    Same-page anchors become fragment-only links; other pages are linked
    relative to the directory of the referring page.

    >>> from docsplice.model import Anchor, AnchorOrigin
    >>> target = Anchor("setup", AnchorOrigin.HEADING, "guide/setup.md", 1, (0, 0), "setup", "Setup")
    >>> anchor_href("api/index.md", target)
    '../guide/setup.html#setup'
    >>> anchor_href("guide/setup.md", target)
    '#setup'
    """
    if anchor.page_id == from_page_id:
        return f"#{anchor.anchor_id}"
    base_dir = posixpath.dirname(output_path(from_page_id)) or "."
    relative = posixpath.relpath(output_path(anchor.page_id), base_dir)
    return f"{relative}#{anchor.anchor_id}"


def resolve_page_reference(from_page_id: str, name: str, page_ids: typ.Collection[str]) -> str | None:
    """Match a ``Pages`` entry as written, then relative to the referring page."""
    if name in page_ids:
        return name
    joined = posixpath.normpath(posixpath.join(posixpath.dirname(from_page_id), name))
    if joined in page_ids:
        return joined
    return None


__all__ = ["anchor_href", "output_path", "resolve_page_reference"]
