"""Common literal values used across docsplice.

These constants keep directive names, recognised settings and file naming in
one place so the parser, the expansion engine, the renderer and tests import
the same values without drifting.

Examples
--------
>>> from docsplice import _constants
>>> "contents" in _constants.DIRECTIVE_KINDS
True
>>> sorted(_constants.RECOGNISED_SETTINGS["contents"])
['Depth', 'Pages']
"""

DIRECTIVE_KINDS = ("docs", "autodocs", "index", "contents", "meta")
RECOGNISED_SETTINGS: dict[str, frozenset[str]] = {
    "docs": frozenset(),
    "autodocs": frozenset({"Modules"}),
    "index": frozenset({"Pages", "Modules"}),
    "contents": frozenset({"Pages", "Depth"}),
    "meta": frozenset({"CurrentModule"}),
}
DOCS_KINDS = frozenset({"docs", "autodocs", "meta"})
LISTING_KINDS = frozenset({"index", "contents"})
DEFAULT_CONTENTS_DEPTH = 2
REF_TARGET = "@ref"
SOURCE_SUFFIX = ".md"
OUTPUT_SUFFIX = ".html"
DEFAULT_CONFIG_NAME = "docsplice.yaml"
