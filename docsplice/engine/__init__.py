"""Directive expansion and cross-reference resolution for docsplice builds."""

from .expansion import Build, BuildResult, BuildStage, ExpansionEngine, StageOrderError
from .links import anchor_href, output_path
from .xrefs import CrossReferenceResolver

__all__ = [
    "Build",
    "BuildResult",
    "BuildStage",
    "CrossReferenceResolver",
    "ExpansionEngine",
    "StageOrderError",
    "anchor_href",
    "output_path",
]
