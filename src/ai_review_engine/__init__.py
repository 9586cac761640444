"""
AI Review Engine

Turns a unified diff and a language model's free-text review into
precisely anchored pull-request review comments. It parses diffs into
a dual old/new line coordinate system, picks the commit range that is
new since the last automated review, scans the changed code for
guideline violations, recovers structured review data from unreliable
completions, and anchors each proposed comment onto a commentable diff
position without ever losing its text.
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("ai-review-engine")
except PackageNotFoundError:
    __version__ = "0.1.0"

# Public API exports
__all__ = [
    "__version__",
]
