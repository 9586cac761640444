"""
Parser package for the AI review engine.

This package contains modules for:
- Diff file parsing (using unidiff)
- Recovering structured reviews from model completions
"""

from ai_review_engine.parser.diff_parser import DiffParser
from ai_review_engine.parser.response_sanitizer import ResponseSanitizer

__all__ = [
    "DiffParser",
    "ResponseSanitizer",
]
