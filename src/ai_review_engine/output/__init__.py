"""
Output package for the AI review engine.

This package contains formatters for displaying parse results, guideline
hits and review plans in various formats (text, JSON, YAML, Markdown).
"""

from ai_review_engine.output.formatters import (
    BaseFormatter,
    available_formats,
    get_formatter,
)
from ai_review_engine.output.json_output import JsonFormatter
from ai_review_engine.output.markdown_output import MarkdownFormatter
from ai_review_engine.output.text_output import TextFormatter
from ai_review_engine.output.yaml_output import YamlFormatter

__all__ = [
    "BaseFormatter",
    "JsonFormatter",
    "MarkdownFormatter",
    "TextFormatter",
    "YamlFormatter",
    "available_formats",
    "get_formatter",
]
