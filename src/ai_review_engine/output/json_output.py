"""
JSON output formatter.
"""

import json

from ai_review_engine.models.guideline import GuidelineHit
from ai_review_engine.models.review import ReviewPlan
from ai_review_engine.output.formatters import (
    BaseFormatter,
    diff_to_dict,
    plan_to_dict,
    register_formatter,
)
from ai_review_engine.parser.diff_parser import DiffParseResult


@register_formatter("json")
class JsonFormatter(BaseFormatter):
    """
    Format output as JSON.
    """
    
    def __init__(self, indent: int = 2) -> None:
        """
        Initialize the JSON formatter.
        
        Args:
            indent: JSON indentation level.
        """
        self.indent = indent
    
    def format_diff(self, result: DiffParseResult) -> str:
        """Format a parse result as JSON."""
        return json.dumps(diff_to_dict(result), indent=self.indent, default=str)
    
    def format_hits(self, hits: list[GuidelineHit]) -> str:
        """Format guideline hits as JSON."""
        data = {
            "total": len(hits),
            "hits": [hit.model_dump() for hit in hits],
        }
        return json.dumps(data, indent=self.indent, default=str)
    
    def format_plan(self, plan: ReviewPlan) -> str:
        """Format a review plan as JSON."""
        return json.dumps(plan_to_dict(plan), indent=self.indent, default=str)
