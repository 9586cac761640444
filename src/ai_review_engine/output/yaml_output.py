"""
YAML output formatter.
"""

import yaml

from ai_review_engine.models.guideline import GuidelineHit
from ai_review_engine.models.review import ReviewPlan
from ai_review_engine.output.formatters import (
    BaseFormatter,
    diff_to_dict,
    plan_to_dict,
    register_formatter,
)
from ai_review_engine.parser.diff_parser import DiffParseResult


@register_formatter("yaml")
class YamlFormatter(BaseFormatter):
    """
    Format output as YAML.
    """

    def _dump(self, data: dict) -> str:
        return yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def format_diff(self, result: DiffParseResult) -> str:
        """Format a parse result as YAML."""
        return self._dump(diff_to_dict(result))

    def format_hits(self, hits: list[GuidelineHit]) -> str:
        """Format guideline hits as YAML."""
        return self._dump({
            "total": len(hits),
            "hits": [hit.model_dump() for hit in hits],
        })

    def format_plan(self, plan: ReviewPlan) -> str:
        """Format a review plan as YAML."""
        return self._dump(plan_to_dict(plan))
