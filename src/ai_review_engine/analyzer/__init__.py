"""
Analyzer package for the AI review engine.

This package contains modules for:
- Line indexing of parsed diffs
- Guideline rule tables and scanning
- Baseline commit selection
- Comment anchoring and review planning
- The end-to-end review pipeline
"""

from ai_review_engine.analyzer.baseline_selector import BaselineSelector, select_baseline
from ai_review_engine.analyzer.comment_anchor import AnchorResult, CommentAnchor
from ai_review_engine.analyzer.guideline_scanner import GuidelineScanner
from ai_review_engine.analyzer.line_index import FileLineIndex, LineIndex
from ai_review_engine.analyzer.review_pipeline import ReviewPipeline
from ai_review_engine.analyzer.rule_table import RuleTable

__all__ = [
    "AnchorResult",
    "BaselineSelector",
    "CommentAnchor",
    "FileLineIndex",
    "GuidelineScanner",
    "LineIndex",
    "ReviewPipeline",
    "RuleTable",
    "select_baseline",
]
