"""
Data models for the AI review engine.

This package contains Pydantic models for parsed diffs, guideline rules,
review history and review content.
"""

from ai_review_engine.models.diff import (
    ChangeLine,
    ChangeType,
    DiffFile,
    Hunk,
    LineKind,
)
from ai_review_engine.models.guideline import (
    GuidelineHit,
    GuidelineRule,
)
from ai_review_engine.models.history import (
    BaselineState,
    BaselineStrategy,
    Commit,
    Review,
)
from ai_review_engine.models.review import (
    AnchoredComment,
    CommentOutcome,
    Disposition,
    FileNote,
    Position,
    ProposedComment,
    ReviewDraft,
    ReviewEvent,
    ReviewPlan,
    Side,
    SuggestedAction,
)

__all__ = [
    # Diff models
    "ChangeLine",
    "ChangeType",
    "DiffFile",
    "Hunk",
    "LineKind",
    # Guideline models
    "GuidelineHit",
    "GuidelineRule",
    # History models
    "BaselineState",
    "BaselineStrategy",
    "Commit",
    "Review",
    # Review models
    "AnchoredComment",
    "CommentOutcome",
    "Disposition",
    "FileNote",
    "Position",
    "ProposedComment",
    "ReviewDraft",
    "ReviewEvent",
    "ReviewPlan",
    "Side",
    "SuggestedAction",
]
