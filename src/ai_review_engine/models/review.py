"""
Review data models.

Models for the structured review recovered from a model completion and
for the comments that end up on the pull request.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Side(str, Enum):
    """Which version of a file a commentable position refers to."""
    
    BEFORE = "before"   # Pre-change file, addressed by old line numbers
    AFTER = "after"     # Post-change file, addressed by new line numbers
    
    @property
    def platform_value(self) -> str:
        """The side name used by the hosting platform's review API."""
        return "LEFT" if self is Side.BEFORE else "RIGHT"


class Position(BaseModel):
    """A line on one side of a diff. Lines on different sides never compare equal."""
    
    side: Side
    line: int = Field(ge=1)
    
    class Config:
        frozen = True
    
    @classmethod
    def before(cls, line: int) -> "Position":
        return cls(side=Side.BEFORE, line=line)
    
    @classmethod
    def after(cls, line: int) -> "Position":
        return cls(side=Side.AFTER, line=line)


class SuggestedAction(str, Enum):
    """Overall verdict suggested by the model."""
    
    APPROVE = "approve"
    REQUEST_CHANGES = "request_changes"
    COMMENT = "comment"


class ReviewEvent(str, Enum):
    """Review event submitted to the hosting platform."""
    
    APPROVE = "APPROVE"
    REQUEST_CHANGES = "REQUEST_CHANGES"
    COMMENT = "COMMENT"


class ProposedComment(BaseModel):
    """A comment as proposed by the model, before anchoring."""
    
    path: Optional[str] = Field(default=None, description="File the comment targets")
    line: Optional[int] = Field(default=None, description="Line the comment targets")
    body: str = Field(description="Comment text")
    
    class Config:
        frozen = True
    
    @property
    def location(self) -> str:
        """Human-readable location, used when the comment is folded into text."""
        if self.path and self.line is not None:
            return f"{self.path}:{self.line}"
        return self.path or "(no file)"


class ReviewDraft(BaseModel):
    """Structured review recovered from a model completion."""
    
    summary: str = Field(default="", description="Overall review summary")
    proposed_comments: list[ProposedComment] = Field(
        default_factory=list,
        description="Inline comments in the model's priority order",
    )
    suggested_action: SuggestedAction = Field(default=SuggestedAction.COMMENT)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    
    class Config:
        frozen = True


class AnchoredComment(BaseModel):
    """A comment placed on a position the platform accepts for inline comments."""
    
    path: str
    line: int
    side: Side
    body: str
    
    class Config:
        frozen = True
    
    @property
    def position(self) -> Position:
        return Position(side=self.side, line=self.line)


class FileNote(BaseModel):
    """A comment scoped to a file without a line."""
    
    path: str
    body: str
    
    class Config:
        frozen = True


class Disposition(str, Enum):
    """Terminal state of a proposed comment. Every state keeps the body text."""
    
    POSTED = "posted"
    DOWNGRADED_TO_NOTE = "downgraded_to_note"
    DEFERRED_TO_SUMMARY = "deferred_to_summary"


class CommentOutcome(BaseModel):
    """Where a single proposed comment ended up."""
    
    comment: ProposedComment
    disposition: Disposition
    reason: Optional[str] = None
    
    class Config:
        frozen = True


class ReviewPlan(BaseModel):
    """Everything needed to post one review."""
    
    body: str = Field(description="Summary body, always ending with the head marker")
    event: ReviewEvent = Field(default=ReviewEvent.COMMENT)
    head_sha: Optional[str] = Field(default=None)
    comments: list[AnchoredComment] = Field(default_factory=list)
    file_notes: list[FileNote] = Field(default_factory=list)
    outcomes: list[CommentOutcome] = Field(default_factory=list)
    
    class Config:
        frozen = True
    
    def count(self, disposition: Disposition) -> int:
        """Number of proposed comments that ended in the given state."""
        return sum(1 for o in self.outcomes if o.disposition == disposition)
