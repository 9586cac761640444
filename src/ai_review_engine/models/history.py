"""
Review history models.

Prior reviews and pull-request commits consumed by the baseline selector.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Review(BaseModel):
    """A review previously submitted on the pull request."""
    
    author: str = Field(description="Login of the review author")
    submitted_at: Optional[datetime] = Field(default=None)
    body: str = Field(default="")
    
    class Config:
        frozen = True


class Commit(BaseModel):
    """A commit on the pull request branch."""
    
    sha: str
    committed_at: Optional[datetime] = Field(default=None)
    
    class Config:
        frozen = True


class BaselineStrategy(str, Enum):
    """How the baseline commit was chosen."""
    
    MARKER = "marker"         # Exact: marker embedded in a previous review
    TIMESTAMP = "timestamp"   # Best effort: last commit before the previous review
    BASE = "base"             # Full review against the base commit


class BaselineState(BaseModel):
    """The commit considered already reviewed for a single pipeline run."""
    
    sha: Optional[str] = Field(default=None, description="Baseline commit")
    strategy: BaselineStrategy = Field(default=BaselineStrategy.BASE)
    
    class Config:
        frozen = True
    
    @property
    def last_reviewed_commit(self) -> Optional[str]:
        """The commit a previous automated review covered, if any."""
        if self.strategy == BaselineStrategy.BASE:
            return None
        return self.sha
    
    @property
    def is_incremental(self) -> bool:
        return self.strategy != BaselineStrategy.BASE
    
    def is_up_to_date(self, head_sha: str) -> bool:
        """Whether the head commit has already been reviewed."""
        last = self.last_reviewed_commit
        if not last or not head_sha:
            return False
        last, head = last.lower(), head_sha.lower()
        return head.startswith(last) or last.startswith(head)
