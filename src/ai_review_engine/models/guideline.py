"""
Guideline rule models.
"""

from typing import Optional

from pydantic import BaseModel, Field


class GuidelineRule(BaseModel):
    """A named coding guideline, optionally detectable by regex."""
    
    name: str = Field(description="Unique rule name")
    detection_patterns: list[str] = Field(
        default_factory=list,
        description="Regular expressions; empty for rules that cannot be detected mechanically",
    )
    documentation_ref: Optional[str] = Field(
        default=None,
        description="Link or reference to the rule's documentation",
    )
    
    class Config:
        frozen = True
    
    @property
    def is_detectable(self) -> bool:
        return len(self.detection_patterns) > 0


class GuidelineHit(BaseModel):
    """A rule match in the changed code."""
    
    rule: str = Field(description="Name of the matching rule")
    path: str = Field(description="File containing the match")
    matched_snippet: str = Field(description="Matched text, truncated")
    diff_line: int = Field(
        description=(
            "1-based line in DiffFile.render(); no-newline markers are not "
            "counted, so this is not an offset into the raw diff text"
        ),
    )
    new_line: Optional[int] = Field(
        default=None,
        description="Post-change file line of the match",
    )
    documentation_ref: Optional[str] = Field(default=None)
    
    class Config:
        frozen = True
