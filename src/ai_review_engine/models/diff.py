"""
Diff data models.

Models representing parsed diff files, hunks and individual change lines.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ChangeType(str, Enum):
    """Type of file change in a diff."""
    
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class LineKind(str, Enum):
    """Kind of a single line inside a hunk."""
    
    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"


_PREFIXES = {
    LineKind.ADDED: "+",
    LineKind.REMOVED: "-",
    LineKind.CONTEXT: " ",
}


class ChangeLine(BaseModel):
    """A single added, removed or context line with its dual line numbers."""
    
    kind: LineKind = Field(description="Whether the line was added, removed or kept")
    content: str = Field(description="Line text without the diff prefix marker")
    old_line: Optional[int] = Field(
        default=None,
        description="Line number in the pre-change file (absent for added lines)",
    )
    new_line: Optional[int] = Field(
        default=None,
        description="Line number in the post-change file (absent for removed lines)",
    )
    diff_position: int = Field(
        default=0,
        description=(
            "1-based line number of this line in DiffFile.render(), which counts "
            "hunk headers but leaves out '\\ No newline at end of file' markers "
            "and file headers, so it is not an offset into the raw diff text"
        ),
    )
    
    class Config:
        frozen = True
    
    @property
    def prefix(self) -> str:
        """The one-character diff marker for this line."""
        return _PREFIXES[self.kind]
    
    def render(self) -> str:
        """Render the line the way it appears in a unified diff."""
        return f"{self.prefix}{self.content}"


class Hunk(BaseModel):
    """Represents a hunk (section of changes) in a diff."""
    
    old_start: int = Field(description="Starting line in source file")
    old_count: int = Field(description="Number of lines in source")
    new_start: int = Field(description="Starting line in target file")
    new_count: int = Field(description="Number of lines in target")
    section_header: str = Field(
        default="",
        description="Text after the closing @@ of the hunk header",
    )
    lines: list[ChangeLine] = Field(
        default_factory=list,
        description="Change lines in diff order",
    )
    
    class Config:
        frozen = True
    
    @property
    def header(self) -> str:
        """The hunk header line."""
        header = f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"
        if self.section_header:
            header += f" {self.section_header}"
        return header
    
    @property
    def added_lines(self) -> list[int]:
        """New-side line numbers of added lines."""
        return [ln.new_line for ln in self.lines if ln.kind == LineKind.ADDED]
    
    @property
    def removed_lines(self) -> list[int]:
        """Old-side line numbers of removed lines."""
        return [ln.old_line for ln in self.lines if ln.kind == LineKind.REMOVED]


class DiffFile(BaseModel):
    """Represents a single file in a diff."""
    
    path: str = Field(description="Normalized post-change path (pre-change path for deletions)")
    change_type: ChangeType = Field(description="Type of change")
    source_path: Optional[str] = Field(
        default=None,
        description="Original path (for renames)",
    )
    hunks: list[Hunk] = Field(
        default_factory=list,
        description="Hunks in this file",
    )
    
    class Config:
        frozen = True
    
    @property
    def has_hunks(self) -> bool:
        """Whether the file carries any content change."""
        return len(self.hunks) > 0
    
    @property
    def added_count(self) -> int:
        """Total lines added."""
        return sum(len(h.added_lines) for h in self.hunks)
    
    @property
    def removed_count(self) -> int:
        """Total lines removed."""
        return sum(len(h.removed_lines) for h in self.hunks)
    
    def iter_lines(self):
        """Iterate over every change line of every hunk in diff order."""
        for hunk in self.hunks:
            yield from hunk.lines
    
    def render(self) -> str:
        """
        Render the file's hunks as diff text.
        
        Each ``ChangeLine.diff_position`` is the 1-based line number of
        that line within this text. File headers and ``\\ No newline at end
        of file`` markers are not rendered, so positions can differ from
        line offsets in the raw diff.
        """
        out: list[str] = []
        for hunk in self.hunks:
            out.append(hunk.header)
            out.extend(line.render() for line in hunk.lines)
        return "\n".join(out)
