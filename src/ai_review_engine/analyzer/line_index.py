"""
Line index for anchoring comments onto a parsed diff.

For each file, records which positions the hosting platform accepts for
inline comments. New-side lines (added and context) are keyed on the
``after`` side; pure deletions are keyed on the ``before`` side by their
old line number. The two sides are never conflated: old line 12 and new
line 12 are different positions.
"""

from typing import Optional

from ai_review_engine.models.diff import DiffFile, LineKind
from ai_review_engine.models.review import Position, Side


class FileLineIndex:
    """
    Commentable positions of a single file.
    """

    def __init__(self, path: str) -> None:
        """
        Initialize an empty index.

        Args:
            path: Normalized path of the file.
        """
        self.path = path
        self._after: set[int] = set()
        self._before: set[int] = set()

    def add(self, position: Position) -> None:
        """Record a commentable position."""
        if position.side == Side.AFTER:
            self._after.add(position.line)
        else:
            self._before.add(position.line)

    @property
    def commentable_lines(self) -> list[int]:
        """Sorted new-side line numbers of added and context lines."""
        return sorted(self._after)

    @property
    def deleted_lines(self) -> list[int]:
        """Sorted old-side line numbers of pure deletions."""
        return sorted(self._before)

    @property
    def positions(self) -> set[Position]:
        """Every commentable position, keyed by side and line."""
        return {Position.after(n) for n in self._after} | {Position.before(n) for n in self._before}

    def has(self, line: int, side: Side) -> bool:
        """Check whether a line is commentable on the given side."""
        if side == Side.AFTER:
            return line in self._after
        return line in self._before

    def side_of(self, line: int, allow_before: bool = True) -> Optional[Side]:
        """
        Resolve which side a bare line number refers to.

        New-side lines win when a number exists on both sides.

        Args:
            line: Line number proposed for a comment.
            allow_before: Whether pure-deletion lines may be resolved.

        Returns:
            The side, or None if the line is not commentable.
        """
        if line in self._after:
            return Side.AFTER
        if allow_before and line in self._before:
            return Side.BEFORE
        return None

    def __contains__(self, position: Position) -> bool:
        return self.has(position.line, position.side)

    def __repr__(self) -> str:
        return (
            f"FileLineIndex(path={self.path!r}, after={len(self._after)}, "
            f"before={len(self._before)})"
        )


class LineIndex:
    """
    Build per-file line indexes from parsed diff files.
    """

    @staticmethod
    def build_file(diff_file: DiffFile) -> FileLineIndex:
        """
        Index a single file in one pass over its change lines.

        Args:
            diff_file: A parsed DiffFile.

        Returns:
            FileLineIndex for the file.
        """
        index = FileLineIndex(diff_file.path)
        for line in diff_file.iter_lines():
            if line.kind == LineKind.REMOVED:
                index.add(Position.before(line.old_line))
            elif line.new_line is not None and line.new_line > 0:
                index.add(Position.after(line.new_line))
        return index

    @classmethod
    def build(cls, files: list[DiffFile]) -> dict[str, FileLineIndex]:
        """
        Index every file that has hunks.

        Files without hunks (pure renames) have no commentable lines and
        are left out.

        Args:
            files: Parsed diff files.

        Returns:
            Mapping of normalized path to FileLineIndex.
        """
        return {f.path: cls.build_file(f) for f in files if f.has_hunks}
