"""
Diff parser using the unidiff library.

This module wraps the unidiff library to parse unified diff text into
files, hunks and change lines that carry both old-side and new-side
line numbers. The raw text is split into one section per file before
parsing, so a malformed file is reported and skipped while the rest of
the diff is still parsed.
"""

import fnmatch
import logging
import re
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field
from unidiff import PatchSet, PatchedFile
from unidiff.errors import UnidiffParseError

from ai_review_engine.models.diff import (
    ChangeLine,
    ChangeType,
    DiffFile,
    Hunk,
    LineKind,
)

logger = logging.getLogger(__name__)

DEV_NULL = "/dev/null"

HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@[ ]?(.*)$")
GIT_HEADER_RE = re.compile(r"^diff --git (?P<source>\S+) (?P<target>\S+)")
RENAME_FROM_RE = re.compile(r"^rename from (?P<path>.+)$", re.MULTILINE)
RENAME_TO_RE = re.compile(r"^rename to (?P<path>.+)$", re.MULTILINE)
BINARY_RE = re.compile(r"^(?:Binary files .+ differ|GIT binary patch)\s*$", re.MULTILINE)


class DiffParserError(Exception):
    """Error reading diff input."""
    pass


class DiffParseError(Exception):
    """A single file section of a diff could not be parsed."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class OversizedDiffError(Exception):
    """The diff is too large to review."""

    def __init__(self, size: int, limit: int, unit: str) -> None:
        super().__init__(f"Diff has {size} {unit}, limit is {limit}")
        self.size = size
        self.limit = limit
        self.unit = unit


class ParseFailure(BaseModel):
    """A file excluded from the parse result because it could not be parsed."""

    path: str
    message: str

    class Config:
        frozen = True


class DiffParseResult(BaseModel):
    """Files parsed from one diff, plus the files that were excluded."""

    files: list[DiffFile] = Field(default_factory=list)
    errors: list[ParseFailure] = Field(default_factory=list)
    skipped: list[str] = Field(
        default_factory=list,
        description="Paths of binary files, which are not parsed as text",
    )

    @property
    def reviewable_files(self) -> list[DiffFile]:
        """Files with at least one hunk."""
        return [f for f in self.files if f.has_hunks]

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0


def normalize_path(raw: str) -> str:
    """
    Normalize a repository-relative path.

    Removes quoting and leading ``./`` or ``/``, and converts backslashes
    to forward slashes. A leading ``a/`` or ``b/`` is a real directory here;
    use :func:`header_path` for file names read from diff headers.
    """
    path = raw.strip().strip('"').replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def header_path(raw: str, prefix: str) -> str:
    """
    Normalize a file name taken from a diff header.

    Git writes pre-change names as ``a/<path>`` and post-change names as
    ``b/<path>``. Only that one side prefix is removed, so ``a/a/X.al``
    becomes ``a/X.al``.

    Args:
        raw: File name as it appears after ``---``, ``+++`` or ``diff --git``.
        prefix: ``"a/"`` for the pre-change side, ``"b/"`` for the post-change side.
    """
    path = normalize_path(raw)
    if path.startswith(prefix):
        path = path[len(prefix):]
    return path


def _strip_newline(value: str) -> str:
    if value.endswith("\n"):
        value = value[:-1]
    if value.endswith("\r"):
        value = value[:-1]
    return value


class DiffParser:
    """
    Parse unified diff files using the unidiff library.

    Supports parsing from files or strings.
    """

    @staticmethod
    def _split_sections(diff_content: str) -> list[str]:
        """
        Split raw diff text into one section per file.

        Sections start at ``diff --git`` headers. Plain unified diffs
        without git headers are split at each ``---``/``+++`` pair, but
        never inside a hunk body: a removed ``-- x`` line followed by an
        added ``++ y`` line reads as ``--- x``/``+++ y``.
        """
        lines = diff_content.splitlines(keepends=True)
        sections: list[list[str]] = []
        current: list[str] = []
        old_left = new_left = 0

        for i, line in enumerate(lines):
            if old_left > 0 or new_left > 0:
                # A header pair followed by a hunk header means the body came up short
                if (
                    line.startswith("--- ")
                    and i + 2 < len(lines)
                    and lines[i + 1].startswith("+++ ")
                    and HUNK_HEADER_RE.match(lines[i + 2])
                ):
                    old_left = new_left = 0
                else:
                    old_left, new_left = DiffParser._consume_body_line(line, old_left, new_left)
                    if old_left > 0 or new_left > 0 or line[:1] in ("+", "-", " ", "\\"):
                        current.append(line)
                        continue

            header = HUNK_HEADER_RE.match(line)
            if header:
                old_left = int(header.group(2)) if header.group(2) is not None else 1
                new_left = int(header.group(4)) if header.group(4) is not None else 1

            starts_file = line.startswith("diff --git ")
            if not starts_file and line.startswith("--- ") and current:
                next_line = lines[i + 1] if i + 1 < len(lines) else ""
                starts_file = (
                    next_line.startswith("+++ ")
                    and not current[0].startswith("diff --git ")
                    and any(seen.startswith("+++ ") for seen in current)
                )
            if starts_file and current:
                sections.append(current)
                current = []
            current.append(line)

        if current:
            sections.append(current)
        return ["".join(section) for section in sections]

    @staticmethod
    def _consume_body_line(line: str, old_left: int, new_left: int) -> tuple[int, int]:
        """Remaining (old, new) hunk counts after one body line; (0, 0) ends the hunk."""
        marker = line[:1]
        if marker == "+":
            return old_left, new_left - 1
        if marker == "-":
            return old_left - 1, new_left
        if marker == " " or line in ("\n", "\r\n"):
            return old_left - 1, new_left - 1
        if marker == "\\":
            return old_left, new_left
        return 0, 0

    @staticmethod
    def _section_path(section: str) -> str:
        """Best-effort path of a section, used to label parse errors."""
        for line in section.splitlines():
            if line.startswith("+++ ") and DEV_NULL not in line:
                return header_path(line[4:].split("\t")[0], "b/")
            match = GIT_HEADER_RE.match(line)
            if match:
                return header_path(match.group("target"), "b/")
        return "<unknown>"

    @staticmethod
    def _determine_change_type(source: str, target: str, patched_file: PatchedFile) -> ChangeType:
        """
        Determine the type of change for a patched file.

        Args:
            source: Raw pre-change file name from the diff.
            target: Raw post-change file name from the diff.
            patched_file: A PatchedFile from unidiff.

        Returns:
            The ChangeType for this file.
        """
        if source == DEV_NULL or patched_file.is_added_file:
            return ChangeType.ADDED
        elif target == DEV_NULL or patched_file.is_removed_file:
            return ChangeType.DELETED
        elif header_path(source, "a/") != header_path(target, "b/"):
            return ChangeType.RENAMED
        else:
            return ChangeType.MODIFIED

    @staticmethod
    def _parse_hunk(hunk: "unidiff.Hunk", path: str, position: int) -> tuple[Hunk, int]:  # type: ignore[name-defined]
        """
        Parse a unidiff Hunk into our Hunk model.

        Args:
            hunk: A Hunk from unidiff.
            path: Path of the file, for error messages.
            position: Rendered diff position of the previous line.

        Returns:
            Tuple of (Hunk with numbered change lines, last position used).

        Raises:
            DiffParseError: If the hunk body does not match its header counts.
        """
        lines: list[ChangeLine] = []

        # Track line numbers as we iterate through the hunk
        old_line = hunk.source_start
        new_line = hunk.target_start
        position += 1  # the hunk header itself

        for line in hunk:
            content = _strip_newline(line.value)
            if line.is_added:
                position += 1
                lines.append(ChangeLine(
                    kind=LineKind.ADDED,
                    content=content,
                    new_line=new_line,
                    diff_position=position,
                ))
                new_line += 1
            elif line.is_removed:
                position += 1
                lines.append(ChangeLine(
                    kind=LineKind.REMOVED,
                    content=content,
                    old_line=old_line,
                    diff_position=position,
                ))
                old_line += 1
            elif line.is_context:
                position += 1
                lines.append(ChangeLine(
                    kind=LineKind.CONTEXT,
                    content=content,
                    old_line=old_line,
                    new_line=new_line,
                    diff_position=position,
                ))
                old_line += 1
                new_line += 1
            # "\ No newline at end of file" markers are not counted

        consumed_old = old_line - hunk.source_start
        consumed_new = new_line - hunk.target_start
        if consumed_old != hunk.source_length or consumed_new != hunk.target_length:
            raise DiffParseError(
                path,
                f"hunk @@ -{hunk.source_start},{hunk.source_length} "
                f"+{hunk.target_start},{hunk.target_length} @@ has "
                f"{consumed_old} old and {consumed_new} new lines",
            )

        parsed = Hunk(
            old_start=hunk.source_start,
            old_count=hunk.source_length,
            new_start=hunk.target_start,
            new_count=hunk.target_length,
            section_header=(hunk.section_header or "").strip(),
            lines=lines,
        )
        return parsed, position

    @classmethod
    def _parse_patched_file(cls, patched_file: PatchedFile) -> DiffFile:
        """
        Parse a PatchedFile into our DiffFile model.

        Args:
            patched_file: A PatchedFile from unidiff.

        Returns:
            DiffFile with all hunk information.
        """
        source = patched_file.source_file or DEV_NULL
        target = patched_file.target_file or DEV_NULL
        change_type = cls._determine_change_type(source, target, patched_file)

        # Post-change path, except for deletions which have none
        if change_type == ChangeType.DELETED:
            path = header_path(source, "a/")
        else:
            path = header_path(target, "b/")

        source_path = None
        if change_type == ChangeType.RENAMED:
            source_path = header_path(source, "a/")

        hunks: list[Hunk] = []
        position = 0
        for hunk in patched_file:
            parsed, position = cls._parse_hunk(hunk, path, position)
            hunks.append(parsed)

        return DiffFile(
            path=path,
            change_type=change_type,
            source_path=source_path,
            hunks=hunks,
        )

    @staticmethod
    def _rename_only_file(section: str) -> Optional[DiffFile]:
        """Build a hunk-less file for a git section that only renames."""
        source = RENAME_FROM_RE.search(section)
        target = RENAME_TO_RE.search(section)
        if not (source and target):
            return None
        return DiffFile(
            path=normalize_path(target.group("path")),
            change_type=ChangeType.RENAMED,
            source_path=normalize_path(source.group("path")),
        )

    @classmethod
    def _parse_section(cls, section: str, result: DiffParseResult) -> None:
        """Parse one file section, recording failures on the result."""
        path = cls._section_path(section)

        if BINARY_RE.search(section):
            logger.debug("Skipping binary file %s", path)
            result.skipped.append(path)
            return

        for line in section.splitlines():
            if line.startswith("@@") and not HUNK_HEADER_RE.match(line):
                raise DiffParseError(path, f"unparseable hunk header {line!r}")

        try:
            patch_set = PatchSet(section)
        except UnidiffParseError as e:
            raise DiffParseError(path, str(e)) from e

        if len(patch_set) == 0:
            renamed = cls._rename_only_file(section)
            if renamed is not None:
                result.files.append(renamed)
            elif "@@" in section:
                raise DiffParseError(path, "hunks found without a file header")
            return

        for patched_file in patch_set:
            if patched_file.is_binary_file:
                logger.debug("Skipping binary file %s", patched_file.path)
                result.skipped.append(normalize_path(patched_file.path))
                continue
            result.files.append(cls._parse_patched_file(patched_file))

    @classmethod
    def parse_string(cls, diff_content: str) -> DiffParseResult:
        """
        Parse diff content from a string.

        A file that cannot be parsed is excluded from ``files`` and
        recorded in ``errors``; parsing continues with the next file.

        Args:
            diff_content: The diff content as a string.

        Returns:
            DiffParseResult with the parsed files and per-file errors.
        """
        result = DiffParseResult()
        for section in cls._split_sections(diff_content):
            try:
                cls._parse_section(section, result)
            except DiffParseError as e:
                logger.warning("Excluding file from review: %s", e)
                result.errors.append(ParseFailure(path=e.path, message=e.message))

        logger.debug(
            "Parsed %d files (%d errors, %d binary skipped)",
            len(result.files), len(result.errors), len(result.skipped),
        )
        return result

    @classmethod
    def parse_file(cls, diff_path: Path, encoding: str = "utf-8") -> DiffParseResult:
        """
        Parse a diff file.

        Args:
            diff_path: Path to the diff file.
            encoding: File encoding (default: utf-8).

        Returns:
            DiffParseResult for the file's content.

        Raises:
            DiffParserError: If the file cannot be read.
        """
        try:
            diff_content = diff_path.read_text(encoding=encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise DiffParserError(f"Failed to read diff file {diff_path}: {e}") from e
        return cls.parse_string(diff_content)

    @classmethod
    def parse(cls, source: Union[Path, str]) -> DiffParseResult:
        """
        Parse diff from a file path or string.

        Args:
            source: Either a Path to a diff file or diff content as string.

        Returns:
            DiffParseResult for the diff.
        """
        if isinstance(source, Path):
            return cls.parse_file(source)
        elif isinstance(source, str):
            return cls.parse_string(source)
        else:
            raise DiffParserError(f"Invalid source type: {type(source)}")

    @staticmethod
    def ensure_within_limits(
        diff_content: str,
        max_bytes: int = 0,
        max_lines: int = 0,
    ) -> None:
        """
        Reject a diff that is too large to review.

        Args:
            diff_content: Raw diff text.
            max_bytes: Maximum UTF-8 size in bytes (0 disables the check).
            max_lines: Maximum number of lines (0 disables the check).

        Raises:
            OversizedDiffError: If either limit is exceeded.
        """
        if max_bytes > 0:
            size = len(diff_content.encode("utf-8"))
            if size > max_bytes:
                raise OversizedDiffError(size, max_bytes, "bytes")
        if max_lines > 0:
            count = diff_content.count("\n") + (0 if diff_content.endswith("\n") else 1)
            if diff_content and count > max_lines:
                raise OversizedDiffError(count, max_lines, "lines")

    @staticmethod
    def _matches(path: str, pattern: str) -> bool:
        pattern = normalize_path(pattern)
        if fnmatch.fnmatch(path, pattern):
            return True
        # "**/" also matches files at the repository root
        while pattern.startswith("**/"):
            pattern = pattern[3:]
            if fnmatch.fnmatch(path, pattern):
                return True
        return False

    @classmethod
    def filter_files(
        cls,
        diff_files: list[DiffFile],
        include_patterns: list[str],
        exclude_patterns: list[str],
    ) -> list[DiffFile]:
        """
        Filter diff files by glob patterns.

        Args:
            diff_files: List of DiffFile objects.
            include_patterns: Globs a file must match (empty includes everything).
            exclude_patterns: Globs that remove a file.

        Returns:
            List of DiffFile objects that pass both filters.
        """
        selected: list[DiffFile] = []
        for diff_file in diff_files:
            if include_patterns and not any(cls._matches(diff_file.path, p) for p in include_patterns):
                continue
            if any(cls._matches(diff_file.path, p) for p in exclude_patterns):
                continue
            selected.append(diff_file)
        return selected
