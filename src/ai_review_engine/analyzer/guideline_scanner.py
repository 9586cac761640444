"""
Guideline scanner - finds rule violations in changed code.

Rule patterns are written against plain source text, so each file is
first reconstructed as "clean" text: added and context lines without
their diff marker, removed lines dropped. A position map translates a
clean-text line back to the line's position in the file's rendered
diff.
"""

import logging
import re
from typing import Iterable, Optional

from ai_review_engine.models.diff import DiffFile, LineKind
from ai_review_engine.analyzer.rule_table import RuleTable
from ai_review_engine.models.guideline import GuidelineHit, GuidelineRule

logger = logging.getLogger(__name__)

MAX_SNIPPET_LENGTH = 120


class CleanText:
    """
    Source text reconstructed from a diff file, with its position map.
    """

    def __init__(self, diff_file: DiffFile) -> None:
        """
        Reconstruct the clean text of a file.

        Args:
            diff_file: A parsed DiffFile.
        """
        self.path = diff_file.path
        self.lines: list[str] = []
        self.diff_positions: list[int] = []
        self.new_lines: list[Optional[int]] = []

        for line in diff_file.iter_lines():
            if line.kind == LineKind.REMOVED:
                continue
            self.lines.append(line.content)
            self.diff_positions.append(line.diff_position)
            self.new_lines.append(line.new_line)

        self.text = "\n".join(self.lines)

    def line_at(self, offset: int) -> int:
        """0-based clean-text line containing a character offset."""
        return self.text.count("\n", 0, offset)

    def diff_line(self, clean_line: int) -> int:
        """Translate a 0-based clean-text line to its 1-based diff position."""
        return self.diff_positions[clean_line]


def _truncate(snippet: str, limit: int = MAX_SNIPPET_LENGTH) -> str:
    snippet = snippet.strip()
    if len(snippet) <= limit:
        return snippet
    return snippet[: limit - 3] + "..."


class GuidelineScanner:
    """
    Scan parsed diff files against a table of guideline rules.
    """

    FLAGS = re.IGNORECASE | re.MULTILINE

    @classmethod
    def scan_file(
        cls,
        diff_file: DiffFile,
        rules: Iterable[GuidelineRule],
    ) -> list[GuidelineHit]:
        """
        Scan a single file.

        Args:
            diff_file: A parsed DiffFile with hunks.
            rules: Rules to check.

        Returns:
            At most one hit per rule, from the first pattern that matches.
        """
        clean = CleanText(diff_file)
        if not clean.lines:
            return []

        hits: list[GuidelineHit] = []
        for rule in rules:
            for pattern in rule.detection_patterns:
                match = re.search(pattern, clean.text, cls.FLAGS)
                if match is None:
                    continue
                clean_line = clean.line_at(match.start())
                hits.append(GuidelineHit(
                    rule=rule.name,
                    path=clean.path,
                    matched_snippet=_truncate(match.group(0)),
                    diff_line=clean.diff_line(clean_line),
                    new_line=clean.new_lines[clean_line],
                    documentation_ref=rule.documentation_ref,
                ))
                break
        return hits

    @classmethod
    def scan(
        cls,
        files: list[DiffFile],
        rules: Iterable[GuidelineRule],
    ) -> list[GuidelineHit]:
        """
        Scan every file with hunks.

        Rules without detection patterns are informational and never
        produce hits.

        Args:
            files: Parsed diff files.
            rules: A RuleTable or any iterable of rules.

        Returns:
            Hits in file order, then rule order.
        """
        if isinstance(rules, RuleTable):
            detectable = rules.detectable
        else:
            detectable = [r for r in rules if r.is_detectable]
        hits: list[GuidelineHit] = []
        for diff_file in files:
            if not diff_file.has_hunks:
                continue
            hits.extend(cls.scan_file(diff_file, detectable))

        logger.debug("Guideline scan found %d hits in %d files", len(hits), len(files))
        return hits
