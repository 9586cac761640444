"""
Guideline rule table.

A rule table maps rule names to their documentation reference and
detection patterns. Tables are assembled once per run (from a file,
from a mapping discovered elsewhere, or from the built-in defaults) and
passed explicitly to the scanner.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml

from ai_review_engine.models.guideline import GuidelineRule

logger = logging.getLogger(__name__)

ALGUIDELINES_BASE = "https://alguidelines.dev/docs/bestpractices"

# Business Central AL guidelines shipped with the engine.
DEFAULT_RULES: dict[str, dict[str, Any]] = {
    "with-statements": {
        "documentationRef": f"{ALGUIDELINES_BASE}/with-statements/",
        "detectionPatterns": [r"\bwith\s+\w+\s+do\b"],
    },
    "unnecessary-truefalse": {
        "documentationRef": f"{ALGUIDELINES_BASE}/unnecessary-truefalse/",
        "detectionPatterns": [r"\bif\s+[^;\n]*?(?:=|<>)\s*(?:true|false)\b"],
    },
    "if-not-find-then-exit": {
        "documentationRef": f"{ALGUIDELINES_BASE}/if-not-find-then-exit/",
        "detectionPatterns": [r"\bif\s+\w+\.Find(?:First|Last|Set)?\([^)]*\)\s+then\s*\n\s*begin"],
    },
    "text-constants": {
        "documentationRef": f"{ALGUIDELINES_BASE}/text-constants/",
        "detectionPatterns": [r"\b(?:Error|Message|Confirm)\(\s*'[^']+'"],
    },
    "setloadfields": {
        "documentationRef": f"{ALGUIDELINES_BASE}/setloadfields/",
        "detectionPatterns": [],
    },
}


class RuleTableError(Exception):
    """Error loading or validating a rule table."""
    pass


def _first(entry: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in entry:
            return entry[key]
    return None


class RuleTable:
    """
    An immutable collection of guideline rules keyed by name.
    """

    def __init__(self, rules: Optional[list[GuidelineRule]] = None) -> None:
        """
        Initialize the table.

        Args:
            rules: Rules to include. Names must be unique.

        Raises:
            RuleTableError: On a duplicate name or an invalid pattern.
        """
        self._rules: dict[str, GuidelineRule] = {}
        for rule in rules or []:
            if rule.name in self._rules:
                raise RuleTableError(f"Duplicate rule name: {rule.name}")
            for pattern in rule.detection_patterns:
                try:
                    re.compile(pattern)
                except re.error as e:
                    raise RuleTableError(f"Invalid pattern for rule {rule.name}: {e}") from e
            self._rules[rule.name] = rule

    @classmethod
    def from_mapping(cls, mapping: dict[str, Any]) -> "RuleTable":
        """
        Build a table from a ``name -> {documentationRef, detectionPatterns}`` mapping.

        Entries without metadata are skipped.

        Args:
            mapping: The raw rule mapping.

        Returns:
            RuleTable with one rule per valid entry.
        """
        if not isinstance(mapping, dict):
            raise RuleTableError("Rule table must be a mapping of rule name to metadata")

        rules: list[GuidelineRule] = []
        for name, entry in mapping.items():
            if not isinstance(entry, dict):
                logger.warning("Skipping rule %s without metadata", name)
                continue
            patterns = _first(entry, "detectionPatterns", "detection_patterns", "patterns") or []
            if isinstance(patterns, str):
                patterns = [patterns]
            rules.append(GuidelineRule(
                name=str(name),
                detection_patterns=[str(p) for p in patterns],
                documentation_ref=_first(entry, "documentationRef", "documentation_ref", "docUrl"),
            ))
        return cls(rules)

    @classmethod
    def load(cls, path: Path) -> "RuleTable":
        """
        Load a rule table from a JSON or YAML file.

        Args:
            path: Path to the rule file.

        Returns:
            The loaded RuleTable.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            RuleTableError: If the file is not a valid rule table.
        """
        if not path.exists():
            raise FileNotFoundError(f"Rule table not found: {path}")

        text = path.read_text(encoding="utf-8")
        try:
            if path.suffix.lower() == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise RuleTableError(f"Invalid rule table {path}: {e}") from e

        table = cls.from_mapping(data or {})
        logger.info("Loaded %d guideline rules from %s", len(table), path)
        return table

    @classmethod
    def default(cls) -> "RuleTable":
        """The built-in Business Central AL guideline rules."""
        return cls.from_mapping(DEFAULT_RULES)

    def merged_with(self, other: "RuleTable") -> "RuleTable":
        """Return a new table where rules from ``other`` replace same-named rules."""
        combined = dict(self._rules)
        combined.update({rule.name: rule for rule in other})
        return RuleTable(list(combined.values()))

    @property
    def detectable(self) -> list[GuidelineRule]:
        """Rules that carry at least one detection pattern."""
        return [r for r in self._rules.values() if r.is_detectable]

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __iter__(self) -> Iterator[GuidelineRule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)
