"""
Unit tests for rule tables.
"""

import json
from pathlib import Path

import pytest

from ai_review_engine.analyzer.rule_table import RuleTable, RuleTableError
from ai_review_engine.models import GuidelineRule


def rule_named(table: RuleTable, name: str) -> GuidelineRule:
    return next(rule for rule in table if rule.name == name)


class TestRuleTable:
    """Tests for building and loading rule tables."""

    def test_default_rules(self) -> None:
        table = RuleTable.default()

        assert "with-statements" in table
        assert "setloadfields" in table
        assert not rule_named(table, "setloadfields").is_detectable
        assert all(rule.documentation_ref for rule in table)

    def test_from_mapping_camel_case(self) -> None:
        table = RuleTable.from_mapping({
            "no-commit": {
                "documentationRef": "https://example.com/no-commit",
                "detectionPatterns": [r"\bCommit\(\)"],
            },
        })

        rule = rule_named(table, "no-commit")
        assert rule.documentation_ref == "https://example.com/no-commit"
        assert rule.detection_patterns == [r"\bCommit\(\)"]

    def test_entries_without_metadata_skipped(self) -> None:
        table = RuleTable.from_mapping({"broken": None, "ok": {"patterns": "x"}})

        assert "broken" not in table
        assert rule_named(table, "ok").detection_patterns == ["x"]

    def test_invalid_pattern_rejected(self) -> None:
        with pytest.raises(RuleTableError):
            RuleTable.from_mapping({"bad": {"detectionPatterns": ["(unclosed"]}})

    def test_duplicate_names_rejected(self) -> None:
        rule = GuidelineRule(name="dup")
        with pytest.raises(RuleTableError):
            RuleTable([rule, rule])

    def test_not_a_mapping(self) -> None:
        with pytest.raises(RuleTableError):
            RuleTable.from_mapping(["not", "a", "mapping"])

    def test_merged_with_overrides(self) -> None:
        custom = RuleTable([GuidelineRule(name="with-statements", documentation_ref="local")])
        merged = RuleTable.default().merged_with(custom)

        assert len(merged) == len(RuleTable.default())
        assert rule_named(merged, "with-statements").documentation_ref == "local"
        assert "with-statements" not in {r.name for r in merged.detectable}

    def test_load_json(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"r": {"detectionPatterns": ["a"]}}), encoding="utf-8")

        assert len(RuleTable.load(path)) == 1

    def test_load_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(
            "r:\n  documentationRef: https://example.com\n  detectionPatterns:\n    - 'a+'\n",
            encoding="utf-8",
        )

        assert rule_named(RuleTable.load(path), "r").detection_patterns == ["a+"]

    def test_load_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(RuleTableError):
            RuleTable.load(path)

    def test_load_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            RuleTable.load(tmp_path / "missing.yaml")
