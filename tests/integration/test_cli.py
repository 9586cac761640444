"""
Integration tests for the CLI.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from ai_review_engine.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def response_path(tmp_path: Path) -> Path:
    path = tmp_path / "response.txt"
    payload = {
        "summary": "One finding.",
        "comments": [
            {"path": "src/SalesHelper.Codeunit.al", "line": 12, "comment": "Avoid WITH."},
            {"path": "src/Other.al", "line": 1, "comment": "Not in this diff."},
        ],
        "suggestedAction": "request_changes",
        "confidence": 0.6,
    }
    path.write_text("```json\n" + json.dumps(payload) + "\n```\n", encoding="utf-8")
    return path


class TestCLI:
    """Integration tests for the CLI."""

    def test_version(self, runner: CliRunner) -> None:
        """Test the version option."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "ai-review" in result.output

    def test_help(self, runner: CliRunner) -> None:
        """Test the help option."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "AI Review Engine" in result.output
        for command in ("parse", "scan", "anchor", "baseline"):
            assert command in result.output

    def test_parse_json(self, runner: CliRunner, diff_file_path: Path) -> None:
        result = runner.invoke(cli, ["parse", str(diff_file_path), "-f", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["files"][0]["commentable_lines"] == [10, 11, 12, 13]

    def test_parse_to_file(self, runner: CliRunner, diff_file_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "parsed.md"
        result = runner.invoke(cli, ["parse", str(diff_file_path), "-f", "markdown", "-o", str(out)])

        assert result.exit_code == 0
        assert "# Parsed Diff" in out.read_text(encoding="utf-8")

    def test_scan(self, runner: CliRunner, diff_file_path: Path) -> None:
        result = runner.invoke(cli, ["scan", str(diff_file_path), "-f", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["hits"][0]["rule"] == "with-statements"

    def test_scan_without_defaults(self, runner: CliRunner, diff_file_path: Path) -> None:
        result = runner.invoke(cli, ["scan", str(diff_file_path), "--no-defaults", "-f", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["total"] == 0

    def test_anchor(self, runner: CliRunner, diff_file_path: Path, response_path: Path) -> None:
        result = runner.invoke(cli, [
            "anchor", str(diff_file_path), str(response_path),
            "--head-sha", "abc1234", "-f", "json",
        ])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["event"] == "COMMENT"
        assert [c["line"] for c in data["comments"]] == [12]
        assert "Not in this diff." in data["body"]
        assert data["body"].endswith("<!-- ai-sha:abc1234 -->")

    def test_anchor_approve(self, runner: CliRunner, diff_file_path: Path, response_path: Path) -> None:
        result = runner.invoke(cli, [
            "anchor", str(diff_file_path), str(response_path), "--approve", "-f", "json",
        ])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["event"] == "REQUEST_CHANGES"

    def test_anchor_malformed_response(self, runner: CliRunner, diff_file_path: Path, tmp_path: Path) -> None:
        response = tmp_path / "prose.txt"
        response.write_text("I have no structured review.", encoding="utf-8")
        result = runner.invoke(cli, ["anchor", str(diff_file_path), str(response)])

        assert result.exit_code != 0
        assert "Error" in result.output

    def test_baseline(self, runner: CliRunner, tmp_path: Path) -> None:
        history = tmp_path / "history.json"
        history.write_text(json.dumps({
            "reviews": [
                {"author": "github-actions[bot]", "submitted_at": "2024-05-01T12:00:00Z",
                 "body": "Summary\n\n<!-- ai-sha:abc1234 -->"},
            ],
            "commits": [{"sha": "abc1234ffff", "committed_at": "2024-05-01T11:00:00Z"}],
        }), encoding="utf-8")

        result = runner.invoke(cli, ["baseline", str(history), "--head-sha", "abc1234ffff"])

        assert result.exit_code == 0
        assert "abc1234 (marker)" in result.output
        assert "Nothing to review" in result.output

    def test_baseline_falls_back_to_base(self, runner: CliRunner, tmp_path: Path) -> None:
        history = tmp_path / "history.json"
        history.write_text(json.dumps({"reviews": [], "commits": []}), encoding="utf-8")

        result = runner.invoke(cli, ["baseline", str(history), "--base-sha", "0000000"])

        assert result.exit_code == 0
        assert "0000000 (base)" in result.output

    def test_config_file(self, runner: CliRunner, diff_file_path: Path, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("guidelines:\n  disable: true\n", encoding="utf-8")

        result = runner.invoke(cli, ["--config", str(config), "parse", str(diff_file_path), "-f", "json"])
        assert result.exit_code == 0

    def test_invalid_config(self, runner: CliRunner, diff_file_path: Path, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("unknown: 1\n", encoding="utf-8")

        result = runner.invoke(cli, ["--config", str(config), "parse", str(diff_file_path)])
        assert result.exit_code != 0
