"""
Unit tests for configuration loading.
"""

from pathlib import Path

import pytest

from ai_review_engine.config import Config, find_config_file, load_config


class TestConfig:
    """Tests for configuration defaults and loading."""

    def test_defaults(self) -> None:
        config = Config()

        assert config.diff.include_patterns == ["**/*.al", "**/*.xlf", "**/*.json"]
        assert config.review.max_comments == 10
        assert config.review.approve_reviews is False
        assert config.retry.max_retries == 3
        assert config.guidelines.use_defaults is True

    def test_load_none_returns_defaults(self) -> None:
        assert load_config(None) == Config()

    def test_load_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / ".ai-review.yaml"
        path.write_text(
            "review:\n"
            "  author_identity: review-bot\n"
            "  max_comments: 3\n"
            "diff:\n"
            "  exclude_patterns: ['**/*.xlf']\n",
            encoding="utf-8",
        )
        config = load_config(path)

        assert config.review.author_identity == "review-bot"
        assert config.review.max_comments == 3
        assert config.diff.exclude_patterns == ["**/*.xlf"]
        assert config.diff.max_diff_lines == 10_000

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == Config()

    @pytest.mark.parametrize("content", [
        "reviw:\n  max_comments: 3\n",
        "review:\n  max_coments: 3\n",
        "diff:\n  include_pattern: ['**/*.al']\n",
        "retry:\n  retries: 5\n",
    ])
    def test_unknown_key_rejected(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_negative_cap_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("review:\n  max_comments: -1\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("review: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- review\n- diff\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_find_config_file_in_parent(self, tmp_path: Path) -> None:
        config_path = tmp_path / ".ai-review.yml"
        config_path.write_text("{}\n", encoding="utf-8")
        nested = tmp_path / "src" / "app"
        nested.mkdir(parents=True)

        assert find_config_file(nested) == config_path.resolve()
