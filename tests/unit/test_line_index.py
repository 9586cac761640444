"""
Unit tests for the line index.
"""

from ai_review_engine.analyzer.line_index import FileLineIndex, LineIndex
from ai_review_engine.models import Position, Side
from ai_review_engine.parser.diff_parser import DiffParser


class TestLineIndex:
    """Tests for building line indexes from parsed diffs."""

    def test_added_and_context_lines_are_commentable(self, simple_diff_content: str) -> None:
        files = DiffParser.parse_string(simple_diff_content).files
        index = LineIndex.build(files)

        file_index = index["src/SalesHelper.Codeunit.al"]
        assert file_index.commentable_lines == [10, 11, 12, 13]
        assert file_index.deleted_lines == []

    def test_removed_lines_keyed_on_before_side(self, multi_file_diff_content: str) -> None:
        files = DiffParser.parse_string(multi_file_diff_content).files
        index = LineIndex.build(files)

        customer = index["src/Customer.Table.al"]
        assert customer.deleted_lines == [3]
        assert Position.before(3) in customer
        assert Position.after(3) in customer
        assert customer.commentable_lines == [1, 2, 3, 4, 5, 20, 21, 22]

    def test_deleted_file_has_only_before_positions(self, multi_file_diff_content: str) -> None:
        files = DiffParser.parse_string(multi_file_diff_content).files
        old = LineIndex.build(files)["src/Old.Codeunit.al"]

        assert old.commentable_lines == []
        assert old.positions == {Position.before(1), Position.before(2)}

    def test_files_without_hunks_are_not_indexed(self, multi_file_diff_content: str) -> None:
        files = DiffParser.parse_string(multi_file_diff_content).files
        index = LineIndex.build(files)

        assert "src/Moved.Page.al" not in index
        assert "logo.png" not in index
        assert "app.json" in index


class TestFileLineIndex:
    """Tests for side resolution."""

    def test_after_side_preferred(self) -> None:
        index = FileLineIndex("a.al")
        index.add(Position.before(7))
        index.add(Position.after(7))
        assert index.side_of(7) == Side.AFTER

    def test_before_side_resolution(self) -> None:
        index = FileLineIndex("a.al")
        index.add(Position.before(7))
        assert index.side_of(7) == Side.BEFORE
        assert index.side_of(7, allow_before=False) is None
        assert index.side_of(8) is None

    def test_has(self) -> None:
        index = FileLineIndex("a.al")
        index.add(Position.after(2))
        assert index.has(2, Side.AFTER)
        assert not index.has(2, Side.BEFORE)
