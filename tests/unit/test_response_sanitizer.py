"""
Unit tests for recovering review drafts from model responses.
"""

import json

import pytest

from ai_review_engine.models import SuggestedAction
from ai_review_engine.parser.response_sanitizer import (
    MalformedResponseError,
    ResponseSanitizer,
    largest_object,
    repair_and_parse,
    repair_escapes,
    strip_fences,
)

VALID = {
    "summary": "Looks fine overall.",
    "comments": [{"path": "src/A.al", "line": 12, "comment": "Avoid WITH statements."}],
    "suggestedAction": "request_changes",
    "confidence": 0.75,
}


class TestRepairAndParse:
    """Tests for JSON recovery."""

    def test_plain_json(self) -> None:
        assert repair_and_parse(json.dumps(VALID)) == VALID

    def test_fenced_json(self) -> None:
        raw = "```json\n" + json.dumps(VALID, indent=2) + "\n```"
        assert repair_and_parse(raw) == VALID

    def test_bare_fence(self) -> None:
        raw = "```\n" + json.dumps(VALID) + "\n```\n"
        assert repair_and_parse(raw) == VALID

    def test_byte_order_mark(self) -> None:
        assert repair_and_parse("\ufeff" + json.dumps(VALID)) == VALID

    def test_zero_width_characters(self) -> None:
        assert repair_and_parse("\u200b" + json.dumps(VALID) + "\u200b") == VALID

    def test_single_backslash_repaired(self) -> None:
        raw = r'{"summary": "Use \s+ and \d in the pattern", "comments": []}'
        data = repair_and_parse(raw)
        assert data["summary"] == r"Use \s+ and \d in the pattern"

    def test_valid_escapes_untouched(self) -> None:
        raw = r'{"summary": "path C:\\temp\nnext \"quoted\" \u00e9"}'
        data = repair_and_parse(raw)
        assert data["summary"] == 'path C:\\temp\nnext "quoted" \u00e9'

    def test_literal_newline_in_string(self) -> None:
        raw = '{"summary": "line one\nline two"}'
        assert repair_and_parse(raw)["summary"] == "line one\nline two"

    def test_prose_around_object(self) -> None:
        raw = "Here is my review:\n" + json.dumps(VALID) + "\nLet me know if you need more."
        assert repair_and_parse(raw) == VALID

    def test_no_object(self) -> None:
        with pytest.raises(MalformedResponseError) as exc_info:
            repair_and_parse("I could not review this change.")
        assert exc_info.value.last_attempt == "I could not review this change."

    def test_truncated_object(self) -> None:
        with pytest.raises(MalformedResponseError):
            repair_and_parse('{"summary": "cut off')

    def test_top_level_array_rejected(self) -> None:
        with pytest.raises(MalformedResponseError):
            repair_and_parse("[1, 2, 3]")


class TestHelpers:
    """Tests for the individual repair steps."""

    def test_repair_escapes_idempotent(self) -> None:
        text = r'"\s \\ \n \u00e9 \ux \/"'
        once = repair_escapes(text)
        assert once == r'"\\s \\ \n \u00e9 \\ux \/"'
        assert repair_escapes(once) == once

    def test_strip_fences_leaves_plain_text(self) -> None:
        assert strip_fences('{"a": 1}') == '{"a": 1}'

    def test_largest_object_ignores_braces_in_strings(self) -> None:
        text = 'x {"a": "}"} y {"b": {"c": 1}, "d": "long value"} z'
        assert largest_object(text) == '{"b": {"c": 1}, "d": "long value"}'

    def test_largest_object_none(self) -> None:
        assert largest_object("no braces") is None


class TestResponseSanitizer:
    """Tests for decoding drafts."""

    def test_parse(self) -> None:
        draft = ResponseSanitizer.parse(json.dumps(VALID))

        assert draft.summary == "Looks fine overall."
        assert draft.suggested_action == SuggestedAction.REQUEST_CHANGES
        assert draft.confidence == 0.75
        comment = draft.proposed_comments[0]
        assert (comment.path, comment.line, comment.body) == ("src/A.al", 12, "Avoid WITH statements.")

    def test_regex_in_comment_keeps_single_backslash(self) -> None:
        raw = (
            r'{"summary":"ok","comments":[{"path":"a.al","line":5,"comment":"avoid \s+ here"}],'
            r'"suggestedAction":"comment","confidence":0.5}'
        )
        draft = ResponseSanitizer.parse(raw)

        assert draft.proposed_comments[0].body == "avoid \\s+ here"
        assert len(draft.proposed_comments[0].body) == len("avoid s+ here") + 1

    def test_empty_response(self) -> None:
        with pytest.raises(MalformedResponseError):
            ResponseSanitizer.parse("   ")

    def test_missing_fields_defaulted(self) -> None:
        draft = ResponseSanitizer.parse("{}")

        assert draft.summary == ""
        assert draft.proposed_comments == []
        assert draft.suggested_action == SuggestedAction.COMMENT
        assert draft.confidence == 0.0

    @pytest.mark.parametrize("value, expected", [
        ("approve", SuggestedAction.APPROVE),
        ("Request-Changes", SuggestedAction.REQUEST_CHANGES),
        ("REQUEST CHANGES", SuggestedAction.REQUEST_CHANGES),
        ("something else", SuggestedAction.COMMENT),
        (None, SuggestedAction.COMMENT),
    ])
    def test_suggested_action(self, value, expected: SuggestedAction) -> None:
        draft = ResponseSanitizer.decode({"suggestedAction": value})
        assert draft.suggested_action == expected

    @pytest.mark.parametrize("value, expected", [
        (0.4, 0.4),
        ("0.9", 0.9),
        (7, 1.0),
        (-1, 0.0),
        ("high", 0.0),
        (float("nan"), 0.0),
    ])
    def test_confidence_clamped(self, value, expected: float) -> None:
        assert ResponseSanitizer.decode({"confidence": value}).confidence == expected

    def test_comment_variants(self) -> None:
        draft = ResponseSanitizer.decode({
            "comments": [
                {"file": "b/src/A.al", "line": "L7", "body": "alt keys"},
                {"path": "src/A.al", "line": 3.0, "comment": "float line"},
                {"path": "src/A.al", "line": 4},
                {"path": "src/A.al", "comment": "   "},
                "not an object",
                {"comment": "no location"},
            ],
        })

        assert [(c.path, c.line, c.body) for c in draft.proposed_comments] == [
            ("b/src/A.al", 7, "alt keys"),
            ("src/A.al", 3, "float line"),
            (None, None, "no location"),
        ]

    def test_comment_body_kept_verbatim(self) -> None:
        body = "Use `SetLoadFields`:\n\n```al\nCustomer.SetLoadFields(Name);\n```"
        draft = ResponseSanitizer.decode({"comments": [{"path": "a.al", "line": 1, "comment": body}]})
        assert draft.proposed_comments[0].body == body
