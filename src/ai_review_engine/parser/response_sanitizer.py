"""
Recover a structured review from a raw model completion.

Completions are expected to decode to::

    {"summary": str,
     "comments": [{"path": str, "line": int, "comment": str}],
     "suggestedAction": "approve" | "request_changes" | "comment",
     "confidence": float}

but often arrive wrapped in code fences, prefixed with a byte-order mark,
or carrying single backslashes (regex examples) that are not legal JSON
escapes. Repairs only touch escaping defects; valid content is never
rewritten.
"""

import json
import logging
import re
from typing import Any, Optional

from ai_review_engine.models.review import ProposedComment, ReviewDraft, SuggestedAction

logger = logging.getLogger(__name__)

MAX_REPAIR_ATTEMPTS = 3

FENCE_OPEN_RE = re.compile(r"^\s*```[\w+-]*[ \t]*\r?\n?")
FENCE_CLOSE_RE = re.compile(r"\r?\n?```\s*$")

# BOM, zero-width characters and control characters other than \t \n \r
INVISIBLE_RE = re.compile("[\ufeff\u200b\u200c\u200d\u2060\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

# An escaped backslash pair, or a lone backslash that does not start a legal escape
BAD_ESCAPE_RE = re.compile(r'\\\\|\\(?!["\\/bfnrt]|u[0-9a-fA-F]{4})')

_ACTION_ALIASES = {
    "approve": SuggestedAction.APPROVE,
    "approved": SuggestedAction.APPROVE,
    "request_changes": SuggestedAction.REQUEST_CHANGES,
    "requestchanges": SuggestedAction.REQUEST_CHANGES,
    "changes_requested": SuggestedAction.REQUEST_CHANGES,
    "comment": SuggestedAction.COMMENT,
}


class MalformedResponseError(Exception):
    """No structured review could be recovered from a completion."""

    def __init__(self, message: str, last_attempt: str = "") -> None:
        super().__init__(message)
        self.last_attempt = last_attempt


def strip_fences(text: str) -> str:
    """Remove a leading and trailing Markdown code fence."""
    text = FENCE_OPEN_RE.sub("", text, count=1)
    return FENCE_CLOSE_RE.sub("", text, count=1)


def strip_invisible(text: str) -> str:
    """Remove BOM, zero-width and non-printable control characters."""
    return INVISIBLE_RE.sub("", text)


def repair_escapes(text: str) -> str:
    """Double every backslash that does not begin a legal JSON escape."""
    def fix(match: re.Match) -> str:
        token = match.group(0)
        return token if len(token) == 2 else "\\\\"
    return BAD_ESCAPE_RE.sub(fix, text)


def largest_object(text: str) -> Optional[str]:
    """
    Find the longest balanced ``{...}`` substring.

    Braces inside JSON strings are ignored. When no balanced object
    exists, falls back to the span from the first ``{`` to the last ``}``.
    """
    best: Optional[str] = None
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    candidate = text[start:i + 1]
                    if best is None or len(candidate) > len(best):
                        best = candidate
                    break
        start = text.find("{", start + 1)

    if best is None:
        first, last = text.find("{"), text.rfind("}")
        if first != -1 and last > first:
            best = text[first:last + 1]
    return best


def _attempt(text: str) -> tuple[Optional[Any], str]:
    """
    Parse, repairing escapes between attempts.

    Returns:
        Tuple of (decoded value or None, last text attempted).
    """
    for attempt in range(MAX_REPAIR_ATTEMPTS):
        try:
            return json.loads(text, strict=False), text
        except json.JSONDecodeError as e:
            logger.debug("Parse attempt %d failed: %s", attempt + 1, e)
        repaired = repair_escapes(text)
        if repaired == text:
            break
        text = repaired
    return None, text


def repair_and_parse(raw: str) -> dict[str, Any]:
    """
    Decode a completion into a JSON object, repairing escaping defects.

    Args:
        raw: The raw completion text.

    Returns:
        The decoded JSON object.

    Raises:
        MalformedResponseError: If no attempt yields a JSON object.
    """
    text = strip_invisible(strip_fences(raw.strip())).strip()

    data, last = _attempt(text)
    if isinstance(data, dict):
        return data

    fragment = largest_object(text)
    if fragment is not None and fragment != text:
        logger.info("Retrying with the largest object fragment of the response")
        data, last = _attempt(fragment)
        if isinstance(data, dict):
            return data

    raise MalformedResponseError("Could not recover a JSON object from the model response", last)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        match = re.match(r"^\s*L?(\d+)", value)
        if match:
            return int(match.group(1))
    return None


def _as_action(value: Any) -> SuggestedAction:
    if isinstance(value, str):
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        if key in _ACTION_ALIASES:
            return _ACTION_ALIASES[key]
    return SuggestedAction.COMMENT


def _as_confidence(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return min(1.0, max(0.0, number))


def _decode_comment(item: Any) -> Optional[ProposedComment]:
    if not isinstance(item, dict):
        return None
    body = item.get("comment", item.get("body"))
    if not isinstance(body, str) or not body.strip():
        return None
    path = item.get("path", item.get("file"))
    return ProposedComment(
        path=path if isinstance(path, str) and path.strip() else None,
        line=_as_int(item.get("line")),
        body=body,
    )


class ResponseSanitizer:
    """
    Turn raw completions into ReviewDraft objects.
    """

    @staticmethod
    def decode(data: dict[str, Any]) -> ReviewDraft:
        """
        Build a ReviewDraft from a decoded object.

        Missing fields get safe defaults; comments without a body are
        dropped since there is nothing to post.
        """
        summary = data.get("summary", "")
        if not isinstance(summary, str):
            summary = json.dumps(summary) if summary is not None else ""

        raw_comments = data.get("comments", [])
        if not isinstance(raw_comments, list):
            raw_comments = []
        comments: list[ProposedComment] = []
        for item in raw_comments:
            comment = _decode_comment(item)
            if comment is None:
                logger.warning("Dropping comment entry without text: %r", item)
                continue
            comments.append(comment)

        return ReviewDraft(
            summary=summary,
            proposed_comments=comments,
            suggested_action=_as_action(data.get("suggestedAction", data.get("suggested_action"))),
            confidence=_as_confidence(data.get("confidence", 0.0)),
        )

    @classmethod
    def parse(cls, raw: str) -> ReviewDraft:
        """
        Recover a ReviewDraft from a raw completion.

        Args:
            raw: The model's raw output.

        Returns:
            The decoded ReviewDraft.

        Raises:
            MalformedResponseError: If no structured data can be recovered.
        """
        if not raw or not raw.strip():
            raise MalformedResponseError("Model response is empty", raw or "")
        return cls.decode(repair_and_parse(raw))
