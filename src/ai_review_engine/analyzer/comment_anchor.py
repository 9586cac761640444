"""
Comment anchoring - places proposed comments on commentable diff positions.

Each proposed comment moves through::

    Proposed -> Anchored   -> Posted
             -> Anchored   -> Deferred-to-summary   (beyond the comment cap)
             -> Unanchored -> Downgraded-to-note    (file is in the diff)
             -> Unanchored -> Deferred-to-summary   (file is not in the diff)

No terminal state drops the comment's text; only its precision degrades.
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from ai_review_engine.analyzer.baseline_selector import embed_marker
from ai_review_engine.analyzer.line_index import FileLineIndex
from ai_review_engine.models.review import (
    AnchoredComment,
    CommentOutcome,
    Disposition,
    FileNote,
    ProposedComment,
    ReviewDraft,
    ReviewEvent,
    ReviewPlan,
    SuggestedAction,
)
from ai_review_engine.parser.diff_parser import normalize_path

logger = logging.getLogger(__name__)

DIFF_PREFIXES = ("a/", "b/")

_EVENTS = {
    SuggestedAction.APPROVE: ReviewEvent.APPROVE,
    SuggestedAction.REQUEST_CHANGES: ReviewEvent.REQUEST_CHANGES,
    SuggestedAction.COMMENT: ReviewEvent.COMMENT,
}


class AnchorMismatchError(Exception):
    """A proposed comment does not point at a commentable position."""

    def __init__(self, comment: ProposedComment, reason: str) -> None:
        super().__init__(f"{comment.location}: {reason}")
        self.comment = comment
        self.reason = reason


class AnchorMismatch(BaseModel):
    """Record of a comment that could not be anchored."""

    comment: ProposedComment
    reason: str

    class Config:
        frozen = True


class AnchorResult(BaseModel):
    """Proposed comments partitioned by anchoring outcome, each in model order."""

    anchored: list[AnchoredComment] = Field(default_factory=list)
    overflow: list[ProposedComment] = Field(
        default_factory=list,
        description="Anchorable comments beyond the comment cap",
    )
    unanchored: list[ProposedComment] = Field(default_factory=list)
    mismatches: list[AnchorMismatch] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.anchored) + len(self.overflow) + len(self.unanchored)


def lookup_path(raw: Optional[str], index: dict[str, FileLineIndex]) -> Optional[str]:
    """
    Find the index key a model-supplied path refers to.

    The path is tried as given first. Only when that misses is a leading
    ``a/`` or ``b/`` diff prefix removed, so a real top-level ``a/``
    directory is never confused with a prefix.
    """
    if not raw:
        return None
    path = normalize_path(raw)
    if path in index:
        return path
    for prefix in DIFF_PREFIXES:
        if path.startswith(prefix) and path[len(prefix):] in index:
            return path[len(prefix):]
    return None


class CommentAnchor:
    """
    Anchor proposed comments onto a line index and build the review plan.
    """

    def __init__(self, allow_before_side: bool = True) -> None:
        """
        Initialize the anchor.

        Args:
            allow_before_side: Whether comments may land on removed lines.
        """
        self.allow_before_side = allow_before_side

    def resolve(
        self,
        comment: ProposedComment,
        index: dict[str, FileLineIndex],
    ) -> AnchoredComment:
        """
        Anchor a single comment.

        Raises:
            AnchorMismatchError: If the comment has no commentable position.
        """
        if not comment.path:
            raise AnchorMismatchError(comment, "no file given")
        path = lookup_path(comment.path, index)
        if path is None:
            raise AnchorMismatchError(comment, "file is not part of the diff")
        if comment.line is None:
            raise AnchorMismatchError(comment, "no line given")
        side = index[path].side_of(comment.line, allow_before=self.allow_before_side)
        if side is None:
            raise AnchorMismatchError(comment, f"line {comment.line} is outside the diff")
        return AnchoredComment(path=path, line=comment.line, side=side, body=comment.body)

    def anchor(
        self,
        draft: ReviewDraft,
        index: dict[str, FileLineIndex],
        max_comments: int = 0,
    ) -> AnchorResult:
        """
        Partition the draft's comments into anchored, overflow and unanchored.

        Args:
            draft: The recovered review draft.
            index: Line index per normalized path.
            max_comments: Cap on anchored comments; 0 or less means unlimited.

        Returns:
            AnchorResult whose three lists together hold every proposed comment.
        """
        result = AnchorResult()
        for comment, anchored, reason in self._classify(draft, index, max_comments):
            if reason is not None:
                result.unanchored.append(comment)
                result.mismatches.append(AnchorMismatch(comment=comment, reason=reason))
            elif anchored is None:
                result.overflow.append(comment)
            else:
                result.anchored.append(anchored)

        logger.debug("Anchored %d of %d comments", len(result.anchored), result.total)
        if result.overflow:
            logger.info("%d comments exceed the cap of %d", len(result.overflow), max_comments)
        return result

    def _classify(
        self,
        draft: ReviewDraft,
        index: dict[str, FileLineIndex],
        max_comments: int,
    ) -> list[tuple[ProposedComment, Optional[AnchoredComment], Optional[str]]]:
        """
        Anchor each comment in model order.

        Returns:
            One ``(comment, anchored, mismatch reason)`` per proposed comment.
            Overflow comments have neither an anchor nor a reason.
        """
        classified = []
        posted = 0
        for comment in draft.proposed_comments:
            try:
                anchored = self.resolve(comment, index)
            except AnchorMismatchError as e:
                logger.info("Could not anchor comment at %s: %s", comment.location, e.reason)
                classified.append((comment, None, e.reason))
                continue

            if max_comments > 0 and posted >= max_comments:
                classified.append((comment, None, None))
            else:
                posted += 1
                classified.append((comment, anchored, None))
        return classified

    @staticmethod
    def fold_into_summary(
        summary: str,
        overflow: list[ProposedComment],
        deferred: list[ProposedComment],
    ) -> str:
        """
        Append comments that will not be posted inline to the summary text.

        Comment bodies are copied verbatim.
        """
        parts = [summary.strip() or "_No summary provided._"]

        def section(title: str, comments: list[ProposedComment]) -> None:
            if not comments:
                return
            parts.append(f"### {title}")
            for comment in comments:
                parts.append(f"**`{comment.location}`**\n\n{comment.body}")

        section("Additional comments", overflow)
        section("Comments outside the diff", deferred)
        return "\n\n".join(parts)

    def plan(
        self,
        draft: ReviewDraft,
        index: dict[str, FileLineIndex],
        max_comments: int = 0,
        head_sha: Optional[str] = None,
        approve_reviews: bool = False,
    ) -> ReviewPlan:
        """
        Build the review to post.

        Args:
            draft: The recovered review draft.
            index: Line index per normalized path.
            max_comments: Cap on inline comments (0 = unlimited).
            head_sha: Head commit; its marker is embedded in the body.
            approve_reviews: Whether the draft may approve or request changes.

        Returns:
            ReviewPlan with inline comments, file notes and the summary body.
        """
        anchored_comments: list[AnchoredComment] = []
        outcomes: list[CommentOutcome] = []
        notes: list[FileNote] = []
        overflow: list[ProposedComment] = []
        deferred: list[ProposedComment] = []

        for comment, anchored, reason in self._classify(draft, index, max_comments):
            if anchored is not None:
                anchored_comments.append(anchored)
                outcomes.append(CommentOutcome(comment=comment, disposition=Disposition.POSTED))
            elif reason is None:
                overflow.append(comment)
                outcomes.append(CommentOutcome(
                    comment=comment,
                    disposition=Disposition.DEFERRED_TO_SUMMARY,
                    reason="comment cap reached",
                ))
            else:
                path = lookup_path(comment.path, index)
                if path is not None:
                    notes.append(FileNote(path=path, body=self._note_body(comment)))
                    disposition = Disposition.DOWNGRADED_TO_NOTE
                else:
                    deferred.append(comment)
                    disposition = Disposition.DEFERRED_TO_SUMMARY
                outcomes.append(CommentOutcome(comment=comment, disposition=disposition, reason=reason))

        body = self.fold_into_summary(draft.summary, overflow, deferred)
        if head_sha:
            body = embed_marker(body, head_sha)

        event = _EVENTS[draft.suggested_action] if approve_reviews else ReviewEvent.COMMENT
        return ReviewPlan(
            body=body,
            event=event,
            head_sha=head_sha,
            comments=anchored_comments,
            file_notes=notes,
            outcomes=outcomes,
        )

    @staticmethod
    def _note_body(comment: ProposedComment) -> str:
        if comment.line is None:
            return comment.body
        return f"_(line {comment.line})_\n\n{comment.body}"


def anchor(
    draft: ReviewDraft,
    index: dict[str, FileLineIndex],
    max_comments: int = 0,
) -> AnchorResult:
    """Anchor a draft's comments. See ``CommentAnchor.anchor``."""
    return CommentAnchor().anchor(draft, index, max_comments)
