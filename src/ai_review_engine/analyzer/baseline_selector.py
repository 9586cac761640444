"""
Baseline selection - decides which commits are new since the last review.

Two strategies are tried in order:

1. Marker: every review this engine posts embeds
   ``<!-- ai-sha:<head sha> -->``. The newest automation review carrying a
   marker gives the exact baseline.
2. Timestamp: without a marker, the last commit at or before the newest
   automation review's submission time is used. This is best effort: a
   commit pushed in the same second as the review can be missed or
   counted twice. The next review embeds a marker, so later runs use
   strategy 1.

When neither applies the whole pull request is reviewed against its base.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from ai_review_engine.models.history import (
    BaselineState,
    BaselineStrategy,
    Commit,
    Review,
)

logger = logging.getLogger(__name__)

MARKER_RE = re.compile(r"<!--\s*ai-sha:([0-9a-fA-F]{7,40})\s*-->")


def render_marker(sha: str) -> str:
    """Render the baseline marker for a commit."""
    if not re.fullmatch(r"[0-9a-fA-F]{7,40}", sha or ""):
        raise ValueError(f"Not a commit sha: {sha!r}")
    return f"<!-- ai-sha:{sha.lower()} -->"


def find_marker(body: str) -> Optional[str]:
    """Return the last marker sha embedded in a review body, if any."""
    matches = MARKER_RE.findall(body or "")
    return matches[-1].lower() if matches else None


def embed_marker(body: str, sha: str) -> str:
    """
    Append the marker for ``sha`` to a review body.

    Existing markers are removed first, so the body carries exactly one.
    """
    cleaned = MARKER_RE.sub("", body or "").rstrip()
    marker = render_marker(sha)
    return f"{cleaned}\n\n{marker}" if cleaned else marker


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _newest_first(reviews: list[Review]) -> list[Review]:
    # Stable sort keeps the input order for reviews without timestamps
    dated = [r for r in reviews if r.submitted_at is not None]
    undated = [r for r in reviews if r.submitted_at is None]
    dated.sort(key=lambda r: _utc(r.submitted_at), reverse=True)
    return dated + list(reversed(undated))


class BaselineSelector:
    """
    Select the baseline commit for an incremental review.
    """

    def __init__(self, author_identity: str) -> None:
        """
        Initialize the selector.

        Args:
            author_identity: Login the automation posts reviews as.
        """
        self.author_identity = author_identity

    def is_automation(self, review: Review) -> bool:
        return review.author.lower() == self.author_identity.lower()

    def from_marker(self, reviews: list[Review]) -> Optional[str]:
        """The marker sha of the newest automation review that carries one."""
        for review in reviews:
            sha = find_marker(review.body)
            if sha:
                return sha
        return None

    @staticmethod
    def from_timestamp(reviews: list[Review], commits: list[Commit]) -> Optional[str]:
        """The last commit at or before the newest dated automation review."""
        latest = next((r for r in reviews if r.submitted_at is not None), None)
        if latest is None:
            return None
        cutoff = _utc(latest.submitted_at)

        chosen: Optional[Commit] = None
        for commit in commits:
            if commit.committed_at is None:
                continue
            when = _utc(commit.committed_at)
            if when <= cutoff and (chosen is None or when >= _utc(chosen.committed_at)):
                chosen = commit
        return chosen.sha if chosen else None

    def select(
        self,
        reviews: list[Review],
        commits: list[Commit],
        base_sha: Optional[str] = None,
    ) -> BaselineState:
        """
        Select the baseline.

        Args:
            reviews: Prior reviews on the pull request.
            commits: Pull request commits, oldest first.
            base_sha: Base (or merge-base) commit used for a full review.

        Returns:
            BaselineState naming the commit and the strategy that found it.
        """
        own = _newest_first([r for r in reviews if self.is_automation(r)])

        sha = self.from_marker(own)
        if sha:
            logger.info("Baseline %s from review marker", sha)
            return BaselineState(sha=sha, strategy=BaselineStrategy.MARKER)

        sha = self.from_timestamp(own, commits)
        if sha:
            logger.info("Baseline %s from last review time (best effort)", sha)
            return BaselineState(sha=sha, strategy=BaselineStrategy.TIMESTAMP)

        logger.info("No previous review found, reviewing against base %s", base_sha)
        return BaselineState(sha=base_sha, strategy=BaselineStrategy.BASE)


def select_baseline(
    reviews: list[Review],
    commits: list[Commit],
    author_identity: str,
    base_sha: Optional[str] = None,
) -> BaselineState:
    """Select the baseline commit. See ``BaselineSelector.select``."""
    return BaselineSelector(author_identity).select(reviews, commits, base_sha)
