"""
Review pipeline - runs one automated review of a pull request.

This module wires the engine together:

1. Select the baseline commit from the review history
2. Fetch and parse the diff between baseline and head
3. Build the line index and scan for guideline hits
4. Ask the model for a review (prompt assembly is the model's concern)
5. Recover the structured review and anchor its comments
6. Post the review, which embeds the head marker for the next run

Every call to the hosting platform or the model is retried on transient
errors. A model response that cannot be decoded still produces a
summary-only review so the completion is not wasted.
"""

import logging
import time
from enum import Enum
from typing import Optional, Protocol

from pydantic import BaseModel, Field

from ai_review_engine.analyzer.baseline_selector import BaselineSelector, embed_marker
from ai_review_engine.analyzer.comment_anchor import CommentAnchor
from ai_review_engine.analyzer.guideline_scanner import GuidelineScanner
from ai_review_engine.analyzer.line_index import LineIndex
from ai_review_engine.analyzer.rule_table import RuleTable
from ai_review_engine.config import Config
from ai_review_engine.models.diff import DiffFile
from ai_review_engine.models.guideline import GuidelineHit
from ai_review_engine.models.history import BaselineState, Commit, Review
from ai_review_engine.models.review import ReviewEvent, ReviewPlan
from ai_review_engine.parser.diff_parser import DiffParser, ParseFailure
from ai_review_engine.parser.response_sanitizer import MalformedResponseError, ResponseSanitizer
from ai_review_engine.utils.resilience import retry_call

logger = logging.getLogger(__name__)

MAX_RAW_EXCERPT = 4000


class ReviewAbortedError(Exception):
    """The run cannot produce any review content."""
    pass


class PullRequest(BaseModel):
    """The pull request under review."""

    number: int
    base_sha: str
    head_sha: str
    repository: str = ""

    class Config:
        frozen = True


class ReviewRequest(BaseModel):
    """Everything the model collaborator needs to assemble its prompt."""

    pull_request: PullRequest
    baseline: BaselineState
    files: list[DiffFile] = Field(default_factory=list)
    hits: list[GuidelineHit] = Field(default_factory=list)

    def diff_text(self) -> str:
        """The reviewed files rendered as diff text."""
        return "\n".join(
            f"--- {f.path}\n{f.render()}" for f in self.files
        )


class ReviewHost(Protocol):
    """The hosting platform."""

    def list_reviews(self, pr: PullRequest) -> list[Review]:
        ...

    def list_commits(self, pr: PullRequest) -> list[Commit]:
        ...

    def fetch_diff(self, pr: PullRequest, base_sha: str, head_sha: str) -> str:
        ...

    def post_review(self, pr: PullRequest, plan: ReviewPlan) -> None:
        ...


class ReviewModel(Protocol):
    """The language model producing review judgments."""

    def complete(self, request: ReviewRequest) -> str:
        ...


class RunStatus(str, Enum):
    """How a pipeline run ended."""

    POSTED = "posted"
    NOTHING_TO_REVIEW = "nothing_to_review"
    DEGRADED = "degraded"   # Summary-only review after an undecodable response


class ReviewOutcome(BaseModel):
    """Result of one pipeline run."""

    status: RunStatus
    baseline: BaselineState
    plan: Optional[ReviewPlan] = None
    hits: list[GuidelineHit] = Field(default_factory=list)
    parse_errors: list[ParseFailure] = Field(default_factory=list)
    files_reviewed: int = 0
    duration_ms: Optional[float] = None


def build_rule_table(config: Config) -> Optional[RuleTable]:
    """Assemble the rule table for a run, or None when scanning is disabled."""
    if config.guidelines.disable:
        return None
    table = RuleTable.default() if config.guidelines.use_defaults else RuleTable()
    if config.guidelines.rules_path is not None:
        table = table.merged_with(RuleTable.load(config.guidelines.rules_path))
    return table


class ReviewPipeline:
    """
    Run a single automated review.

    Runs for the same pull request must be serialized by the caller; the
    head marker makes a repeated run on the same head safe, not an
    interleaved one.
    """

    def __init__(
        self,
        host: ReviewHost,
        model: ReviewModel,
        config: Optional[Config] = None,
        rules: Optional[RuleTable] = None,
        sleep=time.sleep,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            host: Hosting platform collaborator.
            model: Language model collaborator.
            config: Optional configuration object.
            rules: Rule table; assembled from the config when omitted.
            sleep: Function used to wait between retries.
        """
        self.host = host
        self.model = model
        self.config = config or Config()
        self.rules = rules if rules is not None else build_rule_table(self.config)
        self.anchor = CommentAnchor(allow_before_side=self.config.review.allow_before_side)
        self._sleep = sleep

    def _call(self, func, *args):
        retry = self.config.retry
        return retry_call(
            func,
            *args,
            max_retries=retry.max_retries,
            base_delay=retry.base_delay,
            max_delay=retry.max_delay,
            sleep=self._sleep,
        )

    def select_baseline(self, pr: PullRequest) -> BaselineState:
        """Select the baseline commit from the review history."""
        reviews = self._call(self.host.list_reviews, pr)
        commits = self._call(self.host.list_commits, pr)
        selector = BaselineSelector(self.config.review.author_identity)
        return selector.select(reviews, commits, base_sha=pr.base_sha)

    def degraded_plan(self, pr: PullRequest, error: MalformedResponseError) -> ReviewPlan:
        """Summary-only review for a response that could not be decoded."""
        excerpt = error.last_attempt.strip()
        if len(excerpt) > MAX_RAW_EXCERPT:
            excerpt = excerpt[:MAX_RAW_EXCERPT] + "\n..."
        body = (
            "The automated review could not be decoded into inline comments. "
            "The raw review is included below."
        )
        if excerpt:
            body += f"\n\n<details><summary>Raw review</summary>\n\n````\n{excerpt}\n````\n\n</details>"
        return ReviewPlan(
            body=embed_marker(body, pr.head_sha),
            event=ReviewEvent.COMMENT,
            head_sha=pr.head_sha,
        )

    def run(self, pr: PullRequest) -> ReviewOutcome:
        """
        Review the changes since the baseline and post the result.

        Args:
            pr: The pull request to review.

        Returns:
            ReviewOutcome describing what was posted.

        Raises:
            OversizedDiffError: If the diff exceeds the configured limits.
            ReviewAbortedError: If no file of the diff could be parsed.
        """
        start_time = time.perf_counter()
        baseline = self.select_baseline(pr)

        def finish(status: RunStatus, **fields) -> ReviewOutcome:
            fields.setdefault("duration_ms", (time.perf_counter() - start_time) * 1000)
            return ReviewOutcome(status=status, baseline=baseline, **fields)

        if baseline.is_up_to_date(pr.head_sha):
            logger.info("Head %s was already reviewed; nothing to review", pr.head_sha)
            return finish(RunStatus.NOTHING_TO_REVIEW)

        base_sha = baseline.sha or pr.base_sha
        diff_text = self._call(self.host.fetch_diff, pr, base_sha, pr.head_sha)

        diff_config = self.config.diff
        DiffParser.ensure_within_limits(
            diff_text,
            max_bytes=diff_config.max_diff_bytes,
            max_lines=diff_config.max_diff_lines,
        )

        parsed = DiffParser.parse_string(diff_text)
        if parsed.errors and not parsed.files:
            raise ReviewAbortedError(
                f"None of the {len(parsed.errors)} files in the diff could be parsed"
            )

        files = DiffParser.filter_files(
            parsed.reviewable_files,
            diff_config.include_patterns,
            diff_config.exclude_patterns,
        )
        if not files:
            logger.info("No reviewable changes between %s and %s", base_sha, pr.head_sha)
            return finish(RunStatus.NOTHING_TO_REVIEW, parse_errors=parsed.errors)

        index = LineIndex.build(files)
        hits = GuidelineScanner.scan(files, self.rules) if self.rules is not None else []

        request = ReviewRequest(pull_request=pr, baseline=baseline, files=files, hits=hits)
        raw = self._call(self.model.complete, request)

        status = RunStatus.POSTED
        try:
            draft = ResponseSanitizer.parse(raw)
        except MalformedResponseError as e:
            logger.warning("Posting summary-only review: %s", e)
            plan = self.degraded_plan(pr, e)
            status = RunStatus.DEGRADED
        else:
            review_config = self.config.review
            plan = self.anchor.plan(
                draft,
                index,
                max_comments=review_config.max_comments,
                head_sha=pr.head_sha,
                approve_reviews=review_config.approve_reviews,
            )

        self._call(self.host.post_review, pr, plan)
        logger.info(
            "Posted review on #%d: %d inline comments, %d file notes",
            pr.number, len(plan.comments), len(plan.file_notes),
        )
        return finish(
            status,
            plan=plan,
            hits=hits,
            parse_errors=parsed.errors,
            files_reviewed=len(files),
        )
