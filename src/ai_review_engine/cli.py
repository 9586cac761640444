"""
Command-line interface for the AI review engine.

This module provides the CLI using Click framework for argument parsing
and exposes each stage of the engine for offline use: parsing a diff,
scanning it for guideline hits, anchoring a saved model response, and
selecting the baseline commit from a saved review history.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ai_review_engine import __version__
from ai_review_engine.config import Config, find_config_file, load_config
from ai_review_engine.output.formatters import available_formats, get_formatter
from ai_review_engine.utils.logging import setup_logging

console = Console(stderr=True)

FORMATS = available_formats()


def _emit(formatted_output: str, output: Optional[Path]) -> None:
    if output:
        output.write_text(formatted_output, encoding="utf-8")
        console.print(f"[green]Results written to:[/green] {output}")
    else:
        # Print directly to stdout to preserve ANSI codes from formatter
        sys.stdout.write(formatted_output)
        if not formatted_output.endswith("\n"):
            sys.stdout.write("\n")
        sys.stdout.flush()


def _formatter(ctx: click.Context, name: str):
    formatter = get_formatter(name)
    if hasattr(formatter, "colorize"):
        formatter.colorize = ctx.obj["config"].output.colorize
    return formatter


def _fail(error: Exception, verbose: bool) -> None:
    console.print(f"[red]Error:[/red] {error}")
    if verbose:
        import traceback
        console.print(traceback.format_exc())
    raise click.Abort()


def format_option(func):
    func = click.option(
        "--output",
        "-o",
        type=click.Path(path_type=Path),
        help="Output file path. If not specified, prints to stdout.",
    )(func)
    func = click.option(
        "--format",
        "-f",
        "output_format",
        type=click.Choice(FORMATS),
        default="text",
        help="Output format (default: text).",
    )(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="ai-review")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: bool) -> None:
    """AI Review Engine - Anchor model review comments onto pull-request diffs."""
    ctx.ensure_object(dict)
    config_path = config or find_config_file(Path.cwd())
    try:
        ctx.obj["config"] = load_config(config_path) if config_path else Config()
    except (FileNotFoundError, ValueError) as e:
        raise click.BadParameter(str(e), param_hint="--config") from e
    ctx.obj["verbose"] = verbose or ctx.obj["config"].output.verbose
    setup_logging("DEBUG" if ctx.obj["verbose"] else "WARNING", console=console)


@cli.command()
@click.argument("diff", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--filter/--no-filter",
    "apply_filter",
    default=False,
    help="Apply the configured include/exclude patterns.",
)
@format_option
@click.pass_context
def parse(
    ctx: click.Context,
    diff: Path,
    apply_filter: bool,
    output_format: str,
    output: Optional[Path],
) -> None:
    """Parse a diff and list each file's commentable lines."""
    from ai_review_engine.parser.diff_parser import DiffParser

    config: Config = ctx.obj["config"]
    try:
        result = DiffParser.parse_file(diff)
        if apply_filter:
            result.files = DiffParser.filter_files(
                result.files,
                config.diff.include_patterns,
                config.diff.exclude_patterns,
            )
        _emit(_formatter(ctx, output_format).format_diff(result), output)
    except Exception as e:
        _fail(e, ctx.obj["verbose"])


@cli.command()
@click.argument("diff", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--rules",
    "-r",
    type=click.Path(exists=True, path_type=Path),
    help="JSON or YAML rule table (overrides the configured one).",
)
@click.option(
    "--no-defaults",
    is_flag=True,
    help="Do not include the built-in AL guideline rules.",
)
@format_option
@click.pass_context
def scan(
    ctx: click.Context,
    diff: Path,
    rules: Optional[Path],
    no_defaults: bool,
    output_format: str,
    output: Optional[Path],
) -> None:
    """Scan the changed code of a diff for guideline violations."""
    from ai_review_engine.analyzer.guideline_scanner import GuidelineScanner
    from ai_review_engine.analyzer.review_pipeline import build_rule_table
    from ai_review_engine.parser.diff_parser import DiffParser

    config: Config = ctx.obj["config"]
    guidelines = config.guidelines.model_copy(update={
        "rules_path": rules or config.guidelines.rules_path,
        "use_defaults": config.guidelines.use_defaults and not no_defaults,
        "disable": False,
    })
    try:
        table = build_rule_table(config.model_copy(update={"guidelines": guidelines}))
        result = DiffParser.parse_file(diff)
        hits = GuidelineScanner.scan(result.files, table)
        _emit(_formatter(ctx, output_format).format_hits(hits), output)
    except Exception as e:
        _fail(e, ctx.obj["verbose"])


@cli.command()
@click.argument("diff", type=click.Path(exists=True, path_type=Path))
@click.argument("response", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--max-comments",
    type=int,
    default=None,
    help="Cap on inline comments, 0 for unlimited (default: from config).",
)
@click.option(
    "--head-sha",
    type=str,
    default=None,
    help="Head commit to embed as the review marker.",
)
@click.option(
    "--approve/--no-approve",
    default=None,
    help="Allow the review to approve or request changes.",
)
@format_option
@click.pass_context
def anchor(
    ctx: click.Context,
    diff: Path,
    response: Path,
    max_comments: Optional[int],
    head_sha: Optional[str],
    approve: Optional[bool],
    output_format: str,
    output: Optional[Path],
) -> None:
    """Anchor a saved model RESPONSE onto DIFF and print the review plan."""
    from ai_review_engine.analyzer.comment_anchor import CommentAnchor
    from ai_review_engine.analyzer.line_index import LineIndex
    from ai_review_engine.parser.diff_parser import DiffParser
    from ai_review_engine.parser.response_sanitizer import ResponseSanitizer

    config: Config = ctx.obj["config"]
    review = config.review
    try:
        result = DiffParser.parse_file(diff)
        files = DiffParser.filter_files(
            result.reviewable_files,
            config.diff.include_patterns,
            config.diff.exclude_patterns,
        )
        draft = ResponseSanitizer.parse(response.read_text(encoding="utf-8"))
        plan = CommentAnchor(allow_before_side=review.allow_before_side).plan(
            draft,
            LineIndex.build(files),
            max_comments=review.max_comments if max_comments is None else max_comments,
            head_sha=head_sha,
            approve_reviews=review.approve_reviews if approve is None else approve,
        )
        _emit(_formatter(ctx, output_format).format_plan(plan), output)
    except Exception as e:
        _fail(e, ctx.obj["verbose"])


@cli.command()
@click.argument("history", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--author",
    "-a",
    type=str,
    default=None,
    help="Login the automation posts reviews as (default: from config).",
)
@click.option(
    "--base-sha",
    type=str,
    default=None,
    help="Base commit used when no previous review exists.",
)
@click.option(
    "--head-sha",
    type=str,
    default=None,
    help="Head commit; reports when it was already reviewed.",
)
@click.pass_context
def baseline(
    ctx: click.Context,
    history: Path,
    author: Optional[str],
    base_sha: Optional[str],
    head_sha: Optional[str],
) -> None:
    """
    Select the baseline commit from a saved HISTORY.

    HISTORY is a JSON file with "reviews" (author, submitted_at, body)
    and "commits" (sha, committed_at).
    """
    from ai_review_engine.analyzer.baseline_selector import select_baseline
    from ai_review_engine.models.history import Commit, Review

    config: Config = ctx.obj["config"]
    try:
        data = json.loads(history.read_text(encoding="utf-8"))
        reviews = [Review(**r) for r in data.get("reviews", [])]
        commits = [Commit(**c) for c in data.get("commits", [])]
        state = select_baseline(
            reviews,
            commits,
            author or config.review.author_identity,
            base_sha=base_sha,
        )
    except Exception as e:
        _fail(e, ctx.obj["verbose"])
        return

    click.echo(f"{state.sha or '-'} ({state.strategy.value})")
    if head_sha and state.is_up_to_date(head_sha):
        click.echo("Nothing to review: head already reviewed")


def main() -> None:
    """Main entry point for the CLI."""
    cli(obj={})
