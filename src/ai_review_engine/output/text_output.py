"""
Human-readable text output formatter.
"""

from io import StringIO

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ai_review_engine.analyzer.line_index import LineIndex
from ai_review_engine.models.diff import ChangeType
from ai_review_engine.models.guideline import GuidelineHit
from ai_review_engine.models.review import Disposition, ReviewPlan, Side
from ai_review_engine.output.formatters import BaseFormatter, register_formatter
from ai_review_engine.parser.diff_parser import DiffParseResult


@register_formatter("text")
class TextFormatter(BaseFormatter):
    """
    Format output as human-readable text using Rich.
    """

    def __init__(self, colorize: bool = True) -> None:
        """
        Initialize the text formatter.

        Args:
            colorize: Whether to use colors in output.
        """
        self.colorize = colorize

    def _console(self, output: StringIO) -> Console:
        return Console(file=output, force_terminal=self.colorize, no_color=not self.colorize, width=120)

    def _change_style(self, change_type: ChangeType) -> str:
        """Get the style for a change type."""
        if not self.colorize:
            return ""

        styles = {
            ChangeType.ADDED: "green",
            ChangeType.DELETED: "red",
            ChangeType.RENAMED: "cyan",
            ChangeType.MODIFIED: "yellow",
        }
        return styles.get(change_type, "")

    def _disposition_icon(self, disposition: Disposition) -> str:
        """Get an icon for a comment disposition."""
        icons = {
            Disposition.POSTED: "💬",
            Disposition.DOWNGRADED_TO_NOTE: "📄",
            Disposition.DEFERRED_TO_SUMMARY: "📝",
        }
        return icons.get(disposition, "⚪")

    def format_diff(self, result: DiffParseResult) -> str:
        """Format a parse result as text."""
        output = StringIO()
        console = self._console(output)

        index = LineIndex.build(result.files)
        table = Table(title=f"Parsed Diff ({len(result.files)} files)")
        table.add_column("File", style="cyan" if self.colorize else None)
        table.add_column("Change")
        table.add_column("Hunks", justify="right")
        table.add_column("+/-", justify="right")
        table.add_column("Commentable", justify="right")

        for f in result.files:
            file_index = index.get(f.path)
            style = self._change_style(f.change_type)
            change = f"[{style}]{f.change_type.value}[/{style}]" if style else f.change_type.value
            table.add_row(
                f.path,
                change,
                str(len(f.hunks)),
                f"+{f.added_count}/-{f.removed_count}",
                str(len(file_index.commentable_lines)) if file_index else "0",
            )
        console.print(table)

        for path in result.skipped:
            console.print(f"  Skipped binary file: {path}")
        if result.errors:
            console.print()
            console.print("[bold red]Errors:[/bold red]" if self.colorize else "Errors:")
            for error in result.errors:
                console.print(f"  ❌ {error.path}: {error.message}", markup=False)

        return output.getvalue()

    def format_hits(self, hits: list[GuidelineHit]) -> str:
        """Format guideline hits as text."""
        output = StringIO()
        console = self._console(output)

        if not hits:
            console.print("No guideline hits.")
            return output.getvalue()

        table = Table(title=f"Guideline Hits ({len(hits)})")
        table.add_column("Rule", style="magenta" if self.colorize else None)
        table.add_column("File")
        table.add_column("Line", justify="right")
        table.add_column("Match")
        for hit in hits:
            table.add_row(
                hit.rule,
                hit.path,
                str(hit.new_line) if hit.new_line is not None else "-",
                hit.matched_snippet,
            )
        console.print(table)
        return output.getvalue()

    def format_plan(self, plan: ReviewPlan) -> str:
        """Format a review plan as text."""
        output = StringIO()
        console = self._console(output)

        console.print()
        console.print(
            Panel.fit(
                f"[bold]Review Plan[/bold]\nEvent: {plan.event.value}",
                border_style="blue",
            )
        )
        console.print()

        console.print("[bold]Summary[/bold]")
        console.print(plan.body, markup=False)
        console.print()

        if plan.outcomes:
            console.print("[bold]Comments[/bold]")
            for outcome in plan.outcomes:
                icon = self._disposition_icon(outcome.disposition)
                line = f"  {icon} {outcome.comment.location} → {outcome.disposition.value}"
                if outcome.reason:
                    line += f" ({outcome.reason})"
                console.print(line, markup=False)
            console.print()

        for comment in plan.comments:
            side = "old" if comment.side == Side.BEFORE else "new"
            console.print(f"[bold]{comment.path}:{comment.line}[/bold] ({side} side)")
            console.print(f"  {comment.body}", markup=False)

        return output.getvalue()
