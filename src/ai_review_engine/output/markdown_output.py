"""
Markdown output formatter.
"""

from ai_review_engine.analyzer.line_index import LineIndex
from ai_review_engine.models.guideline import GuidelineHit
from ai_review_engine.models.review import Disposition, ReviewPlan
from ai_review_engine.output.formatters import BaseFormatter, register_formatter
from ai_review_engine.parser.diff_parser import DiffParseResult


def _format_lines(lines: list[int], limit: int = 20) -> str:
    if not lines:
        return "none"
    text = ", ".join(str(n) for n in lines[:limit])
    if len(lines) > limit:
        text += f", ... ({len(lines)} total)"
    return text


@register_formatter("markdown")
class MarkdownFormatter(BaseFormatter):
    """
    Format output as Markdown.
    """

    def format_diff(self, result: DiffParseResult) -> str:
        """Format a parse result as Markdown."""
        lines = []
        lines.append("# Parsed Diff")
        lines.append("")

        if result.files:
            index = LineIndex.build(result.files)
            lines.append("| File | Change | Hunks | +/- | Commentable lines |")
            lines.append("|------|--------|-------|-----|-------------------|")
            for f in result.files:
                file_index = index.get(f.path)
                commentable = _format_lines(file_index.commentable_lines) if file_index else "none"
                lines.append(
                    f"| `{f.path}` | {f.change_type.value} | {len(f.hunks)} | "
                    f"+{f.added_count}/-{f.removed_count} | {commentable} |"
                )
            lines.append("")
        else:
            lines.append("_No files in diff._")
            lines.append("")

        if result.skipped:
            lines.append("## Skipped Binary Files")
            lines.append("")
            for path in result.skipped:
                lines.append(f"- `{path}`")
            lines.append("")

        if result.errors:
            lines.append("## ❌ Errors")
            lines.append("")
            for error in result.errors:
                lines.append(f"- `{error.path}`: {error.message}")
            lines.append("")

        return "\n".join(lines)

    def format_hits(self, hits: list[GuidelineHit]) -> str:
        """Format guideline hits as a Markdown table."""
        if not hits:
            return "_No guideline hits._\n"

        lines = []
        lines.append("# Guideline Hits")
        lines.append("")
        lines.append(f"**Total:** {len(hits)}")
        lines.append("")
        lines.append("| Rule | File | Line | Match |")
        lines.append("|------|------|------|-------|")
        for hit in hits:
            rule = f"[{hit.rule}]({hit.documentation_ref})" if hit.documentation_ref else hit.rule
            snippet = hit.matched_snippet.replace("|", "\\|").replace("\n", " ")
            line = hit.new_line if hit.new_line is not None else "-"
            lines.append(f"| {rule} | `{hit.path}` | {line} | `{snippet}` |")
        lines.append("")
        return "\n".join(lines)

    def format_plan(self, plan: ReviewPlan) -> str:
        """Format a review plan as Markdown."""
        lines = []
        lines.append("# Review Plan")
        lines.append("")
        lines.append(f"- **Event:** {plan.event.value}")
        if plan.head_sha:
            lines.append(f"- **Head:** `{plan.head_sha}`")
        lines.append(f"- **Inline Comments:** {len(plan.comments)}")
        lines.append(f"- **File Notes:** {len(plan.file_notes)}")
        lines.append(f"- **Folded Into Summary:** {plan.count(Disposition.DEFERRED_TO_SUMMARY)}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append(plan.body)
        lines.append("")

        if plan.comments:
            lines.append("## Inline Comments")
            lines.append("")
            for comment in plan.comments:
                lines.append(f"### `{comment.path}:{comment.line}` ({comment.side.value})")
                lines.append("")
                lines.append(comment.body)
                lines.append("")

        if plan.file_notes:
            lines.append("## File Notes")
            lines.append("")
            for note in plan.file_notes:
                lines.append(f"### `{note.path}`")
                lines.append("")
                lines.append(note.body)
                lines.append("")

        return "\n".join(lines)
