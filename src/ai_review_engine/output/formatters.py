"""
Base formatter and formatter registry.
"""

from abc import ABC, abstractmethod
from importlib import import_module
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from ai_review_engine.models.guideline import GuidelineHit
    from ai_review_engine.models.review import ReviewPlan
    from ai_review_engine.parser.diff_parser import DiffParseResult


class BaseFormatter(ABC):
    """
    Abstract base class for output formatters.

    Subclasses must implement format_diff(), format_hits() and format_plan().
    """

    @abstractmethod
    def format_diff(self, result: "DiffParseResult") -> str:
        """
        Format a parsed diff with its commentable lines.

        Args:
            result: The diff parse result to format.

        Returns:
            Formatted string representation.
        """
        pass

    @abstractmethod
    def format_hits(self, hits: list["GuidelineHit"]) -> str:
        """
        Format guideline hits.

        Args:
            hits: List of hits to format.

        Returns:
            Formatted string representation.
        """
        pass

    @abstractmethod
    def format_plan(self, plan: "ReviewPlan") -> str:
        """
        Format a review plan.

        Args:
            plan: The review plan to format.

        Returns:
            Formatted string representation.
        """
        pass


def diff_to_dict(result: "DiffParseResult") -> dict[str, Any]:
    """Plain-data view of a parse result, shared by structured formatters."""
    from ai_review_engine.analyzer.line_index import LineIndex

    index = LineIndex.build(result.files)
    files = []
    for f in result.files:
        file_index = index.get(f.path)
        files.append({
            "path": f.path,
            "change_type": f.change_type.value,
            "source_path": f.source_path,
            "hunks": len(f.hunks),
            "added": f.added_count,
            "removed": f.removed_count,
            "commentable_lines": file_index.commentable_lines if file_index else [],
            "deleted_lines": file_index.deleted_lines if file_index else [],
        })
    return {
        "files": files,
        "errors": [e.model_dump() for e in result.errors],
        "skipped": result.skipped,
    }


def plan_to_dict(plan: "ReviewPlan") -> dict[str, Any]:
    """Plain-data view of a review plan, shaped like a review submission."""
    return {
        "event": plan.event.value,
        "commit_id": plan.head_sha,
        "body": plan.body,
        "comments": [
            {"path": c.path, "line": c.line, "side": c.side.platform_value, "body": c.body}
            for c in plan.comments
        ],
        "file_notes": [{"path": n.path, "body": n.body} for n in plan.file_notes],
        "outcomes": [
            {
                "location": o.comment.location,
                "disposition": o.disposition.value,
                "reason": o.reason,
            }
            for o in plan.outcomes
        ],
    }


_REGISTRY: dict[str, type[BaseFormatter]] = {}

# Modules whose import registers a formatter
_BUILTIN_MODULES = ("json_output", "markdown_output", "text_output", "yaml_output")


def register_formatter(name: str) -> Callable[[type[BaseFormatter]], type[BaseFormatter]]:
    """Class decorator making a formatter available under ``name``."""
    def decorator(cls: type[BaseFormatter]) -> type[BaseFormatter]:
        _REGISTRY[name] = cls
        return cls
    return decorator


def available_formats() -> list[str]:
    """Names of all registered formatters, sorted."""
    for module in _BUILTIN_MODULES:
        import_module(f"ai_review_engine.output.{module}")
    return sorted(_REGISTRY)


def get_formatter(name: str) -> BaseFormatter:
    """
    Instantiate the formatter registered under ``name``.

    Raises:
        ValueError: If no formatter has that name.
    """
    names = available_formats()
    if name not in _REGISTRY:
        raise ValueError(f"Unknown formatter: {name}. Available: {', '.join(names)}")
    return _REGISTRY[name]()
