"""Exception hierarchy for DevInsight.

Only failures on the primary requested artifact surface as exceptions;
secondary items (snippet files, per-commit file lists) are logged and
dropped by the pipelines themselves.
"""

from __future__ import annotations


class DevInsightError(Exception):
    """Base exception for all DevInsight errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class TargetNotFoundError(DevInsightError):
    """The file an operation was asked to analyze does not exist."""

    def __init__(self, path: str):
        super().__init__(f"File not found: {path}")
        self.path = str(path)


class NotARepositoryError(DevInsightError):
    """Git history was requested outside of a git repository."""

    def __init__(self, path: str):
        super().__init__("Not in a git repository", {"path": str(path)})
        self.path = str(path)


class ToolError(DevInsightError):
    """Unknown tool name or invalid tool arguments."""
