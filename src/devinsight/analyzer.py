"""Heuristic code analyzer. No parser needed.

Reads one file, derives its language, computes approximate metrics,
runs per-line lint and security rules and whole-file suggestions.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .files import SourceUnit, read_source
from .languages import JS_FAMILY
from .logging_config import get_logger
from .metrics import Metrics, calculate_metrics, placeholder_metrics

logger = get_logger(__name__)


@dataclass(frozen=True)
class Issue:
    """A style or smell finding on one line."""

    kind: str  # warning | error | info
    line: int
    message: str
    rule: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "line": self.line, "message": self.message, "rule": self.rule}


@dataclass(frozen=True)
class SecurityIssue:
    """A potential vulnerability on one line."""

    severity: str  # high | medium | low
    line: int
    message: str
    recommendation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "line": self.line,
            "message": self.message,
            "recommendation": self.recommendation,
        }


@dataclass
class AnalysisReport:
    """Complete heuristic analysis of one file."""

    path: str
    language: str
    metrics: Metrics
    issues: list[Issue] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    # None means security checks were not requested
    security_issues: list[SecurityIssue] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "filePath": self.path,
            "language": self.language,
            "metrics": self.metrics.to_dict(),
            "issues": [i.to_dict() for i in self.issues],
            "suggestions": list(self.suggestions),
        }
        if self.security_issues is not None:
            data["securityIssues"] = [s.to_dict() for s in self.security_issues]
        return data


# --- Issue rules ---

MAX_LINE_LENGTH = 120
DECLARATION_PREFIXES = ("const ", "let ", "var ")

# A rule check gets (raw line, trimmed line, source) and returns a message
# when it fires.
LineCheck = Callable[[str, str, SourceUnit], str | None]


@dataclass(frozen=True)
class IssueRule:
    rule: str
    kind: str
    check: LineCheck


def _check_line_length(line: str, trimmed: str, source: SourceUnit) -> str | None:
    if len(line) > MAX_LINE_LENGTH:
        return f"Line too long (>{MAX_LINE_LENGTH} characters)"
    return None


def _check_todo(line: str, trimmed: str, source: SourceUnit) -> str | None:
    if "TODO" in trimmed or "FIXME" in trimmed:
        return "TODO/FIXME comment found"
    return None


def _check_console(line: str, trimmed: str, source: SourceUnit) -> str | None:
    if source.language in JS_FAMILY and "console.log" in trimmed:
        return "Console.log statement found - consider removing for production"
    return None


def _check_unused_variable(line: str, trimmed: str, source: SourceUnit) -> str | None:
    """Crude containment check for declared-but-unused names.

    The name minus its last character is searched for in the whole file,
    declaration line included, so in practice this almost never fires.
    """
    if not trimmed.startswith(DECLARATION_PREFIXES):
        return None
    parts = trimmed.split(" ")
    if len(parts) < 2:
        return None
    name = re.sub(r"[=:,]", "", parts[1])
    if name and name[:-1] not in source.text:
        return f"Variable '{name}' might be unused"
    return None


ISSUE_RULES: tuple[IssueRule, ...] = (
    IssueRule("line-length", "warning", _check_line_length),
    IssueRule("todo-comment", "info", _check_todo),
    IssueRule("no-console", "warning", _check_console),
    IssueRule("unused-variable", "warning", _check_unused_variable),
)


def find_issues(source: SourceUnit) -> list[Issue]:
    """Run every issue rule over every physical line, in table order."""
    issues = []
    for index, line in enumerate(source.lines):
        trimmed = line.strip()
        for rule in ISSUE_RULES:
            message = rule.check(line, trimmed, source)
            if message:
                issues.append(Issue(kind=rule.kind, line=index + 1, message=message, rule=rule.rule))
    return issues


# --- Security rules ---

CREDENTIAL_ASSIGNMENT = re.compile(r"(password|secret|key).*=.*['\"]")


@dataclass(frozen=True)
class SecurityRule:
    severity: str
    message: str
    recommendation: str
    matches: Callable[[str], bool]


SECURITY_RULES: tuple[SecurityRule, ...] = (
    SecurityRule(
        "high",
        "Potential SQL injection vulnerability",
        "Use parameterized queries or prepared statements",
        lambda t: "SELECT" in t and "+" in t,
    ),
    SecurityRule(
        "medium",
        "Potential XSS vulnerability with innerHTML",
        "Use textContent or properly sanitize HTML",
        lambda t: "innerHTML" in t and "+" in t,
    ),
    SecurityRule(
        "high",
        "Potential hardcoded credential",
        "Use environment variables or secure configuration",
        lambda t: CREDENTIAL_ASSIGNMENT.search(t.lower()) is not None,
    ),
)


def find_security_issues(source: SourceUnit) -> list[SecurityIssue]:
    """Run every security rule over every trimmed line, in table order."""
    issues = []
    for index, line in enumerate(source.lines):
        trimmed = line.strip()
        for rule in SECURITY_RULES:
            if rule.matches(trimmed):
                issues.append(SecurityIssue(
                    severity=rule.severity,
                    line=index + 1,
                    message=rule.message,
                    recommendation=rule.recommendation,
                ))
    return issues


# --- Whole-file suggestions ---

LONG_FILE_LINES = 100
INDEXED_LOOP = "for (let i = 0; i < arr.length; i++)"
FUNCTION_MARKERS = re.compile(r"function|const.*=.*=>|def ")
COMMENT_MARKERS = re.compile(r"//|/\*|#")


def _under_documented(source: SourceUnit) -> bool:
    functions = len(FUNCTION_MARKERS.findall(source.text))
    comments = len(COMMENT_MARKERS.findall(source.text))
    return functions > comments / 2


SUGGESTIONS: tuple[tuple[Callable[[SourceUnit], bool], str], ...] = (
    (
        lambda s: s.language in JS_FAMILY and "document.getElementById" in s.text,
        "Consider caching DOM queries for better performance",
    ),
    (
        lambda s: s.language in JS_FAMILY and INDEXED_LOOP in s.text,
        "Consider using forEach, map, or for...of for better readability",
    ),
    (
        lambda s: "eval(" in s.text,
        "Avoid using eval() as it poses security risks",
    ),
    (
        lambda s: len(s.lines) > LONG_FILE_LINES,
        "Consider breaking this file into smaller, more focused modules",
    ),
    (
        _under_documented,
        "Consider adding more comments and documentation",
    ),
)


def generate_suggestions(source: SourceUnit) -> list[str]:
    return [advice for applies, advice in SUGGESTIONS if applies(source)]


# --- Pipeline ---


def analyze_source(
    source: SourceUnit,
    include_metrics: bool = True,
    include_security: bool = False,
) -> AnalysisReport:
    """Analyze already-read file text. Pure and deterministic."""
    metrics = calculate_metrics(source.text, source.language) if include_metrics else placeholder_metrics(source.text)
    report = AnalysisReport(
        path=source.path,
        language=source.language,
        metrics=metrics,
        issues=find_issues(source),
        suggestions=generate_suggestions(source),
    )
    if include_security:
        report.security_issues = find_security_issues(source)
    return report


def analyze_code(
    path: str | Path,
    include_metrics: bool = True,
    include_security: bool = False,
) -> AnalysisReport:
    """Read and analyze a single file.

    Raises:
        TargetNotFoundError: if the file does not exist.
    """
    logger.info("Analyzing code: %s", path)
    source = read_source(path)
    report = analyze_source(source, include_metrics=include_metrics, include_security=include_security)
    logger.info("Code analysis completed for %s", path)
    return report
