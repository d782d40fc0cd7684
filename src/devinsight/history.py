"""Commit-history insights.

Categorizes each commit's changed files, mines simple patterns across the
commit set and turns them into recommendations. The pure core works on
already-fetched commits; ``analyze_history`` wires it to a git checkout.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import NotARepositoryError
from .gitlog import GitRepository, RawCommit
from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 10
HIGH_FREQUENCY_COMMITS = 5
FREQUENT_FILE_THRESHOLD = 2
FREQUENT_FILES_SHOWN = 3
LARGE_COMMIT_FILES = 10
SHORT_MESSAGE_CHARS = 10

CONVENTIONAL_COMMIT = re.compile(r"^(feat|fix|docs|style|refactor|test|chore)(\(.+\))?: .+")


@dataclass
class CommitRecord:
    hash: str
    author: str
    date: str
    message: str
    files_changed: list[str] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "author": self.author,
            "date": self.date,
            "message": self.message,
            "filesChanged": list(self.files_changed),
            "summary": self.summary,
        }


@dataclass
class GitInsightReport:
    commits: list[CommitRecord] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "commits": [c.to_dict() for c in self.commits],
            "patterns": list(self.patterns),
            "recommendations": list(self.recommendations),
        }


# --- File categories ---

# Evaluated in order, first match wins. Tests sit after the extension
# checks, so src/foo.test.js is JavaScript/TypeScript.
CATEGORY_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (lambda f: f.endswith((".js", ".ts", ".jsx", ".tsx")), "JavaScript/TypeScript"),
    (lambda f: f.endswith(".py"), "Python"),
    (lambda f: f.endswith((".css", ".scss", ".sass")), "Styles"),
    (lambda f: f.endswith(".html"), "HTML"),
    (lambda f: f.endswith((".md", ".txt")), "Documentation"),
    (lambda f: any(m in f for m in ("package.json", "yarn.lock", "requirements.txt")), "Dependencies"),
    (lambda f: "test" in f or "spec" in f, "Tests"),
)
OTHER_CATEGORY = "Config/Other"


def categorize_file(path: str) -> str:
    for matches, category in CATEGORY_RULES:
        if matches(path):
            return category
    return OTHER_CATEGORY


def categorize_files(files: Sequence[str]) -> list[str]:
    """Distinct categories touched, in first-seen order."""
    return list(dict.fromkeys(categorize_file(f) for f in files))


def summarize_commit(message: str, files: Sequence[str]) -> str:
    summary = message.split("\n")[0]
    categories = categorize_files(files)
    if categories:
        summary += f" (Modified: {', '.join(categories)})"
    return summary


def to_commit_record(raw: RawCommit) -> CommitRecord:
    return CommitRecord(
        hash=raw.hash,
        author=raw.author,
        date=raw.date,
        message=raw.message,
        files_changed=list(raw.files),
        summary=summarize_commit(raw.message, raw.files),
    )


# --- Patterns and recommendations ---


def mine_patterns(commits: Sequence[CommitRecord]) -> list[str]:
    patterns = []

    if len(commits) > HIGH_FREQUENCY_COMMITS:
        patterns.append("High commit frequency - active development")

    if any(CONVENTIONAL_COMMIT.match(c.message) for c in commits):
        patterns.append("Uses conventional commit messages")

    # Counter keeps first-insertion order
    frequency = Counter(f for c in commits for f in c.files_changed)
    frequent = [f for f, count in frequency.items() if count > FREQUENT_FILE_THRESHOLD]
    if frequent:
        patterns.append(f"Frequently modified files: {', '.join(frequent[:FREQUENT_FILES_SHOWN])}")

    return patterns


def _touches_tests(commit: CommitRecord) -> bool:
    return any("test" in f or "spec" in f for f in commit.files_changed)


def generate_recommendations(commits: Sequence[CommitRecord], patterns: Sequence[str] = ()) -> list[str]:
    recommendations = []

    if any(len(c.files_changed) > LARGE_COMMIT_FILES for c in commits):
        recommendations.append("Consider breaking large commits into smaller, focused changes")

    if any(len(c.message) < SHORT_MESSAGE_CHARS for c in commits):
        recommendations.append("Write more descriptive commit messages for better project history")

    if not any(_touches_tests(c) for c in commits):
        recommendations.append("Consider adding tests alongside feature development")

    return recommendations


def build_history_report(
    commits: Sequence[RawCommit],
    max_results: int = DEFAULT_MAX_RESULTS,
) -> GitInsightReport:
    """Build the report from already-fetched commits, keeping their order."""
    records = [to_commit_record(c) for c in list(commits)[:max_results]]
    patterns = mine_patterns(records)
    return GitInsightReport(
        commits=records,
        patterns=patterns,
        recommendations=generate_recommendations(records, patterns),
    )


def analyze_history(
    query: str,
    max_results: int = DEFAULT_MAX_RESULTS,
    include_files: bool = True,
    repo: str | Path = ".",
) -> GitInsightReport:
    """Search commit messages for ``query`` in ``repo`` and report on the hits.

    Raises:
        NotARepositoryError: if ``repo`` is not inside a git work tree.
    """
    logger.info("Analyzing git history: %s", query)
    git = GitRepository(repo)
    if not git.is_repo():
        raise NotARepositoryError(str(repo))

    commits = git.log(query, max_count=max_results, include_files=include_files)
    report = build_history_report(commits, max_results)
    logger.info("Git history analysis completed for query: %s", query)
    return report
