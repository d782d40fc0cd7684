"""Approximate code metrics from raw text.

These are line-prefix and keyword-count heuristics, not a parser. In
particular a multi-line string whose lines start with ``//``, ``/*`` or
``*`` is counted as a comment, and ``#`` comments count as code.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

COMMENT_PREFIXES = ("//", "/*", "*")

C_FAMILY_BRANCHES = re.compile(r"\b(if|else|while|for|switch|case|catch|&&|\|\|)\b")
PYTHON_BRANCHES = re.compile(r"\b(if|elif|else|while|for|except|and|or)\b")

# Languages without an entry fall back to the C-family pattern.
COMPLEXITY_PATTERNS = {
    "javascript": C_FAMILY_BRANCHES,
    "typescript": C_FAMILY_BRANCHES,
    "java": C_FAMILY_BRANCHES,
    "python": PYTHON_BRANCHES,
}


@dataclass(frozen=True)
class Metrics:
    """Size and complexity figures for one file."""

    lines_of_code: int
    complexity: int
    maintainability_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "linesOfCode": self.lines_of_code,
            "complexity": self.complexity,
            "maintainabilityIndex": self.maintainability_index,
        }


def count_lines_of_code(text: str) -> int:
    """Non-blank lines that do not start with a comment marker."""
    count = 0
    for line in text.split("\n"):
        trimmed = line.strip()
        if trimmed and not trimmed.startswith(COMMENT_PREFIXES):
            count += 1
    return count


def calculate_complexity(text: str, language: str) -> int:
    """1 + number of branching/boolean keyword hits."""
    pattern = COMPLEXITY_PATTERNS.get(language, C_FAMILY_BRANCHES)
    return len(pattern.findall(text)) + 1


def calculate_maintainability(text: str, language: str) -> int:
    """Simplified maintainability index clamped to 0-100."""
    lines = max(1, len(text.split("\n")))
    complexity = calculate_complexity(text, language)
    score = 171 - 5.2 * math.log(lines) - 0.23 * complexity - 16.2 * math.log(lines / 10)
    return _round_half_up(max(0.0, min(100.0, score)))


def calculate_metrics(text: str, language: str) -> Metrics:
    return Metrics(
        lines_of_code=count_lines_of_code(text),
        complexity=calculate_complexity(text, language),
        maintainability_index=calculate_maintainability(text, language),
    )


def placeholder_metrics(text: str) -> Metrics:
    """Metrics reported when the caller opts out of metric calculation."""
    return Metrics(
        lines_of_code=len(text.split("\n")),
        complexity=0,
        maintainability_index=0,
    )


def _round_half_up(value: float) -> int:
    # .5 rounds up, unlike round()
    return int(math.floor(value + 0.5))
