"""Crash triage from a raw traceback.

Parses the error line and file:line frames out of a traceback, picks the
files worth looking at, cuts a small window of code around each frame and
guesses a cause from the error type.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .files import read_text
from .logging_config import get_logger

logger = get_logger(__name__)

UNKNOWN_ERROR = "UnknownError"
MAX_RELEVANT_FILES = 5
SNIPPET_BEFORE = 3
SNIPPET_AFTER = 2
SNIPPET_WORKERS = 4

ERROR_LINE_MARKERS = ("Error:", "Exception:")
# file name is the run of path-free characters just before ".ext:line"
FRAME_PATTERN = re.compile(r"([^/\\\s()'\"]+\.(js|ts|py)):(\d+)")


@dataclass(frozen=True)
class Frame:
    file: str
    line: int

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "line": self.line}


@dataclass
class TracebackInfo:
    """What could be recovered from a traceback. Never empty."""

    error_type: str = UNKNOWN_ERROR
    message: str = ""
    frames: list[Frame] = field(default_factory=list)

    def frame_for(self, file: str) -> Frame | None:
        return next((f for f in self.frames if f.file == file), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "errorType": self.error_type,
            "message": self.message,
            "frames": [f.to_dict() for f in self.frames],
        }


@dataclass(frozen=True)
class CodeSnippet:
    file: str
    lines: str
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "lines": self.lines, "explanation": self.explanation}


@dataclass
class BugReport:
    """Probable cause and supporting code for a crash."""

    error_type: str
    probable_cause: str
    suggested_fix: str
    relevant_files: list[str] = field(default_factory=list)
    code_snippets: list[CodeSnippet] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "errorType": self.error_type,
            "probableCause": self.probable_cause,
            "suggestedFix": self.suggested_fix,
            "relevantFiles": list(self.relevant_files),
            "codeSnippets": [s.to_dict() for s in self.code_snippets],
        }


def parse_traceback(traceback: str) -> TracebackInfo:
    """Extract error type, message and frames. Degrades to defaults, never raises."""
    lines = traceback.split("\n")

    error_line = next((ln for ln in lines if any(m in ln for m in ERROR_LINE_MARKERS)), None)
    if error_line is None:
        info = TracebackInfo(error_type=UNKNOWN_ERROR, message=traceback)
    else:
        error_type, _, rest = error_line.partition(":")
        info = TracebackInfo(error_type=error_type, message=rest.strip())

    for line in lines:
        match = FRAME_PATTERN.search(line)
        if match:
            info.frames.append(Frame(file=match.group(1), line=int(match.group(3))))
    return info


# --- Cause classification ---

# Matched case-insensitively against the error type; first hit wins.
CAUSE_TABLE: tuple[tuple[str, str, str], ...] = (
    (
        "undefined",
        "Variable or property is not defined or has not been initialized",
        "Add null checks: if (variable !== undefined) { ... } or use optional chaining: object?.property",
    ),
    (
        "null",
        "Attempting to access properties or methods on null value",
        "Add null checks: if (variable !== null) { ... } or initialize with default values",
    ),
    (
        "type",
        "Type mismatch - value is not the expected type",
        "Verify data types: use typeof checks or TypeScript for type safety",
    ),
    (
        "reference",
        "Variable is referenced before declaration or is out of scope",
        "Ensure variable is declared before use or check scope/import statements",
    ),
    (
        "syntax",
        "Code contains syntax errors - check brackets, semicolons, quotes",
        "Review syntax: check matching brackets, proper semicolons, correct quotes",
    ),
)
FALLBACK_CAUSE = "Error analysis requires deeper investigation of the code context"
FALLBACK_FIX = "Review the code context and error message for specific debugging steps"


def classify_cause(error_type: str) -> tuple[str, str]:
    """Return ``(probable_cause, suggested_fix)`` for an error type."""
    lowered = error_type.lower()
    for keyword, cause, fix in CAUSE_TABLE:
        if keyword in lowered:
            return cause, fix
    return FALLBACK_CAUSE, FALLBACK_FIX


# --- Relevant files and snippets ---


def select_relevant_files(info: TracebackInfo, context_files: Sequence[str] = ()) -> list[str]:
    """Caller files first, then unseen frame files, capped at five."""
    relevant = list(context_files)
    for frame in info.frames:
        if frame.file not in relevant:
            relevant.append(frame.file)
    return relevant[:MAX_RELEVANT_FILES]


def extract_snippet(text: str, line_number: int) -> str:
    """The lines ``[line-3, line+2)`` (0-based slice) around ``line_number``."""
    lines = text.split("\n")
    start = max(0, line_number - SNIPPET_BEFORE)
    end = min(len(lines), line_number + SNIPPET_AFTER)
    return "\n".join(lines[start:end])


def _snippet_for(file: str, info: TracebackInfo) -> CodeSnippet | None:
    if not Path(file).is_file():
        return None
    try:
        text = read_text(file)
    except OSError as e:
        logger.warning("Could not read file: %s (%s)", file, e)
        return None
    frame = info.frame_for(file)
    line_number = frame.line if frame and frame.line else 1
    return CodeSnippet(
        file=file,
        lines=extract_snippet(text, line_number),
        explanation=f"Code around line {line_number} where error occurred",
    )


def extract_code_snippets(files: Sequence[str], info: TracebackInfo) -> list[CodeSnippet]:
    """Snippets for the readable files, in the order of ``files``."""
    if not files:
        return []
    with ThreadPoolExecutor(max_workers=min(SNIPPET_WORKERS, len(files))) as executor:
        results = list(executor.map(lambda f: _snippet_for(f, info), files))
    return [s for s in results if s is not None]


def find_bug(traceback: str, context_files: Sequence[str] = ()) -> BugReport:
    """Analyze a traceback plus optional context files."""
    logger.info("Analyzing bug from traceback")

    info = parse_traceback(traceback)
    relevant_files = select_relevant_files(info, context_files)
    snippets = extract_code_snippets(relevant_files, info)
    cause, fix = classify_cause(info.error_type)

    logger.info("Bug analysis completed")
    return BugReport(
        error_type=info.error_type,
        probable_cause=cause,
        suggested_fix=fix,
        relevant_files=relevant_files,
        code_snippets=snippets,
    )
