"""Walkthrough of a file or line range.

Cuts the lines into sections at blank lines and function starts, tags
each section with the structural concepts it mentions, and pulls module
specifiers and relative imports out of the whole file.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .files import SourceUnit, read_source
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class CodeSection:
    """A contiguous run of lines with its concept tags."""

    start_line: int
    end_line: int
    explanation: str
    concepts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "startLine": self.start_line,
            "endLine": self.end_line,
            "explanation": self.explanation,
            "concepts": list(self.concepts),
        }


@dataclass
class CodeExplanationReport:
    path: str
    overview: str
    sections: list[CodeSection] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    related_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.path,
            "overview": self.overview,
            "sections": [s.to_dict() for s in self.sections],
            "dependencies": list(self.dependencies),
            "relatedFiles": list(self.related_files),
        }


# --- Concepts and section explanations ---

CONCEPT_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("import", "require"), "imports"),
    (("function", "=>"), "function-definition"),
    (("if", "else"), "conditional-logic"),
    (("for", "while", "forEach"), "loops"),
)

# First keyword group found in the section text picks the sentence.
SECTION_EXPLANATIONS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("import", "require"), "This section imports dependencies and modules needed for the code to function"),
    (("function", "=>"), "This section defines a function that encapsulates specific functionality"),
    (("if", "else"), "This section contains conditional logic that executes different code paths"),
    (("for", "while"), "This section contains loop logic for iterating over data or repeating operations"),
    (("return",), "This section returns a value or result from the function"),
)
DEFAULT_SECTION_EXPLANATION = "This section contains core logic and operations for the module"


def explain_section(lines: list[str]) -> str:
    content = "\n".join(lines)
    for keywords, sentence in SECTION_EXPLANATIONS:
        if any(k in content for k in keywords):
            return sentence
    return DEFAULT_SECTION_EXPLANATION


def _line_concepts(line: str) -> list[str]:
    return [tag for keywords, tag in CONCEPT_RULES if any(k in line for k in keywords)]


def break_into_sections(lines: list[str], start_line: int = 1) -> list[CodeSection]:
    """Split ``lines`` (numbered from ``start_line``) into sections.

    A blank line, a line mentioning ``function``, or the line after a blank
    closes the running section. The closing line itself is dropped: the
    section ends just before it and the next one starts just after it.
    Sections of a single line are discarded, except for the last one.
    """
    sections: list[CodeSection] = []
    current_start = start_line
    current_lines: list[str] = []
    concepts: dict[str, None] = {}

    for index, line in enumerate(lines):
        line_number = start_line + index
        current_lines.append(line)
        for tag in _line_concepts(line):
            concepts.setdefault(tag)

        is_boundary = (
            line.strip() == ""
            or "function" in line
            or (index > 0 and lines[index - 1].strip() == "")
        )
        if not is_boundary:
            continue
        if len(current_lines) > 1:
            sections.append(CodeSection(
                start_line=current_start,
                end_line=line_number - 1,
                explanation=explain_section(current_lines),
                concepts=list(concepts),
            ))
        current_start = line_number + 1
        current_lines = []
        concepts = {}

    if current_lines:
        sections.append(CodeSection(
            start_line=current_start,
            end_line=start_line + len(lines) - 1,
            explanation=explain_section(current_lines),
            concepts=list(concepts),
        ))
    return sections


# --- Overview ---

CONSTRUCT_MARKERS = re.compile(r"function|const.*=.*=>|def |class ")


def infer_purpose(text: str) -> str:
    if "import React" in text or "from 'react'" in text:
        return "a React component"
    if "express" in text or "app.listen" in text:
        return "an Express.js server"
    if "class" in text and "constructor" in text:
        return "a class definition"
    if "function" in text or "=>" in text:
        return "a utility module with functions"
    return "a general purpose module"


def generate_overview(source: SourceUnit) -> str:
    line_count = len(source.lines)
    constructs = len(CONSTRUCT_MARKERS.findall(source.text))
    return (
        f"This {source.language} file contains {line_count} lines of code with {constructs} functions/classes. "
        f"It appears to be {infer_purpose(source.text)}."
    )


# --- Dependencies ---

# greedy: one match per line, ending at the line's last specifier
IMPORT_STATEMENT = re.compile(r"import.*from ['\"`][^'\"`]+['\"`]")
FROM_SPECIFIER = re.compile(r"from ['\"`]([^'\"`]+)['\"`]")
REQUIRE_CALL = re.compile(r"require\(['\"`]([^'\"`]+)['\"`]\)")
RELATIVE_IMPORT = re.compile(r"from ['\"`]\./([^'\"`]+)['\"`]")


def find_dependencies(text: str) -> list[str]:
    """Module specifiers from ``import ... from`` and ``require()``, deduplicated.

    Only the first ``from`` specifier of an import line is taken.
    """
    found = [FROM_SPECIFIER.search(m).group(1) for m in IMPORT_STATEMENT.findall(text)]
    found += REQUIRE_CALL.findall(text)
    return list(dict.fromkeys(found))


def find_related_files(path: str, text: str) -> list[str]:
    """``./x`` import targets joined onto the file's directory. Not checked for existence."""
    directory = os.path.dirname(path) or "."
    return [os.path.normpath(os.path.join(directory, rel)) for rel in RELATIVE_IMPORT.findall(text)]


# --- Pipeline ---


def explain_source(
    source: SourceUnit,
    start_line: int | None = None,
    end_line: int | None = None,
) -> CodeExplanationReport:
    lines = source.lines
    if start_line and end_line:
        target, first = lines[start_line - 1:end_line], start_line
    else:
        target, first = lines, 1

    return CodeExplanationReport(
        path=source.path,
        overview=generate_overview(source),
        sections=break_into_sections(target, first),
        dependencies=find_dependencies(source.text),
        related_files=find_related_files(source.path, source.text),
    )


def explain_code(
    path: str | Path,
    start_line: int | None = None,
    end_line: int | None = None,
) -> CodeExplanationReport:
    """Explain a whole file, or lines ``start_line..end_line`` (1-based, inclusive)."""
    logger.info("Explaining code: %s", path)
    source = read_source(path)
    report = explain_source(source, start_line, end_line)
    logger.info("Code explanation completed for %s", path)
    return report
