"""File extension -> language tag mapping."""

from __future__ import annotations

import os

UNKNOWN = "unknown"

EXT_LANG = {
    ".js": "javascript", ".jsx": "javascript",
    ".ts": "typescript", ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".cpp": "cpp",
    ".c": "c",
    ".cs": "csharp",
    ".php": "php",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
}

JS_FAMILY = frozenset({"javascript", "typescript"})


def detect_language(extension: str) -> str:
    """Map an extension (``"py"`` or ``".py"``, any case) to a language tag."""
    ext = extension.lower()
    if not ext.startswith("."):
        ext = "." + ext
    return EXT_LANG.get(ext, UNKNOWN)


def detect_language_for_path(path: str | os.PathLike) -> str:
    return detect_language(os.path.splitext(str(path))[1])
