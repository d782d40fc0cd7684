"""File-read layer: hands the engine already-read text."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import TargetNotFoundError
from .languages import detect_language_for_path
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceUnit:
    """One file's path, language tag and full text."""

    path: str
    language: str
    text: str

    @property
    def lines(self) -> list[str]:
        return self.text.split("\n")


def read_text(path: str | Path) -> str:
    """Read a file as UTF-8, replacing undecodable bytes."""
    return Path(path).read_text(encoding="utf-8", errors="replace")


def read_source(path: str | Path) -> SourceUnit:
    """Read the primary file of a request.

    Raises:
        TargetNotFoundError: if ``path`` is not an existing file.
    """
    fpath = Path(path)
    if not fpath.is_file():
        raise TargetNotFoundError(str(path))
    logger.debug("Reading %s", path)
    return SourceUnit(path=str(path), language=detect_language_for_path(path), text=read_text(fpath))
