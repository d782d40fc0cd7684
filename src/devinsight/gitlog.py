"""Git collaborator: fetches commit metadata via subprocess."""

from __future__ import annotations

import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from .errors import DevInsightError
from .logging_config import get_logger

logger = get_logger(__name__)

GIT_TIMEOUT = 10
FILE_LIST_WORKERS = 8

# ASCII unit/record separators never occur in names or subjects
FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"
LOG_FORMAT = f"%H{FIELD_SEP}%an{FIELD_SEP}%aI{FIELD_SEP}%s{RECORD_SEP}"


class GitError(DevInsightError):
    """A git command failed."""


@dataclass(frozen=True)
class RawCommit:
    """One commit as returned by the history query."""

    hash: str
    author: str
    date: str
    message: str
    files: tuple[str, ...] = field(default_factory=tuple)


class GitRepository:
    """Thin wrapper around the ``git`` binary for one checkout."""

    def __init__(self, path: str | Path = "."):
        self.path = Path(path).resolve()

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", "-C", str(self.path), *args],
                capture_output=True, text=True, timeout=GIT_TIMEOUT,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise GitError(f"git {args[0]} failed: {e}") from e
        if result.returncode != 0:
            raise GitError(f"git {args[0]} failed: {result.stderr.strip()[:200]}")
        return result.stdout

    def is_repo(self) -> bool:
        try:
            return self._run("rev-parse", "--is-inside-work-tree").strip() == "true"
        except GitError:
            return False

    def commit_files(self, commit_hash: str) -> list[str]:
        """Paths changed by one commit. Failures are logged and give ``[]``."""
        try:
            out = self._run("show", commit_hash, "--name-only", "--pretty=format:")
        except GitError as e:
            logger.warning("Could not get files for commit %s: %s", commit_hash, e)
            return []
        return [line for line in out.split("\n") if line.strip()]

    def log(self, query: str = "", max_count: int = 10, include_files: bool = True) -> list[RawCommit]:
        """Newest-first commits whose full message matches ``query``.

        ``RawCommit.message`` is the subject line only.
        """
        args = ["log", f"--max-count={max_count}", f"--format={LOG_FORMAT}"]
        if query:
            args.append(f"--grep={query}")
        commits = _parse_log(self._run(*args))

        if not include_files or not commits:
            return commits
        with ThreadPoolExecutor(max_workers=min(FILE_LIST_WORKERS, len(commits))) as executor:
            file_lists = list(executor.map(self.commit_files, [c.hash for c in commits]))
        return [
            RawCommit(c.hash, c.author, c.date, c.message, tuple(files))
            for c, files in zip(commits, file_lists)
        ]


def _parse_log(raw: str) -> list[RawCommit]:
    commits = []
    for record in raw.split(RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        parts = record.split(FIELD_SEP, 3)
        if len(parts) < 4:
            continue
        commit_hash, author, date, message = parts
        commits.append(RawCommit(hash=commit_hash, author=author, date=date, message=message.strip()))
    return commits
