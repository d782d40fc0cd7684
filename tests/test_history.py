"""Tests for commit-history insights and the git collaborator."""

import logging
import shutil
import subprocess
from unittest.mock import patch

import pytest

from devinsight.errors import NotARepositoryError
from devinsight.gitlog import FIELD_SEP, RECORD_SEP, GitError, GitRepository, RawCommit, _parse_log
from devinsight.history import (
    CommitRecord,
    analyze_history,
    build_history_report,
    categorize_file,
    categorize_files,
    generate_recommendations,
    mine_patterns,
    summarize_commit,
)


def _commit(message="feat: add feature", files=(), hash="abc123"):
    return CommitRecord(hash=hash, author="Dev", date="2024-05-01T10:00:00+00:00",
                        message=message, files_changed=list(files))


def _raw(n, message="update things", files=("tests/test_a.py",)):
    return RawCommit(hash=f"h{n}", author="Dev", date="2024-05-01", message=message, files=tuple(files))


class TestCategorize:
    @pytest.mark.parametrize(
        "path,category",
        [
            ("src/app.js", "JavaScript/TypeScript"),
            ("src/view.tsx", "JavaScript/TypeScript"),
            ("src/app.test.js", "JavaScript/TypeScript"),
            ("tests/test_core.py", "Python"),
            ("styles/main.scss", "Styles"),
            ("public/index.html", "HTML"),
            ("README.md", "Documentation"),
            ("requirements.txt", "Documentation"),
            ("package.json", "Dependencies"),
            ("yarn.lock", "Dependencies"),
            ("spec/fixtures.yml", "Tests"),
            ("Dockerfile", "Config/Other"),
        ],
    )
    def test_first_match_wins(self, path, category):
        assert categorize_file(path) == category

    def test_distinct_in_first_seen_order(self):
        files = ["b.py", "a.js", "c.py", "d.md"]
        assert categorize_files(files) == ["Python", "JavaScript/TypeScript", "Documentation"]

    def test_summary(self):
        summary = summarize_commit("feat: add x\n\nlong body", ["a.js", "b.py", "c.js"])
        assert summary == "feat: add x (Modified: JavaScript/TypeScript, Python)"

    def test_summary_without_files(self):
        assert summarize_commit("fix: typo", []) == "fix: typo"


class TestPatterns:
    def test_high_frequency_boundary(self):
        assert "High commit frequency - active development" in mine_patterns([_commit()] * 6)
        assert "High commit frequency - active development" not in mine_patterns([_commit()] * 5)

    def test_conventional_commits(self):
        assert mine_patterns([_commit("fix(parser): handle eof")]) == ["Uses conventional commit messages"]
        assert mine_patterns([_commit("Fixed the parser")]) == []

    def test_conventional_needs_description(self):
        assert mine_patterns([_commit("feat:")]) == []

    def test_frequent_files_boundary(self):
        twice = [_commit("x y z w v", ["a.js"]), _commit("x y z w v", ["a.js"])]
        assert mine_patterns(twice) == []
        thrice = twice + [_commit("x y z w v", ["a.js"])]
        assert mine_patterns(thrice) == ["Frequently modified files: a.js"]

    def test_frequent_files_shows_first_three(self):
        files = ["a.js", "b.js", "c.js", "d.js"]
        commits = [_commit("update", files) for _ in range(3)]
        assert mine_patterns(commits) == ["Frequently modified files: a.js, b.js, c.js"]


class TestRecommendations:
    def test_large_commit_boundary(self):
        ten = [f"tests/f{i}.py" for i in range(10)]
        eleven = ten + ["tests/extra.py"]
        assert generate_recommendations([_commit(files=ten)]) == []
        assert generate_recommendations([_commit(files=eleven)]) == [
            "Consider breaking large commits into smaller, focused changes",
        ]

    def test_short_message(self):
        recs = generate_recommendations([_commit("wip", ["tests/t.py"])])
        assert recs == ["Write more descriptive commit messages for better project history"]

    def test_ten_characters_is_enough(self):
        assert generate_recommendations([_commit("0123456789", ["spec/a.js"])]) == []

    def test_missing_tests(self):
        recs = generate_recommendations([_commit("feat: add login", ["src/login.js"])])
        assert recs == ["Consider adding tests alongside feature development"]

    def test_empty_history_recommends_tests(self):
        assert generate_recommendations([]) == ["Consider adding tests alongside feature development"]


class TestBuildHistoryReport:
    def test_truncates_and_keeps_order(self):
        commits = [_raw(i) for i in range(15)]
        report = build_history_report(commits, max_results=10)
        assert [c.hash for c in report.commits] == [f"h{i}" for i in range(10)]
        assert report.patterns == ["High commit frequency - active development",
                                   "Frequently modified files: tests/test_a.py"]

    def test_to_dict(self):
        report = build_history_report([_raw(1, "fix: bug", ["src/a.py"])])
        d = report.to_dict()
        assert d["commits"][0] == {
            "hash": "h1",
            "author": "Dev",
            "date": "2024-05-01",
            "message": "fix: bug",
            "filesChanged": ["src/a.py"],
            "summary": "fix: bug (Modified: Python)",
        }
        assert d["patterns"] == ["Uses conventional commit messages"]
        assert d["recommendations"] == [
            "Write more descriptive commit messages for better project history",
            "Consider adding tests alongside feature development",
        ]


class TestAnalyzeHistory:
    @patch("devinsight.history.GitRepository.is_repo", return_value=False)
    def test_not_a_repository(self, _mock_is_repo, tmp_path):
        with pytest.raises(NotARepositoryError, match="Not in a git repository"):
            analyze_history("fix", repo=tmp_path)

    @patch("devinsight.history.GitRepository.log")
    @patch("devinsight.history.GitRepository.is_repo", return_value=True)
    def test_passes_options_to_git(self, _mock_is_repo, mock_log):
        mock_log.return_value = [_raw(1, "feat: search", ["src/search.py", "tests/test_search.py"])]
        report = analyze_history("search", max_results=3, include_files=False)
        mock_log.assert_called_once_with("search", max_count=3, include_files=False)
        assert report.commits[0].summary == "feat: search (Modified: Python)"
        assert report.recommendations == []


class TestGitLog:
    def test_parse_log(self):
        raw = (
            f"h1{FIELD_SEP}Alice{FIELD_SEP}2024-01-01T00:00:00+00:00{FIELD_SEP}feat: a\n\nbody\n{RECORD_SEP}\n"
            f"h2{FIELD_SEP}Bob{FIELD_SEP}2024-01-02T00:00:00+00:00{FIELD_SEP}fix: b\n{RECORD_SEP}\n"
        )
        commits = _parse_log(raw)
        assert [c.hash for c in commits] == ["h1", "h2"]
        assert commits[0].author == "Alice"
        assert commits[0].message == "feat: a\n\nbody"
        assert commits[1].files == ()

    def test_parse_log_empty(self):
        assert _parse_log("") == []

    def test_commit_files_failure_is_dropped(self, caplog):
        repo = GitRepository(".")
        with patch.object(GitRepository, "_run", side_effect=GitError("bad object")), \
                caplog.at_level(logging.WARNING, logger="devinsight"):
            assert repo.commit_files("deadbeef") == []
        assert "Could not get files for commit deadbeef" in caplog.text

    def test_log_keeps_order_with_files(self):
        repo = GitRepository(".")
        log_output = "".join(
            f"h{i}{FIELD_SEP}Dev{FIELD_SEP}2024{FIELD_SEP}msg {i}{RECORD_SEP}\n" for i in range(4)
        )
        files = {f"h{i}": [f"f{i}.py"] for i in range(4)}
        with patch.object(GitRepository, "_run", return_value=log_output), \
                patch.object(GitRepository, "commit_files", side_effect=lambda h: files[h]):
            commits = repo.log("msg", max_count=4)
        assert [(c.hash, c.files) for c in commits] == [(f"h{i}", (f"f{i}.py",)) for i in range(4)]


def _git(cwd, *args):
    subprocess.run(
        ["git", "-c", "user.name=Dev", "-c", "user.email=dev@example.com",
         "-c", "commit.gpgsign=false", *args],
        cwd=cwd, check=True, capture_output=True,
    )


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
class TestRealRepository:
    @pytest.fixture
    def repo(self, tmp_path):
        _git(tmp_path, "init", "-q")
        (tmp_path / "app.js").write_text("console.log(1)\n")
        (tmp_path / "tests").mkdir()
        (tmp_path / "tests" / "test_app.js").write_text("// test\n")
        _git(tmp_path, "add", ".")
        _git(tmp_path, "commit", "-q", "-m", "feat: add app")
        (tmp_path / "README.md").write_text("# app\n")
        _git(tmp_path, "add", ".")
        _git(tmp_path, "commit", "-q", "-m", "docs: readme")
        return tmp_path

    def test_query_filters_messages(self, repo):
        report = analyze_history("feat", repo=repo)
        assert len(report.commits) == 1
        commit = report.commits[0]
        assert commit.message == "feat: add app"
        assert commit.files_changed == ["app.js", "tests/test_app.js"]
        assert commit.summary == "feat: add app (Modified: JavaScript/TypeScript)"
        assert report.patterns == ["Uses conventional commit messages"]
        assert report.recommendations == []

    def test_newest_first_without_files(self, repo):
        report = analyze_history("", include_files=False, repo=repo)
        assert [c.message for c in report.commits] == ["docs: readme", "feat: add app"]
        assert all(c.files_changed == [] for c in report.commits)

    def test_message_is_subject_line(self, repo):
        (repo / "notes.txt").write_text("notes\n")
        _git(repo, "add", ".")
        _git(repo, "commit", "-q", "-m", "wip", "-m", "a much longer body paragraph explaining things")
        report = analyze_history("wip", repo=repo)
        assert [c.message for c in report.commits] == ["wip"]
        assert "Write more descriptive commit messages for better project history" in report.recommendations

    def test_no_matches(self, repo):
        report = analyze_history("nothing-matches-this", repo=repo)
        assert report.commits == []
        assert report.recommendations == ["Consider adding tests alongside feature development"]

    def test_plain_directory(self, tmp_path):
        with pytest.raises(NotARepositoryError):
            analyze_history("fix", repo=tmp_path)
