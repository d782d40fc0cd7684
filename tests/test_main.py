"""Tests for the devinsight CLI."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from devinsight import __version__
from devinsight.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def js_file(tmp_path):
    path = tmp_path / "page.js"
    path.write_text(
        "const el = document.getElementById('app');\n"
        "// TODO: escape\n"
        "el.innerHTML = '<p>' + name + '</p>';\n"
    )
    return path


class TestAnalyzeCommand:
    def test_json(self, runner, js_file):
        result = runner.invoke(cli, ["analyze", str(js_file), "--security", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["language"] == "javascript"
        assert [s["severity"] for s in data["securityIssues"]] == ["medium"]
        assert "Consider caching DOM queries for better performance" in data["suggestions"]

    def test_no_metrics(self, runner, js_file):
        result = runner.invoke(cli, ["analyze", str(js_file), "--no-metrics", "--json"])
        assert json.loads(result.output)["metrics"]["complexity"] == 0

    def test_rich_output(self, runner, js_file):
        result = runner.invoke(cli, ["analyze", str(js_file), "-s"])
        assert result.exit_code == 0, result.output
        assert "Maintainability" in result.output
        assert "todo-comment" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["analyze", str(tmp_path / "nope.js")])
        assert result.exit_code == 1
        assert "File not found" in result.output


class TestBugCommand:
    def test_from_stdin(self, runner):
        result = runner.invoke(cli, ["bug", "--json"], input="TypeError: x is undefined\n at a.js:1\n")
        data = json.loads(result.output)
        assert data["errorType"] == "TypeError"
        assert data["relevantFiles"] == ["a.js"]

    def test_from_file_with_context(self, runner, tmp_path, js_file):
        trace = tmp_path / "crash.log"
        trace.write_text("ReferenceError: name is not defined\n at page.js:3\n")
        result = runner.invoke(cli, ["bug", str(trace), "-c", str(js_file), "--json"])
        data = json.loads(result.output)
        # the frame names page.js relative to cwd, which is a different entry
        assert data["relevantFiles"] == [str(js_file), "page.js"]
        assert data["codeSnippets"][0]["explanation"] == "Code around line 1 where error occurred"

    def test_rich_output(self, runner):
        result = runner.invoke(cli, ["bug"], input="SyntaxError: Unexpected token\n at gone.js:2\n")
        assert result.exit_code == 0, result.output
        assert "SyntaxError" in result.output
        assert "Relevant files" in result.output


class TestExplainCommand:
    def test_range_json(self, runner, js_file):
        result = runner.invoke(cli, ["explain", str(js_file), "--start", "2", "--end", "3", "--json"])
        data = json.loads(result.output)
        assert [(s["startLine"], s["endLine"]) for s in data["sections"]] == [(2, 3)]

    def test_tree_output(self, runner, js_file):
        result = runner.invoke(cli, ["explain", str(js_file)])
        assert result.exit_code == 0, result.output
        assert "Sections" in result.output

    def test_dependencies_printed_literally(self, runner, tmp_path):
        path = tmp_path / "mod.js"
        path.write_text("import x from 'pkg[bold]';\n")
        result = runner.invoke(cli, ["explain", str(path)])
        assert result.exit_code == 0, result.output
        assert "Dependencies: pkg[bold]" in result.output

    def test_start_must_be_positive(self, runner, js_file):
        result = runner.invoke(cli, ["explain", str(js_file), "--start", "0"])
        assert result.exit_code == 2


class TestHistoryCommand:
    @patch("devinsight.history.GitRepository.is_repo", return_value=False)
    def test_not_a_repository(self, _mock_is_repo, runner, tmp_path):
        result = runner.invoke(cli, ["history", "fix", "--repo", str(tmp_path)])
        assert result.exit_code == 1
        assert "Not in a git repository" in result.output


class TestToolCommands:
    def test_tools_table(self, runner):
        result = runner.invoke(cli, ["tools"])
        assert result.exit_code == 0
        for name in ("analyzeCode", "findBug", "explainCode", "gitHistory"):
            assert name in result.output

    def test_call_local(self, runner, js_file):
        result = runner.invoke(
            cli, ["call", "explainCode", "-a", f"filePath={js_file}", "-a", "startLine=1", "-a", "endLine=2"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["sections"][0]["startLine"] == 1

    def test_call_raw_string_argument(self, runner):
        result = runner.invoke(cli, ["call", "findBug", "-a", "traceback=SyntaxError: bad token"])
        assert json.loads(result.output)["errorType"] == "SyntaxError"

    def test_call_bad_pair(self, runner):
        result = runner.invoke(cli, ["call", "findBug", "-a", "traceback"])
        assert result.exit_code == 2

    def test_call_unknown_tool(self, runner):
        result = runner.invoke(cli, ["call", "nope"])
        assert result.exit_code == 1
        assert "Unknown tool: nope" in result.output

    @patch("devinsight.main.DevInsightClient")
    def test_call_remote(self, mock_client_cls, runner):
        client = mock_client_cls.return_value.__enter__.return_value
        client.is_server_running.return_value = True
        client.call_tool.return_value = {"errorType": "TypeError"}
        result = runner.invoke(
            cli, ["call", "findBug", "-a", "traceback=TypeError: x", "--server", "http://127.0.0.1:9999"]
        )
        assert result.exit_code == 0, result.output
        mock_client_cls.assert_called_once_with("http://127.0.0.1:9999")
        client.call_tool.assert_called_once_with("findBug", {"traceback": "TypeError: x"})
        assert json.loads(result.output) == {"errorType": "TypeError"}

    @patch("devinsight.main.DevInsightClient")
    def test_call_remote_server_down(self, mock_client_cls, runner):
        client = mock_client_cls.return_value.__enter__.return_value
        client.is_server_running.return_value = False
        result = runner.invoke(cli, ["call", "findBug", "-a", "traceback=x", "--server", "http://127.0.0.1:9999"])
        assert result.exit_code == 1
        assert "No DevInsight server answering at http://127.0.0.1:9999" in result.output
        client.call_tool.assert_not_called()


class TestServeCommand:
    @patch("devinsight.main.start_server")
    def test_env_config(self, mock_start, runner):
        result = runner.invoke(cli, ["serve", "--host", "0.0.0.0"], env={"DEVINSIGHT_PORT": "4000"})
        assert result.exit_code == 0, result.output
        mock_start.assert_called_once_with("0.0.0.0", 4000)


class TestVersion:
    def test_version_command(self, runner):
        result = runner.invoke(cli, ["version"])
        assert __version__ in result.output

    def test_version_option(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert __version__ in result.output
