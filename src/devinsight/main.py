"""DevInsight CLI - heuristic code, crash and history insight.

Usage:
    devinsight analyze src/app.js --security
    devinsight bug crash.log --context src/app.js
    devinsight explain src/app.js --start 10 --end 40
    devinsight history "fix" --max-results 20
    devinsight serve --port 3001
"""

from __future__ import annotations

import functools
import json

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .analyzer import AnalysisReport, analyze_code
from .bugs import BugReport, find_bug
from .client import DEFAULT_SERVER_URL, ClientError, DevInsightClient
from .errors import DevInsightError
from .explainer import CodeExplanationReport, explain_code
from .history import DEFAULT_MAX_RESULTS, GitInsightReport, analyze_history
from .logging_config import setup_logging
from .serve import DEFAULT_HOST, DEFAULT_PORT, start_server
from .tools import TOOLS, call_tool

console = Console()

SEVERITY_STYLES = {"high": "bold red", "medium": "yellow", "low": "dim"}
ISSUE_STYLES = {"error": "red", "warning": "yellow", "info": "cyan"}


def _handle_errors(func):
    """Turn engine errors into clean CLI failures."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (DevInsightError, ClientError) as e:
            raise click.ClickException(str(e))

    return wrapper


def _emit_json(data) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors")
@click.option("--log-file", default=None, type=click.Path(dir_okay=False), help="Also append logs to this file")
def cli(verbose: bool, quiet: bool, log_file: str | None):
    """DevInsight - heuristic insight for source files, crashes and git history.

    Everything is line/regex/keyword based. No compiler or language
    server is involved.
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)


@cli.command()
@click.argument("file_path", type=click.Path())
@click.option("--no-metrics", is_flag=True, help="Skip metric calculation")
@click.option("--security", "-s", is_flag=True, help="Include security checks")
@click.option("--json", "json_only", is_flag=True, help="Output raw JSON to stdout")
@_handle_errors
def analyze(file_path: str, no_metrics: bool, security: bool, json_only: bool):
    """Analyze code quality, complexity and potential issues in a file."""
    report = analyze_code(file_path, include_metrics=not no_metrics, include_security=security)
    if json_only:
        _emit_json(report.to_dict())
    else:
        _print_analysis(report)


@cli.command()
@click.argument("traceback_file", type=click.File("r"), default="-")
@click.option("--context", "-c", "context_files", multiple=True, help="Related file (repeatable)")
@click.option("--json", "json_only", is_flag=True, help="Output raw JSON to stdout")
@_handle_errors
def bug(traceback_file, context_files: tuple[str, ...], json_only: bool):
    """Analyze an error traceback and suggest fixes.

    TRACEBACK_FILE defaults to stdin.
    """
    report = find_bug(traceback_file.read(), list(context_files))
    if json_only:
        _emit_json(report.to_dict())
    else:
        _print_bug(report)


@cli.command()
@click.argument("file_path", type=click.Path())
@click.option("--start", "start_line", type=click.IntRange(min=1), default=None, help="First line (1-based)")
@click.option("--end", "end_line", type=click.IntRange(min=1), default=None, help="Last line (inclusive)")
@click.option("--json", "json_only", is_flag=True, help="Output raw JSON to stdout")
@_handle_errors
def explain(file_path: str, start_line: int | None, end_line: int | None, json_only: bool):
    """Explain a file, or a line range of it, section by section."""
    report = explain_code(file_path, start_line, end_line)
    if json_only:
        _emit_json(report.to_dict())
    else:
        _print_explanation(report)


@cli.command()
@click.argument("query", default="")
@click.option("--max-results", "-n", type=click.IntRange(min=1), default=DEFAULT_MAX_RESULTS, show_default=True)
@click.option("--no-files", is_flag=True, help="Skip per-commit changed files")
@click.option("--repo", "-r", default=".", type=click.Path(file_okay=False), help="Repository path")
@click.option("--json", "json_only", is_flag=True, help="Output raw JSON to stdout")
@_handle_errors
def history(query: str, max_results: int, no_files: bool, repo: str, json_only: bool):
    """Mine patterns from commits whose message matches QUERY."""
    report = analyze_history(query, max_results=max_results, include_files=not no_files, repo=repo)
    if json_only:
        _emit_json(report.to_dict())
    else:
        _print_history(report)


@cli.command()
def tools():
    """List the tools served over HTTP."""
    table = Table(show_header=True)
    table.add_column("Tool", style="bold")
    table.add_column("Description")
    table.add_column("Arguments")
    for tool in TOOLS.values():
        args = ", ".join(f"{p.name}{'' if p.required else '?'}" for p in tool.params)
        table.add_row(tool.name, tool.description, args)
    console.print(table)


def _parse_tool_args(pairs: tuple[str, ...]) -> dict:
    arguments = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected key=value, got {pair!r}", param_hint="--arg")
        try:
            arguments[key] = json.loads(raw)
        except json.JSONDecodeError:
            arguments[key] = raw
    return arguments


@cli.command()
@click.argument("name")
@click.option("--arg", "-a", "pairs", multiple=True, help="Tool argument as key=value (JSON values allowed)")
@click.option("--server", default=None, help=f"Call a running server instead, e.g. {DEFAULT_SERVER_URL}")
@_handle_errors
def call(name: str, pairs: tuple[str, ...], server: str | None):
    """Invoke a tool by NAME and print its JSON result.

    Examples:

        devinsight call analyzeCode -a filePath=src/app.js -a includeSecurityCheck=true

        devinsight call findBug -a traceback="TypeError: x" --server http://127.0.0.1:3001
    """
    arguments = _parse_tool_args(pairs)
    if server:
        with DevInsightClient(server) as client:
            if not client.is_server_running():
                raise click.ClickException(f"No DevInsight server answering at {server}. Try: devinsight serve")
            result = client.call_tool(name, arguments)
    else:
        result = call_tool(name, arguments)
    _emit_json(result)


@cli.command()
@click.option("--host", default=DEFAULT_HOST, envvar="DEVINSIGHT_HOST", show_default=True)
@click.option("--port", "-p", default=DEFAULT_PORT, envvar="DEVINSIGHT_PORT", type=int, show_default=True)
def serve(host: str, port: int):
    """Serve the tools as JSON over HTTP."""
    console.print(Panel.fit(
        f"[bold cyan]DevInsight v{__version__}[/] - http://{host}:{port}\n"
        f"Health: /health  Tools: /api/tools",
        border_style="cyan",
    ))
    start_server(host, port)


@cli.command()
def version():
    """Show version information."""
    console.print(f"devinsight v{__version__}")
    console.print("Heuristic code, crash and commit-history insight")


def _print_analysis(report: AnalysisReport) -> None:
    table = Table(title=f"Analysis: {escape(report.path)}", show_header=False, border_style="dim")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Language", report.language)
    table.add_row("Lines of code", str(report.metrics.lines_of_code))
    table.add_row("Complexity", str(report.metrics.complexity))
    table.add_row("Maintainability", f"{report.metrics.maintainability_index}/100")
    console.print(table)

    if report.issues:
        issues = Table(title="Issues", show_header=True)
        issues.add_column("Line", justify="right")
        issues.add_column("Type")
        issues.add_column("Rule", style="dim")
        issues.add_column("Message")
        for i in report.issues:
            issues.add_row(str(i.line), i.kind, i.rule, escape(i.message), style=ISSUE_STYLES.get(i.kind))
        console.print(issues)

    if report.security_issues is not None:
        if report.security_issues:
            sec = Table(title="Security", show_header=True)
            sec.add_column("Line", justify="right")
            sec.add_column("Severity")
            sec.add_column("Message")
            sec.add_column("Recommendation", style="dim")
            for s in report.security_issues:
                sec.add_row(str(s.line), s.severity, s.message, s.recommendation,
                            style=SEVERITY_STYLES.get(s.severity))
            console.print(sec)
        else:
            console.print("[green]No security issues found[/]")

    if report.suggestions:
        console.print()
        console.print("[bold]Suggestions:[/]")
        for s in report.suggestions:
            console.print(f"  - {s}")


def _print_bug(report: BugReport) -> None:
    console.print(Panel.fit(
        f"[bold red]{report.error_type}[/]\n"
        f"[bold]Probable cause:[/] {report.probable_cause}\n"
        f"[bold]Suggested fix:[/] {report.suggested_fix}",
        border_style="red",
    ))
    if report.relevant_files:
        console.print("[bold]Relevant files:[/]")
        for f in report.relevant_files:
            console.print(f"  [cyan]{escape(f)}[/]")
    for snippet in report.code_snippets:
        console.print()
        console.print(f"[bold]{escape(snippet.file)}[/] [dim]{snippet.explanation}[/]")
        console.print(Syntax(snippet.lines, lexer=Syntax.guess_lexer(snippet.file, snippet.lines)))


def _print_explanation(report: CodeExplanationReport) -> None:
    console.print(Panel.fit(escape(report.overview), title=escape(report.path), border_style="cyan"))

    tree = Tree("[bold]Sections[/]")
    for s in report.sections:
        concepts = f" [dim]({', '.join(s.concepts)})[/]" if s.concepts else ""
        tree.add(f"[cyan]{s.start_line}-{s.end_line}[/] {s.explanation}{concepts}")
    console.print(tree)

    if report.dependencies:
        console.print(f"[bold]Dependencies:[/] {escape(', '.join(report.dependencies))}")
    if report.related_files:
        console.print(f"[bold]Related files:[/] {escape(', '.join(report.related_files))}")


def _print_history(report: GitInsightReport) -> None:
    table = Table(title="Commits", show_header=True)
    table.add_column("Hash", style="dim")
    table.add_column("Date")
    table.add_column("Author")
    table.add_column("Summary")
    for c in report.commits:
        table.add_row(c.hash[:8], c.date[:10], escape(c.author), escape(c.summary))
    console.print(table)

    if report.patterns:
        console.print()
        console.print("[bold]Patterns:[/]")
        for p in report.patterns:
            console.print(f"  - {escape(p)}")
    if report.recommendations:
        console.print()
        console.print("[bold]Recommendations:[/]")
        for r in report.recommendations:
            console.print(f"  - [yellow]{r}[/]")


if __name__ == "__main__":
    cli()
