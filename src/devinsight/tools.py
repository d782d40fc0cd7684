"""Tool registry: named entry points with validated JSON arguments.

Both the HTTP server and ``devinsight call`` dispatch through here, so
argument names and defaults match the tool-invocation wire format.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .analyzer import analyze_code
from .bugs import find_bug
from .errors import ToolError
from .explainer import explain_code
from .history import DEFAULT_MAX_RESULTS, analyze_history
from .logging_config import get_logger

logger = get_logger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class ToolParam:
    name: str
    type: str  # string | boolean | number | array
    description: str
    required: bool = False
    default: Any = _MISSING
    minimum: int | None = None

    def schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.type == "array":
            schema["items"] = {"type": "string"}
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        return schema


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    params: tuple[ToolParam, ...]
    handler: Callable[[dict[str, Any]], dict[str, Any]]

    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {p.name: p.schema() for p in self.params},
            "required": [p.name for p in self.params if p.required],
        }

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema()}

    def bind(self, arguments: Mapping[str, Any] | None) -> dict[str, Any]:
        """Validate ``arguments`` and fill in defaults."""
        arguments = dict(arguments or {})
        unknown = set(arguments) - {p.name for p in self.params}
        if unknown:
            raise ToolError(f"Unknown argument(s) for {self.name}: {', '.join(sorted(unknown))}")

        bound: dict[str, Any] = {}
        for param in self.params:
            value = arguments.get(param.name)
            if value is None:
                if param.required:
                    raise ToolError(f"Missing required argument for {self.name}: {param.name}")
                if param.default is not _MISSING:
                    bound[param.name] = param.default
                continue
            bound[param.name] = _coerce(self.name, param, value)
        return bound


def _coerce(tool: str, param: ToolParam, value: Any) -> Any:
    ok = {
        "string": lambda v: isinstance(v, str),
        "boolean": lambda v: isinstance(v, bool),
        "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
        "array": lambda v: isinstance(v, list) and all(isinstance(i, str) for i in v),
    }[param.type]
    if not ok(value):
        raise ToolError(f"Argument {param.name} of {tool} must be of type {param.type}")
    if param.type == "number":
        if param.minimum is not None and value < param.minimum:
            raise ToolError(f"Argument {param.name} of {tool} must be at least {param.minimum}")
        return int(value)
    return value


def _run_analyze_code(args: dict[str, Any]) -> dict[str, Any]:
    return analyze_code(
        args["filePath"],
        include_metrics=args["includeMetrics"],
        include_security=args["includeSecurityCheck"],
    ).to_dict()


def _run_find_bug(args: dict[str, Any]) -> dict[str, Any]:
    return find_bug(args["traceback"], args.get("contextFiles", [])).to_dict()


def _run_explain_code(args: dict[str, Any]) -> dict[str, Any]:
    return explain_code(args["filePath"], args.get("startLine"), args.get("endLine")).to_dict()


def _run_git_history(args: dict[str, Any]) -> dict[str, Any]:
    return analyze_history(
        args["query"],
        max_results=args["maxResults"],
        include_files=args["includeFiles"],
        repo=args["repoPath"],
    ).to_dict()


TOOLS: dict[str, Tool] = {
    tool.name: tool
    for tool in (
        Tool(
            "analyzeCode",
            "Analyze code quality, complexity, and potential issues in a file",
            (
                ToolParam("filePath", "string", "Path to the file to analyze", required=True),
                ToolParam("includeMetrics", "boolean", "Include code metrics", default=True),
                ToolParam("includeSecurityCheck", "boolean", "Include security analysis", default=False),
            ),
            _run_analyze_code,
        ),
        Tool(
            "findBug",
            "Analyze error traceback and suggest fixes",
            (
                ToolParam("traceback", "string", "Error traceback or error message", required=True),
                ToolParam("contextFiles", "array", "Related files for context"),
            ),
            _run_find_bug,
        ),
        Tool(
            "explainCode",
            "Provide detailed explanation of code functionality",
            (
                ToolParam("filePath", "string", "Path to the file to explain", required=True),
                ToolParam("startLine", "number", "Start line (optional)", minimum=1),
                ToolParam("endLine", "number", "End line (optional)", minimum=1),
            ),
            _run_explain_code,
        ),
        Tool(
            "gitHistory",
            "Analyze git history and provide insights",
            (
                ToolParam("query", "string", "Search query for git history", required=True),
                ToolParam("maxResults", "number", "Maximum number of results", default=DEFAULT_MAX_RESULTS, minimum=1),
                ToolParam("includeFiles", "boolean", "Include changed files", default=True),
                ToolParam("repoPath", "string", "Repository to search", default="."),
            ),
            _run_git_history,
        ),
    )
}


def list_tools() -> list[dict[str, Any]]:
    return [t.to_dict() for t in TOOLS.values()]


def call_tool(name: str, arguments: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Validate arguments and run the named tool, returning its report dict."""
    tool = TOOLS.get(name)
    if tool is None:
        raise ToolError(f"Unknown tool: {name}")
    bound = tool.bind(arguments)
    logger.info("Executing tool: %s", name)
    try:
        return tool.handler(bound)
    except Exception:
        logger.error("Tool execution failed: %s", name)
        raise
