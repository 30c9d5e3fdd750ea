"""Tools exposed by the MCP server.

Every tool is a ``Tool`` subclass: a name, a description, a parameter schema
and ``invoke(arguments)``. ``invoke`` returns either a string, sent to the
caller verbatim, or a JSON-serialisable value, which the dispatcher encodes.
Failures are raised as ``ToolError`` and surface as "Tool execution failed".
"""

from __future__ import annotations

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from mitchai_core.detector import find_source_files, structure_report
from mitchai_core.languages import DEFAULT_LANGUAGE, detect_language_from_extension
from mitchai_mcp.analysis import complexity_metrics, detailed_complexity, detect_smells, language_metrics

logger = logging.getLogger(__name__)

DEFAULT_RUBY_EXCLUDES = ["vendor/", "tmp/", ".git/"]
DEFAULT_DIFF_RANGE = "HEAD~1..HEAD"
_GIT_TIMEOUT = 30


class ToolError(Exception):
    """A tool could not produce a result. The message is shown to the caller."""


class InvalidArgumentsError(ToolError):
    """The arguments passed to a tool do not match its schema."""


class Tool(ABC):
    name: str = ""
    description: str = ""
    # Property name -> JSON schema fragment.
    parameters: dict = {}
    required: tuple[str, ...] = ()

    def descriptor(self) -> dict:
        """Serializable description of the tool. The handler itself is never included."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": self.parameters,
                "required": list(self.required),
            },
        }

    def __call__(self, arguments: dict):
        for key in self.required:
            if arguments.get(key) is None:
                raise InvalidArgumentsError(f"missing required argument '{key}'")
        return self.invoke(arguments)

    @abstractmethod
    def invoke(self, arguments: dict):
        """Run the tool. Raise ToolError on failure."""


def _string_arg(arguments: dict, key: str, default: str | None = None) -> str | None:
    value = arguments.get(key, default)
    if value is not None and not isinstance(value, str):
        raise InvalidArgumentsError(f"'{key}' must be a string")
    return value


def _string_list_arg(arguments: dict, key: str) -> list[str] | None:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidArgumentsError(f"'{key}' must be an array of strings")
    return value


def _read_text(path: str) -> str:
    if not os.path.exists(path):
        raise ToolError(f"File not found: {path}")
    if not os.path.isfile(path) or not os.access(path, os.R_OK):
        raise ToolError(f"File not readable: {path}")
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as e:
        raise ToolError(f"File not readable: {path}") from e


def _resolve_language(path: str, language: str | None) -> str:
    return language or detect_language_from_extension(path)


# ---------------------------------------------------------------------------
# Filesystem and git
# ---------------------------------------------------------------------------


class ReadFileTool(Tool):
    name = "read_file"
    description = "Read contents of a file"
    parameters = {"path": {"type": "string", "description": "File path to read"}}
    required = ("path",)

    def invoke(self, arguments: dict) -> str:
        return _read_text(_string_arg(arguments, "path"))


class FindRubyFilesTool(Tool):
    name = "find_ruby_files"
    description = "Find all Ruby files in project"
    parameters = {
        "path": {"type": "string", "description": "Project root path"},
        "exclude_patterns": {"type": "array", "items": {"type": "string"}, "description": "Patterns to exclude"},
    }
    required = ("path",)

    def invoke(self, arguments: dict) -> list[str]:
        path = _string_arg(arguments, "path")
        excludes = _string_list_arg(arguments, "exclude_patterns")
        if excludes is None:
            excludes = DEFAULT_RUBY_EXCLUDES
        root = Path(path)
        if not root.is_dir():
            raise ToolError(f"Directory not found: {path}")
        files = []
        for file in root.rglob("*.rb"):
            relative = file.relative_to(root).as_posix()
            if any(pattern in relative for pattern in excludes):
                continue
            files.append(str(file))
        return sorted(files)


class GitDiffTool(Tool):
    name = "git_diff"
    description = "Get git diff for specified range"
    parameters = {"range": {"type": "string", "description": "Git commit range (default HEAD~1..HEAD)"}}

    def __init__(self, working_dir: str | os.PathLike | None = None):
        # None means the server's working directory at call time.
        self.working_dir = working_dir

    def invoke(self, arguments: dict) -> str:
        diff_range = _string_arg(arguments, "range") or DEFAULT_DIFF_RANGE
        if diff_range.startswith("-"):
            raise InvalidArgumentsError("'range' must be a revision range, not an option")
        cwd = Path(self.working_dir or os.getcwd())
        if not (cwd / ".git").exists():
            raise ToolError("Not a git repository")
        try:
            completed = subprocess.run(
                ["git", "diff", diff_range],
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=_GIT_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ToolError(f"git diff failed: {e}") from e
        if completed.returncode != 0:
            raise ToolError(f"git diff failed: {completed.stderr.strip()}")
        return completed.stdout


# ---------------------------------------------------------------------------
# Code metrics
# ---------------------------------------------------------------------------


class AnalyzeComplexityTool(Tool):
    name = "analyze_complexity"
    description = "Analyze code complexity metrics"
    parameters = {
        "path": {"type": "string", "description": "File path to analyze"},
        "language": {"type": "string", "description": "Language override (default: from file extension)"},
    }
    required = ("path",)

    def invoke(self, arguments: dict) -> dict:
        path = _string_arg(arguments, "path")
        if not os.path.exists(path):
            raise ToolError(f"File not found: {path}")
        language = _resolve_language(path, _string_arg(arguments, "language"))
        return complexity_metrics(_read_text(path), language)


class DetectCodeSmellsTool(Tool):
    name = "detect_code_smells"
    description = "Detect common code smells in source code"
    parameters = {
        "content": {"type": "string", "description": "Source code to analyze"},
        "language": {"type": "string", "description": "Language of the content (default: ruby)"},
    }
    required = ("content",)

    def invoke(self, arguments: dict) -> list[str]:
        content = _string_arg(arguments, "content")
        language = _string_arg(arguments, "language") or DEFAULT_LANGUAGE
        return detect_smells(content, language)


# ---------------------------------------------------------------------------
# Project analysis
# ---------------------------------------------------------------------------


class AnalyzeProjectStructureTool(Tool):
    name = "analyze_project_structure"
    description = "Analyze entire project structure and recommend optimal model"
    parameters = {"path": {"type": "string", "description": "Project root path (default: .)"}}

    def invoke(self, arguments: dict) -> dict:
        return structure_report(_string_arg(arguments, "path") or ".")


class FindAllSourceFilesTool(Tool):
    name = "find_all_source_files"
    description = "Find all source files grouped by language"
    parameters = {
        "path": {"type": "string", "description": "Project root path (default: .)"},
        "languages": {"type": "array", "items": {"type": "string"}, "description": "Languages to include"},
    }

    def invoke(self, arguments: dict) -> dict[str, list[str]]:
        path = _string_arg(arguments, "path") or "."
        languages = _string_list_arg(arguments, "languages")
        return find_source_files(path, languages or None)


class AnalyzeFileWithLanguageTool(Tool):
    name = "analyze_file_with_language"
    description = "Analyze a file with language-specific rules"
    parameters = {
        "path": {"type": "string", "description": "File path to analyze"},
        "language": {"type": "string", "description": "Language override (default: from file extension)"},
    }
    required = ("path",)

    def invoke(self, arguments: dict) -> dict:
        path = _string_arg(arguments, "path")
        content = _read_text(path)
        language = _resolve_language(path, _string_arg(arguments, "language"))
        return {
            "file": path,
            "language": language,
            "complexity": detailed_complexity(content, language),
            "smells": detect_smells(content, language),
            "metrics": language_metrics(content, language),
        }


class AnalyzeMultipleFilesTool(Tool):
    name = "analyze_multiple_files"
    description = "Analyze multiple files efficiently"
    parameters = {
        "files": {"type": "array", "items": {"type": "string"}, "description": "File paths to analyze"},
        "language": {"type": "string", "description": "Language for every file (default: per file extension)"},
    }
    required = ("files",)

    def invoke(self, arguments: dict) -> dict[str, dict]:
        files = _string_list_arg(arguments, "files")
        target_language = _string_arg(arguments, "language")
        results = {}
        for path in files:
            try:
                content = _read_text(path)
            except ToolError as e:
                logger.debug("Skipping %s: %s", path, e)
                continue
            language = _resolve_language(path, target_language)
            results[path] = {
                "language": language,
                "complexity": detailed_complexity(content, language),
                "smells": detect_smells(content, language),
                "size": len(content),
            }
        return results


def default_tools(working_dir: str | os.PathLike | None = None) -> list[Tool]:
    """The standard tool set, in registration order."""
    return [
        ReadFileTool(),
        FindRubyFilesTool(),
        GitDiffTool(working_dir),
        AnalyzeComplexityTool(),
        DetectCodeSmellsTool(),
        AnalyzeProjectStructureTool(),
        FindAllSourceFilesTool(),
        AnalyzeFileWithLanguageTool(),
        AnalyzeMultipleFilesTool(),
    ]
