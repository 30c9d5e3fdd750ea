"""Tests for the individual MCP tools."""

import json
import os
import subprocess

import pytest

from mitchai_mcp.tools import (
    AnalyzeComplexityTool,
    AnalyzeFileWithLanguageTool,
    AnalyzeMultipleFilesTool,
    AnalyzeProjectStructureTool,
    DetectCodeSmellsTool,
    FindAllSourceFilesTool,
    FindRubyFilesTool,
    GitDiffTool,
    InvalidArgumentsError,
    ReadFileTool,
    ToolError,
    default_tools,
)


@pytest.fixture
def ruby_project(tmp_path):
    (tmp_path / "Gemfile").write_text("source 'https://rubygems.org'\n")
    for relative in ("app/models/user.rb", "lib/tasks.rb", "vendor/gems/dep.rb", "tmp/cache.rb"):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("class X\nend\n")
    return tmp_path


# ---------------------------------------------------------------------------
# Registry and schema
# ---------------------------------------------------------------------------


def test_default_tool_names_in_registration_order():
    assert [tool.name for tool in default_tools()] == [
        "read_file",
        "find_ruby_files",
        "git_diff",
        "analyze_complexity",
        "detect_code_smells",
        "analyze_project_structure",
        "find_all_source_files",
        "analyze_file_with_language",
        "analyze_multiple_files",
    ]


def test_descriptor_is_serializable():
    descriptor = ReadFileTool().descriptor()
    assert descriptor == {
        "name": "read_file",
        "description": "Read contents of a file",
        "inputSchema": {
            "type": "object",
            "properties": {"path": {"type": "string", "description": "File path to read"}},
            "required": ["path"],
        },
    }
    json.dumps(descriptor)


def test_missing_required_argument():
    with pytest.raises(InvalidArgumentsError, match="missing required argument 'path'"):
        ReadFileTool()({})


def test_wrong_argument_type():
    with pytest.raises(InvalidArgumentsError, match="'path' must be a string"):
        ReadFileTool()({"path": 42})


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


class TestReadFile:
    def test_reads_contents(self, tmp_path):
        path = tmp_path / "a.rb"
        path.write_text("puts 'hi'\n")
        assert ReadFileTool()({"path": str(path)}) == "puts 'hi'\n"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ToolError, match="File not found"):
            ReadFileTool()({"path": str(tmp_path / "nope.rb")})

    def test_directory_is_not_readable(self, tmp_path):
        with pytest.raises(ToolError, match="File not readable"):
            ReadFileTool()({"path": str(tmp_path)})


class TestFindRubyFiles:
    def test_default_excludes(self, ruby_project):
        files = FindRubyFilesTool()({"path": str(ruby_project)})
        assert files == sorted([str(ruby_project / "app/models/user.rb"), str(ruby_project / "lib/tasks.rb")])

    def test_custom_excludes_replace_defaults(self, ruby_project):
        files = FindRubyFilesTool()({"path": str(ruby_project), "exclude_patterns": ["app/"]})
        assert str(ruby_project / "vendor/gems/dep.rb") in files
        assert str(ruby_project / "app/models/user.rb") not in files

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ToolError, match="Directory not found"):
            FindRubyFilesTool()({"path": str(tmp_path / "nowhere")})


class TestGitDiff:
    def test_not_a_repository(self, tmp_path):
        with pytest.raises(ToolError, match="Not a git repository"):
            GitDiffTool(tmp_path)({})

    def test_option_like_range_rejected(self, tmp_path):
        (tmp_path / ".git").mkdir()
        with pytest.raises(InvalidArgumentsError):
            GitDiffTool(tmp_path)({"range": "--output=/tmp/x"})

    def test_runs_git_diff_with_default_range(self, tmp_path, mocker):
        (tmp_path / ".git").mkdir()
        run = mocker.patch(
            "mitchai_mcp.tools.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout="diff --git a/x b/x\n", stderr=""),
        )

        assert GitDiffTool(tmp_path)({}) == "diff --git a/x b/x\n"
        args, kwargs = run.call_args
        assert args[0] == ["git", "diff", "HEAD~1..HEAD"]
        assert kwargs["cwd"] == tmp_path

    def test_git_failure_raises(self, tmp_path, mocker):
        (tmp_path / ".git").mkdir()
        mocker.patch(
            "mitchai_mcp.tools.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=128, stdout="", stderr="bad revision 'x'\n"),
        )
        with pytest.raises(ToolError, match="bad revision"):
            GitDiffTool(tmp_path)({"range": "x"})


# ---------------------------------------------------------------------------
# Metrics and analysis
# ---------------------------------------------------------------------------


def test_analyze_complexity_uses_extension(tmp_path):
    path = tmp_path / "app.py"
    path.write_text("import os\n\ndef run():\n    pass\n")
    metrics = AnalyzeComplexityTool()({"path": str(path)})
    assert metrics["language"] == "python"
    assert metrics["methods"] == 1


def test_analyze_complexity_missing_file(tmp_path):
    with pytest.raises(ToolError, match="File not found"):
        AnalyzeComplexityTool()({"path": str(tmp_path / "gone.rb")})


def test_detect_code_smells_defaults_to_ruby():
    smells = DetectCodeSmellsTool()({"content": "def create(a, b, c, d, e, f)\nend\n"})
    assert smells == ["Long parameter list: create (6 parameters)"]


def test_analyze_file_with_language(tmp_path):
    path = tmp_path / "script.js"
    path.write_text("var x = 1;\n")
    result = AnalyzeFileWithLanguageTool()({"path": str(path)})
    assert result["file"] == str(path)
    assert result["language"] == "javascript"
    assert "Uses var instead of let/const" in result["smells"]
    assert result["metrics"]["framework"] == "vanilla"
    assert result["complexity"]["code_lines"] == 1


def test_analyze_multiple_files_skips_missing(tmp_path):
    present = tmp_path / "a.rb"
    present.write_text("puts 1\n")
    result = AnalyzeMultipleFilesTool()({"files": [str(present), str(tmp_path / "missing.rb")]})
    assert list(result) == [str(present)]
    assert result[str(present)]["language"] == "ruby"
    assert result[str(present)]["size"] == 7


def test_analyze_project_structure(ruby_project):
    report = AnalyzeProjectStructureTool()({"path": str(ruby_project)})
    assert report["primary_language"] == "ruby"
    assert report["recommended_model"] == "codegemma:2b"


def test_find_all_source_files(ruby_project):
    files = FindAllSourceFilesTool()({"path": str(ruby_project), "languages": ["ruby"]})
    # vendor/ and tmp/ are never walked.
    assert sorted(files["ruby"]) == sorted([str(ruby_project / "app/models/user.rb"), str(ruby_project / "lib/tasks.rb")])


def test_find_all_source_files_rejects_bad_languages(tmp_path):
    with pytest.raises(InvalidArgumentsError):
        FindAllSourceFilesTool()({"path": str(tmp_path), "languages": "ruby"})


def test_repeated_reads_and_metrics_are_stable(tmp_path):
    path = tmp_path / "cart.rb"
    path.write_text("class Cart\n  def total\n    1\n  end\nend\n")
    read, complexity = ReadFileTool(), AnalyzeComplexityTool()
    assert read({"path": str(path)}) == read({"path": str(path)})
    assert complexity({"path": str(path)}) == complexity({"path": str(path)})


def test_analyze_multiple_files_skips_unreadable(tmp_path, mocker):
    readable = tmp_path / "a.rb"
    readable.write_text("puts 1\n")
    locked = tmp_path / "b.rb"
    locked.write_text("puts 2\n")
    real_access = os.access
    mocker.patch("mitchai_mcp.tools.os.access", side_effect=lambda path, mode: path != str(locked) and real_access(path, mode))

    result = AnalyzeMultipleFilesTool()({"files": [str(locked), str(readable)]})
    assert list(result) == [str(readable)]
