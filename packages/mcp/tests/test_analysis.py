"""Tests for the line-pattern metrics and smell heuristics."""

import pytest

from mitchai_mcp.analysis import (
    complexity_metrics,
    detailed_complexity,
    detect_smells,
    find_definitions,
    language_metrics,
    split_parameters,
)


def _ruby_method(name, body_lines, params=""):
    body = "".join(f"  x{i} = {i}\n" for i in range(body_lines))
    return f"def {name}{params}\n{body}end\n"


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class TestRubyDefinitions:
    def test_length_spans_def_through_end(self):
        (definition,) = find_definitions(_ruby_method("big", 22), "ruby")
        assert definition.name == "big"
        assert definition.line == 1
        assert definition.length == 24

    def test_parameters_with_parens(self):
        (definition,) = find_definitions("def create(a, b = {}, *rest, &blk)\nend\n", "ruby")
        assert definition.parameters == ["a", "b = {}", "*rest", "&blk"]

    def test_parameters_without_parens(self):
        (definition,) = find_definitions("def create a, b, c\nend\n", "ruby")
        assert definition.parameters == ["a", "b", "c"]

    def test_endless_method_is_one_line(self):
        (definition,) = find_definitions("def answer = 42\n", "ruby")
        assert definition.length == 1
        assert definition.parameters == []

    def test_nested_methods_use_matching_indent(self):
        source = "class Cart\n  def total\n    1\n  end\n\n  def empty?\n    true\n  end\nend\n"
        definitions = find_definitions(source, "ruby")
        assert [(d.name, d.line, d.length) for d in definitions] == [("total", 2, 3), ("empty?", 6, 3)]


class TestOtherDefinitions:
    def test_python_length_by_indentation(self):
        source = "def f(a, b):\n    x = 1\n\n    return x\n\nprint(f)\n"
        (definition,) = find_definitions(source, "python")
        assert (definition.name, definition.length, definition.parameters) == ("f", 4, ["a", "b"])

    def test_python_ignores_self_and_cls(self):
        source = "class A:\n    def m(self, a):\n        pass\n\n    @classmethod\n    def c(cls, b: int = 1):\n        pass\n"
        assert [d.parameters for d in find_definitions(source, "python")] == [["a"], ["b: int = 1"]]

    def test_javascript_function_and_arrow(self):
        source = "function add(a, b) {\n  return a + b;\n}\nconst double = (x) => x * 2;\n"
        definitions = find_definitions(source, "javascript")
        assert [(d.name, d.length) for d in definitions] == [("add", 3), ("double", 1)]

    def test_javascript_control_flow_is_not_a_definition(self):
        assert find_definitions("if (ready) {\n  go();\n}\n", "javascript") == []

    def test_go_method_with_receiver(self):
        source = "func (s *Server) Start(a, b int) error {\n\treturn nil\n}\n"
        (definition,) = find_definitions(source, "go")
        assert (definition.name, definition.parameters, definition.length) == ("Start", ["a", "b int"], 3)

    def test_java_method(self):
        source = "public class A {\n  public int add(int a, int b) {\n    return a + b;\n  }\n}\n"
        (definition,) = find_definitions(source, "java")
        assert (definition.name, definition.line, definition.length) == ("add", 2, 3)

    def test_unsupported_language_has_no_definitions(self):
        assert find_definitions("a { color: red; }", "css") == []


@pytest.mark.parametrize(
    "text, expected",
    [
        ("a, b: Dict[str, int], c=(1, 2)", ["a", "b: Dict[str, int]", "c=(1, 2)"]),
        ("self, x", ["x"]),
        ("&self, other: &Self", ["other: &Self"]),
        ("", []),
    ],
)
def test_split_parameters(text, expected):
    assert split_parameters(text) == expected


# ---------------------------------------------------------------------------
# Smells
# ---------------------------------------------------------------------------


class TestDefinitionSmells:
    def test_long_ruby_method(self):
        assert detect_smells(_ruby_method("big", 22), "ruby") == ["Long method detected: big (24 lines)"]

    def test_ruby_method_at_limit_is_fine(self):
        assert detect_smells(_ruby_method("ok", 18), "ruby") == []

    def test_long_parameter_list(self):
        smells = detect_smells("def create(a, b, c, d, e, f)\nend\n", "ruby")
        assert smells == ["Long parameter list: create (6 parameters)"]

    def test_four_parameters_is_fine(self):
        assert detect_smells("def create(a, b, c, d)\nend\n", "ruby") == []

    def test_long_python_function_uses_higher_limit(self):
        source = "def f():\n" + "    x = 1\n" * 26
        assert detect_smells(source, "python") == ["Long function detected: f (27 lines)"]
        assert detect_smells("def f():\n" + "    x = 1\n" * 24, "python") == []

    def test_long_javascript_function(self):
        source = "function big(a) {\n" + "  step();\n" * 30 + "}\n"
        assert detect_smells(source, "javascript") == ["Long function detected: big (32 lines)"]


class TestLanguageSmells:
    def test_ruby_rescue(self):
        source = "begin\n  go\nrescue\n  nil\nend\nbegin\n  go\nrescue Exception => e\nend\n"
        assert detect_smells(source, "ruby") == [
            "Bare rescue clause (rescues StandardError implicitly)",
            "Rescuing Exception (catches signals and exits)",
        ]

    def test_python(self):
        source = "from os import *\ntry:\n    pass\nexcept:\n    print('x')\n"
        assert detect_smells(source, "python") == [
            "Star imports detected",
            "Bare except clause",
            "Print statements (consider logging)",
        ]

    def test_javascript(self):
        source = "var x = 1;\nif (x == 2) { console.log(x); }\n"
        assert detect_smells(source, "javascript") == [
            "Uses var instead of let/const",
            "Loose equality (==) detected",
            "Console.log statements",
        ]

    def test_clean_javascript(self):
        assert detect_smells("const add = (a, b) => a + b;\nif (a === b) {}\n", "javascript") == []

    def test_go_unchecked_error(self):
        source = "func main() {\n\tval, err := run()\n\tuse(val)\n}\n"
        assert detect_smells(source, "go") == ["Missing error handling (err assigned but never checked)"]

    def test_rust(self):
        source = "fn main() {\n    let v = parse().unwrap();\n    let w = v.clone().clone().clone().clone();\n}\n"
        assert detect_smells(source, "rust") == ["Unwrap() calls detected", "Clone() overuse"]

    def test_css(self):
        assert detect_smells(".a { color: red !important; }\n.b {}\n", "css") == [
            "Important declarations (!important)",
            "Empty rules",
        ]

    def test_unsupported_language(self):
        assert detect_smells("IDENTIFICATION DIVISION.", "cobol") == ["Language cobol analysis not yet implemented"]

    def test_supported_language_without_heuristics(self):
        assert detect_smells("<p>hi</p>", "html") == []


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


def test_ruby_complexity_metrics():
    source = "# comment\nmodule Shop\n  class Cart\n\n    def total\n      1\n    end\n  end\nend\n"
    assert complexity_metrics(source, "ruby") == {
        "language": "ruby",
        "lines_of_code": 9,
        "blank_lines": 1,
        "comment_lines": 1,
        "methods": 1,
        "classes": 1,
        "modules": 1,
    }


def test_detailed_python_complexity():
    source = "import os\nfrom x import y\n\nasync def run():\n    pass\n"
    metrics = detailed_complexity(source, "python")
    assert metrics["code_lines"] == 4
    assert metrics["imports"] == 2
    assert metrics["async_functions"] == 1
    assert metrics["methods"] == 1
    assert metrics["file_size"] == len(source)


def test_javascript_comment_prefixes():
    source = "// one\n/* two\n * three\n */\nlet a = 1;\n"
    assert complexity_metrics(source, "javascript")["comment_lines"] == 4


class TestLanguageMetrics:
    def test_python(self):
        source = "from fastapi import FastAPI\n\n@app.get('/')\nasync def root() -> dict:\n    return {}\n"
        assert language_metrics(source, "python") == {
            "framework_detected": "fastapi",
            "async_code": True,
            "type_hints": True,
        }

    def test_ruby(self):
        metrics = language_metrics("class UsersController < ApplicationController\nend\n", "ruby")
        assert metrics == {"rails_detected": True, "test_framework": "unknown"}

    def test_ruby_rspec(self):
        assert language_metrics("describe User do\n  it 'works' do\n  end\nend\n", "ruby")["test_framework"] == "rspec"

    def test_javascript(self):
        metrics = language_metrics("import React from 'react';\n", "javascript")
        assert metrics == {"framework": "react", "es_modules": True, "typescript": False}

    def test_other_language_has_no_hints(self):
        assert language_metrics("fn main() {}", "rust") == {}
