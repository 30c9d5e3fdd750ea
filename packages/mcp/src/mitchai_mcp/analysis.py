"""Line-pattern code metrics and smell heuristics.

Nothing here parses code. Definitions are found with per-language regular
expressions and their extent is estimated from ``end`` keywords (Ruby),
indentation (Python) or brace balance (everything else). Braces inside strings
and comments will confuse the estimate; the results are hints for a reviewer,
not facts about the program.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from mitchai_core.languages import LANGUAGE_PATTERNS

# Tunable heuristics.
LONG_METHOD_LINES = {"ruby": 20}
DEFAULT_LONG_METHOD_LINES = 25
MAX_PARAMETERS = 4
CLONE_OVERUSE = 3

_KEYWORDS = frozenset(
    {"if", "else", "for", "while", "switch", "catch", "return", "function", "new", "sizeof", "do", "try", "with"}
)

# Patterns for brace and paren languages end just after the opening "(" of the parameter list.
_DEFINITIONS = {
    "ruby": re.compile(r"^(?P<indent>[ \t]*)def[ \t]+(?:self\.)?(?P<name>[\w?!=\[\]<>+\-*/%]+)", re.M),
    "python": re.compile(r"^(?P<indent>[ \t]*)(?:async[ \t]+)?def[ \t]+(?P<name>\w+)[ \t]*\(", re.M),
    "javascript": re.compile(
        r"(?:\bfunction\b[ \t]*\*?[ \t]*(?P<name>[\w$]*)[ \t]*\("
        r"|\b(?P<arrow>[A-Za-z_$][\w$]*)[ \t]*=[ \t]*(?:async[ \t]*)?\((?=[^)]*\)[ \t]*=>)"
        r"|^[ \t]*(?:(?:async|static|get|set)[ \t]+)*(?P<method>[A-Za-z_$][\w$]*)[ \t]*\((?=[^)]*\)[ \t]*\{))",
        re.M,
    ),
    "typescript": re.compile(
        r"(?:\bfunction\b[ \t]*\*?[ \t]*(?P<name>[\w$]*)[ \t]*(?:<[^>(]*>)?[ \t]*\("
        r"|\b(?P<arrow>[A-Za-z_$][\w$]*)[ \t]*(?::[^=\n]+)?=[ \t]*(?:async[ \t]*)?\((?=[^)]*\)[ \t]*(?::[^=\n]+)?=>)"
        r"|^[ \t]*(?:(?:public|private|protected|readonly|async|static|get|set)[ \t]+)*"
        r"(?P<method>[A-Za-z_$][\w$]*)[ \t]*(?:<[^>(]*>)?[ \t]*\((?=[^)]*\)[ \t]*(?::[^{;\n]+)?\{))",
        re.M,
    ),
    "go": re.compile(r"^func[ \t]*(?:\([^)]*\)[ \t]*)?(?P<name>\w+)[ \t]*(?:\[[^\]]*\])?\(", re.M),
    "rust": re.compile(
        r"^[ \t]*(?:pub(?:\([^)]*\))?[ \t]+)?(?:const[ \t]+)?(?:async[ \t]+)?(?:unsafe[ \t]+)?"
        r"(?:extern[ \t]+\"[^\"]*\"[ \t]+)?fn[ \t]+(?P<name>\w+)[ \t]*(?:<[^>{]*>)?[ \t]*\(",
        re.M,
    ),
    "java": re.compile(
        r"^[ \t]*(?:(?:public|private|protected|static|final|abstract|synchronized|native|default)[ \t]+)*"
        r"(?:<[^>]+>[ \t]+)?[\w<>\[\],.?]+[ \t]+(?P<name>\w+)[ \t]*\((?=[^;{]*\)[ \t]*(?:throws[ \t]+[\w.,\s]+)?\{)",
        re.M,
    ),
    "cpp": re.compile(
        r"^[ \t]*(?:[\w:<>,*&~]+[ \t]+)+[*&]*(?P<name>[\w:~]+)[ \t]*\("
        r"(?=[^;{]*\)[ \t]*(?:const[ \t]*)?(?:noexcept[ \t]*)?(?:override[ \t]*)?\{)",
        re.M,
    ),
}

_IGNORED_PARAMETERS = frozenset({"self", "cls", "&self", "&mut self", "mut self", "*", "/"})

_OPENERS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}


@dataclass
class Definition:
    name: str
    line: int  # 1-based line of the definition keyword
    length: int  # lines spanned, signature through closing line
    parameters: list[str]


# ---------------------------------------------------------------------------
# Complexity
# ---------------------------------------------------------------------------

# language -> (class-like pattern, module/namespace pattern)
_STRUCTURE = {
    "ruby": (r"^\s*class\s+", r"^\s*module\s+"),
    "python": (r"^\s*class\s+", None),
    "javascript": (r"^\s*(?:export\s+)?(?:default\s+)?class\s+", None),
    "typescript": (
        r"^\s*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?(?:class|interface)\s+",
        r"^\s*(?:export\s+)?(?:namespace|module)\s+\w+",
    ),
    "go": (r"^\s*type\s+\w+\s+(?:struct|interface)\b", r"^\s*package\s+"),
    "rust": (r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:struct|enum|trait)\s+", r"^\s*(?:pub\s+)?mod\s+"),
    "java": (r"^\s*(?:(?:public|private|protected|abstract|final|static)\s+)*(?:class|interface|enum|record)\s+", r"^\s*package\s+"),
    "cpp": (r"^\s*(?:class|struct)\s+\w+[^;]*$", r"^\s*namespace\s+"),
}

# Extra counters reported by the detailed analysis.
_EXTRAS = {
    "python": {"imports": r"^\s*(?:import|from)\s+", "async_functions": r"^\s*async\s+def\s+"},
    "javascript": {"imports": r"^\s*import\b|\brequire\("},
    "typescript": {"imports": r"^\s*import\b|\brequire\(", "interfaces": r"^\s*(?:export\s+)?interface\s+"},
    "go": {
        "structs": r"^\s*type\s+\w+\s+struct\b",
        "interfaces": r"^\s*type\s+\w+\s+interface\b",
        "imports": r"^\s*import\b",
    },
    "rust": {"structs": r"^\s*(?:pub\s+)?struct\s+", "enums": r"^\s*(?:pub\s+)?enum\s+", "traits": r"^\s*(?:pub\s+)?trait\s+"},
    "css": {"selectors": r"[^{}]+\{", "rules": r"[^{}]*\{[^{}]*\}", "media_queries": r"@media\b"},
    "cpp": {"includes": r"^\s*#\s*include\b"},
    "java": {"imports": r"^\s*import\s+"},
}


def _count(pattern: str | None, content: str) -> int:
    if not pattern:
        return 0
    return len(re.findall(pattern, content, re.M))


def _comment_lines(lines: list[str], language: str) -> int:
    pattern = LANGUAGE_PATTERNS.get(language)
    prefixes = pattern.comment_prefixes if pattern else ("#",)
    return sum(1 for line in lines if line.strip().startswith(prefixes))


def complexity_metrics(content: str, language: str) -> dict:
    """Counts by line pattern: lines, blanks, comments, definitions, classes, modules."""
    lines = content.splitlines()
    class_pattern, module_pattern = _STRUCTURE.get(language, (None, None))
    return {
        "language": language,
        "lines_of_code": len(lines),
        "blank_lines": sum(1 for line in lines if not line.strip()),
        "comment_lines": _comment_lines(lines, language),
        "methods": len(find_definitions(content, language)),
        "classes": _count(class_pattern, content),
        "modules": _count(module_pattern, content),
    }


def detailed_complexity(content: str, language: str) -> dict:
    metrics = complexity_metrics(content, language)
    metrics["code_lines"] = metrics["lines_of_code"] - metrics["blank_lines"]
    metrics["file_size"] = len(content.encode("utf-8"))
    for name, pattern in _EXTRAS.get(language, {}).items():
        metrics[name] = _count(pattern, content)
    return metrics


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


def _closing_index(content: str, open_index: int) -> int:
    """Index of the bracket matching the one at ``open_index``, or -1."""
    opener = content[open_index]
    closer = _OPENERS[opener]
    depth = 0
    for i in range(open_index, len(content)):
        char = content[i]
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return i
    return -1


def split_parameters(text: str) -> list[str]:
    """Split a parameter list on top-level commas, ignoring commas inside brackets."""
    parts: list[str] = []
    depth = 0
    current = []
    for char in text:
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth = max(0, depth - 1)
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    params = [" ".join(p.split()) for p in parts]
    return [p for p in params if p and p not in _IGNORED_PARAMETERS]


def _line_of(content: str, index: int) -> int:
    return content.count("\n", 0, index) + 1


def _ruby_definition(content: str, lines: list[str], match: re.Match) -> Definition:
    start = _line_of(content, match.start())
    rest = content[match.end() :]
    stripped = rest.lstrip(" \t")
    if stripped.startswith("("):
        open_index = match.end() + (len(rest) - len(stripped))
        close_index = _closing_index(content, open_index)
        params_text = content[open_index + 1 : close_index] if close_index != -1 else ""
        after = content[close_index + 1 :].split("\n", 1)[0] if close_index != -1 else ""
    else:
        line_rest = rest.split("\n", 1)[0]
        params_text = line_rest.split("#", 1)[0].split(";", 1)[0]
        if params_text.strip().startswith("="):
            params_text = ""
        after = line_rest
    params = split_parameters(params_text)

    # Endless and one-line definitions.
    if re.search(r"^\s*=|;\s*end\b", after):
        return Definition(match.group("name"), start, 1, params)

    indent = match.group("indent")
    end_pattern = re.compile(rf"^{re.escape(indent)}end\b")
    for index in range(start, len(lines)):
        if end_pattern.match(lines[index]):
            return Definition(match.group("name"), start, index - start + 2, params)
    return Definition(match.group("name"), start, len(lines) - start + 1, params)


def _python_definition(content: str, lines: list[str], match: re.Match) -> Definition:
    start = _line_of(content, match.start())
    open_index = match.end() - 1
    close_index = _closing_index(content, open_index)
    params = split_parameters(content[open_index + 1 : close_index] if close_index != -1 else "")
    # Strip annotations and defaults so "self: Foo" and "*args" compare cleanly.
    params = [p for p in params if p.split(":")[0].split("=")[0].strip() not in _IGNORED_PARAMETERS]

    signature_end = _line_of(content, close_index) if close_index != -1 else start
    indent = len(match.group("indent").expandtabs())
    last = signature_end
    for index in range(signature_end, len(lines)):
        line = lines[index]
        if not line.strip():
            continue
        if len(line) - len(line.lstrip()) <= indent:
            break
        last = index + 1
    return Definition(match.group("name"), start, last - start + 1, params)


def _brace_definition(content: str, match: re.Match, name: str) -> Definition | None:
    start = _line_of(content, match.start())
    open_index = match.end() - 1
    close_index = _closing_index(content, open_index)
    if close_index == -1:
        return None
    params = split_parameters(content[open_index + 1 : close_index])

    after = content[close_index + 1 :]
    body_match = re.match(r"[^;{]*?(\{|=>)", after, re.S)
    if body_match is None:
        return None
    if body_match.group(1) == "=>":
        arrow_end = close_index + 1 + body_match.end()
        rest = content[arrow_end:]
        if not rest.lstrip().startswith("{"):
            return Definition(name, start, _line_of(content, arrow_end) - start + 1, params)
        brace_index = arrow_end + (len(rest) - len(rest.lstrip()))
    else:
        brace_index = close_index + body_match.end()
    end_index = _closing_index(content, brace_index)
    if end_index == -1:
        end_index = len(content) - 1
    return Definition(name, start, _line_of(content, end_index) - start + 1, params)


def find_definitions(content: str, language: str) -> list[Definition]:
    """Function and method definitions in ``content``, in source order."""
    pattern = _DEFINITIONS.get(language)
    if pattern is None:
        return []
    lines = content.splitlines()
    definitions = []
    for match in pattern.finditer(content):
        if language == "ruby":
            definitions.append(_ruby_definition(content, lines, match))
        elif language == "python":
            definitions.append(_python_definition(content, lines, match))
        else:
            groups = match.groupdict()
            name = groups.get("name") or groups.get("arrow") or groups.get("method") or "<anonymous>"
            if name in _KEYWORDS:
                continue
            definition = _brace_definition(content, match, name)
            if definition is not None:
                definitions.append(definition)
    return definitions


# ---------------------------------------------------------------------------
# Smells
# ---------------------------------------------------------------------------


def _definition_smells(content: str, language: str) -> list[str]:
    smells = []
    limit = LONG_METHOD_LINES.get(language, DEFAULT_LONG_METHOD_LINES)
    kind = "method" if language == "ruby" else "function"
    for definition in find_definitions(content, language):
        if definition.length > limit:
            smells.append(f"Long {kind} detected: {definition.name} ({definition.length} lines)")
        if len(definition.parameters) > MAX_PARAMETERS:
            smells.append(f"Long parameter list: {definition.name} ({len(definition.parameters)} parameters)")
    return smells


def _ruby_smells(content: str) -> list[str]:
    smells = []
    if re.search(r"^\s*rescue\s*(?:#.*)?$", content, re.M):
        smells.append("Bare rescue clause (rescues StandardError implicitly)")
    if re.search(r"rescue\s+Exception\b", content):
        smells.append("Rescuing Exception (catches signals and exits)")
    return smells


def _python_smells(content: str) -> list[str]:
    smells = []
    if re.search(r"^\s*from\s+\S+\s+import\s+\*", content, re.M):
        smells.append("Star imports detected")
    if re.search(r"^\s*except\s*:", content, re.M):
        smells.append("Bare except clause")
    if re.search(r"(?<![\w.])print\s*\(", content):
        smells.append("Print statements (consider logging)")
    return smells


def _javascript_smells(content: str) -> list[str]:
    smells = []
    if re.search(r"\bvar\s+", content):
        smells.append("Uses var instead of let/const")
    if re.search(r"[^=!<>]==[^=]|!=[^=]", content):
        smells.append("Loose equality (==) detected")
    if "console.log" in content:
        smells.append("Console.log statements")
    return smells


def _go_smells(content: str) -> list[str]:
    smells = []
    if re.search(r"\berr\s*:?=", content) and "err != nil" not in content:
        smells.append("Missing error handling (err assigned but never checked)")
    if re.search(r"^\s*_\s*(?:,\s*_\s*)?=\s*\w+.*\(", content, re.M):
        smells.append("Discarded return value (possible ignored error)")
    return smells


def _rust_smells(content: str) -> list[str]:
    smells = []
    if ".unwrap()" in content:
        smells.append("Unwrap() calls detected")
    if ".expect(" in content:
        smells.append("Expect() calls detected")
    if "unsafe {" in content or re.search(r"\bunsafe\s+fn\b", content):
        smells.append("Unsafe blocks")
    if content.count(".clone()") > CLONE_OVERUSE:
        smells.append("Clone() overuse")
    return smells


def _css_smells(content: str) -> list[str]:
    smells = []
    if "!important" in content:
        smells.append("Important declarations (!important)")
    if re.search(r"-(?:webkit|moz|ms|o)-", content):
        smells.append("Vendor prefixes without autoprefixer")
    if re.search(r":\s*\d{3,}px", content):
        smells.append("Magic numbers in CSS")
    if re.search(r"[^{}]+\{\s*\}", content):
        smells.append("Empty rules")
    return smells


_LANGUAGE_SMELLS = {
    "ruby": _ruby_smells,
    "python": _python_smells,
    "javascript": _javascript_smells,
    "typescript": _javascript_smells,
    "go": _go_smells,
    "rust": _rust_smells,
    "css": _css_smells,
}


def detect_smells(content: str, language: str = "ruby") -> list[str]:
    """Heuristic code smells for ``content`` written in ``language``."""
    if language not in LANGUAGE_PATTERNS:
        return [f"Language {language} analysis not yet implemented"]
    smells = _definition_smells(content, language)
    check = _LANGUAGE_SMELLS.get(language)
    if check is not None:
        smells.extend(check(content))
    return smells


# ---------------------------------------------------------------------------
# Framework hints
# ---------------------------------------------------------------------------


def _ruby_test_framework(content: str) -> str:
    if re.search(r"\b(?:RSpec\.)?describe\b|^\s*it\s+['\"]", content, re.M):
        return "rspec"
    if re.search(r"Minitest|\bassert\w*\b|def test_", content):
        return "minitest"
    return "unknown"


def _python_framework(content: str) -> str:
    if "django" in content or "models.Model" in content:
        return "django"
    if "fastapi" in content.lower() or re.search(r"@\w+\.(?:get|post|put|delete)\(", content):
        return "fastapi"
    if "flask" in content.lower() or "@app.route" in content:
        return "flask"
    return "none"


def _javascript_framework(content: str) -> str:
    if "React" in content or re.search(r"from\s+['\"]react['\"]", content):
        return "react"
    if re.search(r"\bVue\b|from\s+['\"]vue['\"]", content):
        return "vue"
    if "@angular" in content or "@Component" in content:
        return "angular"
    if "require(" in content or "module.exports" in content:
        return "node"
    return "vanilla"


def language_metrics(content: str, language: str) -> dict:
    """Framework and feature hints for a file."""
    if language == "ruby":
        return {
            "rails_detected": "ActiveRecord" in content or "ApplicationController" in content,
            "test_framework": _ruby_test_framework(content),
        }
    if language == "python":
        return {
            "framework_detected": _python_framework(content),
            "async_code": "async def" in content or "await " in content,
            "type_hints": bool(re.search(r"\)\s*->\s*\S", content)),
        }
    if language in ("javascript", "typescript"):
        return {
            "framework": _javascript_framework(content),
            "es_modules": bool(re.search(r"^\s*(?:import|export)\b", content, re.M)),
            "typescript": language == "typescript",
        }
    return {}
