"""Language signal tables shared by the detector, the tool server and the prompts.

Each supported language is described by the evidence that points at it in a
project tree: file extensions (primary signal), marker files such as a
``Gemfile`` (strong signal) and conventional directories (moderate signal).
The tables are plain data so the MCP tools and the local fallback path read
exactly the same definitions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

# Returned whenever nothing in a project clears the detection threshold.
DEFAULT_LANGUAGE = "ruby"
UNKNOWN_LANGUAGE = "unknown"


@dataclass(frozen=True)
class LanguagePattern:
    """Detection signal set for a single language."""

    extensions: tuple[str, ...]
    files: tuple[str, ...] = ()
    directories: tuple[str, ...] = ()
    weight: float = 1.0
    # Comment prefixes used by the line-based metrics in the tool server.
    comment_prefixes: tuple[str, ...] = field(default=("#",))

    def __post_init__(self):
        if self.weight <= 0:
            raise ValueError(f"Language weight must be positive, got {self.weight}")
        object.__setattr__(self, "extensions", tuple(ext.lower() for ext in self.extensions))

    def matches(self, file_name: str) -> bool:
        name = file_name.lower()
        return any(name.endswith(ext) for ext in self.extensions)


LANGUAGE_PATTERNS: dict[str, LanguagePattern] = {
    "ruby": LanguagePattern(
        extensions=(".rb", ".rake", ".gemspec"),
        files=("Gemfile", "Rakefile", "config.ru", "Capfile"),
        directories=("app", "lib", "spec", "test", "config"),
        weight=1.0,
    ),
    "python": LanguagePattern(
        extensions=(".py", ".pyw", ".pyi"),
        files=("requirements.txt", "setup.py", "pyproject.toml", "Pipfile", "poetry.lock"),
        directories=("src", "tests", "__pycache__", ".pytest_cache"),
        weight=1.0,
    ),
    "javascript": LanguagePattern(
        extensions=(".js", ".jsx", ".mjs", ".cjs"),
        files=("package.json", ".eslintrc", ".eslintrc.js", ".eslintrc.json"),
        directories=("src", "dist", "node_modules", "public"),
        weight=0.9,
        comment_prefixes=("//", "/*", "*"),
    ),
    "typescript": LanguagePattern(
        extensions=(".ts", ".tsx", ".d.ts"),
        files=("tsconfig.json", "tslint.json"),
        directories=("src", "dist", "types"),
        weight=1.1,
        comment_prefixes=("//", "/*", "*"),
    ),
    "go": LanguagePattern(
        extensions=(".go",),
        files=("go.mod", "go.sum", "Makefile"),
        directories=("cmd", "pkg", "internal", "api"),
        weight=1.0,
        comment_prefixes=("//", "/*"),
    ),
    "rust": LanguagePattern(
        extensions=(".rs",),
        files=("Cargo.toml", "Cargo.lock"),
        directories=("src", "target", "tests"),
        weight=1.0,
        comment_prefixes=("//", "/*"),
    ),
    "css": LanguagePattern(
        extensions=(".css", ".scss", ".sass", ".less"),
        directories=("styles", "css", "assets"),
        weight=0.5,
        comment_prefixes=("/*", "*", "//"),
    ),
    "html": LanguagePattern(
        extensions=(".html", ".htm"),
        directories=("public", "dist", "build"),
        weight=0.3,
        comment_prefixes=("<!--",),
    ),
    "java": LanguagePattern(
        extensions=(".java",),
        files=("pom.xml", "build.gradle", "build.gradle.kts"),
        directories=("src/main", "src/test", "target", "build"),
        weight=1.0,
        comment_prefixes=("//", "/*", "*"),
    ),
    "cpp": LanguagePattern(
        extensions=(".cpp", ".cc", ".cxx", ".c", ".h", ".hpp"),
        files=("CMakeLists.txt", "Makefile"),
        directories=("src", "include", "build"),
        weight=1.0,
        comment_prefixes=("//", "/*", "*"),
    ),
}

SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(LANGUAGE_PATTERNS)

# Marker filenames that identify a language on their own (no extension).
_FILENAME_LANGUAGES = {
    "Gemfile": "ruby",
    "Rakefile": "ruby",
    "config.ru": "ruby",
    "package.json": "javascript",
    "go.mod": "go",
    "go.sum": "go",
    "Cargo.toml": "rust",
}

# Directory names never walked: VCS metadata, dependencies, build output, caches.
IGNORED_DIRECTORIES = frozenset(
    {
        ".git",
        "node_modules",
        "vendor",
        "target",
        "build",
        "dist",
        "__pycache__",
        ".pytest_cache",
        "coverage",
        "tmp",
        "temp",
        "log",
        ".bundle",
    }
)
IGNORED_PATH_FRAGMENTS = ("spec/vcr_cassettes",)
IGNORED_FILES = frozenset({"Gemfile.lock", "package-lock.json", "yarn.lock", ".coverage"})


def is_ignored(relative_path: str) -> bool:
    """Return True if a project-relative POSIX path falls under the ignore list."""
    parts = relative_path.split("/")
    if parts[-1] in IGNORED_FILES:
        return True
    if any(part in IGNORED_DIRECTORIES for part in parts[:-1]):
        return True
    return any(fragment in relative_path for fragment in IGNORED_PATH_FRAGMENTS)


def detect_language_from_extension(file_path: str) -> str:
    """Best-effort language of a single file, or ``"unknown"``."""
    name = Path(file_path).name
    # Exact extension match first (".d.ts" and friends resolve via suffix match).
    suffix = Path(name).suffix.lower()
    for language, pattern in LANGUAGE_PATTERNS.items():
        if suffix and suffix in pattern.extensions:
            return language
    for language, pattern in LANGUAGE_PATTERNS.items():
        if pattern.matches(name):
            return language
    return _FILENAME_LANGUAGES.get(name, UNKNOWN_LANGUAGE)
