"""Tests for project language detection and the language signal tables."""

import os

import pytest

from mitchai_core.detector import (
    MIXED_PROJECT,
    LanguageDetector,
    find_source_files,
    structure_report,
)
from mitchai_core.languages import detect_language_from_extension, is_ignored


def _touch(root, relative, content="x = 1\n"):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def rails_project(tmp_path):
    _touch(tmp_path, "Gemfile", "source 'https://rubygems.org'\n")
    for name in ("user", "post", "comment"):
        _touch(tmp_path, f"lib/{name}.rb", "class Foo\nend\n")
    for i in range(6):
        _touch(tmp_path, f"styles/s{i}.css", "a { color: red; }\n")
    return tmp_path


# ---------------------------------------------------------------------------
# detect_languages / primary_language
# ---------------------------------------------------------------------------


def test_detects_ruby_from_marker_and_files(tmp_path):
    _touch(tmp_path, "Gemfile")
    _touch(tmp_path, "app/models/user.rb")
    _touch(tmp_path, "lib/tasks.rb")
    detector = LanguageDetector(tmp_path)
    assert detector.detect_languages() == ["ruby"]
    assert detector.primary_language() == "ruby"


def test_gemfile_and_one_ruby_file(tmp_path):
    _touch(tmp_path, "Gemfile")
    _touch(tmp_path, "app.rb")
    detector = LanguageDetector(tmp_path)
    assert detector.scores()["ruby"] > 0.2
    assert "ruby" in detector.detect_languages()
    assert detector.primary_language() == "ruby"


def test_languages_ordered_by_confidence(rails_project):
    assert LanguageDetector(rails_project).detect_languages() == ["ruby", "css"]


def test_empty_directory_falls_back_to_ruby(tmp_path):
    assert LanguageDetector(tmp_path).detect_languages() == ["ruby"]


def test_missing_directory_falls_back_to_ruby(tmp_path):
    detector = LanguageDetector(tmp_path / "does-not-exist")
    assert detector.detect_languages() == ["ruby"]
    assert all(score == 0.0 for score in detector.scores().values())


def test_single_file_below_threshold_is_not_detected(tmp_path):
    _touch(tmp_path, "scripts/one.go", "package main\n")
    assert "go" not in LanguageDetector(tmp_path).detect_languages()


def test_ignored_directories_contribute_nothing(tmp_path):
    for i in range(5):
        _touch(tmp_path, f"vendor/pkg/m{i}.py")
    detector = LanguageDetector(tmp_path)
    assert "python" not in detector.detect_languages()
    assert detector.language_stats() == {}


def test_detection_reflects_filesystem_changes(tmp_path):
    detector = LanguageDetector(tmp_path)
    assert detector.detect_languages() == ["ruby"]
    _touch(tmp_path, "pyproject.toml", "[project]\n")
    for name in ("a", "b", "c"):
        _touch(tmp_path, f"pkg/{name}.py")
    assert detector.detect_languages() == ["python"]



def test_unreadable_subtree_is_recorded_and_skipped(tmp_path, mocker):
    _touch(tmp_path, "Gemfile")
    _touch(tmp_path, "lib/app.rb")
    for i in range(5):
        _touch(tmp_path, f"secret/m{i}.py")
    blocked = str((tmp_path / "secret").resolve())
    real_scandir = os.scandir

    def scandir(path="."):
        if os.fspath(path) == blocked:
            raise PermissionError(13, "Permission denied", blocked)
        return real_scandir(path)

    mocker.patch("os.scandir", side_effect=scandir)
    detector = LanguageDetector(tmp_path)

    assert detector.detect_languages() == ["ruby"]
    assert detector.scores()["python"] == 0.0
    assert any(blocked in warning for warning in detector.warnings)

# ---------------------------------------------------------------------------
# project_type / language_stats
# ---------------------------------------------------------------------------


def test_rails_fullstack_project_type(rails_project):
    assert LanguageDetector(rails_project).project_type() == "rails_fullstack"


@pytest.mark.parametrize(
    "languages, expected",
    [
        (["typescript", "css"], "frontend_typescript"),
        (["javascript", "css"], "frontend_javascript"),
        (["python"], "python_backend"),
        (["go", "python"], "go_microservice"),
        (["rust", "python", "go"], "rust_systems"),
        (["java", "ruby"], "java_enterprise"),
        (["html"], MIXED_PROJECT),
    ],
)
def test_project_type_rules(tmp_path, languages, expected):
    assert LanguageDetector(tmp_path).project_type(languages) == expected


def test_language_stats_samples_are_capped(tmp_path):
    for i in range(8):
        _touch(tmp_path, f"pkg/m{i}.py")
    stats = LanguageDetector(tmp_path).language_stats()
    assert stats["python"]["file_count"] == 8
    assert len(stats["python"]["files"]) == 5
    assert stats["python"]["confidence"] == pytest.approx(0.8)


# ---------------------------------------------------------------------------
# find_source_files / structure_report
# ---------------------------------------------------------------------------


def test_find_source_files_groups_by_language(rails_project):
    files = find_source_files(rails_project)
    assert set(files) == {"ruby", "css"}
    assert len(files["ruby"]) == 3
    assert all(path.endswith(".rb") for path in files["ruby"])
    assert len(files["css"]) == 6


def test_find_source_files_unknown_language_is_empty(rails_project):
    assert find_source_files(rails_project, ["cobol"]) == {"cobol": []}


def test_structure_report(rails_project):
    report = structure_report(rails_project)
    assert report["languages_detected"] == ["ruby", "css"]
    assert report["primary_language"] == "ruby"
    assert report["project_type"] == "rails_fullstack"
    assert report["recommended_model"] == "codegemma:2b"
    assert report["language_stats"]["ruby"]["file_count"] == 3
    assert report["warnings"] == []


# ---------------------------------------------------------------------------
# Signal tables
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "relative, ignored",
    [
        ("node_modules/react/index.js", True),
        ("app/.git/config", True),
        ("Gemfile.lock", True),
        ("spec/vcr_cassettes/call.yml", True),
        ("app/models/user.rb", False),
        ("lib/build_helper.rb", False),
    ],
)
def test_is_ignored(relative, ignored):
    assert is_ignored(relative) is ignored


@pytest.mark.parametrize(
    "path, language",
    [
        ("app/user.rb", "ruby"),
        ("types/index.d.ts", "typescript"),
        ("main.GO", "go"),
        ("Gemfile", "ruby"),
        ("Cargo.toml", "rust"),
        ("README", "unknown"),
    ],
)
def test_detect_language_from_extension(path, language):
    assert detect_language_from_extension(path) == language
