"""Project language detection.

Scores every supported language from the evidence found in a project tree and
derives the primary language and a coarse project-type classification from the
result. Everything is recomputed on each call; nothing is cached between calls
so the answer always reflects the filesystem at call time.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from mitchai_core.languages import (
    DEFAULT_LANGUAGE,
    IGNORED_DIRECTORIES,
    LANGUAGE_PATTERNS,
    LanguagePattern,
    is_ignored,
)
from mitchai_core.recommender import recommend

logger = logging.getLogger(__name__)

# Minimum confidence for a language to count as present. Tunable, not load-bearing.
CONFIDENCE_THRESHOLD = 0.2

# Contribution of a single matching file, before the language weight.
_FILE_UNIT_WEIGHT = 0.1
_MARKER_FILE_WEIGHT = 0.5
_MARKER_DIR_WEIGHT = 0.2

# Sample paths kept per language during the walk; only affects the sample list.
_SAMPLE_LIMIT = 20
_STATS_SAMPLE_SIZE = 5

# (project type, predicate) evaluated in order, first match wins.
_PROJECT_TYPES = [
    ("rails_fullstack", lambda langs: "ruby" in langs and "css" in langs),
    ("frontend_typescript", lambda langs: "typescript" in langs and "css" in langs),
    ("frontend_javascript", lambda langs: "javascript" in langs and "css" in langs),
    ("python_backend", lambda langs: "python" in langs and len(langs) == 1),
    ("go_microservice", lambda langs: "go" in langs and len(langs) <= 2),
    ("rust_systems", lambda langs: "rust" in langs),
    ("java_enterprise", lambda langs: "java" in langs),
]
MIXED_PROJECT = "mixed_project"


@dataclass
class WalkResult:
    """Outcome of one walk over a project tree.

    ``warnings`` lists subtrees that could not be read. Those subtrees simply
    contribute nothing to the counts.
    """

    counts: dict[str, int] = field(default_factory=dict)
    samples: dict[str, list[str]] = field(default_factory=dict)
    files: dict[str, list[str]] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


def walk_project(root: Path, languages: list[str] | None = None, collect_all: bool = False) -> WalkResult:
    """Walk ``root`` once, counting files per language.

    When ``collect_all`` is set every matching path is returned in
    ``WalkResult.files``; otherwise only the capped samples are kept.
    """
    wanted = {lang: LANGUAGE_PATTERNS[lang] for lang in (languages or LANGUAGE_PATTERNS) if lang in LANGUAGE_PATTERNS}
    result = WalkResult(
        counts={lang: 0 for lang in wanted},
        samples={lang: [] for lang in wanted},
        files={lang: [] for lang in wanted},
    )
    if not root.is_dir():
        return result

    def _on_error(err: OSError) -> None:
        logger.debug("Skipping unreadable path %s: %s", err.filename, err)
        result.warnings.append(f"{err.filename}: {err.strerror or err}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRECTORIES)
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        for name in sorted(filenames):
            rel_path = name if rel_dir == "." else f"{rel_dir}/{name}"
            if is_ignored(rel_path):
                continue
            for language, pattern in wanted.items():
                if not pattern.matches(name):
                    continue
                result.counts[language] += 1
                if len(result.samples[language]) < _SAMPLE_LIMIT:
                    result.samples[language].append(rel_path)
                if collect_all:
                    result.files[language].append(str(Path(dirpath) / name))
    return result


def _marker_score(root: Path, pattern: LanguagePattern) -> float:
    score = 0.0
    for marker in pattern.files:
        if (root / marker).exists():
            score += _MARKER_FILE_WEIGHT * pattern.weight
    for directory in pattern.directories:
        path = root / directory
        try:
            if path.is_dir() and any(path.iterdir()):
                score += _MARKER_DIR_WEIGHT * pattern.weight
        except OSError as e:
            logger.debug("Cannot inspect marker directory %s: %s", path, e)
    return score


class LanguageDetector:
    """Detects the languages used in a project directory."""

    def __init__(self, project_path: str | os.PathLike):
        self.project_path = Path(project_path).expanduser().resolve()
        self.warnings: list[str] = []

    def _walk(self) -> WalkResult:
        result = walk_project(self.project_path)
        self.warnings = list(result.warnings)
        return result

    def scores(self, walk: WalkResult | None = None) -> dict[str, float]:
        """Raw confidence per language. Unbounded, only meaningful relative to each other."""
        if not self.project_path.is_dir():
            return {lang: 0.0 for lang in LANGUAGE_PATTERNS}
        walk = walk or self._walk()
        return {
            language: walk.counts[language] * _FILE_UNIT_WEIGHT * pattern.weight
            + _marker_score(self.project_path, pattern)
            for language, pattern in LANGUAGE_PATTERNS.items()
        }

    def detect_languages(self) -> list[str]:
        """Languages above the confidence threshold, most confident first.

        Ties are ordered by language name. Falls back to ``[DEFAULT_LANGUAGE]``
        when nothing qualifies, including for missing directories.
        """
        scores = self.scores()
        detected = [lang for lang, score in scores.items() if score > CONFIDENCE_THRESHOLD]
        detected.sort(key=lambda lang: (-scores[lang], lang))
        return detected or [DEFAULT_LANGUAGE]

    def primary_language(self) -> str:
        return self.detect_languages()[0]

    def language_stats(self) -> dict[str, dict]:
        walk = self._walk()
        scores = self.scores(walk)
        return {
            language: {
                "file_count": walk.counts[language],
                "confidence": round(scores[language], 3),
                "files": walk.samples[language][:_STATS_SAMPLE_SIZE],
            }
            for language in LANGUAGE_PATTERNS
            if walk.counts[language] > 0
        }

    def project_type(self, languages: list[str] | None = None) -> str:
        langs = languages if languages is not None else self.detect_languages()
        for name, predicate in _PROJECT_TYPES:
            if predicate(langs):
                return name
        return MIXED_PROJECT


def find_source_files(project_path: str | os.PathLike, languages: list[str] | None = None) -> dict[str, list[str]]:
    """Group every source file under ``project_path`` by language.

    With no ``languages`` the detected languages are used. Unknown language
    names map to an empty list rather than raising.
    """
    root = Path(project_path).expanduser()
    if not languages:
        languages = LanguageDetector(root).detect_languages()
    walk = walk_project(root, languages, collect_all=True)
    for warning in walk.warnings:
        logger.warning("Could not read %s", warning)
    return {language: walk.files.get(language, []) for language in languages}


def structure_report(project_path: str | os.PathLike, tier: str = "fast") -> dict:
    """Combined structure analysis: languages, type, per-language stats and a model pick."""
    detector = LanguageDetector(project_path)
    languages = detector.detect_languages()
    return {
        "languages_detected": languages,
        "primary_language": languages[0],
        "project_type": detector.project_type(languages),
        "language_stats": detector.language_stats(),
        "recommended_model": recommend(languages, tier=tier),
        "warnings": detector.warnings,
    }
