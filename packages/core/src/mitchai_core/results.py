"""Review result and aggregate data models.

Per-file results are parsed from free-form model output, so ``from_dict``
accepts anything and degrades missing or malformed fields to safe defaults
rather than raising.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

SEVERITIES = ("critical", "major", "minor")
_DEFAULT_SEVERITY = "minor"


def _coerce_score(value) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        score = round(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    if not 1 <= score <= 10:
        return None
    return score


def _coerce_line(value) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _str_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item not in (None, "")]


@dataclass
class ReviewIssue:
    description: str
    severity: str = _DEFAULT_SEVERITY
    line: int | None = None
    suggestion: str | None = None

    @classmethod
    def from_dict(cls, data) -> ReviewIssue:
        if not isinstance(data, dict):
            return cls(description=str(data))
        severity = str(data.get("severity", _DEFAULT_SEVERITY)).lower()
        if severity not in SEVERITIES:
            severity = _DEFAULT_SEVERITY
        suggestion = data.get("suggestion")
        return cls(
            description=str(data.get("description", "")),
            severity=severity,
            line=_coerce_line(data.get("line")),
            suggestion=str(suggestion) if suggestion else None,
        )


@dataclass
class ReviewSuggestion:
    description: str
    category: str = "maintainability"
    impact: str = "medium"

    @classmethod
    def from_dict(cls, data) -> ReviewSuggestion:
        if not isinstance(data, dict):
            return cls(description=str(data))
        return cls(
            description=str(data.get("description", "")),
            category=str(data.get("category", "maintainability")),
            impact=str(data.get("impact", "medium")),
        )


@dataclass
class ReviewResult:
    """Structured review of one file."""

    score: int | None = None
    issues: list[ReviewIssue] = field(default_factory=list)
    suggestions: list[ReviewSuggestion] = field(default_factory=list)
    positive_aspects: list[str] = field(default_factory=list)
    summary: str = ""
    priority_actions: list[str] = field(default_factory=list)
    # Only set on fallback results, so the raw model text is not lost.
    raw_response: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ReviewResult:
        issues = data.get("issues")
        suggestions = data.get("suggestions")
        return cls(
            score=_coerce_score(data.get("score")),
            issues=[ReviewIssue.from_dict(i) for i in issues] if isinstance(issues, list) else [],
            suggestions=[ReviewSuggestion.from_dict(s) for s in suggestions] if isinstance(suggestions, list) else [],
            positive_aspects=_str_list(data.get("positive_aspects")),
            summary=str(data.get("summary") or ""),
            priority_actions=_str_list(data.get("priority_actions")),
        )

    @property
    def has_critical_issue(self) -> bool:
        return any(issue.severity == "critical" for issue in self.issues)


@dataclass
class FileReview:
    path: str
    result: ReviewResult


@dataclass
class FileFailure:
    """A file whose review could not be completed."""

    path: str
    error_type: str
    message: str
    traceback: str = ""


@dataclass
class LanguageReview:
    language: str
    total_files: int = 0
    files: list[FileReview] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return sum(len(f.result.issues) for f in self.files)

    @property
    def average_score(self) -> float | None:
        """Mean score over files that produced one; None when no file did."""
        scores = [f.result.score for f in self.files if f.result.score is not None]
        if not scores:
            return None
        return round(sum(scores) / len(scores), 1)

    def worst_files(self, limit: int = 3) -> list[FileReview]:
        scored = [f for f in self.files if f.result.score is not None]
        return sorted(scored, key=lambda f: f.result.score)[:limit]


@dataclass
class ProjectReview:
    """Aggregate of one ``review_project`` run. Built once, never persisted."""

    path: str
    model: str
    languages_detected: list[str] = field(default_factory=list)
    project_type: str = ""
    languages: dict[str, LanguageReview] = field(default_factory=dict)
    failures: list[FileFailure] = field(default_factory=list)

    @property
    def files_reviewed(self) -> int:
        return sum(len(lang.files) for lang in self.languages.values())

    @property
    def total_issues(self) -> int:
        return sum(lang.total_issues for lang in self.languages.values())

    def all_files(self) -> list[FileReview]:
        return [f for lang in self.languages.values() for f in lang.files]

    def priority_actions(self) -> list[str]:
        """Distinct priority actions across files, most frequently requested first."""
        counts = Counter(action for f in self.all_files() for action in f.result.priority_actions)
        return [action for action, _ in counts.most_common()]

    def critical_files(self) -> list[tuple[FileReview, list[ReviewIssue]]]:
        """Files scoring below 5 or carrying critical issues, lowest score first."""
        critical = []
        for f in self.all_files():
            low_score = f.result.score is not None and f.result.score < 5
            if not (low_score or f.result.has_critical_issue):
                continue
            issues = [i for i in f.result.issues if low_score or i.severity == "critical"]
            if issues:
                critical.append((f, issues))
        return sorted(critical, key=lambda pair: pair[0].result.score or 0)
