"""Project review orchestration.

A project review runs through five stages:

    analyze structure → select model → discover files → review each file → aggregate

Structure analysis and file discovery go through the tool server; when it is
unreachable both stages fall back to the local detector so a review never
depends on the server being up. Each file is reviewed in isolation: a failure
is recorded on the aggregate and the loop moves on.
"""

from __future__ import annotations

import logging
import os
import traceback
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable

from mitchai_core.detector import find_source_files, structure_report
from mitchai_core.languages import DEFAULT_LANGUAGE, UNKNOWN_LANGUAGE, detect_language_from_extension
from mitchai_core.models import Tier
from mitchai_core.parsing import parse_review_response
from mitchai_core.prompts import build_review_prompt
from mitchai_core.recommender import recommend
from mitchai_core.results import (
    FileFailure,
    FileReview,
    LanguageReview,
    ProjectReview,
    ReviewIssue,
    ReviewResult,
)
from mitchai_mcp.client import MCPError

logger = logging.getLogger(__name__)

MAX_REVIEW_BYTES = 10240
OVERSIZED_SCORE = 5

# Frames of traceback kept on a recorded failure for --verbose output.
_TRACEBACK_LIMIT = 3

ProgressCallback = Callable[[int, int, str], None]


class ModelUnavailableError(Exception):
    """The selected model is not installed and could not be made ready."""


def oversized_result(size: int) -> ReviewResult:
    return ReviewResult(
        score=OVERSIZED_SCORE,
        issues=[ReviewIssue(description=f"File too large for detailed review ({size} bytes)")],
        summary="File skipped due to size",
    )


class ProjectReviewer:
    """Drives a full project review.

    ``mcp_client`` is the tool-server client, ``provider`` the inference
    runtime. ``confirm_download(model)`` is asked before a missing model is
    pulled; declining aborts the review. ``progress(done, total, path)`` is
    called once per finished file with a strictly increasing ``done``.
    """

    def __init__(
        self,
        config: dict,
        mcp_client,
        provider,
        confirm_download: Callable[[str], bool] | None = None,
        progress: ProgressCallback | None = None,
    ):
        self.config = config
        self.mcp_client = mcp_client
        self.provider = provider
        self.confirm_download = confirm_download
        self.progress = progress
        self.model: str | None = config.get("model")

    # ------------------------------------------------------------------ #
    # Stages                                                               #
    # ------------------------------------------------------------------ #

    def analyze_structure(self, project_path: str) -> dict:
        try:
            return self.mcp_client.analyze_project_structure(project_path)
        except MCPError as e:
            logger.warning("MCP server unavailable, analysing project locally: %s", e)
            return structure_report(project_path)

    def select_model(self, analysis: dict) -> str:
        """Pick the review model: configured model, else the recommendation for the configured tier."""
        model = self.config.get("model")
        if not model:
            tier = Tier.from_name(self.config.get("tier") or Tier.FAST.label)
            languages = analysis.get("languages_detected") or [DEFAULT_LANGUAGE]
            model = analysis.get("recommended_model")
            if tier is not Tier.FAST or not model:
                model = recommend(languages, tier=tier)
        self.ensure_model_ready(model)
        self.model = model
        return model

    def ensure_model_ready(self, model: str) -> None:
        if self.provider.has_model(model):
            return
        if not self.config.get("auto_pull") and self.confirm_download is not None:
            if not self.confirm_download(model):
                raise ModelUnavailableError(f"Model {model} is not installed and download was declined.")
        try:
            self.provider.pull_model(model)
        except Exception as e:
            raise ModelUnavailableError(f"Could not download model {model}: {e}") from e

    def discover_files(self, project_path: str, languages: list[str]) -> dict[str, list[str]]:
        try:
            return self.mcp_client.list_source_files(project_path, languages)
        except MCPError as e:
            logger.warning("MCP server unavailable, listing files locally: %s", e)
            return find_source_files(project_path, languages)

    # ------------------------------------------------------------------ #
    # Entry points                                                         #
    # ------------------------------------------------------------------ #

    def review_project(self, project_path: str) -> ProjectReview:
        analysis = self.analyze_structure(project_path)
        languages = analysis.get("languages_detected") or [DEFAULT_LANGUAGE]
        model = self.select_model(analysis)
        files_by_language = self.discover_files(project_path, languages)

        review = ProjectReview(
            path=str(project_path),
            model=model,
            languages_detected=languages,
            project_type=analysis.get("project_type", ""),
        )
        tasks = [(path, language) for language, paths in files_by_language.items() for path in paths]
        for language, paths in files_by_language.items():
            review.languages[language] = LanguageReview(language=language, total_files=len(paths))

        for done, (task, outcome) in enumerate(zip(tasks, self._run(tasks)), 1):
            path, language = task
            if isinstance(outcome, FileFailure):
                review.failures.append(outcome)
            elif outcome is not None:
                review.languages[language].files.append(FileReview(path=path, result=outcome))
            if self.progress:
                self.progress(done, len(tasks), path)
        return review

    def review_file(self, file_path: str, language: str | None = None) -> ReviewResult | None:
        """Review a single file outside of a project run."""
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")
        language = language or detect_language_from_extension(file_path)
        if language == UNKNOWN_LANGUAGE:
            language = DEFAULT_LANGUAGE
        if not self.model:
            self.model = recommend([language], tier=self.config.get("tier") or Tier.FAST)
            self.ensure_model_ready(self.model)
        return self.review_single_file(file_path, path.read_text(encoding="utf-8", errors="replace"), language)

    def review_single_file(self, file_path: str, content: str, language: str) -> ReviewResult | None:
        """Review one file's content. Returns None for blank content.

        Content over MAX_REVIEW_BYTES gets a placeholder result without calling
        the model. InferenceError from the provider propagates.
        """
        if not content.strip():
            return None
        size = len(content.encode("utf-8"))
        if size > MAX_REVIEW_BYTES:
            return oversized_result(size)
        prompt = build_review_prompt(language, content, file_path)
        response = self.provider.ask(self.model, prompt)
        return parse_review_response(response)

    # ------------------------------------------------------------------ #
    # Per-file execution                                                   #
    # ------------------------------------------------------------------ #

    def _run(self, tasks: list[tuple[str, str]]):
        """Yield one outcome per task, in task order."""
        workers = max(1, int(self.config.get("workers") or 1))
        if workers == 1 or len(tasks) < 2:
            for task in tasks:
                yield self._review_task(task)
            return
        with ThreadPoolExecutor(max_workers=workers) as pool:
            yield from pool.map(self._review_task, tasks)

    def _review_task(self, task: tuple[str, str]) -> ReviewResult | FileFailure | None:
        path, language = task
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                content = f.read()
            return self.review_single_file(path, content, language)
        except Exception as e:
            logger.debug("Review of %s failed", path, exc_info=True)
            return FileFailure(
                path=path,
                error_type=type(e).__name__,
                message=str(e),
                traceback="".join(traceback.format_exception(type(e), e, e.__traceback__, limit=-_TRACEBACK_LIMIT)),
            )


def relative_path(path: str, root: str) -> str:
    """``path`` relative to ``root`` for display; unchanged when outside it."""
    try:
        return os.path.relpath(path, root) if os.path.isabs(path) else path
    except ValueError:
        return path

