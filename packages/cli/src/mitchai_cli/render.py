"""Terminal presentation of review results."""

from __future__ import annotations

import os

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mitchai_core.results import ProjectReview, ReviewResult
from mitchai_core.reviewer import relative_path

_SEVERITY_STYLE = {"critical": "red", "major": "yellow", "minor": "blue"}
_TOP_ACTIONS = 5


def _score_style(score: int | None) -> str:
    if score is None:
        return "dim"
    if score < 5:
        return "red"
    if score < 8:
        return "yellow"
    return "green"


def _format_score(score) -> str:
    return "n/a" if score is None else f"{score}/10"


def render_project_review(review: ProjectReview, console: Console, verbose: bool = False) -> None:
    console.rule("[bold green]Mitch-AI project review complete[/bold green]")

    console.print("\n[bold blue]Project overview[/bold blue]")
    console.print(f"  Languages:    {', '.join(review.languages_detected)}")
    console.print(f"  Project type: {review.project_type}")
    console.print(f"  Model used:   {review.model}")

    console.print("\n[bold blue]Language breakdown[/bold blue]")
    table = Table(show_header=True)
    table.add_column("Language", style="bold")
    table.add_column("Files", justify="right")
    table.add_column("Reviewed", justify="right")
    table.add_column("Avg score", justify="right")
    table.add_column("Issues", justify="right")
    table.add_column("Needs attention")
    for language, summary in review.languages.items():
        worst = ", ".join(
            f"{escape(os.path.basename(f.path))} ({f.result.score}/10)" for f in summary.worst_files()
        )
        average = summary.average_score
        table.add_row(
            language,
            str(summary.total_files),
            str(len(summary.files)),
            f"[{_score_style(average)}]{_format_score(average)}[/]",
            str(summary.total_issues),
            worst or "-",
        )
    console.print(table)

    console.print("\n[bold blue]Top recommendations[/bold blue]")
    actions = review.priority_actions()[:_TOP_ACTIONS]
    if actions:
        for i, action in enumerate(actions, 1):
            console.print(f"  {i}. [yellow]{escape(action)}[/yellow]")
    else:
        console.print("  [green]Great job! No major issues found.[/green]")

    critical = review.critical_files()
    if critical:
        console.print("\n[bold red]Critical issues[/bold red]")
        for file_review, issues in critical:
            path = escape(relative_path(file_review.path, review.path))
            console.print(f"  [red]{path}[/red] ({_format_score(file_review.result.score)})")
            for issue in issues:
                console.print(f"    - {escape(issue.description)}")

    if review.failures:
        console.print(f"\n[bold yellow]Files that could not be reviewed ({len(review.failures)})[/bold yellow]")
        for failure in review.failures:
            path = escape(relative_path(failure.path, review.path))
            console.print(f"  [yellow]{path}[/yellow]: {failure.error_type}: {escape(failure.message)}")
            if verbose and failure.traceback:
                console.print(f"[dim]{escape(failure.traceback.rstrip())}[/dim]")

    console.print(
        f"\n[bold]{review.files_reviewed}[/bold] file(s) reviewed"
        + (f", [bold]{len(review.failures)}[/bold] failed" if review.failures else "")
        + f", [bold]{review.total_issues}[/bold] issue(s) found."
    )
    if review.failures and not verbose:
        console.print("[dim]Use -v for the full error details.[/dim]")


def render_file_review(path: str, result: ReviewResult | None, console: Console) -> None:
    if result is None:
        console.print(f"[yellow]{escape(path)} is empty, nothing to review.[/yellow]")
        return

    console.rule(f"[bold]{escape(path)}[/bold]")
    console.print(f"Score: [{_score_style(result.score)}]{_format_score(result.score)}[/]")
    if result.summary:
        console.print(f"\n{escape(result.summary)}")

    if result.issues:
        table = Table(title="Issues", show_header=True)
        table.add_column("Severity")
        table.add_column("Line", justify="right")
        table.add_column("Description")
        table.add_column("Suggestion")
        for issue in result.issues:
            style = _SEVERITY_STYLE.get(issue.severity, "white")
            table.add_row(
                f"[{style}]{issue.severity}[/{style}]",
                str(issue.line) if issue.line is not None else "",
                escape(issue.description),
                escape(issue.suggestion or ""),
            )
        console.print(table)

    if result.suggestions:
        console.print("\n[bold]Suggestions[/bold]")
        for suggestion in result.suggestions:
            tag = escape(f"[{suggestion.category}, {suggestion.impact} impact]")
            console.print(f"  - [dim]{tag}[/dim] {escape(suggestion.description)}")

    if result.positive_aspects:
        console.print("\n[bold green]What's good[/bold green]")
        for aspect in result.positive_aspects:
            console.print(f"  - {escape(aspect)}")

    if result.priority_actions:
        console.print("\n[bold]Priority actions[/bold]")
        for i, action in enumerate(result.priority_actions, 1):
            console.print(f"  {i}. {escape(action)}")
