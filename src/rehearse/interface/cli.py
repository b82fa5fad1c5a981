"""Rehearse CLI — problem registration, grading, rescheduling and review views."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Literal

import typer

from rehearse.application.config import AppConfig, resolve_config
from rehearse.application.service import ReviewService
from rehearse.domain.errors import (
    DuplicateActivePlan,
    InvalidPostpone,
    InvalidScore,
    NotSkippable,
    PlanNotActive,
    SchedulerError,
    StorageError,
    UnknownEntity,
)
from rehearse.domain.models import ConfidenceLevel, ReviewPlan

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="rehearse: spaced-repetition scheduler for practice problems.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage rehearse configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def humanize_error(e: SchedulerError) -> str:
    """Turn a scheduler failure into a one-line hint for the user."""
    if isinstance(e, InvalidScore):
        return f"{e} Scores run 0 (blank) to 5 (perfect); confidence runs 1 to 5."
    if isinstance(e, (PlanNotActive, NotSkippable)):
        return f"{e}. Run 'rehearse reviews today' to see current plans."
    if isinstance(e, DuplicateActivePlan):
        return f"{e}. Complete or postpone the existing plan instead."
    if isinstance(e, InvalidPostpone):
        return str(e)
    if isinstance(e, UnknownEntity):
        return f"{e}. Check the id and try again."
    if isinstance(e, StorageError):
        return f"Storage error (nothing was saved, safe to retry): {e}"
    return str(e)


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.obj["config"]


def _service(ctx: typer.Context) -> ReviewService:
    if "service" not in ctx.obj:
        from rehearse.application.factory import build_review_service

        ctx.obj["service"] = build_review_service(_config(ctx))
    return ctx.obj["service"]


def _fail(e: SchedulerError) -> None:
    typer.secho(humanize_error(e), fg="red", err=True)
    raise typer.Exit(1)


def _plan_dict(plan: ReviewPlan) -> dict:
    return {
        "id": plan.id,
        "problem_id": plan.problem_id,
        "scheduled_at": plan.scheduled_at.isoformat(),
        "status": plan.status.value,
        "level": plan.level,
        "score": plan.score,
        "confidence": plan.confidence,
    }


def _plan_line(plan: ReviewPlan, config: AppConfig, title: str = "") -> str:
    local = plan.scheduled_at.astimezone(config.tz)
    return f"{local:%Y-%m-%d %H:%M}  L{plan.level}  {plan.status.value:<9}  {plan.id}  {title}"


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    backend: Annotated[
        str | None, typer.Option(help="Storage backend: sqlite, memory.")
    ] = None,
    db_path: Annotated[Path | None, typer.Option(help="SQLite database file.")] = None,
):
    """Global settings for rehearse."""
    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        ctx.obj["config"] = resolve_config({"backend": backend, "db_path": db_path})
    if verbose or ctx.obj["config"].verbose >= 2:
        logging.getLogger().setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Lifecycle commands
# ---------------------------------------------------------------------------


@app.command()
def add(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Problem title.")],
    source: Annotated[str | None, typer.Option(help="Where the problem comes from.")] = None,
    tag: Annotated[list[str] | None, typer.Option(help="Classification tag (repeatable).")] = None,
):
    """[bold green]Add[/bold green] a problem and schedule its first review."""
    try:
        problem, plan = _service(ctx).add_problem(title, source=source, tags=tag or [])
    except SchedulerError as e:
        _fail(e)
    typer.echo(f"Problem: {problem.id}")
    typer.echo(f"First review: {_plan_line(plan, _config(ctx), problem.title)}")


@app.command()
def complete(
    ctx: typer.Context,
    plan_id: Annotated[str, typer.Argument(help="Review plan id.")],
    score: Annotated[int, typer.Argument(help="Grade from 0 (blank) to 5 (perfect).")],
    confidence: Annotated[
        int, typer.Option("--confidence", "-c", help="Confidence from 1 to 5.")
    ] = int(ConfidenceLevel.MEDIUM),
    time_spent: Annotated[
        float, typer.Option("--time-spent", "-t", help="Seconds spent on the review.")
    ] = 0.0,
):
    """Record a grade and schedule the next review."""
    service = _service(ctx)
    try:
        plan = service.get_plan(plan_id)
        successor = service.complete(plan, score, confidence=confidence, time_spent=time_spent)
        problem = service.get_problem(plan.problem_id)
    except SchedulerError as e:
        _fail(e)
    typer.secho(f"Completed {plan_id} with score {score}.", fg="green")
    typer.echo(f"Next review: {_plan_line(successor, _config(ctx), problem.title)}")
    typer.echo(
        f"Mastery: {problem.mastery}/5  Average: {problem.average_score:.2f}"
        f"  Reviews: {problem.total_reviews}"
    )


@app.command()
def skip(
    ctx: typer.Context,
    plan_id: Annotated[str, typer.Argument(help="Review plan id.")],
):
    """Move one of today's reviews to the end of today's queue."""
    service = _service(ctx)
    try:
        plan = service.skip(service.get_plan(plan_id))
    except SchedulerError as e:
        _fail(e)
    typer.echo(f"Moved to {_plan_line(plan, _config(ctx))}")


@app.command()
def postpone(
    ctx: typer.Context,
    plan_id: Annotated[str, typer.Argument(help="Review plan id.")],
    days: Annotated[int, typer.Argument(help="Whole days to push the review out.")],
):
    """Push a review out by a number of days."""
    service = _service(ctx)
    try:
        plan = service.postpone(service.get_plan(plan_id), days)
    except SchedulerError as e:
        _fail(e)
    typer.echo(f"Postponed to {_plan_line(plan, _config(ctx))}")


# ---------------------------------------------------------------------------
# Read commands
# ---------------------------------------------------------------------------


@app.command()
def reviews(
    ctx: typer.Context,
    view: Annotated[
        Literal["due", "today", "overdue", "week"],
        typer.Argument(help="Which window to list."),
    ] = "today",
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List review plans in a time window."""
    service = _service(ctx)
    queries = {
        "due": service.due,
        "today": service.today,
        "overdue": service.overdue,
        "week": service.this_week,
    }
    plans = queries[view]()

    if json_output:
        typer.echo(json.dumps([_plan_dict(p) for p in plans], indent=2))
        return

    if not plans:
        typer.secho("Nothing scheduled.", fg="green")
        return

    config = _config(ctx)
    for plan in plans:
        problem = service.store.get_problem(plan.problem_id)
        typer.echo(_plan_line(plan, config, problem.title if problem else ""))
    typer.echo(f"{len(plans)} review(s)")


@app.command()
def stats(
    ctx: typer.Context,
    problem_id: Annotated[str, typer.Argument(help="Problem id.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show review statistics for a problem."""
    service = _service(ctx)
    try:
        problem = service.get_problem(problem_id)
        result = service.statistics(problem_id)
        next_due = service.predict_next_review_date(problem_id)
    except SchedulerError as e:
        _fail(e)

    if json_output:
        payload = dict(result.__dict__) if result else {}
        payload["next_review"] = next_due.isoformat() if next_due else None
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(f"{problem.title}  (mastery {problem.mastery}/5)")
    if result is None:
        typer.secho("Not reviewed yet.", fg="yellow")
    else:
        typer.echo(
            f"Reviews: {result.total_reviews}  Average: {result.average_score:.2f}"
            f"  Completion: {result.completion_rate:.0%}"
        )
        typer.echo(
            f"Streak: {result.current_streak}  Avg interval: {result.average_interval_days:.1f}d"
            f"  This week: {result.reviews_this_week}  This month: {result.reviews_this_month}"
        )
    if next_due:
        typer.echo(f"Next review: {next_due.astimezone(_config(ctx).tz):%Y-%m-%d %H:%M}")


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API used by the desktop UI."""
    import os

    import uvicorn

    config = _config(ctx)
    # The server resolves its own config; hand it the storage we resolved here.
    os.environ["REHEARSE_BACKEND"] = config.backend
    os.environ["REHEARSE_DB_PATH"] = str(config.db_path)
    uvicorn.run(
        "rehearse.server:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
