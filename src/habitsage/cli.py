"""Command line entry points for HabitSage."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional

import click

from .clock import FixedClock
from .config import BaseConfig
from .errors import HabitNotFoundError, ValidationError
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelHabitRepository
from .logging_config import setup_logging
from .models.frequency import FrequencyConfig, frequency_from_record, validate_frequency
from .models.habit import HabitData, HabitKind
from .services import frequency as frequency_service
from .services import ledger
from .services.reports import export_strength_png
from .services.tracker import HabitTracker

FREQUENCY_TYPES = (
    "daily",
    "every_n_days",
    "n_times_week",
    "n_times_month",
    "n_times_in_m_days",
    "by_days_of_week",
)


class CliState:
    """Lazily opened store shared by the commands of one invocation."""

    def __init__(self, config: BaseConfig, today: Optional[date]):
        self.config = config
        self.today = today
        self._repository: SQLModelHabitRepository | None = None

    @property
    def repository(self) -> SQLModelHabitRepository:
        if self._repository is None:
            _, session_factory = bootstrap_database(self.config)
            self._repository = SQLModelHabitRepository(session_factory)
        return self._repository

    def open_tracker(self) -> HabitTracker:
        clock = FixedClock(self.today) if self.today else None
        tracker = HabitTracker.from_config(self.config, clock=clock)
        result = tracker.load(self.repository.list_records())
        for issue in result.issues:
            click.echo(f"warning: skipped {issue.field}: {issue.message}", err=True)
        return tracker


def _parse_date(ctx, param, value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from exc


def _build_frequency(
    freq_type: str, count: Optional[int], period: Optional[int], days: tuple[int, ...]
) -> tuple[FrequencyConfig, bool]:
    record: dict = {"type": freq_type, "count": count, "period": period, "days": list(days)}
    try:
        return validate_frequency(frequency_from_record(record))
    except ValidationError as exc:
        raise click.BadParameter(exc.message, param_hint=f"--{exc.field}") from exc


def frequency_options(func):
    """Attach the options describing a frequency rule."""

    func = click.option(
        "--day",
        "days",
        type=click.IntRange(0, 6),
        multiple=True,
        help="Weekday for by_days_of_week (0=Monday). Repeatable.",
    )(func)
    func = click.option("--period", type=int, default=None, help="Window length in days.")(func)
    func = click.option("--count", type=int, default=None, help="Completions per window.")(func)
    func = click.option(
        "--type",
        "freq_type",
        type=click.Choice(FREQUENCY_TYPES),
        default="daily",
        show_default=True,
        help="Frequency rule.",
    )(func)
    return func


@click.group()
@click.option(
    "--today",
    callback=_parse_date,
    default=None,
    help="Pretend the current date is YYYY-MM-DD.",
)
@click.pass_context
def main(ctx: click.Context, today: Optional[date]) -> None:
    """Track habits, streaks and habit strength."""

    config = BaseConfig()
    setup_logging(config)
    ctx.obj = CliState(config, today)


@main.command("goal")
@frequency_options
@click.option("--month", type=click.IntRange(1, 12), required=True)
@click.option("--year", type=int, required=True)
def goal_command(
    freq_type: str,
    count: Optional[int],
    period: Optional[int],
    days: tuple[int, ...],
    month: int,
    year: int,
) -> None:
    """Print the number of completions a rule expects in a month."""

    config, clamped = _build_frequency(freq_type, count, period, days)
    if clamped:
        click.echo("note: count clamped to the window size", err=True)
    goal = frequency_service.monthly_goal(config, month, year)
    click.echo(f"{frequency_service.describe_frequency(config)}: {goal} in {year}-{month:02d}")


@main.command("add")
@click.argument("name")
@frequency_options
@click.option("--measurable", is_flag=True, default=False, help="Track a numeric value.")
@click.option("--unit", default=None)
@click.option("--target", "target_value", type=float, default=None)
@click.option("--created-at", callback=_parse_date, default=None, help="YYYY-MM-DD")
@click.pass_obj
def add_command(
    state: CliState,
    name: str,
    freq_type: str,
    count: Optional[int],
    period: Optional[int],
    days: tuple[int, ...],
    measurable: bool,
    unit: Optional[str],
    target_value: Optional[float],
    created_at: Optional[date],
) -> None:
    """Create a habit and store it."""

    config, _ = _build_frequency(freq_type, count, period, days)
    tracker = state.open_tracker()
    result = tracker.create_habit(
        HabitData(
            name=name,
            kind=HabitKind.MEASURABLE if measurable else HabitKind.BINARY,
            frequency=config,
            created_at=created_at,
            unit=unit,
            target_value=target_value,
        )
    )
    if not result.ok:
        for issue in result.issues:
            click.echo(f"error: {issue.field}: {issue.message}", err=True)
        raise click.exceptions.Exit(1)
    state.repository.save(result.value)
    click.echo(result.value.id)


@main.command("list")
@click.pass_obj
def list_command(state: CliState) -> None:
    """List stored habits with their current strength."""

    tracker = state.open_tracker()
    for habit in tracker.habits():
        label = frequency_service.describe_frequency(habit.frequency)
        click.echo(f"{habit.id}\t{habit.name}\t{label}\t{habit.strength}%")


def _record_day(state: CliState, habit_id: str, day: Optional[date], action: str) -> None:
    tracker = state.open_tracker()
    target = day or tracker.today()
    operation = tracker.toggle if action == "toggle" else tracker.skip
    result = operation(habit_id, target)
    if not result.ok:
        raise click.ClickException(result.issues[0].message)
    if result.needs_value:
        raise click.ClickException("measurable habits take a value; toggling is not supported")
    habit = result.value
    if not result.noop:
        state.repository.save(habit)
    state_label = ledger.day_state(habit, target).value
    click.echo(f"{habit.name} {target.isoformat()}: {state_label} (strength {habit.strength}%)")


@main.command("toggle")
@click.argument("habit_id")
@click.argument("day", required=False, callback=_parse_date)
@click.pass_obj
def toggle_command(state: CliState, habit_id: str, day: Optional[date]) -> None:
    """Advance a day (default today) through empty, done and skipped."""

    _record_day(state, habit_id, day, "toggle")


@main.command("skip")
@click.argument("habit_id")
@click.argument("day", required=False, callback=_parse_date)
@click.pass_obj
def skip_command(state: CliState, habit_id: str, day: Optional[date]) -> None:
    """Mark a day (default today) as skipped."""

    _record_day(state, habit_id, day, "skip")


@main.command("catch-up")
@click.pass_obj
def catch_up_command(state: CliState) -> None:
    """Bring every stored habit's strength up to today."""

    tracker = state.open_tracker()
    result = tracker.catch_up()
    updated = result.value or []
    state.repository.save_all([tracker.get(habit_id) for habit_id in updated])
    for issue in result.issues:
        click.echo(f"warning: {issue.field}: {issue.message}", err=True)
    click.echo(f"Updated {len(updated)} habit(s)")


@main.command("stats")
@click.argument("habit_id")
@click.option("--month", type=click.IntRange(1, 12), default=None)
@click.option("--year", type=int, default=None)
@click.pass_obj
def stats_command(
    state: CliState, habit_id: str, month: Optional[int], year: Optional[int]
) -> None:
    """Show strength, streaks and monthly progress for one habit."""

    tracker = state.open_tracker()
    today = tracker.today()
    try:
        habit = tracker.get(habit_id)
    except HabitNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    stats = tracker.monthly_stats(habit_id, month or today.month, year or today.year)
    click.echo(f"{habit.name} ({frequency_service.describe_frequency(habit.frequency)})")
    click.echo(f"Strength: {habit.strength}%")
    click.echo(f"Current streak: {tracker.current_streak(habit_id)}")
    click.echo(f"Best streak: {tracker.best_streak(habit_id)}")
    click.echo(
        f"{stats.year}-{stats.month:02d}: {stats.completed_days}/{stats.goal} "
        f"({stats.percentage}%)"
    )
    click.echo(f"All-time completions: {stats.all_time_completed}")


@main.command("chart")
@click.argument("habit_id")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def chart_command(state: CliState, habit_id: str, output: Path) -> None:
    """Write a PNG chart of a habit's daily strength."""

    tracker = state.open_tracker()
    try:
        habit = tracker.get(habit_id)
    except HabitNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    path = export_strength_png(
        history=tracker.strength_history(habit_id),
        output_path=output,
        title=f"{habit.name} strength",
    )
    click.echo(f"Chart written: {path}")


__all__ = ["main"]
