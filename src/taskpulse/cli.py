"""Command line interface for taskpulse."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import click
import yaml
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import ConfigModel, load_config
from .recurring import (
    RecurrenceParser,
    describe_recurrence,
    generate_next_occurrence,
    preview_occurrences,
)
from .services.analytics import Statistics, StatisticsCalculator
from .task import Task
from .utils.datetime import FixedClock, SystemClock, local_now

logger = logging.getLogger(__name__)

HEAT_LEVELS = [" ", "░", "▒", "▓", "█"]


def get_console() -> Console:
    return Console()


def load_tasks(path: Path) -> List[Task]:
    """Load tasks from a YAML or JSON file.

    The file holds either a list of task mappings or a mapping with a
    ``tasks`` key.

    Raises:
        click.ClickException: If the file cannot be read or holds bad data.
    """
    try:
        data = yaml.safe_load(Path(path).read_text())
    except (OSError, yaml.YAMLError) as e:
        raise click.ClickException(f"Could not read {path}: {e}")

    if isinstance(data, dict):
        data = data.get("tasks", [])
    if data is None:
        return []
    if not isinstance(data, list):
        raise click.ClickException(f"{path} must contain a list of tasks")

    try:
        tasks = [Task.from_dict(item) for item in data]
    except (ValueError, TypeError, AttributeError) as e:
        raise click.ClickException(f"Invalid task data in {path}: {e}")

    logger.debug(f"Loaded {len(tasks)} tasks from {path}")
    return tasks


def find_task(tasks: List[Task], task_id: str) -> Task:
    for task in tasks:
        if task.id == task_id:
            return task
    raise click.ClickException(f"No task with id '{task_id}'")


def heat_cell(count: int, peak: int) -> str:
    """Pick a shade for a heatmap cell relative to the busiest day."""
    if count <= 0 or peak <= 0:
        return HEAT_LEVELS[0]
    level = 1 + (count * (len(HEAT_LEVELS) - 2)) // peak
    return HEAT_LEVELS[min(level, len(HEAT_LEVELS) - 1)]


def render_statistics(console: Console, stats: Statistics, config: ConfigModel) -> None:
    """Print a statistics report as rich tables."""
    summary = Table(title="Summary", show_header=False)
    summary.add_column("Metric", style="bold")
    summary.add_column("Value", justify="right")
    summary.add_row("Tasks", str(stats.total_tasks))
    summary.add_row("Completed", str(stats.completed_count))
    summary.add_row("Pending", str(stats.pending_count))
    summary.add_row("In progress", str(stats.in_progress_count))
    summary.add_row("Cancelled", str(stats.cancelled_count))
    summary.add_row("Overdue", str(stats.overdue_count))
    summary.add_row("Completion rate", f"{stats.completion_rate:.0%}")
    summary.add_row("Avg. completion time", f"{stats.average_completion_hours:.1f} h")
    summary.add_row("Estimation accuracy", f"{stats.estimation_accuracy:.0%}")
    summary.add_row("Current streak", f"{stats.streak.current} days")
    summary.add_row("Longest streak", f"{stats.streak.longest} days")
    if stats.most_productive_hour is not None:
        summary.add_row("Most productive hour", f"{stats.most_productive_hour:02d}:00")
    console.print(summary)

    breakdown = Table(title="By priority")
    breakdown.add_column("Priority")
    breakdown.add_column("Tasks", justify="right")
    for priority, count in stats.tasks_by_priority.items():
        breakdown.add_row(priority, str(count))
    console.print(breakdown)

    categories = Table(title="By category")
    categories.add_column("Category")
    categories.add_column("Tasks", justify="right")
    for category, count in sorted(stats.tasks_by_category.items(), key=lambda item: -item[1]):
        categories.add_row(category, str(count))
    console.print(categories)

    if stats.heatmap:
        peak = max(stats.heatmap.values())
        days = list(stats.heatmap)
        cells = "".join(heat_cell(stats.heatmap[day], peak) for day in days)
        console.print(
            f"[bold]Completions[/bold] {days[0].strftime(config.date_format)} "
            f"[{cells}] {days[-1].strftime(config.date_format)}"
        )


@click.group()
@click.version_option(__version__)
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to a config.yaml file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """Recurrence previews and completion statistics for task lists."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)


@cli.command(name="preview")
@click.argument("tasks_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("task_id")
@click.option("--count", "-n", type=int, help="Number of occurrences to show")
@click.pass_context
def preview_command(ctx: click.Context, tasks_file: Path, task_id: str, count: Optional[int]):
    """Show the upcoming due dates of a recurring task"""
    config: ConfigModel = ctx.obj["config"]
    task = find_task(load_tasks(tasks_file), task_id)
    if count is None:
        count = config.preview_count

    console = get_console()
    console.print(f"[bold]{task.title}[/bold] ({describe_recurrence(task, config.date_format)})")

    dates = list(preview_occurrences(task, count, config.leap_day_policy))
    if not dates:
        console.print("No upcoming occurrences")
        return
    for index, due in enumerate(dates, start=1):
        console.print(f"{index:>3}. {due.strftime(config.date_format)} ({due.strftime('%A')})")


@cli.command(name="next")
@click.argument("tasks_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("task_id")
@click.option("--json", "as_json", is_flag=True, help="Print the task as JSON")
@click.pass_context
def next_command(ctx: click.Context, tasks_file: Path, task_id: str, as_json: bool):
    """Show the task that completing TASK_ID would create"""
    config: ConfigModel = ctx.obj["config"]
    task = find_task(load_tasks(tasks_file), task_id)

    next_task = generate_next_occurrence(task, leap_day_policy=config.leap_day_policy)
    if next_task is None:
        click.echo("No further occurrence")
        return

    if as_json:
        click.echo(json.dumps(next_task.to_dict(), indent=2))
    else:
        get_console().print(
            f"Next occurrence of [bold]{next_task.title}[/bold] due "
            f"{next_task.due_date.strftime(config.date_format)}"
        )


@cli.command(name="stats")
@click.argument("tasks_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--days", "-d", type=int, help="Heatmap window in days")
@click.option("--today", type=click.DateTime(formats=["%Y-%m-%d"]),
              help="Compute as of the start of this date instead of now")
@click.option("--json", "as_json", is_flag=True, help="Print statistics as JSON")
@click.pass_context
def stats_command(ctx: click.Context, tasks_file: Path, days: Optional[int],
                  today: Optional[datetime], as_json: bool):
    """Show completion statistics for a task file"""
    config: ConfigModel = ctx.obj["config"]
    tasks = load_tasks(tasks_file)

    if today is not None:
        # Start of the given day: only tasks due before it are overdue, and
        # completions stamped later that day still count for it.
        clock = FixedClock(today.replace(hour=0, minute=0, second=0))
    else:
        clock = SystemClock()

    stats = StatisticsCalculator(config=config, clock=clock).calculate(tasks, heatmap_days=days)

    if as_json:
        click.echo(json.dumps(stats.to_dict(), indent=2))
    else:
        render_statistics(get_console(), stats, config)


@cli.command(name="parse")
@click.argument("pattern", nargs=-1, required=True)
def parse_command(pattern):
    """Show how a recurrence phrase is understood"""
    text = " ".join(pattern)
    parsed = RecurrenceParser.parse(text)
    if parsed is None:
        raise click.ClickException(f"Invalid recurrence pattern: {text}")

    rec_type, interval = parsed
    sample = RecurrenceParser.apply(Task(id="sample", title=text, due_date=local_now()), text)
    click.echo(f"type={rec_type.value} interval={interval} ({describe_recurrence(sample)})")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
