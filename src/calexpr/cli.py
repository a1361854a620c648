"""Command-line interface for calexpr."""

import json
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from calexpr.infrastructure.config import (
    ConfigError,
    ConfigProfile,
    load_config,
    search_limits_from_config,
)
from calexpr.infrastructure.logging import LogConfig, configure_logging, get_logger
from calexpr.schedule import ScheduleExpression, ScheduleExpressionError
from calexpr.schedule.presets import PRESETS

app = typer.Typer(
    name="calexpr",
    help="Evaluate calendar schedule expressions and compute their next timeouts",
    add_completion=False,
)

logger = get_logger("cli")

SecondOpt = Annotated[str, typer.Option("--second", help="Second field (0-59)")]
MinuteOpt = Annotated[str, typer.Option("--minute", help="Minute field (0-59)")]
HourOpt = Annotated[str, typer.Option("--hour", help="Hour field (0-23)")]
DayOfMonthOpt = Annotated[
    str,
    typer.Option("--day-of-month", "--dom", help="Day-of-month field (1-31, last, -3, 2nd Mon)"),
]
MonthOpt = Annotated[str, typer.Option("--month", help="Month field (1-12 or Jan-Dec)")]
DayOfWeekOpt = Annotated[
    str,
    typer.Option("--day-of-week", "--dow", help="Day-of-week field (0-7 or Sun-Sat)"),
]
YearOpt = Annotated[str, typer.Option("--year", help="Year field")]
TimezoneOpt = Annotated[
    Optional[str],
    typer.Option("--tz", help="IANA timezone (default: schedule.timezone from config)"),
]
ConfigOpt = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Configuration file (YAML, JSON or TOML)"),
]


def _load_profile(config: Optional[Path]) -> ConfigProfile:
    try:
        profile = load_config(config_path=config)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    log_config = LogConfig.from_config(profile)
    configure_logging(level=log_config.level, format=log_config.format)
    return profile


def _parse_instant(value: Optional[str], option: str) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"not an ISO 8601 date-time: {value!r}", param_hint=option)


def _build_expression(
    profile: ConfigProfile,
    fields: dict[str, str],
    tz: Optional[str],
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> ScheduleExpression:
    try:
        return ScheduleExpression.parse(
            **fields,
            timezone=tz or profile.get_str("schedule.timezone", "UTC"),
            start=_parse_instant(start, "--start"),
            end=_parse_instant(end, "--end"),
            limits=search_limits_from_config(profile),
        )
    except ScheduleExpressionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command(name="next")
def next_cmd(
    second: SecondOpt = "0",
    minute: MinuteOpt = "*",
    hour: HourOpt = "*",
    day_of_month: DayOfMonthOpt = "*",
    month: MonthOpt = "*",
    day_of_week: DayOfWeekOpt = "*",
    year: YearOpt = "*",
    tz: TimezoneOpt = None,
    start: Annotated[
        Optional[str],
        typer.Option("--start", help="First instant a timeout may fall on (ISO 8601)"),
    ] = None,
    end: Annotated[
        Optional[str],
        typer.Option("--end", help="Last instant a timeout may fall on (ISO 8601)"),
    ] = None,
    after: Annotated[
        Optional[str],
        typer.Option("--after", "-a", help="Reference instant (ISO 8601, default: now)"),
    ] = None,
    count: Annotated[
        int,
        typer.Option("--count", "-n", min=1, help="Number of timeouts to compute"),
    ] = 1,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (console, json)"),
    ] = "console",
    config: ConfigOpt = None,
) -> None:
    """Compute the next timeouts of a schedule expression."""
    profile = _load_profile(config)
    fields = {
        "second": second,
        "minute": minute,
        "hour": hour,
        "day_of_month": day_of_month,
        "month": month,
        "day_of_week": day_of_week,
        "year": year,
    }
    expression = _build_expression(profile, fields, tz, start, end)
    reference = _parse_instant(after, "--after")

    timeouts = expression.next_n(count, reference)
    logger.debug("Computed %d timeout(s) for %r", len(timeouts), expression)

    if format == "json":
        payload = {
            "expression": expression.to_dict(),
            "timeouts": [t.isoformat() for t in timeouts],
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    console = Console()
    if not timeouts:
        console.print("[yellow]No next timeout[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Timeout")
    table.add_column("Weekday")
    for index, timeout in enumerate(timeouts, start=1):
        table.add_row(str(index), timeout.isoformat(), timeout.strftime("%A"))
    console.print(table)


@app.command(name="validate")
def validate_cmd(
    second: SecondOpt = "0",
    minute: MinuteOpt = "*",
    hour: HourOpt = "*",
    day_of_month: DayOfMonthOpt = "*",
    month: MonthOpt = "*",
    day_of_week: DayOfWeekOpt = "*",
    year: YearOpt = "*",
    tz: TimezoneOpt = None,
    config: ConfigOpt = None,
) -> None:
    """Check that a schedule expression parses."""
    profile = _load_profile(config)
    fields = {
        "second": second,
        "minute": minute,
        "hour": hour,
        "day_of_month": day_of_month,
        "month": month,
        "day_of_week": day_of_week,
        "year": year,
    }
    expression = _build_expression(profile, fields, tz)
    typer.echo(f"Valid: {expression!r}")


@app.command(name="presets")
def presets_cmd(
    after: Annotated[
        Optional[str],
        typer.Option("--after", "-a", help="Reference instant (ISO 8601, default: now)"),
    ] = None,
) -> None:
    """List the predefined schedule expressions."""
    reference = _parse_instant(after, "--after")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Preset")
    table.add_column("Fields")
    table.add_column("Next timeout (UTC)")
    for name, expression in PRESETS.items():
        timeout = expression.compute_next_timeout(reference)
        sources = " ".join(f.source for f in expression.fields)
        table.add_row(name, sources, timeout.isoformat() if timeout else "-")
    Console().print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
