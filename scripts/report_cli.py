#!/usr/bin/env python3
"""
ReportQL command-line interface

Compile report configurations to SQL, run them against the configured
database, and browse the fields available per source table.

Usage:
    python scripts/report_cli.py fields orders
    python scripts/report_cli.py compile orders report.json
    python scripts/report_cli.py run orders report.json
    python scripts/report_cli.py run-stored 42
"""

import argparse
import json
import re
import sys
from pathlib import Path

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from reportql.core.errors import ReportConfigError
from reportql.core.reporting import (
    QueryCompiler,
    ReportConfigParseError,
    ReportExecutor,
    ReportNotFoundError,
    get_available_fields,
)
from reportql.db import SqlAlchemyRunner, SqlReportStore, get_engine
from reportql.logging_setup import configure_logging

console = Console()

_CLAUSE_BREAK_RE = re.compile(
    r" (FROM|LEFT OUTER JOIN|JOIN|WHERE|GROUP BY|ORDER BY|LIMIT) "
)


# -----------------------------
# Display Helpers
# -----------------------------


def show_sql(sql_text: str, params: tuple) -> None:
    """Display the compiled SQL and its parameters."""
    formatted_sql = _CLAUSE_BREAK_RE.sub(lambda m: "\n" + m.group(1) + " ", sql_text)
    formatted_sql = formatted_sql.replace(" AND ", "\n  AND ")

    syntax = Syntax(formatted_sql, "sql", theme="monokai", line_numbers=False)
    console.print(Panel(
        syntax,
        title="[bold yellow]Compiled SQL[/bold yellow]",
        border_style="yellow",
    ))
    console.print(f"[dim]params:[/dim] {list(params)!r}")


def show_rows(rows: list[dict]) -> None:
    """Display result rows in a table."""
    if not rows:
        console.print("[dim]No results found.[/dim]")
        return

    table = Table(
        title=f"[bold cyan]Results ({len(rows)} rows)[/bold cyan]",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta",
    )
    columns = list(rows[0].keys())
    for col in columns:
        table.add_column(str(col), style="cyan")

    for row in rows[:50]:  # Limit display to 50 rows
        table.add_row(*[str(row[c]) if row[c] is not None else "NULL" for c in columns])

    if len(rows) > 50:
        console.print(f"[dim](Showing first 50 of {len(rows)} rows)[/dim]")

    console.print(table)


def show_fields(table_name: str) -> None:
    """Display the available-fields catalog for a table."""
    available = get_available_fields(table_name)

    table = Table(
        title=f"[bold cyan]Fields of {available.table}[/bold cyan]",
        box=box.ROUNDED,
        header_style="bold magenta",
    )
    table.add_column("Reference", style="cyan")
    table.add_column("Summable", style="green")

    for field_name in available.dimensions:
        table.add_row(field_name, "yes" if field_name in available.metrics else "")
    for related in available.related_tables:
        for field_name in related.fields:
            table.add_row(f"{related.key}.{field_name}", "")

    console.print(table)


def show_error(title: str, message: str) -> None:
    """Display an error message."""
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))


def load_config(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


# -----------------------------
# Main
# -----------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ReportQL report compiler")
    parser.add_argument("--log-level", default=None, help="Override REPORTQL_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    fields = sub.add_parser("fields", help="List fields available for a source table")
    fields.add_argument("table")

    for name, help_text in (("compile", "Compile a report config to SQL"), ("run", "Compile and execute a report config")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("table")
        cmd.add_argument("config", help="Path to a JSON report config")

    stored = sub.add_parser("run-stored", help="Execute a stored report by id")
    stored.add_argument("report_id", type=int)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command == "fields":
            show_fields(args.table)
            return 0

        if args.command == "compile":
            compiled = QueryCompiler().compile(args.table, load_config(args.config))
            show_sql(compiled.sql, compiled.params)
            return 0

        engine = get_engine()
        executor = ReportExecutor(
            runner=SqlAlchemyRunner(engine),
            store=SqlReportStore(engine),
        )

        if args.command == "run":
            config = load_config(args.config)
            compiled = executor.preview(args.table, config)
            show_sql(compiled.sql, compiled.params)
            with console.status("[bold cyan]Executing report...[/bold cyan]", spinner="dots"):
                rows = executor.execute(args.table, config)
        else:
            with console.status("[bold cyan]Executing stored report...[/bold cyan]", spinner="dots"):
                rows = executor.execute_stored(args.report_id)

        show_rows(rows)
        return 0

    except ReportConfigError as e:
        show_error(f"Invalid report ({e.code})", e.message)
        return 2
    except ReportNotFoundError as e:
        show_error("Not found", str(e))
        return 1
    except ReportConfigParseError as e:
        show_error("Stored report is unreadable", str(e))
        return 1
    except SQLAlchemyError as e:
        show_error("Database error", f"{type(e).__name__}: {e}")
        return 1
    except (OSError, json.JSONDecodeError) as e:
        show_error("Cannot read config", str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
