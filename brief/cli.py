"""
Market Brief CLI

Commands:
- brief run        Fetch everything once and print the brief
- brief symbols    Show the configured symbol sets
- brief serve      Start the JSON endpoint
"""
from __future__ import annotations

import json

import typer

app = typer.Typer(
    add_completion=False,
    help="""Market Brief — morning market snapshot

\b
  brief run                  Headlines, quotes, calendar
  brief run --json           Same, as the endpoint's JSON payload
  brief symbols              Symbol sets and display names
  brief serve                Serve GET /api/market-data
""",
)


@app.command("run")
def run_cmd(
    symbol_set: str = typer.Option(None, "--symbol-set", "-s", help="Symbol set name"),
    freshness_hours: float = typer.Option(None, "--freshness-hours", "-f", help="Headline recency window (hours)"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON payload"),
):
    """Run one aggregation and print the brief."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    from brief.config import load_settings
    from brief.response import build_response
    from brief.utils.logging import log_event, setup_logging

    settings = load_settings()
    setup_logging(settings.log_level)

    query = {}
    if symbol_set:
        query["symbolSet"] = symbol_set
    if freshness_hours is not None:
        query["freshnessWindowHours"] = freshness_hours

    status, body = build_response(settings, query)
    if status != 200:
        typer.echo(json.dumps(body))
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(body, indent=2))
        return

    console = Console()

    def _panel(title: str, lines: list[str], style: str = "cyan") -> Panel:
        return Panel(Text("\n".join(lines)), title=f"[bold]{title}[/bold]", border_style=style, expand=False)

    cal = body["economicCalendar"]
    console.print(_panel("Headlines", body["newsHeadlines"]))
    console.print(_panel("Markets", body["marketData"], "green"))
    console.print(_panel("Data announcements", cal["announcements"], "magenta"))
    console.print(_panel("Today", cal["today"], "magenta"))
    console.print(_panel("Tomorrow", cal["tomorrow"], "magenta"))
    console.print(_panel("Page headlines", body["scrapedHeadlines"], "blue"))
    if body["degradedSources"]:
        log_event("degraded_sources", {"sources": body["degradedSources"], "asof": body["asof"]})
    console.print(f"[dim]as of {body['asof']}[/dim]")


@app.command("symbols")
def symbols_cmd(
    name: str = typer.Argument(None, help="Only show this symbol set"),
):
    """List symbol sets."""
    from rich.console import Console
    from rich.table import Table

    from brief.sources.quotes import SYMBOL_SETS

    if name and name.strip().lower() not in SYMBOL_SETS:
        typer.echo(f"Unknown symbol set '{name}'. Known: {', '.join(SYMBOL_SETS)}")
        raise typer.Exit(code=1)
    wanted = [name.strip().lower()] if name else list(SYMBOL_SETS)

    console = Console()
    for set_name in wanted:
        table = Table(title=f"{set_name} ({len(SYMBOL_SETS[set_name])} symbols)", show_header=True, expand=False)
        table.add_column("Symbol", style="bold")
        table.add_column("Name")
        table.add_column("Section")
        table.add_column("Price format", style="dim")
        for spec in SYMBOL_SETS[set_name]:
            table.add_row(spec.symbol, spec.display_name, spec.section, spec.price_style)
        console.print(table)


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(5001, "--port", "-p", help="Port"),
    debug: bool = typer.Option(False, "--debug", help="Flask debug mode"),
):
    """Start the Flask endpoint."""
    from dashboard.app import run

    run(host=host, port=port, debug=debug)


def main():
    app()


if __name__ == "__main__":
    main()
