"""CLI for the event scraper."""

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from event_scraper.config import ScraperConfig, ScraperConfigError
from event_scraper.extractors.registry import ExtractorRegistry
from event_scraper.fetch import HttpClient, fetch_page
from event_scraper.models import EventPacket
from event_scraper.paginators import default_paginators, find_next_page_url
from event_scraper.processing.coverage import coverage_report
from event_scraper.processing.ledger import JsonFileLedger, MemoryLedger
from event_scraper.scraper import UniversalScraper

# Load environment variables (override=True to beat shell env vars)
load_dotenv(override=True)

app = typer.Typer(
    name="event-scraper",
    help="Structured event extraction from venue and calendar pages",
    add_completion=False,
)
console = Console()

DEFAULT_FLOW = "cli"


def build_config(
    url: str,
    search: Optional[str] = None,
    exclude: Optional[str] = None,
    venue_name: Optional[str] = None,
    max_pages: Optional[int] = None,
) -> ScraperConfig:
    return ScraperConfig.from_env(
        source_url=url,
        search=search,
        exclude_keywords=exclude,
        venue_name=venue_name,
        max_pages=max_pages,
    )


def print_packet(packet: EventPacket) -> None:
    if packet.is_raw_html:
        console.print(f"\n[bold]{packet.title}[/bold] [dim]({packet.extraction_method})[/dim]")
        console.print(f"  Source: {packet.body.get('source_url')}")
        console.print(f"  Section: {len(packet.body.get('raw_html', ''))} chars")
        return

    event = packet.event
    table = Table(title=packet.title)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green", max_width=70)
    table.add_row("method", packet.extraction_method or "?")
    table.add_row("identity", (packet.event_identifier or "")[:16])
    if event is not None:
        for key, value in event.to_record().items():
            if key in ("title", "description"):
                continue
            table.add_row(key, str(value)[:70])
    console.print(table)


def _pull(scraper: UniversalScraper, config: ScraperConfig, flow: str) -> Optional[EventPacket]:
    try:
        return scraper.get_next_event(config, flow)
    except ScraperConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command("next")
def next_event(
    url: str = typer.Argument(..., help="Listing, calendar or feed URL"),
    flow: str = typer.Option(DEFAULT_FLOW, "--flow", "-f", help="Flow context for dedup"),
    search: str = typer.Option(None, "--search", "-s", help="Include terms (comma-separated)"),
    exclude: str = typer.Option(None, "--exclude", "-x", help="Exclude terms (comma-separated)"),
    venue_name: str = typer.Option(None, "--venue-name", help="Venue name override"),
    ledger_path: Path = typer.Option(None, "--ledger", help="Ledger file (default: .cache/processed.json)"),
    as_json: bool = typer.Option(False, "--json", help="Print the packet as JSON"),
):
    """Pull the next unprocessed event from a source."""
    config = build_config(url, search, exclude, venue_name)
    ledger = JsonFileLedger(ledger_path)

    with HttpClient() as client:
        packet = _pull(UniversalScraper(client, ledger), config, flow)

    if packet is None:
        console.print("[yellow]No new events[/yellow]")
        raise typer.Exit(0)

    if as_json:
        typer.echo(packet.model_dump_json(indent=2))
    else:
        print_packet(packet)


@app.command()
def drain(
    url: str = typer.Argument(..., help="Listing, calendar or feed URL"),
    flow: str = typer.Option(DEFAULT_FLOW, "--flow", "-f", help="Flow context for dedup"),
    limit: int = typer.Option(50, "--limit", "-l", help="Max events to pull (0 = until exhausted)"),
    ledger_path: Path = typer.Option(None, "--ledger", help="Ledger file (default: .cache/processed.json)"),
):
    """Pull events one at a time until the source is exhausted."""
    config = build_config(url)
    ledger = JsonFileLedger(ledger_path)
    packets: list[EventPacket] = []

    with HttpClient() as client:
        scraper = UniversalScraper(client, ledger)
        while limit <= 0 or len(packets) < limit:
            packet = _pull(scraper, config, flow)
            if packet is None:
                break
            packets.append(packet)

    if not packets:
        console.print("[yellow]No new events[/yellow]")
        return

    table = Table(title=f"Pulled events ({len(packets)})")
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Date", style="red")
    table.add_column("Venue", style="green", max_width=30)
    table.add_column("Method", style="blue")
    for packet in packets:
        event = packet.event
        table.add_row(
            packet.title[:40],
            event.start_date if event else "?",
            event.venue_name if event and event.venue_name else "-",
            packet.extraction_method or "?",
        )
    console.print(table)


@app.command()
def detect(
    url: str = typer.Argument(..., help="Page to inspect"),
):
    """Report which extractors claim a page and how many events each yields."""
    with HttpClient() as client:
        content = fetch_page(client, url)
        if not content:
            raise typer.Exit(1)
        registry = ExtractorRegistry.default(client)

        table = Table(title=f"Extractors for {url}")
        table.add_column("Extractor", style="cyan")
        table.add_column("Claims", style="blue")
        table.add_column("Events", style="green")
        for extractor in registry.extractors:
            claims = extractor.can_handle(content)
            result = registry.run(extractor, content, url) if claims else None
            table.add_row(
                extractor.identifier(),
                "yes" if claims else "-",
                str(len(result)) if result else "0",
            )
        console.print(table)

    next_url = find_next_page_url(default_paginators(), url, content)
    console.print(f"  Next page: {next_url or '[dim]none[/dim]'}")


@app.command("test")
def test_source(
    url: str = typer.Argument(..., help="Source to check"),
    venue_name: str = typer.Option(None, "--venue-name", help="Venue name override"),
):
    """Dry-run one pull and report time and venue data coverage."""
    config = build_config(url, venue_name=venue_name)

    with HttpClient() as client:
        # Throwaway ledger: a dry run must not consume events
        packet = _pull(UniversalScraper(client, MemoryLedger()), config, DEFAULT_FLOW)

    report = coverage_report(packet)
    if report.status == "empty":
        console.print("[yellow]No events found[/yellow]")
        raise typer.Exit(1)

    print_packet(packet)
    for warning in report.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")
    if report.ok:
        console.print("[bold green]Coverage OK[/bold green]")


@app.command("ledger-stats")
def ledger_stats(
    ledger_path: Path = typer.Option(None, "--ledger", help="Ledger file (default: .cache/processed.json)"),
):
    """Show processed-event counts per flow context."""
    ledger = JsonFileLedger(ledger_path)
    counts = ledger.stats()
    if not counts:
        console.print("[dim]Ledger is empty[/dim]")
        return

    table = Table(title=f"Ledger {ledger.path}")
    table.add_column("Flow", style="cyan")
    table.add_column("Processed", style="green", justify="right")
    for flow, count in sorted(counts.items()):
        table.add_row(flow, str(count))
    console.print(table)


@app.command("ledger-clear")
def ledger_clear(
    flow: str = typer.Option(None, "--flow", "-f", help="Only this flow context (default: all)"),
    ledger_path: Path = typer.Option(None, "--ledger", help="Ledger file (default: .cache/processed.json)"),
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Forget processed events so they can be pulled again."""
    if not confirm:
        target = f"flow '{flow}'" if flow else "all flows"
        typer.confirm(f"Clear processed events for {target}?", abort=True)

    dropped = JsonFileLedger(ledger_path).clear(flow)
    console.print(f"[green]Cleared {dropped} entries[/green]")


if __name__ == "__main__":
    app()
