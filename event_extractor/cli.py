"""CLI for the event extractor."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from event_extractor.extractors import extract_event, extract_event_with_chatgpt
from event_extractor.models import EventPayload
from event_extractor.pipeline import extract_events_batch

# Load environment variables (override=True to beat shell env vars)
load_dotenv(override=True)

app = typer.Typer(
    name="event-extractor",
    help="Recover event details from arbitrary URLs",
    add_completion=False,
)
console = Console()

DISPLAY_FIELDS = [
    ("Title", "title"),
    ("Description", "description"),
    ("Starts", "starts_at"),
    ("Ends", "ends_at"),
    ("Venue", "venue"),
    ("City", "city"),
    ("State", "state"),
    ("Country", "country"),
    ("Organizer", "organizer"),
    ("Canonical URL", "canonical_url"),
]


def print_payload(payload: EventPayload) -> None:
    """Show a payload as a two-column table."""
    table = Table(title=payload.source_url, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", max_width=80)

    for label, field in DISPLAY_FIELDS:
        value = getattr(payload, field)
        table.add_row(label, value if value else "[dim]N/A[/dim]")

    console.print(table)
    if payload.title and payload.starts_at:
        console.print(f"[dim]Dedupe key: {payload.dedupe_key()}[/dim]")
    if payload.raw:
        console.print(f"[dim]raw: {json.dumps(payload.raw, default=str)}[/dim]")


@app.command()
def extract(
    url: str = typer.Argument(..., help="Event page or calendar URL"),
    ai: bool = typer.Option(False, "--ai", help="Use the LLM extractor instead of the deterministic pipeline"),
    as_json: bool = typer.Option(False, "--json", help="Print the wire JSON instead of a table"),
):
    """Extract event details from a single URL."""
    if ai:
        payload = asyncio.run(extract_event_with_chatgpt(url))
    else:
        payload = asyncio.run(extract_event(url))

    if as_json:
        typer.echo(json.dumps(payload.to_wire(), indent=2))
    else:
        print_payload(payload)


@app.command()
def batch(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File with one URL per line"),
    ai: bool = typer.Option(False, "--ai", help="Use the LLM extractor"),
    concurrency: int = typer.Option(5, "--concurrency", "-c", help="Concurrent extractions"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON lines here"),
):
    """Extract event details for every URL in a file."""
    urls = [
        line.strip()
        for line in file.read_text().splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    if not urls:
        console.print("[yellow]No URLs to extract[/yellow]")
        raise typer.Exit(0)

    payloads = asyncio.run(extract_events_batch(urls, use_ai=ai, max_concurrent=concurrency))

    if output:
        with open(output, "w") as f:
            for payload in payloads:
                f.write(json.dumps(payload.to_wire()) + "\n")
        console.print(f"[green]Saved {len(payloads)} payloads to {output}[/green]")
        return

    table = Table(title=f"Extracted events ({len(payloads)})")
    table.add_column("URL", style="dim", max_width=40)
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Starts", style="red")
    table.add_column("Location", style="green")

    for payload in payloads:
        location = ", ".join(p for p in (payload.city, payload.state) if p) or payload.venue or ""
        table.add_row(
            payload.source_url[:40],
            (payload.title or "")[:40],
            payload.starts_at or "",
            location[:40],
        )

    console.print(table)


if __name__ == "__main__":
    app()
