"""Batch extraction over many submitted URLs."""

import asyncio
from typing import Optional

import httpx
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from event_extractor.extractors import extract_event, extract_event_with_chatgpt
from event_extractor.models import EventPayload

console = Console()

MAX_CONCURRENT = 5


async def extract_events_batch(
    urls: list[str],
    use_ai: bool = False,
    max_concurrent: int = MAX_CONCURRENT,
    client: Optional[httpx.AsyncClient] = None,
) -> list[EventPayload]:
    """Extract events from multiple URLs in parallel.

    Args:
        urls: URLs to process
        use_ai: Use the LLM extractor instead of the deterministic pipeline
        max_concurrent: Maximum concurrent extractions
        client: Optional shared httpx client

    Returns:
        Payloads in the same order as urls
    """
    semaphore = asyncio.Semaphore(max_concurrent)
    results: list[Optional[EventPayload]] = [None] * len(urls)
    extract = extract_event_with_chatgpt if use_ai else extract_event

    async def process(index: int, url: str) -> None:
        async with semaphore:
            results[index] = await extract(url, client=client)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
    ) as progress:
        task = progress.add_task("Extracting events...", total=len(urls))

        for coro in asyncio.as_completed([process(i, url) for i, url in enumerate(urls)]):
            await coro
            progress.advance(task)

    payloads = [p for p in results if p is not None]
    with_title = sum(1 for p in payloads if p.title)
    with_dates = sum(1 for p in payloads if p.starts_at)
    console.print(
        f"\n[green]Extracted {len(payloads)} URLs[/green] "
        f"[dim](title: {with_title}, dates: {with_dates})[/dim]"
    )

    return payloads
