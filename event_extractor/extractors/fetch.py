"""HTTP fetcher shared by every extraction strategy.

Follows redirects, sends an identifying user agent, and enforces a fixed
timeout. Calendar responses are kept as raw bytes so iCalendar parsing never
sees HTML decoding artifacts.
"""

from typing import Optional

import httpx
from rich.console import Console

console = Console()

USER_AGENT = "EventExtractor/1.0 (+https://github.com/event-extractor)"
ACCEPT_HEADER = "text/html,application/xhtml+xml,application/json,text/calendar;q=0.9,*/*;q=0.8"
FETCH_TIMEOUT = 10.0

CALENDAR_CONTENT_TYPE = "text/calendar"


class FetchResult:
    """Result of a page fetch with error details."""

    def __init__(
        self,
        final_url: str,
        status: Optional[int] = None,
        content_type: Optional[str] = None,
        text: Optional[str] = None,
        body: Optional[bytes] = None,
        redirect_chain: Optional[list[str]] = None,
        error: Optional[str] = None,
    ):
        self.final_url = final_url
        self.status = status
        self.content_type = content_type
        self.text = text  # Decoded body, None for calendar responses
        self.body = body
        self.redirect_chain = redirect_chain or []
        self.error = error  # "timeout", "connection", etc.

    @property
    def ok(self) -> bool:
        return self.error is None and self.status is not None and self.status < 400

    @property
    def is_calendar(self) -> bool:
        return CALENDAR_CONTENT_TYPE in (self.content_type or "").lower()


def _error_reason(exc: Exception) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return "timeout"
    if isinstance(exc, httpx.ConnectError):
        return "connection"
    if isinstance(exc, httpx.TooManyRedirects):
        return "too_many_redirects"
    return type(exc).__name__.lower()


async def _get(client: httpx.AsyncClient, url: str, timeout: float) -> FetchResult:
    response = await client.get(
        url,
        headers={"User-Agent": USER_AGENT, "Accept": ACCEPT_HEADER},
        follow_redirects=True,
        timeout=timeout,
    )
    content_type = response.headers.get("content-type")
    result = FetchResult(
        final_url=str(response.url),
        status=response.status_code,
        content_type=content_type,
        body=response.content,
        redirect_chain=[str(r.url) for r in response.history],
    )
    if not result.is_calendar:
        result.text = response.text
    return result


async def fetch_page(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = FETCH_TIMEOUT,
) -> FetchResult:
    """Fetch a URL, never raising.

    Args:
        url: URL to fetch
        client: Optional shared client (tests pass one backed by a mock transport)
        timeout: Request timeout in seconds

    Returns:
        FetchResult; network failures are reported in ``error`` with no status
    """
    try:
        if client is not None:
            result = await _get(client, url, timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
                result = await _get(own_client, url, timeout)
    except Exception as e:
        reason = _error_reason(e)
        console.print(f"[dim]Fetch failed for {url}: {reason}[/dim]")
        return FetchResult(final_url=url, error=reason)

    if result.status >= 400:
        console.print(f"[yellow]HTTP {result.status} for {url}[/yellow]")
    elif result.redirect_chain:
        console.print(f"[dim]Redirected {url} -> {result.final_url}[/dim]")

    return result
