"""LLM event extraction via an OpenAI-compatible chat completions API.

An alternative to the deterministic pipeline with the same output contract:
- Shared fetcher (same headers and timeout as the deterministic path)
- HTML truncated to MAX_HTML_CHARS before prompting
- Strict JSON schema response format
- Retries with exponential backoff on timeouts and 5xx/429
- Never raises; any failure becomes a minimal payload with raw.error
"""

import asyncio
import json
import os
import re
from datetime import datetime
from typing import Any, Optional

import httpx
from rich.console import Console

from event_extractor.extractors.fetch import fetch_page
from event_extractor.models import EventPayload
from event_extractor.normalizers.dates import to_iso, utc_now
from event_extractor.validators import validate_url

console = Console()

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o"
MAX_HTML_CHARS = 50_000
LLM_TIMEOUT = httpx.Timeout(120.0, connect=10.0)

METHOD = "chatgpt"

LLM_FIELDS = {
    "title": "Event title",
    "description": "Full event description",
    "startsAt": "Start as ISO 8601 datetime, e.g. 2026-07-13T00:00:00.000Z",
    "endsAt": "End as ISO 8601 datetime",
    "city": "City name",
    "state": "State or province",
    "country": "Country name",
    "venue": "Venue name",
    "organizer": "Organizer or host organization",
}

# Strict mode: every property required, unknowns come back as null
EVENT_SCHEMA = {
    "type": "object",
    "properties": {
        name: {"type": ["string", "null"], "description": description}
        for name, description in LLM_FIELDS.items()
    },
    "required": list(LLM_FIELDS),
    "additionalProperties": False,
}

SYSTEM_PROMPT = """You are an expert event data extractor. Extract event information from HTML content and return it as a JSON object with exactly these fields: title, description, startsAt, endsAt, city, state, country, venue, organizer.

Rules:
- Use ISO 8601 datetime format for dates (e.g. 2026-07-13T00:00:00.000Z)
- If a field cannot be found, use null
- If only one date is found, use it for both startsAt and endsAt
- Focus on the single most prominent event on the page
- Ignore side events, workshops and ancillary sessions
- Ignore outdated information when upcoming dates are available; today is {today}
- Make sure city and state belong to the same event as the dates
- Return ONLY the JSON object, no markdown, no commentary"""


class ExtractionError(Exception):
    """Expected failure in the LLM path (fetch, API or response)."""


def get_openai_token() -> str:
    """Get OpenAI API key from environment."""
    token = os.environ.get("OPENAI_API_KEY")
    if not token:
        raise ExtractionError("OPENAI_API_KEY environment variable not set")
    return token


def get_model() -> str:
    return os.environ.get("EVENT_EXTRACTOR_MODEL", DEFAULT_MODEL)


def get_base_url() -> str:
    return os.environ.get("OPENAI_BASE_URL", DEFAULT_BASE_URL).rstrip("/")


def build_messages(url: str, html: str, now: Optional[datetime] = None) -> list[dict[str, str]]:
    """Chat messages for one page, HTML truncated to MAX_HTML_CHARS."""
    today = (now or utc_now()).strftime("%Y-%m-%d")
    return [
        {"role": "system", "content": SYSTEM_PROMPT.format(today=today)},
        {
            "role": "user",
            "content": (
                f"Extract event information from this HTML content for URL: {url}\n\n"
                f"HTML Content:\n{html[:MAX_HTML_CHARS]}"
            ),
        },
    ]


async def call_llm_with_retry(
    client: httpx.AsyncClient,
    messages: list[dict[str, str]],
    token: str,
    model: str,
    max_retries: int = 2,
) -> dict[str, Any]:
    """Call the chat completions API. Returns the decoded response body."""
    payload = {
        "model": model,
        "messages": messages,
        "temperature": 0.1,
        "max_tokens": 1000,
        "response_format": {
            "type": "json_schema",
            "json_schema": {"name": "event_payload", "strict": True, "schema": EVENT_SCHEMA},
        },
    }
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {token}",
    }

    last_error = "no attempts"
    for attempt in range(max_retries):
        try:
            response = await client.post(
                f"{get_base_url()}/chat/completions",
                json=payload,
                headers=headers,
                timeout=LLM_TIMEOUT,
            )
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status != 429 and status < 500:
                raise ExtractionError(f"Model API returned HTTP {status}") from e
            last_error = f"HTTP {status}"
        except httpx.TimeoutException:
            last_error = "timeout"
        except (httpx.TransportError, json.JSONDecodeError) as e:
            last_error = f"{type(e).__name__}: {e}"

        console.print(f"[yellow]Attempt {attempt+1}: {last_error}[/yellow]")
        if attempt < max_retries - 1:
            await asyncio.sleep(2 ** attempt)

    raise ExtractionError(f"Model API failed after {max_retries} attempts: {last_error}")


def parse_json_response(content: str) -> Optional[dict]:
    """Parse JSON from LLM response, handling code fences."""
    if not content:
        return None

    # Try direct parse first
    try:
        data = json.loads(content)
        return data if isinstance(data, dict) else None
    except json.JSONDecodeError:
        pass

    patterns = [
        r"```(?:json)?\s*(.*?)```",
        r"\{.*\}",
    ]
    for pattern in patterns:
        match = re.search(pattern, content, re.DOTALL)
        if match:
            try:
                data = json.loads(match.group(1) if "```" in pattern else match.group(0))
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return data

    return None


def _value(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value if value and value.lower() not in ("null", "none", "n/a") else None


def payload_from_response(
    url: str,
    final_url: str,
    data: dict,
    model: str,
    usage: Optional[dict] = None,
) -> EventPayload:
    """Build a payload from the model's JSON object."""
    starts_at = to_iso(_value(data, "startsAt"))
    ends_at = to_iso(_value(data, "endsAt")) or starts_at
    usage = usage or {}

    return EventPayload(
        source_url=url,
        canonical_url=final_url,
        title=_value(data, "title"),
        description=_value(data, "description"),
        starts_at=starts_at,
        ends_at=ends_at,
        city=_value(data, "city"),
        state=_value(data, "state"),
        country=_value(data, "country"),
        venue=_value(data, "venue"),
        organizer=_value(data, "organizer"),
        raw={
            "extractionMethod": METHOD,
            "model": model,
            "tokensUsed": usage.get("total_tokens", 0),
            "promptTokens": usage.get("prompt_tokens", 0),
            "completionTokens": usage.get("completion_tokens", 0),
        },
    )


async def _extract_with_client(
    url: str,
    client: httpx.AsyncClient,
    token: str,
    model: str,
    now: Optional[datetime],
    max_retries: int,
) -> EventPayload:
    fetched = await fetch_page(url, client=client)
    if not fetched.ok:
        reason = fetched.error or f"HTTP {fetched.status}"
        raise ExtractionError(f"Failed to fetch URL: {reason}")

    html = fetched.text
    if html is None:
        html = (fetched.body or b"").decode("utf-8", errors="replace")

    console.print(f"[dim]Sending {min(len(html), MAX_HTML_CHARS)} chars of {url} to {model}[/dim]")

    messages = build_messages(url, html, now)
    response = await call_llm_with_retry(client, messages, token, model, max_retries=max_retries)

    choices = response.get("choices") or [{}]
    content = (choices[0].get("message") or {}).get("content")
    if not content:
        raise ExtractionError("No response from model")

    data = parse_json_response(content.strip())
    if data is None:
        raise ExtractionError("Model returned invalid JSON")

    return payload_from_response(url, fetched.final_url, data, model, response.get("usage"))


async def extract_event_with_chatgpt(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    now: Optional[datetime] = None,
    max_retries: int = 2,
) -> EventPayload:
    """Extract event details from a URL with a language model.

    Args:
        url: Event page URL as submitted
        client: Optional httpx client used for both the page and the API call
        api_key: API key (default: OPENAI_API_KEY)
        model: Model name (default: EVENT_EXTRACTOR_MODEL or gpt-4o)
        now: Reference date given to the model for "upcoming"
        max_retries: API attempts on timeouts and 5xx/429

    Returns:
        EventPayload; on any failure ``{sourceUrl, canonicalUrl: url, raw.error}``
    """
    model = model or get_model()

    try:
        is_valid, reason = validate_url(url)
        if not is_valid:
            raise ExtractionError(reason)

        token = api_key or get_openai_token()

        if client is not None:
            payload = await _extract_with_client(url, client, token, model, now, max_retries)
        else:
            async with httpx.AsyncClient(timeout=LLM_TIMEOUT) as own_client:
                payload = await _extract_with_client(url, own_client, token, model, now, max_retries)

    except Exception as e:
        console.print(f"[red]LLM extraction failed for {url}: {e}[/red]")
        return EventPayload.minimal(url or "", extractionMethod=METHOD, error=str(e) or type(e).__name__)

    console.print(
        f"[green]Extracted:[/green] {(payload.title or 'untitled')[:50]} "
        f"[dim](model: {model}, tokens: {payload.raw['tokensUsed']})[/dim]"
    )
    return payload
