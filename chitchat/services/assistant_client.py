"""Client for the generative-text upstream behind the AI assistant."""

from __future__ import annotations

import logging
import random
from typing import Any, Optional, Sequence

import httpx

from chitchat.core.config import settings

logger = logging.getLogger(__name__)

SYSTEM_PREAMBLE = (
    "You are a smart assistant inside ChitChat, a WhatsApp-like messaging app where:\n"
    "- users sign up with an email address only (it must end with @gmail.com)\n"
    '- every user gets a unique 9-digit number starting with "73"\n'
    "- the unique number can be shared with friends so they can start a chat\n"
    "- the chats page lists conversations and has a floating button to start a new one\n"
    "- settings let users change their profile picture, the theme (light/dark/system) "
    "and view their unique number\n"
    "- conversations can be given custom names\n"
    "- every user can ask the assistant only 3 questions every 5 hours\n"
    "Answer helpfully and concisely, in Arabic, any question about the app or any "
    "general topic."
)

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 1,
    "topP": 1,
    "maxOutputTokens": 1000,
}


class AssistantUpstreamError(Exception):
    """Any failure of the upstream call: transport, status, or payload shape."""


_CLIENT: httpx.AsyncClient | None = None


def set_client(client: httpx.AsyncClient | None) -> None:
    global _CLIENT
    _CLIENT = client


def _get_client(timeout_seconds: float) -> httpx.AsyncClient:
    global _CLIENT
    if _CLIENT is not None:
        return _CLIENT
    logger.warning("Assistant httpx client not set via lifespan; creating a fallback client.")
    _CLIENT = httpx.AsyncClient(timeout=timeout_seconds)
    return _CLIENT


def pick_api_key(keys: Sequence[str], rng: Optional[random.Random] = None) -> str:
    """Chooses one of the equivalent credentials at random."""
    if not keys:
        raise AssistantUpstreamError("No assistant API keys configured")
    chooser = rng or random
    return chooser.choice(list(keys))


def build_payload(text: str) -> dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": SYSTEM_PREAMBLE}, {"text": text}]}],
        "generationConfig": dict(GENERATION_CONFIG),
    }


def extract_answer(data: Any) -> str:
    """Returns the first text part of the first candidate, or raises."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise AssistantUpstreamError("Invalid response from assistant upstream") from e
    if not isinstance(text, str):
        raise AssistantUpstreamError("Invalid response from assistant upstream")
    return text


async def ask_assistant(
    text: str,
    *,
    api_keys: Optional[Sequence[str]] = None,
    api_url: Optional[str] = None,
    timeout_seconds: Optional[float] = None,
) -> str:
    """Sends one question upstream. Single attempt, no retry."""
    keys = api_keys if api_keys is not None else settings.AI_API_KEYS
    url = api_url or settings.AI_API_URL
    timeout = (
        timeout_seconds if timeout_seconds is not None else settings.AI_TIMEOUT_SECONDS
    )
    key = pick_api_key(keys)
    client = _get_client(timeout)

    try:
        resp = await client.post(
            url,
            params={"key": key},
            headers={"Content-Type": "application/json"},
            json=build_payload(text),
            timeout=timeout,
        )
    except httpx.HTTPError as e:
        logger.error(f"Assistant upstream transport error: {type(e).__name__} - {e}")
        raise AssistantUpstreamError("Assistant upstream unreachable") from e

    if resp.status_code < 200 or resp.status_code >= 300:
        logger.error(
            f"Assistant upstream returned {resp.status_code}: {resp.text[:500]}"
        )
        raise AssistantUpstreamError(f"Assistant upstream error ({resp.status_code})")

    try:
        data = resp.json()
    except ValueError as e:
        raise AssistantUpstreamError("Assistant upstream returned non-JSON body") from e

    return extract_answer(data)
