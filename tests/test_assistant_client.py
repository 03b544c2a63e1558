import random

import httpx
import pytest

from chitchat.services import assistant_client
from chitchat.services.assistant_client import (
    AssistantUpstreamError,
    build_payload,
    extract_answer,
    pick_api_key,
)

GOOD_BODY = {"candidates": [{"content": {"parts": [{"text": "Hello there"}]}}]}


class _Resp:
    def __init__(self, status_code=200, body=None, raise_on_json=False):
        self.status_code = status_code
        self._body = body if body is not None else GOOD_BODY
        self._raise_on_json = raise_on_json
        self.text = str(self._body)

    def json(self):
        if self._raise_on_json:
            raise ValueError("not json")
        return self._body


class _Client:
    def __init__(self, response=None, error=None):
        self.response = response or _Resp()
        self.error = error
        self.calls = []

    async def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def injected():
    def _inject(client):
        assistant_client.set_client(client)  # type: ignore[arg-type]
        return client

    yield _inject
    assistant_client.set_client(None)


def test_payload_carries_preamble_and_question():
    payload = build_payload("What is ChitChat?")
    parts = payload["contents"][0]["parts"]
    assert parts[0]["text"] == assistant_client.SYSTEM_PREAMBLE
    assert parts[1]["text"] == "What is ChitChat?"
    assert payload["generationConfig"] == {
        "temperature": 0.7,
        "topK": 1,
        "topP": 1,
        "maxOutputTokens": 1000,
    }


def test_extract_answer_reads_first_candidate():
    assert extract_answer(GOOD_BODY) == "Hello there"


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"text": 5}]}}]},
        None,
    ],
)
def test_extract_answer_rejects_malformed_payloads(body):
    with pytest.raises(AssistantUpstreamError):
        extract_answer(body)


def test_pick_api_key_chooses_among_configured_keys():
    keys = ["k1", "k2", "k3"]
    rng = random.Random(7)
    picks = {pick_api_key(keys, rng) for _ in range(30)}
    assert picks <= set(keys)
    assert len(picks) > 1


def test_pick_api_key_requires_keys():
    with pytest.raises(AssistantUpstreamError):
        pick_api_key([])


async def test_ask_assistant_posts_once_with_a_key(injected):
    client = injected(_Client())
    answer = await assistant_client.ask_assistant(
        "hi", api_keys=["only-key"], api_url="https://ai.test/generate"
    )
    assert answer == "Hello there"
    assert len(client.calls) == 1
    url, kwargs = client.calls[0]
    assert url == "https://ai.test/generate"
    assert kwargs["params"] == {"key": "only-key"}
    assert kwargs["json"]["contents"][0]["parts"][1]["text"] == "hi"


@pytest.mark.parametrize(
    "client",
    [
        _Client(response=_Resp(status_code=500)),
        _Client(response=_Resp(status_code=403)),
        _Client(response=_Resp(raise_on_json=True)),
        _Client(response=_Resp(body={"candidates": []})),
        _Client(error=httpx.ConnectError("boom")),
    ],
)
async def test_any_upstream_failure_raises_one_error_without_retry(injected, client):
    injected(client)
    with pytest.raises(AssistantUpstreamError):
        await assistant_client.ask_assistant("hi", api_keys=["k"])
    assert len(client.calls) == 1
