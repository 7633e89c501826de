"""Shared test fixtures for the assembly_cli test suite.

WHY: Client, poller, question, and CLI tests all need the same fake API:
a scripted sequence of HTTP responses plus a record of what was sent.

HOW: ScriptedAPI feeds httpx.MockTransport. Tests queue JSON bodies,
raw responses, or exceptions, then inspect ScriptedAPI.requests.
FakeClock stands in for time.monotonic and the poller's sleep.

RULES:
- No test touches the network
- No test sleeps for real
- Settings use example.com URLs and a fixed token
"""

from __future__ import annotations

import json
from typing import Any, List, Union

import httpx
import pytest

from assembly_cli.api.client import AssemblyClient
from assembly_cli.config import Settings

TOKEN = "test-token"
TRANSCRIPT_URL = "https://api.example.com/v2/transcript"
QUESTION_URL = "https://api.example.com/lemur/v3/generate/question-answer"


class ScriptedAPI:
    """Replays queued responses in order and records every request."""

    def __init__(self) -> None:
        self._queue: List[Union[httpx.Response, Exception]] = []
        self.requests: List[httpx.Request] = []

    def queue_json(self, body: Any, status_code: int = 200) -> None:
        self._queue.append(httpx.Response(status_code, json=body))

    def queue(self, item: Union[httpx.Response, Exception]) -> None:
        self._queue.append(item)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._queue:
            raise AssertionError(
                "unexpected request: {} {}".format(request.method, request.url)
            )
        item = self._queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def body(self, index: int) -> Any:
        """Decoded JSON body of the index-th request."""
        return json.loads(self.requests[index].content)

    @property
    def methods(self) -> List[str]:
        return [r.method for r in self.requests]


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_token=TOKEN,
        transcript_url=TRANSCRIPT_URL,
        question_url=QUESTION_URL,
        poll_interval=10.0,
    )


@pytest.fixture
def api() -> ScriptedAPI:
    return ScriptedAPI()


@pytest.fixture
def client(settings, api):
    with AssemblyClient(settings, transport=api.transport) as c:
        yield c


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def completed_payload():
    """A trimmed completed transcript as the status endpoint returns it."""
    return {
        "id": "5551722-f677-48a4-a5b3-2f3e2e1a5f1e",
        "status": "completed",
        "audio_url": "https://example.com/audio/interview.mp3",
        "text": "How are you doing today? I am fantastic, thank you.",
        "words": [
            {"text": "How", "start": 120, "end": 250, "confidence": 0.97},
            {"text": "are", "start": 260, "end": 380, "confidence": 0.95},
        ],
        "iab_categories_result": {"status": "success", "results": []},
        "entities": [],
        "error": None,
    }
