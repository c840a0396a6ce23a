from __future__ import annotations

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from config.settings import Settings
from relay.upstream import UpstreamClient


def responses_body(*texts: str, response_id: str = "resp_1") -> Dict[str, Any]:
    return {
        "id": response_id,
        "object": "response",
        "output": [
            {
                "type": "message",
                "role": "assistant",
                "content": [{"type": "output_text", "text": t, "annotations": []} for t in texts],
            }
        ],
    }


class FakeUpstream:
    """Stands in for the completion API and records every outbound payload."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.replies: List[Callable[[httpx.Request], httpx.Response]] = []

    def reply(self, status_code: int = 200, body: Any = None) -> None:
        self.replies.append(lambda _req: httpx.Response(status_code, json=body))

    def reply_with(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.replies.append(handler)

    @property
    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            return httpx.Response(200, json=responses_body("ok", response_id=f"resp_{len(self.requests)}"))
        return self.replies.pop(0)(request)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="sk-test-key",
        openai_model="gpt-4o-mini",
        openai_base_url="https://upstream.test/v1",
        temperature=0.7,
        upstream_timeout=None,
        assistant_name="Kodofeeds",
        detect_language=True,
        cors_allow_origins=["*"],
    )


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_client(fake_upstream):
    def _make(settings: Settings) -> TestClient:
        upstream = UpstreamClient(settings, transport=httpx.MockTransport(fake_upstream))
        return TestClient(create_app(settings, upstream=upstream))

    return _make


@pytest.fixture
def client(settings, make_client) -> TestClient:
    return make_client(settings)
