from __future__ import annotations

import json

import httpx

from relay.client.session import (
    FAILURE_MESSAGE,
    TOKEN_KEY,
    ChatSession,
    FileTokenStore,
    MemoryTokenStore,
)
from tests.conftest import responses_body


class TypingRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, on: bool) -> None:
        self.events.append(on)


def test_blank_input_is_a_no_op(client, fake_upstream):
    typing = TypingRecorder()
    session = ChatSession("/chat", http=client, on_typing=typing)

    assert session.send("   ") is None
    assert fake_upstream.requests == []
    assert typing.events == []


def test_first_send_has_no_token_and_stores_reply_token(client, fake_upstream):
    fake_upstream.reply(200, responses_body("Hello there", response_id="resp_first"))
    store = MemoryTokenStore()
    session = ChatSession("/chat", store=store, http=client)

    assert session.send(" hello ") == "Hello there"
    assert "previous_response_id" not in fake_upstream.payloads[0]
    assert fake_upstream.payloads[0]["input"] == "hello"
    assert store.load() == "resp_first"


def test_second_send_threads_the_token(client, fake_upstream):
    session = ChatSession("/chat", http=client)
    session.send("hello")
    session.send("tell me more")

    assert fake_upstream.payloads[1]["previous_response_id"] == "resp_1"
    assert session.previous_response_id == "resp_2"


def test_returning_client_resumes_from_store(client, fake_upstream, tmp_path):
    store = FileTokenStore(tmp_path / "widget.json")
    store.save("resp_from_last_week")

    session = ChatSession("/chat", store=FileTokenStore(tmp_path / "widget.json"), http=client)
    session.send("I'm back")

    assert fake_upstream.payloads[0]["previous_response_id"] == "resp_from_last_week"


def test_failure_shows_generic_message_and_keeps_token(client, fake_upstream):
    typing = TypingRecorder()
    store = MemoryTokenStore("resp_keep")
    session = ChatSession("/chat", store=store, http=client, on_typing=typing)
    fake_upstream.reply(500, {"error": {"message": "upstream exploded"}})

    assert session.send("hello") == FAILURE_MESSAGE
    assert store.load() == "resp_keep"
    assert typing.events == [True, False]


def test_network_failure_hides_typing_indicator():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    typing = TypingRecorder()
    http = httpx.Client(transport=httpx.MockTransport(refuse), base_url="http://relay.test")
    session = ChatSession("/chat", http=http, on_typing=typing)

    assert session.send("hello") == FAILURE_MESSAGE
    assert typing.events == [True, False]


def test_success_hides_typing_indicator(client):
    typing = TypingRecorder()
    ChatSession("/chat", http=client, on_typing=typing).send("hello")
    assert typing.events == [True, False]


def test_reset_starts_fresh_conversation(client, fake_upstream, tmp_path):
    store = FileTokenStore(tmp_path / "widget.json")
    session = ChatSession("/chat", store=store, http=client)
    session.send("hello")
    session.reset()
    session.send("new topic")

    assert store.load() == "resp_2"
    assert "previous_response_id" not in fake_upstream.payloads[1]


def test_file_store_keeps_token_as_plain_string(tmp_path):
    path = tmp_path / "nested" / "widget.json"
    store = FileTokenStore(path)
    assert store.load() is None

    store.save("resp_123")
    assert json.loads(path.read_text(encoding="utf-8")) == {TOKEN_KEY: "resp_123"}

    store.clear()
    assert store.load() is None


def test_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "widget.json"
    path.write_text("{oops", encoding="utf-8")
    assert FileTokenStore(path).load() is None


class ReadOnlyStore(MemoryTokenStore):
    def save(self, token: str) -> None:
        raise PermissionError(13, "Permission denied", "widget.json")


def test_store_write_failure_shows_generic_message(client):
    typing = TypingRecorder()
    session = ChatSession("/chat", store=ReadOnlyStore(), http=client, on_typing=typing)

    assert session.send("hello") == FAILURE_MESSAGE
    assert typing.events == [True, False]
