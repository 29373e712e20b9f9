import json as jsonlib
import types

import pytest
import requests

from codegate import config, llm_client
from codegate.credentials import CredentialPool
from codegate.errors import BackendError
from codegate.llm_prompts import ACKNOWLEDGEMENT, SYSTEM_INSTRUCTION_PREFIX, SYSTEM_PROMPT


class FakeResp:
    def __init__(self, status, payload=None, text=None):
        self.status_code = status
        self._payload = payload
        self.text = text if text is not None else jsonlib.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _ok(text):
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _install_post(monkeypatch, responder):
    captured = {"urls": [], "bodies": [], "headers": [], "timeouts": []}

    def fake_post(url, headers=None, json=None, timeout=None, **kwargs):
        captured["urls"].append(url)
        captured["bodies"].append(json)
        captured["headers"].append(headers or {})
        captured["timeouts"].append(timeout)
        return responder()

    monkeypatch.setattr(
        llm_client,
        "requests",
        types.SimpleNamespace(post=fake_post, RequestException=requests.RequestException),
    )
    return captured


def test_create_session_uses_next_key_and_seed_history():
    pool = CredentialPool(["k1", "k2"])
    s1 = llm_client.create_session(pool)
    s2 = llm_client.create_session(pool)
    assert (s1.credential, s2.credential) == ("k1", "k2")
    assert (s1.key_index, s2.key_index) == (0, 1)
    assert s1.history[0] == {"role": "user", "parts": [{"text": SYSTEM_INSTRUCTION_PREFIX + SYSTEM_PROMPT}]}
    assert s1.history[1] == {"role": "model", "parts": [{"text": ACKNOWLEDGEMENT}]}
    assert s1.model == config.GEMINI_MODEL


def test_send_posts_history_plus_prompt(monkeypatch):
    captured = _install_post(monkeypatch, lambda: FakeResp(200, _ok("```js\nx()\n```")))
    session = llm_client.start_session("secret", [{"role": "user", "parts": [{"text": "seed"}]}], model="m-1")

    text = session.send("make x")

    assert text == "```js\nx()\n```"
    assert captured["urls"] == [f"{config.GEMINI_API_BASE}/models/m-1:generateContent"]
    contents = captured["bodies"][0]["contents"]
    assert contents[0]["parts"][0]["text"] == "seed"
    assert contents[-1] == {"role": "user", "parts": [{"text": "make x"}]}
    assert captured["headers"][0]["x-goog-api-key"] == "secret"
    assert "secret" not in captured["urls"][0]
    assert captured["timeouts"][0] == config.LLM_TIMEOUT_SECS
    # The seed history is not mutated by a send
    assert len(session.history) == 1


def test_send_joins_multiple_text_parts(monkeypatch):
    payload = {"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}]}
    _install_post(monkeypatch, lambda: FakeResp(200, payload))
    assert llm_client.start_session("k", []).send("q") == "ab"


def test_quota_reply_keeps_structured_status(monkeypatch):
    body = {"error": {"code": 429, "message": "Resource has been exhausted (e.g. check quota).", "status": "RESOURCE_EXHAUSTED"}}
    _install_post(monkeypatch, lambda: FakeResp(429, body))
    with pytest.raises(BackendError) as ei:
        llm_client.start_session("k", []).send("q")
    err = ei.value
    assert err.status_code == 429
    assert err.status == "RESOURCE_EXHAUSTED"
    assert "exhausted" in err.message


def test_non_json_error_body_uses_text(monkeypatch):
    _install_post(monkeypatch, lambda: FakeResp(503, None, text="Service Unavailable"))
    with pytest.raises(BackendError) as ei:
        llm_client.start_session("k", []).send("q")
    assert ei.value.status_code == 503
    assert ei.value.message == "Service Unavailable"
    # Backend text is passed through unchanged; the code lives on the attributes
    assert str(ei.value) == "Service Unavailable"


def test_empty_candidates_raise(monkeypatch):
    _install_post(monkeypatch, lambda: FakeResp(200, {"candidates": []}))
    with pytest.raises(BackendError, match="Empty response"):
        llm_client.start_session("k", []).send("q")


def test_transport_error_becomes_backend_error(monkeypatch):
    def boom():
        raise requests.ConnectionError("connection refused")

    _install_post(monkeypatch, boom)
    with pytest.raises(BackendError) as ei:
        llm_client.start_session("k", []).send("q")
    assert ei.value.status_code is None
    assert "connection refused" in str(ei.value)
