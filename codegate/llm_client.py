from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

import requests

from codegate import config
from codegate.credentials import CredentialPool
from codegate.errors import BackendError
from codegate.llm_prompts import seed_history, user_turn

log = logging.getLogger(__name__)


def generate_endpoint(model: Optional[str] = None) -> str:
    return f"{config.GEMINI_API_BASE}/models/{model or config.GEMINI_MODEL}:generateContent"


def _extract_gemini_text(payload: Dict[str, Any]) -> Optional[str]:
    candidates = payload.get("candidates") or []
    for cand in candidates:
        content = cand.get("content") or {}
        parts = content.get("parts") or []
        texts = [p.get("text") for p in parts if isinstance(p.get("text"), str)]
        if texts:
            return "".join(texts)
    return None


def _error_from_response(resp: Any) -> BackendError:
    """Build a BackendError from a non-200 reply, keeping the structured status."""
    status_code = getattr(resp, "status_code", None)
    message = ""
    status = None
    try:
        body = resp.json()
    except Exception:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        err = body["error"]
        message = str(err.get("message") or "")
        status = err.get("status")
    if not message:
        try:
            message = (resp.text or "")[:400]
        except Exception:
            message = ""
    if not message:
        message = f"HTTP {status_code}"
    return BackendError(message, status_code=status_code, status=status)


class GeminiSession:
    """One chat bound to one API key.

    The history is fixed at construction; send() posts history + the new user
    turn and returns the model's text. Sessions are thrown away after a single
    attempt.
    """

    def __init__(self, credential: str, history: List[Dict[str, Any]], model: Optional[str] = None,
                 timeout: Optional[int] = None, key_index: Optional[int] = None):
        self.credential = credential
        self.key_index = key_index
        self.history = list(history)
        self.model = model or config.GEMINI_MODEL
        self.timeout = timeout or config.LLM_TIMEOUT_SECS

    def send(self, text: str) -> str:
        body = {"contents": self.history + [user_turn(text)]}
        try:
            resp = requests.post(
                generate_endpoint(self.model),
                # Header rather than ?key= so transport errors never echo the key
                headers={"x-goog-api-key": self.credential},
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            log.warning("Gemini request error: %r", exc)
            raise BackendError(f"Request to backend failed: {exc}") from exc

        if resp.status_code != 200:
            err = _error_from_response(resp)
            log.warning("Gemini HTTP %s: %s", resp.status_code, err.message[:400])
            raise err

        try:
            data = resp.json()
        except ValueError as exc:
            raise BackendError("Backend returned a non-JSON body", status_code=resp.status_code) from exc

        text = _extract_gemini_text(data) if isinstance(data, dict) else None
        if text is None:
            raise BackendError("Empty response from model", status_code=resp.status_code)
        return text

    def __repr__(self) -> str:
        return f"GeminiSession(model={self.model!r}, turns={len(self.history)})"


def start_session(credential: str, history: List[Dict[str, Any]], model: Optional[str] = None,
                  key_index: Optional[int] = None) -> GeminiSession:
    return GeminiSession(credential, history, model=model, key_index=key_index)


def create_session(pool: CredentialPool) -> GeminiSession:
    """Fresh session on the pool's next key. Raises PoolEmpty through the pool."""
    key_index, credential = pool.next_with_index()
    return start_session(credential, seed_history(), key_index=key_index)
