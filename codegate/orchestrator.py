from __future__ import annotations
import enum
import logging
import time
from typing import Any, Callable, Dict, Optional

from codegate import config, event_log
from codegate.credentials import CredentialPool
from codegate.errors import BackendError, FatalBackendError, RetryExhausted
from codegate.llm_client import create_session
from codegate.llm_parsing import normalize

log = logging.getLogger(__name__)

_QUOTA_STATUSES = {"RESOURCE_EXHAUSTED"}
_OVERLOAD_STATUSES = {"UNAVAILABLE"}


class ErrorKind(enum.Enum):
    QUOTA_EXCEEDED = "QUOTA_LIMIT"
    SERVICE_OVERLOADED = "SERVICE_OVERLOADED"
    FATAL = "FATAL"

    @property
    def retryable(self) -> bool:
        return self is not ErrorKind.FATAL


def _classify_message(message: str) -> ErrorKind:
    if "429" in message or "quota" in message.lower():
        return ErrorKind.QUOTA_EXCEEDED
    if "503" in message or "Overloaded" in message:
        return ErrorKind.SERVICE_OVERLOADED
    return ErrorKind.FATAL


def classify_error(exc: BaseException) -> ErrorKind:
    """Decide whether a failed attempt may be retried on another key.

    HTTP status and backend status strings are checked first. The message
    substrings ("429", "quota", "503", "Overloaded") are the fallback for
    errors that carry no structured code.
    """
    if isinstance(exc, BackendError):
        if exc.status_code == 429 or exc.status in _QUOTA_STATUSES:
            return ErrorKind.QUOTA_EXCEEDED
        if exc.status_code == 503 or exc.status in _OVERLOAD_STATUSES:
            return ErrorKind.SERVICE_OVERLOADED
    return _classify_message(str(exc) or "")


def max_attempts_for(pool: CredentialPool) -> int:
    return config.ATTEMPTS_PER_KEY * pool.size


def handle(
    query: str,
    pool: CredentialPool,
    *,
    session_factory: Callable[[CredentialPool], Any] = create_session,
    sleep: Callable[[float], None] = time.sleep,
    backoff_seconds: Optional[float] = None,
) -> Dict[str, str]:
    """Send `query` to the backend, rotating keys on quota/overload errors.

    Returns the normalized {"code": ...} body. Raises FatalBackendError on the
    first non-retryable failure and RetryExhausted once 2 x pool size attempts
    have all failed. `query` is assumed non-empty.
    """
    if backoff_seconds is None:
        backoff_seconds = config.OVERLOAD_BACKOFF_SECONDS
    attempts = max_attempts_for(pool)
    last_error: Optional[BaseException] = None

    for attempt in range(attempts):
        session = session_factory(pool)
        key_index = getattr(session, "key_index", None)
        try:
            text = session.send(query)
        except Exception as exc:
            last_error = exc
            kind = classify_error(exc)
            message = str(exc)
            if not kind.retryable:
                event_log.error("API_ATTEMPT_ERROR", {"attempt": attempt, "error": message})
                raise FatalBackendError(message, exc) from exc

            event_log.warn(kind.value, {"keyIndex": key_index, "attempt": attempt, "error": message})
            log.warning("%s on key index %s. Retrying with next key...", kind.value, key_index)
            if kind is ErrorKind.SERVICE_OVERLOADED and backoff_seconds > 0:
                sleep(backoff_seconds)
            continue

        event_log.info("AI_RAW_RESPONSE", {"attempt": attempt, "rawText": text})
        result = normalize(text)
        event_log.info("RESPONSE_SENT", result)
        return result

    raise RetryExhausted(attempts, last_error)
