"""
Exceptions raised by the gateway.

Everything derives from GatewayError so the HTTP layer can turn any of them
into a JSON error envelope.
"""
from __future__ import annotations
from typing import Optional


class GatewayError(Exception):
    """Base class for gateway failures."""


class MissingQueryError(GatewayError):
    """The caller did not send a usable `query` parameter."""

    def __init__(self, message: str = "Missing 'query' parameter."):
        super().__init__(message)
        self.message = message


class ConfigError(GatewayError):
    """Operator-side misconfiguration; not retried."""


class PoolEmpty(ConfigError):
    """A credential pool was built without any credentials."""

    def __init__(self, message: str = "No available API keys."):
        super().__init__(message)
        self.message = message


class BackendError(GatewayError):
    """
    A failed call to the text-completion backend.

    Attributes:
        message: Human-readable error text, as reported by the backend when possible
        status_code: HTTP status of the backend reply, None for transport failures
        status: Backend status string such as RESOURCE_EXHAUSTED, if present
    """

    def __init__(self, message: str, status_code: Optional[int] = None, status: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.status = status


class OrchestratorError(GatewayError):
    """A request could not be completed; `last_error` holds the underlying cause."""

    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.last_error = last_error


class FatalBackendError(OrchestratorError):
    """The backend failed in a way that is not worth retrying."""


class RetryExhausted(OrchestratorError):
    """Every attempt hit a retryable failure."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        last = str(last_error) if last_error is not None else "Unknown"
        super().__init__(f"Failed after {attempts} attempts. Last error: {last}", last_error)
        self.attempts = attempts
