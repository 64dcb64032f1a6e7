"""Exception types raised by the assistant core."""
from __future__ import annotations


class AssistantError(Exception):
    """Base class for every error the assistant raises on purpose."""


class InferenceError(AssistantError):
    """A call to the local inference service did not produce a usable result."""


class ServiceUnavailable(InferenceError):
    """The inference service could not be reached at all."""

    def __init__(self, base_url: str, reason: str = "") -> None:
        self.base_url = base_url
        self.reason = reason
        message = f"Inference service unreachable at {base_url}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ServiceError(InferenceError):
    """The inference service answered with a non-success HTTP status.

    Attributes:
        status: HTTP status code returned upstream
        body: Raw response body (truncated in the message, kept whole here)
        endpoint: API path that was called
    """

    def __init__(self, status: int, body: str, endpoint: str = "") -> None:
        self.status = status
        self.body = body
        self.endpoint = endpoint
        snippet = body[:200] + "..." if len(body) > 200 else body
        super().__init__(f"{endpoint or 'request'} failed with HTTP {status}: {snippet}")


class MalformedResponse(InferenceError):
    """The response body was not JSON or lacked the expected fields."""

    def __init__(self, message: str, body: str = "") -> None:
        self.body = body
        super().__init__(message)


class PersistenceFailure(AssistantError):
    """The key-value store rejected a read or a write."""

    def __init__(self, key: str, reason: str = "") -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Storage operation on '{key}' failed" + (f": {reason}" if reason else ""))


class NoActiveSession(AssistantError):
    """A conversation message was added while no job session was open."""


def user_hint(exc: Exception, model: str = "") -> str:
    """One-line, actionable message for the activity feed."""
    if isinstance(exc, ServiceUnavailable):
        return f"Cannot connect to Ollama at {exc.base_url} - check that Ollama is running (ollama serve)"
    if isinstance(exc, ServiceError):
        body = exc.body.lower()
        if exc.status == 404 and "model" in body:
            target = model or "the configured model"
            return f"Model {target} not found - run: ollama pull {target}"
        return f"Ollama returned HTTP {exc.status} - {exc.body[:120]}"
    if isinstance(exc, MalformedResponse):
        return f"Ollama sent an unexpected response: {exc}"
    return f"AI request failed: {exc}"
