"""HTTP client for a local Ollama server.

Two request shapes are used: single-shot ``/api/generate`` and multi-turn
``/api/chat``. ``/api/tags`` doubles as the availability check. Every call is
a single attempt; failures surface as :mod:`jobapply.errors` types.
"""
from __future__ import annotations

from typing import Any, Sequence

import requests

from jobapply.config import DEFAULT_MODEL, DEFAULT_OLLAMA_URL, DEFAULT_REASONING_MODEL, Settings
from jobapply.errors import InferenceError, MalformedResponse, ServiceError, ServiceUnavailable
from jobapply.log import get_logger
from jobapply.models import ConversationMessage

log = get_logger(__name__)

GENERATE_TEMPERATURE = 0.7
GENERATE_MAX_TOKENS = 500
# Lower temperature for extraction and scoring so replies stay repeatable.
CHAT_TEMPERATURE = 0.3

REASONING_MODEL_FAMILY = "deepseek-r1"


class OllamaClient:
    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_URL,
        *,
        default_model: str = DEFAULT_MODEL,
        reasoning_model: str = DEFAULT_REASONING_MODEL,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.reasoning_model = reasoning_model
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings, session: requests.Session | None = None) -> OllamaClient:
        return cls(
            settings.ollama_url,
            default_model=settings.default_model,
            reasoning_model=settings.reasoning_model,
            timeout=settings.timeout,
            session=session,
        )

    # ── transport ────────────────────────────────────────────────────────

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            if method == "GET":
                r = self.session.get(url, timeout=self.timeout)
            else:
                r = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ServiceUnavailable(self.base_url, str(exc)) from exc

        log.debug("%s %s → %d", method, path, r.status_code)
        if not r.ok:
            body = r.text or ""
            log.error("Ollama %s failed: %d %s", path, r.status_code, body[:200])
            raise ServiceError(r.status_code, body, endpoint=path)

        try:
            data = r.json()
        except ValueError as exc:
            raise MalformedResponse(f"{path} returned a non-JSON body", r.text or "") from exc
        if not isinstance(data, dict):
            raise MalformedResponse(f"{path} returned {type(data).__name__}, expected an object", r.text or "")
        return data

    # ── operations ───────────────────────────────────────────────────────

    def generate(
        self,
        prompt: str,
        *,
        model: str | None = None,
        temperature: float = GENERATE_TEMPERATURE,
        max_tokens: int = GENERATE_MAX_TOKENS,
    ) -> str:
        """One prompt in, one completion out."""
        model = model or self.default_model
        log.info("Ollama generate: model=%s, prompt length=%d", model, len(prompt))
        data = self._request(
            "POST",
            "/api/generate",
            {
                "model": model,
                "prompt": prompt,
                "stream": False,
                "options": {"temperature": temperature, "num_predict": max_tokens},
            },
        )
        text = data.get("response")
        if not isinstance(text, str):
            raise MalformedResponse("/api/generate response has no 'response' text", str(data)[:500])
        if data.get("eval_count") is not None:
            log.debug(
                "Generated %s tokens in %.2fs",
                data.get("eval_count"),
                (data.get("total_duration") or 0) / 1e9,
            )
        return text

    def chat(
        self,
        messages: Sequence[ConversationMessage | dict[str, str]],
        *,
        model: str | None = None,
        temperature: float = CHAT_TEMPERATURE,
    ) -> str:
        """Ordered message list in, one assistant completion out."""
        model = model or self.default_model
        wire = [m.to_dict() if isinstance(m, ConversationMessage) else {"role": m["role"], "content": m["content"]}
                for m in messages]
        log.info("Ollama chat: model=%s, messages=%d", model, len(wire))
        data = self._request(
            "POST",
            "/api/chat",
            {
                "model": model,
                "messages": wire,
                "stream": False,
                "options": {"temperature": temperature},
            },
        )
        message = data.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise MalformedResponse("/api/chat response has no 'message.content'", str(data)[:500])
        return content

    def list_models(self) -> list[dict[str, Any]]:
        data = self._request("GET", "/api/tags")
        models = data.get("models") or []
        if not isinstance(models, list):
            raise MalformedResponse("/api/tags 'models' is not a list", str(data)[:500])
        return [m for m in models if isinstance(m, dict)]

    def is_available(self) -> bool:
        try:
            models = self.list_models()
        except InferenceError as exc:
            log.warning("Ollama not available at %s: %s", self.base_url, exc)
            return False
        log.info("Ollama is available (%d models)", len(models))
        return True

    def select_model(self) -> str:
        """Reasoning model when the server advertises it, else the fast default."""
        try:
            names = [str(m.get("name", "")) for m in self.list_models()]
        except InferenceError as exc:
            log.info("Could not list models (%s); using %s", exc, self.default_model)
            return self.default_model
        if any(REASONING_MODEL_FAMILY in name for name in names):
            return self.reasoning_model
        return self.default_model
