"""The single multi-turn model session tied to one job application.

States: no session → active (``start``) → no session (``clear``). The message
list always starts with the system message; after it only the
``MAX_HISTORY`` most recent messages are kept. Each mutation writes the whole
state back to the store, best-effort.
"""
from __future__ import annotations

from typing import Any

from jobapply.errors import NoActiveSession
from jobapply.log import get_logger
from jobapply.models import ConversationMessage, ConversationSession, JobContext, Role
from jobapply.prompts import build_system_prompt
from jobapply.storage import CONVERSATION_HISTORY_KEY, CURRENT_CONVERSATION_KEY, KeyValueStore

log = get_logger(__name__)

MAX_HISTORY = 20
MAX_MESSAGES = MAX_HISTORY + 1


class ConversationManager:
    def __init__(self, backend: KeyValueStore) -> None:
        self.backend = backend
        self.session: ConversationSession | None = None
        self._messages: list[ConversationMessage] = []

    @property
    def active(self) -> bool:
        return self.session is not None

    @property
    def messages(self) -> list[ConversationMessage]:
        return list(self._messages)

    def _persist(self) -> None:
        self.backend.try_set(CURRENT_CONVERSATION_KEY, self.session.to_dict() if self.session else None)
        self.backend.try_set(CONVERSATION_HISTORY_KEY, [m.to_dict() for m in self._messages])

    def restore(self) -> bool:
        """Reload the last persisted snapshot; returns whether a session is active."""
        saved = self.backend.get_or(CURRENT_CONVERSATION_KEY)
        history = self.backend.get_or(CONVERSATION_HISTORY_KEY, [])
        self.session = None
        self._messages = []
        if not isinstance(saved, dict):
            return False
        if not isinstance(history, list):
            log.warning("Conversation history is not a list (%s); starting without a session", type(history).__name__)
            return False
        try:
            messages = [ConversationMessage.from_dict(m) for m in history if isinstance(m, dict)]
        except ValueError as exc:
            log.warning("Discarding unreadable conversation snapshot: %s", exc)
            return False
        if not messages or messages[0].role != "system":
            log.warning("Conversation snapshot has no system message; starting without a session")
            return False
        self.session = ConversationSession.from_dict(saved)
        self._messages = self._trim(messages)
        log.info("Restored conversation for %s (%d messages)", self.session.job_title, len(self._messages))
        return True

    def start(self, job_context: JobContext) -> ConversationSession:
        if self.session is not None:
            log.info(
                "Replacing conversation for %s at %s",
                self.session.job_title or "unknown role",
                self.session.company or "unknown company",
            )
        self.session = ConversationSession(
            job_title=job_context.job_title,
            company=job_context.company,
            url=job_context.url,
        )
        self._messages = [
            ConversationMessage(role="system", content=build_system_prompt(job_context.job_title, job_context.company))
        ]
        self._persist()
        log.info("Started conversation for %s", job_context.job_title or "unknown role")
        return self.session

    @staticmethod
    def _trim(messages: list[ConversationMessage]) -> list[ConversationMessage]:
        if len(messages) > MAX_MESSAGES:
            return [messages[0], *messages[-MAX_HISTORY:]]
        return messages

    def add_message(self, role: Role, content: str) -> None:
        if self.session is None:
            raise NoActiveSession("add_message called with no active conversation")
        if role not in ("system", "user", "assistant"):
            raise ValueError(f"Unknown message role: {role!r}")
        self._messages.append(ConversationMessage(role=role, content=content))
        self._messages = self._trim(self._messages)
        log.debug("Added %s message (%d total)", role, len(self._messages))
        self._persist()

    def clear(self) -> ConversationSession | None:
        ended = self.session
        if ended is not None:
            log.info("Clearing conversation for %s", ended.job_title or "unknown role")
        self.session = None
        self._messages = []
        self._persist()
        return ended

    def summary(self) -> dict[str, Any]:
        return {
            "current": self.session.to_dict() if self.session else None,
            "message_count": len(self._messages),
            "messages": [m.to_dict() for m in self._messages],
        }
