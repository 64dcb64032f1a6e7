"""Resolve a form question to an answer: cache → profile → resume → model.

The first tier that returns a value ends the chain. Every tier transition is
reported on the activity feed. When the model tier cannot reach the service,
the failure is reported with a hint and re-raised; the chain never falls back
to a lower-confidence answer on its own.
"""
from __future__ import annotations

from typing import Callable, Mapping

from jobapply.activity import ActivityFeed
from jobapply.conversation import ConversationManager
from jobapply.errors import MalformedResponse, ServiceError, ServiceUnavailable, user_hint
from jobapply.log import get_logger
from jobapply.models import FieldDescriptor, JobContext, Resolution
from jobapply.ollama import CHAT_TEMPERATURE, OllamaClient
from jobapply.parser import parse_answer
from jobapply.profile_map import ProfileMapper, ResumeMatcher
from jobapply.prompts import build_answer_prompt
from jobapply.question_cache import QuestionCache

log = get_logger(__name__)


class AnswerResolver:
    def __init__(
        self,
        *,
        cache: QuestionCache,
        profile_mapper: ProfileMapper,
        resume_matcher: ResumeMatcher,
        conversation: ConversationManager,
        gateway: OllamaClient,
        feed: ActivityFeed,
        job_context: Callable[[], JobContext] = JobContext,
    ) -> None:
        self.cache = cache
        self.profile_mapper = profile_mapper
        self.resume_matcher = resume_matcher
        self.conversation = conversation
        self.gateway = gateway
        self.feed = feed
        self.job_context = job_context

    @property
    def profile(self) -> Mapping[str, str]:
        return self.profile_mapper.profile

    @property
    def preferences(self) -> Mapping[str, str]:
        return self.profile_mapper.preferences

    def resolve(self, question: str, field: FieldDescriptor) -> Resolution:
        log.info("Smart lookup for %r", question)

        cached = self.cache.lookup(question)
        if cached:
            self.feed.emit("success", f'✓ Found cached answer for "{question}"')
            return Resolution(value=cached, source="cache", confidence="high")

        from_profile = self.profile_mapper.lookup(question, field)
        if from_profile:
            self.feed.emit("success", f'✓ Found answer in profile for "{question}"')
            return Resolution(value=from_profile, source="profile", confidence="high")

        from_resume = self.resume_matcher.lookup(question, field)
        if from_resume:
            self.feed.emit("success", f'✓ Found answer in resume for "{question}"')
            return Resolution(value=from_resume, source="resume", confidence="medium")

        self.feed.emit("analyzing", f'🤖 Asking AI for: "{question}"')
        return Resolution(value=self.ask_model(question, field), source="ai", confidence="medium")

    def ask_model(self, question: str, field: FieldDescriptor) -> str | None:
        """Ask within the current job conversation; ``None`` on an unusable reply."""
        job = self.job_context()
        if not self.conversation.active:
            self.conversation.start(job)

        prompt = build_answer_prompt(
            question,
            field,
            job,
            self.profile,
            self.preferences,
            resume_text=self.resume_matcher.resume_text,
        )
        self.conversation.add_message("user", prompt)

        model = self.gateway.default_model
        try:
            reply = self.gateway.chat(self.conversation.messages, model=model, temperature=CHAT_TEMPERATURE)
        except MalformedResponse as exc:
            log.warning("Unusable AI answer for %r: %s", question, exc)
            return None
        except (ServiceUnavailable, ServiceError) as exc:
            self.feed.emit("error", f"❌ {user_hint(exc, model)}")
            raise

        self.conversation.add_message("assistant", reply)
        return parse_answer(reply)
