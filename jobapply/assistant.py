"""
Application assistant.

Runs: job context → fit score → (per question) cache/profile/resume/model answer
→ learned input → tracker. One instance per user; all state lives in the
key-value store so a restarted process picks up where the last one stopped.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import requests

from jobapply.activity import ActivityFeed
from jobapply.config import Settings, ensure_dirs, load_profile, load_settings
from jobapply.conversation import ConversationManager
from jobapply.errors import InferenceError, user_hint
from jobapply.fields import analyze_field, is_resume_field
from jobapply.learning import LearnedPatternStore
from jobapply.log import get_logger
from jobapply.models import FieldDescriptor, FieldRecommendation, JobContext, JobFitResult, Resolution
from jobapply.ollama import CHAT_TEMPERATURE, GENERATE_MAX_TOKENS, GENERATE_TEMPERATURE, OllamaClient
from jobapply.parser import NEUTRAL_SCORE, parse_fit_score
from jobapply.profile_map import ProfileMapper, ResumeMatcher
from jobapply.prompts import build_fit_prompt, build_generation_prompt
from jobapply.question_cache import QuestionCache
from jobapply.resolver import AnswerResolver
from jobapply.resume_parser import load_resume_text
from jobapply.storage import CURRENT_JOB_CONTEXT_KEY, JsonFileStore, KeyValueStore
from jobapply import tracker

log = get_logger(__name__)

EXCELLENT_FIT = 80
GOOD_FIT = 60
STORE_FILENAME = "store.json"


class ApplicationAssistant:
    def __init__(
        self,
        backend: KeyValueStore,
        gateway: OllamaClient,
        *,
        profile: dict[str, str] | None = None,
        preferences: dict[str, str] | None = None,
        resume_text: str = "",
        tracker_path: Path | None = None,
        clock=None,
    ) -> None:
        self.backend = backend
        self.gateway = gateway
        self.profile = profile or {}
        self.preferences = preferences or {}
        self.resume_text = resume_text
        self.tracker_path = tracker_path

        clock_kw = {"clock": clock} if clock else {}
        self.feed = ActivityFeed(backend, **clock_kw)
        self.cache = QuestionCache(backend, **clock_kw)
        self.patterns = LearnedPatternStore(backend, **clock_kw)
        self.conversation = ConversationManager(backend)
        self.conversation.restore()
        self.resolver = AnswerResolver(
            cache=self.cache,
            profile_mapper=ProfileMapper(self.profile, self.preferences),
            resume_matcher=ResumeMatcher(resume_text),
            conversation=self.conversation,
            gateway=gateway,
            feed=self.feed,
            job_context=self.current_job_context,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        profile_path: Path | None = None,
        resume_dir: Path | None = None,
        session: requests.Session | None = None,
    ) -> ApplicationAssistant:
        """Wire the assistant to the on-disk store, profile and resume."""
        settings = settings or load_settings()
        ensure_dirs()
        resume_text = load_resume_text(resume_dir)
        profile, preferences = load_profile(profile_path, resume_text=resume_text)
        return cls(
            JsonFileStore(settings.data_dir / STORE_FILENAME),
            OllamaClient.from_settings(settings, session=session),
            profile=profile,
            preferences=preferences,
            resume_text=resume_text,
            tracker_path=settings.data_dir / tracker.APPLICATIONS_CSV.name,
        )

    # ── job context ──────────────────────────────────────────────────────

    def current_job_context(self) -> JobContext:
        saved = self.backend.get_or(CURRENT_JOB_CONTEXT_KEY)
        return JobContext.from_dict(saved) if isinstance(saved, dict) else JobContext()

    def store_job_context(self, ctx: JobContext) -> JobFitResult:
        self.feed.emit("job-found", f"🎯 FOUND JOB: {ctx.job_title} at {ctx.company}")
        fit = self.analyze_job_fit(ctx)

        self.backend.try_set(CURRENT_JOB_CONTEXT_KEY, ctx.to_dict())
        tracker.record_job_view(ctx, fit, self.tracker_path)

        detail = f"Confidence: {fit.score}% - {fit.reason}"
        if fit.score >= EXCELLENT_FIT:
            self.feed.emit("success", f"✅ Excellent match! {detail}")
        elif fit.score >= GOOD_FIT:
            self.feed.emit("waiting", f"⚠️ Good match. {detail}")
        else:
            self.feed.emit("uncertain", f"❓ Uncertain fit. {detail}")
        return fit

    def analyze_job_fit(self, ctx: JobContext) -> JobFitResult:
        """Score the posting against the candidate; a neutral 50 when the model is out of reach."""
        if not self.gateway.is_available():
            self.feed.emit(
                "error",
                f"❌ Ollama not available - make sure Ollama is running and {self.gateway.default_model} is installed",
            )
            return JobFitResult(
                NEUTRAL_SCORE,
                f"Ollama not running. Install Ollama and run: ollama pull {self.gateway.default_model}",
            )

        self.conversation.start(ctx)
        self.feed.emit("analyzing", f"💬 Started AI conversation for {ctx.job_title}")
        self.conversation.add_message("user", build_fit_prompt(ctx, self.profile, self.resume_text))
        self.feed.emit("analyzing", "🤖 Analyzing job fit with AI against your resume...")

        model = self.gateway.select_model()
        try:
            reply = self.gateway.chat(self.conversation.messages, model=model, temperature=CHAT_TEMPERATURE)
        except InferenceError as exc:
            log.error("Job fit analysis failed: %s", exc)
            self.feed.emit("error", f"❌ {user_hint(exc, model)}")
            return JobFitResult(NEUTRAL_SCORE, f"Analysis unavailable: {exc}")

        self.conversation.add_message("assistant", reply)
        fit = parse_fit_score(reply)
        log.info("Job fit (%s): %d - %s", model, fit.score, fit.reason[:80])
        self.feed.emit("success", f"📊 Job Fit: {fit.score}% confidence - {fit.reason[:80]}")
        return fit

    # ── questions ────────────────────────────────────────────────────────

    def get_smart_answer(self, question: str, field: FieldDescriptor | None = None) -> Resolution:
        return self.resolver.resolve(question, field or FieldDescriptor(label=question))

    def save_learned_answer(self, question: str, answer: str) -> None:
        self.cache.store(question, answer)
        self.feed.emit("success", f'✓ Learned answer for: "{question}"')

    def learn_from_input(self, field: FieldDescriptor, value: str, job_context: JobContext | None = None) -> None:
        self.patterns.learn(field, value, job_context or self.current_job_context())
        self.feed.emit("learned", f'Stored your answer for "{field.display_name}"')

    def generate_field_content(self, field: FieldDescriptor, job_context: JobContext | None = None) -> str:
        name = field.display_name
        self.feed.emit("ai-generating", f'Asking AI to write content for "{name}"...')
        prompt = build_generation_prompt(
            field,
            job_context or self.current_job_context(),
            self.profile,
            self.preferences,
            self.patterns.similar(field),
        )
        try:
            content = self.gateway.generate(
                prompt,
                model=self.gateway.default_model,
                temperature=GENERATE_TEMPERATURE,
                max_tokens=GENERATE_MAX_TOKENS,
            )
        except InferenceError as exc:
            self.feed.emit("error", f"AI failed: {user_hint(exc, self.gateway.default_model)}")
            raise
        self.feed.emit("ai-complete", f'AI generated content for "{name}"')
        return content.strip()

    def analyze_fields(
        self,
        fields: Sequence[FieldDescriptor],
        page: JobContext | None = None,
    ) -> list[tuple[FieldDescriptor, FieldRecommendation]]:
        """Suggest a value for every field: resume upload, learned answer, then the model."""
        page = page or self.current_job_context()
        self.feed.emit("scanning", f"Analyzing form with {len(fields)} fields")
        self.feed.emit("analyzing", "Checking learned patterns and user profile...")

        results: list[tuple[FieldDescriptor, FieldRecommendation]] = []
        known = attention = 0
        for field in fields:
            if field.type == "file" and is_resume_field(field):
                self.feed.emit("resume-detected", f'Resume field detected: "{field.label}"')
                ready = bool(self.resume_text)
                rec = FieldRecommendation(
                    category="resume",
                    suggested_value="Resume ready to upload" if ready else None,
                    confidence="high" if ready else "low",
                    reasoning="Resume available in storage" if ready else "No resume uploaded yet",
                )
            elif (learned := self.patterns.find(field)) is not None:
                self.feed.emit("success", f'Using previous answer for "{field.display_name}"')
                rec = FieldRecommendation(
                    category="learned",
                    suggested_value=learned,
                    confidence="high",
                    reasoning="Based on your previous input",
                )
            else:
                rec = analyze_field(field, self.profile, page, self.gateway)
                if rec.confidence != "high":
                    self.feed.emit("uncertain", f'Not sure about "{field.display_name}" - need your input')

            if rec.confidence == "high":
                known += 1
            else:
                attention += 1
            results.append((field, rec))

        self.feed.emit("success", f"Analysis complete: {known} known, {attention} need attention")
        return results

    # ── lifecycle ────────────────────────────────────────────────────────

    def mark_applied(self, url: str) -> bool:
        found = tracker.mark_applied(url, self.tracker_path)
        if found:
            self.feed.emit("success", f"✅ Marked as applied: {url}")
        else:
            log.warning("No tracked job for %s", url)
        if self.conversation.clear() is not None:
            self.feed.emit("success", "✅ Completed application conversation")
        return found

    def conversation_status(self) -> dict[str, Any]:
        return self.conversation.summary()
