"""End-to-end flows through ApplicationAssistant with a scripted gateway."""
import pytest

from jobapply import tracker
from jobapply.assistant import ApplicationAssistant
from jobapply.errors import ServiceError, ServiceUnavailable
from jobapply.models import FieldDescriptor, JobContext
from jobapply.parser import NEUTRAL_SCORE
from jobapply.storage import CONVERSATION_HISTORY_KEY, CURRENT_CONVERSATION_KEY, CURRENT_JOB_CONTEXT_KEY

from conftest import FakeGateway

JOB = JobContext(
    url="https://example.com/jobs/42",
    job_title="Backend Engineer",
    company="Acme",
    description="Python, PostgreSQL and AWS. " * 200,
    location="Remote",
    job_type="Full Time",
)


@pytest.fixture
def make_assistant(store, clock, profile, preferences, tmp_path):
    def build(gateway, resume_text=""):
        return ApplicationAssistant(
            store,
            gateway,
            profile=profile,
            preferences=preferences,
            resume_text=resume_text,
            tracker_path=tmp_path / "applications.csv",
            clock=clock,
        )

    return build


def test_store_job_context_scores_and_tracks(make_assistant, store, tmp_path):
    gateway = FakeGateway(
        chat_replies=["SCORE: 85/100 - strong Python and AWS overlap."],
        models=[{"name": "llama3.2:3b"}, {"name": "deepseek-r1:8b"}],
    )
    assistant = make_assistant(gateway)
    fit = assistant.store_job_context(JOB)

    assert fit.score == 85
    assert fit.reason == "strong Python and AWS overlap."
    assert gateway.chat_calls[0]["model"] == "deepseek-r1:8b"
    assert gateway.chat_calls[0]["temperature"] == 0.3
    assert store.get(CURRENT_JOB_CONTEXT_KEY)["url"] == JOB.url
    assert assistant.current_job_context() == JOB

    rows = tracker.get_applications(tmp_path / "applications.csv")
    assert rows[0]["fit_score"] == "85"
    assert assistant.feed.recent(1)[0].message.startswith("✅ Excellent match!")
    assert [m.role for m in assistant.conversation.messages] == ["system", "user", "assistant"]


def test_fit_prompt_truncates_description(make_assistant):
    gateway = FakeGateway(chat_replies=["65%"])
    assistant = make_assistant(gateway, resume_text="R" * 5000)
    fit = assistant.analyze_job_fit(JOB)
    prompt = gateway.chat_calls[0]["messages"][1].content
    assert fit.score == 65
    assert "R" * 2000 in prompt
    assert "R" * 2001 not in prompt
    assert "SCORE: NN/100" in prompt


def test_fit_band_activity(make_assistant):
    assistant = make_assistant(FakeGateway(chat_replies=["62/100 - partial overlap on data tooling"]))
    assistant.store_job_context(JOB)
    assert assistant.feed.recent(1)[0].type == "waiting"

    assistant = make_assistant(FakeGateway(chat_replies=["30% - mostly a stretch for this role"]))
    assistant.store_job_context(JOB)
    assert assistant.feed.recent(1)[0].type == "uncertain"


def test_fit_when_service_is_down(make_assistant):
    gateway = FakeGateway(available=False)
    assistant = make_assistant(gateway)
    fit = assistant.analyze_job_fit(JOB)
    assert fit.score == NEUTRAL_SCORE
    assert "ollama pull" in fit.reason
    assert gateway.chat_calls == []
    assert any(a.type == "error" for a in assistant.feed.recent())


def test_fit_when_chat_fails(make_assistant):
    gateway = FakeGateway(chat_replies=[ServiceError(404, '{"error":"model not found"}', "/api/chat")])
    assistant = make_assistant(gateway)
    fit = assistant.analyze_job_fit(JOB)
    assert fit.score == NEUTRAL_SCORE
    assert fit.reason.startswith("Analysis unavailable:")
    assert "ollama pull" in assistant.feed.recent(1)[0].message


def test_learned_answer_is_reused(make_assistant):
    gateway = FakeGateway()
    assistant = make_assistant(gateway)
    assistant.save_learned_answer("Why do you want to join Acme?", "Their mission.")
    result = assistant.get_smart_answer("why do you want to join acme?")
    assert result.value == "Their mission."
    assert result.source == "cache"
    assert gateway.chat_calls == []


def test_smart_answer_starts_session_from_stored_job(make_assistant, store):
    store.set(CURRENT_JOB_CONTEXT_KEY, JOB.to_dict())
    gateway = FakeGateway(chat_replies=["Yes"])
    assistant = make_assistant(gateway)
    result = assistant.get_smart_answer("Have you used PostgreSQL?", FieldDescriptor(type="radio"))
    assert result.value == "Yes"
    assert assistant.conversation.session.job_title == "Backend Engineer"


def test_smart_answer_propagates_outage(make_assistant):
    gateway = FakeGateway(chat_replies=[ServiceUnavailable("http://127.0.0.1:11434", "refused")])
    assistant = make_assistant(gateway)
    with pytest.raises(ServiceUnavailable):
        assistant.get_smart_answer("Describe your ideal team")


def test_generate_field_content_uses_similar_answers(make_assistant):
    gateway = FakeGateway(generate_replies=["  I enjoy building reliable systems.  "])
    assistant = make_assistant(gateway)
    assistant.learn_from_input(FieldDescriptor(label="Why this role? (short)"), "Prior answer", JOB)
    content = assistant.generate_field_content(FieldDescriptor(type="textarea", label="Why this role"), JOB)

    assert content == "I enjoy building reliable systems."
    call = gateway.generate_calls[0]
    assert (call["temperature"], call["max_tokens"]) == (0.7, 500)
    assert '"Prior answer"' in call["prompt"]
    assert assistant.feed.recent(1)[0].type == "ai-complete"


def test_generate_field_content_failure_propagates(make_assistant):
    gateway = FakeGateway(generate_replies=[ServiceUnavailable("http://127.0.0.1:11434")])
    assistant = make_assistant(gateway)
    with pytest.raises(ServiceUnavailable):
        assistant.generate_field_content(FieldDescriptor(label="Cover letter"), JOB)
    assert assistant.feed.recent(1)[0].type == "error"


def test_analyze_fields_summary(make_assistant):
    gateway = FakeGateway(generate_replies=[
        '{"category": "unknown", "suggestedValue": null, "confidence": "low", "reasoning": "?"}',
    ])
    assistant = make_assistant(gateway, resume_text="resume")
    assistant.learn_from_input(FieldDescriptor(label="Pronouns"), "they/them")

    results = assistant.analyze_fields(
        [
            FieldDescriptor(type="file", label="Resume/CV"),
            FieldDescriptor(label="Pronouns"),
            FieldDescriptor(label="Anything else?"),
        ],
        JOB,
    )
    categories = [rec.category for _, rec in results]
    assert categories == ["resume", "learned", "unknown"]
    assert results[1][1].suggested_value == "they/them"
    assert assistant.feed.recent(1)[0].message == "Analysis complete: 2 known, 1 need attention"


def test_mark_applied_clears_conversation(make_assistant, tmp_path):
    assistant = make_assistant(FakeGateway(chat_replies=["90% - great fit for the platform team"]))
    assistant.store_job_context(JOB)
    assert assistant.conversation.active

    assert assistant.mark_applied(JOB.url) is True
    assert not assistant.conversation.active
    assert assistant.conversation_status()["current"] is None
    assert tracker.get_applications(tmp_path / "applications.csv")[0]["applied"] == "yes"


def test_conversation_survives_restart(make_assistant):
    first = make_assistant(FakeGateway(chat_replies=["70/100 - reasonable overlap overall"]))
    first.store_job_context(JOB)

    second = make_assistant(FakeGateway())
    assert second.conversation.active
    assert second.conversation_status()["message_count"] == 3


def test_corrupt_conversation_history_does_not_block_startup(make_assistant, store):
    store.set(CURRENT_CONVERSATION_KEY, {"job_title": "Backend Engineer", "company": "Acme"})
    store.set(CONVERSATION_HISTORY_KEY, {"not": "a list"})
    assistant = make_assistant(FakeGateway())
    assert not assistant.conversation.active
