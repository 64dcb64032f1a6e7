import pytest

from jobapply.models import ConversationMessage, FieldDescriptor, JobContext, QuestionCacheEntry


def test_field_descriptor_accepts_scanner_payload():
    field = FieldDescriptor.from_dict({
        "type": "radio",
        "label": "Do you require sponsorship?",
        "inputType": "radio",
        "maxLength": "120",
        "options": [{"value": "yes", "text": "Yes"}, {"value": "no", "text": "No"}, "junk"],
    })
    assert field.is_choice
    assert field.max_length == 120
    assert [o.value for o in field.options] == ["yes", "no"]
    assert field.display_name == "Do you require sponsorship?"


def test_field_descriptor_bad_max_length():
    assert FieldDescriptor.from_dict({"maxLength": "lots"}).max_length is None
    assert FieldDescriptor.from_dict({}).type == "text"


def test_job_context_camel_case():
    ctx = JobContext.from_dict({"jobTitle": "SRE", "company": "Acme", "workModel": "Hybrid", "description": None})
    assert ctx.job_title == "SRE"
    assert ctx.work_model == "Hybrid"
    assert ctx.description == ""


def test_cache_entry_from_legacy_keys():
    entry = QuestionCacheEntry.from_dict({
        "question": "Q", "answer": "A", "addedAt": "2024-01-01T00:00:00+00:00", "useCount": 0,
    })
    assert entry.last_used == entry.added_at
    assert entry.use_count == 1


def test_message_role_is_validated():
    assert ConversationMessage.from_dict({"role": "assistant", "content": "hi"}).role == "assistant"
    with pytest.raises(ValueError):
        ConversationMessage.from_dict({"role": "robot", "content": "hi"})


def test_cache_entry_with_unreadable_use_count():
    entry = QuestionCacheEntry.from_dict({"question": "Q", "answer": "A", "use_count": "abc"})
    assert entry.use_count == 1
