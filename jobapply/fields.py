"""Per-field fill suggestions for a scanned form."""
from __future__ import annotations

from typing import Mapping

from jobapply.errors import InferenceError
from jobapply.log import get_logger
from jobapply.models import FieldDescriptor, FieldRecommendation, JobContext
from jobapply.ollama import CHAT_TEMPERATURE, OllamaClient
from jobapply.parser import parse_json_object
from jobapply.prompts import build_field_analysis_prompt

log = get_logger(__name__)

FIELD_ANALYSIS_MAX_TOKENS = 300
_CONFIDENCE_LEVELS = ("high", "medium", "low")


def _field_text(field: FieldDescriptor) -> str:
    return f"{field.label} {field.placeholder} {field.name}".lower()


def is_resume_field(field: FieldDescriptor) -> bool:
    text = f"{field.label} {field.name} {field.placeholder}".lower()
    return any(word in text for word in ("resume", "cv", "curriculum"))


def _by_profile(category: str, value: str | None, reasoning: str) -> FieldRecommendation:
    return FieldRecommendation(
        category=category,
        suggested_value=value or None,
        confidence="high" if value else "low",
        reasoning=reasoning,
    )


def rule_based_recommendation(field: FieldDescriptor, profile: Mapping[str, str]) -> FieldRecommendation:
    """Classify common contact fields from label/name/placeholder text."""
    text = _field_text(field)
    if "email" in text or field.input_type == "email":
        return _by_profile("email", profile.get("email"), "Email field detected")
    if "phone" in text or field.input_type == "tel":
        return _by_profile("phone", profile.get("phone"), "Phone field detected")
    if "name" in text:
        return _by_profile("name", profile.get("full_name"), "Name field detected")
    if "linkedin" in text or "profile url" in text:
        return _by_profile("linkedin", profile.get("linkedin"), "LinkedIn field detected")
    return FieldRecommendation(
        category="unknown",
        suggested_value=None,
        confidence="low",
        reasoning="Could not determine field type",
    )


def _from_model(data: dict) -> FieldRecommendation:
    confidence = str(data.get("confidence", "low")).lower()
    value = data.get("suggestedValue", data.get("suggested_value", data.get("value")))
    if value in ("null", "None", ""):
        value = None
    return FieldRecommendation(
        category=str(data.get("category") or "unknown"),
        suggested_value=None if value is None else str(value),
        confidence=confidence if confidence in _CONFIDENCE_LEVELS else "low",
        reasoning=str(data.get("reasoning") or ""),
    )


def analyze_field(
    field: FieldDescriptor,
    profile: Mapping[str, str],
    page: JobContext,
    gateway: OllamaClient,
) -> FieldRecommendation:
    """Ask the model to classify *field*; rule-based answer if the call fails."""
    prompt = build_field_analysis_prompt(field, profile, page)
    try:
        raw = gateway.generate(prompt, temperature=CHAT_TEMPERATURE, max_tokens=FIELD_ANALYSIS_MAX_TOKENS)
    except InferenceError as exc:
        log.warning("Field analysis for %r fell back to rules: %s", field.display_name, exc)
        return rule_based_recommendation(field, profile)

    data = parse_json_object(raw)
    if data is None:
        return FieldRecommendation(
            category="unknown",
            suggested_value=None,
            confidence="low",
            reasoning="Failed to parse AI response",
        )
    return _from_model(data)
