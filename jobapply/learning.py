"""Per-field values the user typed in, remembered by field label and name."""
from __future__ import annotations

from typing import Callable

from jobapply.log import get_logger
from jobapply.models import FieldDescriptor, JobContext, LearnedPattern, utc_now
from jobapply.storage import LEARNING_DATA_KEY, KeyValueStore

log = get_logger(__name__)

MAX_PATTERNS = 500


def _same(a: str, b: str) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


def _contains(haystack: str, needle: str) -> bool:
    return bool(haystack) and bool(needle) and needle.lower() in haystack.lower()


class LearnedPatternStore:
    """Append-only log capped at ``MAX_PATTERNS``; the oldest entry goes first."""

    def __init__(self, backend: KeyValueStore, *, clock: Callable[[], str] = utc_now) -> None:
        self.backend = backend
        self.clock = clock

    def patterns(self) -> list[LearnedPattern]:
        raw = self.backend.get_or(LEARNING_DATA_KEY, [])
        return [LearnedPattern.from_dict(p) for p in raw if isinstance(p, dict)] if isinstance(raw, list) else []

    def learn(self, field: FieldDescriptor, value: str, job_context: JobContext | None = None) -> LearnedPattern:
        pattern = LearnedPattern(
            field_type=field.type,
            field_label=field.label,
            field_name=field.name,
            field_placeholder=field.placeholder,
            value=value,
            job_type=job_context.job_type if job_context else "",
            timestamp=self.clock(),
        )
        patterns = self.patterns()
        patterns.append(pattern)
        if len(patterns) > MAX_PATTERNS:
            patterns = patterns[len(patterns) - MAX_PATTERNS:]
        self.backend.try_set(LEARNING_DATA_KEY, [p.to_dict() for p in patterns])
        log.debug("Learned value for %r (%d patterns)", field.display_name, len(patterns))
        return pattern

    def find(self, field: FieldDescriptor) -> str | None:
        """Value of the first pattern whose label or name equals the field's."""
        for p in self.patterns():
            if _same(p.field_label, field.label) or _same(p.field_name, field.name):
                return p.value
        return None

    def similar(self, field: FieldDescriptor, limit: int = 3) -> list[LearnedPattern]:
        """Most recent patterns whose label or name contains the field's."""
        matches = [
            p for p in self.patterns()
            if _contains(p.field_label, field.label) or _contains(p.field_name, field.name)
        ]
        return matches[-limit:] if limit else matches
