"""Data models for form fields, job contexts, cached answers and sessions."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

Role = Literal["system", "user", "assistant"]
Source = Literal["cache", "profile", "resume", "ai"]
Confidence = Literal["high", "medium", "low"]

ROLES: tuple[str, ...] = ("system", "user", "assistant")
CHOICE_FIELD_TYPES: tuple[str, ...] = ("radio", "checkbox")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _pick(data: dict, *keys: str, default: Any = "") -> Any:
    """First present, non-None value among *keys* (snake_case or camelCase)."""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


@dataclass
class FieldOption:
    value: str
    text: str


@dataclass
class FieldDescriptor:
    """A form control as reported by the page scanner."""

    type: str = "text"
    selector: str = ""
    label: str = ""
    name: str = ""
    placeholder: str = ""
    required: bool = False
    input_type: str = ""
    max_length: int | None = None
    options: list[FieldOption] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.label or self.name

    @property
    def is_choice(self) -> bool:
        return self.type in CHOICE_FIELD_TYPES

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldDescriptor:
        max_length = _pick(data, "max_length", "maxLength", default=None)
        try:
            max_length = int(max_length) if max_length not in (None, "") else None
        except (TypeError, ValueError):
            max_length = None
        options = [
            FieldOption(value=str(o.get("value", "")), text=str(o.get("text", "")))
            for o in data.get("options") or []
            if isinstance(o, dict)
        ]
        return cls(
            type=data.get("type") or "text",
            selector=data.get("selector") or "",
            label=data.get("label") or "",
            name=data.get("name") or "",
            placeholder=data.get("placeholder") or "",
            required=bool(data.get("required", False)),
            input_type=_pick(data, "input_type", "inputType"),
            max_length=max_length,
            options=options,
        )


@dataclass
class JobContext:
    """The job posting currently being applied to."""

    url: str = ""
    title: str = ""
    job_title: str = ""
    company: str = ""
    description: str = ""
    location: str = ""
    job_type: str = ""
    work_model: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobContext:
        return cls(
            url=data.get("url") or "",
            title=data.get("title") or "",
            job_title=_pick(data, "job_title", "jobTitle"),
            company=data.get("company") or "",
            description=data.get("description") or "",
            location=data.get("location") or "",
            job_type=_pick(data, "job_type", "jobType"),
            work_model=_pick(data, "work_model", "workModel"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class QuestionCacheEntry:
    question: str
    answer: str
    added_at: str
    last_used: str
    use_count: int = 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuestionCacheEntry:
        added = _pick(data, "added_at", "addedAt") or utc_now()
        try:
            use_count = int(_pick(data, "use_count", "useCount", default=1) or 1)
        except (TypeError, ValueError):
            use_count = 1
        return cls(
            question=str(data.get("question", "")),
            answer=str(data.get("answer", "")),
            added_at=str(added),
            last_used=str(_pick(data, "last_used", "lastUsed") or added),
            use_count=max(1, use_count),
        )


@dataclass
class LearnedPattern:
    field_type: str
    field_label: str
    field_name: str
    field_placeholder: str
    value: str
    job_type: str = ""
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LearnedPattern:
        return cls(
            field_type=_pick(data, "field_type", "fieldType"),
            field_label=_pick(data, "field_label", "fieldLabel"),
            field_name=_pick(data, "field_name", "fieldName"),
            field_placeholder=_pick(data, "field_placeholder", "fieldPlaceholder"),
            value=str(data.get("value", "")),
            job_type=_pick(data, "job_type", "jobType"),
            timestamp=data.get("timestamp") or utc_now(),
        )


@dataclass
class ConversationSession:
    job_title: str
    company: str
    url: str
    started_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationSession:
        return cls(
            job_title=_pick(data, "job_title", "jobTitle"),
            company=data.get("company") or "",
            url=data.get("url") or "",
            started_at=_pick(data, "started_at", "startedAt") or utc_now(),
        )


@dataclass(frozen=True)
class ConversationMessage:
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationMessage:
        role = data.get("role")
        if role not in ROLES:
            raise ValueError(f"Unknown message role: {role!r}")
        return cls(role=role, content=str(data.get("content", "")))


@dataclass(frozen=True)
class JobFitResult:
    score: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "reason": self.reason}


@dataclass(frozen=True)
class Resolution:
    value: str | None
    source: Source
    confidence: Confidence

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Activity:
    type: str
    message: str
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class FieldRecommendation:
    category: str
    suggested_value: str | None
    confidence: Confidence
    reasoning: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
