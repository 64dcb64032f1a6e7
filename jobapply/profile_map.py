"""Answer form questions straight from the profile, preferences and resume.

The keyword table below is scanned top to bottom and the first keyword found
in the question whose value is non-empty wins, so more specific keywords are
listed before the generic ones they contain ("first name" before "name").
"""
from __future__ import annotations

from typing import Callable, Mapping

from jobapply.log import get_logger
from jobapply.models import FieldDescriptor

log = get_logger(__name__)

Lookup = Callable[[Mapping[str, str], Mapping[str, str]], str]


def _profile(key: str) -> Lookup:
    return lambda profile, prefs: profile.get(key, "")


def _pref(key: str) -> Lookup:
    return lambda profile, prefs: prefs.get(key, "")


def _name_part(index: int) -> Lookup:
    """first_name/last_name from the profile, else split from full_name."""
    key = "first_name" if index == 0 else "last_name"

    def lookup(profile: Mapping[str, str], prefs: Mapping[str, str]) -> str:
        if profile.get(key):
            return profile[key]
        parts = (profile.get("full_name") or "").split(maxsplit=1)
        return parts[index] if len(parts) > index else ""

    return lookup


def _city(profile: Mapping[str, str], prefs: Mapping[str, str]) -> str:
    return (profile.get("location") or "").split(",")[0].strip()


KEYWORD_MAP: tuple[tuple[str, Lookup], ...] = (
    ("first name", _name_part(0)),
    ("last name", _name_part(1)),
    ("full name", _profile("full_name")),
    ("legal name", _profile("full_name")),
    ("name", _profile("full_name")),
    ("veteran", _pref("veteran_status")),
    ("military", _pref("veteran_status")),
    ("disability", _pref("disability_status")),
    ("disabled", _pref("disability_status")),
    ("security clearance", _pref("security_clearance")),
    ("clearance", _pref("security_clearance")),
    ("sponsorship", _pref("requires_sponsorship")),
    ("visa", _pref("requires_sponsorship")),
    ("work authorization", _pref("work_authorization")),
    ("authorized to work", _pref("work_authorization")),
    ("notice period", _pref("notice_period")),
    ("available to start", _pref("available_start_date")),
    ("start date", _pref("available_start_date")),
    ("relocate", _pref("willing_to_relocate")),
    ("relocation", _pref("willing_to_relocate")),
    ("travel", _pref("willing_to_travel")),
    ("salary", _pref("salary_expectation")),
    ("compensation", _pref("salary_expectation")),
    ("email", _profile("email")),
    ("phone", _profile("phone")),
    ("address", _profile("location")),
    ("city", _city),
    ("linkedin", _profile("linkedin")),
    ("github", _profile("github")),
    ("website", _profile("website")),
    ("portfolio", _profile("website")),
)


class ProfileMapper:
    def __init__(
        self,
        profile: Mapping[str, str],
        preferences: Mapping[str, str],
        keyword_map: tuple[tuple[str, Lookup], ...] = KEYWORD_MAP,
    ) -> None:
        self.profile = profile
        self.preferences = preferences
        self.keyword_map = keyword_map

    def lookup(self, question: str, field: FieldDescriptor | None = None) -> str | None:
        normalized = (question or "").lower()
        for keyword, value_of in self.keyword_map:
            if keyword not in normalized:
                continue
            value = (value_of(self.profile, self.preferences) or "").strip()
            if value:
                log.debug("Profile keyword %r answers %r", keyword, question)
                return value
        return None


class ResumeMatcher:
    """Resume-text tier of the resolution chain.

    Choice fields (radio/checkbox) are never answered here: a keyword hit in
    the resume is not evidence for a yes/no decision, so those go to the
    model with full context. Free-text questions yield ``None`` as well; the
    answer prompt carries ``resume_text``, so the model tier reads it there.
    """

    def __init__(self, resume_text: str = "") -> None:
        self.resume_text = resume_text

    def lookup(self, question: str, field: FieldDescriptor) -> str | None:
        return None
