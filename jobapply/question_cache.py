"""Previously confirmed question → answer pairs with fuzzy lookup.

Lookup walks the cache in storage order and returns the first entry that
matches by any rule (exact, containment either way, edit-distance similarity
above 0.80). It does not search for the best-scoring entry.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable

from jobapply.log import get_logger
from jobapply.models import QuestionCacheEntry, utc_now
from jobapply.storage import QUESTION_CACHE_KEY, KeyValueStore

log = get_logger(__name__)

MAX_CACHE_ENTRIES = 100
SIMILARITY_THRESHOLD = 0.80


def normalize_question(text: str) -> str:
    return (text or "").lower().strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """``(longest - distance) / longest``; two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def questions_match(cached: str, query: str) -> bool:
    """Both arguments must already be normalized."""
    if cached == query:
        return True
    if cached and query and (cached in query or query in cached):
        return True
    return similarity(cached, query) > SIMILARITY_THRESHOLD


def _recency(value: str) -> float:
    try:
        return datetime.fromisoformat(value).timestamp()
    except (TypeError, ValueError, OverflowError, OSError):
        return 0.0


class QuestionCache:
    def __init__(self, backend: KeyValueStore, *, clock: Callable[[], str] = utc_now) -> None:
        self.backend = backend
        self.clock = clock

    def entries(self) -> list[QuestionCacheEntry]:
        raw = self.backend.get_or(QUESTION_CACHE_KEY, [])
        entries: list[QuestionCacheEntry] = []
        for item in raw if isinstance(raw, list) else []:
            if isinstance(item, dict) and item.get("question"):
                entries.append(QuestionCacheEntry.from_dict(item))
        return entries

    def _save(self, entries: list[QuestionCacheEntry]) -> None:
        self.backend.try_set(QUESTION_CACHE_KEY, [e.to_dict() for e in entries])

    def lookup(self, question: str) -> str | None:
        """Cached answer for *question*; a hit refreshes the entry's recency."""
        query = normalize_question(question)
        if not query:
            return None
        entries = self.entries()
        for entry in entries:
            if questions_match(normalize_question(entry.question), query):
                entry.last_used = self.clock()
                entry.use_count += 1
                self._save(entries)
                log.debug("Cache hit for %r → %r", question, entry.question)
                return entry.answer
        return None

    def store(self, question: str, answer: str) -> QuestionCacheEntry:
        """Insert or update the entry whose question equals *question* ignoring case."""
        entries = self.entries()
        now = self.clock()
        key = question.lower()
        for entry in entries:
            if entry.question.lower() == key:
                entry.answer = answer
                entry.last_used = now
                entry.use_count += 1
                stored = entry
                break
        else:
            stored = QuestionCacheEntry(question=question, answer=answer, added_at=now, last_used=now, use_count=1)
            entries.append(stored)

        if len(entries) > MAX_CACHE_ENTRIES:
            entries.sort(key=lambda e: _recency(e.last_used), reverse=True)
            dropped = len(entries) - MAX_CACHE_ENTRIES
            entries = entries[:MAX_CACHE_ENTRIES]
            log.debug("Question cache over capacity; evicted %d least recently used", dropped)

        self._save(entries)
        return stored
