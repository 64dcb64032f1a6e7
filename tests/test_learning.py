from jobapply.activity import MAX_ACTIVITIES, ActivityFeed
from jobapply.learning import MAX_PATTERNS, LearnedPatternStore
from jobapply.models import FieldDescriptor, JobContext


def test_learn_and_find_by_label(store, clock):
    patterns = LearnedPatternStore(store, clock=clock)
    field = FieldDescriptor(type="textarea", label="Why do you want to work here?", name="why")
    patterns.learn(field, "Mission fit", JobContext(job_type="Full Time"))

    assert patterns.find(FieldDescriptor(label="why do you want to work here?")) == "Mission fit"
    assert patterns.find(FieldDescriptor(label="Other", name="WHY")) == "Mission fit"
    assert patterns.find(FieldDescriptor(label="Cover letter", name="cover")) is None
    assert patterns.patterns()[0].job_type == "Full Time"


def test_similar_returns_recent_containing_matches(store, clock):
    patterns = LearnedPatternStore(store, clock=clock)
    for i in range(5):
        patterns.learn(FieldDescriptor(label=f"Tell us about project {i}"), f"answer {i}")
    patterns.learn(FieldDescriptor(label="Salary"), "100k")

    similar = patterns.similar(FieldDescriptor(label="project"))
    assert [p.value for p in similar] == ["answer 2", "answer 3", "answer 4"]


def test_patterns_are_fifo_capped(store, clock):
    patterns = LearnedPatternStore(store, clock=clock)
    for i in range(MAX_PATTERNS + 3):
        patterns.learn(FieldDescriptor(label=f"field {i}"), str(i))
    stored = patterns.patterns()
    assert len(stored) == MAX_PATTERNS
    assert stored[0].value == "3"
    assert stored[-1].value == str(MAX_PATTERNS + 2)


def test_activity_feed_is_newest_first_and_capped(store, clock):
    feed = ActivityFeed(store, clock=clock)
    for i in range(MAX_ACTIVITIES + 5):
        feed.emit("success", f"event {i}")
    recent = feed.recent()
    assert len(recent) == MAX_ACTIVITIES
    assert recent[0].message == f"event {MAX_ACTIVITIES + 4}"
    assert feed.recent(2)[1].message == f"event {MAX_ACTIVITIES + 3}"


def test_activity_listener_failure_does_not_break_emit(store, clock):
    feed = ActivityFeed(store, clock=clock)
    seen = []

    def broken(activity):
        raise RuntimeError("listener bug")

    feed.subscribe(broken)
    feed.subscribe(seen.append)
    feed.emit("error", "something happened")
    assert [a.message for a in seen] == ["something happened"]

    feed.unsubscribe(seen.append)
    feed.emit("success", "again")
    assert len(seen) == 1
