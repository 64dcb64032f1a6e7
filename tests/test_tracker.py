from jobapply import tracker
from jobapply.models import JobContext, JobFitResult


def test_record_job_view_upserts_by_url(tmp_path):
    path = tmp_path / "applications.csv"
    ctx = JobContext(url="https://example.com/jobs/1", job_title="SRE", company="Acme", location="Remote")

    tracker.record_job_view(ctx, JobFitResult(70, "decent"), path)
    tracker.record_job_view(ctx, JobFitResult(82, "better"), path)

    rows = tracker.get_applications(path)
    assert len(rows) == 1
    assert rows[0]["fit_score"] == "82"
    assert rows[0]["fit_reason"] == "better"
    assert rows[0]["applied"] == "no"


def test_mark_applied(tmp_path):
    path = tmp_path / "applications.csv"
    ctx = JobContext(url="https://example.com/jobs/2", job_title="Data Engineer", company="Globex")
    tracker.record_job_view(ctx, None, path)

    assert tracker.mark_applied(ctx.url, path) is True
    row = tracker.get_applications(path)[0]
    assert row["applied"] == "yes"
    assert row["applied_at"]

    tracker.record_job_view(ctx, JobFitResult(60, "viewed again"), path)
    assert tracker.get_applications(path)[0]["applied"] == "yes"


def test_mark_applied_unknown_url(tmp_path):
    path = tmp_path / "applications.csv"
    assert tracker.mark_applied("https://example.com/nope", path) is False
    assert tracker.get_applications(path) == []
