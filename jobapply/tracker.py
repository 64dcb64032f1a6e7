"""Track viewed and applied jobs in a CSV table with file locking."""
from __future__ import annotations

import csv
from datetime import datetime, timezone
from pathlib import Path

from jobapply.config import DATA_DIR
from jobapply.log import get_logger
from jobapply.models import JobContext, JobFitResult
from jobapply.storage import _lock, _unlock

log = get_logger(__name__)

APPLICATIONS_CSV: Path = DATA_DIR / "applications.csv"
HEADERS: list[str] = [
    "url", "job_title", "company", "location", "job_type", "work_model",
    "fit_score", "fit_reason", "applied", "applied_at", "last_viewed",
]


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M")


def ensure_tracker(path: Path | None = None) -> Path:
    path = path or APPLICATIONS_CSV
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        with open(path, "w", newline="", encoding="utf-8") as f:
            _lock(f)
            csv.writer(f).writerow(HEADERS)
            _unlock(f)
        log.info("Created application tracker → %s", path.name)
    return path


def get_applications(path: Path | None = None) -> list[dict[str, str]]:
    path = ensure_tracker(path)
    with open(path, "r", encoding="utf-8") as f:
        _lock(f, exclusive=False)
        rows = list(csv.DictReader(f))
        _unlock(f)
    return rows


def _write_all(path: Path, rows: list[dict[str, str]]) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        _lock(f)
        w = csv.DictWriter(f, fieldnames=HEADERS, extrasaction="ignore")
        w.writeheader()
        w.writerows(rows)
        _unlock(f)


def record_job_view(ctx: JobContext, fit: JobFitResult | None = None, path: Path | None = None) -> dict[str, str]:
    """Insert or refresh the row for ``ctx.url``; applied state is preserved."""
    path = ensure_tracker(path)
    rows = get_applications(path)
    row = next((r for r in rows if r.get("url") == ctx.url), None)
    if row is None:
        row = {h: "" for h in HEADERS}
        row["applied"] = "no"
        rows.append(row)

    row.update({
        "url": ctx.url,
        "job_title": ctx.job_title or ctx.title,
        "company": ctx.company,
        "location": ctx.location,
        "job_type": ctx.job_type,
        "work_model": ctx.work_model,
        "last_viewed": _now(),
    })
    if fit is not None:
        row["fit_score"] = str(fit.score)
        row["fit_reason"] = fit.reason

    _write_all(path, rows)
    log.debug("Tracked view: %s @ %s", row["job_title"] or "?", row["company"] or "?")
    return row


def mark_applied(url: str, path: Path | None = None) -> bool:
    """Flag an existing row as applied. False when the URL was never tracked."""
    path = ensure_tracker(path)
    rows = get_applications(path)
    for r in rows:
        if r.get("url") == url:
            r["applied"] = "yes"
            r["applied_at"] = _now()
            break
    else:
        return False
    _write_all(path, rows)
    log.debug("Marked applied → %s", url)
    return True
