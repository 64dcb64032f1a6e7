"""Load candidate profile, preferences and service settings."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from jobapply.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
PROFILE_PATH: Path = CONFIG_DIR / "profile.yaml"
DATA_DIR: Path = ROOT_DIR / "data"
RESUME_DIR: Path = ROOT_DIR / "resume"

DEFAULT_OLLAMA_URL = "http://127.0.0.1:11434"
DEFAULT_MODEL = "llama3.2:3b"
DEFAULT_REASONING_MODEL = "deepseek-r1:8b"

# Answers to the questions most application forms ask; used wherever the
# profile file leaves a preference out.
DEFAULT_PREFERENCES: dict[str, str] = {
    "job_type": "Full Time",
    "location": "Remote",
    "work_authorization": "US Citizen",
    "willing_to_relocate": "Yes",
    "veteran_status": "Not a Veteran",
    "disability_status": "No Disability",
    "security_clearance": "None",
    "requires_sponsorship": "No",
    "notice_period": "2 weeks",
    "salary_expectation": "",
    "available_start_date": "",
    "willing_to_travel": "Occasionally",
}


@dataclass(frozen=True)
class Settings:
    ollama_url: str = DEFAULT_OLLAMA_URL
    default_model: str = DEFAULT_MODEL
    reasoning_model: str = DEFAULT_REASONING_MODEL
    timeout: float | None = None
    data_dir: Path = DATA_DIR


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def load_settings() -> Settings:
    raw_timeout = get_env("OLLAMA_TIMEOUT")
    timeout: float | None = None
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            log.warning("Ignoring non-numeric OLLAMA_TIMEOUT=%r", raw_timeout)
    data_dir = get_env("JOBAPPLY_DATA_DIR")
    return Settings(
        ollama_url=(get_env("OLLAMA_BASE_URL") or DEFAULT_OLLAMA_URL).rstrip("/"),
        default_model=get_env("OLLAMA_MODEL") or DEFAULT_MODEL,
        reasoning_model=get_env("OLLAMA_REASONING_MODEL") or DEFAULT_REASONING_MODEL,
        timeout=timeout,
        data_dir=Path(data_dir).expanduser() if data_dir else DATA_DIR,
    )


def ensure_dirs() -> None:
    for d in (CONFIG_DIR, DATA_DIR, RESUME_DIR):
        d.mkdir(parents=True, exist_ok=True)


def get_resume_path(resume_dir: Path | None = None) -> Path | None:
    """First TXT, PDF or DOCX in the resume folder."""
    resume_dir = resume_dir or RESUME_DIR
    if not resume_dir.exists():
        return None
    for ext in (".txt", ".pdf", ".docx"):
        for p in sorted(resume_dir.iterdir()):
            if p.suffix.lower() == ext and p.is_file():
                return p
    return None


def _flatten(section: Any) -> dict[str, str]:
    if not isinstance(section, dict):
        return {}
    flat: dict[str, str] = {}
    for key, value in section.items():
        if value is None:
            flat[str(key)] = ""
        elif isinstance(value, (list, tuple)):
            flat[str(key)] = ", ".join(str(v) for v in value)
        else:
            flat[str(key)] = str(value)
    return flat


def load_profile(path: Path | None = None, *, resume_text: str = "") -> tuple[dict[str, str], dict[str, str]]:
    """Return ``(profile, preferences)`` as flat string mappings.

    A missing or empty profile section is populated from *resume_text* when
    one is given; preferences always include every ``DEFAULT_PREFERENCES`` key.
    """
    path = path or PROFILE_PATH
    data: dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            log.warning("Could not read profile %s (%s); using defaults", path, exc)
            data = {}
    else:
        log.debug("No profile at %s", path)
    if not isinstance(data, dict):
        log.warning("Profile %s is not a mapping; using defaults", path)
        data = {}

    profile = _flatten(data.get("profile"))
    if not any(profile.values()) and resume_text:
        from jobapply.resume_parser import parse_resume_text

        profile = _flatten(parse_resume_text(resume_text))
        log.info("Profile auto-populated from resume: %s", profile.get("full_name") or "unknown name")

    preferences = dict(DEFAULT_PREFERENCES)
    preferences.update(_flatten(data.get("preferences")))
    if not preferences.get("location") and profile.get("location"):
        preferences["location"] = profile["location"]
    return profile, preferences
