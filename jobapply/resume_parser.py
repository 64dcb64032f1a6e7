"""Read resume files and pull contact details out of the text.

Supports PDF (via pdftotext or pypdf), DOCX (via stdlib zipfile) and TXT.
The text feeds the model prompts; the heuristic parser fills an empty
profile so the profile tier has something to answer with.
"""
from __future__ import annotations

import re
import shutil
import subprocess
import zipfile
from datetime import datetime
from pathlib import Path
from xml.etree import ElementTree

from jobapply.config import get_resume_path
from jobapply.log import get_logger

log = get_logger(__name__)

# ── Text extraction ──────────────────────────────────────────────────────


def extract_text(path: Path) -> str:
    """Return plain text from a PDF, DOCX, or TXT file."""
    suffix = path.suffix.lower()
    if suffix == ".txt":
        return path.read_text(encoding="utf-8", errors="ignore")
    if suffix == ".docx":
        return _extract_docx(path)
    if suffix == ".pdf":
        return _extract_pdf(path)
    raise ValueError(f"Unsupported resume format: {suffix}")


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when PDF extraction runs words together."""
    if not text or len(text) < 50:
        return text
    if text.count(" ") / len(text) > 0.08:
        return text
    fixed = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    fixed = re.sub(r"([.!?,;:])([A-Za-z])", r"\1 \2", fixed)
    return fixed


def _extract_pdf(path: Path) -> str:
    if shutil.which("pdftotext"):
        result = subprocess.run(
            ["pdftotext", "-layout", str(path), "-"],
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout

    from pypdf import PdfReader

    reader = PdfReader(str(path))
    return "\n".join(_fix_spacing(page.extract_text() or "") for page in reader.pages)


def _extract_docx(path: Path) -> str:
    ns = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"
    texts: list[str] = []
    with zipfile.ZipFile(path) as zf:
        with zf.open("word/document.xml") as f:
            tree = ElementTree.parse(f)
            for para in tree.iter(f"{ns}p"):
                parts = [node.text for node in para.iter(f"{ns}t") if node.text]
                if parts:
                    texts.append("".join(parts))
    return "\n".join(texts)


def load_resume_text(resume_dir: Path | None = None) -> str:
    """Text of the first resume in the resume folder, or "" if there is none."""
    path = get_resume_path(resume_dir)
    if path is None:
        return ""
    try:
        text = extract_text(path)
    except (OSError, ValueError, ImportError, zipfile.BadZipFile, ElementTree.ParseError) as exc:
        log.warning("Could not read resume %s: %s", path.name, exc)
        return ""
    log.info("Loaded resume text from %s (%d chars)", path.name, len(text))
    return text


# ── Heuristic profile extraction ─────────────────────────────────────────

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
_PHONE_RE = re.compile(r"\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
_LINKEDIN_RE = re.compile(r"linkedin\.com/in/([\w-]+)", re.IGNORECASE)
_GITHUB_RE = re.compile(r"github\.com/([\w-]+)", re.IGNORECASE)
_WEBSITE_RE = re.compile(r"(?:https?://)?(?:[\w-]+\.)+(?:com|io|dev|net|org|me|app)\b(?:/[\w./-]*)?", re.IGNORECASE)
_CONTACT_NAME_RE = re.compile(r"CONTACT\s*\n\s*([A-Z][a-z]+\s+[A-Z][a-z]+)")
_LEADING_NAME_RE = re.compile(r"^([A-Z][a-z]+\s+[A-Z][a-z]+)", re.MULTILINE)
_LOCATION_RE = re.compile(r"([A-Z][a-z]+(?: [A-Z][a-z]+)?,\s*[A-Z]{2})\b")
_SUMMARY_RE = re.compile(
    r"SUMMARY\s*\n\s*([\s\S]*?)(?=\n\s*\n|KEY SKILLS|CERTIFICATIONS|PROFESSIONAL|\Z)", re.IGNORECASE
)
_SKILLS_RE = re.compile(
    r"(?:KEY |TECHNICAL )?SKILLS\s*\n\s*([\s\S]*?)(?=\n\s*\n|CERTIFICATIONS|PROFESSIONAL|EXPERIENCE|\Z)"
)
_YEAR_RE = re.compile(r"\b(19[89]\d|20\d{2})\b")


def parse_resume_text(text: str, *, current_year: int | None = None) -> dict[str, str | int | list[str]]:
    """Best-effort extraction of contact details, skills and experience."""
    current_year = current_year or datetime.now().year
    profile: dict[str, str | int | list[str]] = {
        "full_name": "",
        "email": "",
        "phone": "",
        "location": "",
        "linkedin": "",
        "github": "",
        "website": "",
        "years_experience": 0,
        "skills": [],
        "summary": "",
    }

    if m := _EMAIL_RE.search(text):
        profile["email"] = m.group(0)
    if m := _PHONE_RE.search(text):
        profile["phone"] = m.group(0)
    if m := _LINKEDIN_RE.search(text):
        profile["linkedin"] = f"https://linkedin.com/in/{m.group(1)}"
    if m := _GITHUB_RE.search(text):
        profile["github"] = f"https://github.com/{m.group(1)}"

    email_domain = str(profile["email"]).split("@")[-1].lower()
    for m in _WEBSITE_RE.finditer(text):
        site = m.group(0)
        low = site.lower()
        if "linkedin" in low or "github" in low or (email_domain and low.endswith(email_domain)):
            continue
        if text[max(0, m.start() - 1):m.start()] == "@":
            continue
        profile["website"] = site if low.startswith("http") else f"https://{site}"
        break

    name = _CONTACT_NAME_RE.search(text) or _LEADING_NAME_RE.search(text)
    if name:
        profile["full_name"] = name.group(1)

    if m := _LOCATION_RE.search(text):
        profile["location"] = m.group(1)

    if m := _SUMMARY_RE.search(text):
        profile["summary"] = " ".join(m.group(1).split())

    if m := _SKILLS_RE.search(text):
        skills = [s.strip(" •-*\t") for s in re.split(r"\n|,|\|", m.group(1))]
        profile["skills"] = [s for s in skills if 2 < len(s) < 50]

    years = [int(y) for y in _YEAR_RE.findall(text) if int(y) <= current_year]
    if years:
        profile["years_experience"] = current_year - min(years)

    log.debug(
        "Heuristic resume parse: name=%s, skills=%d",
        profile["full_name"] or "?",
        len(profile["skills"]),
    )
    return profile
