"""Prompt templates sent to the local model."""
from __future__ import annotations

import json
import re
from typing import Mapping, Sequence

from jobapply.models import FieldDescriptor, JobContext, LearnedPattern

RESUME_EXCERPT_CHARS = 2000
FIT_DESCRIPTION_CHARS = 2000
ANSWER_DESCRIPTION_CHARS = 1200
GENERATION_DESCRIPTION_CHARS = 500
SHORT_ANSWER_MAX_LENGTH = 400

_SYSTEM_PROMPT = (
    "You are a helpful assistant helping a job candidate fill out application forms. "
    "You have access to their resume and should provide honest, professional answers "
    "based on their experience. Keep responses concise and relevant to the questions asked. "
    "You're currently helping with an application for {job_title} at {company}."
)

_FIT_PROMPT = """\
You are evaluating how well a candidate matches a specific job.

MY RESUME (only use information that is actually present):
{resume}

JOB POSTING:
Title: {job_title}
Company: {company}
Location: {location}
Type: {job_type} | {work_model}
Description:
{description}

SCORING INSTRUCTIONS (0-100):
- Base the score mainly on overlap between my skills/experience and the job requirements.
- 0-20 = almost no relevant skills or experience.
- 21-40 = some limited overlap but mostly a stretch.
- 41-60 = partial match; I meet some core requirements.
- 61-80 = solid match; I meet most core requirements.
- 81-100 = strong match; I clearly fit the role very well.
- Do not give extremely low scores (below 20) unless there is almost no overlap.

RETURN FORMAT (one line):
SCORE: NN/100 - Short reason summarizing the main factors."""

_ANSWER_PROMPT = """\
I'm filling out an online job application. Answer this question based on my profile, my resume, and the job I'm applying for.

JOB:
Title: {job_title}
Company: {company}
Description:
{description}

PROFILE:
{profile_summary}

MY RESUME (summary text):
{resume}

QUESTION: {question}
FIELD TYPE: {field_type}
{options}

LENGTH / STYLE:
- {length_hint}
- Write in first person, as if you are me.
- Be specific and concrete, not generic.{extra}

Return ONLY the final answer text to paste into the field (no preamble like "Answer:" or "Explanation:")."""

_BOOLEAN_INSTRUCTIONS = """
BOOLEAN DECISION:
- First, decide if the correct answer is YES or NO for this person.
- Start your response with YES or NO in all caps, then a short explanation.
- If the checkbox should be left unchecked, clearly answer NO."""

_SKILLS_INSTRUCTIONS = """
SKILLS QUESTION:
- Select 5-10 key skills or technologies from MY RESUME that are most relevant to the JOB.
- Only use skills that actually appear in my resume; do not invent new ones.
- Prefer skills and tools that are explicitly mentioned in the job description.
- Return them as a single comma-separated list (no bullets, no extra sentences)."""

_GENERATION_PROMPT = """\
You are helping fill out a job application form. Generate appropriate content for the following field.

Job Information:
- Position: {job_title}
- Company: {company}
- Job Type: {job_type}
- Description: {description}

Field to Fill:
- Label: {label}
- Type: {field_type}
- Placeholder: {placeholder}
- Name: {name}

User Profile:
- Name: {full_name}
- Email: {email}
- Experience: {years} years

User Preferences:
- Preferred Job Type: {pref_job_type}
- Preferred Location: {pref_location}
- Work Authorization: {work_authorization}
"""

_FIELD_ANALYSIS_PROMPT = """\
You are an AI assistant helping to fill out a job application form.

Field Information:
- Type: {field_type}
- Label: {label}
- Placeholder: {placeholder}
- Name: {name}
- Required: {required}

User Profile:
{profile}

Page Context:
- URL: {url}
- Title: {title}

Task: Determine what this field is asking for and provide:
1. Field category (email, phone, name, linkedin, address, experience, etc.)
2. Suggested value from user profile if available
3. Confidence level (high/medium/low)

Respond in JSON format:
{{
  "category": "field category",
  "suggestedValue": "value or null",
  "confidence": "high/medium/low",
  "reasoning": "brief explanation"
}}"""

_YES_NO_RE = re.compile(r"\byes\b|\bno\b|\bcheck this box\b|\bselect if\b", re.IGNORECASE)
_SKILLS_RE = re.compile(
    r"key skills|skills and technologies|technical skills|core skills|relevant skills", re.IGNORECASE
)


def _or(value: str | None, fallback: str) -> str:
    return value if value else fallback


def build_system_prompt(job_title: str, company: str) -> str:
    return _SYSTEM_PROMPT.format(job_title=_or(job_title, "an unknown role"), company=_or(company, "an unknown company"))


def profile_summary(profile: Mapping[str, str], preferences: Mapping[str, str]) -> str:
    return "\n".join([
        f"Name: {profile.get('full_name', '')}",
        f"Work authorization: {preferences.get('work_authorization', '')}",
        f"Veteran status: {preferences.get('veteran_status', '')}",
        f"Disability status: {preferences.get('disability_status', '')}",
        f"Security clearance: {preferences.get('security_clearance', '')}",
        f"Requires sponsorship: {preferences.get('requires_sponsorship', '')}",
    ])


def build_fit_prompt(job: JobContext, profile: Mapping[str, str], resume_text: str = "") -> str:
    resume = resume_text[:RESUME_EXCERPT_CHARS].strip()
    if not resume:
        resume = "\n".join([
            f"Name: {_or(profile.get('full_name'), 'Not specified')}",
            f"Skills: {_or(profile.get('skills'), 'Not specified')}",
            f"Experience: {_or(profile.get('years_experience'), 'Not specified')} years",
            f"Location: {_or(profile.get('location'), 'Not specified')}",
        ])
    return _FIT_PROMPT.format(
        resume=resume,
        job_title=job.job_title,
        company=job.company,
        location=_or(job.location, "Not specified"),
        job_type=_or(job.job_type, "Not specified"),
        work_model=_or(job.work_model, "Not specified"),
        description=job.description[:FIT_DESCRIPTION_CHARS],
    )


def length_hint(field: FieldDescriptor) -> str:
    if field.max_length and 0 < field.max_length < SHORT_ANSWER_MAX_LENGTH:
        return f"Keep the answer under {field.max_length} characters (1-2 short sentences)."
    if field.type == "textarea":
        return "Answer in 3-5 concise, specific sentences that sound like you wrote them."
    return "Answer in 2-3 concise, professional sentences."


def is_boolean_question(question: str, field: FieldDescriptor) -> bool:
    return field.is_choice or bool(_YES_NO_RE.search(question))


def is_skills_question(question: str) -> bool:
    return bool(_SKILLS_RE.search(question))


def build_answer_prompt(
    question: str,
    field: FieldDescriptor,
    job: JobContext,
    profile: Mapping[str, str],
    preferences: Mapping[str, str],
    resume_text: str = "",
) -> str:
    options = ""
    if field.options:
        listed = ", ".join(f'{o.text} [value="{o.value}"]' for o in field.options)
        options = f"OPTIONS: {listed}"
    extra = ""
    if is_boolean_question(question, field):
        extra += _BOOLEAN_INSTRUCTIONS
    if is_skills_question(question):
        extra += _SKILLS_INSTRUCTIONS
    return _ANSWER_PROMPT.format(
        job_title=_or(job.job_title, "Unknown"),
        company=_or(job.company, "Unknown"),
        description=job.description[:ANSWER_DESCRIPTION_CHARS],
        profile_summary=profile_summary(profile, preferences),
        resume=resume_text[:RESUME_EXCERPT_CHARS],
        question=question,
        field_type=field.type,
        options=options,
        length_hint=length_hint(field),
        extra=extra,
    )


def build_generation_prompt(
    field: FieldDescriptor,
    job: JobContext | None,
    profile: Mapping[str, str],
    preferences: Mapping[str, str],
    similar: Sequence[LearnedPattern] = (),
) -> str:
    job = job or JobContext()
    prompt = _GENERATION_PROMPT.format(
        job_title=_or(job.job_title, "Unknown"),
        company=_or(job.company, "Unknown"),
        job_type=_or(job.job_type, "Unknown"),
        description=_or(job.description[:GENERATION_DESCRIPTION_CHARS], "Not available"),
        label=field.label,
        field_type=field.type,
        placeholder=_or(field.placeholder, "none"),
        name=field.name,
        full_name=_or(profile.get("full_name"), "Not provided"),
        email=_or(profile.get("email"), "Not provided"),
        years=_or(profile.get("years_experience"), "Not provided"),
        pref_job_type=_or(preferences.get("job_type"), "Full Time"),
        pref_location=_or(preferences.get("location"), "Not specified"),
        work_authorization=_or(preferences.get("work_authorization"), "Not specified"),
    )
    if similar:
        prompt += "\nPrevious Similar Responses:\n"
        for i, p in enumerate(similar[-3:], start=1):
            prompt += f'{i}. "{p.value}"\n'
    prompt += "\nGenerate ONLY the content to fill in this field. Be concise and professional. Do not include quotes or explanations."
    return prompt


def build_field_analysis_prompt(field: FieldDescriptor, profile: Mapping[str, str], job: JobContext) -> str:
    return _FIELD_ANALYSIS_PROMPT.format(
        field_type=field.type,
        label=field.label,
        placeholder=field.placeholder,
        name=field.name,
        required=str(field.required).lower(),
        profile=json.dumps(dict(profile), indent=2) if profile else "No profile available",
        url=job.url,
        title=job.title or job.job_title,
    )
