#!/usr/bin/env python3
"""Command-line entry point for the application assistant.

    python run_assistant.py status --wait 5
    python run_assistant.py fit job.yaml
    python run_assistant.py ask "Are you authorized to work in the US?" --type radio
    python run_assistant.py learn "Desired salary" "120000"
    python run_assistant.py applied https://example.com/jobs/42
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

import yaml

from jobapply.errors import InferenceError, user_hint
from jobapply.log import get_logger, set_console_level
from jobapply.models import FieldDescriptor, JobContext
from jobapply.retry import wait_for_service

log = get_logger(__name__)


def _cmd_status(assistant, args) -> int:
    gateway = assistant.gateway

    def waiting(attempt, total, exc, delay):
        print(f"  … Ollama not reachable at {gateway.base_url} ({attempt}/{total}), retrying in {delay:.1f}s")

    try:
        models = wait_for_service(gateway, args.wait, on_wait=waiting)
    except InferenceError as exc:
        print(f"  ✗ {user_hint(exc, gateway.default_model)}")
        return 1
    names = [str(m.get("name", "")) for m in models]
    print(f"  ✓ Ollama at {gateway.base_url}: {len(names)} model(s)")
    for name in names:
        print(f"    - {name}")
    print(f"  Model for job fit: {gateway.select_model()}")
    return 0


def _cmd_fit(assistant, args) -> int:
    path = Path(args.job_yaml)
    if not path.exists():
        print(f"  ✗ File not found: {path}")
        return 1
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    fit = assistant.store_job_context(JobContext.from_dict(data))
    print(f"  Fit score: {fit.score}/100")
    print(f"  {fit.reason}")
    return 0


def _cmd_ask(assistant, args) -> int:
    field = FieldDescriptor(type=args.type, label=args.question, max_length=args.max_length)
    try:
        resolution = assistant.get_smart_answer(args.question, field)
    except InferenceError as exc:
        print(f"  ✗ {user_hint(exc, assistant.gateway.default_model)}")
        return 1
    if resolution.value is None:
        print(f"  No answer ({resolution.source})")
        return 1
    print(f"  [{resolution.source}/{resolution.confidence}] {resolution.value}")
    return 0


def _cmd_learn(assistant, args) -> int:
    assistant.save_learned_answer(args.question, args.answer)
    print(f'  ✓ Saved answer for "{args.question}"')
    return 0


def _cmd_applied(assistant, args) -> int:
    if assistant.mark_applied(args.url):
        print(f"  ✓ Marked as applied: {args.url}")
        return 0
    print(f"  ✗ Job not tracked yet: {args.url}")
    return 1


def _cmd_conversation(assistant, args) -> int:
    summary = assistant.conversation_status()
    current = summary["current"]
    if not current:
        print("  No active conversation")
        return 0
    print(f"  {current['job_title']} @ {current['company']} ({summary['message_count']} messages)")
    for m in summary["messages"]:
        first_line = m["content"].strip().splitlines()[0] if m["content"].strip() else ""
        print(f"    {m['role']:>9}: {first_line[:100]}")
    return 0


def _cmd_activity(assistant, args) -> int:
    for a in assistant.feed.recent(args.limit):
        print(f"  {a.timestamp}  {a.type:<15} {a.message}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Job application assistant backed by a local Ollama server")
    parser.add_argument("--log-level", default=None, help="Console log level (DEBUG, INFO, WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("status", help="Check the Ollama server and list models")
    p.add_argument("--wait", type=int, default=1, help="Attempts before giving up")
    p.set_defaults(handler=_cmd_status)

    p = sub.add_parser("fit", help="Score a job posting (YAML) and make it the current job")
    p.add_argument("job_yaml")
    p.set_defaults(handler=_cmd_fit)

    p = sub.add_parser("ask", help="Answer an application question")
    p.add_argument("question")
    p.add_argument("--type", default="text", help="Field type (text, textarea, radio, checkbox, select)")
    p.add_argument("--max-length", dest="max_length", type=int, default=None)
    p.set_defaults(handler=_cmd_ask)

    p = sub.add_parser("learn", help="Remember a confirmed answer")
    p.add_argument("question")
    p.add_argument("answer")
    p.set_defaults(handler=_cmd_learn)

    p = sub.add_parser("applied", help="Mark a tracked job as applied")
    p.add_argument("url")
    p.set_defaults(handler=_cmd_applied)

    p = sub.add_parser("conversation", help="Show the current job conversation")
    p.set_defaults(handler=_cmd_conversation)

    p = sub.add_parser("activity", help="Show recent activity")
    p.add_argument("--limit", type=int, default=20)
    p.set_defaults(handler=_cmd_activity)
    return parser


def main(argv: list[str] | None = None, assistant=None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        set_console_level(args.log_level)
    if assistant is None:
        from jobapply.assistant import ApplicationAssistant

        assistant = ApplicationAssistant.from_settings()
    return args.handler(assistant, args)


if __name__ == "__main__":
    sys.exit(main())
