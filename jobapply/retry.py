"""Backoff for waiting on the local Ollama server.

Gateway calls are single-attempt. ``run_assistant.py status --wait N`` is the
one caller that retries: it polls ``/api/tags`` through ``wait_for_service``
until the server answers or the attempts run out. Only ``ServiceUnavailable``
is waited out by default; an HTTP error means the server is up and is raised
at once.
"""
from __future__ import annotations

import functools
import random
import time
from typing import Any, Callable, Iterator, Tuple, Type

from jobapply.errors import ServiceUnavailable
from jobapply.log import get_logger

log = get_logger(__name__)

# on_wait(attempt, max_attempts, error, delay) runs before each pause.
OnWait = Callable[[int, int, BaseException, float], None]


def backoff_delays(
    max_attempts: int,
    *,
    base_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 30.0,
    jitter: bool = True,
) -> Iterator[float]:
    """Pauses between tries; one fewer than ``max_attempts``."""
    for n in range(max_attempts - 1):
        delay = min(base_delay * backoff_factor ** n, max_delay)
        yield delay * (0.5 + random.random()) if jitter else delay


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (ServiceUnavailable,),
    on_wait: OnWait | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            delays = backoff_delays(
                max_attempts,
                base_delay=base_delay,
                backoff_factor=backoff_factor,
                max_delay=max_delay,
                jitter=jitter,
            )
            attempt = 1
            while True:
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    delay = next(delays, None)
                    if delay is None:
                        log.error("%s gave up after %d attempt(s): %s", fn.__qualname__, attempt, exc)
                        raise
                    log.warning(
                        "%s attempt %d/%d failed (%s), next try in %.1fs",
                        fn.__qualname__, attempt, max_attempts, exc, delay,
                    )
                    if on_wait is not None:
                        on_wait(attempt, max_attempts, exc, delay)
                    sleep(delay)
                    attempt += 1

        return wrapper

    return decorator


def wait_for_service(
    gateway,
    attempts: int = 1,
    *,
    on_wait: OnWait | None = None,
    sleep: Callable[[float], None] | None = None,
) -> list[dict[str, Any]]:
    """Installed models from *gateway*, polling while the server is unreachable."""
    poll = retry(
        max_attempts=max(attempts, 1),
        on_wait=on_wait,
        sleep=sleep or time.sleep,
    )(gateway.list_models)
    return poll()
