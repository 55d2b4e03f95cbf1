import json
import os
import threading
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import requests

"""
Client for the local legislative reasoning service.

The service answers free-text questions about bills:

    GET {REASONING_BASE_URL}/query?question=<text>
    -> {"answer": ..., "policy_area": ..., "question": ...}

Answers can take minutes to produce, so the timeout is long. It is a
total deadline for the whole request, body included.
There is no automatic retry: a timed-out question is reported to the
caller as ReasoningTimeout, which is kept distinct from other failures.
"""

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

REASONING_BASE: str = os.getenv("REASONING_BASE_URL", "http://127.0.0.1:5000").rstrip("/")

DEFAULT_TIMEOUT: float = float(os.getenv("REASONING_TIMEOUT", "300"))


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ReasoningError(RuntimeError):
    """Domain-specific error for reasoning service failures."""


class ReasoningTimeout(ReasoningError):
    """The service did not answer within the timeout."""


class ReasoningHTTPError(ReasoningError):
    """The service answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Response model
# ---------------------------------------------------------------------------

@dataclass
class ReasoningAnswer:
    answer: str
    policy_area: Optional[str]
    question: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------

_CHUNK_SIZE = 1024


def _read_body(resp: requests.Response, url: str, timeout: float, deadline: float) -> bytes:
    chunks: List[bytes] = []
    try:
        for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
            if time.monotonic() > deadline:
                raise ReasoningTimeout(
                    f"Reasoning service did not answer within {timeout:g}s ({url})"
                )
            chunks.append(chunk)
    except requests.exceptions.Timeout as exc:
        raise ReasoningTimeout(
            f"Reasoning service did not answer within {timeout:g}s ({url})"
        ) from exc
    except requests.exceptions.RequestException as exc:
        raise ReasoningError(f"Reasoning response interrupted ({url}): {exc}") from exc
    return b"".join(chunks)


def _fetch_json(
    url: str,
    params: Dict[str, Any],
    timeout: float,
    deadline: float,
) -> Dict[str, Any]:
    try:
        resp = requests.get(url, params=params, timeout=timeout, stream=True)
    except requests.exceptions.Timeout as exc:
        raise ReasoningTimeout(
            f"Reasoning service did not answer within {timeout:g}s ({url})"
        ) from exc
    except requests.exceptions.RequestException as exc:  # network-level error
        raise ReasoningError(f"Reasoning request failed ({url}): {exc}") from exc

    try:
        body = _read_body(resp, url, timeout, deadline)
    finally:
        resp.close()

    body_preview = body[:400].decode("utf-8", errors="replace")

    if not 200 <= resp.status_code < 300:
        raise ReasoningHTTPError(
            f"Reasoning request failed ({url}): HTTP {resp.status_code} :: {body_preview}",
            resp.status_code,
        )

    try:
        data = json.loads(body)
    except ValueError as exc:
        raise ReasoningError(
            f"Reasoning service returned non-JSON response from {url}: {body_preview}"
        ) from exc

    if not isinstance(data, dict):
        raise ReasoningError(f"Reasoning service returned unexpected payload from {url}")
    return data


def _request_json(
    path: str,
    params: Dict[str, Any],
    base_url: str,
    timeout: float,
) -> Dict[str, Any]:
    """
    GET ``path`` and decode the JSON object it returns.

    ``timeout`` bounds the whole exchange (connect, status line and body),
    not each socket read. The request runs on a daemon thread so a server
    that trickles its answer cannot hold the caller past the deadline.
    """
    url = f"{base_url}{path}"
    deadline = time.monotonic() + timeout
    outcome: Dict[str, Any] = {}

    def _worker() -> None:
        try:
            outcome["data"] = _fetch_json(url, params, timeout, deadline)
        except Exception as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=_worker, name="reasoning-request", daemon=True)
    worker.start()
    worker.join(timeout)

    if worker.is_alive():
        raise ReasoningTimeout(
            f"Reasoning service did not answer within {timeout:g}s ({url})"
        )
    if "error" in outcome:
        raise outcome["error"]
    return outcome["data"]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def ask(
    question: str,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ReasoningAnswer:
    """
    Send a question to the reasoning service and return its answer.

    Raises ValueError for an empty question, ReasoningTimeout when the
    service is too slow and ReasoningError (or ReasoningHTTPError) for
    any other failure.
    """
    question = (question or "").strip()
    if not question:
        raise ValueError("question must not be empty")

    data = _request_json(
        "/query",
        {"question": question},
        (base_url or REASONING_BASE).rstrip("/"),
        DEFAULT_TIMEOUT if timeout is None else timeout,
    )

    answer = data.get("answer")
    return ReasoningAnswer(
        answer="" if answer is None else str(answer),
        policy_area=data.get("policy_area"),
        question=str(data.get("question") or question),
    )


__all__ = [
    "REASONING_BASE",
    "DEFAULT_TIMEOUT",
    "ReasoningError",
    "ReasoningTimeout",
    "ReasoningHTTPError",
    "ReasoningAnswer",
    "ask",
]
