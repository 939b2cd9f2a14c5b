"""Start an analysis on a running server and poll until it settles."""

from __future__ import annotations

import json
import os
import sys
import time
from typing import Any, Callable

import requests


TERMINAL_STATUSES = {"completed", "error", "cancelled", "not_found"}


def _post(base_url: str, path: str, payload: dict[str, Any], timeout: float) -> dict[str, Any]:
    response = requests.post(f"{base_url}{path}", json=payload, timeout=timeout)
    if response.status_code != 200:
        try:
            detail = json.dumps(response.json(), ensure_ascii=True, indent=2)
        except ValueError:
            detail = response.text
        raise RuntimeError(f"{path} returned {response.status_code}:\n{detail}")
    return response.json()


def main(argv: list[str], sleep: Callable[[float], None] = time.sleep) -> int:
    if len(argv) < 2:
        print("Usage: python scripts/analyze_repo.py <repo_url> [branch]")
        return 2

    repo_url = argv[1].strip()
    if not repo_url:
        print("repo_url cannot be empty")
        return 2
    branch = argv[2].strip() if len(argv) > 2 and argv[2].strip() else "main"

    base_url = os.getenv("ANALYZER_BASE_URL", "http://localhost:3001").rstrip("/")
    try:
        # The server answers within its synchronous bound, so the request timeout only needs headroom.
        request_timeout = float(os.getenv("ANALYZER_REQUEST_TIMEOUT_SECONDS", "60"))
        poll_interval = float(os.getenv("ANALYZER_POLL_SECONDS", "5"))
    except ValueError:
        request_timeout, poll_interval = 60.0, 5.0

    payload = {"repo_url": repo_url, "branch": branch}
    try:
        result = _post(base_url, "/analyze", payload, request_timeout)
        last_progress = None
        while result["status"] not in TERMINAL_STATUSES:
            progress = result.get("progress") or result.get("message")
            if progress and progress != last_progress:
                print(f"[{result['status']}] {progress}")
                last_progress = progress
            sleep(poll_interval)
            result = _post(base_url, "/status", payload, request_timeout)
    except (requests.RequestException, RuntimeError) as exc:
        print(f"Analysis request failed: {exc}")
        return 1

    if result["status"] == "completed":
        print(result.get("text", ""))
        return 0

    print(f"Analysis ended with status {result['status']}: {result.get('message', '')}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
