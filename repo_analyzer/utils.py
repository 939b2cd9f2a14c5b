"""Utility helpers for token budgeting, prompt truncation, and path heuristics."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Optional

import tiktoken


TEST_PATH_RE = re.compile(r"test|spec", re.IGNORECASE)


@lru_cache(maxsize=4)
def _encoding_for(model: str) -> Any:
    return tiktoken.encoding_for_model(model)


def estimate_tokens(text: str, model: Optional[str] = None) -> int:
    if not text:
        return 0
    try:
        encoding = _encoding_for(model or "gpt-4o-mini")
        return len(encoding.encode(text))
    except Exception:
        # Fallback approximation when the tokenizer files or model mapping are unavailable.
        return max(1, len(text) // 4)


def take_within_budget(blocks: list[str], token_budget: int) -> list[str]:
    """Keep blocks in order, skipping any block that no longer fits the budget."""
    kept: list[str] = []
    used = 0
    for block in blocks:
        cost = estimate_tokens(block)
        if used + cost > token_budget:
            continue
        kept.append(block)
        used += cost
    return kept


def summarize_for_prompt(text: str, max_chars: int = 10_000) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "\n... [truncated]"


def is_test_path(relative_path: str) -> bool:
    return TEST_PATH_RE.search(relative_path) is not None
