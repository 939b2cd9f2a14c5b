"""Bounded line selection for source-file digests.

Keeps declarations, comment lines and the bodies of block comments, in the
original order, marking each omitted region with a ``...`` line. The result
never exceeds ``max_lines`` entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from repo_analyzer.language_patterns import LanguagePatterns


GAP_MARKER = "..."

# Comment continuations that count regardless of language.
_EXTRA_COMMENT_STARTS = ("*", "/**", "**/")


@dataclass
class ProcessingState:
    in_comment_block: bool = False


class ContentSelector:
    def __init__(self, patterns: LanguagePatterns, max_lines: int) -> None:
        self.patterns = patterns
        self.max_lines = max(0, max_lines)

    def select(self, lines: Sequence[str]) -> list[str]:
        if not lines or self.max_lines == 0:
            return []

        include = self._inclusion_flags(lines)

        digest: list[str] = []
        last_included = -2
        for index, line in enumerate(lines):
            if not include[index]:
                continue

            # Only spend a slot on the marker if a content line still fits after it.
            if digest and index != last_included + 1 and len(digest) + 2 <= self.max_lines:
                digest.append(GAP_MARKER)

            if len(digest) >= self.max_lines:
                break

            digest.append(self._normalize_definition(line) if self.patterns.is_definition(line) else line)
            last_included = index

            if len(digest) >= self.max_lines:
                break

        return digest

    def _inclusion_flags(self, lines: Sequence[str]) -> list[bool]:
        state = ProcessingState()
        flags: list[bool] = []
        for line in lines:
            trimmed = line.strip()
            flags.append(self.patterns.is_definition(line) or self._is_comment_line(trimmed) or state.in_comment_block)
            state.in_comment_block = self._next_block_state(trimmed, state.in_comment_block)
        return flags

    def _is_comment_line(self, trimmed: str) -> bool:
        p = self.patterns
        return (
            trimmed.startswith(p.comment_prefixes)
            or trimmed.startswith(p.block_comment_start)
            or trimmed.startswith(_EXTRA_COMMENT_STARTS)
            or any(trimmed.startswith(marker) for marker in p.toggle_markers)
        )

    def _next_block_state(self, trimmed: str, in_block: bool) -> bool:
        p = self.patterns
        if p.symmetric_block:
            for marker in (p.block_comment_start, *p.toggle_markers):
                if marker and (trimmed.startswith(marker) or trimmed.endswith(marker)):
                    return self._toggle(trimmed, marker, in_block)
            return in_block

        if trimmed.startswith(p.block_comment_start) and not trimmed.endswith(p.block_comment_end):
            return True
        if trimmed.endswith(p.block_comment_end):
            return False
        for marker in p.toggle_markers:
            if trimmed.startswith(marker) or trimmed.endswith(marker):
                return self._toggle(trimmed, marker, in_block)
        return in_block

    @staticmethod
    def _toggle(trimmed: str, marker: str, in_block: bool) -> bool:
        # A bare marker flips the state.
        if trimmed == marker:
            return not in_block
        # Opened and closed on one line: a one-line docstring.
        if trimmed.startswith(marker) and trimmed.endswith(marker) and len(trimmed) >= 2 * len(marker):
            return in_block
        if not in_block and trimmed.startswith(marker):
            return True
        if in_block and trimmed.endswith(marker):
            return False
        return in_block

    @staticmethod
    def _normalize_definition(line: str) -> str:
        trimmed = line.strip()
        if "{" in trimmed and "}" not in trimmed:
            return f"{trimmed} }}"
        return trimmed


def select_lines(lines: Sequence[str], patterns: LanguagePatterns, max_lines: int) -> list[str]:
    return ContentSelector(patterns, max_lines).select(lines)
