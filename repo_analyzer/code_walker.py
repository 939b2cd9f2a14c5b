"""Repository file enumeration, screening, and digest collection."""

from __future__ import annotations

import logging
import os
from collections.abc import Collection, Iterator
from dataclasses import dataclass
from pathlib import Path

from repo_analyzer import config
from repo_analyzer.content_selector import ContentSelector
from repo_analyzer.language_patterns import (
    CODE_EXTENSIONS,
    SNIPPET_EXTENSIONS,
    file_extension,
    language_for_extension,
    lookup,
)
from repo_analyzer.utils import is_test_path


logger = logging.getLogger(__name__)

IGNORE_DIRS = frozenset(
    {
        ".git", ".hg", ".svn", "node_modules", "venv", ".venv", "__pycache__",
        "target", "build", "dist", "out", ".gradle", ".idea", ".vscode",
        ".mypy_cache", ".pytest_cache", "vendor", "coverage",
    }
)

BINARY_EXTENSIONS = frozenset(
    {
        "class", "jar", "war", "ear", "zip", "tar", "gz", "rar",
        "exe", "dll", "so", "dylib", "obj", "o", "a", "lib",
        "png", "jpg", "jpeg", "gif", "bmp", "ico", "svg",
        "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx",
    }
)

README_CANDIDATES = ("README.md", "Readme.md", "readme.md", "README.txt", "readme.txt")
NO_README = "No README content available."

SKIP_TOO_LARGE = "File too large"
SKIP_BINARY = "Binary file"


@dataclass(frozen=True)
class SourceFile:
    relative_path: str
    language: str
    content: str


def format_snippet(relative_path: str, language: str, digest: list[str]) -> str:
    body = "\n".join(digest)
    return f"### File: {relative_path}\n~~~{language}\n{body}\n~~~"


class CodeTreeWalker:
    """Read-only walk over a checked-out repository.

    Every call to :meth:`walk` re-reads the file system, so results reflect the
    snapshot at call time.
    """

    def __init__(
        self,
        max_file_bytes: int = config.MAX_FILE_BYTES,
        sniff_bytes: int = config.BINARY_SNIFF_BYTES,
        null_ratio: float = config.BINARY_NULL_RATIO,
    ) -> None:
        self.max_file_bytes = max_file_bytes
        self.sniff_bytes = sniff_bytes
        self.null_ratio = null_ratio

    def walk(
        self,
        root: str | Path,
        *,
        extensions: Collection[str] = CODE_EXTENSIONS,
        exclude_tests: bool = False,
    ) -> Iterator[SourceFile]:
        root = Path(root)
        for path, relative in self.iter_files(root):
            ext = file_extension(relative)
            if ext not in extensions:
                continue
            if self.skip_reason(path, ext) is not None:
                continue
            if exclude_tests and is_test_path(relative):
                continue
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                logger.warning("Skipping unreadable file %s: %s", relative, exc)
                continue
            yield SourceFile(relative_path=relative, language=language_for_extension(ext), content=content)

    def skip_reason(self, path: Path, ext: str) -> str | None:
        """Return why a file must not be analyzed, or None when it is eligible."""
        try:
            size = path.stat().st_size
        except OSError as exc:
            logger.warning("Cannot stat %s: %s", path, exc)
            return "Unreadable file"
        if size > self.max_file_bytes:
            return SKIP_TOO_LARGE
        if ext in BINARY_EXTENSIONS or self._looks_binary(path):
            return SKIP_BINARY
        return None

    def collect_summarized_snippets(self, root: str | Path, max_lines: int = config.MAX_LINES_PER_FILE) -> list[str]:
        snippets: list[str] = []
        for source in self.walk(root, extensions=SNIPPET_EXTENSIONS, exclude_tests=True):
            selector = ContentSelector(lookup(source.language), max_lines)
            digest = selector.select(source.content.splitlines())
            snippets.append(format_snippet(source.relative_path, source.language, digest))
        logger.info("Collected %d summarized snippets from %s", len(snippets), root)
        return snippets

    def find_readme(self, root: str | Path) -> str:
        root = Path(root)
        for name in README_CANDIDATES:
            candidate = root / name
            if candidate.is_file():
                logger.info("Readme file found: %s", candidate)
                try:
                    return candidate.read_text(encoding="utf-8", errors="replace")
                except OSError as exc:
                    logger.warning("Cannot read %s: %s", candidate, exc)
        logger.warning("No readme file found in %s", root)
        return NO_README

    def iter_files(self, root: Path) -> Iterator[tuple[Path, str]]:
        for dirpath, dirnames, filenames in os.walk(root):
            # Prune in place so os.walk never descends into ignored trees.
            dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in IGNORE_DIRS)
            for name in sorted(filenames):
                if name.startswith("."):
                    continue
                path = Path(dirpath) / name
                if not path.is_file():
                    continue
                yield path, path.relative_to(root).as_posix()

    def _looks_binary(self, path: Path) -> bool:
        try:
            with path.open("rb") as handle:
                head = handle.read(self.sniff_bytes)
        except OSError:
            return False
        if not head:
            return False
        return head.count(0) > len(head) * self.null_ratio
