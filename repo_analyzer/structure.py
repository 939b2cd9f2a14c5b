"""Structural metadata: per-file size, language, imports and declarations."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from repo_analyzer.code_walker import CodeTreeWalker
from repo_analyzer.language_patterns import file_extension, language_for_extension


logger = logging.getLogger(__name__)


@dataclass
class FileMetadata:
    path: str
    size: int
    extension: str
    language: Optional[str] = None
    lines: Optional[int] = None
    imports: list[str] = field(default_factory=list)
    declarations: dict[str, list[str]] = field(default_factory=dict)
    skipped: Optional[str] = None


IMPORT_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "kotlin": [re.compile(r"^\s*import\s+([\w.]+)", re.M)],
    "java": [re.compile(r"^\s*import\s+(?:static\s+)?([\w.]+)(?:\.\*)?;", re.M)],
    "scala": [re.compile(r"^\s*import\s+([\w.]+)", re.M)],
    "python": [
        re.compile(r"^\s*from\s+([\w.]+)\s+import\s", re.M),
        re.compile(r"^\s*import\s+([\w.]+)", re.M),
    ],
    "javascript": [
        re.compile(r"import\s+(?:[\w{}\s,*]+\s+from\s+)?['\"]([^'\"]+)['\"]"),
        re.compile(r"require\(['\"]([^'\"]+)['\"]\)"),
    ],
    "go": [re.compile(r"^\s*(?:import\s+)?\"([\w./-]+)\"", re.M)],
    "ruby": [re.compile(r"require(?:_relative)?\s+['\"]([^'\"]+)['\"]")],
    "rust": [re.compile(r"^\s*use\s+([\w:]+)", re.M)],
    "php": [re.compile(r"^\s*use\s+([\w\\]+)", re.M)],
}
IMPORT_PATTERNS["typescript"] = IMPORT_PATTERNS["javascript"]

DECLARATION_PATTERNS: dict[str, dict[str, re.Pattern[str]]] = {
    "kotlin": {
        "classes": re.compile(r"(?:class|interface|object)\s+(\w+)"),
        "functions": re.compile(r"fun\s+(?:<[^>]*>\s+)?(?:[\w.]+\.)?(\w+)\s*\("),
    },
    "java": {
        "classes": re.compile(r"(?:class|interface|enum|record)\s+(\w+)"),
        "methods": re.compile(
            r"(?:public|private|protected|static|final|synchronized|abstract)\s+[\w<>\[\],\s]*?\s(\w+)\s*\([^)]*\)\s*(?:throws\s+[\w.,\s]+)?\{"
        ),
    },
    "scala": {
        "classes": re.compile(r"(?:class|object|trait)\s+(\w+)"),
        "functions": re.compile(r"def\s+(\w+)"),
    },
    "python": {
        "classes": re.compile(r"^\s*class\s+(\w+)", re.M),
        "functions": re.compile(r"^\s*(?:async\s+)?def\s+(\w+)", re.M),
    },
    "javascript": {
        "classes": re.compile(r"class\s+(\w+)"),
        "functions": re.compile(r"function\s+(\w+)|(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s*)?(?:function|\([^)]*\)\s*=>)"),
    },
    "typescript": {
        "classes": re.compile(r"class\s+(\w+)"),
        "functions": re.compile(r"function\s+(\w+)|(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s*)?(?:function|\([^)]*\)\s*=>)"),
        "interfaces": re.compile(r"interface\s+(\w+)"),
        "types": re.compile(r"type\s+(\w+)(?:<[^>]*>)?\s*="),
    },
    "go": {
        "structs": re.compile(r"type\s+(\w+)\s+struct\b"),
        "interfaces": re.compile(r"type\s+(\w+)\s+interface\b"),
        "functions": re.compile(r"func\s+(?:\([^)]*\)\s+)?(\w+)\s*\("),
    },
    "rust": {
        "structs": re.compile(r"struct\s+(\w+)"),
        "enums": re.compile(r"enum\s+(\w+)"),
        "traits": re.compile(r"trait\s+(\w+)"),
        "functions": re.compile(r"fn\s+(\w+)"),
    },
    "ruby": {
        "classes": re.compile(r"^\s*(?:class|module)\s+([\w:]+)", re.M),
        "methods": re.compile(r"^\s*def\s+(?:self\.)?(\w+[?!]?)", re.M),
    },
    "c": {
        "structs": re.compile(r"struct\s+(\w+)\s*\{"),
        "functions": re.compile(r"^[\w\s\*]+?\b(\w+)\s*\([^;{]*\)\s*\{", re.M),
    },
    "cpp": {
        "classes": re.compile(r"(?:class|struct)\s+(\w+)(?:\s*:[^{]+)?\s*\{"),
        "functions": re.compile(r"^[\w:\s\*&<>]+?\b([\w~]+)\s*\([^;{]*\)\s*(?:const\s*)?\{", re.M),
    },
}

_CONTROL_KEYWORDS = frozenset({"if", "for", "while", "switch", "catch", "return"})


def extract_imports(content: str, language: str) -> list[str]:
    found: list[str] = []
    for pattern in IMPORT_PATTERNS.get(language, []):
        found.extend(match.group(1) for match in pattern.finditer(content))
    return found


def extract_declarations(content: str, language: str) -> dict[str, list[str]]:
    declarations: dict[str, list[str]] = {}
    for kind, pattern in DECLARATION_PATTERNS.get(language, {}).items():
        names: list[str] = []
        for match in pattern.finditer(content):
            # Alternation patterns leave unused groups empty.
            name = next((group for group in match.groups() if group), None)
            if name and name not in _CONTROL_KEYWORDS:
                names.append(name)
        declarations[kind] = names
    return declarations


def analyze_structure(root: str | Path, walker: CodeTreeWalker | None = None) -> dict[str, FileMetadata]:
    """Describe every non-ignored file under ``root``, including skipped ones."""
    walker = walker or CodeTreeWalker()
    root = Path(root)
    structure: dict[str, FileMetadata] = {}
    for path, relative in walker.iter_files(root):
        ext = file_extension(relative)
        try:
            size = path.stat().st_size
        except OSError as exc:
            logger.warning("Skipping unreadable file %s: %s", relative, exc)
            continue

        meta = FileMetadata(path=relative, size=size, extension=ext)
        structure[relative] = meta
        meta.skipped = walker.skip_reason(path, ext)
        if meta.skipped is not None:
            continue

        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Skipping unreadable file %s: %s", relative, exc)
            meta.skipped = f"Failed to analyze: {exc}"
            continue

        meta.language = language_for_extension(ext)
        meta.lines = len(content.splitlines())
        meta.imports = extract_imports(content, meta.language)
        meta.declarations = extract_declarations(content, meta.language)
    return structure


def render_overview(structure: dict[str, FileMetadata], max_dirs: int = 12) -> str:
    """Compact structure summary for prompt context."""
    analyzed = [meta for meta in structure.values() if meta.skipped is None]
    languages = Counter(meta.language for meta in analyzed if meta.language and meta.language != "text")
    top_dirs = Counter(meta.path.split("/", 1)[0] for meta in structure.values() if "/" in meta.path)
    declared = sum(len(names) for meta in analyzed for names in meta.declarations.values())

    lines = [f"Files: {len(structure)} ({len(analyzed)} analyzed, {len(structure) - len(analyzed)} skipped)"]
    if languages:
        lines.append("Languages: " + ", ".join(f"{lang} ({count})" for lang, count in languages.most_common()))
    if top_dirs:
        dirs = top_dirs.most_common(max_dirs)
        lines.append("Top directories: " + ", ".join(f"{name}/ ({count} files)" for name, count in dirs))
    lines.append(f"Declarations found: {declared}")
    return "\n".join(lines)
