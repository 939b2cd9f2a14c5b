"""Per-language line patterns and extension-to-language mapping.

The table is built once at import time and shared by every digest call.
Unknown languages resolve to a single ``default`` entry, so ``lookup`` never
fails.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class LanguagePatterns:
    definition_pattern: re.Pattern[str]
    comment_prefixes: tuple[str, ...]
    block_comment_start: str
    block_comment_end: str
    # Extra markers that open and close a block by toggling (Python's ''' next to """).
    toggle_markers: tuple[str, ...] = ()

    def is_definition(self, line: str) -> bool:
        return self.definition_pattern.search(line.strip()) is not None

    @property
    def symmetric_block(self) -> bool:
        return self.block_comment_start == self.block_comment_end


def _c_style(pattern: str) -> LanguagePatterns:
    return LanguagePatterns(re.compile(pattern), ("//",), "/*", "*/")


_JS_TS = r"\b(function|class|const|let|var|import|export|interface|type|enum|namespace)\b"

DEFAULT_LANGUAGE = "default"

_PATTERNS: dict[str, LanguagePatterns] = {
    "kotlin": _c_style(
        r"\b(class|interface|object|enum\s+class|data\s+class|sealed\s+class|fun|val|var|const"
        r"|typealias|annotation\s+class|import|package)\b"
    ),
    "scala": _c_style(
        r"\b(class|object|trait|case\s+class|case\s+object|def|val|var|lazy\s+val|type|implicit"
        r"|sealed|abstract|override|package\s+object|import|package)\b"
    ),
    "java": _c_style(
        r"\b(class|interface|enum|@interface|record|public|private|protected|static|abstract|final"
        r"|synchronized|volatile|native|transient|strictfp|void|import|package)\b"
    ),
    "python": LanguagePatterns(
        re.compile(r"\b(def|class|async\s+def)\b|@\w+|\b(import|from)\b"),
        ("#",),
        '"""',
        '"""',
        toggle_markers=("'''",),
    ),
    "ruby": LanguagePatterns(
        re.compile(r"\b(def|class|module|attr_\w+|require|include|extend)\b"),
        ("#",),
        "=begin",
        "=end",
    ),
    "javascript": _c_style(_JS_TS),
    "typescript": _c_style(_JS_TS),
    "go": _c_style(r"\b(func|type|struct|interface|package|import|var|const)\b"),
    "rust": _c_style(r"\b(fn|struct|enum|trait|impl|pub|use|mod|const|static|type|async|unsafe)\b"),
    "c": _c_style(r"\b(struct|enum|typedef|void|int|char|bool|extern|static|class)\b"),
    "cpp": _c_style(
        r"\b(class|struct|enum|typedef|namespace|template|void|int|char|bool|auto|extern|static|virtual)\b"
    ),
    "csharp": _c_style(
        r"\b(class|interface|struct|enum|record|namespace|using|public|private|protected|internal"
        r"|static|abstract|override|void)\b"
    ),
    "swift": _c_style(r"\b(class|struct|enum|protocol|extension|func|import|let|var|init)\b"),
    "php": LanguagePatterns(
        re.compile(r"\b(class|interface|trait|function|namespace|use|public|private|protected|static)\b"),
        ("//", "#"),
        "/*",
        "*/",
    ),
    DEFAULT_LANGUAGE: LanguagePatterns(
        re.compile(r"\b(class|interface|object|enum|fun|def|function|public|private|protected|static)\b"),
        ("//", "#"),
        "/*",
        "*/",
    ),
}

LANGUAGE_PATTERNS: Mapping[str, LanguagePatterns] = MappingProxyType(_PATTERNS)


def lookup(language: str) -> LanguagePatterns:
    return LANGUAGE_PATTERNS.get(language.lower(), LANGUAGE_PATTERNS[DEFAULT_LANGUAGE])


EXTENSION_TO_LANGUAGE: Mapping[str, str] = MappingProxyType(
    {
        # JVM languages
        "kt": "kotlin",
        "kts": "kotlin",
        "java": "java",
        "scala": "scala",
        "groovy": "groovy",
        "clj": "clojure",
        # Script languages
        "py": "python",
        "rb": "ruby",
        "js": "javascript",
        "jsx": "javascript",
        "ts": "typescript",
        "tsx": "typescript",
        "php": "php",
        "pl": "perl",
        "pm": "perl",
        "sh": "shell",
        "bash": "shell",
        "ps1": "powershell",
        # Systems programming
        "c": "c",
        "cpp": "cpp",
        "cc": "cpp",
        "cxx": "cpp",
        "h": "cpp-header",
        "hpp": "cpp-header",
        "cs": "csharp",
        "go": "go",
        "rs": "rust",
        "swift": "swift",
        "m": "objective-c",
        # Web
        "html": "html",
        "htm": "html",
        "css": "css",
        "scss": "sass",
        "sass": "sass",
        "less": "less",
        "vue": "vue",
        "svelte": "svelte",
        # Data formats and configuration
        "json": "json",
        "xml": "xml",
        "yaml": "yaml",
        "yml": "yaml",
        "toml": "toml",
        "md": "markdown",
        "gradle": "gradle",
        "properties": "properties",
        "ini": "ini",
        "conf": "conf",
        # Build files
        "sbt": "sbt",
        "pom": "xml",
        "cmake": "cmake",
        "make": "make",
        "mk": "make",
        # Other
        "sql": "sql",
        "r": "r",
        "dart": "dart",
        "lua": "lua",
        "ex": "elixir",
        "exs": "elixir",
        "erl": "erlang",
        "hrl": "erlang",
        "hs": "haskell",
        "fs": "fsharp",
        "fsx": "fsharp",
        "jl": "julia",
    }
)

CODE_EXTENSIONS = frozenset(EXTENSION_TO_LANGUAGE)

# Main-language sources used for prompt snippets.
SNIPPET_EXTENSIONS = frozenset({"kt", "java", "scala", "py", "rb", "js", "ts", "go", "c", "cpp", "rs"})


def file_extension(path: str) -> str:
    name = PurePosixPath(path).name.lower()
    # Compound build-script suffix is tracked on its own.
    if name.endswith(".gradle.kts"):
        return "kts"
    return PurePosixPath(name).suffix.lstrip(".")


def language_for_extension(extension: str) -> str:
    return EXTENSION_TO_LANGUAGE.get(extension.lower().lstrip("."), "text")


def language_for_path(path: str) -> str:
    return language_for_extension(file_extension(path))
