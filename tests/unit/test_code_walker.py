from repo_analyzer.code_walker import (
    NO_README,
    SKIP_BINARY,
    SKIP_TOO_LARGE,
    CodeTreeWalker,
    format_snippet,
)


def _write(root, relative, content):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


def test_walk_skips_hidden_and_ignored_directories(tmp_path):
    _write(tmp_path, "src/app.py", "def run():\n    return True\n")
    _write(tmp_path, ".hidden/secret.py", "def hidden():\n    pass\n")
    _write(tmp_path, "node_modules/lib/index.js", "function x() {}\n")
    _write(tmp_path, "build/generated.java", "class Generated {}\n")
    _write(tmp_path, ".env.py", "TOKEN = 1\n")

    paths = [source.relative_path for source in CodeTreeWalker().walk(tmp_path)]

    assert paths == ["src/app.py"]


def test_walk_applies_size_threshold(tmp_path):
    _write(tmp_path, "small.py", "x = 1\n")
    _write(tmp_path, "large.py", "x = 1\n" * 100)
    walker = CodeTreeWalker(max_file_bytes=50)

    assert [source.relative_path for source in walker.walk(tmp_path)] == ["small.py"]
    assert walker.skip_reason(tmp_path / "large.py", "py") == SKIP_TOO_LARGE


def test_null_bytes_mark_file_as_binary(tmp_path):
    binary = _write(tmp_path, "blob.py", b"\x00" * 100 + b"def f(): pass")
    text = _write(tmp_path, "text.py", "def f():\n    pass\n")
    walker = CodeTreeWalker()

    assert walker.skip_reason(binary, "py") == SKIP_BINARY
    assert walker.skip_reason(text, "py") is None
    assert [source.relative_path for source in walker.walk(tmp_path)] == ["text.py"]


def test_binary_extension_is_skipped(tmp_path):
    logo = _write(tmp_path, "logo.png", b"PNG header without nulls")

    assert CodeTreeWalker().skip_reason(logo, "png") == SKIP_BINARY


def test_walk_filters_extensions_and_detects_language(tmp_path):
    _write(tmp_path, "Main.kt", "fun main() {}\n")
    _write(tmp_path, "build.gradle.kts", "plugins {}\n")
    _write(tmp_path, "notes.unknownext", "text\n")

    sources = {source.relative_path: source.language for source in CodeTreeWalker().walk(tmp_path)}

    assert sources == {"Main.kt": "kotlin", "build.gradle.kts": "kotlin"}


def test_walk_excludes_tests_only_when_asked(tmp_path):
    _write(tmp_path, "src/service.py", "def serve():\n    pass\n")
    _write(tmp_path, "tests/test_service.py", "def test_serve():\n    pass\n")
    walker = CodeTreeWalker()

    all_paths = [source.relative_path for source in walker.walk(tmp_path)]
    main_paths = [source.relative_path for source in walker.walk(tmp_path, exclude_tests=True)]

    assert all_paths == ["src/service.py", "tests/test_service.py"]
    assert main_paths == ["src/service.py"]


def test_walk_reflects_file_system_at_call_time(tmp_path):
    walker = CodeTreeWalker()
    _write(tmp_path, "a.py", "x = 1\n")
    assert len(list(walker.walk(tmp_path))) == 1

    _write(tmp_path, "b.py", "y = 2\n")
    assert len(list(walker.walk(tmp_path))) == 2


def test_find_readme(tmp_path):
    walker = CodeTreeWalker()
    assert walker.find_readme(tmp_path) == NO_README

    _write(tmp_path, "readme.txt", "plain readme")
    assert walker.find_readme(tmp_path) == "plain readme"

    _write(tmp_path, "README.md", "# Widgets\nMarkdown readme")
    assert walker.find_readme(tmp_path) == "# Widgets\nMarkdown readme"


def test_collect_summarized_snippets(tmp_path):
    _write(tmp_path, "src/app.py", "import os\n\nx = 1\ndef run():\n    return True\n")
    _write(tmp_path, "src/app_test.py", "def test_run():\n    pass\n")
    _write(tmp_path, "config.yaml", "key: value\n")

    snippets = CodeTreeWalker().collect_summarized_snippets(tmp_path, max_lines=10)

    assert snippets == [format_snippet("src/app.py", "python", ["import os", "...", "def run():"])]
    assert snippets[0] == "### File: src/app.py\n~~~python\nimport os\n...\ndef run():\n~~~"
