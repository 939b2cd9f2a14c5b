from repo_analyzer import utils


class WordEncoding:
    def encode(self, text):
        return text.split()


def test_estimate_tokens_uses_tokenizer_when_available(monkeypatch):
    monkeypatch.setattr(utils, "_encoding_for", lambda _model: WordEncoding())

    assert utils.estimate_tokens("one two three") == 3
    assert utils.estimate_tokens("") == 0


def test_estimate_tokens_falls_back_to_character_count():
    assert utils.estimate_tokens("x" * 40) == 10
    assert utils.estimate_tokens("ab") == 1


def test_take_within_budget_keeps_leading_blocks():
    blocks = ["a" * 40, "b" * 40, "c" * 40]

    assert utils.take_within_budget(blocks, 25) == blocks[:2]
    assert utils.take_within_budget(blocks, 5) == []
    assert utils.take_within_budget(blocks, 1000) == blocks


def test_take_within_budget_skips_oversized_block():
    blocks = ["x" * 4000, "a" * 40, "y" * 4000, "b" * 40]

    assert utils.take_within_budget(blocks, 25) == ["a" * 40, "b" * 40]


def test_summarize_for_prompt_truncates():
    assert utils.summarize_for_prompt("short", max_chars=10) == "short"
    assert utils.summarize_for_prompt("x" * 20, max_chars=10) == "x" * 10 + "\n... [truncated]"


def test_is_test_path():
    assert utils.is_test_path("src/test/java/AppTest.java")
    assert utils.is_test_path("spec/models/user_spec.rb")
    assert not utils.is_test_path("src/main/java/App.java")
