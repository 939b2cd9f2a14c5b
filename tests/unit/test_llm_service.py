from types import SimpleNamespace

import httpx
import openai
import pytest

from repo_analyzer.llm_service import SYSTEM_PROMPT, LLMService


REQUEST = httpx.Request("POST", "http://localhost:11434/v1/chat/completions")


def _reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeCompletions:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class FakeClient:
    def __init__(self, outcome):
        self.completions = FakeCompletions(outcome)
        self.chat = SimpleNamespace(completions=self.completions)
        self.timeouts = []

    def with_options(self, timeout):
        self.timeouts.append(timeout)
        return self


def test_complete_returns_trimmed_reply():
    client = FakeClient(_reply("  A concise summary.  "))
    service = LLMService(client=client, model="llama3.2")

    assert service.complete("Summarize this", timeout=30) == "A concise summary."
    assert client.timeouts == [30]
    call = client.completions.calls[0]
    assert call["model"] == "llama3.2"
    assert call["temperature"] == 0
    assert call["messages"] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "Summarize this"},
    ]


def test_list_content_parts_are_joined():
    client = FakeClient(_reply([{"type": "text", "text": "part one"}, {"type": "image"}, {"type": "text", "text": "part two"}]))

    assert LLMService(client=client, model="m").complete("prompt") == "part one\npart two"


@pytest.mark.parametrize("reply", [_reply(""), _reply(None), SimpleNamespace(choices=[])])
def test_empty_reply(reply):
    assert LLMService(client=FakeClient(reply), model="m").complete("prompt") == "No reply received"


def test_timeout_is_reported_as_text():
    client = FakeClient(openai.APITimeoutError(request=REQUEST))

    result = LLMService(client=client, model="m").complete("prompt", timeout=5)

    assert result == "Error generating response: model request timed out after 5s"


def test_status_error_is_reported_as_text():
    response = httpx.Response(503, request=REQUEST)
    client = FakeClient(openai.APIStatusError("model overloaded", response=response, body=None))

    assert LLMService(client=client, model="m").complete("prompt") == "API error (503): model overloaded"


def test_connection_error_is_reported_as_text():
    client = FakeClient(openai.APIConnectionError(request=REQUEST))

    result = LLMService(client=client, model="m").complete("prompt")

    assert result.startswith("Error generating response: ")
    assert "Connection error" in result
