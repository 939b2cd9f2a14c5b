"""OpenAI-compatible chat wrapper that always answers with text."""

from __future__ import annotations

import logging
from typing import Any, Optional

from openai import APIStatusError, APITimeoutError, OpenAIError, OpenAI

from repo_analyzer import config


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant who explains software codebases."


class LLMService:
    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None) -> None:
        # OpenAI SDK pointed at any OpenAI-compatible endpoint (Ollama by default).
        self.client = client or OpenAI(
            base_url=config.MODEL_API_URL,
            api_key=config.get_model_api_key(),
            timeout=config.TIMEOUT_LLM_SECONDS,
        )
        self.model = model or config.MODEL_NAME

    def _extract_text(self, response: Any) -> str:
        if not response or not getattr(response, "choices", None):
            return ""
        message = response.choices[0].message
        content = message.content
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for item in content:
                if isinstance(item, dict) and item.get("type") == "text":
                    parts.append(item.get("text", ""))
            return "\n".join(parts)
        return str(content) if content is not None else ""

    def _single_call(self, *, prompt: str, timeout: float) -> str:
        response = self.client.with_options(timeout=timeout).chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=config.TEMPERATURE,
            max_tokens=config.MAX_OUTPUT_TOKENS,
        )
        return self._extract_text(response).strip()

    def complete(self, prompt: str, timeout: Optional[float] = None) -> str:
        """Send ``prompt`` and return the reply, or a description of what went wrong."""
        timeout = timeout if timeout is not None else config.TIMEOUT_LLM_SECONDS
        logger.info("Sending chat request to %s (%d prompt chars)", self.model, len(prompt))
        try:
            reply = self._single_call(prompt=prompt, timeout=timeout)
        except APITimeoutError:
            logger.error("Model request timed out after %ss", timeout)
            return f"Error generating response: model request timed out after {timeout:g}s"
        except APIStatusError as exc:
            logger.error("Model API error: %s - %s", exc.status_code, exc.message)
            return f"API error ({exc.status_code}): {exc.message}"
        except OpenAIError as exc:
            logger.error("Error generating response: %s", exc)
            return f"Error generating response: {exc}"

        if not reply:
            return "No reply received"
        logger.info("Received reply from %s (%d chars)", self.model, len(reply))
        return reply
