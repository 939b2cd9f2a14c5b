"""Application configuration, hard limits, and logging setup."""

from __future__ import annotations

import logging
import os
from pathlib import Path


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


# Runtime environment mode.
ENVIRONMENT: str = os.getenv("ENVIRONMENT", "prod").strip().lower()
IS_PROD = ENVIRONMENT == "prod"
IS_TEST = ENVIRONMENT == "test"

SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT = _int_env("SERVER_PORT", 3001)

CLONE_DIRECTORY = os.getenv("CLONE_DIRECTORY", "/tmp/repo-analyzer/clones")
LOGS_DIRECTORY = os.getenv("LOGS_DIRECTORY", "/tmp/repo-analyzer/logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if IS_PROD else "DEBUG").upper()

# OpenAI-compatible model endpoint (local Ollama by default).
MODEL_API_URL = os.getenv("MODEL_API_URL", "http://localhost:11434/v1")
MODEL_API_KEY_ENV = "MODEL_API_KEY"
MODEL_NAME = os.getenv("MODEL_NAME", "llama3.2")


def get_model_api_key() -> str:
    """Resolve the model API key at runtime; local deployments run without one."""
    api_key = os.getenv(MODEL_API_KEY_ENV, "").strip()
    # The OpenAI SDK refuses an empty key even when the server ignores it.
    return api_key or "not-needed"


# Operation lifecycle.
SYNC_ANALYSIS_TIMEOUT_SECONDS = 20
ANALYSIS_WORKERS = 4

TIMEOUT_LLM_SECONDS = 3600
TIMEOUT_GIT_SECONDS = 300

# Tree walking and digest budgets.
MAX_FILE_BYTES = 1024 * 1024
BINARY_SNIFF_BYTES = 1000
BINARY_NULL_RATIO = 0.05
MAX_LINES_PER_FILE = 100
MAX_README_CHARS = 10_000
SNIPPET_TOKEN_BUDGET = 60_000

TEMPERATURE = 0
MAX_OUTPUT_TOKENS = 8192


def configure_logging(level: str | None = None) -> None:
    """Install stream (and, when possible, file) handlers on the root logger."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    try:
        log_dir = Path(LOGS_DIRECTORY)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / "repo-analyzer.log", encoding="utf-8"))
    except OSError as exc:
        logging.getLogger(__name__).warning("File logging disabled (%s): %s", LOGS_DIRECTORY, exc)

    logging.basicConfig(
        level=(level or LOG_LEVEL),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
