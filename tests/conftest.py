import os
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep unit tests deterministic and independent from local shell configuration.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOGS_DIRECTORY", str(ROOT / ".pytest_logs"))


@pytest.fixture(autouse=True)
def offline_tokenizer(monkeypatch):
    """Use the character-based token estimate so tests never download encodings."""

    def _unavailable(_model):
        raise LookupError("tokenizer disabled in tests")

    monkeypatch.setattr("repo_analyzer.utils._encoding_for", _unavailable)
