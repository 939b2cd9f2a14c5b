"""Repository acquisition: shallow clone of one branch into a scratch directory."""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import tempfile
from pathlib import Path

from repo_analyzer import config
from repo_analyzer.models import FetchError


logger = logging.getLogger(__name__)

REPO_NAME_RE = re.compile(r"(?P<repo>[A-Za-z0-9_.-]+?)(?:\.git)?/?$")


def extract_repo_name(repo_url: str) -> str:
    match = REPO_NAME_RE.search(repo_url.strip())
    return match.group("repo") if match else "repo"


class GitService:
    def __init__(
        self,
        clone_directory: str | Path = config.CLONE_DIRECTORY,
        timeout_seconds: float = config.TIMEOUT_GIT_SECONDS,
        git_executable: str = "git",
    ) -> None:
        self.clone_directory = Path(clone_directory)
        self.timeout_seconds = timeout_seconds
        self.git_executable = git_executable

    def clone_repository(self, repo_url: str, branch: str) -> Path:
        """Clone ``branch`` of ``repo_url`` and return the checkout directory."""
        try:
            self.clone_directory.mkdir(parents=True, exist_ok=True)
            target = Path(tempfile.mkdtemp(prefix=f"{extract_repo_name(repo_url)}-", dir=self.clone_directory))
        except OSError as exc:
            raise FetchError(
                "Could not create clone directory.",
                details={"clone_directory": str(self.clone_directory), "error": str(exc)},
            ) from exc

        command = [
            self.git_executable,
            "clone",
            "--depth=1",
            "--single-branch",
            "--branch",
            branch,
            "--",
            repo_url,
            str(target),
        ]
        logger.info("Cloning %s (branch: %s) into %s", repo_url, branch, target)
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            self.cleanup(target)
            raise FetchError(
                "Git clone timed out.",
                details={"repo_url": repo_url, "branch": branch, "timeout_seconds": self.timeout_seconds},
            ) from exc
        except OSError as exc:
            self.cleanup(target)
            raise FetchError(
                "Git executable could not be started.",
                details={"repo_url": repo_url, "error": str(exc)},
            ) from exc

        if result.returncode != 0:
            self.cleanup(target)
            raise FetchError(
                f"Git clone failed: {result.stderr.strip()[:300]}",
                details={"repo_url": repo_url, "branch": branch, "returncode": result.returncode},
            )

        logger.info("Cloned %s (branch: %s)", repo_url, branch)
        return target

    def cleanup(self, checkout: Path) -> None:
        shutil.rmtree(checkout, ignore_errors=True)
