"""Keyed analysis operations: caching, background escalation, progress, cancellation.

Each operation key maps to exactly one immutable record, replaced as a whole
under a single lock, so readers never see a result next to a stale progress
line. A submitted task always runs on the worker pool. The submitting caller
waits for it up to ``sync_timeout`` seconds; past that bound the *same* task
keeps running in the background and the caller gets a "started" answer.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, Optional, Union

from repo_analyzer import config
from repo_analyzer.models import AnalysisCancelled


logger = logging.getLogger(__name__)

STARTING_PROGRESS = "Starting analysis..."
CANCELLED_PROGRESS = "Analysis cancelled by user"
CANCELLING_PROGRESS = "Cancelling previous analysis..."


@dataclass(frozen=True)
class OperationKey:
    repo_url: str
    branch: str

    @classmethod
    def create(cls, repo_url: str, branch: Optional[str] = None) -> OperationKey:
        url = repo_url.strip().rstrip("/")
        if url.endswith(".git"):
            url = url[: -len(".git")]
        return cls(repo_url=url, branch=(branch or "").strip() or "main")

    def __str__(self) -> str:
        return f"{self.repo_url}:{self.branch}"

    def describe(self) -> str:
        return f"{self.repo_url} (branch: {self.branch})"


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AnalysisCancelled()


ProgressCallback = Callable[[str], None]
Work = Callable[[CancellationToken, ProgressCallback], str]


@dataclass(frozen=True)
class Running:
    progress: str
    token: CancellationToken
    future: Future


@dataclass(frozen=True)
class Completed:
    result: str


@dataclass(frozen=True)
class Failed:
    message: str


@dataclass(frozen=True)
class Cancelled:
    progress: str
    # Task still unwinding after the cancel request, if any.
    future: Optional[Future] = None


OperationRecord = Union[Running, Completed, Failed, Cancelled]


@dataclass(frozen=True)
class OperationOutcome:
    status: str
    text: Optional[str] = None
    message: Optional[str] = None
    progress: Optional[str] = None


@dataclass(frozen=True)
class CancelOutcome:
    message: str
    had_running: bool
    had_cached: bool
    had_failed: bool = False


def state_name(record: OperationRecord) -> str:
    return type(record).__name__.lower()


class OperationLifecycleManager:
    def __init__(
        self,
        sync_timeout: float = config.SYNC_ANALYSIS_TIMEOUT_SECONDS,
        max_workers: int = config.ANALYSIS_WORKERS,
    ) -> None:
        self.sync_timeout = sync_timeout
        self._records: dict[OperationKey, OperationRecord] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="analysis")

    def submit(self, key: OperationKey, work: Work) -> OperationOutcome:
        with self._lock:
            record = self._records.get(key)
            if isinstance(record, Completed):
                logger.info("Returning cached analysis for %s", key)
                return OperationOutcome(status="completed", text=record.result)
            if isinstance(record, Running) and not record.future.done():
                return OperationOutcome(
                    status="in_progress",
                    message=(
                        f"Analysis already in progress for: {key.describe()}. "
                        "Use the status operation to monitor progress."
                    ),
                    progress=record.progress,
                )
            if isinstance(record, Cancelled) and record.future is not None and not record.future.done():
                return OperationOutcome(
                    status="in_progress",
                    message=f"A cancelled analysis for {key.describe()} is still shutting down. Retry shortly.",
                    progress=CANCELLING_PROGRESS,
                )

            token = CancellationToken()
            future = self._executor.submit(self._run, key, token, work)
            self._records[key] = Running(progress=STARTING_PROGRESS, token=token, future=future)
            logger.info("Starting repository analysis for %s", key)

        try:
            result = future.result(timeout=self.sync_timeout)
        except FutureTimeoutError:
            logger.info("Analysis for %s exceeded %ss; continuing in background", key, self.sync_timeout)
            return OperationOutcome(
                status="started",
                message=(
                    f"Repository analysis started in the background for: {key.describe()}. "
                    "This may take several minutes for large repositories. "
                    "Use the status operation to monitor progress."
                ),
                progress=self._progress_of(key),
            )
        except (AnalysisCancelled, CancelledError):
            return OperationOutcome(status="cancelled", message=CANCELLED_PROGRESS, progress=CANCELLED_PROGRESS)
        except Exception as exc:
            return OperationOutcome(status="error", message=f"Error analyzing repository: {exc}")
        if token.cancelled:
            # Cancelled while this caller waited; the record already says so.
            return OperationOutcome(status="cancelled", message=CANCELLED_PROGRESS, progress=CANCELLED_PROGRESS)
        return OperationOutcome(status="completed", text=result)

    def status(self, key: OperationKey) -> OperationOutcome:
        with self._lock:
            record = self._records.get(key)

        if record is None:
            return OperationOutcome(
                status="not_found",
                message="No analysis found for this repository. Run an analysis first.",
            )
        if isinstance(record, Completed):
            return OperationOutcome(status="completed", text=record.result)
        if isinstance(record, Running):
            return OperationOutcome(status="in_progress", progress=record.progress)
        if isinstance(record, Failed):
            return OperationOutcome(status="error", message=f"Analysis failed: {record.message}")
        return OperationOutcome(status="cancelled", message=record.progress, progress=record.progress)

    def cancel(self, key: OperationKey, clear_cache: bool = False) -> CancelOutcome:
        with self._lock:
            record = self._records.get(key)
            had_running = isinstance(record, Running)
            had_cached = isinstance(record, Completed)
            had_failed = isinstance(record, Failed)

            if isinstance(record, Running):
                record.token.cancel()
                record.future.cancel()
                self._records[key] = Cancelled(progress=CANCELLED_PROGRESS, future=record.future)
            elif clear_cache and isinstance(record, (Completed, Failed)):
                del self._records[key]

        logger.info("%s for %s (clear_cache=%s)", CANCELLED_PROGRESS, key, clear_cache)

        info = key.describe()
        if had_running and clear_cache:
            message = f"Analysis cancelled and cache cleared for repository: {info}"
        elif had_running:
            message = f"Analysis cancelled for repository: {info}"
        elif clear_cache and had_cached:
            message = f"No running analysis found, but cleared cached results for repository: {info}"
        elif clear_cache and had_failed:
            message = f"No running analysis found, but cleared the failed analysis for repository: {info}"
        elif clear_cache:
            message = f"No running analysis or cached results found for repository: {info}"
        elif had_cached:
            message = f"No running analysis found for repository: {info}. Cached results preserved."
        else:
            message = f"No running analysis found for repository: {info}"
        return CancelOutcome(message=message, had_running=had_running, had_cached=had_cached, had_failed=had_failed)

    def operations(self) -> list[tuple[OperationKey, OperationRecord]]:
        with self._lock:
            return list(self._records.items())

    def shutdown(self) -> None:
        with self._lock:
            for key, record in list(self._records.items()):
                if isinstance(record, Running):
                    record.token.cancel()
                    self._records[key] = Cancelled(progress=CANCELLED_PROGRESS, future=record.future)
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _run(self, key: OperationKey, token: CancellationToken, work: Work) -> str:
        def report(progress: str) -> None:
            self._replace_running(key, token, lambda running: dataclasses.replace(running, progress=progress))

        try:
            token.raise_if_cancelled()
            result = work(token, report)
            token.raise_if_cancelled()
        except AnalysisCancelled:
            logger.info("Analysis for %s stopped after cancellation", key)
            self._replace_running(key, token, lambda _running: Cancelled(progress=CANCELLED_PROGRESS))
            raise
        except Exception as exc:
            logger.exception("Analysis failed for %s", key)
            message = str(exc) or type(exc).__name__
            self._replace_running(key, token, lambda _running: Failed(message=message))
            raise

        self._replace_running(key, token, lambda _running: Completed(result=result))
        logger.info("Analysis completed for %s", key)
        return result

    def _replace_running(
        self,
        key: OperationKey,
        token: CancellationToken,
        update: Callable[[Running], OperationRecord],
    ) -> None:
        with self._lock:
            record = self._records.get(key)
            # Cancellation or a newer task owns the key: drop the update.
            if isinstance(record, Running) and record.token is token:
                self._records[key] = update(record)

    def _progress_of(self, key: OperationKey) -> Optional[str]:
        with self._lock:
            record = self._records.get(key)
        if isinstance(record, Running):
            return record.progress
        return None
