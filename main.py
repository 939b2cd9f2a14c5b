"""FastAPI entrypoint exposing analyze / status / cancel over HTTP."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable

import uvicorn
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from repo_analyzer import config
from repo_analyzer.analysis_service import RepositoryAnalysisService
from repo_analyzer.models import (
    AnalysisResponse,
    AppError,
    CancelRequest,
    CancelResponse,
    OperationSummary,
    RepositoryRequest,
    ValidationError,
)
from repo_analyzer.operations import (
    Cancelled,
    OperationKey,
    OperationLifecycleManager,
    OperationOutcome,
    Running,
    state_name,
)


logger = logging.getLogger(__name__)


def _error_response(err: AppError) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content=err.to_payload().model_dump())


def _guarded(action: Callable[[], object]) -> object:
    try:
        return action()
    except AppError as err:
        return _error_response(err)
    except Exception as exc:  # Safety net preserving error contract.
        logger.exception("Unhandled server error")
        return _error_response(
            AppError(
                code="INTERNAL_ERROR",
                message="Unhandled server error.",
                status_code=500,
                details={"error": str(exc)},
            )
        )


def _to_response(outcome: OperationOutcome) -> AnalysisResponse:
    return AnalysisResponse(
        status=outcome.status,
        text=outcome.text,
        message=outcome.message,
        progress=outcome.progress,
    )


def create_app(
    analysis_service: RepositoryAnalysisService | None = None,
    manager: OperationLifecycleManager | None = None,
) -> FastAPI:
    service = analysis_service or RepositoryAnalysisService()
    operations = manager or OperationLifecycleManager()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        operations.shutdown()

    app = FastAPI(title="Repository Analyzer API", version="1.0.0", lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    def request_validation_exception_handler(_request, exc: RequestValidationError):
        # Keep validation failures in the same error envelope as runtime errors.
        return _error_response(ValidationError("Invalid request payload.", details={"errors": jsonable_encoder(exc.errors())}))

    @app.get("/")
    def root():
        return {"status": "ok", "service": "repository-analyzer"}

    @app.post("/analyze", response_model=AnalysisResponse, response_model_exclude_none=True)
    def analyze(request: RepositoryRequest):
        key = OperationKey.create(request.repo_url, request.branch)
        return _guarded(lambda: _to_response(operations.submit(key, service.work_for(request.repo_url, key.branch))))

    @app.post("/status", response_model=AnalysisResponse, response_model_exclude_none=True)
    def status(request: RepositoryRequest):
        key = OperationKey.create(request.repo_url, request.branch)
        return _guarded(lambda: _to_response(operations.status(key)))

    @app.post("/cancel", response_model=CancelResponse)
    def cancel(request: CancelRequest):
        key = OperationKey.create(request.repo_url, request.branch)
        return _guarded(lambda: CancelResponse(message=operations.cancel(key, clear_cache=request.clear_cache).message))

    @app.get("/operations", response_model=list[OperationSummary], response_model_exclude_none=True)
    def list_operations():
        summaries = []
        for key, record in operations.operations():
            progress = record.progress if isinstance(record, (Running, Cancelled)) else None
            summaries.append(OperationSummary(key=str(key), state=state_name(record), progress=progress))
        return summaries

    return app


app = create_app()


def run() -> None:
    config.configure_logging()
    uvicorn.run(app, host=config.SERVER_HOST, port=config.SERVER_PORT)


if __name__ == "__main__":
    run()
