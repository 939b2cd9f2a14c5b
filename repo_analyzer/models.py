"""API models and typed application errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator


AnalysisStatus = Literal["completed", "started", "in_progress", "error", "cancelled", "not_found"]


class RepositoryRequest(BaseModel):
    repo_url: str = Field(..., examples=["https://github.com/psf/requests"])
    branch: str = "main"

    @field_validator("repo_url")
    @classmethod
    def _repo_url_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("repo_url must not be empty")
        return value

    @field_validator("branch", mode="before")
    @classmethod
    def _default_branch(cls, value: Any) -> Any:
        # Treat an explicit null or blank branch the same as an absent one.
        if value is None or (isinstance(value, str) and not value.strip()):
            return "main"
        return value.strip() if isinstance(value, str) else value


class CancelRequest(RepositoryRequest):
    clear_cache: bool = False


class AnalysisResponse(BaseModel):
    status: AnalysisStatus
    text: Optional[str] = None
    message: Optional[str] = None
    progress: Optional[str] = None


class CancelResponse(BaseModel):
    message: str


class OperationSummary(BaseModel):
    key: str
    state: str
    progress: Optional[str] = None


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: ErrorBody


@dataclass
class AppError(Exception):
    code: str
    message: str
    status_code: int = 500
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> ErrorResponse:
        # Shared helper for consistent API error serialization.
        return ErrorResponse(error=ErrorBody(code=self.code, message=self.message, details=self.details))


class ValidationError(AppError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="VALIDATION_ERROR", message=message, status_code=422, details=details or {})


class FetchError(AppError):
    """Clone or checkout failure; ``__cause__`` holds the underlying error when there is one."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="FETCH_ERROR", message=message, status_code=502, details=details or {})


class AnalysisCancelled(AppError):
    def __init__(self, message: str = "Analysis cancelled by user") -> None:
        super().__init__(code="ANALYSIS_CANCELLED", message=message, status_code=409)
