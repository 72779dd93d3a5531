"""
Result wrappers passed between the client, the pipeline and the server.

``ApiResult`` is the tagged union every client method returns: upstream
failures are data, not exceptions, so the pipeline can branch on the
status code (404 -> fallback) without intercepting anything.
"""

from typing import Any, Literal

from pydantic import BaseModel, model_validator

from biostudies_mcp.constants import (
    INVALID_REQUEST_STATUS,
    TIMEOUT_STATUS,
    TRANSPORT_ERROR_STATUS,
)


class ApiSuccess(BaseModel):
    """A 2xx response. ``data`` is a model, a list of models, or raw text."""

    ok: Literal[True] = True
    data: Any
    status: int = 200


class ApiFailure(BaseModel):
    """
    A request that did not succeed.

    ``status`` is the HTTP status when a response arrived, 408 for a
    client-side timeout and 0 when no response was received at all.
    """

    ok: Literal[False] = False
    error: str
    status: int

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_timeout(self) -> bool:
        return self.status == TIMEOUT_STATUS

    @property
    def is_transport_error(self) -> bool:
        return self.status == TRANSPORT_ERROR_STATUS

    @property
    def is_invalid_request(self) -> bool:
        return self.status == INVALID_REQUEST_STATUS


ApiResult = ApiSuccess | ApiFailure


class BatchFailure(BaseModel):
    accno: str
    error: str


class BatchResult(BaseModel):
    """Per-accession outcomes of a batch fetch, in input order."""

    total: int
    successful: list[str] = []
    failed: list[BatchFailure] = []

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @model_validator(mode="after")
    def check_counts(self) -> "BatchResult":
        if self.success_count + self.failure_count != self.total:
            raise ValueError(
                f"Batch outcome count mismatch: {self.success_count} succeeded, "
                f"{self.failure_count} failed, {self.total} requested"
            )
        return self


class ToolResponse(BaseModel):
    """Text payload handed back to the tool caller."""

    text: str
    is_error: bool = False
