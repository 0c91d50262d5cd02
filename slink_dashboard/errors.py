"""
Error taxonomy for the analytics dashboard gate.

Responsibilities:
    - Name every way a dashboard request can be refused (ErrorKind)
    - Carry a refusal through the pipeline as a value (Failure), never as an exception
    - Map each kind to its wire code and HTTP status at the API boundary

Collaborator exceptions:
    Stores and engines sit on network I/O and signal trouble by raising
    CollaboratorTimeout or UpstreamError. Pipeline stages catch those two at
    the call site and turn them into a Failure; anything else propagates to
    the app-level handler and becomes a 500.

LLM Prompt Example:
    "Show how to model request refusals as typed values so a pipeline can
    stop at the first failing stage without exception-based control flow."
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorKind(str, Enum):
    MISSING_IDENTIFIER = "missing_identifier"
    INVALID_REQUEST = "bad_request"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limit_exceeded"
    TIMEOUT = "timeout"
    UPSTREAM_FAILURE = "upstream_failure"


HTTP_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.MISSING_IDENTIFIER: 400,
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.UPSTREAM_FAILURE: 502,
    ErrorKind.TIMEOUT: 504,
}


class ErrorEnvelope(BaseModel):
    """Uniform JSON body for every non-200 response."""
    code: str
    message: str


@dataclass(frozen=True)
class Failure:
    """
    Terminal result of a pipeline stage.

    Attributes:
        kind (ErrorKind): What went wrong; decides code and HTTP status.
        message (str): Human-readable explanation returned to the caller.
        field (Optional[str]): Offending query parameter, for input errors.
    """

    kind: ErrorKind
    message: str
    field: Optional[str] = None

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    def envelope(self) -> Dict[str, Any]:
        return ErrorEnvelope(code=self.code, message=self.message).model_dump()

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.envelope())


def internal_error_response() -> JSONResponse:
    """Envelope for errors no stage anticipated."""
    body = ErrorEnvelope(
        code="internal_server_error",
        message="An internal server error occurred. Please try again later.",
    )
    return JSONResponse(status_code=500, content=body.model_dump())


class CollaboratorTimeout(Exception):
    """Raised by a store or engine when its I/O exceeds the given timeout."""


class UpstreamError(Exception):
    """Raised by the analytics engine for any failure other than a timeout."""
