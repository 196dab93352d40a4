"""
hackjudge/errors.py
Classified outcomes for every judging operation.

Every failure is local to the single operation that raised it; the
transaction it belonged to is rolled back before the error reaches the caller.

ERROR KINDS:
- authorization: caller lacks the required role (never retried)
- state_gate: lifecycle precondition unmet (re-check state before retrying)
- uniqueness: second writer lost (permanent for that key)
- shape: structurally invalid argument (never retried unchanged)
- external: proof verifier or ledger rejected the call (surfaced verbatim)

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": "NotOrganizer",
    "message": "Human-readable description",
    "code": "NOT_ORGANIZER",
    "kind": "authorization",
    "details": {} (optional)
}
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    AUTHORIZATION = "authorization"
    STATE_GATE = "state_gate"
    UNIQUENESS = "uniqueness"
    SHAPE = "shape"
    EXTERNAL = "external"


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    NOT_ORGANIZER = "NOT_ORGANIZER"
    NOT_JUDGE = "NOT_JUDGE"

    NOT_ACTIVE = "NOT_ACTIVE"
    ALREADY_AGGREGATED = "ALREADY_AGGREGATED"
    NOT_AGGREGATED = "NOT_AGGREGATED"
    NOT_READY = "NOT_READY"
    ALREADY_PUBLISHED = "ALREADY_PUBLISHED"

    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    DUPLICATE_SCORE = "DUPLICATE_SCORE"

    INVALID_WINDOW = "INVALID_WINDOW"
    INVALID_PERMUTATION = "INVALID_PERMUTATION"
    UNKNOWN_PROJECT = "UNKNOWN_PROJECT"
    UNKNOWN_HACKATHON = "UNKNOWN_HACKATHON"
    INVALID_SCORE = "INVALID_SCORE"

    INVALID_PROOF = "INVALID_PROOF"
    LEDGER_SUBMISSION_FAILED = "LEDGER_SUBMISSION_FAILED"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class JudgingError(Exception):
    """Base judging exception with consistent structure"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: ErrorKind = ErrorKind.SHAPE
    code: str = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def error(self) -> str:
        return type(self).__name__.replace("Error", "") or "JudgingError"

    @property
    def retryable(self) -> bool:
        """Only state-gate outcomes may succeed later with the same arguments."""
        return self.kind == ErrorKind.STATE_GATE

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": False,
            "error": self.error,
            "message": self.message,
            "code": self.code,
            "kind": self.kind.value,
        }
        if self.details:
            result["details"] = self.details
        return result

    def to_response(self) -> JSONResponse:
        """Convert to FastAPI JSONResponse"""
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


# =============================================================================
# Authorization
# =============================================================================

class AuthorizationError(JudgingError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = ErrorKind.AUTHORIZATION


class NotOrganizerError(AuthorizationError):
    code = ErrorCode.NOT_ORGANIZER

    def __init__(self, hackathon_id: int, caller: str):
        super().__init__(
            f"Only the organizer of hackathon {hackathon_id} can perform this operation",
            details={"hackathon_id": hackathon_id, "caller": caller}
        )


class NotJudgeError(AuthorizationError):
    code = ErrorCode.NOT_JUDGE

    def __init__(self, hackathon_id: int, caller: str):
        super().__init__(
            f"{caller} is not a registered judge for hackathon {hackathon_id}",
            details={"hackathon_id": hackathon_id, "caller": caller}
        )


# =============================================================================
# State gates
# =============================================================================

class StateGateError(JudgingError):
    status_code = status.HTTP_409_CONFLICT
    kind = ErrorKind.STATE_GATE


class NotActiveError(StateGateError):
    code = ErrorCode.NOT_ACTIVE


class AlreadyAggregatedError(StateGateError):
    code = ErrorCode.ALREADY_AGGREGATED


class NotAggregatedError(StateGateError):
    code = ErrorCode.NOT_AGGREGATED


class NotReadyError(StateGateError):
    code = ErrorCode.NOT_READY


class AlreadyPublishedError(StateGateError):
    code = ErrorCode.ALREADY_PUBLISHED


# =============================================================================
# Uniqueness
# =============================================================================

class UniquenessError(JudgingError):
    status_code = status.HTTP_409_CONFLICT
    kind = ErrorKind.UNIQUENESS


class AlreadyRegisteredError(UniquenessError):
    code = ErrorCode.ALREADY_REGISTERED


class DuplicateScoreError(UniquenessError):
    code = ErrorCode.DUPLICATE_SCORE


# =============================================================================
# Shape
# =============================================================================

class ShapeError(JudgingError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = ErrorKind.SHAPE


class InvalidWindowError(ShapeError):
    code = ErrorCode.INVALID_WINDOW


class InvalidPermutationError(ShapeError):
    code = ErrorCode.INVALID_PERMUTATION


class InvalidScoreError(ShapeError):
    code = ErrorCode.INVALID_SCORE


class UnknownProjectError(ShapeError):
    status_code = status.HTTP_404_NOT_FOUND
    code = ErrorCode.UNKNOWN_PROJECT

    def __init__(self, hackathon_id: int, project_id: int):
        super().__init__(
            f"Project {project_id} does not exist in hackathon {hackathon_id}",
            details={"hackathon_id": hackathon_id, "project_id": project_id}
        )


class UnknownHackathonError(ShapeError):
    status_code = status.HTTP_404_NOT_FOUND
    code = ErrorCode.UNKNOWN_HACKATHON

    def __init__(self, hackathon_id: int):
        super().__init__(
            f"Hackathon {hackathon_id} does not exist",
            details={"hackathon_id": hackathon_id}
        )


# =============================================================================
# External dependencies
# =============================================================================

class ExternalDependencyError(JudgingError):
    status_code = status.HTTP_502_BAD_GATEWAY
    kind = ErrorKind.EXTERNAL


class InvalidProofError(ExternalDependencyError):
    status_code = 422
    code = ErrorCode.INVALID_PROOF


class LedgerSubmissionError(ExternalDependencyError):
    code = ErrorCode.LEDGER_SUBMISSION_FAILED


ERROR_KIND_STATUS = {
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.STATE_GATE: status.HTTP_409_CONFLICT,
    ErrorKind.UNIQUENESS: status.HTTP_409_CONFLICT,
    ErrorKind.SHAPE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.EXTERNAL: status.HTTP_502_BAD_GATEWAY,
}


def get_error_summary() -> Dict[str, Any]:
    """Return summary of error classification for documentation"""
    return {
        "response_structure": {
            "success": "boolean (always false for errors)",
            "error": "string (error type)",
            "message": "string (human-readable)",
            "code": "string (machine-readable)",
            "kind": "string (authorization|state_gate|uniqueness|shape|external)",
            "details": "object (optional)"
        },
        "kinds": {kind.value: code for kind, code in ERROR_KIND_STATUS.items()},
        "error_codes": [
            attr for attr in dir(ErrorCode)
            if not attr.startswith('_')
        ]
    }
