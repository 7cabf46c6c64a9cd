"""
Typed business-rule failures

Services raise these; the API layer renders them as JSON responses with the
status code each one carries.
"""
from typing import Any, Dict, List, Optional


class ScholarshipError(Exception):
    """Base class for all business-rule failures"""

    code = "error"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.details}


class ValidationFailed(ScholarshipError):
    """Client-fixable failure listing every unmet requirement id"""

    code = "validation_failed"
    status_code = 422

    def __init__(self, requirements: List[str], message: str = "Requirements not met"):
        super().__init__(message, {"requirements": list(requirements)})
        self.requirements = list(requirements)


class AlreadySubmitted(ScholarshipError):
    code = "already_submitted"
    status_code = 409


class AlreadyExists(ScholarshipError):
    code = "already_exists"
    status_code = 409


class TokenExpired(ScholarshipError):
    code = "token_expired"
    status_code = 410


class TokenInvalid(ScholarshipError):
    code = "token_invalid"
    status_code = 404


class QuotaExceeded(ScholarshipError):
    code = "quota_exceeded"
    status_code = 429


class NotFound(ScholarshipError):
    code = "not_found"
    status_code = 404


class IllegalTransition(ScholarshipError):
    code = "illegal_transition"
    status_code = 409


class Forbidden(ScholarshipError):
    code = "forbidden"
    status_code = 403
