"""
Domain Exceptions - typed errors raised by the service layer.

Every error carries a stable machine-readable error_code (its "kind") and an
HTTP status, so the single handler in main.py can map kind -> response
without any string matching.

Hierarchy:
    StartupTeamError
    ├── InvalidToken            (401)
    ├── InvalidCredentials      (401)
    ├── Forbidden               (403)
    ├── NotFound                (404)
    │   └── RoleNotFound        (404)
    ├── ValidationFailed        (400)
    ├── InvalidTransition       (409)
    ├── DuplicateApplication    (409)
    ├── EmailAlreadyRegistered  (409)
    ├── StartupAlreadyExists    (409)
    ├── AlreadySaved            (409)
    ├── AuthProviderError       (502)
    └── UploadFailed            (502)

Usage:
    raise Forbidden("Only the owning founder can accept applications")

    try:
        ...
    except StartupTeamError as e:
        return JSONResponse(e.to_dict(), status_code=e.status_code)
"""

from typing import Any, Dict, Optional


class StartupTeamError(Exception):
    """Base exception for all service-layer errors."""

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON body returned by the API."""
        result: Dict[str, Any] = {
            "success": False,
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class InvalidToken(StartupTeamError):
    """Bad signature, expired, malformed or wrong-type signed token."""

    default_error_code = "INVALID_TOKEN"
    status_code = 401


class InvalidCredentials(StartupTeamError):
    default_error_code = "INVALID_CREDENTIALS"
    status_code = 401


class Forbidden(StartupTeamError):
    """Actor lacks ownership of the resource or the required role."""

    default_error_code = "FORBIDDEN"
    status_code = 403


class NotFound(StartupTeamError):
    default_error_code = "NOT_FOUND"
    status_code = 404


class RoleNotFound(NotFound):
    """Role is missing or no longer open for applications."""

    default_error_code = "ROLE_NOT_FOUND"


class ValidationFailed(StartupTeamError):
    default_error_code = "VALIDATION_ERROR"
    status_code = 400


class InvalidTransition(StartupTeamError):
    """Application state machine precondition violated."""

    default_error_code = "INVALID_TRANSITION"
    status_code = 409


class DuplicateApplication(StartupTeamError):
    default_error_code = "DUPLICATE_APPLICATION"
    status_code = 409


class EmailAlreadyRegistered(StartupTeamError):
    default_error_code = "EMAIL_EXISTS"
    status_code = 409


class StartupAlreadyExists(StartupTeamError):
    default_error_code = "STARTUP_EXISTS"
    status_code = 409


class AlreadySaved(StartupTeamError):
    default_error_code = "ALREADY_SAVED"
    status_code = 409


class AuthProviderError(StartupTeamError):
    """OAuth exchange or account reconciliation failed."""

    default_error_code = "AUTH_PROVIDER_ERROR"
    status_code = 502


class UploadFailed(StartupTeamError):
    default_error_code = "UPLOAD_FAILED"
    status_code = 502
