"""Domain error taxonomy.

Every error is an ``HTTPException`` so services can raise them directly and
FastAPI renders them as ``{"detail": {"code": ..., "message": ...}}``.
"""
from fastapi import HTTPException, status


class ClubHubError(HTTPException):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str):
        super().__init__(
            status_code=self.http_status,
            detail={"code": self.code, "message": message},
        )
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(ClubHubError):
    code = "validation_error"


class AuthorizationError(ClubHubError):
    http_status = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFoundError(ClubHubError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(ClubHubError):
    http_status = status.HTTP_409_CONFLICT
    code = "conflict"


class AlreadyMarkedError(ConflictError):
    code = "already_marked"


class AlreadyCompletedError(ConflictError):
    code = "already_completed"


class PaymentRequiredError(ClubHubError):
    http_status = status.HTTP_402_PAYMENT_REQUIRED
    code = "payment_required"


class PaymentVerificationError(ClubHubError):
    code = "payment_verification_failed"


class MalformedQrError(ClubHubError):
    code = "malformed_qr"


class InvalidQrError(ClubHubError):
    code = "invalid_qr"


class UpstreamError(ClubHubError):
    """A blob store, payment gateway or QR renderer call failed.

    The message is what the caller sees; collaborator internals are logged
    where the failure is caught and never put here.
    """

    http_status = status.HTTP_502_BAD_GATEWAY
    code = "upstream_error"
