"""Error taxonomy of the bhajan service.

Every failure that leaves ``BhajanService`` is one of the ``ServiceError``
subclasses below; the API layer renders them with ``to_dict()``.
"""

from typing import Any


class ServiceError(Exception):
    """Base class for all service errors."""

    kind: str = "server_error"
    # Default HTTP status for API responses
    status_code: int = 500

    def __init__(self, detail: str, **extra: Any):
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "detail": self.detail, **self.extra}


# Caller errors
class ValidationError(ServiceError):
    """Caller-supplied data fails required-field or type rules."""

    kind = "validation_error"
    status_code = 400


class NotFoundError(ServiceError):
    """The identifier does not resolve to a record."""

    kind = "not_found"
    status_code = 404


class InvalidIdentifierError(ServiceError):
    """The identifier is not a well-formed record id."""

    kind = "invalid_identifier"
    status_code = 400


# Infrastructure errors
class IngestionFailure(ServiceError):
    """An upload to remote storage failed."""

    kind = "ingestion_failure"
    status_code = 500


class ServerError(ServiceError):
    """The metadata store failed for reasons unrelated to the caller's data."""

    kind = "server_error"
    status_code = 500


class TransportError(ServiceError):
    """Raised by object storage adapters; wrapped before it reaches a caller."""

    kind = "transport_error"
    status_code = 502


class UploadFailure(ServiceError):
    """One upload of a batch failed.

    Carries the offending slot and the underlying ``TransportError``.
    """

    kind = "upload_failure"
    status_code = 500

    def __init__(self, slot: str, cause: Exception):
        super().__init__(f"Failed to upload {slot}: {cause}", slot=slot)
        self.slot = slot
        self.cause = cause
