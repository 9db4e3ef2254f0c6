"""User, allow-list and device provisioning API with ChirpStack mirroring."""

from lnode_server.errors import (
    ConflictError,
    ExternalServiceError,
    FailedPreconditionError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
)

__all__ = [
    "ServiceError",
    "ConflictError",
    "ExternalServiceError",
    "FailedPreconditionError",
    "NotFoundError",
    "UnauthorizedError",
]
