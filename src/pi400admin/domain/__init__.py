"""Domain models for pi400admin.

This package contains the core data structures, enumerations, and value
objects used by the backend and the console. All models use Pydantic v2
for validation and serialization.
"""

from pi400admin.domain.models import (
    ApiResponse,
    CommandRequest,
    CommandResult,
    NatAction,
    NatRequest,
    ServiceAction,
    ServiceRequest,
    TextPayload,
)

__all__ = [
    "ApiResponse",
    "CommandRequest",
    "CommandResult",
    "NatAction",
    "NatRequest",
    "ServiceAction",
    "ServiceRequest",
    "TextPayload",
]
