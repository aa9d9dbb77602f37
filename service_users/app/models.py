"""
User data models and call results for the user service client.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import (
    AccessLayerException,
    CredentialsRejectedError,
    ServiceUnavailableError,
    TransportFailureError,
)

T = TypeVar("T")


class User(BaseModel):
    """Snapshot of a user record held by the remote user service.

    Only the fields this client mutates are declared; any other field sent by
    the service is kept as-is and sent back on a full update.
    """

    model_config = ConfigDict(extra="allow")

    id: int = Field(frozen=True)
    campaign_flags: int = 0
    avatar: int = 0
    signature: str = ""
    title: int = 0

    def to_payload(self) -> Dict[str, Any]:
        """Full JSON body for a PUT, extra fields included."""
        return self.model_dump(mode="json")


class ResultKind(str, Enum):
    """How a user service operation ended."""
    OK = "ok"
    UNAVAILABLE = "unavailable"
    REJECTED = "rejected"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Tagged result of a user service operation.

    ``value`` is only set when ``kind`` is OK; ``error`` describes every other
    kind. Callers branch on ``kind`` instead of catching exceptions.
    """

    kind: ResultKind
    value: Optional[T] = None
    error: Optional[AccessLayerException] = None

    @property
    def is_ok(self) -> bool:
        return self.kind == ResultKind.OK

    def __bool__(self) -> bool:
        return self.is_ok

    @classmethod
    def ok(cls, value: T) -> "ServiceResult[T]":
        return cls(ResultKind.OK, value=value)

    @classmethod
    def unavailable(cls, service: str) -> "ServiceResult[T]":
        return cls(ResultKind.UNAVAILABLE, error=ServiceUnavailableError(service))

    @classmethod
    def rejected(cls, message: str = "Invalid credentials") -> "ServiceResult[T]":
        return cls(ResultKind.REJECTED, error=CredentialsRejectedError(message))

    @classmethod
    def transport_failure(cls, error: TransportFailureError) -> "ServiceResult[T]":
        return cls(ResultKind.TRANSPORT_FAILURE, error=error)


class LoginResult(ServiceResult[int]):
    """Result of a login attempt; ``value`` is the server-issued user id."""

    # Legacy integer codes. Kept for callers that still branch on the sign.
    FAILED = 0
    INVALID_CREDENTIALS = -1

    @property
    def legacy_code(self) -> int:
        """Positive user id, 0 when failed or unavailable, -1 when rejected."""
        if self.kind == ResultKind.OK:
            return self.value
        if self.kind == ResultKind.REJECTED:
            return self.INVALID_CREDENTIALS
        return self.FAILED
