"""
User service client for the master server.
"""

from contextlib import nullcontext
from typing import Any, Dict, Optional, Type, TypeVar

import httpx

from shared.availability import AvailabilityGate
from shared.errors import TransportFailureError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..caching.user_cache import UserCache
from ..models import LoginResult, ResultKind, ServiceResult, User

SERVICE_NAME = "user_service"

R = TypeVar("R", bound=ServiceResult)


class UserServiceClient:
    """Client for communicating with the remote user service.

    Every operation checks the availability gate before touching the network
    (except cache hits in ``get_user_by_id``) and returns a ``ServiceResult``
    instead of raising. Transport failures schedule a liveness re-check in the
    background.
    """

    def __init__(
        self,
        base_url: str,
        gate: AvailabilityGate,
        cache: UserCache,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.gate = gate
        self.cache = cache
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger("users.client")
        # Each request opens and closes its own AsyncClient, so an injected
        # transport must survive aclose() (httpx.MockTransport does)
        self._transport = transport

    async def __aenter__(self) -> "UserServiceClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def start(self) -> None:
        """Start the liveness oracle's periodic checking, if it has one.

        Without it a gate closed by a failed call only reopens through
        another explicit re-check.
        """
        start = getattr(self.gate.oracle, "start", None)
        if callable(start):
            start()
            self.logger.info("Liveness checking started", service=SERVICE_NAME)

    async def aclose(self) -> None:
        """Stop periodic checking and wait for background re-checks to finish."""
        stop = getattr(self.gate.oracle, "stop", None)
        if callable(stop):
            await stop()
        await self.gate.wait_for_pending_checks()

    async def login(self, username: str, password: str) -> LoginResult:
        """Authenticate a user; OK carries the server-issued user id."""
        operation = "login"
        if not self.gate.is_open(operation):
            return self._unavailable(LoginResult, operation)

        try:
            response = await self._send(
                operation, "POST", "/users/auth/login",
                json={"username": username, "password": password}
            )

            if response.status_code == 401:
                self.logger.info("Login rejected by user service", operation=operation)
                self._record(operation, ResultKind.REJECTED)
                return LoginResult.rejected()

            self._raise_for_status(operation, response)
            user_id = response.json()["userId"]
            if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
                raise TransportFailureError(
                    SERVICE_NAME,
                    "Login returned an invalid user id",
                    details={"user_id": user_id}
                )

        except Exception as e:
            return self._transport_failure(LoginResult, operation, e)

        self._record(operation, ResultKind.OK)
        return LoginResult.ok(user_id)

    async def logout(self, user_id: int) -> ServiceResult[bool]:
        """End a user's session on the user service."""
        operation = "logout"
        if not self.gate.is_open(operation):
            return self._unavailable(ServiceResult, operation)

        try:
            response = await self._send(operation, "POST", "/users/auth/logout", json={"userId": user_id})
            self._raise_for_status(operation, response)
        except Exception as e:
            return self._transport_failure(ServiceResult, operation, e)

        self._record(operation, ResultKind.OK)
        return ServiceResult.ok(True)

    async def get_user_by_id(self, user_id: int) -> ServiceResult[User]:
        """Get a user, from the cache when possible."""
        operation = "get_user_by_id"

        # A cached snapshot is served even when the remote is down
        cached = self.cache.get(user_id)
        if cached is not None:
            self._record(operation, ResultKind.OK)
            return ServiceResult.ok(cached)

        if not self.gate.is_open(operation):
            return self._unavailable(ServiceResult, operation)

        try:
            response = await self._send(operation, "GET", f"/users/{user_id}")
            self._raise_for_status(operation, response)
            user = User.model_validate(response.json())
        except Exception as e:
            return self._transport_failure(ServiceResult, operation, e)

        self.cache.put(user.id, user)
        self._record(operation, ResultKind.OK)
        return ServiceResult.ok(user)

    async def set_user_campaign_flags(self, target_user: User, campaign_flags: int) -> ServiceResult[User]:
        """Set a user's campaign flags bitmask."""
        return await self._set_field("set_user_campaign_flags", target_user, "campaign_flags", campaign_flags)

    async def set_user_avatar(self, target_user: User, avatar_id: int) -> ServiceResult[User]:
        """Set a user's avatar."""
        return await self._set_field("set_user_avatar", target_user, "avatar", avatar_id)

    async def set_user_signature(self, target_user: User, signature: str) -> ServiceResult[User]:
        """Set a user's signature."""
        return await self._set_field("set_user_signature", target_user, "signature", signature)

    async def set_user_title(self, target_user: User, title_id: int) -> ServiceResult[User]:
        """Set a user's title."""
        return await self._set_field("set_user_title", target_user, "title", title_id)

    async def update(self, target_user: User) -> ServiceResult[User]:
        """Send the whole user record and cache it once the service accepts it."""
        operation = "update"
        if not self.gate.is_open(operation):
            return self._unavailable(ServiceResult, operation)

        try:
            response = await self._send(
                operation, "PUT", f"/users/{target_user.id}", json=target_user.to_payload()
            )
            self._raise_for_status(operation, response)
        except Exception as e:
            return self._transport_failure(ServiceResult, operation, e)

        self.cache.put(target_user.id, target_user)
        self.logger.info("User updated", target_user_id=target_user.id)
        self._record(operation, ResultKind.OK)
        return ServiceResult.ok(target_user)

    async def _set_field(self, operation: str, target_user: User, field: str, value: Any) -> ServiceResult[User]:
        """PUT a single field; on success return and cache the caller's user with that field replaced.

        The passed object is left untouched, callers should keep ``result.value``.
        """
        if not self.gate.is_open(operation):
            return self._unavailable(ServiceResult, operation)

        try:
            response = await self._send(operation, "PUT", f"/users/{target_user.id}", json={field: value})
            self._raise_for_status(operation, response)
        except Exception as e:
            return self._transport_failure(ServiceResult, operation, e)

        updated = target_user.model_copy(update={field: value})
        self.cache.put(updated.id, updated)
        self._record(operation, ResultKind.OK)
        return ServiceResult.ok(updated)

    async def _send(
        self,
        operation: str,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        with self._timer(operation):
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                return await client.request(
                    method,
                    url,
                    json=json,
                    headers={"Accept": "application/json"}
                )

    def _timer(self, operation: str):
        if self.metrics:
            return self.metrics.time_operation("user_service_request_duration_seconds", operation=operation)
        return nullcontext()

    def _raise_for_status(self, operation: str, response: httpx.Response) -> None:
        if response.status_code == 200:
            return
        raise TransportFailureError(
            SERVICE_NAME,
            f"Unexpected status {response.status_code}",
            details={
                "operation": operation,
                "status_code": response.status_code,
                "body": response.text
            }
        )

    def _unavailable(self, result_cls: Type[R], operation: str) -> R:
        self._record(operation, ResultKind.UNAVAILABLE)
        return result_cls.unavailable(SERVICE_NAME)

    def _transport_failure(self, result_cls: Type[R], operation: str, error: Exception) -> R:
        if isinstance(error, TransportFailureError):
            failure = error
        elif isinstance(error, httpx.HTTPError):
            failure = TransportFailureError(
                SERVICE_NAME,
                "User service unavailable",
                details={"operation": operation, "http_error": str(error)}
            )
        else:
            failure = TransportFailureError(
                SERVICE_NAME,
                f"Malformed response: {error}",
                details={"operation": operation, "error": str(error)}
            )

        self.logger.error(
            "User service call failed",
            operation=operation,
            error=failure.message,
            details=failure.details
        )
        self.gate.report_transport_failure(operation, error)
        self._record(operation, ResultKind.TRANSPORT_FAILURE)
        return result_cls.transport_failure(failure)

    def _record(self, operation: str, kind: ResultKind) -> None:
        if self.metrics:
            self.metrics.record_call(operation, kind.value)

    def get_health(self) -> Dict[str, Any]:
        """Report gate, liveness and cache state."""
        oracle_state = getattr(self.gate.oracle, "get_state", None)
        return {
            "base_url": self.base_url,
            "gate": self.gate.get_state(),
            "liveness": oracle_state() if callable(oracle_state) else None,
            "cache": self.cache.stats(),
        }

