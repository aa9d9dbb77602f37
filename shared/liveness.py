"""
Liveness checking for remote dependencies.

A ServicePing keeps the last known reachability of one remote service. Callers
read it with ``is_alive()`` (never blocks) and force a fresh check with
``await check_now()``. An optional background loop re-checks periodically.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger


class LivenessState(Enum):
    """Liveness states."""
    UNKNOWN = "unknown"    # Not checked yet, calls are attempted
    ALIVE = "alive"
    DOWN = "down"          # Last check failed, calls short-circuit


class ServicePing:
    """Liveness pinger for a single remote service."""

    def __init__(self,
                 base_url: str,
                 name: str = "default",
                 ping_path: str = "/ping",
                 timeout: float = 5.0,
                 interval: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self.name = name
        self.ping_path = ping_path
        self.timeout = timeout
        self.interval = interval
        self.logger = get_logger(f"liveness.{name}")
        self._transport = transport

        self._state = LivenessState.UNKNOWN
        self._last_check_time = 0.0
        self._last_error: Optional[str] = None
        self._check_count = 0
        self._inflight: Optional[asyncio.Task] = None
        self._loop_task: Optional[asyncio.Task] = None

    def is_alive(self) -> bool:
        """Return the last known status without touching the network."""
        return self._state != LivenessState.DOWN

    async def check_now(self) -> None:
        """Ping the service immediately; concurrent callers share one check."""
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._ping())
        await asyncio.shield(self._inflight)

    async def _ping(self) -> None:
        self._check_count += 1
        url = f"{self.base_url}{self.ping_path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url)

            if response.status_code == 200:
                self._set_state(LivenessState.ALIVE, None)
            else:
                self._set_state(LivenessState.DOWN, f"status {response.status_code}")

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self._set_state(LivenessState.DOWN, f"{e.__class__.__name__}: {e}")
        finally:
            self._last_check_time = time.time()

    def _set_state(self, state: LivenessState, error: Optional[str]) -> None:
        previous = self._state
        self._state = state
        self._last_error = error

        if previous == state:
            return
        if state == LivenessState.ALIVE:
            self.logger.info("Service is reachable", service=self.name, previous=previous.value)
        else:
            self.logger.warning(
                "Service is not reachable",
                service=self.name,
                previous=previous.value,
                error=error
            )

    def start(self, interval: Optional[float] = None) -> None:
        """Start checking in the background every ``interval`` seconds."""
        if interval is None:
            interval = self.interval
        if self._loop_task is not None and not self._loop_task.done():
            return
        self._loop_task = asyncio.ensure_future(self._run(interval))

    async def _run(self, interval: float) -> None:
        while True:
            try:
                await self.check_now()
            except Exception as e:
                self.logger.error("Liveness check crashed", service=self.name, error=str(e))
            await asyncio.sleep(interval)

    async def stop(self) -> None:
        """Stop the background check loop."""
        task = self._loop_task
        self._loop_task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def get_state(self) -> Dict[str, Any]:
        """Get current liveness state."""
        return {
            "name": self.name,
            "state": self._state.value,
            "alive": self.is_alive(),
            "check_count": self._check_count,
            "last_check_time": self._last_check_time,
            "last_error": self._last_error,
        }
