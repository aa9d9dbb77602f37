"""
Availability gate for calls to a remote dependency.

Before any network I/O the gate asks a liveness oracle whether the remote is
reachable. When a call fails at the transport level the gate schedules a fresh
liveness check in the background so later calls fail fast; the failed call
itself is never retried and never waits for that check.

The oracle is any object exposing ``is_alive() -> bool`` and
``async check_now() -> None``, such as ``shared.liveness.ServicePing``.
"""

import asyncio
from typing import Any, Dict, Optional, Set

from shared.logging import get_logger
from shared.metrics import MetricsCollector


class AvailabilityGate:
    """Liveness-gated call policy for one remote service."""

    def __init__(self, oracle: Any, name: str = "default", metrics: Optional[MetricsCollector] = None):
        self.oracle = oracle
        self.name = name
        self.metrics = metrics
        self.logger = get_logger(f"availability.{name}")

        self._pending: Set[asyncio.Task] = set()
        self._short_circuits = 0
        self._rechecks = 0

    def is_open(self, operation: str = "call") -> bool:
        """Return True when the remote should be called."""
        if self.oracle.is_alive():
            return True

        self._short_circuits += 1
        self.logger.debug("Remote not alive, skipping call", service=self.name, operation=operation)
        if self.metrics:
            self.metrics.increment_counter("gate_short_circuits_total", operation=operation)
        return False

    def report_transport_failure(self, operation: str, error: BaseException) -> asyncio.Task:
        """Schedule a liveness re-check without blocking the caller."""
        self._rechecks += 1
        self.logger.warning(
            "Transport failure, scheduling liveness re-check",
            service=self.name,
            operation=operation,
            error=str(error),
            error_type=error.__class__.__name__
        )

        task = asyncio.ensure_future(self._recheck(operation))
        # The loop only keeps weak references to tasks
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _recheck(self, operation: str) -> None:
        try:
            await self.oracle.check_now()
        except Exception as e:
            self.logger.error(
                "Liveness re-check failed",
                service=self.name,
                operation=operation,
                error=str(e)
            )
            if self.metrics:
                self.metrics.increment_counter("liveness_rechecks_total", status="error")
            return

        if self.metrics:
            self.metrics.increment_counter("liveness_rechecks_total", status="completed")

    async def wait_for_pending_checks(self) -> None:
        """Wait until every scheduled re-check has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def get_state(self) -> Dict[str, Any]:
        """Get current gate state."""
        return {
            "name": self.name,
            "open": self.oracle.is_alive(),
            "pending_rechecks": len(self._pending),
            "short_circuits": self._short_circuits,
            "rechecks": self._rechecks,
        }
