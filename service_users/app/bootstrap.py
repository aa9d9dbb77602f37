"""
Initialization for the user service client.
"""

from typing import Any, Optional

import httpx

from shared.availability import AvailabilityGate
from shared.config import UserServiceConfig, get_config
from shared.liveness import ServicePing
from shared.logging import configure_logging, get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from .adapters.user_client import SERVICE_NAME, UserServiceClient
from .caching.user_cache import UserCache


def create_user_service(
    base_url: Optional[str] = None,
    *,
    config: Optional[UserServiceConfig] = None,
    ping: Optional[Any] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    metrics: Optional[MetricsCollector] = None,
    configure_logs: bool = False,
) -> UserServiceClient:
    """Build a ready-to-use UserServiceClient.

    Call once at startup and hand the returned client to whoever needs it.
    ``ping`` may be any liveness oracle; by default a ServicePing checking the
    same base URL is created. Its periodic loop runs while the client is
    used as ``async with client:`` (or between ``await client.start()`` and
    ``await client.aclose()``), which is what reopens the gate after an outage.
    """
    if config is None:
        config = get_config(base_url)
    elif base_url is not None:
        config = config.model_copy(update={"user_service_url": base_url})

    if configure_logs:
        configure_logging("master", config.log_level)
    logger = get_logger("users.bootstrap")

    if metrics is None:
        metrics = get_metrics_collector("master")

    if ping is None:
        ping = ServicePing(
            config.user_service_url,
            name=SERVICE_NAME,
            ping_path=config.user_ping_path,
            timeout=config.user_ping_timeout,
            interval=config.user_ping_interval_seconds,
            transport=transport,
        )

    gate = AvailabilityGate(ping, name=SERVICE_NAME, metrics=metrics)
    cache = UserCache(
        max_entries=config.user_cache_max_entries,
        ttl=config.user_cache_ttl_seconds,
        metrics=metrics,
    )

    logger.info(
        "User service client initialized",
        base_url=config.user_service_url,
        cache_max_entries=config.user_cache_max_entries,
        cache_ttl_seconds=config.user_cache_ttl_seconds,
    )

    return UserServiceClient(
        config.user_service_url,
        gate,
        cache,
        timeout=config.user_service_timeout,
        transport=transport,
        metrics=metrics,
    )
