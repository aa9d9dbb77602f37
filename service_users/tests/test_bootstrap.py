"""
Tests for configuration and client initialization.
"""

import asyncio

import httpx
import pytest

from shared.config import UserServiceConfig, get_config
from shared.errors import TransportFailureError
from shared.liveness import ServicePing
from shared.logging import (
    add_component,
    add_correlation_context,
    clear_context,
    set_request_id,
    set_session_user,
)
from service_users.app.adapters.user_client import UserServiceClient
from service_users.app.bootstrap import create_user_service


class TestConfig:
    """Test cases for UserServiceConfig."""

    def test_defaults(self, monkeypatch):
        """Test reference deployment defaults."""
        monkeypatch.delenv("MASTER_USER_SERVICE_URL", raising=False)
        config = UserServiceConfig()

        assert config.user_cache_max_entries == 100
        assert config.user_cache_ttl_seconds == 15.0
        assert config.user_ping_path == "/ping"

    def test_env_overrides(self, monkeypatch):
        """Test settings are read from MASTER_ prefixed variables."""
        monkeypatch.setenv("MASTER_USER_SERVICE_URL", "http://users.internal:9000")
        monkeypatch.setenv("MASTER_USER_CACHE_TTL_SECONDS", "30")

        config = get_config()

        assert config.user_service_url == "http://users.internal:9000"
        assert config.user_cache_ttl_seconds == 30.0

    def test_explicit_url_wins(self, monkeypatch):
        """Test an explicit base URL beats the environment."""
        monkeypatch.setenv("MASTER_USER_SERVICE_URL", "http://from-env")

        assert get_config("http://explicit").user_service_url == "http://explicit"


class TestCreateUserService:
    """Test cases for create_user_service."""

    def test_builds_client_from_base_url(self):
        """Test the single init call wires cache, gate and pinger."""
        client = create_user_service("http://users.internal:9000/")

        assert isinstance(client, UserServiceClient)
        assert client.base_url == "http://users.internal:9000"
        assert client.cache.max_entries == 100
        assert client.cache.ttl == 15.0
        assert isinstance(client.gate.oracle, ServicePing)
        assert client.gate.oracle.base_url == "http://users.internal:9000"
        assert client.gate.oracle.interval == 30.0

    def test_config_values_are_used(self):
        """Test cache sizing comes from the config."""
        config = UserServiceConfig(
            user_service_url="http://users",
            user_cache_max_entries=5,
            user_cache_ttl_seconds=2.5,
        )
        client = create_user_service(config=config)

        assert client.cache.max_entries == 5
        assert client.cache.ttl == 2.5
        assert client.base_url == "http://users"

    @pytest.mark.asyncio
    async def test_pinger_and_client_share_transport(self):
        """Test a failed call re-checks the same service and closes the gate."""
        def handler(request):
            if request.url.path == "/ping":
                return httpx.Response(503)
            raise httpx.ConnectError("Connection refused", request=request)

        client = create_user_service("http://users", transport=httpx.MockTransport(handler))

        first = await client.logout(1)
        await client.aclose()
        second = await client.logout(1)

        assert isinstance(first.error, TransportFailureError)
        assert client.gate.oracle.is_alive() is False
        assert second.kind.value == "unavailable"
        assert client.get_health()["liveness"]["state"] == "down"

    @pytest.mark.asyncio
    async def test_client_recovers_after_outage(self):
        """Test a closed gate reopens on its own once the service answers again."""
        outage = {"down": False}

        def handler(request):
            if outage["down"]:
                raise httpx.ConnectError("Connection refused", request=request)
            return httpx.Response(200)

        config = UserServiceConfig(user_service_url="http://users", user_ping_interval_seconds=0.01)
        client = create_user_service(config=config, transport=httpx.MockTransport(handler))

        async with client:
            outage["down"] = True
            failed = await client.logout(1)
            await client.gate.wait_for_pending_checks()
            refused = await client.logout(1)

            outage["down"] = False
            for _ in range(200):
                if client.gate.oracle.is_alive():
                    break
                await asyncio.sleep(0.01)
            recovered = await client.logout(1)

        assert failed.kind.value == "transport_failure"
        assert refused.kind.value == "unavailable"
        assert recovered.is_ok

    @pytest.mark.asyncio
    async def test_aclose_stops_periodic_checks(self):
        """Test checking stops once the client is closed."""
        config = UserServiceConfig(user_service_url="http://users", user_ping_interval_seconds=0.01)
        client = create_user_service(config=config, transport=httpx.MockTransport(lambda request: httpx.Response(200)))

        await client.start()
        await asyncio.sleep(0.05)
        await client.aclose()
        checks = client.gate.oracle.get_state()["check_count"]
        await asyncio.sleep(0.05)

        assert checks >= 1
        assert client.gate.oracle.get_state()["check_count"] == checks


class TestLoggingContext:
    """Test cases for the structlog processors."""

    def test_correlation_fields(self):
        """Test request and session user are added while set."""
        set_request_id("req-1")
        set_session_user(42)

        event = add_correlation_context(None, "info", {"event": "User updated"})
        assert event["request_id"] == "req-1"
        assert event["session_user"] == 42

        clear_context()
        assert add_correlation_context(None, "info", {"event": "x"}) == {"event": "x"}

    def test_generated_request_id(self):
        """Test a request id is generated when none is given."""
        request_id = set_request_id()

        assert len(request_id) == 36
        clear_context()

    def test_component_from_logger_name(self):
        """Test the component is taken from the logger name."""
        event = add_component(None, "info", {"logger": "users.client"})

        assert event["component"] == "users"

    def test_configure_logs_on_bootstrap(self):
        """Test create_user_service can configure logging."""
        client = create_user_service("http://users", configure_logs=True)

        assert client.base_url == "http://users"
