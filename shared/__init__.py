"""
Shared utilities for the master server.

This package aggregates common building blocks consumed by service packages:

- config: Configuration via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- liveness: Liveness checking of remote services
- availability: Liveness-gated call policy

Do not import from service_* packages into shared/.
"""
