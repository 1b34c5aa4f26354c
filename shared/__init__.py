"""
Shared utilities for the auth client.

This package aggregates common building blocks used across the client:

- config: Client configuration via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics helpers
- errors: Canonical error types
- test_helpers: Factories and fakes for the test suites

Only test_helpers may import from auth_client; everything else in shared/
stays free of auth_client imports to avoid cycles.
"""
