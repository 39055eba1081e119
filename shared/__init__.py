"""
Shared utilities for the Access Token Service.

This package aggregates common building blocks consumed by the services:

- config: Service and token configuration via pydantic-settings
- logging: Structured logging with request/token correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffolding (health, metrics, errors)

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
