"""API Routes for HealthWatch."""

from healthwatch.api import alerts, health, readings

__all__ = [
    "alerts",
    "health",
    "readings",
]
