"""API Routes Package."""

from api.routes import health, auth, dashboard, financial, profile, diagnostics

__all__ = [
    "health",
    "auth",
    "dashboard",
    "financial",
    "profile",
    "diagnostics",
]
