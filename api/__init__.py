"""API Package.

FastAPI server for the SAP Customer Portal Gateway.
"""

from api.server import create_app

__all__ = [
    "create_app",
]
