"""
FastAPI monitoring service.

Provides REST API for:
- /api/monitors - Monitor CRUD, forced checks, statistics reset
- /api/stats, /api/events - Aggregate views
- /api/sync - Manual persistence
- /health - Liveness
"""

from pulsewatch.api.app import create_app

__all__ = ["create_app"]
