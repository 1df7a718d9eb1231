"""
API v1 package.

Contains versioned API routes for the soko identity API.
"""

from soko.api.v1.routes import router

__all__ = ["router"]
