"""
Health router - /api/health, /api/health/detailed
"""

from .routes import router

__all__ = ["router"]
