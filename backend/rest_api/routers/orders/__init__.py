"""
Orders router - /api/orders/*
"""

from .routes import router

__all__ = ["router"]
