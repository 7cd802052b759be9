"""
Tables router - /api/tables/*
"""

from .routes import router

__all__ = ["router"]
