"""
Payments router - /api/payments/*
"""

from .routes import router

__all__ = ["router"]
