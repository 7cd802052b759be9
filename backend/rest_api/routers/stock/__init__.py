"""
Stock router - /api/stock/*
"""

from .routes import router

__all__ = ["router"]
