"""
Database package for the lesson games engine.

This package provides SQLAlchemy-based persistence for lessons and games.
"""

from .manager import DatabaseManager

__all__ = ["DatabaseManager"]
