"""
Utility modules for the lesson games engine
"""

from .logger import VERBOSE, get_logger, setup_logging

__all__ = [
    "VERBOSE",
    "get_logger",
    "setup_logging",
]
