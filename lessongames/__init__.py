"""
Lesson games: persistence and validation of authored classroom exercises.
"""

__version__ = "0.1.0"
