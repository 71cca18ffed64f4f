"""
Core engine components for the lesson games engine

The persistence manager lives in ``lessongames.engine.persistence`` and is
imported from there; it depends on the schema validators, which in turn use
the matching checks exported here.
"""

from .aggregator import GameReadAggregator, assemble_games
from .matching import (
    MatchingIssue,
    MatchingIssueKind,
    find_matching_issue,
    is_complete_matching,
    validate_matching,
)

__all__ = [
    "GameReadAggregator",
    "assemble_games",
    "MatchingIssue",
    "MatchingIssueKind",
    "find_matching_issue",
    "is_complete_matching",
    "validate_matching",
]
