"""
Game specification schemas and validation for the lesson games engine
"""

from .games import (
    FillBlankChoiceSpec,
    FillBlankGameSpec,
    FillBlankRoundSpec,
    GameSpec,
    GameVariant,
    MatchingGameSpec,
    MatchingItemSpec,
    MatchingRoundSpec,
    MatchPairSpec,
    MatchSide,
    MultipleChoiceChoiceSpec,
    MultipleChoiceGameSpec,
    MultipleChoiceRoundSpec,
    spec_model_for,
)
from .validation import GameSpecValidator, parse_game_spec, validate_game_spec

__all__ = [
    # Variant tags
    "GameVariant",
    "MatchSide",
    # Fill in the blank
    "FillBlankGameSpec",
    "FillBlankRoundSpec",
    "FillBlankChoiceSpec",
    # Multiple choice
    "MultipleChoiceGameSpec",
    "MultipleChoiceRoundSpec",
    "MultipleChoiceChoiceSpec",
    # Matching
    "MatchingGameSpec",
    "MatchingRoundSpec",
    "MatchingItemSpec",
    "MatchPairSpec",
    # Helpers
    "GameSpec",
    "spec_model_for",
    "GameSpecValidator",
    "parse_game_spec",
    "validate_game_spec",
]
