"""
Game specification schema definitions.

These models describe what an author submits for each game variant. They only
enforce shape (types, required fields, index bounds); the semantic rules that
span several fields, such as "exactly one correct choice" or a complete
matching, live in ``lessongames.schemas.validation``.
"""

from enum import Enum
from typing import List, Optional, Type, Union

from pydantic import BaseModel, Field


class GameVariant(str, Enum):
    """The three kinds of game a lesson can hold"""

    FILL_BLANK = "fill_blank"
    MATCHING = "matching"
    MULTIPLE_CHOICE = "multiple_choice"


class MatchSide(str, Enum):
    """The two choice collections of a matching round"""

    LEFT = "left"
    RIGHT = "right"


# ==================== Fill in the blank ====================


class FillBlankChoiceSpec(BaseModel):
    """A word (or picture) that can be dropped into the blank"""

    text: Optional[str] = Field(None, description="Word shown on the choice")
    media_url: Optional[str] = Field(None, description="Reference to uploaded media")
    is_correct: bool = Field(default=False, description="Whether it fills the blank")
    position: Optional[int] = Field(None, ge=1, description="1-based display position")

    class Config:
        extra = "forbid"


class FillBlankRoundSpec(BaseModel):
    """A sentence with one blank and the candidate words"""

    prompt: str = Field(..., description="Sentence containing the blank marker")
    choices: List[FillBlankChoiceSpec] = Field(default_factory=list)

    class Config:
        extra = "forbid"


# ==================== Multiple choice ====================


class MultipleChoiceChoiceSpec(BaseModel):
    """One answer option of a question"""

    text: str = Field(..., description="Answer text")
    is_correct: bool = Field(default=False)
    position: Optional[int] = Field(None, ge=1, description="1-based display position")

    class Config:
        extra = "forbid"


class MultipleChoiceRoundSpec(BaseModel):
    """A question with a single correct answer"""

    question: str = Field(..., description="Question text")
    choices: List[MultipleChoiceChoiceSpec] = Field(default_factory=list)

    class Config:
        extra = "forbid"


# ==================== Matching ====================


class MatchingItemSpec(BaseModel):
    """An entry of the left or right collection"""

    text: Optional[str] = Field(None, description="Word shown on the item")
    media_url: Optional[str] = Field(None, description="Reference to uploaded media")
    position: Optional[int] = Field(None, ge=1, description="1-based display position")

    class Config:
        extra = "forbid"


class MatchPairSpec(BaseModel):
    """A correct pairing, by index into the submitted left and right lists"""

    left_index: int = Field(..., ge=0)
    right_index: int = Field(..., ge=0)

    class Config:
        extra = "forbid"


class MatchingRoundSpec(BaseModel):
    """Two collections of items and the pairs that connect them"""

    prompt: Optional[str] = Field(None, description="Optional instruction text")
    left: List[MatchingItemSpec] = Field(default_factory=list)
    right: List[MatchingItemSpec] = Field(default_factory=list)
    matches: List[MatchPairSpec] = Field(default_factory=list)

    class Config:
        extra = "forbid"


# ==================== Games ====================


class FillBlankGameSpec(BaseModel):
    """Complete fill-in-the-blank game as submitted by an author"""

    total_rounds: int = Field(..., description="Declared number of rounds")
    rounds: List[FillBlankRoundSpec] = Field(default_factory=list)

    class Config:
        extra = "forbid"


class MultipleChoiceGameSpec(BaseModel):
    """Complete multiple choice game as submitted by an author"""

    total_rounds: int = Field(..., description="Declared number of rounds")
    rounds: List[MultipleChoiceRoundSpec] = Field(default_factory=list)

    class Config:
        extra = "forbid"


class MatchingGameSpec(BaseModel):
    """Complete matching game as submitted by an author"""

    total_rounds: int = Field(..., description="Declared number of rounds")
    rounds: List[MatchingRoundSpec] = Field(default_factory=list)

    class Config:
        extra = "forbid"


GameSpec = Union[FillBlankGameSpec, MatchingGameSpec, MultipleChoiceGameSpec]

SPEC_MODELS: dict = {
    GameVariant.FILL_BLANK: FillBlankGameSpec,
    GameVariant.MATCHING: MatchingGameSpec,
    GameVariant.MULTIPLE_CHOICE: MultipleChoiceGameSpec,
}


def spec_model_for(variant: GameVariant) -> Type[BaseModel]:
    """Return the definition model used for a variant."""
    return SPEC_MODELS[GameVariant(variant)]
