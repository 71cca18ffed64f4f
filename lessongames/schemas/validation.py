"""
Semantic validation of game specifications.

Runs before any storage access. The first broken rule is raised as a
``lessongames.errors.ValidationError`` naming the rule and, where it applies,
the offending round, side and choice.
"""

from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from lessongames.config import settings
from lessongames.engine.matching import validate_matching
from lessongames.errors import ValidationError
from lessongames.schemas.games import (
    FillBlankGameSpec,
    FillBlankRoundSpec,
    GameSpec,
    GameVariant,
    MatchingGameSpec,
    MatchingRoundSpec,
    MatchSide,
    MultipleChoiceGameSpec,
    MultipleChoiceRoundSpec,
    spec_model_for,
)
from lessongames.utils.logger import get_logger

logger = get_logger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def parse_game_spec(
    variant: Union[GameVariant, str], spec_data: Union[GameSpec, Dict[str, Any]]
) -> GameSpec:
    """
    Parse raw input into the definition model of ``variant``.

    Pydantic errors are re-raised as a ValidationError with rule ``schema``,
    pointing at the round they occurred in when there is one.
    """
    try:
        variant = GameVariant(variant)
    except ValueError:
        raise ValidationError(f"Unknown game variant: {variant}", rule="variant")

    model = spec_model_for(variant)
    if isinstance(spec_data, BaseModel):
        if not isinstance(spec_data, model):
            raise ValidationError(
                f"Specification of type {type(spec_data).__name__} "
                f"does not describe a {variant.value} game",
                rule="variant",
            )
        return spec_data  # type: ignore[return-value]

    try:
        return model(**spec_data)  # type: ignore[return-value]
    except PydanticValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc", ())
        round_index = None
        if len(loc) > 1 and loc[0] == "rounds" and isinstance(loc[1], int):
            round_index = loc[1]
        field_path = ".".join(str(part) for part in loc)
        raise ValidationError(
            f"Invalid field '{field_path}': {first.get('msg')}",
            rule="schema",
            round_index=round_index,
        )
    except TypeError as e:
        raise ValidationError(f"Invalid specification: {e}", rule="schema")


class GameSpecValidator:
    """Validates game specifications against the authoring rules of each variant"""

    def __init__(
        self,
        blank_marker: Optional[str] = None,
        max_rounds: Optional[int] = None,
        min_choices: Optional[int] = None,
        max_choices: Optional[int] = None,
    ):
        self.blank_marker = settings.blank_marker if blank_marker is None else blank_marker
        self.max_rounds = settings.max_rounds if max_rounds is None else max_rounds
        self.min_choices = settings.min_choices if min_choices is None else min_choices
        self.max_choices = settings.max_choices if max_choices is None else max_choices

    def validate(
        self,
        variant: Union[GameVariant, str],
        spec_data: Union[GameSpec, Dict[str, Any]],
    ) -> GameSpec:
        """
        Parse and validate a specification.

        Args:
            variant: Game variant the definition is for
            spec_data: Specification model or raw dictionary

        Returns:
            The parsed specification, unchanged

        Raises:
            ValidationError: On the first broken rule
        """
        spec = parse_game_spec(variant, spec_data)
        try:
            self._check_round_count(spec)
            if isinstance(spec, FillBlankGameSpec):
                for index, round_spec in enumerate(spec.rounds):
                    self._check_fill_blank_round(round_spec, index)
            elif isinstance(spec, MultipleChoiceGameSpec):
                for index, round_spec in enumerate(spec.rounds):
                    self._check_multiple_choice_round(round_spec, index)
            elif isinstance(spec, MatchingGameSpec):
                for index, round_spec in enumerate(spec.rounds):
                    self._check_matching_round(round_spec, index)
        except ValidationError as e:
            logger.warning(f"Rejected {GameVariant(variant).value} spec: {e.message}")
            raise
        return spec

    def blank_position(self, prompt: str) -> int:
        """Character offset of the blank marker in a fill-blank prompt."""
        return prompt.index(self.blank_marker)

    # ==================== Shared rules ====================

    def _check_round_count(self, spec: GameSpec) -> None:
        if not 1 <= spec.total_rounds <= self.max_rounds:
            raise ValidationError(
                f"A game must have between 1 and {self.max_rounds} rounds, "
                f"got {spec.total_rounds}",
                rule="round_count.range",
            )
        if spec.total_rounds != len(spec.rounds):
            raise ValidationError(
                f"Declared {spec.total_rounds} rounds but {len(spec.rounds)} were given",
                rule="round_count.mismatch",
            )

    def _check_choice_count(
        self,
        count: int,
        round_index: int,
        side: Optional[str] = None,
        maximum: Optional[int] = None,
    ) -> None:
        if count < self.min_choices:
            where = f"{side} items" if side else "choices"
            raise ValidationError(
                f"At least {self.min_choices} {where} are required",
                rule="choices.too_few",
                round_index=round_index,
                side=side,
            )
        if maximum is not None and count > maximum:
            raise ValidationError(
                f"At most {maximum} choices are allowed",
                rule="choices.too_many",
                round_index=round_index,
                side=side,
            )

    def _check_positions(
        self, positions: Sequence[Optional[int]], round_index: int, side: Optional[str] = None
    ) -> None:
        given = [p for p in positions if p is not None]
        if not given:
            return
        if len(given) != len(positions):
            raise ValidationError(
                "Display positions must be given for every choice or for none",
                rule="positions.partial",
                round_index=round_index,
                side=side,
            )
        if sorted(given) != list(range(1, len(positions) + 1)):
            raise ValidationError(
                f"Display positions must be 1..{len(positions)} without repeats, "
                f"got {given}",
                rule="positions.not_contiguous",
                round_index=round_index,
                side=side,
            )

    def _check_single_correct(self, flags: List[bool], round_index: int) -> None:
        correct = sum(1 for flag in flags if flag)
        if correct == 0:
            raise ValidationError(
                "Must select a correct answer",
                rule="correct.missing",
                round_index=round_index,
            )
        if correct > 1:
            raise ValidationError(
                f"Exactly one correct answer is allowed, {correct} are marked",
                rule="correct.multiple",
                round_index=round_index,
            )

    # ==================== Variant rules ====================

    def _check_fill_blank_round(self, round_spec: FillBlankRoundSpec, index: int) -> None:
        blanks = round_spec.prompt.count(self.blank_marker)
        if blanks != 1:
            raise ValidationError(
                f"Sentence must contain exactly one blank '{self.blank_marker}', "
                f"found {blanks}",
                rule="prompt.blank",
                round_index=index,
            )

        self._check_choice_count(len(round_spec.choices), index)
        for choice_index, choice in enumerate(round_spec.choices):
            if _is_blank(choice.text) and _is_blank(choice.media_url):
                raise ValidationError(
                    "All choices must have text or an image",
                    rule="choice.empty",
                    round_index=index,
                    choice_index=choice_index,
                )
        self._check_single_correct([c.is_correct for c in round_spec.choices], index)
        self._check_positions([c.position for c in round_spec.choices], index)

    def _check_multiple_choice_round(
        self, round_spec: MultipleChoiceRoundSpec, index: int
    ) -> None:
        if _is_blank(round_spec.question):
            raise ValidationError(
                "Question is required", rule="question.empty", round_index=index
            )

        self._check_choice_count(
            len(round_spec.choices), index, maximum=self.max_choices
        )
        for choice_index, choice in enumerate(round_spec.choices):
            if _is_blank(choice.text):
                raise ValidationError(
                    "All choices must have text",
                    rule="choice.empty",
                    round_index=index,
                    choice_index=choice_index,
                )
        self._check_single_correct([c.is_correct for c in round_spec.choices], index)
        self._check_positions([c.position for c in round_spec.choices], index)

    def _check_matching_round(self, round_spec: MatchingRoundSpec, index: int) -> None:
        for side, items in (
            (MatchSide.LEFT.value, round_spec.left),
            (MatchSide.RIGHT.value, round_spec.right),
        ):
            self._check_choice_count(len(items), index, side=side)
            for item_index, item in enumerate(items):
                if _is_blank(item.text) and _is_blank(item.media_url):
                    raise ValidationError(
                        f"All {side} items must have text or an image",
                        rule="choice.empty",
                        round_index=index,
                        side=side,
                        choice_index=item_index,
                    )
            self._check_positions([item.position for item in items], index, side=side)

        validate_matching(
            len(round_spec.left),
            len(round_spec.right),
            [(m.left_index, m.right_index) for m in round_spec.matches],
            round_index=index,
        )


def validate_game_spec(
    variant: Union[GameVariant, str], spec_data: Union[GameSpec, Dict[str, Any]]
) -> GameSpec:
    """Validate and parse a game specification using the configured limits"""
    return GameSpecValidator().validate(variant, spec_data)
