"""
Transactional persistence of game specifications.

Every write (create, replace, delete) runs inside a single transaction from
``DatabaseManager.transaction``: either the whole game graph is written or
nothing is. Matching rounds are written in two phases. Both choice
collections are inserted and flushed first, their generated identifiers are
recorded in a ``ChoiceIdMap`` per side, and only then are the matches inserted
by translating the submitted indices through those maps.

Each write is tracked by a ``WriteOperation`` that moves through
``pending -> validating -> rejected`` or
``pending -> validating -> writing -> committed | rolled_back``.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from lessongames.db.manager import DatabaseManager
from lessongames.db.schema import Game, GameRound, Lesson, RoundChoice, RoundMatch
from lessongames.engine.aggregator import GameReadAggregator
from lessongames.engine.matching import validate_matching
from lessongames.errors import GameConflictError, GameError, NotFoundError
from lessongames.schemas.games import (
    FillBlankRoundSpec,
    GameSpec,
    GameVariant,
    MatchingItemSpec,
    MatchingRoundSpec,
    MatchSide,
    MultipleChoiceRoundSpec,
)
from lessongames.schemas.validation import GameSpecValidator
from lessongames.utils.logger import get_logger

logger = get_logger(__name__)


class WriteState(str, Enum):
    """Lifecycle of a single write operation"""

    PENDING = "pending"
    VALIDATING = "validating"
    REJECTED = "rejected"
    WRITING = "writing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


_TRANSITIONS = {
    WriteState.PENDING: {WriteState.VALIDATING, WriteState.WRITING, WriteState.REJECTED},
    WriteState.VALIDATING: {WriteState.REJECTED, WriteState.WRITING},
    WriteState.WRITING: {WriteState.COMMITTED, WriteState.ROLLED_BACK},
    WriteState.REJECTED: set(),
    WriteState.COMMITTED: set(),
    WriteState.ROLLED_BACK: set(),
}


class WriteOperation:
    """
    Record of one write and the states it went through.

    Attributes:
        name: create, replace or delete
        game_id: Target game (set once known)
        state: Current state
        history: Every state entered, in order
    """

    def __init__(self, name: str, game_id: Optional[int] = None):
        self.name = name
        self.game_id = game_id
        self.state = WriteState.PENDING
        self.history: List[WriteState] = [WriteState.PENDING]
        self.error: Optional[BaseException] = None

    def advance(self, state: WriteState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal write transition {self.state.value} -> {state.value}"
            )
        logger.debug(
            f"[{self.name} game={self.game_id}] {self.state.value} -> {state.value}"
        )
        self.state = state
        self.history.append(state)

    @property
    def finished(self) -> bool:
        return not _TRANSITIONS[self.state]


class ChoiceIdMap:
    """Specification index -> generated choice id, for one choice collection"""

    def __init__(self, side: str):
        self.side = side
        self._ids: Dict[int, int] = {}

    def record(self, index: int, choice_id: int) -> None:
        if index in self._ids:
            raise ValueError(f"{self.side} index {index} recorded twice")
        self._ids[index] = choice_id

    def resolve(self, index: int) -> int:
        try:
            return self._ids[index]
        except KeyError:
            raise LookupError(f"No {self.side} choice was inserted for index {index}")

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, index: int) -> bool:
        return index in self._ids


class GamePersistenceManager:
    """
    Writes validated game specifications as rows.

    Attributes:
        db: Database manager providing transactions
        validator: Specification validator run before any write
        aggregator: Read model used to return the stored game
        last_operation: The most recent WriteOperation
    """

    def __init__(
        self,
        db: DatabaseManager,
        validator: Optional[GameSpecValidator] = None,
        aggregator: Optional[GameReadAggregator] = None,
    ):
        self.db = db
        self.validator = validator or GameSpecValidator()
        self.aggregator = aggregator or GameReadAggregator(db)
        self.last_operation: Optional[WriteOperation] = None

    # ==================== Operations ====================

    def create_game(
        self,
        lesson_id: int,
        variant: Union[GameVariant, str],
        spec_data: Union[GameSpec, Dict[str, Any]],
        author_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Validate a specification and store it as a new game.

        Args:
            lesson_id: Lesson the game belongs to
            variant: Game variant
            spec_data: Specification model or raw dictionary
            author_id: Author reference stored on the game

        Returns:
            The stored game as returned by the read aggregator

        Raises:
            ValidationError: If the definition is rejected
            NotFoundError: If the lesson does not exist
            GameConflictError: If the lesson already has a game of this variant
            StorageError: If the transaction fails
        """
        operation = self._begin("create")
        spec = self._validate(operation, variant, spec_data)
        variant = GameVariant(variant)

        logger.info(
            f"Creating {variant.value} game for lesson {lesson_id} "
            f"({spec.total_rounds} rounds)"
        )

        def write(session: DBSession) -> int:
            if session.get(Lesson, lesson_id) is None:
                raise NotFoundError("lesson", lesson_id)

            existing_id = self._existing_game_id(session, lesson_id, variant)
            if existing_id is not None:
                raise GameConflictError(lesson_id, variant.value, existing_id)

            now = datetime.utcnow()
            game = Game(
                lesson_id=lesson_id,
                variant=variant.value,
                total_rounds=spec.total_rounds,
                created_by=author_id,
                created_at=now,
                updated_at=now,
            )
            session.add(game)
            try:
                session.flush()
            except IntegrityError:
                # A concurrent create took the slot after the check above
                session.rollback()
                existing_id = self._existing_game_id(session, lesson_id, variant)
                if existing_id is None:
                    raise
                raise GameConflictError(lesson_id, variant.value, existing_id)
            operation.game_id = game.id

            self._insert_rounds(session, game, variant, spec)
            return game.id

        game_id = self._write(operation, "create game", write)
        logger.info(f"✓ Created {variant.value} game {game_id}")
        return self.aggregator.get_game(game_id)

    def replace_game(
        self,
        game_id: int,
        spec_data: Union[GameSpec, Dict[str, Any]],
        author_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Replace every round of a game with those of a new specification.

        Existing rounds, choices and matches are deleted and inserted again,
        so their identifiers change on every replace.

        Raises:
            NotFoundError: If the game does not exist
            ValidationError: If the definition is rejected
            StorageError: If the transaction fails
        """
        operation = self._begin("replace", game_id)

        with self.db.session() as session:
            stored_variant = session.query(Game.variant).filter(Game.id == game_id).scalar()
        if stored_variant is None:
            operation.advance(WriteState.REJECTED)
            logger.warning(f"Cannot replace game {game_id}: not found")
            raise NotFoundError("game", game_id)

        variant = GameVariant(stored_variant)
        spec = self._validate(operation, variant, spec_data)

        logger.info(
            f"Replacing {variant.value} game {game_id} ({spec.total_rounds} rounds)"
        )

        def write(session: DBSession) -> int:
            game = session.get(Game, game_id)
            if game is None:
                raise NotFoundError("game", game_id)

            game.total_rounds = spec.total_rounds
            game.updated_at = datetime.utcnow()
            if author_id is not None:
                game.created_by = author_id

            removed = len(game.rounds)
            # delete-orphan cascade removes the rounds with their choices and matches
            game.rounds.clear()
            session.flush()
            logger.debug(f"Removed {removed} rounds of game {game_id}")

            self._insert_rounds(session, game, variant, spec)
            return game.id

        self._write(operation, "replace game", write)
        logger.info(f"✓ Replaced game {game_id}")
        return self.aggregator.get_game(game_id)

    def delete_game(self, game_id: int) -> Dict[str, Any]:
        """
        Delete a game and everything below it.

        Raises:
            NotFoundError: If the game does not exist
            StorageError: If the transaction fails
        """
        operation = self._begin("delete", game_id)
        logger.info(f"Deleting game {game_id}")

        def write(session: DBSession) -> int:
            game = session.get(Game, game_id)
            if game is None:
                raise NotFoundError("game", game_id)
            session.delete(game)
            return game_id

        self._write(operation, "delete game", write)
        logger.info(f"✓ Deleted game {game_id}")
        return {"id": game_id, "deleted": True}

    # ==================== Write lifecycle ====================

    @staticmethod
    def _existing_game_id(
        session: DBSession, lesson_id: int, variant: GameVariant
    ) -> Optional[int]:
        return (
            session.query(Game.id)
            .filter(Game.lesson_id == lesson_id, Game.variant == variant.value)
            .scalar()
        )

    def _begin(self, name: str, game_id: Optional[int] = None) -> WriteOperation:
        operation = WriteOperation(name, game_id)
        self.last_operation = operation
        return operation

    def _validate(
        self,
        operation: WriteOperation,
        variant: Union[GameVariant, str],
        spec_data: Union[GameSpec, Dict[str, Any]],
    ) -> GameSpec:
        operation.advance(WriteState.VALIDATING)
        try:
            return self.validator.validate(variant, spec_data)
        except GameError as e:
            operation.error = e
            operation.advance(WriteState.REJECTED)
            raise

    def _write(self, operation: WriteOperation, label: str, write) -> int:
        operation.advance(WriteState.WRITING)
        try:
            with self.db.transaction(label) as session:
                result = write(session)
        except BaseException as e:
            operation.error = e
            operation.advance(WriteState.ROLLED_BACK)
            raise
        operation.advance(WriteState.COMMITTED)
        return result

    # ==================== Row insertion ====================

    def _insert_rounds(
        self, session: DBSession, game: Game, variant: GameVariant, spec: GameSpec
    ) -> None:
        for index, round_spec in enumerate(spec.rounds):
            round_number = index + 1
            if variant == GameVariant.FILL_BLANK:
                self._insert_fill_blank_round(session, game, round_number, round_spec)
            elif variant == GameVariant.MULTIPLE_CHOICE:
                self._insert_multiple_choice_round(session, game, round_number, round_spec)
            else:
                self._insert_matching_round(session, game, round_number, round_spec, index)
            logger.verbose(  # type: ignore[attr-defined]
                f"Game {game.id}: wrote round {round_number}/{spec.total_rounds}"
            )

    def _insert_fill_blank_round(
        self,
        session: DBSession,
        game: Game,
        round_number: int,
        round_spec: FillBlankRoundSpec,
    ) -> None:
        game_round = GameRound(
            game=game,
            round_number=round_number,
            prompt=round_spec.prompt,
            blank_position=self.validator.blank_position(round_spec.prompt),
            created_at=datetime.utcnow(),
        )
        session.add(game_round)
        for index, choice in enumerate(round_spec.choices):
            session.add(
                RoundChoice(
                    round=game_round,
                    text=choice.text,
                    media_url=choice.media_url,
                    position=choice.position or index + 1,
                    is_correct=choice.is_correct,
                    created_at=datetime.utcnow(),
                )
            )

    def _insert_multiple_choice_round(
        self,
        session: DBSession,
        game: Game,
        round_number: int,
        round_spec: MultipleChoiceRoundSpec,
    ) -> None:
        game_round = GameRound(
            game=game,
            round_number=round_number,
            prompt=round_spec.question,
            created_at=datetime.utcnow(),
        )
        session.add(game_round)
        for index, choice in enumerate(round_spec.choices):
            session.add(
                RoundChoice(
                    round=game_round,
                    text=choice.text,
                    position=choice.position or index + 1,
                    is_correct=choice.is_correct,
                    created_at=datetime.utcnow(),
                )
            )

    def _insert_matching_round(
        self,
        session: DBSession,
        game: Game,
        round_number: int,
        round_spec: MatchingRoundSpec,
        round_index: int,
    ) -> None:
        game_round = GameRound(
            game=game,
            round_number=round_number,
            prompt=round_spec.prompt,
            created_at=datetime.utcnow(),
        )
        session.add(game_round)

        # Phase one: both collections, flushed so their ids exist
        left_rows = self._add_side(session, game_round, MatchSide.LEFT, round_spec.left)
        right_rows = self._add_side(session, game_round, MatchSide.RIGHT, round_spec.right)
        session.flush()

        left_ids = ChoiceIdMap(MatchSide.LEFT.value)
        for index, row in enumerate(left_rows):
            left_ids.record(index, row.id)
        right_ids = ChoiceIdMap(MatchSide.RIGHT.value)
        for index, row in enumerate(right_rows):
            right_ids.record(index, row.id)

        # Phase two: matches, translated through the id maps
        pairs = [(m.left_index, m.right_index) for m in round_spec.matches]
        validate_matching(len(left_ids), len(right_ids), pairs, round_index=round_index)
        for left_index, right_index in pairs:
            session.add(
                RoundMatch(
                    round=game_round,
                    left_choice_id=left_ids.resolve(left_index),
                    right_choice_id=right_ids.resolve(right_index),
                    created_at=datetime.utcnow(),
                )
            )
        logger.debug(
            f"Round {round_number}: {len(left_ids)} left, {len(right_ids)} right, "
            f"{len(pairs)} matches"
        )

    @staticmethod
    def _add_side(
        session: DBSession,
        game_round: GameRound,
        side: MatchSide,
        items: Sequence[MatchingItemSpec],
    ) -> List[RoundChoice]:
        rows = []
        for index, item in enumerate(items):
            row = RoundChoice(
                round=game_round,
                side=side.value,
                text=item.text,
                media_url=item.media_url,
                position=item.position or index + 1,
                created_at=datetime.utcnow(),
            )
            session.add(row)
            rows.append(row)
        return rows
