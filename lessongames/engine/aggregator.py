"""
Hierarchical read model for games.

Rebuilds the nested game representation from flat rows: one query per table,
grouped in memory. Rounds come back by round number, choices by display
position; matches are an unordered set and are sorted only so the output is
stable.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session as DBSession

from lessongames.db.manager import DatabaseManager
from lessongames.db.schema import Game, GameRound, Lesson, RoundChoice, RoundMatch
from lessongames.errors import NotFoundError
from lessongames.schemas.games import GameVariant, MatchSide
from lessongames.utils.logger import get_logger

logger = get_logger(__name__)


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value else None


def _choice_sort_key(choice: RoundChoice):
    return (choice.position, choice.id)


class GameReadAggregator:
    """
    Reads games back as nested dictionaries.

    Attributes:
        db: Database manager providing read sessions
    """

    def __init__(self, db: DatabaseManager):
        self.db = db

    def get_game(self, game_id: int) -> Dict[str, Any]:
        """
        Retrieve one game with its rounds, choices and matches.

        Raises:
            NotFoundError: If the game does not exist
        """
        with self.db.session() as session:
            game = session.get(Game, game_id)
            if game is None:
                logger.warning(f"Game {game_id} not found")
                raise NotFoundError("game", game_id)
            return self.load(session, [game])[0]

    def list_games_for_lesson(self, lesson_id: int) -> List[Dict[str, Any]]:
        """
        Retrieve every game of a lesson, oldest first.

        Raises:
            NotFoundError: If the lesson does not exist
        """
        with self.db.session() as session:
            if session.get(Lesson, lesson_id) is None:
                raise NotFoundError("lesson", lesson_id)
            games = (
                session.query(Game)
                .filter(Game.lesson_id == lesson_id)
                .order_by(Game.created_at, Game.id)
                .all()
            )
            return self.load(session, games)

    def load(self, session: DBSession, games: Sequence[Game]) -> List[Dict[str, Any]]:
        """Fetch the rows below ``games`` and assemble their representations."""
        if not games:
            return []

        game_ids = [game.id for game in games]
        rounds = (
            session.query(GameRound).filter(GameRound.game_id.in_(game_ids)).all()
        )
        round_ids = [r.id for r in rounds]
        choices: List[RoundChoice] = []
        matches: List[RoundMatch] = []
        if round_ids:
            choices = (
                session.query(RoundChoice)
                .filter(RoundChoice.round_id.in_(round_ids))
                .all()
            )
            matches = (
                session.query(RoundMatch)
                .filter(RoundMatch.round_id.in_(round_ids))
                .all()
            )

        logger.debug(
            f"Loaded {len(games)} games: {len(rounds)} rounds, "
            f"{len(choices)} choices, {len(matches)} matches"
        )
        return assemble_games(games, rounds, choices, matches)


def assemble_games(
    games: Iterable[Game],
    rounds: Iterable[GameRound],
    choices: Iterable[RoundChoice],
    matches: Iterable[RoundMatch],
) -> List[Dict[str, Any]]:
    """
    Group flat rows into nested game dictionaries.

    Rows may arrive in any order. A game without rounds gets an empty list.
    """
    rounds_by_game: Dict[int, List[GameRound]] = defaultdict(list)
    for game_round in rounds:
        rounds_by_game[game_round.game_id].append(game_round)

    choices_by_round: Dict[int, List[RoundChoice]] = defaultdict(list)
    for choice in choices:
        choices_by_round[choice.round_id].append(choice)

    matches_by_round: Dict[int, List[RoundMatch]] = defaultdict(list)
    for match in matches:
        matches_by_round[match.round_id].append(match)

    result = []
    for game in games:
        variant = GameVariant(game.variant)
        game_rounds = sorted(rounds_by_game.get(game.id, []), key=lambda r: r.round_number)
        result.append(
            {
                "id": game.id,
                "lesson_id": game.lesson_id,
                "variant": variant.value,
                "total_rounds": game.total_rounds,
                "created_by": game.created_by,
                "created_at": _isoformat(game.created_at),
                "updated_at": _isoformat(game.updated_at),
                "rounds": [
                    _round_to_dict(
                        variant,
                        game_round,
                        choices_by_round.get(game_round.id, []),
                        matches_by_round.get(game_round.id, []),
                    )
                    for game_round in game_rounds
                ],
            }
        )
    return result


def _round_to_dict(
    variant: GameVariant,
    game_round: GameRound,
    choices: List[RoundChoice],
    matches: List[RoundMatch],
) -> Dict[str, Any]:
    ordered = sorted(choices, key=_choice_sort_key)

    if variant == GameVariant.FILL_BLANK:
        return {
            "id": game_round.id,
            "round_number": game_round.round_number,
            "prompt": game_round.prompt,
            "blank_position": game_round.blank_position,
            "choices": [
                {
                    "id": c.id,
                    "position": c.position,
                    "text": c.text,
                    "media_url": c.media_url,
                    "is_correct": bool(c.is_correct),
                }
                for c in ordered
            ],
        }

    if variant == GameVariant.MULTIPLE_CHOICE:
        return {
            "id": game_round.id,
            "round_number": game_round.round_number,
            "question": game_round.prompt,
            "choices": [
                {
                    "id": c.id,
                    "position": c.position,
                    "text": c.text,
                    "is_correct": bool(c.is_correct),
                }
                for c in ordered
            ],
        }

    def items(side: MatchSide) -> List[Dict[str, Any]]:
        return [
            {"id": c.id, "position": c.position, "text": c.text, "media_url": c.media_url}
            for c in ordered
            if c.side == side.value
        ]

    return {
        "id": game_round.id,
        "round_number": game_round.round_number,
        "prompt": game_round.prompt,
        "left": items(MatchSide.LEFT),
        "right": items(MatchSide.RIGHT),
        "matches": [
            {
                "id": m.id,
                "left_choice_id": m.left_choice_id,
                "right_choice_id": m.right_choice_id,
            }
            for m in sorted(matches, key=lambda m: (m.left_choice_id, m.right_choice_id))
        ],
    }
