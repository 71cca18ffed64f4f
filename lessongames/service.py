"""
Game operations offered to the transport layer.

``GameService`` wires the validator, the persistence manager and the read
aggregator around one injected ``DatabaseManager``:

    db = DatabaseManager("sqlite:///data/lessongames.db")
    service = GameService(db)
    game = service.create_game(lesson_id, "fill_blank", spec, author_id=1)
"""

from typing import Any, Dict, List, Optional, Union

from lessongames.config import Settings, settings as default_settings
from lessongames.db.manager import DatabaseManager
from lessongames.engine.aggregator import GameReadAggregator
from lessongames.engine.persistence import GamePersistenceManager, WriteOperation
from lessongames.schemas.games import GameSpec, GameVariant
from lessongames.schemas.validation import GameSpecValidator


class GameService:
    """Create, replace, delete and read games of a lesson"""

    def __init__(self, db: DatabaseManager, config: Optional[Settings] = None):
        config = config or default_settings
        self.db = db
        self.validator = GameSpecValidator(
            blank_marker=config.blank_marker,
            max_rounds=config.max_rounds,
            min_choices=config.min_choices,
            max_choices=config.max_choices,
        )
        self.aggregator = GameReadAggregator(db)
        self.persistence = GamePersistenceManager(db, self.validator, self.aggregator)

    @property
    def last_operation(self) -> Optional[WriteOperation]:
        return self.persistence.last_operation

    def create_game(
        self,
        lesson_id: int,
        variant: Union[GameVariant, str],
        spec: Union[GameSpec, Dict[str, Any]],
        author_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        return self.persistence.create_game(lesson_id, variant, spec, author_id)

    def replace_game(
        self,
        game_id: int,
        spec: Union[GameSpec, Dict[str, Any]],
        author_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        return self.persistence.replace_game(game_id, spec, author_id)

    def delete_game(self, game_id: int) -> Dict[str, Any]:
        return self.persistence.delete_game(game_id)

    def get_game(self, game_id: int) -> Dict[str, Any]:
        return self.aggregator.get_game(game_id)

    def list_games_for_lesson(self, lesson_id: int) -> List[Dict[str, Any]]:
        return self.aggregator.list_games_for_lesson(lesson_id)
