"""
Error taxonomy for game operations.

Every failure surfaced by the engine is a GameError subclass so the transport
layer can map it without inspecting messages:

- ValidationError: the game definition is malformed; nothing was written
- NotFoundError: the targeted game or lesson does not exist
- GameConflictError: the lesson already holds a game of that variant
- StorageError: the store failed; the transaction was rolled back
"""

from typing import Any, Dict, Optional


class GameError(Exception):
    """Base exception for game operation errors"""

    error_code = "GAME_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Structured form used in error responses."""
        return {"error_code": self.error_code, "message": self.message}


class ValidationError(GameError):
    """Raised when a game specification breaks a structural or semantic rule"""

    error_code = "VALIDATION_FAILED"

    def __init__(
        self,
        message: str,
        rule: str,
        round_index: Optional[int] = None,
        side: Optional[str] = None,
        choice_index: Optional[int] = None,
    ):
        if round_index is not None:
            message = f"Round {round_index + 1}: {message}"
        super().__init__(message)
        self.rule = rule
        self.round_index = round_index
        self.side = side
        self.choice_index = choice_index

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "rule": self.rule,
                "round_index": self.round_index,
                "side": self.side,
                "choice_index": self.choice_index,
            }
        )
        return data


class NotFoundError(GameError):
    """Raised when a game or lesson identifier does not exist"""

    error_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity.capitalize()} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"entity": self.entity, "entity_id": self.entity_id})
        return data


class GameConflictError(GameError):
    """Raised when a lesson already has a game of the requested variant"""

    error_code = "GAME_EXISTS"

    def __init__(self, lesson_id: int, variant: str, existing_game_id: int):
        super().__init__(
            f"Lesson {lesson_id} already has a {variant} game ({existing_game_id})"
        )
        self.lesson_id = lesson_id
        self.variant = variant
        self.existing_game_id = existing_game_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "lesson_id": self.lesson_id,
                "variant": self.variant,
                "existing_game_id": self.existing_game_id,
            }
        )
        return data


class StorageError(GameError):
    """Raised when the transactional write fails for infrastructure reasons"""

    error_code = "STORAGE_FAILED"
    retryable = True

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["retryable"] = self.retryable
        return data
