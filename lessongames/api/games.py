"""
Game API endpoints.

Thin routes over ``GameService``: request bodies are handed to the service
unparsed (the validator owns every rule) and engine errors are translated to
HTTP status codes here and nowhere else.
"""

from typing import Any, Dict, List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException

from lessongames.config import settings
from lessongames.db.manager import DatabaseManager
from lessongames.errors import (
    GameConflictError,
    GameError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from lessongames.schemas.games import GameVariant
from lessongames.service import GameService
from lessongames.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

_service: Optional[GameService] = None

_STATUS_CODES = {
    ValidationError: 422,
    NotFoundError: 404,
    GameConflictError: 409,
    StorageError: 503,
}


def get_game_service() -> GameService:
    """Service bound to the configured database, created on first use."""
    global _service
    if _service is None:
        _service = GameService(
            DatabaseManager(settings.database_url, echo=settings.database_echo)
        )
    return _service


def get_author_id(x_author_id: Optional[int] = Header(default=None)) -> int:
    return x_author_id if x_author_id is not None else settings.default_author_id


def _raise_http(error: GameError) -> NoReturn:
    status_code = 500
    for error_type, code in _STATUS_CODES.items():
        if isinstance(error, error_type):
            status_code = code
            break
    logger.warning(f"✗ {type(error).__name__}: {error.message} -> {status_code}")
    raise HTTPException(status_code=status_code, detail=error.to_dict())


@router.get("/lessons/{lesson_id}/games")
def list_games(lesson_id: int, service: GameService = Depends(get_game_service)):
    """List every game of a lesson."""
    try:
        games: List[Dict[str, Any]] = service.list_games_for_lesson(lesson_id)
    except GameError as e:
        _raise_http(e)
    return {"games": games}


@router.post("/lessons/{lesson_id}/games/{variant}", status_code=201)
def create_game(
    lesson_id: int,
    variant: GameVariant,
    spec: Dict[str, Any] = Body(...),
    author_id: int = Depends(get_author_id),
    service: GameService = Depends(get_game_service),
):
    """Create a game of ``variant`` for a lesson."""
    logger.info(f"Create {variant.value} game request for lesson {lesson_id}")
    try:
        game = service.create_game(lesson_id, variant, spec, author_id=author_id)
    except GameError as e:
        _raise_http(e)
    return {"game": game}


@router.get("/games/{game_id}")
def get_game(game_id: int, service: GameService = Depends(get_game_service)):
    """Get a game with its rounds, choices and matches."""
    try:
        game = service.get_game(game_id)
    except GameError as e:
        _raise_http(e)
    return {"game": game}


@router.put("/games/{game_id}")
def replace_game(
    game_id: int,
    spec: Dict[str, Any] = Body(...),
    author_id: int = Depends(get_author_id),
    service: GameService = Depends(get_game_service),
):
    """Replace all rounds of a game."""
    logger.info(f"Replace request for game {game_id}")
    try:
        game = service.replace_game(game_id, spec, author_id=author_id)
    except GameError as e:
        _raise_http(e)
    return {"game": game}


@router.delete("/games/{game_id}")
def delete_game(game_id: int, service: GameService = Depends(get_game_service)):
    """Delete a game."""
    logger.info(f"Delete request for game {game_id}")
    try:
        return service.delete_game(game_id)
    except GameError as e:
        _raise_http(e)
