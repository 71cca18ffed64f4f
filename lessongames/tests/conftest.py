"""
Shared fixtures for the lesson games tests.
"""

import pytest

from lessongames.config import Settings
from lessongames.db.manager import DatabaseManager
from lessongames.service import GameService


@pytest.fixture
def db(tmp_path):
    """A fresh SQLite database in a temporary directory"""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'games.db'}")
    yield manager
    manager.dispose()


@pytest.fixture
def config():
    return Settings(
        blank_marker="_", max_rounds=10, min_choices=2, max_choices=6, default_author_id=1
    )


@pytest.fixture
def service(db, config):
    return GameService(db, config)


@pytest.fixture
def lesson(db):
    return db.save_lesson(title="Lesson 1: Animals", author_id=1)


@pytest.fixture
def fill_blank_spec():
    """Two-round fill-in-the-blank game"""
    return {
        "total_rounds": 2,
        "rounds": [
            {
                "prompt": "The cat _ on the mat",
                "choices": [
                    {"text": "sat", "is_correct": True},
                    {"text": "ran", "is_correct": False},
                ],
            },
            {
                "prompt": "The dog _ loudly",
                "choices": [
                    {"text": "meows"},
                    {"text": "barks", "is_correct": True},
                    {"media_url": "uploads/whisper.png"},
                ],
            },
        ],
    }


@pytest.fixture
def multiple_choice_spec():
    """Two-round multiple choice game"""
    return {
        "total_rounds": 2,
        "rounds": [
            {
                "question": "Which animal says moo?",
                "choices": [
                    {"text": "Cow", "is_correct": True},
                    {"text": "Duck"},
                    {"text": "Sheep"},
                ],
            },
            {
                "question": "How many legs does a spider have?",
                "choices": [
                    {"text": "Six"},
                    {"text": "Eight", "is_correct": True},
                ],
            },
        ],
    }


@pytest.fixture
def matching_spec():
    """One-round matching game with three pairs"""
    return {
        "total_rounds": 1,
        "rounds": [
            {
                "prompt": "Match the animal to its home",
                "left": [
                    {"text": "Bird"},
                    {"text": "Bee"},
                    {"text": "Fish", "media_url": "uploads/fish.png"},
                ],
                "right": [
                    {"text": "Hive"},
                    {"text": "Pond"},
                    {"text": "Nest"},
                ],
                "matches": [
                    {"left_index": 0, "right_index": 2},
                    {"left_index": 1, "right_index": 0},
                    {"left_index": 2, "right_index": 1},
                ],
            }
        ],
    }
