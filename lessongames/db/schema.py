"""
Database schema definitions using SQLAlchemy.

This module defines the tables holding lessons and their games. A game owns
its rounds, and a round owns its choices and matches; every foreign key
cascades on delete so removing a game (or its lesson) removes the whole
graph below it.
"""

# mypy: ignore-errors

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()  # type: ignore


class Lesson(Base):
    """
    Lesson table. Games hang off a lesson; lesson content itself is managed
    elsewhere.

    Attributes:
        id: Lesson identifier
        title: Lesson title
        created_by: Author reference
        created_at: Timestamp when lesson was created
    """

    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    games = relationship(
        "Game", back_populates="lesson", cascade="all, delete-orphan"
    )


class Game(Base):
    """
    Game table, one row per lesson and variant.

    Attributes:
        id: Game identifier
        lesson_id: Owning lesson
        variant: fill_blank, matching or multiple_choice
        total_rounds: Declared number of rounds
        created_by: Author reference
        created_at: Timestamp when game was created
        updated_at: Timestamp of the last replace
    """

    __tablename__ = "games"
    __table_args__ = (
        UniqueConstraint("lesson_id", "variant", name="uq_games_lesson_variant"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    lesson_id = Column(
        Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False
    )
    variant = Column(String(32), nullable=False)
    total_rounds = Column(Integer, nullable=False)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    lesson = relationship("Lesson", back_populates="games")
    rounds = relationship(
        "GameRound", back_populates="game", cascade="all, delete-orphan"
    )


class GameRound(Base):
    """
    Round table.

    Attributes:
        id: Round identifier
        game_id: Owning game
        round_number: 1-based order within the game
        prompt: Sentence with a blank, question, or matching instructions
        blank_position: Offset of the blank marker (fill-blank only)
    """

    __tablename__ = "game_rounds"
    __table_args__ = (
        UniqueConstraint("game_id", "round_number", name="uq_rounds_game_number"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    game_id = Column(
        Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True
    )
    round_number = Column(Integer, nullable=False)
    prompt = Column(Text, nullable=True)
    blank_position = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    game = relationship("Game", back_populates="rounds")
    choices = relationship(
        "RoundChoice", back_populates="round", cascade="all, delete-orphan"
    )
    matches = relationship(
        "RoundMatch", back_populates="round", cascade="all, delete-orphan"
    )


class RoundChoice(Base):
    """
    Choice table shared by all variants.

    Attributes:
        id: Choice identifier
        round_id: Owning round
        side: NULL, or left/right for matching rounds
        text: Display text
        media_url: Reference to uploaded media
        position: 1-based display position within (round, side)
        is_correct: Correct answer flag (NULL for matching)
    """

    __tablename__ = "round_choices"
    __table_args__ = (
        UniqueConstraint("round_id", "side", "position", name="uq_choices_position"),
        CheckConstraint(
            "text IS NOT NULL OR media_url IS NOT NULL", name="ck_choices_text_or_media"
        ),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    round_id = Column(
        Integer,
        ForeignKey("game_rounds.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    side = Column(String(8), nullable=True)
    text = Column(Text, nullable=True)
    media_url = Column(Text, nullable=True)
    position = Column(Integer, nullable=False)
    is_correct = Column(Boolean, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    round = relationship("GameRound", back_populates="choices")


class RoundMatch(Base):
    """
    Correct left/right pair of a matching round.

    Attributes:
        id: Match identifier
        round_id: Owning round
        left_choice_id: Left choice of the pair
        right_choice_id: Right choice of the pair
    """

    __tablename__ = "round_matches"
    __table_args__ = (
        UniqueConstraint("round_id", "left_choice_id", name="uq_matches_left"),
        UniqueConstraint("round_id", "right_choice_id", name="uq_matches_right"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    round_id = Column(
        Integer,
        ForeignKey("game_rounds.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    left_choice_id = Column(
        Integer, ForeignKey("round_choices.id", ondelete="CASCADE"), nullable=False
    )
    right_choice_id = Column(
        Integer, ForeignKey("round_choices.id", ondelete="CASCADE"), nullable=False
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    round = relationship("GameRound", back_populates="matches")
    left_choice = relationship("RoundChoice", foreign_keys=[left_choice_id])
    right_choice = relationship("RoundChoice", foreign_keys=[right_choice_id])
