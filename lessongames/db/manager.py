"""
Database manager for the lesson games engine.

This module owns the engine and session factory and provides the two scopes
every operation runs in: a read scope and a transaction scope that commits on
success and rolls back on any exception. It is passed explicitly to the
components that need storage, so tests can hand in a temporary database.
"""

import os
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lessongames.db.schema import Base, Lesson
from lessongames.errors import GameError, NotFoundError, StorageError
from lessongames.utils.logger import get_logger

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Manages the connection pool and transaction scopes.

    Attributes:
        database_url: SQLAlchemy URL of the store
        engine: SQLAlchemy engine for database connections
        SessionLocal: Factory for creating database sessions
    """

    def __init__(self, database_url: str = "sqlite:///data/lessongames.db", echo: bool = False):
        """
        Initialize the database manager.

        Args:
            database_url: SQLAlchemy URL (SQLite files are created if missing)
            echo: Log every SQL statement
        """
        self.database_url = database_url
        url = make_url(database_url)
        engine_kwargs: Dict[str, Any] = {"echo": echo}

        if url.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                # Every session must see the same in-memory database
                engine_kwargs["poolclass"] = StaticPool
            else:
                directory = os.path.dirname(url.database)
                if directory:
                    os.makedirs(directory, exist_ok=True)

        self.engine = create_engine(database_url, **engine_kwargs)
        if url.get_backend_name() == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        logger.info(f"Database initialized at {url.render_as_string(hide_password=True)}")

    @contextmanager
    def session(self) -> Iterator[DBSession]:
        """Read scope: a session that is closed afterwards and never committed."""
        db: DBSession = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    @contextmanager
    def transaction(self, operation: str = "write") -> Iterator[DBSession]:
        """
        Transaction scope: commit on success, roll back on any exception.

        SQLAlchemy errors are re-raised as StorageError; GameError subclasses
        and anything else (including interruption) propagate unchanged after
        the rollback.

        Args:
            operation: Name used in log messages
        """
        db: DBSession = self.SessionLocal()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Rolled back {operation}: {e}", exc_info=True)
            raise StorageError(f"Failed to {operation}: {type(e).__name__}") from e
        except GameError as e:
            db.rollback()
            logger.warning(f"Rolled back {operation}: {e.message}")
            raise
        except BaseException:
            db.rollback()
            logger.error(f"Rolled back {operation} after interruption")
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()

    # ==================== Lesson Operations ====================

    def save_lesson(
        self,
        title: Optional[str] = None,
        lesson_id: Optional[int] = None,
        author_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Insert a lesson row so games can be attached to it.

        Args:
            title: Lesson title
            lesson_id: Explicit identifier (generated when omitted)
            author_id: Author reference

        Returns:
            Dictionary with saved lesson data
        """
        with self.transaction("save lesson") as db:
            lesson = Lesson(
                id=lesson_id,
                title=title,
                created_by=author_id,
                created_at=datetime.utcnow(),
            )
            db.add(lesson)
            db.flush()
            result = self._lesson_to_dict(lesson)

        logger.debug(f"Saved lesson {result['id']}: {result['title']}")
        return result

    def get_lesson(self, lesson_id: int) -> Optional[Dict[str, Any]]:
        """
        Retrieve a lesson by ID.

        Returns:
            Dictionary containing lesson data, or None if not found
        """
        with self.session() as db:
            lesson = db.get(Lesson, lesson_id)
            return self._lesson_to_dict(lesson) if lesson else None

    def delete_lesson(self, lesson_id: int) -> None:
        """
        Delete a lesson together with all of its games.

        Raises:
            NotFoundError: If the lesson does not exist
        """
        with self.transaction("delete lesson") as db:
            lesson = db.get(Lesson, lesson_id)
            if lesson is None:
                raise NotFoundError("lesson", lesson_id)
            db.delete(lesson)

        logger.info(f"Deleted lesson {lesson_id}")

    @staticmethod
    def _lesson_to_dict(lesson: Lesson) -> Dict[str, Any]:
        return {
            "id": lesson.id,
            "title": lesson.title,
            "created_by": lesson.created_by,
            "created_at": lesson.created_at.isoformat() if lesson.created_at else None,
        }
