"""
qa/store.py -- SQLAlchemy Core persistence layer for questions and answers.

Uses SQLAlchemy Core (not ORM) so the dataclasses in qa/models.py remain the
authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. QAStore is the repository; the _row_to_*
functions are the mappers.

Security: all queries use bound parameters. No f-strings in SQL.

Failure policy: every SQLAlchemyError is logged here in full and re-raised as
DatabaseQueryError with a generic message naming only the operation and the
numeric id involved. User-supplied text never goes into the message.

Usage:
    store = QAStore("sqlite:///qaservice.db")
    question = store.add_question(NewQuestion(title="t", content="c"), account_id=1)
    store.get_questions(limit=10, offset=0)
    store.close()
"""

import json
import logging
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import DatabaseQueryError
from qa.models import Answer, NewAnswer, NewQuestion, Question

logger = logging.getLogger("qaservice.store.qa")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_questions = Table(
    "questions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("tags", Text),  # JSON array serialized as text
    Column("account_id", Integer),
)

_answers = Table(
    "answers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("content", Text, nullable=False),
    Column("question_id", Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
    Column("account_id", Integer),
)


def _sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """WAL for concurrent readers; foreign_keys so answers need a real question."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class QAStore:
    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _sqlite_pragmas)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    def get_questions(self, limit: Optional[int] = None, offset: int = 0) -> list[Question]:
        """Return questions ordered by id. limit=None returns all from offset."""
        query = _questions.select().order_by(_questions.c.id).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).fetchall()
        except SQLAlchemyError as exc:
            logger.error("get_questions failed: %r", exc)
            raise DatabaseQueryError("Failed to query questions") from exc
        return [_row_to_question(r) for r in rows]

    def add_question(self, new_question: NewQuestion, account_id: int) -> Question:
        """Insert a question owned by account_id and return the stored record."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _questions.insert().values(
                        title=new_question.title,
                        content=new_question.content,
                        tags=_dump_tags(new_question.tags),
                        account_id=account_id,
                    )
                )
                conn.commit()
        except SQLAlchemyError as exc:
            logger.error("add_question failed: %r", exc)
            raise DatabaseQueryError("Failed to add question") from exc
        return Question(
            id=result.inserted_primary_key[0],
            title=new_question.title,
            content=new_question.content,
            tags=new_question.tags,
            account_id=account_id,
        )

    def update_question(self, question: Question, question_id: int) -> Question:
        """Overwrite title, content and tags of question_id.

        question.id is ignored; question_id from the path wins. A missing
        row is a failure like any other.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _questions.update()
                    .where(_questions.c.id == question_id)
                    .values(title=question.title, content=question.content, tags=_dump_tags(question.tags))
                )
                row = conn.execute(_questions.select().where(_questions.c.id == question_id)).fetchone()
                conn.commit()
        except SQLAlchemyError as exc:
            logger.error("update_question(%d) failed: %r", question_id, exc)
            raise DatabaseQueryError(f"Failed to update question {question_id}") from exc
        if result.rowcount == 0 or row is None:
            logger.error("update_question(%d): no such question", question_id)
            raise DatabaseQueryError(f"Failed to update question {question_id}")
        return _row_to_question(row)

    def delete_question(self, question_id: int) -> None:
        """Delete question_id. Deleting a missing id is not an error."""
        try:
            with self.engine.connect() as conn:
                conn.execute(_questions.delete().where(_questions.c.id == question_id))
                conn.commit()
        except SQLAlchemyError as exc:
            logger.error("delete_question(%d) failed: %r", question_id, exc)
            raise DatabaseQueryError(f"Failed to delete question {question_id}") from exc

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    def add_answer(self, new_answer: NewAnswer, account_id: int) -> Answer:
        """Insert an answer to an existing question (enforced by foreign key)."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _answers.insert().values(
                        content=new_answer.content,
                        question_id=new_answer.question_id,
                        account_id=account_id,
                    )
                )
                conn.commit()
        except SQLAlchemyError as exc:
            logger.error("add_answer failed: %r", exc)
            raise DatabaseQueryError(f"Failed to add answer for question {new_answer.question_id}") from exc
        return Answer(
            id=result.inserted_primary_key[0],
            content=new_answer.content,
            question_id=new_answer.question_id,
            account_id=account_id,
        )

    def close(self) -> None:
        """Dispose the connection pool."""
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Mappers
# ---------------------------------------------------------------------------


def _dump_tags(tags: Optional[list[str]]) -> Optional[str]:
    return json.dumps(tags) if tags is not None else None


def _row_to_question(row) -> Question:
    return Question(
        id=row.id,
        title=row.title,
        content=row.content,
        tags=json.loads(row.tags) if row.tags is not None else None,
        account_id=row.account_id,
    )

