"""
qa/models.py -- Domain dataclasses for questions and answers.

Pure data containers. New* variants carry what a client submits; the
store assigns id and owner.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class NewQuestion:
    title: str
    content: str
    tags: Optional[list[str]] = None


@dataclass
class Question:
    """A stored question. account_id is the author, taken from the session."""

    id: int
    title: str
    content: str
    tags: Optional[list[str]] = None
    account_id: Optional[int] = None


@dataclass
class NewAnswer:
    content: str
    question_id: int


@dataclass
class Answer:
    id: int
    content: str
    question_id: int
    account_id: Optional[int] = None
