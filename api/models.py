"""
API request and response models for the Q&A service.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
qa/models.py, which own the internal domain representation. Route handlers
map between the two.

Request bodies are not declared as FastAPI body parameters; api/filters.py
decodes them so a decoding failure can join the request's Rejection chain
alongside authentication failures.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from qa.models import Question

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Body of POST /registration and POST /login.

    email is kept as submitted (no normalization) so the UNIQUE constraint in
    the account store is the single authority on duplicates.
    """

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024)


class NewQuestionBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    tags: Optional[list[str]] = None


class QuestionBody(NewQuestionBody):
    """Body of PUT /questions/{id}. id is accepted for symmetry with the
    response shape but the path parameter decides which row is updated."""

    id: Optional[int] = None


class NewAnswerBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(min_length=1)
    question_id: int


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class QuestionResponse(BaseModel):
    id: int
    title: str
    content: str
    tags: Optional[list[str]] = None

    @classmethod
    def from_domain(cls, question: Question) -> "QuestionResponse":
        return cls(id=question.id, title=question.title, content=question.content, tags=question.tags)
