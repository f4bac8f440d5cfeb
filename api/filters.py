"""
api/filters.py -- Request filters that run before a handler.

Each filter either produces a value for the handler or raises a failure.
protected() runs the Auth Gate and body decoding independently and attaches
every failure to one Rejection, so a request that is both unauthenticated and
malformed carries both causes and the translator's precedence -- not filter
order -- decides the response.

Usage:
    @router.post("/questions")
    async def add_question(request: Request, ctx: Authorized = Depends(protected(NewQuestionBody))):
        ctx.session.account_id, ctx.body.title, ...

    @router.post("/login")
    async def login(request: Request, body: Credentials = Depends(json_body(Credentials))): ...
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from auth.dependencies import authenticate
from auth.models import Session
from core.errors import BodyDeserializeError, QAError, Rejection

M = TypeVar("M", bound=BaseModel)


async def decode_body(request: Request, model: type[M]) -> M:
    """Parse the request body as JSON into model. Raises BodyDeserializeError."""
    raw = await request.body()
    try:
        payload: Any = json.loads(raw) if raw else None
    except (ValueError, UnicodeDecodeError) as exc:
        raise BodyDeserializeError(f"invalid JSON: {exc}") from exc
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in exc.errors()
        )
        raise BodyDeserializeError(details) from exc


def json_body(model: type[M]):
    """Dependency factory for unauthenticated routes with a JSON body."""

    async def dependency(request: Request) -> M:
        return await decode_body(request, model)

    return dependency


@dataclass(frozen=True)
class Authorized(Generic[M]):
    session: Session
    body: Optional[M] = None


def protected(model: type[M] | None = None):
    """Dependency factory for routes behind the Auth Gate.

    Both filters always run. If either fails, every failure is raised
    together as a single Rejection.
    """

    async def dependency(request: Request) -> Authorized[M]:
        rejection = Rejection()
        session: Session | None = None
        body: M | None = None

        try:
            session = await authenticate(request)
        except QAError as exc:
            rejection.attach(exc)

        if model is not None:
            try:
                body = await decode_body(request, model)
            except BodyDeserializeError as exc:
                rejection.attach(exc)

        if rejection:
            raise rejection
        return Authorized(session=session, body=body)

    return dependency
