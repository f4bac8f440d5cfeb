"""
api/routes/questions.py -- Question CRUD.

Routes:
  GET    /questions        -- public; optional ?limit=&offset= pagination
  POST   /questions        -- protected; "Question added"
  PUT    /questions/{id}   -- protected; JSON of the updated question
  DELETE /questions/{id}   -- protected; "Question {id} deleted"

Title and content pass through the profanity filter before they are stored.
On update both fields are censored concurrently. {id} uses Starlette's int
convertor, so a non-numeric id does not match any route.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from api.filters import Authorized, protected
from api.models import NewQuestionBody, QuestionBody, QuestionResponse
from core.moderation import ProfanityFilter
from core.pagination import extract_pagination
from qa.models import NewQuestion, Question
from qa.store import QAStore

router = APIRouter()


@router.get("/questions")
async def get_questions(request: Request) -> JSONResponse:
    """List questions, all of them or one page."""
    store: QAStore = request.app.state.qa_store
    pagination = extract_pagination(request.query_params)
    questions = await run_in_threadpool(store.get_questions, pagination.limit, pagination.offset)
    return JSONResponse([QuestionResponse.from_domain(q).model_dump() for q in questions])


@router.post("/questions")
async def add_question(
    request: Request,
    ctx: Authorized = Depends(protected(NewQuestionBody)),
) -> PlainTextResponse:
    store: QAStore = request.app.state.qa_store
    moderator: ProfanityFilter = request.app.state.moderator

    title = await run_in_threadpool(moderator.censor, ctx.body.title)
    content = await run_in_threadpool(moderator.censor, ctx.body.content)

    new_question = NewQuestion(title=title, content=content, tags=ctx.body.tags)
    await run_in_threadpool(store.add_question, new_question, ctx.session.account_id)
    return PlainTextResponse("Question added")


@router.put("/questions/{question_id:int}")
async def update_question(
    request: Request,
    question_id: int,
    ctx: Authorized = Depends(protected(QuestionBody)),
) -> JSONResponse:
    store: QAStore = request.app.state.qa_store
    moderator: ProfanityFilter = request.app.state.moderator

    # Both lookups are awaited to completion; the first failure (title before
    # content) is the one reported.
    title, content = await asyncio.gather(
        run_in_threadpool(moderator.censor, ctx.body.title),
        run_in_threadpool(moderator.censor, ctx.body.content),
        return_exceptions=True,
    )
    for outcome in (title, content):
        if isinstance(outcome, BaseException):
            raise outcome

    question = Question(id=question_id, title=title, content=content, tags=ctx.body.tags)
    updated = await run_in_threadpool(store.update_question, question, question_id)
    return JSONResponse(QuestionResponse.from_domain(updated).model_dump())


@router.delete("/questions/{question_id:int}")
async def delete_question(
    request: Request,
    question_id: int,
    ctx: Authorized = Depends(protected()),
) -> PlainTextResponse:
    store: QAStore = request.app.state.qa_store
    await run_in_threadpool(store.delete_question, question_id)
    return PlainTextResponse(f"Question {question_id} deleted")
