"""
api/routes/answers.py -- Answer creation.

Routes:
  POST /answers -- protected; content is censored, then stored; "Answer added"

Answering a question that does not exist fails in the store's foreign key
check and surfaces as DatabaseQueryError.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from api.filters import Authorized, protected
from api.models import NewAnswerBody
from core.moderation import ProfanityFilter
from qa.models import NewAnswer
from qa.store import QAStore

router = APIRouter()


@router.post("/answers")
async def add_answer(
    request: Request,
    ctx: Authorized = Depends(protected(NewAnswerBody)),
) -> PlainTextResponse:
    store: QAStore = request.app.state.qa_store
    moderator: ProfanityFilter = request.app.state.moderator

    content = await run_in_threadpool(moderator.censor, ctx.body.content)
    new_answer = NewAnswer(content=content, question_id=ctx.body.question_id)
    await run_in_threadpool(store.add_answer, new_answer, ctx.session.account_id)
    return PlainTextResponse("Answer added")
