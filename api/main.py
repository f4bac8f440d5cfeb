"""
api/main.py -- FastAPI application entry point for the Q&A service.

Run with:      uvicorn asgi:app --reload
               python main.py --log-level info

Middleware stack (outermost to innermost):
  1. log_requests            -- one INFO line per request with a request id
  2. RejectingCORSMiddleware -- CORS headers; refused preflights become
                                CorsForbidden and go through the translator

Lifespan builds every process-wide object exactly once from Settings and
attaches it to app.state:
  tokens        TokenCodec holding the secret key (read-only, shared)
  crypto_pool   bounded CryptoPool for argon2 and token AEAD
  account_store AccountStore
  qa_store      QAStore
  moderator     ProfanityFilter
Shutdown releases them in reverse order.

Every failure, wherever it is raised, ends in core.errors.recover(). The
exception handlers at the bottom of this module only adapt the framework's
exception types into a Rejection chain and render the resulting Reply.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from api.routes.answers import router as answers_router
from api.routes.auth import router as auth_router
from api.routes.questions import router as questions_router
from auth.store import AccountStore
from auth.tokens import TokenCodec
from core.config import get_settings
from core.errors import (
    INTERNAL_SERVER_ERROR,
    BodyDeserializeError,
    CorsForbidden,
    QAError,
    Rejection,
    recover,
)
from core.moderation import ProfanityFilter
from core.workers import CryptoPool
from qa.store import QAStore

# Settings are resolved once, here, at import time. A missing TOKEN_KEY in
# production mode aborts the process before the server binds a socket.
settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("qaservice.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build and tear down the process-wide collaborators.

    The secret key leaves Settings exactly once, into the TokenCodec.
    """
    logger.info("Q&A service starting up")
    app.state.tokens = TokenCodec(settings.token_key_bytes, ttl=timedelta(seconds=settings.token_ttl_seconds))
    app.state.crypto_pool = CryptoPool(max_workers=settings.crypto_workers)
    app.state.account_store = AccountStore(settings.database_url)
    app.state.qa_store = QAStore(settings.database_url)
    app.state.moderator = ProfanityFilter(
        api_key=settings.bad_words_api_key,
        url=settings.bad_words_api_url,
        timeout=settings.moderation_timeout,
        retries=settings.moderation_retries,
    )
    logger.info("Stores initialized (crypto_workers=%d)", settings.crypto_workers)

    yield

    app.state.moderator.close()
    app.state.qa_store.close()
    app.state.account_store.close()
    app.state.crypto_pool.shutdown()
    logger.info("Q&A service shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Q&A Service API",
    description="Questions and answers with account registration and encrypted session tokens.",
    version="0.1.0",
    lifespan=lifespan,
)


def render(rejection: Rejection) -> PlainTextResponse:
    """Run the translator and turn its Reply into an HTTP response."""
    reply = recover(rejection)
    return PlainTextResponse(reply.body, status_code=reply.status_code)


# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------


class RejectingCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose refused preflights are answered by the translator.

    Starlette answers a refused preflight with 400 "Disallowed CORS <what>".
    Here the refusal becomes a CorsForbidden cause instead, so it gets the
    same 403 reply and ERROR log as any other CORS rejection.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers=request_headers)
        if response.status_code < 400:
            return response
        refused = bytes(response.body).decode("utf-8").removeprefix("Disallowed CORS ")
        return render(Rejection([CorsForbidden(f"{refused} not allowed")]))


app.add_middleware(
    RejectingCORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status, latency and a per-request id."""
    request_id = uuid.uuid4().hex
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s id=%s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
        request_id,
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(questions_router, tags=["Questions"])
app.include_router(answers_router, tags=["Answers"])
app.include_router(auth_router, tags=["Accounts"])


# ---------------------------------------------------------------------------
# Exception handlers -- all roads lead to recover()
# ---------------------------------------------------------------------------


@app.exception_handler(Rejection)
async def rejection_handler(request: Request, exc: Rejection) -> PlainTextResponse:
    """A filter chain attached one or more causes."""
    return render(exc)


@app.exception_handler(QAError)
async def domain_error_handler(request: Request, exc: QAError) -> PlainTextResponse:
    """A single domain failure raised by a handler, store or client."""
    return render(Rejection([exc]))


@app.exception_handler(BodyDeserializeError)
@app.exception_handler(CorsForbidden)
async def framework_cause_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """A framework-level cause raised on its own, e.g. by json_body() on a public route."""
    return render(Rejection([exc]))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    """Framework-side validation failure, treated as a malformed body."""
    return render(Rejection([BodyDeserializeError(str(exc.errors()))]))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    """No route matched (404) or the method did not (405).

    Neither carries a domain cause, so the chain is empty and the translator
    falls through to "Route not found".
    """
    return render(Rejection())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged only, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return PlainTextResponse(INTERNAL_SERVER_ERROR, status_code=500)
