"""
auth/dependencies.py -- The Auth Gate: request-time session resolution.

One credential source: the Authorization header, whose value IS the token.
No scheme prefix is required; a single leading "Bearer " is tolerated and
stripped so standard HTTP clients also work.

Outcomes:
  - header absent or empty   -> MissingParameters("Authorization")
  - token fails verification -> CannotDecryptToken
  - otherwise                -> Session, injected into the handler

The gate raises; it never returns None. api/filters.protected() collects
what it raises together with body-decoding failures into one Rejection, so
the handler body never runs for an unauthenticated request.

Decryption runs on the CryptoPool (app.state.crypto_pool) with the
TokenCodec built once in the lifespan (app.state.tokens).

Layer rule: no imports from qa/. auth/dependencies.py may import from
fastapi/starlette (for Request) because this module is part of the FastAPI
dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Session
from auth.tokens import TokenCodec
from core.errors import MissingParameters
from core.workers import CryptoPool

AUTH_HEADER = "Authorization"

_BEARER_PREFIX = "Bearer "


def extract_token(request: Request) -> str:
    """Return the raw token from the Authorization header.

    Raises MissingParameters when the header is absent or blank.
    """
    value = request.headers.get(AUTH_HEADER, "").strip()
    if value.startswith(_BEARER_PREFIX):
        value = value[len(_BEARER_PREFIX) :].strip()
    if not value:
        raise MissingParameters(AUTH_HEADER)
    return value


async def authenticate(request: Request) -> Session:
    """Resolve the request's Session or raise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(session: Session = Depends(authenticate)): ...
    """
    token = extract_token(request)
    codec: TokenCodec = request.app.state.tokens
    pool: CryptoPool = request.app.state.crypto_pool
    return await pool.run(codec.verify, token)
