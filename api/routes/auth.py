"""
api/routes/auth.py -- Registration and login.

Routes:
  POST /registration  -- hash the password, store the account; "Account added"
  POST /login         -- verify the password, issue a token; JSON string body

Failure mapping (all via core.errors.recover):
  duplicate email / store failure  -> DatabaseQueryError (422)
  unknown email                    -> DatabaseQueryError (422)
  password mismatch                -> WrongPassword (401, "Wrong email/password combination")
  corrupt stored hash              -> HashLibraryError (500)
  malformed body                   -> BodyDeserializeError (422)

Hashing and token issuance run on the CryptoPool; store calls run on
Starlette's I/O thread pool.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from api.filters import json_body
from api.models import Credentials
from auth.models import Account
from auth.passwords import hash_password, verify_password
from auth.store import AccountStore
from auth.tokens import TokenCodec
from core.errors import WrongPassword
from core.workers import CryptoPool

logger = logging.getLogger("qaservice.api.auth")

# Auth policy: both routes are public -- they are how a client obtains a token.
router = APIRouter()


@router.post("/registration")
async def register(request: Request, body: Credentials = Depends(json_body(Credentials))) -> PlainTextResponse:
    """Create an account. The plaintext password goes no further than the hasher."""
    pool: CryptoPool = request.app.state.crypto_pool
    accounts: AccountStore = request.app.state.account_store

    password_hash = await pool.run(hash_password, body.password)
    account_id = await run_in_threadpool(accounts.add_account, Account(email=body.email, password_hash=password_hash))
    logger.info("Registered account %d", account_id)
    return PlainTextResponse("Account added")


@router.post("/login")
async def login(request: Request, body: Credentials = Depends(json_body(Credentials))) -> JSONResponse:
    """Exchange email + password for a session token."""
    pool: CryptoPool = request.app.state.crypto_pool
    accounts: AccountStore = request.app.state.account_store
    tokens: TokenCodec = request.app.state.tokens

    account = await run_in_threadpool(accounts.get_account, body.email)
    if not await pool.run(verify_password, account.password_hash, body.password):
        raise WrongPassword()

    token = await pool.run(tokens.issue, account.id)
    resp = JSONResponse(token)
    resp.headers["Cache-Control"] = "no-store"
    return resp
