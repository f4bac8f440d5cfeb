"""
core/errors.py -- Error taxonomy and the single recovery step.

Every failure in the request path is one of the QAError kinds below. Route
handlers and filters raise them and never catch them; the exception handlers
in api/main.py wrap what they receive into a Rejection and call recover().

Rejection chain:
  Request filters (the Auth Gate, JSON body decoding) run independently, so
  one request can carry several causes at once -- e.g. a missing token AND a
  malformed body. The chain keeps them in the order the filters attached
  them, and recover() picks one by a fixed precedence scan, not by whichever
  filter happened to fail first:

    DatabaseQueryError -> ExternalAPIError -> MiddlewareAPIError
    -> ClientError -> WrongPassword -> ServerError
    -> CorsForbidden -> BodyDeserializeError
    -> any other QAError
    -> 404 "Route not found"

User-visible text:
  Each kind has a fixed, safe projection. Wrapped causes (requests errors,
  argon2 errors, SQL errors) are logged at ERROR but never returned.

Layer rule: no imports from api/, auth/, or qa/. This module does not know
about FastAPI; recover() returns a plain Reply that api/main.py turns into a
text/plain response.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeVar

logger = logging.getLogger("qaservice.errors")

INTERNAL_SERVER_ERROR = "Internal Server Error"

# ---------------------------------------------------------------------------
# Domain error kinds (closed set)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class APILayerError:
    """Status and message returned by the moderation API on a non-2xx response."""

    status: int
    message: str

    def __str__(self) -> str:
        return f"Status: {self.status}, Message: {self.message}"


class QAError(Exception):
    """Base of every domain failure kind.

    status_code is used only by the generic branch of recover(); kinds with a
    dedicated precedence slot get their status from that slot.
    """

    status_code: int = 422

    @property
    def public_message(self) -> str:
        return str(self)


class ParseError(QAError):
    def __init__(self, name: str, value: str) -> None:
        super().__init__(name, value)
        self.name = name
        self.value = value

    def __str__(self) -> str:
        return f"Cannot parse parameter: {self.name}={self.value!r}"


class MissingParameters(QAError):
    def __init__(self, *names: str) -> None:
        super().__init__(*names)
        self.names = names

    def __str__(self) -> str:
        return "Missing parameter"


class WrongPassword(QAError):
    status_code = 401

    def __str__(self) -> str:
        return "Wrong password"


class CannotDecryptToken(QAError):
    """Token rejected. Tamper, wrong key, malformed, expired and not-yet-valid
    all map here; the specific reason is only ever logged."""

    status_code = 401

    def __str__(self) -> str:
        return "cannot decrypt token"


class HashLibraryError(QAError):
    """The password hashing library failed, e.g. on a corrupt stored hash."""

    status_code = 500

    def __init__(self, cause: Exception) -> None:
        super().__init__(cause)
        self.cause = cause

    def __str__(self) -> str:
        return "cannot verify password"

    @property
    def public_message(self) -> str:
        return INTERNAL_SERVER_ERROR


class DatabaseQueryError(QAError):
    """A store operation failed. message is already generic; stores log the
    underlying SQL error themselves before raising."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"INTERNAL ERROR: {self.message} check server logs"


class ExternalAPIError(QAError):
    status_code = 500

    def __init__(self, cause: Exception) -> None:
        super().__init__(cause)
        self.cause = cause

    def __str__(self) -> str:
        return f"External API error: {self.cause}"


class MiddlewareAPIError(QAError):
    """Retry middleware gave up on the external API."""

    status_code = 500

    def __init__(self, cause: Exception) -> None:
        super().__init__(cause)
        self.cause = cause

    def __str__(self) -> str:
        return f"External API middleware error: {self.cause}"


class ClientError(QAError):
    status_code = 500

    def __init__(self, error: APILayerError) -> None:
        super().__init__(error)
        self.error = error

    def __str__(self) -> str:
        return f"External Client error: {self.error}"


class ServerError(QAError):
    status_code = 500

    def __init__(self, error: APILayerError) -> None:
        super().__init__(error)
        self.error = error

    def __str__(self) -> str:
        return f"Server Client error: {self.error}"


# ---------------------------------------------------------------------------
# Framework-level causes -- deliberately not QAError subclasses
# ---------------------------------------------------------------------------


class CorsForbidden(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return f"CORS request forbidden: {self.reason}"


class BodyDeserializeError(Exception):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"Request body deserialize error: {self.detail}"


# ---------------------------------------------------------------------------
# Rejection chain
# ---------------------------------------------------------------------------

E = TypeVar("E", bound=Exception)


class Rejection(Exception):
    """Ordered set of failure causes attached to a single request."""

    def __init__(self, causes: Iterable[Exception] = ()) -> None:
        self.causes: list[Exception] = list(causes)
        super().__init__(self.causes)

    def attach(self, cause: Exception) -> None:
        self.causes.append(cause)

    def find(self, kind: type[E]) -> E | None:
        """Return the first attached cause that is an instance of kind."""
        for cause in self.causes:
            if isinstance(cause, kind):
                return cause
        return None

    def __bool__(self) -> bool:
        return bool(self.causes)

    def __repr__(self) -> str:
        return f"Rejection({self.causes!r})"


# ---------------------------------------------------------------------------
# Translator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Reply:
    status_code: int
    body: str


def _database(err: DatabaseQueryError) -> Reply:
    logger.error("Database query error %s", err.message)
    return Reply(422, err.message)


def _internal(err: Exception) -> Reply:
    logger.error("%s", err)
    return Reply(500, INTERNAL_SERVER_ERROR)


def _wrong_password(err: WrongPassword) -> Reply:
    logger.error("Wrong password")
    return Reply(401, "Wrong email/password combination")


def _cors(err: CorsForbidden) -> Reply:
    logger.error("CORS forbidden error: %s", err)
    return Reply(403, str(err))


def _body(err: BodyDeserializeError) -> Reply:
    logger.error("Cannot deserialize request body: %s", err)
    return Reply(422, str(err))


def _generic(err: QAError) -> Reply:
    cause = getattr(err, "cause", None)
    if cause is not None:
        logger.error("%s: %r", err, cause)
    else:
        logger.error("%s", err)
    return Reply(err.status_code, err.public_message)


# The order of this table is the response contract: a request carrying several
# causes always gets the reply of the earliest kind listed here.
PRECEDENCE: tuple[tuple[type[Exception], Callable[[Exception], Reply]], ...] = (
    (DatabaseQueryError, _database),
    (ExternalAPIError, _internal),
    (MiddlewareAPIError, _internal),
    (ClientError, _internal),
    (WrongPassword, _wrong_password),
    (ServerError, _internal),
    (CorsForbidden, _cors),
    (BodyDeserializeError, _body),
    (QAError, _generic),
)


def recover(rejection: Rejection) -> Reply:
    """Map a rejection chain to exactly one Reply.

    Deterministic: the same set of causes always yields the same Reply,
    regardless of the order in which filters attached them. Only causes that
    share a precedence slot (two generic QAErrors, say) are decided by
    attachment order.
    """
    for kind, translate in PRECEDENCE:
        cause = rejection.find(kind)
        if cause is not None:
            return translate(cause)
    logger.warning("Requested route was not found")
    return Reply(404, "Route not found")
