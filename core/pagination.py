"""
core/pagination.py -- Query-parameter pagination for GET /questions.

    GET /questions                      -> every question
    GET /questions?limit=10&offset=20   -> questions 21..30
    GET /questions?limit=10             -> MissingParameters
    GET /questions?limit=ten&offset=0   -> ParseError
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from core.errors import MissingParameters, ParseError


@dataclass(frozen=True)
class Pagination:
    """limit=None means no limit; offset is the index of the first row returned."""

    limit: Optional[int] = None
    offset: int = 0


def _parse(params: Mapping[str, str], name: str) -> int:
    raw = params[name]
    try:
        value = int(raw)
    except ValueError as exc:
        raise ParseError(name, raw) from exc
    if value < 0:
        raise ParseError(name, raw)
    return value


def extract_pagination(params: Mapping[str, str]) -> Pagination:
    """Build a Pagination from query params.

    Both limit and offset must be given together. Unrelated params do not
    count as pagination.
    """
    present = [name for name in ("limit", "offset") if name in params]
    if not present:
        return Pagination()
    if len(present) < 2:
        raise MissingParameters("limit", "offset")
    return Pagination(limit=_parse(params, "limit"), offset=_parse(params, "offset"))
