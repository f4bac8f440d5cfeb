"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic beyond the validity
check). Stores and routes do the work.

Layer rule: no imports from api/ or qa/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    """A registered identity.

    id is assigned by the store and is None until the account is persisted.
    password_hash is the self-describing argon2 string ($argon2id$v=19$...);
    the plaintext password never reaches this object.
    """

    email: str
    password_hash: str
    id: int | None = None


@dataclass(frozen=True)
class Session:
    """The decoded, time-bounded identity claim carried by a token.

    Never persisted. Built by TokenCodec.issue() and rebuilt by
    TokenCodec.verify(); handlers receive it through the Auth Gate.
    """

    account_id: int
    not_before: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        if self.expires_at <= self.not_before:
            raise ValueError("Session expiry must be after not_before")

    def is_valid_at(self, now: datetime) -> bool:
        """Inclusive on both ends: now == not_before and now == expires_at are valid."""
        return self.not_before <= now <= self.expires_at
