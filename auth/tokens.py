"""
auth/tokens.py -- Token Issuer/Verifier: encrypted, expiring session tokens.

Security design decisions:
  Wire format: JWE compact serialization (python-jose) with "dir" key
       management and A256GCM content encryption. The process secret key is
       the 256-bit content-encryption key directly. AES-GCM is authenticated
       encryption -- any modified byte in the header, IV, ciphertext or tag
       makes decryption fail outright instead of yielding altered claims.
       Tokens are opaque to clients: unlike a signed JWT, the claims are not
       readable without the key. Every segment must be canonical base64url
       before it reaches the decoder, so a character swap that only touches
       ignored padding bits is still a rejected token.

  Claims: {"account_id": int, "nbf": int, "exp": int} with epoch seconds.
       exp = nbf + ttl (24h by default). Validity is inclusive on both ends.

  One failure kind: verify() raises CannotDecryptToken for tampering, wrong
       key, malformed input, expiry and not-yet-valid alike. The client never
       learns which one it hit; the specific reason is logged at DEBUG.

  Key: injected by the caller (api/main.py lifespan builds one TokenCodec
       from Settings). This module never reads the environment.

Both issue() and verify() are CPU-bound; async callers run them on the
CryptoPool.

Layer rule: no imports from api/ or qa/. Import from core/ is allowed.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from datetime import datetime, timedelta, timezone

from cryptography.exceptions import InvalidTag
from jose import jwe
from jose.constants import ALGORITHMS
from jose.exceptions import JOSEError

from auth.models import Session
from core.config import TOKEN_KEY_BYTES
from core.errors import CannotDecryptToken

logger = logging.getLogger("qaservice.auth.tokens")

DEFAULT_TTL = timedelta(hours=24)

_ALGORITHM = ALGORITHMS.DIR
_ENCRYPTION = ALGORITHMS.A256GCM
_SEGMENTS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_epoch(moment: datetime) -> int:
    return int(moment.timestamp())


def _from_epoch(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _is_canonical(segment: str) -> bool:
    """True when segment is the one base64url spelling of the bytes it decodes to.

    The decoder ignores the unused low bits of a segment's last character, so
    several spellings decode to the same bytes. Only the spelling the encoder
    produces is accepted.
    """
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (ValueError, binascii.Error):
        return False
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") == segment


class TokenCodec:
    """Issues and verifies session tokens with a fixed secret key.

    Usage:
        codec = TokenCodec(settings.token_key_bytes)
        token = codec.issue(account_id=7)
        session = codec.verify(token)     # -> Session(account_id=7, ...)
    """

    def __init__(self, key: bytes, ttl: timedelta = DEFAULT_TTL) -> None:
        if len(key) != TOKEN_KEY_BYTES:
            raise ValueError(f"Token key must be exactly {TOKEN_KEY_BYTES} bytes, got {len(key)}")
        if ttl <= timedelta(0):
            raise ValueError("Token ttl must be positive")
        self._key = key
        self.ttl = ttl

    def __repr__(self) -> str:
        return f"TokenCodec(ttl={self.ttl!r})"

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, account_id: int, now: datetime | None = None) -> str:
        """Return a token for account_id valid from now for ttl.

        Errors from the encryption backend are not caught: failing to build a
        token means the process is misconfigured.
        """
        # Claims carry whole seconds; truncating here keeps the issued Session
        # and the one rebuilt by verify() identical.
        issued = (now or _utcnow()).replace(microsecond=0)
        session = Session(account_id=account_id, not_before=issued, expires_at=issued + self.ttl)
        return self.seal(session)

    def seal(self, session: Session) -> str:
        """Encrypt an arbitrary Session. issue() is the normal entry point."""
        claims = {
            "account_id": session.account_id,
            "nbf": _to_epoch(session.not_before),
            "exp": _to_epoch(session.expires_at),
        }
        token = jwe.encrypt(
            json.dumps(claims, separators=(",", ":")),
            self._key,
            algorithm=_ALGORITHM,
            encryption=_ENCRYPTION,
        )
        return token.decode("ascii")

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, token: str, now: datetime | None = None) -> Session:
        """Decrypt token and check its validity window.

        Returns the Session on success; raises CannotDecryptToken otherwise.
        """
        segments = token.split(".")
        if len(segments) != _SEGMENTS or not all(_is_canonical(s) for s in segments):
            logger.debug("Token rejected: not a canonical compact JWE")
            raise CannotDecryptToken()

        try:
            plaintext = jwe.decrypt(token.encode("ascii"), self._key)
        # The header is attacker-controlled; jose can fail on it with plain
        # KeyError or NotImplementedError as well as its own JOSEError.
        except (JOSEError, InvalidTag, ValueError, TypeError, KeyError, NotImplementedError) as exc:
            logger.debug("Token rejected: decryption failed (%s)", type(exc).__name__)
            raise CannotDecryptToken() from None
        if plaintext is None:
            logger.debug("Token rejected: empty plaintext")
            raise CannotDecryptToken()

        try:
            claims = json.loads(plaintext)
            session = Session(
                account_id=int(claims["account_id"]),
                not_before=_from_epoch(int(claims["nbf"])),
                expires_at=_from_epoch(int(claims["exp"])),
            )
        except (ValueError, TypeError, KeyError, OverflowError, OSError) as exc:
            logger.debug("Token rejected: malformed claims (%s)", type(exc).__name__)
            raise CannotDecryptToken() from None

        moment = now or _utcnow()
        if not session.is_valid_at(moment):
            reason = "not yet valid" if moment < session.not_before else "expired"
            logger.debug("Token rejected: %s for account %s", reason, session.account_id)
            raise CannotDecryptToken()
        return session
