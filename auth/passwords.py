"""
auth/passwords.py -- Credential Hasher (argon2id via argon2-cffi).

Security design decisions:
  Argon2id is memory-hard: each hash costs 64 MiB and three passes, which
  makes GPU/ASIC brute force expensive. The library's default cost
  parameters are used unchanged. Only the salt length is raised to 32 bytes;
  the salt comes from os.urandom inside argon2-cffi and is re-drawn on every
  call, so two hashes of the same password differ.

  The stored string is self-describing ($argon2id$v=19$m=65536,t=3,p=4$<salt>
  $<digest>), so verify_password() re-derives with the parameters embedded in
  the hash rather than the current defaults. Comparison is constant-time
  inside the library.

  Outcomes of verify_password():
    True                -> password matches
    False               -> password does not match
    HashLibraryError    -> the stored hash is corrupt or the library failed.
                           Kept distinct from False so the translator logs it
                           as an internal fault rather than a wrong password.

Both functions are CPU-bound (tens to hundreds of ms). Async callers must run
them on the CryptoPool, never inline on the event loop.

Layer rule: no imports from api/ or qa/.
"""

from __future__ import annotations

import logging

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from core.errors import HashLibraryError

logger = logging.getLogger("qaservice.auth.passwords")

SALT_BYTES = 32

_HASHER = PasswordHasher(salt_len=SALT_BYTES)


def hash_password(password: str | bytes) -> str:
    """Return the encoded argon2id hash of password with a fresh random salt."""
    return _HASHER.hash(password)


def verify_password(password_hash: str, password: str | bytes) -> bool:
    """Check password against a stored hash.

    Returns False on mismatch. Raises HashLibraryError when the stored hash
    cannot be decoded or the library fails for any reason other than a
    mismatch.
    """
    try:
        return _HASHER.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError) as exc:
        logger.error("Stored password hash could not be verified: %s", type(exc).__name__)
        raise HashLibraryError(exc) from exc
