"""
bcrypt password verifier adapter - Implements PasswordVerifier protocol.

Security Design - Timing Oracle Prevention:
------------------------------------------
1. **bcrypt.checkpw()**: bcrypt's comparison is constant-time and its cost
   (~100ms at cost factor 10) dominates response time.

2. **Dummy hash**: When the account has no stored hash (unknown email,
   password never set), we compare against a pre-computed dummy hash so that
   bcrypt always runs and the response time does not reveal account state.
   The dummy hash uses the configured cost factor so both paths cost the same.

3. **72-byte limit**: bcrypt only accepts passwords up to 72 bytes. Longer
   passwords can never match a stored hash; they are rejected after a dummy
   comparison on their first 72 bytes, keeping the timing uniform.
"""

import logging
from functools import lru_cache

import bcrypt

from src.domain.ports import Authenticatable

logger = logging.getLogger(__name__)

BCRYPT_MAX_PASSWORD_BYTES = 72


@lru_cache
def _dummy_hash(cost: int) -> str:
    """Pre-computed bcrypt hash for timing oracle prevention, one per cost factor."""
    return bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(cost)).decode()


class BcryptPasswordVerifier:
    """
    Implements PasswordVerifier protocol via bcrypt.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, cost: int = 10) -> None:
        """
        Args:
            cost: bcrypt work factor of stored hashes, used for the dummy hash
        """
        self._cost = cost

    def verify(self, account: Authenticatable, password: str) -> bool:
        """
        Check ``password`` against the account's bcrypt hash.

        Always runs exactly one bcrypt comparison, whatever the account state.
        """
        stored_hash = account.encrypted_password
        has_hash = bool(stored_hash)
        encoded = password.encode()

        if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
            bcrypt.checkpw(encoded[:BCRYPT_MAX_PASSWORD_BYTES], _dummy_hash(self._cost).encode())
            return False

        try:
            matches = bcrypt.checkpw(
                encoded, (stored_hash if has_hash else _dummy_hash(self._cost)).encode()
            )
        except ValueError:
            # Stored value is not a bcrypt hash
            logger.error("Malformed password hash for %s", account.email)
            return False

        return has_hash and matches


def hash_password(password: str, cost: int = 10) -> str:
    """Hash a password with bcrypt at the given work factor."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=cost)).decode()
