"""
Password Hashing for RegAuth
============================

Wraps passlib's bcrypt support behind a small protocol so the auth service
never touches passlib directly.

The comparison answer is tri-state (see models.HashCheck): a malformed
stored hash or an engine fault is reported as ERROR, never as NO_MATCH.
"""

import asyncio
import logging
from typing import Optional, Protocol

from passlib.context import CryptContext
from passlib.exc import PasswordValueError

from config import Settings, get_settings
from models import HashCheck, HashCheckStatus


# Set up module logger
logger = logging.getLogger(__name__)

# err_code values reported with HashCheckStatus.ERROR
MALFORMED_HASH = "malformed_hash"
INVALID_INPUT = "invalid_input"

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def secret_problem(plaintext: str) -> Optional[str]:
    """
    Return why bcrypt cannot take `plaintext` faithfully, or None if it can.

    Longer input would be truncated, so two secrets sharing their first
    72 bytes would hash alike.
    """
    if "\x00" in plaintext:
        return "contains NUL byte"
    if len(plaintext.encode("utf-8")) > BCRYPT_MAX_BYTES:
        return f"longer than {BCRYPT_MAX_BYTES} bytes"
    return None


class HasherProtocol(Protocol):
    """
    Protocol defining the interface for password hashers.

    Any class with matching `ahash` and `acheck` coroutines can be injected
    into the auth service.
    """

    async def ahash(self, plaintext: str) -> str:
        """Hash a plaintext secret with a fresh salt."""
        ...

    async def acheck(self, plaintext: str, hashed: str) -> HashCheck:
        """Compare a plaintext secret against a stored hash."""
        ...


class BcryptHasher:
    """
    bcrypt hasher backed by passlib's CryptContext.

    bcrypt is deliberately slow, so the async methods push the work onto a
    worker thread with asyncio.to_thread() to keep the event loop free.
    """

    def __init__(self, rounds: int):
        """
        Args:
            rounds: bcrypt cost factor (4-31)
        """
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds
        )

    def hash(self, plaintext: str) -> str:
        """
        Raises:
            ValueError: If `plaintext` fails secret_problem()
        """
        problem = secret_problem(plaintext)
        if problem:
            raise ValueError(f"secret cannot be hashed: {problem}")
        return self._context.hash(plaintext)

    def check(self, plaintext: str, hashed: str) -> HashCheck:
        """
        Compare `plaintext` against `hashed`.

        A plaintext bcrypt cannot take whole was never stored, so it is a
        NO_MATCH. passlib raises ValueError for hashes it cannot identify or
        parse and TypeError for non-string input; both are engine errors.
        """
        if isinstance(plaintext, str) and secret_problem(plaintext):
            return HashCheck(status=HashCheckStatus.NO_MATCH)
        try:
            matched = self._context.verify(plaintext, hashed)
        except PasswordValueError:
            return HashCheck(status=HashCheckStatus.NO_MATCH)
        except ValueError as e:
            logger.warning(f"Stored hash rejected by passlib: {type(e).__name__}")
            return HashCheck(status=HashCheckStatus.ERROR, err_code=MALFORMED_HASH)
        except TypeError as e:
            logger.warning(f"Password hash comparison failed: {type(e).__name__}")
            return HashCheck(status=HashCheckStatus.ERROR, err_code=INVALID_INPUT)

        if matched:
            return HashCheck(status=HashCheckStatus.MATCH)
        return HashCheck(status=HashCheckStatus.NO_MATCH)

    async def ahash(self, plaintext: str) -> str:
        return await asyncio.to_thread(self.hash, plaintext)

    async def acheck(self, plaintext: str, hashed: str) -> HashCheck:
        return await asyncio.to_thread(self.check, plaintext, hashed)


def create_hasher(settings: Optional[Settings] = None) -> BcryptHasher:
    """
    Factory function to create the password hasher from settings.

    Args:
        settings: Application settings

    Returns:
        A BcryptHasher using the configured cost factor
    """
    settings = settings or get_settings()
    logger.info(f"Creating bcrypt hasher (rounds={settings.bcrypt_rounds})")
    return BcryptHasher(rounds=settings.bcrypt_rounds)
