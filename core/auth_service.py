"""
Registration and Login Protocols
================================

The two request handlers at the heart of RegAuth.

Registration:
    regToken lookup → regToken check → atomic regBy consume →
    regBy sanity floor → regBy deadline → store bcrypt(secret)

Login:
    secret lookup → tri-state secret check → new session token →
    DEL/HSET/EXPIRE transaction → token + TTL

Every failure is raised as a RegAuthError subclass carrying its HTTP
status. Every branch, including success, bumps an outcome counter.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from config import Settings, get_settings
from core.counters import OutcomeCounter
from core.hashing import HasherProtocol, create_hasher, secret_problem
from core.store import ClientStore, create_store
from core.tokens import generate_session_token
from exceptions import (
    ExpiredError,
    InternalHashError,
    InvalidExpiryError,
    InvalidSecretError,
    UnauthorisedError,
    UnregisteredError,
)
from models import (
    MIN_REG_BY_MS,
    HashCheckStatus,
    LoginOutcome,
    RegisterOutcome,
    SessionGrant,
)


# Set up module logger
logger = logging.getLogger(__name__)

# Returns the current time in milliseconds since the epoch
Clock = Callable[[], int]


def system_clock() -> int:
    return int(time.time() * 1000)


@dataclass
class AuthContext:
    """
    Everything a request handler needs, constructed once per process.

    Attributes:
        store: Redis-backed client/session store
        hasher: Password hasher
        counters: Outcome counter sink
        settings: Application settings
        clock: Millisecond clock
    """
    store: ClientStore
    hasher: HasherProtocol
    counters: OutcomeCounter
    settings: Settings
    clock: Clock = system_clock

    async def aclose(self) -> None:
        """Drain pending counters and release the Redis pool."""
        await self.counters.flush()
        await self.store.close()


def create_auth_context(
    settings: Optional[Settings] = None,
    store: Optional[ClientStore] = None,
    hasher: Optional[HasherProtocol] = None,
    clock: Clock = system_clock
) -> AuthContext:
    """
    Factory function to wire an AuthContext.

    Store and hasher can be injected for testing; otherwise they are
    created from settings.
    """
    settings = settings or get_settings()
    store = store or create_store(settings)
    return AuthContext(
        store=store,
        hasher=hasher or create_hasher(settings),
        counters=OutcomeCounter(store),
        settings=settings,
        clock=clock
    )


class AuthService:
    """Stateless registration and login handlers over an AuthContext."""

    def __init__(self, context: AuthContext):
        self.context = context

    @property
    def store(self) -> ClientStore:
        return self.context.store

    async def register(self, client: str, secret: str, reg_token: str) -> None:
        """
        Redeem a one-time registration token and bind `secret` to `client`.

        Once the registration token has matched, regBy is consumed whatever
        happens next, so each issued deadline allows exactly one attempt.

        Raises:
            UnregisteredError: No regToken provisioned, or regBy already consumed
            UnauthorisedError: regToken does not match
            InvalidSecretError: secret contains NUL or exceeds 72 UTF-8 bytes
            InternalHashError: The stored regToken hash could not be checked
            InvalidExpiryError: regBy is not an integer or predates 2019-01-01
            ExpiredError: regBy is at or before the current time
        """
        count = self._counter("register")
        count(RegisterOutcome.START)
        now = self.context.clock()

        reg_token_hash = await self.store.get_reg_token(client)
        if not reg_token_hash:
            count(RegisterOutcome.NO_REG_TOKEN)
            raise UnregisteredError(client, message="Unregistered (regToken)")

        check = await self.context.hasher.acheck(reg_token, reg_token_hash)
        if check.status == HashCheckStatus.ERROR:
            count(RegisterOutcome.HASH_ERROR)
            raise InternalHashError(
                client,
                err_code=check.err_code or "unknown",
                message="Unauthorised (regToken)",
                status_code=403
            )
        if not check.matched:
            count(RegisterOutcome.BAD_REG_TOKEN)
            raise UnauthorisedError(client, message="Unauthorised (regToken)")

        # Must run before consume_reg_by()
        problem = secret_problem(secret)
        if problem:
            count(RegisterOutcome.INVALID_SECRET)
            raise InvalidSecretError(client, problem)

        reg_by = await self.store.consume_reg_by(client)
        if not reg_by:
            count(RegisterOutcome.NO_REG_BY)
            raise UnregisteredError(client, message="Unregistered (missing regBy)", field="regBy")

        # Plain ASCII digits only; int() would also take "1_000" or " 12 "
        expire_time = int(reg_by) if reg_by.isascii() and reg_by.isdigit() else None
        if expire_time is None or expire_time < MIN_REG_BY_MS:
            count(RegisterOutcome.INVALID_EXPIRY)
            raise InvalidExpiryError(client, reg_by)

        if expire_time <= now:
            count(RegisterOutcome.EXPIRED)
            raise ExpiredError(client, expire_time, now)

        hashed = await self.context.hasher.ahash(secret)
        await self.store.set_secret(client, hashed)
        count(RegisterOutcome.REGISTERED)
        logger.info(f"Client registered: {client}")

    async def login(self, client: str, secret: str) -> SessionGrant:
        """
        Check `secret` for `client` and issue a new session.

        Raises:
            UnregisteredError: No secret has been registered
            UnauthorisedError: The secret does not match (401)
            InternalHashError: The stored hash could not be checked (401)
        """
        count = self._counter("login")
        count(LoginOutcome.START)

        hashed = await self.store.get_secret(client)
        if not hashed:
            count(LoginOutcome.UNREGISTERED)
            raise UnregisteredError(client)

        check = await self.context.hasher.acheck(secret, hashed)
        if check.status == HashCheckStatus.ERROR:
            count(LoginOutcome.HASH_ERROR)
            raise InternalHashError(client, err_code=check.err_code or "unknown")
        if not check.matched:
            count(LoginOutcome.BAD_SECRET)
            raise UnauthorisedError(client, status_code=401)

        settings = self.context.settings
        token = generate_session_token(settings.session_token_segment_length)
        await self.store.create_session(token, client, settings.session_ttl_seconds)
        count(LoginOutcome.SESSION_ISSUED)
        logger.info(f"Session issued for client: {client}")

        return SessionGrant(
            client=client,
            token=token,
            ttl_seconds=settings.session_ttl_seconds
        )

    async def resolve_session(self, token: str) -> Optional[str]:
        """Return the client owning `token`, or None once it has expired."""
        return await self.store.get_session_client(token)

    def _counter(self, operation: str) -> Callable:
        counters = self.context.counters

        def count(outcome) -> None:
            counters.increment(operation, outcome)

        return count
