"""
Core Protocol Module
====================

Contains the registration/login protocol and its collaborators:
- auth_service: register and login handlers, AuthContext wiring
- hashing: bcrypt password hasher with tri-state comparison
- store: Redis key layout and commands
- counters: fire-and-forget outcome counters
- tokens: session token generation
"""

from core.auth_service import AuthContext, AuthService, create_auth_context, system_clock
from core.counters import OutcomeCounter
from core.hashing import BcryptHasher, HasherProtocol, create_hasher
from core.store import ClientStore, create_redis_client, create_store
from core.tokens import generate_session_token

__all__ = [
    'AuthContext',
    'AuthService',
    'create_auth_context',
    'system_clock',
    'OutcomeCounter',
    'BcryptHasher',
    'HasherProtocol',
    'create_hasher',
    'ClientStore',
    'create_redis_client',
    'create_store',
    'generate_session_token',
]
