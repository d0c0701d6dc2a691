"""
Session token generation.

Tokens are two random segments over [a-z0-9] drawn from the `secrets`
CSPRNG. Each character carries log2(36) ~= 5.17 bits.
"""

import secrets
import string

TOKEN_ALPHABET = string.ascii_lowercase + string.digits
TOKEN_SEGMENTS = 2


def random_segment(length: int) -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def generate_session_token(segment_length: int = 16) -> str:
    """Return a new session token of TOKEN_SEGMENTS * segment_length chars."""
    if segment_length <= 0:
        raise ValueError("segment_length must be positive")
    return "".join(random_segment(segment_length) for _ in range(TOKEN_SEGMENTS))
