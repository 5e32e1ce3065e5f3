"""
Short Code Generator

Produces short codes that do not collide with any stored code.

Two phases:
- Primary: up to 10 random candidates of `length` characters drawn from
  [a-zA-Z0-9] (62^7 combinations at the default length)
- Fallback: if every primary candidate is taken, candidates derived from a
  fresh UUID4 (128 random bits), base64 encoded with '=', '+' and '/'
  removed, cut to min(length, 11) characters. Repeats until a free code is
  found.

Uniqueness is checked through a caller-supplied async `exists` function, so
this module has no storage dependency. Two concurrent callers can still pick
the same free code; the store's unique constraint has to catch that.
"""

import base64
import logging
import secrets
import string
import uuid
from typing import Awaitable, Callable, Optional

from shortener.core.exceptions import CodeAlreadyExists, GenerationExhausted

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
DEFAULT_LENGTH = 7
PRIMARY_ATTEMPTS = 10
FALLBACK_MAX_LENGTH = 11

ExistsFunc = Callable[[str], Awaitable[bool]]


def random_code(length: int = DEFAULT_LENGTH) -> str:
    """Return `length` characters chosen uniformly from ALPHABET."""
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def fallback_code(length: int = DEFAULT_LENGTH) -> str:
    """
    Return a code derived from a new UUID4.

    The 16 UUID bytes encode to 22 base64 characters before padding; after
    removing '+' and '/' there are almost always at least 11 left. The rare
    shortfall is retried with a new UUID.
    """
    size = min(length, FALLBACK_MAX_LENGTH)
    while True:
        encoded = base64.b64encode(uuid.uuid4().bytes).decode("ascii")
        encoded = encoded.replace("=", "").replace("+", "").replace("/", "")
        if len(encoded) >= size:
            return encoded[:size]


async def generate_unique_code(
    exists: ExistsFunc,
    length: int = DEFAULT_LENGTH,
    primary_attempts: int = PRIMARY_ATTEMPTS,
    fallback_attempts: Optional[int] = None,
) -> str:
    """
    Generate a short code for which `exists` returns False.

    Args:
        exists: Async uniqueness check, True if the code is already stored
        length: Code length (fallback codes are capped at 11 characters)
        primary_attempts: Alphanumeric candidates tried before the fallback
        fallback_attempts: Limit on fallback candidates; None means no limit

    Returns:
        A code not currently reported by `exists`

    Raises:
        GenerationExhausted: If a fallback limit was given and reached
    """
    if length < 1:
        raise ValueError("length must be >= 1")

    for _ in range(primary_attempts):
        candidate = random_code(length)
        if not await exists(candidate):
            return candidate

    logger.warning(
        f"All {primary_attempts} primary short code candidates collided, "
        f"switching to UUID-derived codes"
    )

    attempts = 0
    while fallback_attempts is None or attempts < fallback_attempts:
        attempts += 1
        candidate = fallback_code(length)
        if not await exists(candidate):
            return candidate

    raise GenerationExhausted(primary_attempts + attempts)


async def ensure_code_available(short_code: str, exists: ExistsFunc) -> str:
    """
    Check a caller-chosen short code against the store.

    Queries `exists` exactly once and never falls back to generation.

    Raises:
        CodeAlreadyExists: If the code is already taken
    """
    if await exists(short_code):
        raise CodeAlreadyExists(short_code)
    return short_code
