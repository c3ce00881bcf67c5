"""Short identifier generation for diagrams and content snapshots.

Ids are 6 characters drawn from lowercase letters and digits, which keeps
them URL-friendly (36^6, roughly 2.2 billion combinations).
"""

from __future__ import annotations

import secrets
import string
from collections.abc import Awaitable, Callable

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 6


def generate_short_id() -> str:
    """Generate a random 6-character alphanumeric id.

    Returns:
        A lowercase id such as ``"k3x9qa"``.
    """
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


async def ensure_unique_id(is_taken: Callable[[str], Awaitable[bool]]) -> str:
    """Generate ids until one is not already in use.

    There is no retry cap; the loop ends as soon as a free id turns up.

    Args:
        is_taken: Async predicate returning True when the id has an owner.

    Returns:
        An id for which ``is_taken`` returned False.
    """
    while True:
        candidate = generate_short_id()
        if not await is_taken(candidate):
            return candidate
