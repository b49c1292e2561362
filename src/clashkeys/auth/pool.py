"""Token rotation.

Each API key carries its own rate limit, so an application holding several
keys spreads its calls across them. :class:`TokenPool` hands out one token
per request according to a :class:`~clashkeys.models.RotationPolicy`.
"""

from __future__ import annotations

import random
import threading
from typing import Sequence

from clashkeys.exceptions import InvalidUsageError
from clashkeys.models import RotationPolicy


class TokenPool:
    """An immutable, non-empty set of bearer tokens with a selection policy.

    Round-robin selection advances a shared cursor under a lock, so
    concurrent callers each get the next slot and N calls over K tokens give
    every token either ``N // K`` or ``N // K + 1`` selections.

    Args:
        tokens: A single token or a non-empty sequence of tokens.
        policy: ``round_robin`` (default) or ``random``.

    Raises:
        InvalidUsageError: If no token is given.

    Example::

        pool = TokenPool(["a", "b"])
        [pool.get() for _ in range(4)]  # ['a', 'b', 'a', 'b']
    """

    def __init__(
        self,
        tokens: str | Sequence[str],
        policy: RotationPolicy | str = RotationPolicy.ROUND_ROBIN,
    ) -> None:
        if isinstance(tokens, str):
            tokens = [tokens]
        self._tokens: tuple[str, ...] = tuple(t for t in tokens if t)
        if not self._tokens:
            raise InvalidUsageError("A token pool needs at least one token")
        try:
            self._policy = RotationPolicy(policy)
        except ValueError as exc:
            raise InvalidUsageError(f"Unknown rotation policy: {policy!r}") from exc
        self._cursor = 0
        self._lock = threading.Lock()

    @property
    def tokens(self) -> tuple[str, ...]:
        """The pooled tokens, in insertion order."""
        return self._tokens

    @property
    def policy(self) -> RotationPolicy:
        return self._policy

    def __len__(self) -> int:
        return len(self._tokens)

    def get(self) -> str:
        """Return the token to use for the next request."""
        if len(self._tokens) == 1:
            return self._tokens[0]
        if self._policy == RotationPolicy.RANDOM:
            return random.choice(self._tokens)
        with self._lock:
            token = self._tokens[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._tokens)
        return token
