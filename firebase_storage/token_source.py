"""Bearer token sources consumed by the storage client.

A token source is invoked once per outgoing request. Caching and refreshing
tokens is the responsibility of the source itself, so implementations must
be safe to call repeatedly and concurrently.
"""

from typing import Protocol


class TokenSource(Protocol):
    """Asynchronous provider of an optional bearer token."""

    async def __call__(self) -> str | None:
        """Return the current token, or None to send requests unauthenticated."""
        ...


class StaticTokenSource:
    """Token source that always returns the same token."""

    def __init__(self, token: str | None) -> None:
        """Initialize the token source.

        Args:
            token: Token to hand out, or None for unauthenticated access.
        """
        self._token = token

    async def __call__(self) -> str | None:
        """Return the configured token."""
        return self._token


async def anonymous_token_source() -> str | None:
    """Token source for buckets that allow unauthenticated access."""
    return None
