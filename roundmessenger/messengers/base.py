"""Abstract base for all sending identities."""

from abc import ABC, abstractmethod

_MAX_SNOWFLAKE = 2**64 - 1


class MessengerError(Exception):
    """Raised when a messenger call fails."""

    def __init__(self, identity_name: str, message: str) -> None:
        self.identity_name = identity_name
        super().__init__(f"[{identity_name}] {message}")


class InvalidHandleError(ValueError):
    """Raised when a directory entry is not a valid Discord snowflake."""


def parse_snowflake(text: str) -> int:
    """Convert a directory-supplied Discord id into a snowflake.

    Raises:
        InvalidHandleError: If the text is not an unsigned 64-bit decimal integer.
    """
    stripped = text.strip()
    if not (stripped.isascii() and stripped.isdigit()):
        raise InvalidHandleError(f"Invalid Discord ID: {text!r}")
    value = int(stripped)
    if value > _MAX_SNOWFLAKE:
        raise InvalidHandleError(f"Discord ID out of range: {text!r}")
    return value


class Messenger(ABC):
    """One authenticated identity able to deliver private messages.

    ``send`` only queues work; ``drain`` waits for everything queued so far.
    Implementations deliver one message at a time.
    """

    sent: int = 0
    failed: int = 0

    @abstractmethod
    def name(self) -> str:
        """Return a short identity name for logs and reports."""
        ...

    @abstractmethod
    def send(self, recipient: int, body: str) -> None:
        """Queue a private message to ``recipient``. Must not block."""
        ...

    @abstractmethod
    async def drain(self) -> None:
        """Wait until every queued message has been attempted."""
        ...

    @abstractmethod
    async def verify(self) -> None:
        """Check the identity's credentials.

        Raises:
            MessengerError: If the platform rejects the identity.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the identity."""
        return None
