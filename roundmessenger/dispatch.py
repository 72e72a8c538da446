"""Round-robin dispatch of addressed messages over a pool of sending identities."""

import asyncio
import logging

from roundmessenger.messengers.base import Messenger
from roundmessenger.models import AddressedMessage, DispatchReport

logger = logging.getLogger(__name__)


def assign_round_robin(count: int, identities: int, start: int = 0) -> list[int]:
    """Identity index for each of ``count`` messages, starting at counter ``start``."""
    if identities < 1:
        raise ValueError("At least one identity is required")
    return [(start + k) % identities for k in range(count)]


class RoundRobinDispatcher:
    """Owns a fixed identity pool and the running send counter.

    Message ``k`` goes to identity ``k mod N``, so load is balanced by message
    count rather than by message size. Delivery across identities runs
    concurrently; each identity delivers its own messages one at a time.
    """

    def __init__(self, identities: list[Messenger]) -> None:
        if not identities:
            raise ValueError("RoundRobinDispatcher needs at least one identity")
        self._identities = list(identities)
        self._counter = 0

    @property
    def identities(self) -> list[Messenger]:
        return list(self._identities)

    @property
    def counter(self) -> int:
        return self._counter

    def submit(self, message: AddressedMessage) -> Messenger:
        """Hand one message to the next identity in rotation and return it."""
        identity = self._identities[self._counter % len(self._identities)]
        identity.send(message.recipient, message.body)
        self._counter += 1
        return identity

    async def dispatch(self, messages: list[AddressedMessage]) -> DispatchReport:
        """Submit every message, then wait for all identities to finish.

        Returns:
            Per-identity sent/failed counts accumulated by the identities.
        """
        for message in messages:
            self.submit(message)

        logger.info(
            "Submitted %d messages across %d identities",
            len(messages),
            len(self._identities),
        )

        await asyncio.gather(*(identity.drain() for identity in self._identities))

        report = DispatchReport(
            sent={i.name(): i.sent for i in self._identities},
            failed={i.name(): i.failed for i in self._identities},
        )
        if report.total_failed:
            logger.warning("%d messages could not be delivered", report.total_failed)
        return report
