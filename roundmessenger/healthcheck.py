"""Identity health checks: verify each bot token before dispatching a round."""

import asyncio
import logging

from roundmessenger.messengers.base import Messenger

logger = logging.getLogger(__name__)

_TIMEOUT_SEC = 15.0


async def _check_one(name: str, messenger: Messenger) -> tuple[str, bool, str]:
    """Verify a single identity. Returns (name, ok, error_message)."""
    try:
        await asyncio.wait_for(messenger.verify(), timeout=_TIMEOUT_SEC)
        return name, True, ""
    except TimeoutError:
        return name, False, f"verification timed out after {_TIMEOUT_SEC:.0f}s"
    except Exception as exc:
        return name, False, str(exc)


async def run_health_checks(
    messengers: dict[str, Messenger],
) -> dict[str, tuple[bool, str]]:
    """Verify all identities in parallel.

    Returns:
        Dict mapping identity name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(*(_check_one(n, m) for n, m in messengers.items()))
    return {name: (ok, err) for name, ok, err in results}
