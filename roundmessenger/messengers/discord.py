"""Discord bot identity sending direct messages through the REST API over aiohttp.

Each identity runs a single worker task fed by an asyncio queue, so messages
sent through one bot are delivered one at a time and in submission order.

Error classification (all logged and counted, never retried):
- 401 token invalid       -> the bot cannot send anything
- 403 DMs closed/blocked  -> this recipient only
- 404 unknown user        -> this recipient only
- 429 / 5xx / network     -> this message only
"""

import asyncio
import contextlib
import logging

import aiohttp

from roundmessenger.messengers.base import Messenger, MessengerError

logger = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"
MAX_MESSAGE_LENGTH = 2000
_USER_AGENT = "DiscordBot (https://github.com/roundmessenger, 1.0)"


class DiscordMessenger(Messenger):
    """One Discord bot token, delivering DMs sequentially."""

    def __init__(
        self,
        name: str,
        token: str,
        session: aiohttp.ClientSession | None = None,
        timeout_sec: int = 15,
    ) -> None:
        if not token:
            raise MessengerError(name, "Missing bot token")
        self._name = name
        self._token = token
        self._timeout_sec = timeout_sec
        self._session = session
        self._owns_session = session is None
        self._queue: asyncio.Queue[tuple[int, str]] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._dm_channels: dict[int, str] = {}
        self.sent = 0
        self.failed = 0

    def name(self) -> str:
        return self._name

    def send(self, recipient: int, body: str) -> None:
        self._queue.put_nowait((recipient, body))
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())

    async def drain(self) -> None:
        await self._queue.join()

    async def verify(self) -> None:
        user = await self._request("GET", "/users/@me")
        logger.debug("Identity %s authenticated as %s", self._name, user.get("username", "?"))

    async def close(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while True:
            recipient, body = await self._queue.get()
            try:
                await self._deliver(recipient, body)
                self.sent += 1
            except MessengerError as exc:
                self.failed += 1
                logger.error("Could not message %s: %s", recipient, exc)
            except Exception as exc:
                self.failed += 1
                logger.error(
                    "Unexpected failure messaging %s via %s: %s",
                    recipient, self._name, exc, exc_info=True,
                )
            finally:
                self._queue.task_done()

    async def _deliver(self, recipient: int, body: str) -> None:
        if len(body) > MAX_MESSAGE_LENGTH:
            raise MessengerError(
                self._name, f"Message is {len(body)} characters, limit is {MAX_MESSAGE_LENGTH}"
            )
        channel_id = await self._dm_channel(recipient)
        message = await self._request("POST", f"/channels/{channel_id}/messages", {"content": body})
        logger.debug("%s sent message %s to %s", self._name, message.get("id", "unknown"), recipient)

    async def _dm_channel(self, recipient: int) -> str:
        channel_id = self._dm_channels.get(recipient)
        if channel_id is None:
            channel = await self._request("POST", "/users/@me/channels", {"recipient_id": str(recipient)})
            channel_id = str(channel["id"])
            self._dm_channels[recipient] = channel_id
        return channel_id

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout_sec, connect=5),
            )
            self._owns_session = True
        return self._session

    async def _request(self, method: str, path: str, payload: dict | None = None) -> dict:
        headers = {
            "Authorization": f"Bot {self._token}",
            "User-Agent": _USER_AGENT,
        }
        try:
            async with self._get_session().request(
                method,
                f"{DISCORD_API_BASE}{path}",
                json=payload,
                headers=headers,
            ) as resp:
                body = await _safe_response_json(resp)
                if 200 <= resp.status < 300:
                    return body or {}

                error_desc = (body or {}).get("message", "Unknown error")
                if resp.status == 401:
                    raise MessengerError(self._name, f"Bot token rejected: {error_desc}")
                if resp.status == 429:
                    retry_after = (body or {}).get("retry_after", "?")
                    raise MessengerError(self._name, f"Rate limited (retry_after={retry_after}s)")
                raise MessengerError(self._name, f"HTTP {resp.status}: {error_desc}")

        except MessengerError:
            raise
        except TimeoutError as exc:
            raise MessengerError(self._name, f"Request timed out after {self._timeout_sec}s") from exc
        except aiohttp.ClientError as exc:
            raise MessengerError(self._name, f"Connection error: {exc}") from exc


async def _safe_response_json(resp: aiohttp.ClientResponse) -> dict | None:
    """Parse JSON from response, returning None if body is not valid JSON."""
    try:
        data = await resp.json(content_type=None)
    except (aiohttp.ContentTypeError, ValueError):
        logger.warning("Discord API returned non-JSON body: status=%s", resp.status)
        return None
    return data if isinstance(data, dict) else None
