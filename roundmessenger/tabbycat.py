"""Tabbycat REST API client: draws, venues and private URLs."""

import logging

import aiohttp

from roundmessenger.models import Room, Venue

logger = logging.getLogger(__name__)

DEFAULT_SIDE_NAMES: dict[str, str] = {
    "aff": "Proposition",
    "neg": "Opposition",
    "og": "Opening Government",
    "oo": "Opening Opposition",
    "cg": "Closing Government",
    "co": "Closing Opposition",
}


class TabbycatError(Exception):
    """Raised when the Tabbycat API cannot be reached or answers with an error."""


def _id_from_url(url: str | None) -> str:
    """Tabbycat hyperlinks end in the object id: .../adjudicators/17 -> "17"."""
    if not url:
        return ""
    return str(url).rstrip("/").rsplit("/", 1)[-1]


class TabbycatClient:
    """Thin async wrapper around the Tabbycat v1 API for one tournament."""

    def __init__(
        self,
        api_key: str,
        url: str,
        slug: str,
        session: aiohttp.ClientSession,
        side_names: dict[str, str] | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = url.rstrip("/")
        self._slug = slug
        self._session = session
        self._side_names = {**DEFAULT_SIDE_NAMES, **(side_names or {})}

    @property
    def _api_base(self) -> str:
        return f"{self._url}/api/v1/tournaments/{self._slug}"

    def private_url_from_key(self, key: str) -> str:
        return f"{self._url}/{self._slug}/privateurls/{key}/"

    def side_name(self, side: str) -> str:
        return self._side_names.get(side, side.title())

    async def get_draw(self, round_seq: int) -> list[Room]:
        """Fetch the pairings of one round, in draw order."""
        pairings = await self._get(f"/rounds/{round_seq}/pairings")
        return [self._room_from_pairing(p) for p in pairings]

    async def get_venues(self) -> list[Venue]:
        venues = await self._get("/venues")
        return [Venue(id=str(v["id"]), name=str(v.get("name") or "")) for v in venues]

    def _room_from_pairing(self, pairing: dict) -> Room:
        teams = pairing.get("teams") or []
        adjudicators = pairing.get("adjudicators") or {}
        return Room(
            venue_id=_id_from_url(pairing.get("venue")),
            team_ids=[_id_from_url(t.get("team")) for t in teams],
            side_names=[self.side_name(str(t.get("side") or "")) for t in teams],
            chair_id=_id_from_url(adjudicators.get("chair")),
            panellist_ids=[_id_from_url(u) for u in adjudicators.get("panellists") or []],
            trainee_ids=[_id_from_url(u) for u in adjudicators.get("trainees") or []],
        )

    async def _get(self, path: str) -> list[dict]:
        url = f"{self._api_base}{path}"
        headers = {"Authorization": f"Token {self._api_key}"}
        try:
            async with self._session.get(url, headers=headers) as resp:
                if resp.status != 200:
                    raise TabbycatError(f"GET {url} returned HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except TabbycatError:
            raise
        except TimeoutError as exc:
            raise TabbycatError(f"GET {url} timed out") from exc
        except aiohttp.ClientError as exc:
            raise TabbycatError(f"GET {url} failed: {exc}") from exc
        except ValueError as exc:
            raise TabbycatError(f"GET {url} returned invalid JSON: {exc}") from exc

        if not isinstance(data, list):
            raise TabbycatError(f"GET {url} returned {type(data).__name__}, expected a list")
        logger.debug("GET %s -> %d items", url, len(data))
        return data
