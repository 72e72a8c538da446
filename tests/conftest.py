"""Shared pytest fixtures."""

from pathlib import Path

import pytest

from config.config_loader import AppConfig, DefaultsConfig, DiscordConfig, TabbycatConfig
from roundmessenger.categories import Categories
from roundmessenger.messengers.base import Messenger, MessengerError
from roundmessenger.models import Category, Room


class MockMessenger(Messenger):
    """Test double Messenger that records what it was asked to send."""

    def __init__(self, identity_name: str = "mock", fail_verify: bool = False) -> None:
        self._name = identity_name
        self._fail_verify = fail_verify
        self.outbox: list[tuple[int, str]] = []
        self.drained = False
        self.closed = False
        self.sent = 0
        self.failed = 0

    def name(self) -> str:
        return self._name

    def send(self, recipient: int, body: str) -> None:
        self.outbox.append((recipient, body))
        self.sent += 1

    async def drain(self) -> None:
        self.drained = True

    async def verify(self) -> None:
        if self._fail_verify:
            raise MessengerError(self._name, "401 Unauthorized")

    async def close(self) -> None:
        self.closed = True


class MockDirectory:
    """In-memory participant directory keyed like the SQLite one."""

    def __init__(
        self,
        teams: dict[str, list[tuple[str, str]]] | None = None,
        people: dict[str, tuple[str, str]] | None = None,
    ) -> None:
        self.teams = teams or {}
        self.people = people or {}

    def participants_from_team_id(self, team_id: str) -> tuple[list[str], list[str]]:
        members = self.teams.get(team_id, [])
        return [m[0] for m in members], [m[1] for m in members]

    def discord_from_participant_ids(self, participant_ids: list[str]) -> tuple[list[str], list[str]]:
        found = [self.people.get(pid, ("", "")) for pid in participant_ids]
        return [f[0] for f in found], [f[1] for f in found]


def fake_private_url(key: str) -> str:
    return f"https://tab.example.org/wudc/privateurls/{key}/"


@pytest.fixture
def zoom_categories() -> Categories:
    return Categories([
        Category(name="main", pattern="Room [A-F]", url="https://zoom/a"),
        Category(name="overflow", pattern="Overflow.*", url=""),
    ])


@pytest.fixture
def sample_room() -> Room:
    return Room(
        venue_id="1",
        team_ids=["10", "11"],
        side_names=["Proposition", "Opposition"],
        chair_id="100",
        panellist_ids=[],
        trainee_ids=["101"],
    )


@pytest.fixture
def sample_directory() -> MockDirectory:
    return MockDirectory(
        teams={
            "10": [("1001", ""), ("1002", "")],
            "11": [("1101", ""), ("1102", "")],
        },
        people={
            "100": ("555", ""),
            "101": ("", ""),
        },
    )


@pytest.fixture
def sample_app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        tabbycat=TabbycatConfig(
            url="https://tab.example.org",
            api_key="tabbycat-key",
            slug="wudc",
        ),
        discord=DiscordConfig(bot_tokens=["token-main", "token-helper-1"]),
        defaults=DefaultsConfig(database=tmp_path / "wudc.db"),
        side_names={"aff": "Proposition", "neg": "Opposition"},
    )


@pytest.fixture
def three_mock_messengers() -> list[MockMessenger]:
    return [MockMessenger("bot"), MockMessenger("helper-1"), MockMessenger("helper-2")]
