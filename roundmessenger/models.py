"""Pure dataclasses for the round messenger pipeline. No logic, no deps."""

from dataclasses import dataclass, field


@dataclass
class Venue:
    id: str
    name: str


@dataclass
class Room:
    venue_id: str
    team_ids: list[str] = field(default_factory=list)
    side_names: list[str] = field(default_factory=list)  # aligned with team_ids
    chair_id: str = ""
    panellist_ids: list[str] = field(default_factory=list)
    trainee_ids: list[str] = field(default_factory=list)


@dataclass
class Category:
    name: str
    pattern: str
    url: str = ""


NO_CATEGORY = Category(name="", pattern="", url="")


@dataclass
class AddressedMessage:
    recipient: int         # Discord snowflake
    body: str


@dataclass
class DispatchReport:
    sent: dict[str, int] = field(default_factory=dict)
    failed: dict[str, int] = field(default_factory=dict)

    @property
    def total_sent(self) -> int:
        return sum(self.sent.values())

    @property
    def total_failed(self) -> int:
        return sum(self.failed.values())


def build_venue_map(venues: list[Venue]) -> dict[str, str]:
    """Map venue id -> display name."""
    return {v.id: v.name for v in venues}
