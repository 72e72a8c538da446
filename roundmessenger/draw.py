"""Draw resolution: turn room pairings into one addressed message per participant."""

import logging
from collections.abc import Callable
from typing import Protocol

from roundmessenger.categories import Categories, CategoryNotFoundError
from roundmessenger.directory import DirectoryError
from roundmessenger.links import compose_links
from roundmessenger.messengers.base import InvalidHandleError, parse_snowflake
from roundmessenger.models import NO_CATEGORY, AddressedMessage, Category, Room
from roundmessenger.positions import position_label

logger = logging.getLogger(__name__)

SPEAKER_TEMPLATE = "In this round, you will be speaking in **{side}** in room **{venue}**.{links}"
JUDGE_TEMPLATE = "In this round, you will be judging as **{position}** in room **{venue}**.{links}"


class Directory(Protocol):
    def participants_from_team_id(self, team_id: str) -> tuple[list[str], list[str]]: ...

    def discord_from_participant_ids(self, participant_ids: list[str]) -> tuple[list[str], list[str]]: ...


class DrawResolutionError(RuntimeError):
    """Raised when a room cannot be resolved. Aborts the run."""

    def __init__(self, venue_name: str, venue_id: str, message: str) -> None:
        self.venue_name = venue_name
        self.venue_id = venue_id
        super().__init__(f"Room {venue_name!r} (venue {venue_id or '?'}): {message}")


def _category_for(categories: Categories, venue_name: str) -> Category:
    try:
        return categories.lookup(venue_name)
    except CategoryNotFoundError as exc:
        logger.warning("%s", exc)
        return NO_CATEGORY


def _resolve_room(
    room: Room,
    venue_name: str,
    category: Category,
    directory: Directory,
    private_url_from_key: Callable[[str], str],
) -> list[AddressedMessage]:
    messages: list[AddressedMessage] = []

    for i, team in enumerate(room.team_ids):
        discords, url_keys = directory.participants_from_team_id(team)

        for discord, url_key in zip(discords, url_keys):
            if not discord:
                continue
            body = SPEAKER_TEMPLATE.format(
                side=room.side_names[i],
                venue=venue_name,
                links=compose_links(category.url, url_key, private_url_from_key),
            )
            messages.append(AddressedMessage(recipient=parse_snowflake(discord), body=body))

    judge_ids = [room.chair_id, *room.panellist_ids, *room.trainee_ids]
    discords, url_keys = directory.discord_from_participant_ids(judge_ids)

    for j, discord in enumerate(discords):
        if not discord:
            logger.warning("Adjudicator %s has no discord ID.", judge_ids[j])
            continue

        body = JUDGE_TEMPLATE.format(
            position=position_label(j, len(room.panellist_ids)),
            venue=venue_name,
            links=compose_links(category.url, url_keys[j], private_url_from_key),
        )
        messages.append(AddressedMessage(recipient=parse_snowflake(discord), body=body))

    return messages


def resolve_draw(
    rooms: list[Room],
    venue_names: dict[str, str],
    categories: Categories,
    directory: Directory,
    private_url_from_key: Callable[[str], str],
) -> list[AddressedMessage]:
    """Build the full message list for a draw.

    Rooms keep their input order; within a room every speaker message
    precedes every judge message.

    Raises:
        DrawResolutionError: If the directory fails or holds a malformed
            Discord id. No messages are returned in that case.
    """
    messages: list[AddressedMessage] = []

    for room in rooms:
        if len(room.team_ids) != len(room.side_names):
            raise DrawResolutionError(
                venue_names.get(room.venue_id, ""),
                room.venue_id,
                f"{len(room.team_ids)} teams but {len(room.side_names)} side names",
            )

        venue_name = venue_names.get(room.venue_id, "")
        category = _category_for(categories, venue_name)

        try:
            messages.extend(_resolve_room(room, venue_name, category, directory, private_url_from_key))
        except (DirectoryError, InvalidHandleError) as exc:
            raise DrawResolutionError(venue_name, room.venue_id, str(exc)) from exc

        logger.debug("Queued messages for room %s", venue_name)

    return messages
