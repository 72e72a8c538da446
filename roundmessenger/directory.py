"""SQLite participant directory: team/participant ids -> Discord ids and private URL keys."""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS participants ("
    "  id TEXT PRIMARY KEY,"
    "  team_id TEXT,"
    "  discord TEXT NOT NULL DEFAULT '',"
    "  url_key TEXT NOT NULL DEFAULT ''"
    ")"
)


class DirectoryError(RuntimeError):
    """Raised when the participant store cannot be read or written."""


class ParticipantDirectory:
    """Read-side lookups over the tournament's participants table.

    Lookups return two lists aligned by index: Discord ids and private URL
    keys. An empty string means the participant has no linked account or
    no private URL.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @classmethod
    def open(cls, path: Path | str) -> "ParticipantDirectory":
        try:
            conn = sqlite3.connect(str(path))
            conn.execute(_SCHEMA)
            conn.commit()
        except sqlite3.Error as exc:
            raise DirectoryError(f"Cannot open participant database {path}: {exc}") from exc
        logger.debug("Participant database opened at %s", path)
        return cls(conn)

    def close(self) -> None:
        self._conn.close()

    def participants_from_team_id(self, team_id: str) -> tuple[list[str], list[str]]:
        """Return (discord_ids, url_keys) for every member of a team, ordered by participant id."""
        try:
            rows = self._conn.execute(
                "SELECT discord, url_key FROM participants WHERE team_id = ? ORDER BY id",
                (team_id,),
            ).fetchall()
        except sqlite3.Error as exc:
            raise DirectoryError(f"Lookup of team {team_id} failed: {exc}") from exc

        return [r[0] or "" for r in rows], [r[1] or "" for r in rows]

    def discord_from_participant_ids(self, participant_ids: list[str]) -> tuple[list[str], list[str]]:
        """Return (discord_ids, url_keys) aligned with ``participant_ids``.

        Ids missing from the table come back as empty strings.
        """
        if not participant_ids:
            return [], []

        placeholders = ", ".join("?" for _ in participant_ids)
        try:
            rows = self._conn.execute(
                f"SELECT id, discord, url_key FROM participants WHERE id IN ({placeholders})",
                list(participant_ids),
            ).fetchall()
        except sqlite3.Error as exc:
            raise DirectoryError(f"Lookup of participants {participant_ids} failed: {exc}") from exc

        found = {r[0]: (r[1] or "", r[2] or "") for r in rows}
        discords = [found.get(pid, ("", ""))[0] for pid in participant_ids]
        url_keys = [found.get(pid, ("", ""))[1] for pid in participant_ids]
        return discords, url_keys

    def upsert_participant(
        self,
        participant_id: str,
        team_id: str | None = None,
        discord: str = "",
        url_key: str = "",
    ) -> None:
        try:
            self._conn.execute(
                "INSERT INTO participants (id, team_id, discord, url_key) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "team_id = excluded.team_id, discord = excluded.discord, url_key = excluded.url_key",
                (participant_id, team_id, discord, url_key),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise DirectoryError(f"Cannot store participant {participant_id}: {exc}") from exc
