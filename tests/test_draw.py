"""Tests for roundmessenger/draw.py."""

import logging

import pytest

from roundmessenger.categories import Categories
from roundmessenger.directory import DirectoryError
from roundmessenger.draw import DrawResolutionError, resolve_draw
from roundmessenger.models import Room
from tests.conftest import MockDirectory, fake_private_url


def test_end_to_end_single_room(sample_room, sample_directory, zoom_categories, caplog):
    with caplog.at_level(logging.WARNING):
        messages = resolve_draw(
            [sample_room], {"1": "Room A"}, zoom_categories, sample_directory, fake_private_url
        )

    # 4 speakers + chair; the trainee has no discord id
    assert len(messages) == 5
    speakers, judges = messages[:4], messages[4:]

    assert [m.recipient for m in speakers] == [1001, 1002, 1101, 1102]
    for m in speakers:
        assert "Room A" in m.body
        assert "The link to your Zoom room is https://zoom/a." in m.body
    assert all("**Proposition**" in m.body for m in speakers[:2])
    assert all("**Opposition**" in m.body for m in speakers[2:])

    assert judges[0].recipient == 555
    assert judges[0].body.startswith(
        "In this round, you will be judging as **the chair** in room **Room A**."
    )
    assert any("Adjudicator 101 has no discord ID." in msg for msg in caplog.messages)


def test_speaker_message_exact_text(sample_room, sample_directory):
    messages = resolve_draw([sample_room], {"1": "Room A"}, Categories(), sample_directory, fake_private_url)
    assert messages[0].body == "In this round, you will be speaking in **Proposition** in room **Room A**."


def test_private_url_appended_after_zoom_link(zoom_categories):
    room = Room(venue_id="1", team_ids=["10"], side_names=["Proposition"], chair_id="100")
    directory = MockDirectory(teams={"10": [("1001", "key1")]}, people={"100": ("555", "key2")})

    messages = resolve_draw([room], {"1": "Room B"}, zoom_categories, directory, fake_private_url)

    assert messages[0].body.endswith(
        "\n\nThe link to your Zoom room is https://zoom/a."
        "\n\nYour private URL is https://tab.example.org/wudc/privateurls/key1/."
    )
    assert messages[1].body.endswith("privateurls/key2/.")


def test_speakers_with_empty_handle_get_no_message():
    room = Room(venue_id="1", team_ids=["10"], side_names=["Proposition"], chair_id="100")
    directory = MockDirectory(
        teams={"10": [("1001", ""), ("", "k"), ("1003", "")]},
        people={"100": ("555", "")},
    )
    messages = resolve_draw([room], {"1": "Room A"}, Categories(), directory, fake_private_url)
    assert [m.recipient for m in messages] == [1001, 1003, 555]


def test_judge_positions_follow_combined_list():
    room = Room(
        venue_id="1",
        team_ids=[],
        side_names=[],
        chair_id="c",
        panellist_ids=["p1", "p2"],
        trainee_ids=["t1"],
    )
    directory = MockDirectory(people={
        "c": ("1", ""), "p1": ("2", ""), "p2": ("3", ""), "t1": ("4", ""),
    })
    messages = resolve_draw([room], {"1": "Room A"}, Categories(), directory, fake_private_url)

    positions = [m.body.split("**")[1] for m in messages]
    assert positions == ["the chair", "a panellist", "a panellist", "a trainee"]


def test_trainee_without_panellists_labelled_trainee():
    room = Room(venue_id="1", chair_id="c", trainee_ids=["t1"])
    directory = MockDirectory(people={"c": ("1", ""), "t1": ("2", "")})
    messages = resolve_draw([room], {"1": "Room A"}, Categories(), directory, fake_private_url)
    assert "**a trainee**" in messages[1].body


def test_skipped_judge_does_not_shift_positions():
    room = Room(venue_id="1", chair_id="c", panellist_ids=["p1"], trainee_ids=["t1"])
    directory = MockDirectory(people={"c": ("", ""), "p1": ("2", ""), "t1": ("3", "")})
    messages = resolve_draw([room], {"1": "Room A"}, Categories(), directory, fake_private_url)
    assert [m.body.split("**")[1] for m in messages] == ["a panellist", "a trainee"]


def test_rooms_keep_input_order_speakers_before_judges():
    rooms = [
        Room(venue_id="1", team_ids=["10"], side_names=["Proposition"], chair_id="100"),
        Room(venue_id="2", team_ids=["20"], side_names=["Opposition"], chair_id="200"),
    ]
    directory = MockDirectory(
        teams={"10": [("11", "")], "20": [("21", "")]},
        people={"100": ("12", ""), "200": ("22", "")},
    )
    messages = resolve_draw(rooms, {"1": "A", "2": "B"}, Categories(), directory, fake_private_url)
    assert [m.recipient for m in messages] == [11, 12, 21, 22]


def test_unmapped_venue_degrades_to_no_link(zoom_categories, caplog):
    room = Room(venue_id="99", team_ids=["10"], side_names=["Proposition"], chair_id="100")
    directory = MockDirectory(teams={"10": [("11", "")]}, people={"100": ("12", "")})

    with caplog.at_level(logging.WARNING):
        messages = resolve_draw([room], {}, zoom_categories, directory, fake_private_url)

    assert len(messages) == 2
    assert "in room ****." in messages[0].body
    assert "Zoom" not in messages[0].body
    assert any("No category matches" in msg for msg in caplog.messages)


def test_no_category_match_is_not_fatal(zoom_categories):
    room = Room(venue_id="1", team_ids=["10"], side_names=["Proposition"], chair_id="100")
    directory = MockDirectory(teams={"10": [("11", "")]}, people={"100": ("12", "")})
    messages = resolve_draw([room], {"1": "Library"}, zoom_categories, directory, fake_private_url)
    assert len(messages) == 2
    assert all("Zoom" not in m.body for m in messages)


def test_malformed_speaker_handle_is_fatal():
    room = Room(venue_id="7", team_ids=["10"], side_names=["Proposition"], chair_id="100")
    directory = MockDirectory(teams={"10": [("someone#1234", "")]})
    with pytest.raises(DrawResolutionError, match="Room A") as exc_info:
        resolve_draw([room], {"7": "Room A"}, Categories(), directory, fake_private_url)
    assert exc_info.value.venue_id == "7"


def test_malformed_judge_handle_is_fatal():
    room = Room(venue_id="7", chair_id="100")
    directory = MockDirectory(people={"100": ("not-a-snowflake", "")})
    with pytest.raises(DrawResolutionError):
        resolve_draw([room], {"7": "Room A"}, Categories(), directory, fake_private_url)


def test_directory_failure_is_fatal():
    class BrokenDirectory(MockDirectory):
        def participants_from_team_id(self, team_id):
            raise DirectoryError("database is locked")

    room = Room(venue_id="7", team_ids=["10"], side_names=["Proposition"])
    with pytest.raises(DrawResolutionError, match="database is locked") as exc_info:
        resolve_draw([room], {"7": "Room A"}, Categories(), BrokenDirectory(), fake_private_url)
    assert isinstance(exc_info.value.__cause__, DirectoryError)


def test_team_side_mismatch_is_fatal():
    room = Room(venue_id="7", team_ids=["10", "11"], side_names=["Proposition"])
    with pytest.raises(DrawResolutionError, match="side names"):
        resolve_draw([room], {"7": "Room A"}, Categories(), MockDirectory(), fake_private_url)


def test_empty_draw():
    assert resolve_draw([], {}, Categories(), MockDirectory(), fake_private_url) == []
