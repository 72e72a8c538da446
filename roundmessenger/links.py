"""Trailing link paragraphs appended to every round message."""

from collections.abc import Callable


def compose_links(
    category_url: str,
    url_key: str,
    private_url_from_key: Callable[[str], str],
) -> str:
    """Return the meeting-link and private-URL paragraphs, in that order.

    Either paragraph is omitted when its input is empty, so two empty
    inputs give an empty string.
    """
    links = ""

    if category_url:
        links = f"\n\nThe link to your Zoom room is {category_url}."

    if url_key:
        links = f"{links}\n\nYour private URL is {private_url_from_key(url_key)}."

    return links
