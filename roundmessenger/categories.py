"""Venue categories: first-match-wins regex rules mapping a venue to a Zoom link."""

import logging
import re
from pathlib import Path

import yaml

from roundmessenger.models import Category

logger = logging.getLogger(__name__)


class CategoryConfigError(Exception):
    """Raised when a category rule cannot be built."""


class CategoryNotFoundError(Exception):
    """Raised when no category matches a venue name. Never fatal."""

    def __init__(self, venue_name: str) -> None:
        self.venue_name = venue_name
        super().__init__(f"No category matches venue {venue_name!r}")


class Categories:
    """Ordered category rules. Earlier rules take priority."""

    def __init__(self, rules: list[Category] | None = None) -> None:
        self._rules: list[tuple[re.Pattern[str], Category]] = []
        for category in rules or []:
            try:
                compiled = re.compile(category.pattern, re.IGNORECASE)
            except re.error as exc:
                raise CategoryConfigError(
                    f"Category {category.name!r} has an invalid pattern {category.pattern!r}: {exc}"
                ) from exc
            self._rules.append((compiled, category))

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def rules(self) -> list[Category]:
        return [category for _, category in self._rules]

    def lookup(self, venue_name: str) -> Category:
        """Return the first category whose pattern matches the whole venue name.

        Raises:
            CategoryNotFoundError: If the name is empty or nothing matches.
        """
        if venue_name:
            for pattern, category in self._rules:
                if pattern.fullmatch(venue_name):
                    return category
        raise CategoryNotFoundError(venue_name)


def load_categories(path: Path) -> Categories:
    """Load category rules from a YAML document, keeping file order.

    Expected shape::

        categories:
          - name: main
            pattern: "Room [A-F]"
            url: https://zoom.us/j/123

    Raises FileNotFoundError if the file is missing.
    """
    if not path.exists():
        raise FileNotFoundError(f"Categories file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return parse_categories(raw.get("categories") or [])


def parse_categories(raw_rules: list[dict]) -> Categories:
    rules: list[Category] = []
    for i, rule in enumerate(raw_rules):
        if "pattern" not in rule:
            raise CategoryConfigError(f"Category #{i + 1} has no pattern")
        rules.append(
            Category(
                name=str(rule.get("name", f"category-{i + 1}")),
                pattern=str(rule["pattern"]),
                url=str(rule.get("url") or ""),
            )
        )
    logger.debug("Loaded %d categories", len(rules))
    return Categories(rules)
