"""Load settings.yaml into typed dataclasses. Resolves secrets from the environment."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


class ConfigError(Exception):
    """Raised when a required setting or environment variable is missing."""


@dataclass
class TabbycatConfig:
    url: str
    api_key: str
    slug: str
    timeout_sec: int = 30


@dataclass
class DiscordConfig:
    bot_tokens: list[str] = field(default_factory=list)  # primary first, then helpers
    timeout_sec: int = 15


@dataclass
class DefaultsConfig:
    database: Path
    categories: Path | None = None


@dataclass
class AppConfig:
    tabbycat: TabbycatConfig
    discord: DiscordConfig
    defaults: DefaultsConfig
    side_names: dict[str, str] = field(default_factory=dict)


def _require_env(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigError(f"Environment variable {name} is not set. Add it to your .env")
    return value


def _bot_tokens(primary_env: str, helper_prefix: str) -> list[str]:
    """Primary token, then helpers numbered from 1 until the first missing one."""
    tokens = [_require_env(primary_env)]
    i = 1
    while True:
        token = os.environ.get(f"{helper_prefix}{i}", "").strip()
        if not token:
            break
        tokens.append(token)
        i += 1
    logger.debug("Found %d Discord helper token(s)", len(tokens) - 1)
    return tokens


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Raises ConfigError if a required environment variable is unset.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    tabbycat_raw = raw["tabbycat"]
    tabbycat = TabbycatConfig(
        url=_require_env(tabbycat_raw["url_env"]),
        api_key=_require_env(tabbycat_raw["api_key_env"]),
        slug=_require_env(tabbycat_raw["slug_env"]),
        timeout_sec=int(tabbycat_raw.get("timeout_sec", 30)),
    )

    discord_raw = raw["discord"]
    discord = DiscordConfig(
        bot_tokens=_bot_tokens(discord_raw["bot_token_env"], discord_raw["helper_token_prefix"]),
        timeout_sec=int(discord_raw.get("timeout_sec", 15)),
    )

    defaults_raw = raw.get("defaults") or {}
    categories_raw = defaults_raw.get("categories")
    defaults = DefaultsConfig(
        database=Path(str(defaults_raw.get("database", "{slug}.db")).format(slug=tabbycat.slug)),
        categories=Path(categories_raw) if categories_raw else None,
    )

    side_names = {str(k): str(v) for k, v in (raw.get("sides") or {}).items()}

    logger.info(
        "Tournament %s at %s, %d sending identities",
        tabbycat.slug,
        tabbycat.url,
        len(discord.bot_tokens),
    )

    return AppConfig(
        tabbycat=tabbycat,
        discord=discord,
        defaults=defaults,
        side_names=side_names,
    )
