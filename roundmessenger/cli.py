"""Click CLI: fetches the draw, resolves recipients, and dispatches round messages."""

import asyncio
import logging
import sys
from pathlib import Path

import aiohttp
import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from config.config_loader import AppConfig, ConfigError, load_config
from roundmessenger.categories import Categories, CategoryConfigError, load_categories
from roundmessenger.directory import DirectoryError, ParticipantDirectory
from roundmessenger.dispatch import RoundRobinDispatcher
from roundmessenger.draw import DrawResolutionError, resolve_draw
from roundmessenger.healthcheck import run_health_checks
from roundmessenger.messengers.base import Messenger, MessengerError
from roundmessenger.messengers.discord import DiscordMessenger
from roundmessenger.models import Room, build_venue_map
from roundmessenger.output import print_dispatch_summary, print_dry_run, print_message_list
from roundmessenger.tabbycat import TabbycatClient, TabbycatError

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _identity_name(index: int) -> str:
    return "bot" if index == 0 else f"helper-{index}"


def _build_messengers(config: AppConfig) -> dict[str, Messenger]:
    """One DiscordMessenger per configured token, primary bot first."""
    messengers: dict[str, Messenger] = {}
    for i, token in enumerate(config.discord.bot_tokens):
        name = _identity_name(i)
        try:
            messengers[name] = DiscordMessenger(name, token, timeout_sec=config.discord.timeout_sec)
        except MessengerError as exc:
            logging.warning("Failed to set up identity '%s': %s", name, exc)
    return messengers


def _resolve_categories(config: AppConfig, categories_arg: str | None) -> Categories:
    """--categories overrides the settings default; no file means no Zoom links."""
    path = Path(categories_arg) if categories_arg else config.defaults.categories
    if path is None:
        logger.info("No categories configured, messages will carry no Zoom links")
        return Categories()
    return load_categories(path)


async def _collect_rooms(client: TabbycatClient, rounds: tuple[int, ...]) -> list[Room]:
    """Fetch every requested round and concatenate the pairings in round order."""
    rooms: list[Room] = []
    for round_seq in rounds:
        rooms.extend(await client.get_draw(round_seq))
    logger.debug("Fetched %d pairings", len(rooms))
    return rooms


async def _check_and_filter_identities(messengers: dict[str, Messenger]) -> dict[str, Messenger]:
    """Verify every bot token and ask the user what to do on failures.

    Returns the identities that passed. Exits if the user declines to
    continue or none pass.
    """
    console.print("\n[bold]Checking bot identities...[/bold]")
    results = await run_health_checks(messengers)

    failed_names: list[str] = []
    for name in messengers:
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {escape(short_err)}")
            failed_names.append(name)

    if not failed_names:
        console.print()
        return messengers

    working = {n: m for n, m in messengers.items() if n not in failed_names}

    if not working:
        console.print("\n[bold red]Error:[/bold red] No bot identity passed the health check.")
        sys.exit(1)

    console.print(
        f"\n[yellow]{len(failed_names)} identity(ies) failed:[/yellow] {', '.join(failed_names)}"
    )
    if not click.confirm("Continue with working identities only?", default=True):
        sys.exit(0)

    console.print()
    return working


async def _run(
    config: AppConfig,
    rounds: tuple[int, ...],
    categories: Categories,
    db_path: Path,
    dry_run: bool,
    skip_health_check: bool,
    verbose: bool,
) -> None:
    timeout = aiohttp.ClientTimeout(total=config.tabbycat.timeout_sec)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        tabbycat = TabbycatClient(
            config.tabbycat.api_key,
            config.tabbycat.url,
            config.tabbycat.slug,
            session,
            side_names=config.side_names,
        )
        rooms = await _collect_rooms(tabbycat, rounds)
        venues = await tabbycat.get_venues()
        logger.debug("Fetched %d venues", len(venues))

    directory = ParticipantDirectory.open(db_path)
    try:
        messages = resolve_draw(
            rooms,
            build_venue_map(venues),
            categories,
            directory,
            tabbycat.private_url_from_key,
        )
    finally:
        directory.close()

    console.print(
        f"\n[bold cyan]Round messenger[/bold cyan]: rounds {', '.join(map(str, rounds))}, "
        f"{len(rooms)} rooms, {len(messages)} messages"
    )
    if verbose:
        print_message_list(messages)

    messengers = _build_messengers(config)
    if not messengers:
        console.print("[bold red]Error:[/bold red] No Discord bot token available. Check your .env.")
        sys.exit(1)

    if dry_run:
        print_dry_run(messages, list(messengers))
        return

    working = messengers
    try:
        if not skip_health_check:
            working = await _check_and_filter_identities(messengers)

        dispatcher = RoundRobinDispatcher(list(working.values()))
        report = await dispatcher.dispatch(messages)
    finally:
        await asyncio.gather(*(m.close() for m in messengers.values()))

    print_dispatch_summary(report)


@click.command()
@click.option("--round", "rounds", multiple=True, type=int, required=True,
              help="Round sequence number to notify; repeat for several rounds")
@click.option("--env", "env_file", default=".env", show_default=True,
              help="File to read environment variables from")
@click.option("--db", "db_path", default=None,
              help="SQLite participant database (default: <slug>.db)")
@click.option("--categories", "categories_path", default=None, type=click.Path(exists=True),
              help="YAML file of venue categories and their Zoom links")
@click.option("--dry-run", is_flag=True, default=False,
              help="Print the messages and their bot assignment without sending")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip verifying bot tokens before sending")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def main(
    rounds: tuple[int, ...],
    env_file: str,
    db_path: str | None,
    categories_path: str | None,
    dry_run: bool,
    skip_health_check: bool,
    verbose: bool,
) -> None:
    """Send every speaker and adjudicator their room and role for a round.

    \b
    Examples:
      roundmessenger --round 3
      roundmessenger --round 4 --round 5 --categories categories.yaml
      roundmessenger --round 1 --dry-run --verbose
    """
    _setup_logging(verbose)

    if not load_dotenv(env_file):
        logger.warning("Environment file %s not found or empty", env_file)

    try:
        config = load_config()
        categories = _resolve_categories(config, categories_path)
    except (FileNotFoundError, ConfigError, CategoryConfigError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        sys.exit(1)

    effective_db = Path(db_path) if db_path else config.defaults.database

    try:
        asyncio.run(
            _run(
                config=config,
                rounds=rounds,
                categories=categories,
                db_path=effective_db,
                dry_run=dry_run,
                skip_health_check=skip_health_check,
                verbose=verbose,
            )
        )
    except (TabbycatError, DirectoryError, DrawResolutionError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
