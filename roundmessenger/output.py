"""Rich console output for resolved messages and dispatch results."""

import logging

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from roundmessenger.dispatch import assign_round_robin
from roundmessenger.models import AddressedMessage, DispatchReport

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _message_preview(body: str, max_len: int = 120) -> str:
    """First paragraph of a message, truncated."""
    first = body.split("\n\n", 1)[0]
    if len(first) > max_len:
        first = first[: max_len - 3] + "..."
    return first


def print_dry_run(messages: list[AddressedMessage], identity_names: list[str]) -> None:
    """Show every message and which identity would deliver it, without sending."""
    console.print(Rule(f"[bold cyan]Dry run: {len(messages)} messages[/bold cyan]"))
    assignment = assign_round_robin(len(messages), len(identity_names))
    for k, (message, slot) in enumerate(zip(messages, assignment)):
        console.print(
            Panel(
                Text(message.body),
                title=f"[bold]#{k}[/bold] to {message.recipient}",
                subtitle=identity_names[slot],
                border_style="dim",
            )
        )


def print_dispatch_summary(report: DispatchReport) -> None:
    """Print a per-identity table of delivered and failed messages."""
    table = Table(title="Dispatch summary")
    table.add_column("Identity", style="bold")
    table.add_column("Sent", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")

    for name in report.sent:
        table.add_row(name, str(report.sent[name]), str(report.failed.get(name, 0)))

    table.add_row("total", str(report.total_sent), str(report.total_failed), style="bold")
    console.print(table)


def print_message_list(messages: list[AddressedMessage]) -> None:
    """Compact one-line-per-message listing, used with --verbose."""
    for message in messages:
        console.print(f"[dim]{message.recipient}[/dim] {escape(_message_preview(message.body))}")
