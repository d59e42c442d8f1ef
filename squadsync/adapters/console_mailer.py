"""
Simulated mail delivery that prints messages to the terminal.
"""

from typing import List, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

console = Console()


class ConsoleMailer:
    """
    Mail transport that renders each message instead of sending it.

    Useful for local runs without an SMTP server. Sent messages are kept in
    ``outbox`` for inspection.
    """

    def __init__(self, output: Console | None = None):
        self.console = output or console
        self.outbox: List[Tuple[str, str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.outbox.append((recipient, subject, body))
        self.console.print(Panel(
            Text(body),
            title=f"[bold]To:[/bold] {escape(recipient)}",
            subtitle=escape(subject),
            expand=False
        ))
