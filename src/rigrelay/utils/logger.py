"""
RIGRELAY - Logging System

Provides structured logging with Rich formatting for terminal output.
"""

import logging
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

RELAY_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red bold",
    "critical": "red bold reverse",
})

console = Console(theme=RELAY_THEME)


class RelayLogger(logging.Logger):
    """Extended logger with relay-specific methods."""

    def inbound(self, msg_id: Any, method: str, params: Optional[dict] = None):
        """Log a received protocol message."""
        self.info(f"-> Received [ID: {msg_id}]: Method={method}, Params={params or {}}")

    def outbound(self, kind: str, msg_id: Any = None, detail: str = ""):
        """Log a reply being sent."""
        suffix = f" ({detail})" if detail else ""
        self.debug(f"<- Sending {kind} [ID: {msg_id}]{suffix}")

    def connection(self, event: str, peer: str = ""):
        """Log a connection lifecycle event."""
        self.info(f"Client {event}.{' ' + peer if peer else ''}")

    def banner(self, ws_url: str, http_url: str):
        """Print the startup banner."""
        console.rule("[bold]RIGRELAY[/bold]", style="cyan")
        console.print(f"[info]WebSocket server started on[/] {ws_url}")
        console.print(f"[info]HTTP server running. Access local files at[/] {http_url}")
        console.rule(style="cyan")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    verbose: bool = False
) -> RelayLogger:
    """
    Set up logging for RIGRELAY.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for log output
        verbose: Enable verbose debug output
    """
    logging.setLoggerClass(RelayLogger)

    relay_logger = logging.getLogger("rigrelay")
    relay_logger.__class__ = RelayLogger

    relay_logger.handlers.clear()

    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    relay_logger.setLevel(log_level)

    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
    )
    rich_handler.setLevel(log_level)
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    relay_logger.addHandler(rich_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        ))
        relay_logger.addHandler(file_handler)

    return relay_logger


# Default logger instance
logger: RelayLogger = setup_logging()
