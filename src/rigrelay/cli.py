#!/usr/bin/env python3
"""
RIGRELAY CLI
============

Usage:
    rigrelay serve                          # WebSocket :8080, HTTP :9123
    rigrelay serve --content-root ./rigtools
    rigrelay render --frame-id F1 -o out.js # Assemble one payload offline
    rigrelay check                          # Verify content files

Exit codes:
    0  graceful shutdown
    1  missing content, port in use, or forced shutdown
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from rigrelay import __version__
from rigrelay.assembly import PayloadAssembler, decode_javascript_url
from rigrelay.config import Settings, load_endpoint
from rigrelay.content import ContentPaths, ContentStore
from rigrelay.errors import ContentLoadError, ListenError
from rigrelay.handler import RelayProtocol
from rigrelay.protocol import injection_event
from rigrelay.server import RelayServer
from rigrelay.utils.logger import logger, setup_logging

app = typer.Typer(
    name="rigrelay",
    help="RIGRELAY - DevTools injection relay",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _settings(**overrides: Any) -> Settings:
    """Environment settings with CLI flags taking precedence."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def _load_store(settings: Settings) -> ContentStore:
    endpoint = load_endpoint(settings.resolved_config_file(), settings.default_endpoint)
    return ContentStore.load(settings.content_root, endpoint.endpoint)


# ============== SERVE ==============

@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    ws_port: Optional[int] = typer.Option(None, "--ws-port", help="WebSocket port"),
    http_port: Optional[int] = typer.Option(None, "--http-port", help="Static HTTP port"),
    content_root: Optional[Path] = typer.Option(
        None, "--content-root", "-r",
        help="Directory holding payload.mjs, payloads/ and entry/"
    ),
    static_root: Optional[Path] = typer.Option(
        None, "--static-root", "-s",
        help="Directory served over HTTP"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Endpoint JSON file (default: server_config.json in content root)"
    ),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also log to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Run the WebSocket relay and the static file server."""
    settings = _settings(
        host=host,
        ws_port=ws_port,
        http_port=http_port,
        content_root=content_root,
        static_root=static_root,
        config_file=config,
        log_file=log_file,
    )
    setup_logging(settings.log_level, settings.log_file, verbose)

    try:
        store = _load_store(settings)
    except ContentLoadError as e:
        logger.error(f"FATAL ERROR: {e}")
        console.print(
            "[red][!] Ensure payload.mjs, payloads/index.js, payloads/index.html "
            "and entry/entry.html exist under the content root.[/red]"
        )
        raise typer.Exit(code=1)

    protocol = RelayProtocol(PayloadAssembler(store), settings.session_id)
    server = RelayServer(
        protocol,
        static_root=settings.static_root,
        host=settings.host,
        ws_port=settings.ws_port,
        http_port=settings.http_port,
    )

    try:
        graceful = asyncio.run(server.run(settings.shutdown_grace))
    except ListenError as e:
        logger.error(f"Cannot start server: {e}")
        raise typer.Exit(code=1)

    raise typer.Exit(code=0 if graceful else 1)


# ============== UTILITY COMMANDS ==============

@app.command()
def render(
    content_root: Optional[Path] = typer.Option(None, "--content-root", "-r"),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
    frame_id: Optional[str] = typer.Option(None, "--frame-id", help="frameId to echo"),
    url: bool = typer.Option(False, "--url", help="Emit the javascript: URL instead of the script"),
    event: bool = typer.Option(False, "--event", help="Emit the whole injection event as JSON"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file"),
):
    """Assemble one payload without starting the servers."""
    settings = _settings(content_root=content_root, config_file=config)
    try:
        store = _load_store(settings)
    except ContentLoadError as e:
        console.print(f"[red][!] {e}[/red]")
        raise typer.Exit(code=1)

    params = PayloadAssembler(store).assemble(frame_id)
    locator = params["request"]["url"]

    if event:
        text = json.dumps(injection_event(params, settings.session_id), indent=2)
    elif url:
        text = locator
    else:
        text = decode_javascript_url(locator)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]Payload written: {output} ({len(text)} chars)[/green]")
    else:
        typer.echo(text)


@app.command()
def check(
    content_root: Optional[Path] = typer.Option(None, "--content-root", "-r"),
    config: Optional[Path] = typer.Option(None, "--config", "-c"),
):
    """Check that every content file and the endpoint source are usable."""
    settings = _settings(content_root=content_root, config_file=config)
    root = settings.content_root

    table = Table(box=box.ROUNDED)
    table.add_column("Input", style="cyan")
    table.add_column("Path")
    table.add_column("Status")

    all_ok = True
    for name, rel in ContentPaths().items():
        path = root / rel
        if path.is_file() and path.stat().st_size > 0:
            status = f"[green]✓[/green] {path.stat().st_size} bytes"
        else:
            status = "[red]✗ missing or empty[/red]"
            all_ok = False
        table.add_row(name, str(path), status)

    endpoint = load_endpoint(settings.resolved_config_file(), settings.default_endpoint)
    source = "config" if not endpoint.is_fallback else f"default ({endpoint.source.value})"
    table.add_row("endpoint", endpoint.endpoint, source)

    console.print(table)

    if not all_ok:
        console.print("\n[red][!] Mandatory content is missing; serve would refuse to start.[/red]")
        raise typer.Exit(code=1)
    console.print("\n[green]All content present.[/green]")


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]RIGRELAY[/bold] v{__version__}")


# ============== ENTRY POINT ==============

def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
