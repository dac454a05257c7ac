"""
RIGRELAY - DevTools Injection Relay
===================================

A small relay server that:
- Serves the browser-side entry files over HTTP
- Speaks a minimal DevTools-shaped JSON protocol over a WebSocket
- Assembles a layered, base64-encoded payload script on request
- Returns it inside a synthetic ``Network.requestWillBeSent`` event

Modules:
--------
- config: Process settings and the updater endpoint file
- content: ContentStore, the immutable payload ingredients
- protocol: Inbound message parsing and outbound reply shapes
- assembly: Placeholder substitution and the encoding pipeline
- handler: Per-message dispatch
- server: aiohttp WebSocket and static file servers
- utils: Logging

CLI Usage:
----------
    rigrelay serve --content-root ./rigtools
"""

__version__ = "1.0.0"

from .assembly import PayloadAssembler
from .content import ContentStore
from .handler import RelayProtocol
from .server import RelayServer

__all__ = [
    "ContentStore",
    "PayloadAssembler",
    "RelayProtocol",
    "RelayServer",
    "__version__",
]
