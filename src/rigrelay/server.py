"""
RIGRELAY - Servers

Two aiohttp applications on separate ports:

- WebSocket relay: each connection is handled by its own task and its frames
  are processed one at a time, in arrival order.
- Static files: serves ``static_root`` with index fallback and permissive
  CORS headers.
"""

import asyncio
import json
import signal
from pathlib import Path
from typing import Optional

from aiohttp import WSCloseCode, WSMsgType, web

from rigrelay.errors import ListenError
from rigrelay.handler import RelayProtocol
from rigrelay.utils.logger import logger

INDEX_FILES = ("index.html", "index.htm")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "Origin, X-Requested-With, Content-Type, Accept",
}


@web.middleware
async def cors_middleware(request: web.Request, handler):
    """Attach CORS headers to every response, errors included."""
    try:
        response = await handler(request)
    except web.HTTPException as ex:
        ex.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


def resolve_static(root: Path, tail: str) -> Optional[Path]:
    """Map a request path to a file under ``root``; None when not servable."""
    root = root.resolve()
    try:
        candidate = (root / tail.lstrip("/")).resolve()
    except (OSError, ValueError):
        return None
    if not candidate.is_relative_to(root):
        return None

    if candidate.is_dir():
        for name in INDEX_FILES:
            index = candidate / name
            if index.is_file():
                return index
        return None

    return candidate if candidate.is_file() else None


class RelayServer:
    """
    Owns both listeners and every open WebSocket.

    Usage:
        server = RelayServer(protocol, static_root=Path("."))
        await server.start()
        await server.serve_forever()
        graceful = await server.shutdown(grace=5.0)
    """

    def __init__(
        self,
        protocol: RelayProtocol,
        static_root: Path = Path("."),
        host: str = "0.0.0.0",
        ws_port: int = 8080,
        http_port: int = 9123,
    ):
        self.protocol = protocol
        self.static_root = Path(static_root)
        self.host = host
        self.ws_port = ws_port
        self.http_port = http_port

        self._ws_runner: Optional[web.AppRunner] = None
        self._http_runner: Optional[web.AppRunner] = None
        self._sockets: set[web.WebSocketResponse] = set()
        self._stop = asyncio.Event()

    # ===========================================
    # Applications
    # ===========================================

    def ws_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/{tail:.*}", self.websocket_handler)
        return app

    def http_app(self) -> web.Application:
        app = web.Application(middlewares=[cors_middleware])
        app.router.add_route("*", "/{tail:.*}", self.static_handler)
        return app

    async def websocket_handler(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        peer = request.remote or ""
        self._sockets.add(ws)
        logger.connection("connected", peer)

        try:
            async for msg in ws:
                if msg.type == WSMsgType.TEXT:
                    await self._dispatch(ws, msg.data)
                elif msg.type == WSMsgType.BINARY:
                    await self._dispatch(ws, msg.data.decode("utf-8", errors="replace"))
                elif msg.type == WSMsgType.ERROR:
                    logger.error(f"WebSocket connection error: {ws.exception()}")
        finally:
            self._sockets.discard(ws)
            logger.connection("disconnected", f"Code: {ws.close_code}")

        return ws

    async def _dispatch(self, ws: web.WebSocketResponse, text: str):
        reply = self.protocol.handle(text)
        if reply is None:
            return
        try:
            await ws.send_str(json.dumps(reply))
        except ConnectionResetError as e:
            logger.error(f"Failed to send response back to client: {e}")

    async def static_handler(self, request: web.Request) -> web.StreamResponse:
        if request.method == "OPTIONS":
            return web.Response(status=204)
        if request.method not in ("GET", "HEAD"):
            raise web.HTTPMethodNotAllowed(request.method, ["GET", "HEAD", "OPTIONS"])

        path = resolve_static(self.static_root, request.match_info["tail"])
        if path is None:
            raise web.HTTPNotFound()
        return web.FileResponse(path)

    # ===========================================
    # Lifecycle
    # ===========================================

    @property
    def open_connections(self) -> int:
        return len(self._sockets)

    async def _start_site(self, app: web.Application, port: int) -> web.AppRunner:
        runner = web.AppRunner(app, handle_signals=False)
        await runner.setup()
        site = web.TCPSite(runner, self.host, port)
        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            raise ListenError(port, e.strerror or str(e)) from e
        return runner

    async def start(self):
        """
        Bind both listeners.

        Raises:
            ListenError: naming the port that could not be bound.
        """
        self._ws_runner = await self._start_site(self.ws_app(), self.ws_port)
        try:
            self._http_runner = await self._start_site(self.http_app(), self.http_port)
        except ListenError:
            await self._ws_runner.cleanup()
            self._ws_runner = None
            raise

        # Port 0 binds an ephemeral port; report the real one
        self.ws_port = self._ws_runner.addresses[0][1]
        self.http_port = self._http_runner.addresses[0][1]
        logger.banner(
            f"ws://{self.host}:{self.ws_port}",
            f"http://{self.host}:{self.http_port}",
        )

    def request_stop(self):
        self._stop.set()

    async def serve_forever(self):
        """Block until SIGINT/SIGTERM or :meth:`request_stop`."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop)
            except NotImplementedError:
                logger.debug(f"Signal handler for {sig.name} unsupported on this platform")
        try:
            await self._stop.wait()
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.remove_signal_handler(sig)
                except NotImplementedError:
                    pass

    async def _close(self):
        for ws in list(self._sockets):
            await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")
        if self._ws_runner is not None:
            await self._ws_runner.cleanup()
            logger.info("WebSocket server closed.")
        if self._http_runner is not None:
            await self._http_runner.cleanup()
            logger.info("HTTP server closed.")

    async def shutdown(self, grace: float = 5.0) -> bool:
        """
        Close listeners and open connections.

        Returns:
            True when everything closed within ``grace`` seconds.
        """
        logger.info("Shutting down servers...")
        try:
            await asyncio.wait_for(self._close(), timeout=grace)
        except asyncio.TimeoutError:
            logger.error("Servers did not close gracefully, forcing exit.")
            return False
        finally:
            self._ws_runner = None
            self._http_runner = None
        return True

    async def run(self, grace: float = 5.0) -> bool:
        """Start, serve until stopped, then shut down."""
        await self.start()
        try:
            await self.serve_forever()
        finally:
            graceful = await self.shutdown(grace)
        return graceful
