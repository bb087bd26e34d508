"""Small HTTP server so hosting platforms see the bot as alive."""
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from aiohttp import web

from .logger import get_logger

logger = get_logger(__name__)

ROOT_TEXT = "🤖 Discord Boss Tracker Bot is running!"


class KeepAliveServer:
    """Serves GET / (plain text) and GET /status (JSON)."""

    def __init__(self, port: int = 3000, host: str = "0.0.0.0",
                 bot_user: Optional[Callable[[], Optional[str]]] = None):
        """
        Args:
            port: Port to listen on
            host: Interface to bind
            bot_user: Returns the logged-in bot's tag, or None before login
        """
        self.port = port
        self.host = host
        self.bot_user = bot_user or (lambda: None)
        self.started_at = time.monotonic()
        self._runner: Optional[web.AppRunner] = None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/", self.handle_root)
        app.router.add_get("/status", self.handle_status)
        return app

    async def handle_root(self, request: web.Request) -> web.Response:
        return web.Response(text=ROOT_TEXT)

    async def handle_status(self, request: web.Request) -> web.Response:
        return web.json_response({
            "status": "online",
            "uptime": round(time.monotonic() - self.started_at, 3),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "botUser": self.bot_user() or "Not logged in",
        })

    async def start(self) -> bool:
        """
        Start listening.

        Returns:
            False if the port could not be bound (logged; the bot keeps running)
        """
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            logger.error(f"[HTTP] Keep-alive server could not listen on port {self.port}: {e}", exc_info=True)
            await self._runner.cleanup()
            self._runner = None
            return False
        logger.info(f"[HTTP] Keep-alive server running on port {self.port}")
        return True

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually listened on (useful with port 0), or None when stopped."""
        if self._runner is None or not self._runner.addresses:
            return None
        return self._runner.addresses[0][1]

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("[HTTP] Keep-alive server stopped")
