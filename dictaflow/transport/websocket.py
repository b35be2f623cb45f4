"""aiohttp WebSocket implementation of the duplex channel."""

import asyncio
import logging
from typing import Dict, Optional

import aiohttp

from .base import AbstractDuplexChannel
from ..errors import TransportError

logger = logging.getLogger(__name__)


class AiohttpWebSocketChannel(AbstractDuplexChannel):
    """Duplex channel over an aiohttp client WebSocket.

    One task reads inbound frames, one task writes queued outbound frames so
    that binary frames leave in the order send() was called.
    """

    def __init__(self,
                 headers: Optional[Dict[str, str]] = None,
                 heartbeat: Optional[float] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        """Initialize the channel.

        Args:
            headers: Extra handshake headers, e.g. an Authorization token
            heartbeat: Ping interval in seconds, None disables pings
            session: Shared client session; one is created and owned otherwise
        """
        super().__init__()
        self.headers = headers or {}
        self.heartbeat = heartbeat
        self._session = session
        self._owns_session = session is None

        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._outbound: "asyncio.Queue[bytes]" = asyncio.Queue()
        self._receive_task: Optional[asyncio.Task] = None
        self._send_task: Optional[asyncio.Task] = None
        self._closing_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return not self._closed and self._ws is not None and not self._ws.closed

    @property
    def is_released(self) -> bool:
        return self._closed and (self._closing_task is None or self._closing_task.done())

    async def connect(self, endpoint: str) -> None:
        if self._closed:
            raise TransportError("Channel already closed")
        if self._ws is not None:
            raise TransportError("Channel already connected")

        if self._session is None:
            self._session = aiohttp.ClientSession()

        logger.info(f"Connecting to {endpoint}")
        try:
            ws = await self._session.ws_connect(endpoint, headers=self.headers, heartbeat=self.heartbeat)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error(f"WebSocket connection failed: {e}")
            self._closed = True
            await self._release_session()
            raise TransportError(f"Connection to {endpoint} failed: {e}", {"endpoint": endpoint}) from e
        except asyncio.CancelledError:
            logger.info(f"Connection to {endpoint} cancelled")
            self._closed = True
            await self._release_session()
            raise

        self._ws = ws
        if self._closed:
            # close() ran while the handshake was in flight
            await self._release()
            raise TransportError("Channel closed while connecting", {"endpoint": endpoint})

        self._receive_task = asyncio.create_task(self._receive_loop())
        self._send_task = asyncio.create_task(self._send_loop())
        logger.info(f"Connected to {endpoint}")

    def send(self, data: bytes) -> None:
        if not self.is_open:
            logger.debug(f"Dropping {len(data)} byte frame, channel not open")
            return
        self._outbound.put_nowait(data)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("Closing WebSocket channel")

        current = asyncio.current_task()
        for task in (self._receive_task, self._send_task):
            if task is not None and task is not current and not task.done():
                task.cancel()

        if self._ws is not None:
            self._closing_task = asyncio.ensure_future(self._release())

    async def wait_closed(self) -> None:
        if self._closing_task is not None:
            await self._closing_task

    async def _receive_loop(self) -> None:
        """Dispatch inbound text frames until the connection ends."""
        error: Optional[TransportError] = None
        try:
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._dispatch_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.BINARY:
                    logger.debug(f"Ignoring {len(msg.data)} byte binary frame from server")
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    error = TransportError(f"WebSocket error: {self._ws.exception()}")
                    break
        except (aiohttp.ClientError, ConnectionError) as e:
            error = TransportError(f"WebSocket receive failed: {e}")

        if error is None:
            error = TransportError("Connection closed by server", {"close_code": self._ws.close_code})
        self._fail(error)

    async def _send_loop(self) -> None:
        """Write queued binary frames in order."""
        while True:
            data = await self._outbound.get()
            try:
                await self._ws.send_bytes(data)
            except (aiohttp.ClientError, ConnectionError) as e:
                self._fail(TransportError(f"WebSocket send failed: {e}"))
                return

    def _fail(self, error: TransportError) -> None:
        if self._closed:
            return
        logger.error(f"WebSocket channel lost: {error}")
        self.close()
        self._dispatch_close(error)

    async def _release(self) -> None:
        if self._ws is not None and not self._ws.closed:
            try:
                await self._ws.close()
            except (aiohttp.ClientError, ConnectionError) as e:
                logger.warning(f"Error during WebSocket close: {e}")
        await self._release_session()

    async def _release_session(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
