"""
Reconnecting websocket client for the chat relay.
"""
import asyncio
import json
import logging
from enum import Enum
from typing import Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

logger = logging.getLogger(__name__)

MessageCallback = Callable[[dict], None]


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class RelayChannel:
    """
    Text channel to the other role through the relay.

    Inbound chat messages are delivered to `on_message` as {"role", "text"}
    dicts. Sending while disconnected drops the message and returns False.
    The connection is re-established with exponential backoff until close().
    """

    def __init__(self, relay_url: str, role: str, on_message: MessageCallback,
                 reconnect_initial_s: float = 0.5, reconnect_max_s: float = 10.0):
        self.url = f"{relay_url.rstrip('/')}/ws/{role}"
        self.role = role
        self.on_message = on_message
        self.reconnect_initial_s = reconnect_initial_s
        self.reconnect_max_s = reconnect_max_s

        self.state = ConnectionState.DISCONNECTED
        self.dropped_count = 0
        self._ws = None
        self._task: Optional[asyncio.Task] = None
        self._connected = asyncio.Event()

    async def start(self) -> None:
        """Start the background connection task."""
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def wait_connected(self, timeout: Optional[float] = None) -> bool:
        try:
            await asyncio.wait_for(self._connected.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def next_delay(self, delay: float) -> float:
        """Backoff delay after `delay`, capped at reconnect_max_s."""
        return min(delay * 2, self.reconnect_max_s)

    async def _run(self) -> None:
        delay = self.reconnect_initial_s
        while self.state is not ConnectionState.CLOSED:
            self.state = ConnectionState.CONNECTING
            try:
                async with websockets.connect(self.url) as ws:
                    self._ws = ws
                    self.state = ConnectionState.CONNECTED
                    self._connected.set()
                    delay = self.reconnect_initial_s
                    logger.info(f"✅ Connected to relay as {self.role}: {self.url}")
                    async for raw in ws:
                        self.dispatch(raw)
            except (OSError, WebSocketException) as e:
                logger.warning(f"Relay connection lost: {e}")
            finally:
                self._ws = None
                self._connected.clear()

            if self.state is ConnectionState.CLOSED:
                break
            self.state = ConnectionState.DISCONNECTED
            logger.info(f"Reconnecting to relay in {delay:.1f}s")
            await asyncio.sleep(delay)
            delay = self.next_delay(delay)

    def dispatch(self, raw) -> None:
        """Route one frame from the relay."""
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            logger.warning(f"Ignoring non-JSON frame from relay: {raw!r}")
            return
        if not isinstance(data, dict):
            logger.warning(f"Ignoring unexpected frame from relay: {data!r}")
            return

        msg_type = data.get("type")
        if msg_type == "message":
            self.on_message({"role": data.get("role", "unknown"), "text": data.get("text", "")})
        elif msg_type == "status":
            logger.debug(f"Relay status: {data}")
        elif msg_type == "error":
            logger.warning(f"Relay error: {data.get('message')}")
        else:
            logger.warning(f"Unknown message type: {msg_type}")

    async def send(self, text: str) -> bool:
        """Send text to the other role; False if the message was dropped."""
        ws = self._ws
        if ws is None or self.state is not ConnectionState.CONNECTED:
            self.dropped_count += 1
            logger.warning(f"Not connected to relay ({self.state.value}), message dropped")
            return False
        try:
            await ws.send(json.dumps({"text": text}))
        except ConnectionClosed as e:
            self.dropped_count += 1
            logger.warning(f"Relay closed while sending, message dropped: {e}")
            return False
        return True

    async def close(self) -> None:
        """Stop reconnecting and close the connection."""
        self.state = ConnectionState.CLOSED
        ws = self._ws
        if ws is not None:
            await ws.close()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Relay channel closed")
