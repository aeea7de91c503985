#!/usr/bin/env python3
"""
SignChat relay - FastAPI websocket server forwarding chat text between
the teacher and the student.
"""

import json
import logging
from typing import Dict, Set

from dotenv import load_dotenv
from fastapi import FastAPI, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, ValidationError, field_validator

from .config import ROLES, load_config

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class ChatPayload(BaseModel):
    """Text sent by a client."""
    text: str

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("text must not be blank")
        return value


class ChatRelay:
    """Tracks connections per role and forwards messages to the other role."""

    def __init__(self):
        self.connections: Dict[str, Set[WebSocket]] = {role: set() for role in ROLES}

    async def connect(self, websocket: WebSocket, role: str):
        """Handle new WebSocket connection"""
        await websocket.accept()
        self.connections[role].add(websocket)
        logger.info(f"🔌 {role} connected ({len(self.connections[role])} active)")
        try:
            await websocket.send_json({"type": "status", "connected": True, "role": role})
        except Exception:
            self.disconnect(websocket, role)
            raise

    def disconnect(self, websocket: WebSocket, role: str):
        """Handle WebSocket disconnection"""
        self.connections[role].discard(websocket)
        logger.info(f"🔌 {role} disconnected ({len(self.connections[role])} active)")

    @staticmethod
    def parse(message: str) -> ChatPayload:
        """Accept {"text": ...} JSON objects or plain text frames."""
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            return ChatPayload(text=message)
        if isinstance(data, dict):
            return ChatPayload(**data)
        if isinstance(data, str):
            return ChatPayload(text=data)
        # Bare numbers and the like are still chat text
        return ChatPayload(text=message)

    async def handle_message(self, websocket: WebSocket, role: str, message: str):
        """Validate a client message and forward it"""
        try:
            payload = self.parse(message)
        except (ValidationError, TypeError) as e:
            logger.warning(f"Rejected message from {role}: {e}")
            await websocket.send_json({"type": "error", "message": "expected {\"text\": <non-blank string>}"})
            return

        targets = [r for r in ROLES if r != role]
        delivered = 0
        for target in targets:
            delivered += await self.broadcast(target, {"type": "message", "role": role, "text": payload.text})
        logger.info(f"💬 {role} -> {', '.join(targets)}: {payload.text!r} ({delivered} delivered)")

    async def broadcast(self, role: str, message: dict) -> int:
        """Send to every connection of a role; returns how many succeeded"""
        disconnected = set()
        delivered = 0
        for connection in self.connections[role]:
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping {role} connection: {e}")
                disconnected.add(connection)

        # Remove disconnected clients
        for conn in disconnected:
            self.connections[role].discard(conn)
        return delivered

    def counts(self) -> Dict[str, int]:
        return {role: len(conns) for role, conns in self.connections.items()}


def create_app() -> FastAPI:
    """Build the relay application with its own connection registry."""
    app = FastAPI(title="SignChat Relay")
    relay = ChatRelay()
    app.state.relay = relay

    @app.get("/health")
    async def health():
        return {"status": "ok", "connections": relay.counts()}

    @app.websocket("/ws/{role}")
    async def websocket_endpoint(websocket: WebSocket, role: str):
        """WebSocket endpoint handler"""
        role = role.lower()
        if role not in ROLES:
            logger.warning(f"Rejected connection for unknown role {role!r}")
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        try:
            await relay.connect(websocket, role)
            while True:
                message = await websocket.receive_text()
                await relay.handle_message(websocket, role, message)
        except WebSocketDisconnect:
            relay.disconnect(websocket, role)
        except Exception as e:
            logger.error(f"WebSocket error: {e}")
            relay.disconnect(websocket, role)

    return app


app = create_app()


def main():
    """Run the relay with uvicorn."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    cfg = load_config()
    logger.info(f"🚀 Starting SignChat relay on {cfg.relay.host}:{cfg.relay.port}")
    uvicorn.run(app, host=cfg.relay.host, port=cfg.relay.port)


if __name__ == "__main__":
    main()
