"""
Test cases for the FastAPI chat relay.
"""
import sys
import unittest
from pathlib import Path

from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from signchat.relay import ChatPayload, ChatRelay, create_app


class TestChatPayload(unittest.TestCase):
    """Test inbound message parsing."""

    def test_json_object(self):
        self.assertEqual(ChatRelay.parse('{"text": " hi "}').text, "hi")

    def test_plain_text(self):
        self.assertEqual(ChatRelay.parse("hello there").text, "hello there")

    def test_json_string(self):
        self.assertEqual(ChatRelay.parse('"quoted"').text, "quoted")

    def test_blank_rejected(self):
        with self.assertRaises(ValueError):
            ChatPayload(text="   ")


class TestRelayServer(unittest.TestCase):
    """Test forwarding between teacher and student connections."""

    def setUp(self):
        # Enter the client so all websockets share one event loop (portal)
        self.client = TestClient(create_app())
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def connect(self, role):
        ws = self.client.websocket_connect(f"/ws/{role}")
        conn = ws.__enter__()
        self.addCleanup(ws.__exit__, None, None, None)
        self.assertEqual(conn.receive_json(), {"type": "status", "connected": True, "role": role})
        return conn

    def test_forwards_to_other_role(self):
        student = self.connect("student")
        teacher = self.connect("teacher")

        teacher.send_text('{"text": "good morning"}')
        self.assertEqual(student.receive_json(), {"type": "message", "role": "teacher", "text": "good morning"})

        # Sender never receives its own message back
        student.send_text("HELLO")
        self.assertEqual(teacher.receive_json(), {"type": "message", "role": "student", "text": "HELLO"})

    def test_blank_text_gets_error(self):
        teacher = self.connect("teacher")
        teacher.send_text('{"text": "   "}')
        reply = teacher.receive_json()
        self.assertEqual(reply["type"], "error")

    def test_missing_text_gets_error(self):
        teacher = self.connect("teacher")
        teacher.send_text('{"message": "hi"}')
        self.assertEqual(teacher.receive_json()["type"], "error")

    def test_role_is_case_insensitive(self):
        with self.client.websocket_connect("/ws/TEACHER") as ws:
            self.assertEqual(ws.receive_json()["role"], "teacher")

    def test_unknown_role_rejected(self):
        with self.assertRaises(WebSocketDisconnect) as ctx:
            with self.client.websocket_connect("/ws/principal") as ws:
                ws.receive_json()
        self.assertEqual(ctx.exception.code, 1008)

    def test_health_counts(self):
        self.assertEqual(self.client.get("/health").json()["connections"], {"teacher": 0, "student": 0})
        self.connect("student")
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok", "connections": {"teacher": 0, "student": 1}})


class FakeSocket:
    """Peer that is gone before the status frame can be sent."""

    def __init__(self):
        self.accepted = False

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        raise WebSocketDisconnect(code=1006)


class TestRelayRegistry(unittest.IsolatedAsyncioTestCase):
    """Test that broken connections never stay registered."""

    async def test_failed_status_frame_unregisters(self):
        relay = ChatRelay()
        socket = FakeSocket()
        with self.assertRaises(WebSocketDisconnect):
            await relay.connect(socket, "teacher")
        self.assertTrue(socket.accepted)
        self.assertEqual(relay.counts(), {"teacher": 0, "student": 0})

    async def test_endpoint_handles_failed_connect(self):
        app = create_app()
        endpoint = next(r.endpoint for r in app.routes if getattr(r, "path", None) == "/ws/{role}")

        await endpoint(FakeSocket(), "student")

        self.assertEqual(app.state.relay.counts(), {"teacher": 0, "student": 0})


if __name__ == '__main__':
    unittest.main()
