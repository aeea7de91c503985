"""
In-memory channel used offline and in tests.
"""
from typing import Callable, List, Optional


class MockChannel:
    """Mock channel that records sent text instead of sending it."""

    def __init__(self, role: str = "student", on_message: Optional[Callable[[dict], None]] = None,
                 connected: bool = True):
        """Initialize the mock channel."""
        self.role = role
        self.on_message = on_message
        self.connected = connected
        self.sent: List[str] = []
        self.dropped: List[str] = []
        self.started = False
        self.closed = False

    async def start(self) -> None:
        self.started = True

    async def send(self, text: str) -> bool:
        """Record text; dropped while disconnected."""
        if not self.connected or self.closed:
            self.dropped.append(text)
            print(f"[MockChannel] Dropped: {text!r}")
            return False
        self.sent.append(text)
        print(f"[MockChannel] {self.role} sent: {text!r} (message #{len(self.sent)})")
        return True

    def deliver(self, role: str, text: str) -> None:
        """Simulate an inbound message from the other role."""
        if self.on_message is not None:
            self.on_message({"role": role, "text": text})

    async def close(self) -> None:
        self.closed = True

    def reset(self) -> None:
        """Reset recorded messages for testing."""
        self.sent.clear()
        self.dropped.clear()
