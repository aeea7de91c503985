"""
Session state shared by the detection loop, the chat channel and the UI.
"""
import logging
import time
from collections import deque
from typing import Callable, Deque, List, Optional

from .types import ChatMessage, DetectedGesture

logger = logging.getLogger(__name__)


class SessionState:
    """
    Owns the typed text buffer, the current gesture and the chat history.

    Only the detection loop appends recognized letters; the buffer is cleared
    by an explicit reset or by sending it.
    """

    def __init__(self, role: str, coalesce_window_s: float = 2.0,
                 history_limit: int = 200,
                 clock: Callable[[], float] = time.monotonic):
        self.role = role
        self.coalesce_window_s = coalesce_window_s
        self.clock = clock
        self.text = ""
        self.current_gesture: Optional[DetectedGesture] = None
        self.messages: Deque[ChatMessage] = deque(maxlen=history_limit)
        self.send_error: Optional[str] = None
        self.disposed = False

    def _check_alive(self, action: str) -> bool:
        if self.disposed:
            logger.debug(f"Ignoring {action} on disposed session")
            return False
        return True

    def apply_gesture(self, detected: DetectedGesture) -> None:
        """Append the recognized letter and publish it for display."""
        if not self._check_alive("gesture"):
            return
        self.current_gesture = detected
        self.text += detected.name

    def reset_text(self) -> None:
        if not self._check_alive("reset"):
            return
        self.text = ""

    def backspace(self) -> None:
        if not self._check_alive("backspace"):
            return
        self.text = self.text[:-1]

    def set_text(self, text: str) -> None:
        if not self._check_alive("edit"):
            return
        self.text = text

    def outgoing_text(self) -> Optional[str]:
        """Trimmed buffer ready to send, or None when it is blank."""
        text = self.text.strip()
        return text or None

    def record_sent(self, text: str) -> None:
        """
        Commit delivered text to the history.

        Only the sent prefix leaves the buffer; letters detected while the
        send was in progress are kept.
        """
        if not self._check_alive("send"):
            return
        self.messages.append(ChatMessage(role=self.role, text=text, timestamp=self.clock()))
        self.send_error = None
        remaining = self.text.lstrip()
        if remaining.startswith(text):
            self.text = remaining[len(text):].lstrip()

    def record_send_failure(self, text: str) -> None:
        """Keep the buffer and report the undelivered text."""
        if not self._check_alive("send"):
            return
        self.send_error = f"Not delivered: {text}"
        logger.warning(f"Message not delivered, kept in the text buffer: {text!r}")

    def take_outgoing(self) -> Optional[str]:
        """
        Move the buffer into the history for sending.

        Returns:
            Trimmed text to send, or None when the buffer is blank (buffer kept)
        """
        if not self._check_alive("send"):
            return None
        text = self.outgoing_text()
        if text is not None:
            self.record_sent(text)
        return text

    def receive(self, role: str, text: str) -> None:
        """
        Record an inbound message.

        Consecutive messages from the same role inside the coalesce window are
        merged, so a continuous transcript shows up as one entry.
        """
        if not self._check_alive("receive"):
            return
        text = text.strip()
        if not text:
            return
        now = self.clock()
        last = self.messages[-1] if self.messages else None
        if (last is not None and last.role == role
                and now - last.timestamp <= self.coalesce_window_s):
            last.text = f"{last.text} {text}"
            last.timestamp = now
            return
        self.messages.append(ChatMessage(role=role, text=text, timestamp=now))

    def on_channel_message(self, payload: dict) -> None:
        """Channel callback for {"role", "text"} payloads."""
        self.receive(payload.get("role", "unknown"), payload.get("text", ""))

    def messages_for(self, role: str) -> List[ChatMessage]:
        """Messages of one role, oldest first."""
        return [m for m in self.messages if m.role == role]

    def history_lines(self) -> List[str]:
        return [f"{m.role.capitalize()}: {m.text}" for m in self.messages]

    def dispose(self) -> None:
        self.disposed = True
