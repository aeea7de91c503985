"""
Main application for fingerspelling chat between a teacher and a student.
"""
import argparse
import asyncio
import logging
from typing import List, Optional

import cv2
import numpy as np
from dotenv import load_dotenv

from .capture import CameraSource
from .channel import RelayChannel
from .channel_mock import MockChannel
from .config import Cfg, ROLES, load_config
from .gestures import GestureScorer, GestureSelector
from .landmarks import LandmarkRenderer, load_detector
from .scheduler import DetectionLoop
from .state import SessionState
from .types import DetectorLoadError

logger = logging.getLogger(__name__)

KEY_ENTER = (10, 13)
KEY_BACKSPACE = (8, 127)


class SignChatApp:
    """Main application class wiring camera, detection loop and chat."""

    def __init__(self, config: Cfg, offline: bool = False):
        """Initialize the application with configuration."""
        self.config = config
        self.role = config.chat.role
        self.other_role = next(r for r in ROLES if r != self.role)

        self.session = SessionState(
            role=self.role,
            coalesce_window_s=config.chat.coalesce_window_s,
            history_limit=config.chat.history_limit,
        )

        # Choose channel type
        if offline:
            self.channel = MockChannel(role=self.role, on_message=self.session.on_channel_message)
            print("⚠️  Offline mode - messages are not sent anywhere")
        else:
            self.channel = RelayChannel(
                config.chat.relay_url,
                self.role,
                on_message=self.session.on_channel_message,
                reconnect_initial_s=config.chat.reconnect_initial_s,
                reconnect_max_s=config.chat.reconnect_max_s,
            )

        self.camera = CameraSource(config.camera)
        self.renderer = LandmarkRenderer(show_landmarks=config.display.show_landmarks)
        self.selector = GestureSelector(GestureScorer(config.classifier))
        self.loop = DetectionLoop(
            load_detector=lambda: load_detector(config.mediapipe),
            capture=self.camera,
            session=self.session,
            selector=self.selector,
            renderer=self.renderer,
            period_s=config.detection.period_s,
            detector_timeout_s=config.detection.detector_timeout_s,
        )

    async def send_message(self) -> bool:
        """
        Send the typed buffer to the other role.

        The buffer only moves into the history once the channel accepts it;
        a dropped message stays in the buffer and is reported in the panel.
        """
        text = self.session.outgoing_text()
        if text is None:
            return False
        if not await self.channel.send(text):
            self.session.record_send_failure(text)
            return False
        self.session.record_sent(text)
        return True

    async def handle_key(self, key: int) -> bool:
        """Apply one key press; returns False when the app should quit."""
        if key == ord('q'):
            return False
        if key in KEY_ENTER:
            await self.send_message()
        elif key in KEY_BACKSPACE:
            self.session.backspace()
        elif key == ord('r'):
            self.session.reset_text()
        elif key == ord('c'):
            self.camera.toggle()
        return True

    def _channel_status(self) -> str:
        state = getattr(self.channel, "state", None)
        if state is not None:
            return state.value
        return "offline"

    def panel_lines(self) -> List[str]:
        """Text shown next to the camera view."""
        gesture = self.session.current_gesture
        lines: List[str] = [
            f"Role: {self.role} | relay: {self._channel_status()}",
            f"Detected Gesture: {gesture.name if gesture else 'None'}",
            f"Text: {self.session.text}",
        ]
        if self.session.send_error:
            lines.append(self.session.send_error)
        lines.append("")
        for role in (self.other_role, self.role):
            lines.append(f"{role.capitalize()}:")
            msgs = self.session.messages_for(role)
            lines.extend(f"  {m.text}" for m in msgs[-5:])
            if not msgs:
                lines.append("  No messages yet.")
        return lines

    def render(self, image: Optional[np.ndarray]) -> np.ndarray:
        """Compose the camera view and the chat panes into one window."""
        width = self.config.camera.width
        height = self.config.camera.height
        if image is None:
            image = np.zeros((height, width, 3), dtype=np.uint8)
        else:
            image = self.renderer.annotate(image)

        panel = np.full((height, 360, 3), 45, dtype=np.uint8)
        lines = self.panel_lines()

        y = 25
        for line in lines:
            cv2.putText(panel, line[:48], (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
            y += 20

        cv2.putText(panel, "Enter=send r=reset c=camera q=quit", (10, height - 15),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.45, (200, 200, 200), 1)

        if image.shape[0] != height:
            image = cv2.resize(image, (int(image.shape[1] * height / image.shape[0]), height))
        return np.hstack([image, panel])

    async def run(self):
        """Run the main application loop."""
        print(f"Starting {self.config.display.window_name} as {self.role}")
        print("🎯 Fingerspell letters in front of the camera, Enter sends, 'q' quits")

        await self.channel.start()
        await self.loop.start()

        try:
            while True:
                frame = self.camera.poll()
                cv2.imshow(self.config.display.window_name, self.render(frame.image if frame else None))

                key = cv2.waitKey(1) & 0xFF
                if key != 0xFF and not await self.handle_key(key):
                    break

                # Let the detection loop and the channel run
                await asyncio.sleep(1 / max(self.config.camera.fps, 1))
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Cleanup resources."""
        self.loop.stop()
        await self.loop.wait_idle()
        self.session.dispose()
        await self.channel.close()
        if self.loop.detector is not None and hasattr(self.loop.detector, "close"):
            self.loop.detector.close()
            self.loop.detector = None
        self.camera.release()
        cv2.destroyAllWindows()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fingerspelling chat between a teacher and a student")
    parser.add_argument("--role", choices=ROLES, help="Chat role (default from config)")
    parser.add_argument("--offline", action="store_true", help="Do not connect to the relay")
    parser.add_argument("--config", help="Path to a YAML config file")
    return parser.parse_args(argv)


async def main(argv=None):
    """Entry point for the application."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO)
    args = parse_args(argv)

    config = load_config(args.config)
    if args.role:
        config.chat.role = args.role

    app = None
    try:
        app = SignChatApp(config, offline=args.offline)
        await app.run()
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")
        if app is not None:
            await app.shutdown()
    except DetectorLoadError as e:
        print(f"Error: {e}")


def cli():
    asyncio.run(main())


if __name__ == "__main__":
    cli()
