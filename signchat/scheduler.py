"""
Periodic detection loop: capture -> detect -> score -> select -> apply.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from .gestures import GestureSelector
from .state import SessionState
from .types import (
    CaptureSource,
    DetectedGesture,
    DetectorLoadError,
    HandDetector,
    Observation,
    Renderer,
)

logger = logging.getLogger(__name__)


class LoopState(Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class LoopStats:
    """Counters for the detection loop."""
    cycles: int = 0
    detections: int = 0
    skipped_busy: int = 0
    skipped_not_ready: int = 0
    failed: int = 0
    discarded: int = 0


class DetectionLoop:
    """
    Runs one detection cycle every period while RUNNING.

    Cycles are serialized: a tick that fires while the previous detector call
    is still in flight is skipped. A call that timed out keeps the detector
    busy until its worker thread returns. Stopping cancels the timer only; a
    cycle already waiting on the detector finishes, but its result is discarded.
    """

    def __init__(
        self,
        load_detector: Callable[[], Awaitable[HandDetector]],
        capture: CaptureSource,
        session: SessionState,
        selector: GestureSelector,
        renderer: Optional[Renderer] = None,
        period_s: float = 1.0,
        detector_timeout_s: Optional[float] = 5.0,
    ):
        self._load_detector = load_detector
        self.capture = capture
        self.session = session
        self.selector = selector
        self.renderer = renderer
        self.period_s = period_s
        self.detector_timeout_s = detector_timeout_s

        self.detector: Optional[HandDetector] = None
        self.stats = LoopStats()
        self._state = LoopState.IDLE
        self._generation = 0
        self._ticker: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self._detector_call: Optional[asyncio.Future] = None

    @property
    def state(self) -> LoopState:
        return self._state

    async def start(self) -> None:
        """
        Load the detector (once) and start the periodic timer.

        Raises:
            DetectorLoadError: if the detector cannot be loaded; the loop stays IDLE
        """
        if self._state is LoopState.RUNNING:
            return

        if self.detector is None:
            try:
                self.detector = await self._load_detector()
            except DetectorLoadError:
                raise
            except Exception as e:
                raise DetectorLoadError(f"Failed to load hand detector: {e}") from e

        self._state = LoopState.RUNNING
        self._ticker = asyncio.create_task(self._tick_forever())
        logger.info(f"Detection loop running every {self.period_s:.2f}s")

    async def _tick_forever(self) -> None:
        while True:
            await asyncio.sleep(self.period_s)
            if self.busy:
                self.stats.skipped_busy += 1
                logger.debug("Previous detection cycle still running, skipping tick")
                continue
            self._inflight = asyncio.create_task(self.run_cycle())
            self._inflight.add_done_callback(self._on_cycle_done)

    @property
    def busy(self) -> bool:
        """True while a cycle or a detector call (even an abandoned one) is outstanding."""
        return any(t is not None and not t.done() for t in (self._inflight, self._detector_call))

    def _on_cycle_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.stats.failed += 1
            logger.error(f"Detection cycle failed: {exc!r}")

    @staticmethod
    def _on_detector_done(task: asyncio.Task) -> None:
        # Results of timed-out calls are dropped here
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"Detector call finished with {task.exception()!r}")

    async def run_cycle(self) -> Optional[DetectedGesture]:
        """
        Execute a single detection cycle.

        Returns:
            The detected gesture applied to the session, or None

        Raises:
            MalformedObservationError: if the detector produced a malformed hand
        """
        if self._state is not LoopState.RUNNING:
            return None

        if self._detector_call is not None and not self._detector_call.done():
            # A timed-out call still owns the detector
            self.stats.skipped_busy += 1
            return None

        if not self.capture.is_ready():
            self.stats.skipped_not_ready += 1
            return None
        frame = self.capture.read()
        if frame is None:
            self.stats.skipped_not_ready += 1
            return None

        generation = self._generation
        self.stats.cycles += 1

        call = asyncio.ensure_future(self.detector.estimate(frame))
        call.add_done_callback(self._on_detector_done)
        self._detector_call = call
        try:
            if self.detector_timeout_s:
                # A worker thread cannot be interrupted; the call stays tracked past the timeout
                hands = await asyncio.wait_for(asyncio.shield(call), self.detector_timeout_s)
            else:
                hands = await call
        except asyncio.TimeoutError:
            self.stats.failed += 1
            logger.warning(f"Detector call timed out after {self.detector_timeout_s}s")
            return None
        except Exception as e:
            self.stats.failed += 1
            logger.warning(f"Detector call failed: {e}")
            return None

        if generation != self._generation or self._state is not LoopState.RUNNING:
            self.stats.discarded += 1
            logger.debug("Discarding detector result that arrived after stop")
            return None

        hands: List[Observation] = list(hands or [])
        detected = None
        try:
            if hands:
                # Only the first hand is classified
                detected = self.selector.select(hands[0])
                if detected is not None:
                    self.stats.detections += 1
                    self.session.apply_gesture(detected)
                    logger.info(f"Detected {detected.name} ({detected.confidence:.2f})")
        finally:
            if self.renderer is not None:
                self.renderer.draw(hands, frame)

        return detected

    def stop(self) -> None:
        """Cancel the timer; any in-flight cycle result will be discarded."""
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        if self._state is LoopState.RUNNING:
            self._generation += 1
            self._state = LoopState.IDLE
            logger.info("Detection loop stopped")

    async def wait_idle(self) -> None:
        """Wait for the in-flight cycle and any detector call still running in its thread."""
        pending = [t for t in (self._inflight, self._detector_call) if t is not None and not t.done()]
        if pending:
            await asyncio.wait(pending)
