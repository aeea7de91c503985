"""
Hand landmark detection and finger geometry using MediaPipe.
"""
import asyncio
import logging
import math
from typing import Dict, List, Optional, Tuple

import cv2
import mediapipe as mp
import numpy as np

from .config import MediaPipeConfig
from .types import (
    Curl,
    DetectorLoadError,
    Finger,
    Frame,
    Landmark,
    Observation,
    Pointing,
    Relation,
)

logger = logging.getLogger(__name__)

Vector = Tuple[float, float, float]

# (base, middle, tip) landmark indices per finger
FINGER_JOINTS: Dict[Finger, Tuple[int, int, int]] = {
    Finger.THUMB: (1, 2, 4),
    Finger.INDEX: (5, 6, 8),
    Finger.MIDDLE: (9, 10, 12),
    Finger.RING: (13, 14, 16),
    Finger.PINKY: (17, 18, 20),
}

# Counter-clockwise from the positive x axis, 45 degrees apart
_POINTING_SECTORS = (
    Pointing.RIGHT,
    Pointing.UP_RIGHT,
    Pointing.UP,
    Pointing.UP_LEFT,
    Pointing.LEFT,
    Pointing.DOWN_LEFT,
    Pointing.DOWN,
    Pointing.DOWN_RIGHT,
)


class MediaPipeHandDetector:
    """Hand landmark detector using MediaPipe Hands."""

    def __init__(self, cfg: MediaPipeConfig):
        """
        Initialize the hands detector.

        Args:
            cfg: MediaPipe settings (hand count, confidences, model complexity)
        """
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=cfg.max_num_hands,
            model_complexity=cfg.model_complexity,
            min_detection_confidence=cfg.min_detection_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence
        )

    def process(self, frame_bgr: np.ndarray) -> List[Observation]:
        """
        Process a frame and return every detected hand.

        Args:
            frame_bgr: Input frame in BGR format

        Returns:
            One Observation per hand, in detector order (empty if no hand)
        """
        # Convert BGR to RGB for MediaPipe
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self.hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return []

        return [
            Observation.from_points(hand_landmarks.landmark)
            for hand_landmarks in results.multi_hand_landmarks
        ]

    async def estimate(self, frame: Frame) -> List[Observation]:
        """Run the detector off the event loop."""
        return await asyncio.to_thread(self.process, frame.image)

    def close(self) -> None:
        self.hands.close()


async def load_detector(cfg: MediaPipeConfig) -> MediaPipeHandDetector:
    """
    Load the MediaPipe model once.

    Raises:
        DetectorLoadError: if the model cannot be created
    """
    try:
        detector = await asyncio.to_thread(MediaPipeHandDetector, cfg)
    except Exception as e:
        raise DetectorLoadError(f"Failed to load hand landmark model: {e}") from e
    logger.info("✅ Hand landmark model loaded")
    return detector


def normalize(observation: Observation) -> Observation:
    """
    Landmarks are scored in the detector's native coordinate space.

    MediaPipe reports x and y relative to the frame (y grows downward) and z as
    depth relative to the wrist; curl and direction checks only use angles, so
    no rescaling is applied.
    """
    return observation


def _sub(a: Landmark, b: Landmark) -> Vector:
    return (a.x - b.x, a.y - b.y, a.z - b.z)


def _norm(v: Vector) -> float:
    return math.sqrt(v[0] ** 2 + v[1] ** 2 + v[2] ** 2)


def angle_between(v1: Vector, v2: Vector) -> Optional[float]:
    """Angle in degrees between two vectors, None if either has zero length."""
    mag1 = _norm(v1)
    mag2 = _norm(v2)
    if mag1 == 0 or mag2 == 0:
        return None
    cosine = (v1[0] * v2[0] + v1[1] * v2[1] + v1[2] * v2[2]) / (mag1 * mag2)
    cosine = max(-1.0, min(1.0, cosine))
    return math.degrees(math.acos(cosine))


def joint_angle(observation: Observation, finger: Finger) -> Optional[float]:
    """
    Angle at the finger's middle joint between its base and its tip.

    A straight finger gives ~180 degrees; a tightly curled one approaches 0.
    """
    base, middle, tip = (observation[i] for i in FINGER_JOINTS[finger])
    return angle_between(_sub(base, middle), _sub(tip, middle))


def finger_curl(observation: Observation, finger: Finger,
                no_curl_start_limit: float = 130.0,
                half_curl_start_limit: float = 60.0) -> Curl:
    """
    Classify how bent a finger is.

    Args:
        observation: Hand landmarks
        finger: Finger to classify
        no_curl_start_limit: Joint angle above which the finger is extended
        half_curl_start_limit: Joint angle above which the finger is half curled

    Returns:
        Curl state of the finger
    """
    angle = joint_angle(observation, finger)
    if angle is None or angle > no_curl_start_limit:
        return Curl.NO_CURL
    if angle > half_curl_start_limit:
        return Curl.HALF_CURL
    return Curl.FULL_CURL


def finger_vector(observation: Observation, finger: Finger) -> Vector:
    """Base-to-tip direction of a finger."""
    base, _, tip = FINGER_JOINTS[finger]
    return _sub(observation[tip], observation[base])


def pointing_of(vector: Vector) -> Optional[Pointing]:
    """
    Coarse compass direction of a vector in the image plane.

    Image y grows downward, so it is flipped to make UP mean the top of the frame.
    """
    dx, dy = vector[0], -vector[1]
    if dx == 0 and dy == 0:
        return None
    angle = math.degrees(math.atan2(dy, dx)) % 360.0
    sector = int(((angle + 22.5) % 360.0) // 45.0)
    return _POINTING_SECTORS[sector]


def relation_holds(v1: Vector, v2: Vector, relation: Relation, tolerance_deg: float) -> bool:
    """Check an angular relationship between two finger vectors."""
    angle = angle_between(v1, v2)
    if angle is None:
        return False
    if relation is Relation.ALIGNED:
        return angle <= tolerance_deg
    if relation is Relation.SPREAD:
        return tolerance_deg < angle <= 90.0 - tolerance_deg
    if relation is Relation.PERPENDICULAR:
        return abs(angle - 90.0) <= tolerance_deg
    if relation is Relation.OPPOSED:
        return angle >= 180.0 - tolerance_deg
    raise ValueError(f"Unknown relation: {relation}")


class LandmarkRenderer:
    """Draws the latest detector output over camera frames."""

    def __init__(self, show_landmarks: bool = True):
        self.show_landmarks = show_landmarks
        self.latest: List[Observation] = []
        self.draw_count = 0

    def draw(self, observations: List[Observation], frame: Frame) -> None:
        """Remember the observations and paint them on the cycle's frame."""
        self.latest = list(observations)
        self.draw_count += 1
        if frame is not None and frame.image is not None:
            self.annotate(frame.image)

    def annotate(self, image: np.ndarray) -> np.ndarray:
        """
        Draw hand landmarks on the image.

        Args:
            image: Frame to draw on (modified in place)

        Returns:
            The same frame with landmarks drawn
        """
        if not self.show_landmarks:
            return image

        height, width = image.shape[:2]
        for hand_index, observation in enumerate(self.latest):
            # The scored (first) hand is green, ignored hands are grey
            color = (0, 255, 0) if hand_index == 0 else (160, 160, 160)
            for i, point in enumerate(observation.landmarks):
                px = int(point.x * width)
                py = int(point.y * height)
                cv2.circle(image, (px, py), 3, color, -1)
                cv2.putText(image, str(i), (px + 5, py - 5), cv2.FONT_HERSHEY_SIMPLEX, 0.3, (255, 255, 255), 1)

        return image
