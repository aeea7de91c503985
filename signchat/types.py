"""
Type definitions for hand-sign recognition and chat.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

import numpy as np


# Anatomical numbering used by the landmark detector
LANDMARK_COUNT = 21


class MalformedObservationError(ValueError):
    """Raised when a hand observation does not have the fixed landmark layout."""


class DetectorLoadError(RuntimeError):
    """Raised when the landmark detector cannot be loaded."""


class Finger(Enum):
    """Fingers in evaluation order."""
    THUMB = "thumb"
    INDEX = "index"
    MIDDLE = "middle"
    RING = "ring"
    PINKY = "pinky"


class Curl(Enum):
    """Discrete bend of a single finger."""
    NO_CURL = "no_curl"
    HALF_CURL = "half_curl"
    FULL_CURL = "full_curl"


class Pointing(Enum):
    """Image-plane compass direction of a finger, counter-clockwise from RIGHT."""
    RIGHT = "right"
    UP_RIGHT = "up_right"
    UP = "up"
    UP_LEFT = "up_left"
    LEFT = "left"
    DOWN_LEFT = "down_left"
    DOWN = "down"
    DOWN_RIGHT = "down_right"


class Relation(Enum):
    """Angular relationship between two finger direction vectors."""
    ALIGNED = "aligned"
    SPREAD = "spread"
    PERPENDICULAR = "perpendicular"
    OPPOSED = "opposed"


@dataclass(frozen=True)
class Landmark:
    """Single 3-D keypoint in the detector's coordinate space."""
    x: float
    y: float
    z: float = 0.0


PointLike = Union[Landmark, Sequence[float], Any]


def _to_landmark(point: PointLike) -> Landmark:
    if isinstance(point, Landmark):
        return point
    if hasattr(point, "x") and hasattr(point, "y"):
        return Landmark(float(point.x), float(point.y), float(getattr(point, "z", 0.0)))
    try:
        coords = [float(c) for c in point]
    except TypeError as e:
        raise MalformedObservationError(f"Unsupported landmark value: {point!r}") from e
    if len(coords) not in (2, 3):
        raise MalformedObservationError(
            f"Landmark must have 2 or 3 coordinates, got {len(coords)}"
        )
    return Landmark(*coords)


@dataclass(frozen=True)
class Observation:
    """One detected hand: exactly 21 landmarks, wrist first."""
    landmarks: Tuple[Landmark, ...]

    def __post_init__(self):
        if len(self.landmarks) != LANDMARK_COUNT:
            raise MalformedObservationError(
                f"Expected {LANDMARK_COUNT} landmarks, got {len(self.landmarks)}"
            )

    @classmethod
    def from_points(cls, points: Sequence[PointLike]) -> "Observation":
        """Build an observation from tuples or objects exposing .x/.y/.z."""
        return cls(tuple(_to_landmark(p) for p in points))

    @classmethod
    def coerce(cls, value: Union["Observation", Sequence[PointLike]]) -> "Observation":
        if isinstance(value, Observation):
            return value
        if value is None:
            raise MalformedObservationError("Observation is None")
        return cls.from_points(value)

    def __len__(self) -> int:
        return len(self.landmarks)

    def __getitem__(self, index: int) -> Landmark:
        return self.landmarks[index]

    def as_array(self) -> np.ndarray:
        """Return the landmarks as a (21, 3) float array."""
        return np.array([(p.x, p.y, p.z) for p in self.landmarks], dtype=float)


@dataclass(frozen=True)
class CurlRule:
    """Satisfied when a finger has the expected curl."""
    finger: Finger
    curl: Curl
    weight: float


@dataclass(frozen=True)
class DirectionRule:
    """Satisfied when two fingers point in the expected relationship."""
    first: Finger
    second: Finger
    relation: Relation
    weight: float


@dataclass(frozen=True)
class PointingRule:
    """Satisfied when a finger points in the expected compass direction."""
    finger: Finger
    pointing: Pointing
    weight: float


Rule = Union[CurlRule, DirectionRule, PointingRule]


@dataclass(frozen=True)
class SignDescriptor:
    """Named, immutable rule set describing one hand sign."""
    name: str
    rules: Tuple[Rule, ...]

    def __post_init__(self):
        for rule in self.rules:
            if rule.weight < 0:
                raise ValueError(f"Rule weight must be non-negative in {self.name}: {rule}")

    @property
    def max_score(self) -> float:
        return sum(rule.weight for rule in self.rules)


@dataclass(frozen=True)
class GestureScore:
    """Confidence of one descriptor for one observation."""
    name: str
    confidence: float


@dataclass(frozen=True)
class DetectedGesture:
    """Winning descriptor for one observation, above the confidence threshold."""
    name: str
    confidence: float


@dataclass
class Frame:
    """Current capture frame with its pixel dimensions."""
    image: np.ndarray
    width: int
    height: int


@dataclass
class ChatMessage:
    """One entry of the chat history."""
    role: str
    text: str
    timestamp: float = field(default=0.0)


@runtime_checkable
class HandDetector(Protocol):
    """External landmark detector."""

    async def estimate(self, frame: Frame) -> List[Observation]:
        """Return zero or more hand observations for the frame."""
        ...


@runtime_checkable
class CaptureSource(Protocol):
    """Video source queried once per detection cycle."""

    def is_ready(self) -> bool:
        ...

    def read(self) -> Optional[Frame]:
        ...


@runtime_checkable
class Renderer(Protocol):
    """Draws detector output; return value is ignored."""

    def draw(self, observations: List[Observation], frame: Frame) -> None:
        ...


@runtime_checkable
class ChannelProto(Protocol):
    """Abstract protocol for the text channel between the two roles."""

    async def start(self) -> None:
        ...

    async def send(self, text: str) -> bool:
        """Send text to the other role; False when the message was dropped."""
        ...

    async def close(self) -> None:
        ...
