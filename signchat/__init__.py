"""
SignChat

A Python app that reads webcam frames, detects hand landmarks using MediaPipe,
recognizes fingerspelled letters and exchanges the typed text between a
teacher and a student over a websocket relay.
"""

__version__ = "0.1.0"

from .types import (
    Curl,
    CurlRule,
    DetectedGesture,
    DirectionRule,
    Finger,
    GestureScore,
    Landmark,
    MalformedObservationError,
    Observation,
    Pointing,
    PointingRule,
    Relation,
    SignDescriptor,
)
from .config import load_config, Cfg
from .signs import SIGN_LIBRARY, get_descriptor
from .gestures import GestureScorer, GestureSelector
from .state import SessionState
from .channel_mock import MockChannel

__all__ = [
    "Curl",
    "CurlRule",
    "DetectedGesture",
    "DirectionRule",
    "Finger",
    "GestureScore",
    "Landmark",
    "MalformedObservationError",
    "Observation",
    "Pointing",
    "PointingRule",
    "Relation",
    "SignDescriptor",
    "load_config",
    "Cfg",
    "SIGN_LIBRARY",
    "get_descriptor",
    "GestureScorer",
    "GestureSelector",
    "SessionState",
    "MockChannel",
]
