"""
Synthetic hand observations with controlled finger curls and pointings.

Fingers are bent towards the camera (z axis), so a curled finger keeps the
image-plane direction it was given.
"""
import math
from typing import Dict, Optional

from signchat.types import Curl, Finger, Landmark, Observation, Pointing

SEGMENT = 0.05

WRIST = (0.5, 0.8)

# (base, middle, extra, tip) landmark indices and base position per finger
FINGER_LAYOUT = {
    Finger.THUMB: ((1, 2, 3, 4), (0.40, 0.70)),
    Finger.INDEX: ((5, 6, 7, 8), (0.45, 0.60)),
    Finger.MIDDLE: ((9, 10, 11, 12), (0.50, 0.58)),
    Finger.RING: ((13, 14, 15, 16), (0.55, 0.60)),
    Finger.PINKY: ((17, 18, 19, 20), (0.60, 0.63)),
}

_S = 1 / math.sqrt(2)

# Image coordinates: y grows downward
POINTING_VECTORS = {
    Pointing.RIGHT: (1.0, 0.0),
    Pointing.UP_RIGHT: (_S, -_S),
    Pointing.UP: (0.0, -1.0),
    Pointing.UP_LEFT: (-_S, -_S),
    Pointing.LEFT: (-1.0, 0.0),
    Pointing.DOWN_LEFT: (-_S, _S),
    Pointing.DOWN: (0.0, 1.0),
    Pointing.DOWN_RIGHT: (_S, _S),
}

# Direction of the tip segment as (along finger, towards camera)
_BEND = {
    Curl.NO_CURL: (1.0, 0.0),
    Curl.HALF_CURL: (0.0, 1.0),
    Curl.FULL_CURL: (math.cos(math.radians(150)), math.sin(math.radians(150))),
}


def make_hand(curls: Optional[Dict[Finger, Curl]] = None,
              pointings: Optional[Dict[Finger, Pointing]] = None) -> Observation:
    """Build a hand; unspecified fingers are extended and point up."""
    curls = curls or {}
    pointings = pointings or {}
    points = [None] * 21
    points[0] = Landmark(WRIST[0], WRIST[1], 0.0)

    for finger, ((b, m, e, t), (bx, by)) in FINGER_LAYOUT.items():
        dx, dy = POINTING_VECTORS[pointings.get(finger, Pointing.UP)]
        along, towards = _BEND[curls.get(finger, Curl.NO_CURL)]

        base = (bx, by, 0.0)
        middle = (bx + SEGMENT * dx, by + SEGMENT * dy, 0.0)
        tip = (
            middle[0] + SEGMENT * along * dx,
            middle[1] + SEGMENT * along * dy,
            SEGMENT * towards,
        )
        extra = tuple((middle[i] + tip[i]) / 2 for i in range(3))

        points[b] = Landmark(*base)
        points[m] = Landmark(*middle)
        points[e] = Landmark(*extra)
        points[t] = Landmark(*tip)

    return Observation(tuple(points))


def curl_map(thumb: Curl, index: Curl, middle: Curl, ring: Curl, pinky: Curl) -> Dict[Finger, Curl]:
    return dict(zip(Finger, (thumb, index, middle, ring, pinky)))
