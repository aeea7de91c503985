"""
Gesture recognition classes that score hand landmarks against sign descriptors.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .config import ClassifierConfig
from .landmarks import (
    Vector,
    finger_curl,
    finger_vector,
    normalize,
    pointing_of,
    relation_holds,
)
from .signs import SIGN_LIBRARY
from .types import (
    Curl,
    CurlRule,
    DetectedGesture,
    DirectionRule,
    Finger,
    GestureScore,
    Observation,
    Pointing,
    PointingRule,
    Rule,
    SignDescriptor,
)

DEFAULT_THRESHOLD = 6.5

ObservationLike = Union[Observation, Sequence]


@dataclass(frozen=True)
class HandPose:
    """Per-finger features derived from one observation."""
    curls: Dict[Finger, Curl]
    vectors: Dict[Finger, Vector]
    pointings: Dict[Finger, Optional[Pointing]]


class GestureScorer:
    """
    Additive rule scoring of one observation against one descriptor.

    Each rule contributes its weight when satisfied; rules never interact and
    are all evaluated, so a score is always the sum of the satisfied weights.
    """

    def __init__(self, cfg: Optional[ClassifierConfig] = None):
        """Initialize scorer with finger geometry limits."""
        if cfg is None:
            cfg = ClassifierConfig(
                no_curl_start_limit=130.0,
                half_curl_start_limit=60.0,
                relation_tolerance_deg=20.0,
                threshold=DEFAULT_THRESHOLD,
            )
        self.cfg = cfg

    def pose(self, observation: ObservationLike) -> HandPose:
        """
        Derive curls, direction vectors and pointings for every finger.

        Raises:
            MalformedObservationError: if the observation does not have 21 landmarks
        """
        obs = normalize(Observation.coerce(observation))
        curls = {}
        vectors = {}
        pointings = {}
        for finger in Finger:
            curls[finger] = finger_curl(
                obs, finger,
                no_curl_start_limit=self.cfg.no_curl_start_limit,
                half_curl_start_limit=self.cfg.half_curl_start_limit,
            )
            vectors[finger] = finger_vector(obs, finger)
            pointings[finger] = pointing_of(vectors[finger])
        return HandPose(curls=curls, vectors=vectors, pointings=pointings)

    def evaluate(self, pose: HandPose, rule: Rule) -> bool:
        """Check a single rule against a derived pose."""
        if isinstance(rule, CurlRule):
            return pose.curls[rule.finger] is rule.curl
        if isinstance(rule, PointingRule):
            return pose.pointings[rule.finger] is rule.pointing
        if isinstance(rule, DirectionRule):
            return relation_holds(
                pose.vectors[rule.first],
                pose.vectors[rule.second],
                rule.relation,
                self.cfg.relation_tolerance_deg,
            )
        raise TypeError(f"Unsupported rule type: {type(rule).__name__}")

    def score_pose(self, pose: HandPose, descriptor: SignDescriptor) -> float:
        total = 0.0
        for rule in descriptor.rules:
            if self.evaluate(pose, rule):
                total += rule.weight
        return total

    def score(self, observation: ObservationLike, descriptor: SignDescriptor) -> float:
        """
        Score an observation against one descriptor.

        Args:
            observation: 21 hand landmarks
            descriptor: Sign to compare against

        Returns:
            Sum of the weights of satisfied rules
        """
        return self.score_pose(self.pose(observation), descriptor)


class GestureSelector:
    """
    Picks the best matching sign for an observation.

    Ties keep the descriptor that comes first in the library, and the best
    score must reach the threshold (inclusive) to count as a detection.
    """

    def __init__(self, scorer: Optional[GestureScorer] = None,
                 library: Sequence[SignDescriptor] = SIGN_LIBRARY,
                 threshold: Optional[float] = None):
        """Initialize selector with a scorer, descriptor library and threshold."""
        self.scorer = scorer or GestureScorer()
        self.library: Tuple[SignDescriptor, ...] = tuple(library)
        if not self.library:
            raise ValueError("Descriptor library is empty")
        self.threshold = threshold if threshold is not None else self.scorer.cfg.threshold

    def rank(self, observation: ObservationLike) -> List[GestureScore]:
        """Score every descriptor, in library order."""
        pose = self.scorer.pose(observation)
        return [
            GestureScore(name=d.name, confidence=self.scorer.score_pose(pose, d))
            for d in self.library
        ]

    def select(self, observation: ObservationLike) -> Optional[DetectedGesture]:
        """
        Return the best descriptor above threshold.

        Args:
            observation: 21 hand landmarks

        Returns:
            DetectedGesture, or None when no score reaches the threshold
        """
        best: Optional[GestureScore] = None
        for candidate in self.rank(observation):
            # Strictly greater keeps the earliest descriptor on a tie
            if best is None or candidate.confidence > best.confidence:
                best = candidate

        if best.confidence < self.threshold:
            return None
        return DetectedGesture(name=best.name, confidence=best.confidence)
