"""
Test cases for sign scoring and selection with synthetic hands.
"""
import itertools
import sys
import unittest
from pathlib import Path

# Add project root and tests dir to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from signchat.gestures import GestureScorer, GestureSelector
from signchat.signs import SIGN_LIBRARY, descriptor_names, get_descriptor
from signchat.types import (
    Curl,
    CurlRule,
    DetectedGesture,
    DirectionRule,
    Finger,
    MalformedObservationError,
    Observation,
    Pointing,
    PointingRule,
    Relation,
    SignDescriptor,
)

from hand_fixtures import curl_map, make_hand

N, H, F = Curl.NO_CURL, Curl.HALF_CURL, Curl.FULL_CURL


def fist_with_thumb_up() -> Observation:
    return make_hand(curls=curl_map(N, F, F, F, F))


def l_shape() -> Observation:
    return make_hand(curls=curl_map(N, N, F, F, F), pointings={Finger.THUMB: Pointing.LEFT})


def flat_hand() -> Observation:
    return make_hand(curls=curl_map(H, N, N, N, N))


def candidate_hands(descriptor: SignDescriptor):
    """
    Hands with the descriptor's curls. Fingers that its pointing or pair rules
    mention try all eight directions; the others point up or down.
    """
    curls = {r.finger: r.curl for r in descriptor.rules if isinstance(r, CurlRule)}
    involved = set()
    for rule in descriptor.rules:
        if isinstance(rule, PointingRule):
            involved.add(rule.finger)
        elif isinstance(rule, DirectionRule):
            involved.update((rule.first, rule.second))

    options = [list(Pointing) if f in involved else [Pointing.UP, Pointing.DOWN] for f in Finger]
    for combo in itertools.product(*options):
        yield make_hand(curls=curls, pointings=dict(zip(Finger, combo)))


class TestSignLibrary(unittest.TestCase):
    """Test the static descriptor catalog."""

    def test_one_descriptor_per_letter_in_order(self):
        self.assertEqual(len(SIGN_LIBRARY), 26)
        self.assertEqual(descriptor_names(), [chr(c) for c in range(ord("A"), ord("Z") + 1)])

    def test_every_descriptor_can_reach_threshold(self):
        """Each sign's total weight is at least the default threshold."""
        for descriptor in SIGN_LIBRARY:
            self.assertGreaterEqual(descriptor.max_score, 6.5, descriptor.name)

    def test_every_finger_has_a_curl_rule(self):
        for descriptor in SIGN_LIBRARY:
            fingers = [r.finger for r in descriptor.rules if isinstance(r, CurlRule)]
            self.assertEqual(fingers, list(Finger), descriptor.name)

    def test_lookup(self):
        self.assertEqual(get_descriptor("b").name, "B")
        with self.assertRaises(KeyError):
            get_descriptor("?")

    def test_negative_weight_rejected(self):
        with self.assertRaises(ValueError):
            SignDescriptor("bad", (CurlRule(Finger.INDEX, N, -1.0),))


class TestGestureScorer(unittest.TestCase):
    """Test additive rule scoring."""

    def setUp(self):
        self.scorer = GestureScorer()

    def test_score_is_sum_of_satisfied_weights(self):
        """For every descriptor, score equals the sum of weights of satisfied rules."""
        for hand in (fist_with_thumb_up(), l_shape(), flat_hand(), make_hand()):
            pose = self.scorer.pose(hand)
            for descriptor in SIGN_LIBRARY:
                expected = sum(r.weight for r in descriptor.rules if self.scorer.evaluate(pose, r))
                score = self.scorer.score(hand, descriptor)
                self.assertAlmostEqual(score, expected)
                self.assertGreaterEqual(score, 0.0)

    def test_score_is_deterministic(self):
        hand = l_shape()
        first = [self.scorer.score(hand, d) for d in SIGN_LIBRARY]
        second = [self.scorer.score(hand, d) for d in SIGN_LIBRARY]
        self.assertEqual(first, second)

    def test_rule_types(self):
        hand = l_shape()
        pose = self.scorer.pose(hand)
        self.assertTrue(self.scorer.evaluate(pose, CurlRule(Finger.RING, F, 1.0)))
        self.assertFalse(self.scorer.evaluate(pose, CurlRule(Finger.RING, N, 1.0)))
        self.assertTrue(self.scorer.evaluate(pose, PointingRule(Finger.THUMB, Pointing.LEFT, 1.0)))
        self.assertTrue(self.scorer.evaluate(pose, PointingRule(Finger.INDEX, Pointing.UP, 1.0)))
        self.assertTrue(self.scorer.evaluate(
            pose, DirectionRule(Finger.THUMB, Finger.INDEX, Relation.PERPENDICULAR, 1.0)))
        self.assertFalse(self.scorer.evaluate(
            pose, DirectionRule(Finger.THUMB, Finger.INDEX, Relation.ALIGNED, 1.0)))

    def test_unknown_rule_type(self):
        pose = self.scorer.pose(make_hand())
        with self.assertRaises(TypeError):
            self.scorer.evaluate(pose, object())

    def test_malformed_observation_fails_fast(self):
        with self.assertRaises(MalformedObservationError):
            self.scorer.score([(0.5, 0.5, 0.0)] * 20, SIGN_LIBRARY[0])

    def test_raw_points_are_accepted(self):
        hand = l_shape()
        raw = [(p.x, p.y, p.z) for p in hand.landmarks]
        descriptor = get_descriptor("L")
        self.assertEqual(self.scorer.score(raw, descriptor), self.scorer.score(hand, descriptor))

    def test_l_shape_scores(self):
        """L: all five curls, index up, thumb left, thumb/index perpendicular."""
        self.assertAlmostEqual(self.scorer.score(l_shape(), get_descriptor("L")), 9.25)
        self.assertAlmostEqual(self.scorer.score(l_shape(), get_descriptor("G")), 5.0)


class TestGestureSelector(unittest.TestCase):
    """Test best-match selection, tie-breaking and thresholding."""

    def setUp(self):
        self.selector = GestureSelector()

    def test_library_letters(self):
        """Hand shapes built for A, B and L are recognized with the full library."""
        self.assertEqual(self.selector.select(fist_with_thumb_up()), DetectedGesture("A", 9.0))
        self.assertEqual(self.selector.select(flat_hand()), DetectedGesture("B", 9.0))
        self.assertEqual(self.selector.select(l_shape()), DetectedGesture("L", 9.25))

    def test_every_letter_is_recognizable(self):
        """Each letter wins for its own best-scoring hand shape."""
        scorer = self.selector.scorer
        for descriptor in SIGN_LIBRARY:
            with self.subTest(letter=descriptor.name):
                scored = [(scorer.score(hand, descriptor), hand) for hand in candidate_hands(descriptor)]
                scored.sort(key=lambda item: item[0], reverse=True)

                recognized = None
                for score, hand in scored:
                    if score < self.selector.threshold:
                        break
                    detected = self.selector.select(hand)
                    if detected is not None and detected.name == descriptor.name:
                        recognized = detected
                        break

                self.assertIsNotNone(recognized)

    def test_rank_covers_library_in_order(self):
        ranked = self.selector.rank(l_shape())
        self.assertEqual([s.name for s in ranked], descriptor_names())

    def test_unique_match(self):
        """A hand satisfying every rule of one descriptor and none of another picks it."""
        target = SignDescriptor("target", (
            CurlRule(Finger.INDEX, F, 4.0),
            PointingRule(Finger.THUMB, Pointing.LEFT, 3.0),
        ))
        other = SignDescriptor("other", (
            CurlRule(Finger.INDEX, H, 4.0),
            PointingRule(Finger.THUMB, Pointing.RIGHT, 3.0),
        ))
        selector = GestureSelector(library=(other, target))
        hand = make_hand(curls={Finger.INDEX: F}, pointings={Finger.THUMB: Pointing.LEFT})

        self.assertEqual(selector.select(hand), DetectedGesture("target", 7.0))

    def test_no_rules_satisfied(self):
        target = SignDescriptor("target", (
            CurlRule(Finger.INDEX, F, 4.0),
            PointingRule(Finger.THUMB, Pointing.LEFT, 3.0),
        ))
        selector = GestureSelector(library=(target,))
        self.assertIsNone(selector.select(make_hand()))

    def test_tie_keeps_earliest(self):
        rules = (CurlRule(Finger.INDEX, N, 7.0),)
        first = SignDescriptor("first", rules)
        second = SignDescriptor("second", rules)

        selector = GestureSelector(library=(first, second))
        for _ in range(3):
            self.assertEqual(selector.select(make_hand()).name, "first")

        reversed_selector = GestureSelector(library=(second, first))
        self.assertEqual(reversed_selector.select(make_hand()).name, "second")

    def test_threshold_is_inclusive(self):
        """A score exactly at the threshold is accepted; one unit below is rejected."""
        exact = SignDescriptor("exact", (
            CurlRule(Finger.INDEX, N, 1.5),
            CurlRule(Finger.MIDDLE, N, 2.0),
            CurlRule(Finger.RING, N, 3.0),
        ))
        below = SignDescriptor("below", (
            CurlRule(Finger.INDEX, N, 1.5),
            CurlRule(Finger.MIDDLE, N, 2.0),
            CurlRule(Finger.RING, N, 2.0),
        ))

        detected = GestureSelector(library=(exact,), threshold=6.5).select(make_hand())
        self.assertEqual(detected, DetectedGesture("exact", 6.5))
        self.assertIsNone(GestureSelector(library=(below,), threshold=6.5).select(make_hand()))

    def test_threshold_defaults_to_config(self):
        self.assertEqual(self.selector.threshold, 6.5)

    def test_empty_library_rejected(self):
        with self.assertRaises(ValueError):
            GestureSelector(library=())

    def test_malformed_observation_fails_fast(self):
        with self.assertRaises(MalformedObservationError):
            self.selector.select([(0.5, 0.5)] * 5)


if __name__ == '__main__':
    unittest.main()
