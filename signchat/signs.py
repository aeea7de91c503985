"""
Static library of fingerspelling hand signs, one descriptor per letter.

Every descriptor gives each finger an expected curl (weight 1.0 per finger)
plus a few pointing and finger-pair rules. A perfect match scores between
7.5 and 9.5; alternative pointings of the same finger (e.g. the J sweep) can
not all be satisfied at once.

SIGN_LIBRARY is ordered A..Z. The selector keeps the earliest descriptor on
a tie, so this order is part of the classification result.
"""
from typing import Dict, List, Tuple

from .types import (
    Curl,
    CurlRule,
    DirectionRule,
    Finger,
    Pointing,
    PointingRule,
    Relation,
    Rule,
    SignDescriptor,
)

N = Curl.NO_CURL
H = Curl.HALF_CURL
F = Curl.FULL_CURL

TH, IX, MD, RG, PK = Finger.THUMB, Finger.INDEX, Finger.MIDDLE, Finger.RING, Finger.PINKY


def _curls(thumb: Curl, index: Curl, middle: Curl, ring: Curl, pinky: Curl,
           weight: float = 1.0) -> Tuple[CurlRule, ...]:
    states = (thumb, index, middle, ring, pinky)
    return tuple(CurlRule(finger, curl, weight) for finger, curl in zip(Finger, states))


def _sign(name: str, curls: Tuple[CurlRule, ...], *rules: Rule) -> SignDescriptor:
    return SignDescriptor(name=name, rules=curls + tuple(rules))


def _point(finger: Finger, pointing: Pointing, weight: float) -> PointingRule:
    return PointingRule(finger, pointing, weight)


def _pair(first: Finger, second: Finger, relation: Relation, weight: float) -> DirectionRule:
    return DirectionRule(first, second, relation, weight)


SIGN_LIBRARY: Tuple[SignDescriptor, ...] = (
    _sign("A", _curls(N, F, F, F, F),
          _point(TH, Pointing.UP, 2.0),
          _pair(IX, MD, Relation.ALIGNED, 1.0),
          _pair(MD, RG, Relation.ALIGNED, 1.0)),
    _sign("B", _curls(H, N, N, N, N),
          _point(IX, Pointing.UP, 1.0),
          _point(MD, Pointing.UP, 1.0),
          _pair(IX, MD, Relation.ALIGNED, 1.0),
          _pair(RG, PK, Relation.ALIGNED, 1.0)),
    _sign("C", _curls(H, H, H, H, H),
          _point(IX, Pointing.RIGHT, 1.5),
          _pair(TH, IX, Relation.SPREAD, 1.5),
          _pair(IX, PK, Relation.ALIGNED, 1.0)),
    _sign("D", _curls(H, N, F, F, F),
          _point(IX, Pointing.UP, 2.0),
          _point(TH, Pointing.UP_LEFT, 1.0),
          _pair(MD, RG, Relation.ALIGNED, 1.0)),
    _sign("E", _curls(F, F, F, F, F),
          _point(IX, Pointing.DOWN, 1.5),
          _point(TH, Pointing.LEFT, 1.5),
          _pair(IX, PK, Relation.ALIGNED, 1.0)),
    _sign("F", _curls(N, F, N, N, N),
          _point(TH, Pointing.UP, 1.0),
          _point(MD, Pointing.UP, 1.0),
          _point(RG, Pointing.UP, 1.0),
          _pair(MD, PK, Relation.SPREAD, 1.0)),
    _sign("G", _curls(N, N, F, F, F),
          _point(IX, Pointing.RIGHT, 2.0),
          _point(TH, Pointing.RIGHT, 1.0),
          _pair(TH, IX, Relation.ALIGNED, 1.0)),
    _sign("H", _curls(N, N, N, F, F),
          _point(IX, Pointing.RIGHT, 1.5),
          _point(MD, Pointing.RIGHT, 1.5),
          _pair(IX, MD, Relation.ALIGNED, 1.0)),
    _sign("I", _curls(H, F, F, F, N),
          _point(PK, Pointing.UP, 2.0),
          _pair(IX, MD, Relation.ALIGNED, 1.0),
          _pair(MD, RG, Relation.ALIGNED, 1.0)),
    _sign("J", _curls(H, F, F, F, N),
          _point(PK, Pointing.LEFT, 1.5),
          _point(PK, Pointing.DOWN_LEFT, 1.5),
          _pair(IX, MD, Relation.ALIGNED, 1.0)),
    _sign("K", _curls(N, N, N, F, F),
          _point(IX, Pointing.UP, 1.5),
          _point(MD, Pointing.UP_RIGHT, 1.0),
          _point(TH, Pointing.UP, 1.0),
          _pair(IX, MD, Relation.SPREAD, 1.0)),
    _sign("L", _curls(N, N, F, F, F),
          _point(IX, Pointing.UP, 1.5),
          _point(TH, Pointing.LEFT, 0.75),
          _point(TH, Pointing.RIGHT, 0.75),
          _pair(TH, IX, Relation.PERPENDICULAR, 2.0)),
    _sign("M", _curls(F, H, H, H, F),
          _point(IX, Pointing.DOWN, 1.5),
          _point(MD, Pointing.DOWN, 1.0),
          _pair(IX, RG, Relation.ALIGNED, 1.0)),
    _sign("N", _curls(F, H, H, F, F),
          _point(IX, Pointing.DOWN, 1.5),
          _point(MD, Pointing.DOWN, 1.0),
          _pair(IX, MD, Relation.ALIGNED, 1.0)),
    _sign("O", _curls(H, H, H, H, H),
          _point(TH, Pointing.UP_RIGHT, 1.0),
          _pair(TH, IX, Relation.OPPOSED, 2.0),
          _pair(IX, PK, Relation.ALIGNED, 1.0)),
    _sign("P", _curls(N, N, H, F, F),
          _point(IX, Pointing.DOWN_RIGHT, 1.5),
          _point(MD, Pointing.DOWN, 1.5),
          _pair(IX, MD, Relation.SPREAD, 1.0)),
    _sign("Q", _curls(N, N, F, F, F),
          _point(IX, Pointing.DOWN, 1.5),
          _point(TH, Pointing.DOWN, 1.5),
          _pair(TH, IX, Relation.ALIGNED, 1.0)),
    _sign("R", _curls(H, N, N, F, F),
          _point(IX, Pointing.UP, 1.0),
          _point(MD, Pointing.UP_LEFT, 1.5),
          _pair(IX, MD, Relation.ALIGNED, 1.5)),
    _sign("S", _curls(F, F, F, F, F),
          _point(TH, Pointing.RIGHT, 1.5),
          _pair(IX, MD, Relation.ALIGNED, 1.0),
          _pair(RG, PK, Relation.ALIGNED, 1.0)),
    _sign("T", _curls(H, F, F, F, F),
          _point(TH, Pointing.UP_RIGHT, 1.5),
          _pair(TH, IX, Relation.OPPOSED, 1.5),
          _pair(MD, RG, Relation.ALIGNED, 1.0)),
    _sign("U", _curls(H, N, N, F, F),
          _point(IX, Pointing.UP, 1.5),
          _point(MD, Pointing.UP, 1.5),
          _pair(IX, MD, Relation.ALIGNED, 1.0)),
    _sign("V", _curls(H, N, N, F, F),
          _point(IX, Pointing.UP_LEFT, 1.0),
          _point(MD, Pointing.UP_RIGHT, 1.0),
          _pair(IX, MD, Relation.SPREAD, 2.0)),
    _sign("W", _curls(H, N, N, N, F),
          _point(MD, Pointing.UP, 1.0),
          _pair(IX, MD, Relation.SPREAD, 1.5),
          _pair(MD, RG, Relation.SPREAD, 1.5)),
    _sign("X", _curls(H, H, F, F, F),
          _point(IX, Pointing.UP, 1.5),
          _point(IX, Pointing.UP_LEFT, 1.5),
          _pair(MD, RG, Relation.ALIGNED, 1.0)),
    _sign("Y", _curls(N, F, F, F, N),
          _point(TH, Pointing.UP_LEFT, 1.0),
          _point(PK, Pointing.UP_RIGHT, 1.0),
          _pair(TH, PK, Relation.PERPENDICULAR, 1.5)),
    _sign("Z", _curls(H, N, F, F, F),
          _point(IX, Pointing.LEFT, 1.5),
          _point(IX, Pointing.RIGHT, 1.5),
          _pair(MD, RG, Relation.ALIGNED, 1.0)),
)

_BY_NAME: Dict[str, SignDescriptor] = {d.name: d for d in SIGN_LIBRARY}


def descriptor_names() -> List[str]:
    """Names in library (tie-break) order."""
    return [d.name for d in SIGN_LIBRARY]


def get_descriptor(name: str) -> SignDescriptor:
    """Look up a descriptor by letter; raises KeyError for unknown names."""
    return _BY_NAME[name.upper()]
