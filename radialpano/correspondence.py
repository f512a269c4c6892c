"""
Point correspondences between adjacent images.

The detector and matcher are pluggable: any object with
``detect_and_compute(image) -> (keypoints, descriptors)`` and any object
with ``match(desc1, desc2) -> [{'queryIdx', 'trainIdx', 'distance'}]``
can be used.
"""

import logging

import numpy as np

from .config import DEFAULT_MATCH_RATIO
from .features import HarrisDetector, to_grayscale
from .matcher import FeatureMatcher

logger = logging.getLogger(__name__)


class Correspondence:
    """A matched point pair: p_from in image A, p_to in image B."""

    __slots__ = ('p_from', 'p_to', 'score')

    def __init__(self, p_from, p_to, score=0.0):
        self.p_from = (float(p_from[0]), float(p_from[1]))
        self.p_to = (float(p_to[0]), float(p_to[1]))
        self.score = float(score)

    @property
    def shift(self):
        """Translation taking p_from onto p_to."""
        return (self.p_to[0] - self.p_from[0], self.p_to[1] - self.p_from[1])

    def __eq__(self, other):
        if not isinstance(other, Correspondence):
            return NotImplemented
        return (self.p_from, self.p_to, self.score) == (other.p_from, other.p_to, other.score)

    def __repr__(self):
        return f"Correspondence({self.p_from} -> {self.p_to}, score={self.score:.3f})"


def filter_matches(matches, ratio=DEFAULT_MATCH_RATIO):
    """
    Keep matches scoring below ratio times the best score.

    Args:
        matches: Sequence of objects/dicts with a score ('distance' key
                 for dicts, .score attribute otherwise)
        ratio: Multiple of the minimum score to accept

    Returns:
        Filtered list, original order preserved. When the best score is 0
        only the exact matches are kept.
    """
    if not matches:
        return []

    scores = [_score(m) for m in matches]
    min_score = min(scores)

    if min_score <= 0:
        return [m for m, s in zip(matches, scores) if s <= 0]

    limit = ratio * min_score
    return [m for m, s in zip(matches, scores) if s < limit]


def _score(match):
    if isinstance(match, dict):
        return match['distance']
    return match.score


def to_point_arrays(correspondences):
    """Split correspondences into (N x 2) source and destination arrays."""
    if len(correspondences) == 0:
        return np.zeros((0, 2)), np.zeros((0, 2))

    src = np.array([c.p_from for c in correspondences], dtype=np.float64)
    dst = np.array([c.p_to for c in correspondences], dtype=np.float64)
    return src, dst


class CorrespondenceFinder:
    """
    Finds filtered point correspondences between two images.
    """

    def __init__(self, detector=None, matcher=None, distance_ratio=DEFAULT_MATCH_RATIO):
        """
        Initialize correspondence finder.

        Args:
            detector: Keypoint detector (default: HarrisDetector())
            matcher: Descriptor matcher (default: FeatureMatcher())
            distance_ratio: Keep matches with score < ratio * best score
        """
        self.detector = detector if detector is not None else HarrisDetector()
        self.matcher = matcher if matcher is not None else FeatureMatcher()
        self.distance_ratio = distance_ratio

    def match(self, image_a, image_b):
        """
        Find correspondences from image_a to image_b.

        Args:
            image_a: Image whose points become p_from
            image_b: Image whose points become p_to

        Returns:
            List of Correspondence, possibly empty
        """
        kp_a, desc_a = self.detector.detect_and_compute(to_grayscale(image_a))
        kp_b, desc_b = self.detector.detect_and_compute(to_grayscale(image_b))
        logger.debug("Detected %d and %d keypoints", len(kp_a), len(kp_b))

        if len(kp_a) == 0 or len(kp_b) == 0:
            return []

        raw = self.matcher.match(desc_a, desc_b)
        kept = filter_matches(raw, self.distance_ratio)
        logger.debug("Kept %d of %d raw matches", len(kept), len(raw))

        return [
            Correspondence(
                (kp_a[m['queryIdx']]['x'], kp_a[m['queryIdx']]['y']),
                (kp_b[m['trainIdx']]['x'], kp_b[m['trainIdx']]['y']),
                m['distance'],
            )
            for m in kept
        ]
