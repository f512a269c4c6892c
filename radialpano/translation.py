"""
Translation-only RANSAC between two projected images.
"""

import logging
from collections import namedtuple

import numpy as np

from .config import DEFAULT_SEED, DEFAULT_TOLERANCE
from .correspondence import to_point_arrays
from .errors import InsufficientCorrespondences

logger = logging.getLogger(__name__)


TranslationEstimate = namedtuple(
    'TranslationEstimate', ['dx', 'dy', 'consensus', 'consensus_found']
)
TranslationEstimate.__doc__ = """
Shift (dx, dy) mapping image A's frame onto image B's.

consensus is the number of other correspondences that agreed with the
chosen hypothesis; consensus_found is False when no hypothesis had any
support and the last sampled one was returned instead.
"""


class TranslationEstimator:
    """
    RANSAC estimator for a pure 2D translation.

    Each trial samples one correspondence, takes its displacement as the
    hypothesis and counts how many of the remaining correspondences have
    a displacement within tolerance on both axes.
    """

    def __init__(self, tolerance=DEFAULT_TOLERANCE, seed=DEFAULT_SEED,
                 num_trials=None, min_correspondences=1):
        """
        Initialize translation estimator.

        Args:
            tolerance: Per-axis agreement threshold in pixels
            seed: Seed for the sampler; every call restarts from it
            num_trials: Number of trials, or None for one per correspondence
            min_correspondences: Fewer correspondences than this is an error
        """
        if tolerance <= 0:
            raise ValueError(f"Tolerance must be positive, got {tolerance}")
        if min_correspondences < 1:
            raise ValueError("min_correspondences must be at least 1")
        if num_trials is not None and num_trials < 1:
            raise ValueError(f"num_trials must be at least 1, got {num_trials}")

        self.tolerance = tolerance
        self.seed = seed
        self.num_trials = num_trials
        self.min_correspondences = min_correspondences

    def estimate(self, correspondences, pair=None):
        """
        Estimate the translation from a list of Correspondence.

        Args:
            correspondences: Sequence of Correspondence (p_from -> p_to)
            pair: Optional (left, right) index pair, used in errors and logs

        Returns:
            TranslationEstimate
        """
        src, dst = to_point_arrays(correspondences)
        return self.estimate_points(src, dst, pair=pair)

    def estimate_points(self, src_points, dst_points, pair=None):
        """
        Estimate the translation mapping src_points onto dst_points.

        Args:
            src_points: Points in image A (N x 2)
            dst_points: Matching points in image B (N x 2)
            pair: Optional (left, right) index pair, used in errors and logs

        Returns:
            TranslationEstimate
        """
        src_points = np.asarray(src_points, dtype=np.float64).reshape(-1, 2)
        dst_points = np.asarray(dst_points, dtype=np.float64).reshape(-1, 2)

        if len(src_points) != len(dst_points):
            raise ValueError("Source and destination points must have same length")

        n_points = len(src_points)
        if n_points < self.min_correspondences:
            raise InsufficientCorrespondences(n_points, self.min_correspondences, pair)

        shifts = dst_points - src_points
        trials = self.num_trials if self.num_trials is not None else n_points
        rng = np.random.default_rng(self.seed)

        best_shift = None
        best_consensus = 0
        shift = None

        for _ in range(trials):
            index = rng.integers(n_points)
            shift = shifts[index]

            agrees = np.all(np.abs(shifts - shift) < self.tolerance, axis=1)
            agrees[index] = False
            consensus = int(np.sum(agrees))

            # Ties keep the first hypothesis found
            if consensus > best_consensus:
                best_consensus = consensus
                best_shift = shift

        if best_shift is None:
            logger.warning(
                "No consensus among %d correspondences%s, using last sampled shift (%.1f, %.1f)",
                n_points, _describe(pair), shift[0], shift[1]
            )
            return TranslationEstimate(float(shift[0]), float(shift[1]), 0, False)

        logger.debug("Best translation (%.1f, %.1f) supported by %d of %d",
                     best_shift[0], best_shift[1], best_consensus, n_points - 1)

        return TranslationEstimate(float(best_shift[0]), float(best_shift[1]),
                                   best_consensus, True)


def _describe(pair):
    return f" for image pair {pair}" if pair is not None else ""
