"""
Brute-force descriptor matching using L2 (Euclidean) distance.
Pure implementation without OpenCV.
"""

import numpy as np


class FeatureMatcher:
    """
    Brute-force nearest-neighbour matcher.

    Every query descriptor is paired with its closest train descriptor.
    Optional cross-check and Lowe's ratio test make the matcher stricter;
    both are off by default because candidate filtering happens later on
    the match scores.
    """

    def __init__(self, cross_check=False, ratio_threshold=None):
        """
        Initialize feature matcher.

        Args:
            cross_check: Keep only mutual nearest neighbours
            ratio_threshold: Lowe's ratio test threshold, or None to disable
        """
        self.cross_check = cross_check
        self.ratio_threshold = ratio_threshold

    def match(self, descriptors1, descriptors2):
        """
        Match features between two sets of descriptors.

        Args:
            descriptors1: Query descriptors (N x D)
            descriptors2: Train descriptors (M x D)

        Returns:
            matches: List of dicts with queryIdx, trainIdx and distance,
                     sorted by ascending distance
        """
        if len(descriptors1) == 0 or len(descriptors2) == 0:
            return []

        desc1 = np.asarray(descriptors1, dtype=np.float32)
        desc2 = np.asarray(descriptors2, dtype=np.float32)

        distances = compute_distance_matrix(desc1, desc2)

        matches = self._nearest_matches(distances)

        if self.cross_check:
            reverse = np.argmin(distances, axis=0)
            matches = [m for m in matches if reverse[m['trainIdx']] == m['queryIdx']]

        matches.sort(key=lambda m: m['distance'])

        return matches

    def _nearest_matches(self, distances):
        """Nearest train descriptor for every query row."""
        nearest = np.argmin(distances, axis=1)
        matches = []

        for i, j in enumerate(nearest):
            nearest_dist = distances[i, j]

            if self.ratio_threshold is not None:
                if distances.shape[1] < 2:
                    continue
                second_dist = np.partition(distances[i], 1)[1]
                if second_dist <= 0 or nearest_dist / second_dist >= self.ratio_threshold:
                    continue

            matches.append({
                'queryIdx': i,
                'trainIdx': int(j),
                'distance': float(nearest_dist)
            })

        return matches


def compute_distance_matrix(desc1, desc2):
    """
    Compute L2 distance matrix between two sets of descriptors.

    Args:
        desc1: N x D array
        desc2: M x D array

    Returns:
        distances: N x M matrix where distances[i, j] is the L2 distance
                   between desc1[i] and desc2[j]
    """
    # ||a - b||^2 = ||a||^2 + ||b||^2 - 2*a·b
    sq_norms1 = np.sum(desc1**2, axis=1, keepdims=True)
    sq_norms2 = np.sum(desc2**2, axis=1, keepdims=True)

    sq_distances = sq_norms1 + sq_norms2.T - 2 * np.dot(desc1, desc2.T)

    # Rounding can push tiny distances below zero
    sq_distances = np.maximum(sq_distances, 0)

    return np.sqrt(sq_distances)
