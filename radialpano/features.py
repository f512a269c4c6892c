"""
Harris corner detector with normalized patch descriptors,
using only NumPy and SciPy - no OpenCV dependencies.

Projected neighbours differ by a translation only, so descriptors do
not need rotation or scale invariance: a raw intensity patch around
each corner is enough.
"""

import numpy as np
from scipy.ndimage import binary_erosion, gaussian_filter, maximum_filter, sobel

from .config import DEFAULT_MAX_FEATURES, DEFAULT_PATCH_SIZE


class HarrisDetector:
    """
    Harris corner detection + patch descriptors.

    The pipeline is:
    1. Structure tensor from Sobel gradients, smoothed with a Gaussian
    2. Harris response det(M) - k * trace(M)^2
    3. Non-maximum suppression and relative threshold
    4. Zero-mean, unit-norm intensity patch per corner
    """

    def __init__(self, max_features=DEFAULT_MAX_FEATURES, patch_size=DEFAULT_PATCH_SIZE,
                 k=0.04, sigma=1.5, nms_size=7, threshold_rel=0.01):
        """
        Initialize detector.

        Args:
            max_features: Keep at most this many strongest corners
            patch_size: Side of the square descriptor patch (odd)
            k: Harris sensitivity
            sigma: Gaussian window for the structure tensor
            nms_size: Neighbourhood size for non-maximum suppression
            threshold_rel: Minimum response relative to the strongest corner
        """
        if patch_size % 2 == 0:
            raise ValueError(f"patch_size must be odd, got {patch_size}")

        self.max_features = max_features
        self.patch_size = patch_size
        self.k = k
        self.sigma = sigma
        self.nms_size = nms_size
        self.threshold_rel = threshold_rel

    def detect_and_compute(self, image):
        """
        Detect corners and compute descriptors.

        Args:
            image: Grayscale (H x W) or color (H x W x 3) image

        Returns:
            keypoints: List of dicts with 'x', 'y' and 'response'
            descriptors: Array of descriptors (N x patch_size**2)
        """
        gray = to_grayscale(image).astype(np.float64) / 255.0

        response = self._harris_response(gray)
        candidates = self._select_candidates(gray, response)

        ys, xs = np.nonzero(candidates)
        strengths = response[ys, xs]

        # Strongest first
        order = np.argsort(-strengths, kind='stable')[:self.max_features]
        ys, xs, strengths = ys[order], xs[order], strengths[order]

        keypoints = [
            {'x': float(x), 'y': float(y), 'response': float(r)}
            for y, x, r in zip(ys, xs, strengths)
        ]
        descriptors = self._patch_descriptors(gray, ys, xs)

        return keypoints, descriptors

    def _harris_response(self, gray):
        """Compute Harris corner response for every pixel."""
        ix = sobel(gray, axis=1)
        iy = sobel(gray, axis=0)

        ixx = gaussian_filter(ix * ix, self.sigma)
        iyy = gaussian_filter(iy * iy, self.sigma)
        ixy = gaussian_filter(ix * iy, self.sigma)

        det = ixx * iyy - ixy * ixy
        trace = ixx + iyy

        return det - self.k * trace * trace

    def _select_candidates(self, gray, response):
        """Local maxima above threshold, away from borders and projection holes."""
        # Corners along the curved edge of a projected image are artifacts
        # of the empty background, not scene features. The margin covers
        # the patch and the reach of the smoothed gradients.
        margin = max(self.patch_size // 2 + 1, int(np.ceil(4 * self.sigma)) + 1)
        structure = np.ones((2 * margin + 1, 2 * margin + 1), dtype=bool)
        content = binary_erosion(gray > 0, structure=structure, border_value=0)

        if not np.any(content):
            return content

        # Threshold against content corners only; the hole edge responds far stronger
        peak = response[content].max()
        if peak <= 0:
            return np.zeros(response.shape, dtype=bool)

        is_max = response == maximum_filter(response, size=self.nms_size)
        is_max &= response > self.threshold_rel * peak

        return is_max & content

    def _patch_descriptors(self, gray, ys, xs):
        """Extract zero-mean, unit-norm patches centered on each corner."""
        half = self.patch_size // 2
        dim = self.patch_size * self.patch_size

        if len(ys) == 0:
            return np.zeros((0, dim), dtype=np.float32)

        smoothed = gaussian_filter(gray, 1.0)
        offsets = np.arange(-half, half + 1)

        rows = ys[:, np.newaxis, np.newaxis] + offsets[np.newaxis, :, np.newaxis]
        cols = xs[:, np.newaxis, np.newaxis] + offsets[np.newaxis, np.newaxis, :]
        patches = smoothed[rows, cols].reshape(len(ys), dim)

        patches = patches - patches.mean(axis=1, keepdims=True)
        norms = np.linalg.norm(patches, axis=1, keepdims=True)
        norms[norms < 1e-10] = 1.0

        return (patches / norms).astype(np.float32)


def to_grayscale(image):
    """Convert image to grayscale if needed."""
    if image.ndim == 3:
        # RGB to grayscale using standard weights
        return np.dot(image[..., :3], [0.299, 0.587, 0.114])
    return image
