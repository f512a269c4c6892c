"""
Feathering (alpha) masks for blending overlapping images.
"""

import numpy as np

from .errors import DimensionMismatch


def build_feather_mask(width, height):
    """
    Build an alpha mask that is 1 on the center lines of the image and
    falls off linearly towards the border.

    The distance to the left/top edge is counted from 1 and the distance
    to the right/bottom edge from 0, so the first row and column get
    1 / max_dist while the last row and column get exactly 0.

    Args:
        width: Mask width in pixels (>= 2)
        height: Mask height in pixels (>= 2)

    Returns:
        mask: float64 array (height x width) with values in [0, 1]
    """
    if width < 2 or height < 2:
        raise ValueError(f"Mask needs at least 2x2 pixels, got {width}x{height}")

    max_dist = min(width, height) // 2

    xs = np.arange(width)
    ys = np.arange(height)

    x_dist = np.minimum(xs + 1, width - xs - 1)
    y_dist = np.minimum(ys + 1, height - ys - 1)

    mask = np.minimum(y_dist[:, np.newaxis], x_dist[np.newaxis, :])

    return mask.astype(np.float64) / max_dist


def build_blend_mask(image, mask=None):
    """
    Build the feather mask for an image.

    Args:
        image: Image the mask belongs to (H x W [x C])
        mask: Optional preallocated float array (H x W) to fill in place

    Returns:
        The filled mask
    """
    height, width = image.shape[:2]

    if mask is None:
        return build_feather_mask(width, height)

    if mask.shape[:2] != (height, width):
        raise DimensionMismatch(image.shape, mask.shape, what='blend mask')

    mask[...] = build_feather_mask(width, height)
    return mask
