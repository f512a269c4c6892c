"""
Debug rendering of correspondences between two images.
"""

import numpy as np


def draw_correspondences(img_a, img_b, correspondences, max_matches=100,
                         color=(0, 255, 0)):
    """
    Create side-by-side visualization of correspondences.

    Args:
        img_a: Image holding the p_from points (left)
        img_b: Image holding the p_to points (right)
        correspondences: Sequence of Correspondence
        max_matches: Maximum number of correspondences to draw
        color: RGB line color

    Returns:
        uint8 RGB image (max(h_a, h_b) x (w_a + w_b) x 3)
    """
    img_a = _as_rgb(img_a)
    img_b = _as_rgb(img_b)

    h1, w1 = img_a.shape[:2]
    h2, w2 = img_b.shape[:2]

    vis = np.zeros((max(h1, h2), w1 + w2, 3), dtype=np.uint8)
    vis[:h1, :w1] = img_a
    vis[:h2, w1:w1+w2] = img_b

    for c in list(correspondences)[:max_matches]:
        pt1 = (int(round(c.p_from[0])), int(round(c.p_from[1])))
        pt2 = (int(round(c.p_to[0])) + w1, int(round(c.p_to[1])))

        draw_line(vis, pt1, pt2, color)
        draw_circle(vis, pt1, 3, color)
        draw_circle(vis, pt2, 3, color)

    return vis


def _as_rgb(image):
    if image.ndim == 2:
        image = np.stack([image] * 3, axis=2)
    return np.clip(image, 0, 255).astype(np.uint8)


def _paint(image, rows, cols, color):
    """Set the given pixels, ignoring any that fall off the image."""
    inside = (rows >= 0) & (rows < image.shape[0]) & (cols >= 0) & (cols < image.shape[1])
    image[rows[inside], cols[inside]] = color


def draw_line(image, pt1, pt2, color):
    """Draw a one-pixel line by sampling once per step along the longer axis."""
    (x1, y1), (x2, y2) = pt1, pt2
    steps = max(abs(x2 - x1), abs(y2 - y1)) + 1

    xs = np.rint(np.linspace(x1, x2, steps)).astype(np.intp)
    ys = np.rint(np.linspace(y1, y2, steps)).astype(np.intp)

    _paint(image, ys, xs, color)


def draw_circle(image, center, radius, color):
    """Draw filled circle on image."""
    cx, cy = center
    dy, dx = np.nonzero(np.hypot(*np.ogrid[-radius:radius + 1, -radius:radius + 1]) <= radius)

    _paint(image, dy - radius + cy, dx - radius + cx, color)
