"""
Alpha-weighted compositing of warped images into the panorama canvas,
using only NumPy - no OpenCV dependencies.
"""

import numpy as np

from .errors import DimensionMismatch


class AlphaCompositor:
    """
    Blend a warped image into the canvas using feathering masks.

    Where both the canvas and the new image have content, each pixel is
    the alpha-weighted mean of the two, so the overlap favours whichever
    image is closer to its own center there. Where only the new image has
    content it is copied as is; everything else is left untouched.
    """

    def composite(self, new_image, new_mask, canvas, canvas_mask):
        """
        Composite new_image into canvas in place.

        Args:
            new_image: Warped image in canvas coordinates (H x W x C)
            new_mask: Its feathering mask (H x W)
            canvas: Current panorama (H x W x C), modified in place
            canvas_mask: Alpha of the canvas content (H x W), modified in place

        Returns:
            (blended, copied): Number of pixels blended and copied
        """
        shape = canvas.shape[:2]
        for what, raster in (('new image', new_image), ('new mask', new_mask),
                             ('canvas mask', canvas_mask)):
            if raster.shape[:2] != shape:
                raise DimensionMismatch(canvas.shape, raster.shape, what=what)

        new_valid = _has_content(new_image)
        canvas_valid = _has_content(canvas)

        overlap = new_valid & canvas_valid
        fill = new_valid & ~canvas_valid

        if np.any(overlap):
            a_new = new_mask[overlap].astype(np.float64)
            a_can = canvas_mask[overlap].astype(np.float64)
            total = a_new + a_can

            # Both at the zero-alpha border: fall back to an even mix
            degenerate = total <= 0
            a_new[degenerate] = 0.5
            a_can[degenerate] = 0.5
            total[degenerate] = 1.0

            pixels_new = new_image[overlap].astype(np.float64)
            pixels_can = canvas[overlap].astype(np.float64)

            if pixels_new.ndim == 2:
                a_new_c = a_new[:, np.newaxis]
                a_can_c = a_can[:, np.newaxis]
                total_c = total[:, np.newaxis]
            else:
                a_new_c, a_can_c, total_c = a_new, a_can, total

            blended = (a_new_c * pixels_new + a_can_c * pixels_can) / total_c
            canvas[overlap] = _to_dtype(blended, canvas.dtype)
            canvas_mask[overlap] = np.maximum(new_mask[overlap], canvas_mask[overlap])

        canvas[fill] = new_image[fill]
        canvas_mask[fill] = new_mask[fill]

        return int(np.sum(overlap)), int(np.sum(fill))


def _has_content(image):
    """Pixels that are not background (any channel non-zero)."""
    if image.ndim == 3:
        return np.any(image != 0, axis=2)
    return image != 0


def _to_dtype(values, dtype):
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        values = np.clip(np.rint(values), info.min, info.max)
    return values.astype(dtype)


def crop_black_borders(image):
    """
    Crop black borders from image.

    Args:
        image: Input image

    Returns:
        Cropped image (a view), or the input if it is entirely black
    """
    mask = _has_content(image)

    if not np.any(mask):
        return image

    rows = np.any(mask, axis=1)
    cols = np.any(mask, axis=0)

    y_min, y_max = np.where(rows)[0][[0, -1]]
    x_min, x_max = np.where(cols)[0][[0, -1]]

    return image[y_min:y_max+1, x_min:x_max+1]
