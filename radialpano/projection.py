"""
Radial reprojection of planar images onto a spherical or cylindrical
surface, and the translation warp used to place images on the canvas.

Both use backward (inverse) mapping: for every output pixel we compute
where it comes from in the input, so the output has no gaps.
"""

import numpy as np

from .config import DEFAULT_FOCAL_LENGTH, DEFAULT_PROJECTION, DEFAULT_INTERPOLATION


def _spherical_surface(theta, phi):
    """Unit-sphere point for longitude theta and latitude phi."""
    xp = np.sin(theta) * np.cos(phi)
    yp = np.sin(phi)
    zp = np.cos(theta) * np.cos(phi)
    return xp, yp, zp


def _cylindrical_surface(theta, h):
    """Unit-cylinder point for angle theta and height h."""
    xp = np.sin(theta)
    yp = h
    zp = np.cos(theta)
    return xp, yp, zp


SURFACES = {
    'spherical': _spherical_surface,
    'cylindrical': _cylindrical_surface,
}


def _round_half_away(values):
    """Round to nearest integer, halves away from zero."""
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


class RadialProjector:
    """
    Project planar images onto a viewing surface around the optical center.

    After projection, rotating the camera about its center becomes a plain
    translation of the image, which is what makes translation-only
    registration possible.
    """

    def __init__(self, focal_length=DEFAULT_FOCAL_LENGTH, mode=DEFAULT_PROJECTION):
        """
        Initialize projector.

        Args:
            focal_length: Focal length in pixels (must be positive)
            mode: 'spherical' or 'cylindrical'
        """
        if mode not in SURFACES:
            raise ValueError(
                f"Unknown projection mode {mode!r}, expected one of {sorted(SURFACES)}"
            )
        if not focal_length > 0:
            raise ValueError(f"Focal length must be positive, got {focal_length}")

        self.focal_length = float(focal_length)
        self.mode = mode

    def project(self, image):
        """
        Project an image (H x W x C) or a mask (H x W).

        Args:
            image: Input raster

        Returns:
            Projected raster with the same shape and dtype. Pixels whose
            source falls outside the input stay 0.
        """
        f = self.focal_length
        rows, cols = image.shape[:2]
        x_center = cols // 2
        y_center = rows // 2

        y_coords, x_coords = np.meshgrid(np.arange(rows), np.arange(cols), indexing='ij')

        theta = (x_coords - x_center) / f
        phi = (y_coords - y_center) / f
        xp, yp, zp = SURFACES[self.mode](theta, phi)

        # Surface points behind the camera have no planar source
        in_front = zp > 0
        safe_zp = np.where(in_front, zp, 1.0)

        x_in = _round_half_away(f * xp / safe_zp + x_center)
        y_in = _round_half_away(f * yp / safe_zp + y_center)

        valid = in_front & (x_in > -1) & (x_in < cols) & (y_in > -1) & (y_in < rows)

        output = np.zeros_like(image)
        output[y_coords[valid], x_coords[valid]] = image[
            y_in[valid].astype(np.intp), x_in[valid].astype(np.intp)
        ]

        return output

    def __repr__(self):
        return f"RadialProjector(focal_length={self.focal_length}, mode={self.mode!r})"


def project_radial(image, focal_length=DEFAULT_FOCAL_LENGTH, mode=DEFAULT_PROJECTION):
    """Project a single raster. Shortcut for RadialProjector(...).project(image)."""
    return RadialProjector(focal_length, mode).project(image)


def warp_translation(image, tx, ty, output_shape, interpolation=DEFAULT_INTERPOLATION):
    """
    Translate an image into a (usually larger) output raster.

    Args:
        image: Input image (H x W x C) or (H x W)
        tx, ty: Shift applied to the image, in output pixels
        output_shape: Output shape (height, width)
        interpolation: 'bilinear' or 'nearest'

    Returns:
        Warped image of shape output_shape (plus channels). Content that
        lands outside the output is clipped.
    """
    h, w = output_shape[:2]

    if interpolation not in ('bilinear', 'nearest'):
        raise ValueError(f"Unknown interpolation {interpolation!r}")

    y_coords, x_coords = np.meshgrid(np.arange(h), np.arange(w), indexing='ij')

    # Inverse translation for backward warping
    src_x = x_coords - tx
    src_y = y_coords - ty

    if interpolation == 'nearest':
        return _nearest_sample(image, src_x, src_y)

    return _bilinear_sample(image, src_x, src_y)


def _nearest_sample(image, x, y):
    """Nearest-neighbour sampling, 0 outside the image."""
    h, w = image.shape[:2]

    xi = _round_half_away(x)
    yi = _round_half_away(y)
    valid = (xi >= 0) & (xi < w) & (yi >= 0) & (yi < h)

    output = np.zeros(x.shape + image.shape[2:], dtype=image.dtype)
    output[valid] = image[yi[valid].astype(np.intp), xi[valid].astype(np.intp)]

    return output


def _bilinear_sample(image, x, y):
    """
    Bilinear interpolation, 0 outside the image.

    Args:
        image: Input image (H x W x C) or (H x W)
        x: X coordinates (H' x W')
        y: Y coordinates (H' x W')

    Returns:
        Interpolated values (H' x W' [x C]) in the input dtype
    """
    h, w = image.shape[:2]

    # Samples within half a pixel of the border still count as inside,
    # so integer shifts reproduce the input exactly.
    mask = (x > -0.5) & (x < w - 0.5) & (y > -0.5) & (y < h - 0.5)

    x = np.clip(x, 0, w - 1)
    y = np.clip(y, 0, h - 1)

    x0 = np.floor(x).astype(np.intp)
    y0 = np.floor(y).astype(np.intp)
    x1 = np.minimum(x0 + 1, w - 1)
    y1 = np.minimum(y0 + 1, h - 1)

    fx = x - x0
    fy = y - y0

    w00 = (1 - fx) * (1 - fy)
    w01 = (1 - fx) * fy
    w10 = fx * (1 - fy)
    w11 = fx * fy

    if image.ndim == 3:
        w00, w01, w10, w11 = (wt[..., np.newaxis] for wt in (w00, w01, w10, w11))
        mask_c = mask[..., np.newaxis]
    else:
        mask_c = mask

    values = (w00 * image[y0, x0] + w01 * image[y1, x0] +
              w10 * image[y0, x1] + w11 * image[y1, x1]) * mask_c

    if np.issubdtype(image.dtype, np.integer):
        info = np.iinfo(image.dtype)
        values = np.clip(np.rint(values), info.min, info.max)

    return values.astype(image.dtype)
