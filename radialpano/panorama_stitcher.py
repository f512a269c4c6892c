"""
Radial panorama stitching pipeline
using only NumPy and mathematical libraries - no OpenCV dependencies.
"""

import logging

import numpy as np

from .compositing import AlphaCompositor
from .config import CANVAS_HEIGHT_SCALE, CANVAS_OVERLAP, DEFAULT_INTERPOLATION
from .correspondence import CorrespondenceFinder
from .errors import DimensionMismatch, StitchError
from .feathering import build_blend_mask
from .features import HarrisDetector
from .image_io import read_images
from .matcher import FeatureMatcher
from .projection import RadialProjector, warp_translation
from .translation import TranslationEstimator

logger = logging.getLogger(__name__)


class TransformChain:
    """
    Absolute canvas offsets of every image.

    The first entry is the centering offset of the first image; each
    following entry is the previous one plus the pairwise translation.
    Errors accumulate and are never corrected.
    """

    def __init__(self, origin):
        self._offsets = [np.asarray(origin, dtype=np.float64)]

    def append_relative(self, dx, dy):
        """Chain a pairwise translation onto the last offset and return the result."""
        offset = self._offsets[-1] + np.array([dx, dy], dtype=np.float64)
        self._offsets.append(offset)
        return offset

    def __getitem__(self, index):
        return self._offsets[index]

    def __len__(self):
        return len(self._offsets)

    def as_list(self):
        """Offsets as a list of (tx, ty) float tuples."""
        return [(float(tx), float(ty)) for tx, ty in self._offsets]


class StitchResult:
    """Output of a stitching run."""

    def __init__(self, panorama, alpha, transforms, estimates, correspondences=None):
        self.panorama = panorama
        self.alpha = alpha
        self.transforms = transforms
        self.estimates = estimates
        self.correspondences = correspondences or []


def canvas_shape(image_shape, num_images):
    """
    Canvas size for a sequence, assuming every image adds half a width.

    Args:
        image_shape: Shape of the first image
        num_images: Number of images in the sequence

    Returns:
        (height, width)
    """
    rows, cols = image_shape[:2]
    height = int(CANVAS_HEIGHT_SCALE * rows)
    width = int(cols + (num_images - 1) * CANVAS_OVERLAP * cols)
    return height, width


def centering_offset(image_shape, canvas_size):
    """Offset (tx, ty) that centers the first image vertically on the canvas."""
    rows = image_shape[0]
    return 0.0, float(canvas_size[0] // 2 - rows // 2)


class PanoramaStitcher:
    """
    Complete radial panorama stitching pipeline.

    This class coordinates all components:
    1. Radial projection of every image and its feathering mask
    2. Correspondences between each image and its left neighbour
    3. Translation estimation with RANSAC
    4. Chaining translations and compositing onto a fixed canvas
    """

    def __init__(self,
                 projection_params=None,
                 detector_params=None,
                 matcher_params=None,
                 ransac_params=None,
                 interpolation=DEFAULT_INTERPOLATION,
                 correspondence_finder=None,
                 keep_correspondences=False):
        """
        Initialize Panorama Stitcher.

        Args:
            projection_params: Parameters for RadialProjector
            detector_params: Parameters for HarrisDetector
            matcher_params: Parameters for FeatureMatcher, plus optional
                            'distance_ratio' for candidate filtering
            ransac_params: Parameters for TranslationEstimator
            interpolation: Interpolation used to place images on the canvas
            correspondence_finder: Replaces the detector/matcher pair entirely
            keep_correspondences: Store per-pair correspondences in the result
        """
        self.projector = RadialProjector(**(projection_params or {}))

        if correspondence_finder is None:
            matcher_params = dict(matcher_params or {})
            distance_ratio = matcher_params.pop('distance_ratio', None)
            finder_kwargs = {}
            if distance_ratio is not None:
                finder_kwargs['distance_ratio'] = distance_ratio
            correspondence_finder = CorrespondenceFinder(
                detector=HarrisDetector(**(detector_params or {})),
                matcher=FeatureMatcher(**matcher_params),
                **finder_kwargs
            )
        self.correspondence_finder = correspondence_finder

        self.estimator = TranslationEstimator(**(ransac_params or {}))
        self.compositor = AlphaCompositor()
        self.interpolation = interpolation
        self.keep_correspondences = keep_correspondences

    def prepare(self, images):
        """
        Project every image and its feathering mask onto the viewing surface.

        Args:
            images: List of color images, all the same size

        Returns:
            (projected_images, projected_masks)
        """
        if len(images) == 0:
            raise ValueError("No images provided")

        first_shape = images[0].shape
        projected, masks = [], []

        for i, image in enumerate(images):
            if image.shape != first_shape:
                raise DimensionMismatch(first_shape, image.shape, what=f"image {i}")

            mask = build_blend_mask(image)
            projected.append(self.projector.project(image))
            masks.append(self.projector.project(mask))

        logger.info("Projected %d images (%s, f=%.0f)",
                    len(images), self.projector.mode, self.projector.focal_length)

        return projected, masks

    def stitch(self, images):
        """
        Stitch images ordered left to right.

        Args:
            images: List of color images (H x W x 3), all the same size

        Returns:
            StitchResult
        """
        src, masks = self.prepare(images)
        num_images = len(src)

        logger.info("Stitching %d images...", num_images)

        first = src[0]
        size = canvas_shape(first.shape, num_images)
        origin = centering_offset(first.shape, size)
        transforms = TransformChain(origin)

        panorama = self._warp(first, origin, size)
        alpha = self._warp(masks[0], origin, size)

        estimates = []
        pair_correspondences = []

        for i in range(1, num_images):
            pair = (i - 1, i)
            logger.info("Stitching image %d/%d", i + 1, num_images)

            try:
                correspondences = self.correspondence_finder.match(src[i], src[i - 1])
                logger.info("  %d correspondences for pair %s", len(correspondences), pair)
                estimate = self.estimator.estimate(correspondences, pair=pair)
            except StitchError:
                logger.error("Failed to register image %d against image %d", i, i - 1)
                raise

            if not estimate.consensus_found:
                logger.warning("Pair %s has no consensus; placement may be wrong", pair)

            offset = transforms.append_relative(estimate.dx, estimate.dy)
            logger.info("  translation (%.1f, %.1f), canvas offset (%.1f, %.1f)",
                        estimate.dx, estimate.dy, offset[0], offset[1])

            warped = self._warp(src[i], offset, size)
            new_mask = self._warp(masks[i], offset, size)

            # Left neighbour's mask at its own placement
            prev_mask = self._warp(masks[i - 1], transforms[i - 1], size)

            blended, copied = self.compositor.composite(warped, new_mask, panorama, prev_mask)
            logger.debug("  blended %d pixels, copied %d", blended, copied)

            alpha = np.maximum(alpha, new_mask)
            estimates.append(estimate)
            if self.keep_correspondences:
                pair_correspondences.append(correspondences)

        logger.info("Done!")

        return StitchResult(panorama, alpha, transforms.as_list(), estimates,
                            pair_correspondences)

    def stitch_files(self, filepaths):
        """
        Load images from disk and stitch them.

        Args:
            filepaths: Image paths ordered left to right

        Returns:
            StitchResult
        """
        return self.stitch(read_images(filepaths))

    def _warp(self, raster, offset, size):
        return warp_translation(raster, offset[0], offset[1], size,
                                interpolation=self.interpolation)
