"""
Radial panorama stitching without OpenCV.

Images taken by rotating a camera about its optical center are projected
onto a sphere or cylinder, where neighbouring frames differ only by a
translation. The package uses only NumPy, SciPy and Pillow.

Main components:
- RadialProjector: spherical / cylindrical reprojection
- Feather masks: linear alpha falloff towards image borders
- CorrespondenceFinder: Harris corners + brute-force matching, filtered
- TranslationEstimator: translation-only RANSAC
- AlphaCompositor: alpha-weighted compositing onto the canvas

Example usage:
    from radialpano.panorama_stitcher import PanoramaStitcher
    from radialpano.image_io import write_image

    stitcher = PanoramaStitcher(projection_params={'focal_length': 2800})
    result = stitcher.stitch_files(['img1.jpg', 'img2.jpg'])
    write_image('panorama.jpg', result.panorama)
"""

__version__ = '1.0.0'

from .errors import StitchError, LoadFailure, DimensionMismatch, InsufficientCorrespondences
from .projection import RadialProjector, project_radial, warp_translation
from .feathering import build_feather_mask, build_blend_mask
from .features import HarrisDetector
from .matcher import FeatureMatcher
from .correspondence import Correspondence, CorrespondenceFinder, filter_matches
from .translation import TranslationEstimator, TranslationEstimate
from .compositing import AlphaCompositor, crop_black_borders
from .panorama_stitcher import PanoramaStitcher, StitchResult, TransformChain
from .image_io import read_image, write_image, read_images

__all__ = [
    'StitchError',
    'LoadFailure',
    'DimensionMismatch',
    'InsufficientCorrespondences',
    'RadialProjector',
    'project_radial',
    'warp_translation',
    'build_feather_mask',
    'build_blend_mask',
    'HarrisDetector',
    'FeatureMatcher',
    'Correspondence',
    'CorrespondenceFinder',
    'filter_matches',
    'TranslationEstimator',
    'TranslationEstimate',
    'AlphaCompositor',
    'crop_black_borders',
    'PanoramaStitcher',
    'StitchResult',
    'TransformChain',
    'read_image',
    'write_image',
    'read_images',
]
