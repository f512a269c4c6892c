"""
Default parameters for radial panorama stitching.

Every value here can be overridden through the component constructors
or the command line.
"""

# Focal length in pixels used to project images onto the viewing surface.
# 2800 suits long-lens skyline sequences (~300mm equivalent).
DEFAULT_FOCAL_LENGTH = 2800.0

# Viewing surface: 'spherical' or 'cylindrical'
DEFAULT_PROJECTION = 'spherical'

# RANSAC agreement tolerance in pixels, checked per axis
DEFAULT_TOLERANCE = 3.0

# Seed for the RANSAC sampler, fixed so runs are reproducible
DEFAULT_SEED = 0

# Keep matches whose score is below this multiple of the best score
DEFAULT_MATCH_RATIO = 3.0

# Keypoint detector
DEFAULT_MAX_FEATURES = 2000
DEFAULT_PATCH_SIZE = 9

# Canvas allocation heuristic: 1.2x the first image height, and each
# additional image is assumed to add half of the first image width.
CANVAS_HEIGHT_SCALE = 1.2
CANVAS_OVERLAP = 0.5

# Interpolation used when translating images onto the canvas
DEFAULT_INTERPOLATION = 'bilinear'
