"""
Exceptions raised by the radial panorama pipeline.
"""


class StitchError(Exception):
    """Base class for stitching failures."""


class LoadFailure(StitchError, IOError):
    """An input image could not be read. Fatal for the whole run."""

    def __init__(self, filepath, reason):
        self.filepath = filepath
        self.reason = reason
        super().__init__(f"Failed to read image from {filepath}: {reason}")


class DimensionMismatch(StitchError, ValueError):
    """Rasters that must share a size do not."""

    def __init__(self, expected, actual, what='raster'):
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        super().__init__(
            f"{what} has shape {self.actual[:2]}, expected {self.expected[:2]}"
        )


class InsufficientCorrespondences(StitchError, ValueError):
    """Too few matches between two adjacent images to estimate a shift."""

    def __init__(self, count, required, pair=None):
        self.count = count
        self.required = required
        self.pair = pair
        where = f" for image pair {pair}" if pair is not None else ""
        super().__init__(
            f"Found {count} correspondences{where}, need at least {required}"
        )
