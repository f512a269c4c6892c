"""
Image I/O utilities using PIL (Pillow)
No OpenCV dependencies.
"""

import numpy as np
from PIL import Image

from .errors import LoadFailure


def read_image(filepath):
    """
    Read a color image from file.

    Args:
        filepath: Path to image file

    Returns:
        Image as uint8 numpy array (H x W x 3)

    Raises:
        LoadFailure: The file is missing or cannot be decoded
    """
    try:
        with Image.open(filepath) as img:
            img = img.convert('RGB')
            return np.array(img)
    except OSError as e:
        raise LoadFailure(filepath, str(e)) from e


def read_images(filepaths):
    """
    Read multiple images, stopping at the first unreadable one.

    Args:
        filepaths: List of image file paths

    Returns:
        List of images as numpy arrays
    """
    return [read_image(filepath) for filepath in filepaths]


def to_pil(image):
    """Convert a numpy raster to a PIL image, clipping to 8 bits."""
    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)

    # 2D arrays become 'L', (H x W x 3) arrays 'RGB'
    return Image.fromarray(image)


def write_image(filepath, image):
    """
    Write image to file. The format follows the file extension.

    Args:
        filepath: Path to save image
        image: Image as numpy array
    """
    try:
        to_pil(image).save(filepath)
    except (OSError, ValueError) as e:
        raise IOError(f"Failed to write image to {filepath}: {str(e)}") from e


def show_image(image, title=None):
    """Open the image in the platform's default viewer."""
    to_pil(image).show(title=title)
