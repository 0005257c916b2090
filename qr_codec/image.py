"""
Rendering and sampling with Pillow.

matrix_to_image/save_image hand a finished symbol to the outside world.
sample_image goes the other way for axis-aligned renders only (such as the
ones produced here): it reads each module centre back into a tri-state
matrix. Locating symbols in photographs is left to a real detector.
"""

import logging
from typing import List, Optional

from PIL import Image

logger = logging.getLogger(__name__)


def matrix_to_image(matrix: List[List[Optional[int]]], scale: int = 10,
                    border: int = 4) -> Image.Image:
    """
    Render a matrix as a 1-bit image with a light quiet zone.

    Unknown (None) modules are drawn light.
    """
    if scale < 1 or border < 0:
        raise ValueError("scale must be >= 1 and border >= 0")
    size = len(matrix)
    img_size = (size + 2 * border) * scale

    img = Image.new('1', (img_size, img_size), 1)  # White background
    pixels = img.load()

    for y in range(size):
        for x in range(size):
            if matrix[y][x] == 1:
                # Fill scaled pixel area
                for dy in range(scale):
                    for dx in range(scale):
                        px = (border + x) * scale + dx
                        py = (border + y) * scale + dy
                        pixels[px, py] = 0  # Black

    return img


def save_image(matrix: List[List[Optional[int]]], filename: str,
               scale: int = 10, border: int = 4):
    """Save QR code matrix as an image file (format from the extension)."""
    matrix_to_image(matrix, scale, border).save(filename)
    logger.info("Saved QR code to %s", filename)


def sample_image(image: Image.Image, scale: int = 10, border: int = 4,
                 threshold: int = 128) -> List[List[Optional[int]]]:
    """
    Read module values from an axis-aligned render.

    Each module is judged by the pixels of its central half: mostly dark is
    1, mostly light is 0, anything in between is unknown (None).
    """
    gray = image.convert('L')
    width, height = gray.size
    if width != height:
        raise ValueError(f"Expected a square image, got {width}x{height}")
    size = width // scale - 2 * border
    if size < 21:
        raise ValueError(f"Image too small for a symbol at scale {scale}, border {border}")

    inset = scale // 4
    span = range(inset, max(inset + 1, scale - inset))
    pixels = gray.load()

    matrix = []
    for y in range(size):
        row = []
        for x in range(size):
            left = (border + x) * scale
            top = (border + y) * scale
            samples = [pixels[left + dx, top + dy] for dy in span for dx in span]
            dark = sum(1 for value in samples if value < threshold) / len(samples)
            if dark >= 0.75:
                row.append(1)
            elif dark <= 0.25:
                row.append(0)
            else:
                row.append(None)
        matrix.append(row)

    logger.debug("Sampled %dx%d modules", size, size)
    return matrix
