"""Snapshot preparation for handwriting recognition.

The drawing surface is transparent, so its raw pixels read as black ink on
a black background once the alpha channel is dropped. These steps turn a
snapshot into dark ink on a white page with a quiet border, the input
Tesseract handles best.
"""

import cv2
import numpy as np
from PIL import Image

from sketchtext.utils.config import PreprocessingConfig
from sketchtext.utils.logger import get_logger

logger = get_logger(__name__)


def flatten_on_white(image: Image.Image) -> np.ndarray:
    """Composite an image over a white background.

    Args:
        image: Pillow image in any mode.

    Returns:
        Grayscale image as a uint8 numpy array.
    """
    rgba = image.convert("RGBA")
    background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
    composited = Image.alpha_composite(background, rgba)
    return np.array(composited.convert("L"))


def binarize_otsu(gray: np.ndarray) -> np.ndarray:
    """Binarize a grayscale image using Otsu's automatic thresholding.

    Args:
        gray: Grayscale uint8 image.

    Returns:
        Binary image with pixel values 0 or 255.
    """
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    logger.debug("Applied Otsu binarization")
    return binary


def add_margin(gray: np.ndarray, margin: int) -> np.ndarray:
    """Pad an image with a white border of ``margin`` pixels on every side."""
    if margin <= 0:
        return gray
    return cv2.copyMakeBorder(
        gray, margin, margin, margin, margin, cv2.BORDER_CONSTANT, value=255
    )


def prepare_for_ocr(image: Image.Image, config: PreprocessingConfig) -> Image.Image:
    """Run the configured preparation steps on a decoded snapshot.

    Args:
        image: Decoded surface snapshot.
        config: Which preparation steps to apply.

    Returns:
        Grayscale Pillow image ready for the OCR engine.
    """
    if config.flatten_enabled:
        gray = flatten_on_white(image)
    else:
        gray = np.array(image.convert("L"))

    # A blank drawing has a single intensity; Otsu would split it arbitrarily.
    if config.binarize_enabled and gray.min() != gray.max():
        gray = binarize_otsu(gray)

    gray = add_margin(gray, config.margin)

    logger.debug(
        "Prepared snapshot %dx%d for OCR", gray.shape[1], gray.shape[0]
    )
    return Image.fromarray(gray)
