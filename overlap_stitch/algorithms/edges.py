"""
Sobel edge magnitude maps used for matching
"""

import numpy as np
import cv2

from ..models.image import RGBA_CHANNELS


# Rec. 709 luma weights, integer form
LUMA_WEIGHTS = np.array([2126, 7152, 722], dtype=np.uint32)
LUMA_DIVISOR = 10000


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Luma of an RGB(A) image as float32, alpha ignored
    """
    if image.ndim == 2:
        return image.astype(np.float32)

    rgb = image[:, :, :3].astype(np.uint32)
    luma = (rgb @ LUMA_WEIGHTS) // LUMA_DIVISOR

    return luma.astype(np.float32)


def detect_edges(image: np.ndarray) -> np.ndarray:
    """
    Gradient magnitude of `image` as an RGBA image of the same size.

    Uses 3x3 Sobel kernels with replicated borders, then rescales so the
    strongest edge maps to 255. A flat image yields all zeros.
    """
    gray = to_grayscale(image)

    gx = cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize=3, borderType=cv2.BORDER_REPLICATE)
    gy = cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize=3, borderType=cv2.BORDER_REPLICATE)

    magnitude = np.sqrt(gx ** 2 + gy ** 2)

    max_magnitude = float(magnitude.max()) if magnitude.size else 0.0
    if max_magnitude == 0.0:
        max_magnitude = 1.0

    normalized = np.clip(magnitude / max_magnitude * 255.0, 0, 255).astype(np.uint8)

    h, w = normalized.shape
    edges = np.empty((h, w, RGBA_CHANNELS), dtype=np.uint8)
    edges[:, :, :3] = normalized[:, :, np.newaxis]
    edges[:, :, 3] = 255

    return edges
