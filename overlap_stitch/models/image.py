"""
Image, crop and metadata models
"""

from dataclasses import dataclass
from pathlib import Path

import numpy as np


RGBA_CHANNELS = 4


@dataclass
class ImageMetadata:
    """Metadata for a loaded image"""
    filename: str
    path: Path
    width: int
    height: int
    channels: int
    bit_depth: int

    @property
    def megapixels(self) -> float:
        """Get megapixel count"""
        return (self.width * self.height) / 1_000_000


@dataclass
class WorkingImage:
    """
    Raster held in the planner's working set, tagged with a logical
    identifier that survives until the raster is merged away
    """
    ident: int
    pixels: np.ndarray


@dataclass(frozen=True)
class Crop:
    """
    Pixel margins trimmed from each edge of an image
    """
    top: int = 0
    bottom: int = 0
    left: int = 0
    right: int = 0

    def __post_init__(self):
        for name in ('top', 'bottom', 'left', 'right'):
            if getattr(self, name) < 0:
                raise ValueError(f"Crop margin {name} must be non-negative")

    @property
    def is_empty(self) -> bool:
        return not (self.top or self.bottom or self.left or self.right)

    def reverse(self) -> 'Crop':
        """
        Mirror of this crop, for the image glued to the cropped edge
        """
        return Crop(
            top=self.bottom,
            bottom=self.top,
            left=self.right,
            right=self.left
        )

    def apply(self, image: np.ndarray) -> np.ndarray:
        """
        Trim the margins. Returns the input itself when nothing is cropped,
        otherwise a view; the input is never modified.
        """
        if self.is_empty:
            return image

        h, w = image.shape[:2]
        return image[
            min(self.top, h):max(h - self.bottom, 0),
            min(self.left, w):max(w - self.right, 0)
        ]


def to_rgba(image: np.ndarray) -> np.ndarray:
    """
    Convert a grayscale, RGB or RGBA array to 8-bit RGBA
    """
    if image.dtype == np.uint8:
        data = image
    elif image.dtype == np.uint16:
        data = (image // 257).astype(np.uint8)
    elif np.issubdtype(image.dtype, np.floating):
        # Assume normalized 0-1
        data = (np.clip(image, 0.0, 1.0) * 255).astype(np.uint8)
    else:
        data = np.clip(image, 0, 255).astype(np.uint8)

    if data.ndim == 2:
        data = data[:, :, np.newaxis]

    if data.ndim != 3:
        raise ValueError(f"Unsupported image shape: {image.shape}")

    channels = data.shape[2]
    h, w = data.shape[:2]

    if channels == RGBA_CHANNELS:
        return data

    alpha = np.full((h, w, 1), 255, dtype=np.uint8)

    if channels == 1:
        return np.concatenate([data, data, data, alpha], axis=2)
    if channels == 2:
        # Gray + alpha
        return np.concatenate([data[:, :, :1]] * 3 + [data[:, :, 1:]], axis=2)
    if channels == 3:
        return np.concatenate([data, alpha], axis=2)

    raise ValueError(f"Unsupported channel count: {channels}")
