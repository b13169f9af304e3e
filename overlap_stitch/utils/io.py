"""
Image I/O utilities
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Tuple

import numpy as np
import cv2
import tifffile

from ..models.image import ImageMetadata, to_rgba
from ..models.params import Position


logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {
    '.tif', '.tiff', '.jpg', '.jpeg', '.png', '.bmp', '.webp'
}


class ImageLoader:
    """
    Loads images from disk as 8-bit RGBA arrays
    """

    def __init__(self):
        self.supported_formats = SUPPORTED_FORMATS

    def load_image(self, path: Path) -> Tuple[np.ndarray, ImageMetadata]:
        """
        Load image and metadata
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")

        # Skip hidden/system files
        if path.name.startswith('.'):
            raise ValueError(f"Skipping hidden/system file: {path.name}")

        suffix = path.suffix.lower()

        if suffix not in self.supported_formats:
            raise ValueError(f"Unsupported format {path.suffix!r}: {path.name}")

        try:
            if suffix in {'.tif', '.tiff'}:
                image = self._load_tiff(path)
            else:
                image = self._load_standard(path)
        except Exception as e:
            logger.error(f"Failed to load {path.name}: {str(e)}")
            raise ValueError(f"Failed to load {path.name}: {str(e)}") from e

        metadata = ImageMetadata(
            filename=path.name,
            path=path,
            width=image.shape[1],
            height=image.shape[0],
            channels=image.shape[2] if image.ndim == 3 else 1,
            bit_depth=image.dtype.itemsize * 8
        )

        return to_rgba(image), metadata

    def _load_tiff(self, path: Path) -> np.ndarray:
        """
        Load TIFF image
        """
        image = tifffile.imread(str(path))

        # Channels first
        if image.ndim == 3 and image.shape[2] not in (3, 4) and image.shape[0] in (3, 4):
            image = np.transpose(image, (1, 2, 0))

        if image.ndim not in (2, 3):
            raise ValueError(f"Unsupported image shape: {image.shape}")

        return image

    def _load_standard(self, path: Path) -> np.ndarray:
        """
        Load standard image formats (JPEG, PNG, ...)
        """
        image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)

        if image is None:
            raise ValueError(f"Failed to decode image: {path}")

        # Convert BGR to RGB
        if image.ndim == 3 and image.shape[2] == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        elif image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)

        return image


class ResultExporter:
    """
    Writes the stitched composite and its positions
    """

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def save_composite(self, image: np.ndarray) -> Path:
        """
        Save the RGBA composite, format chosen by the file extension
        """
        suffix = self.output_path.suffix.lower()

        if suffix in {'.tif', '.tiff'}:
            tifffile.imwrite(
                str(self.output_path),
                image,
                photometric='rgb',
                extrasamples=['unassalpha'] if image.shape[2] == 4 else None,
                software='overlap-stitch'
            )
        else:
            if suffix in {'.jpg', '.jpeg'}:
                # No alpha in JPEG
                bgr = cv2.cvtColor(image, cv2.COLOR_RGBA2BGR)
            else:
                bgr = cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)

            if not cv2.imwrite(str(self.output_path), bgr):
                raise ValueError(f"Failed to encode image: {self.output_path}")

        logger.info(f"Exported: {self.output_path}")
        return self.output_path

    def export_positions(self, positions: Iterable[Position]) -> Path:
        """
        Export stitch positions to JSON next to the composite
        """
        positions = list(positions)
        data = {
            'version': '1.0',
            'num_positions': len(positions),
            'positions': [p.to_dict() for p in positions]
        }

        output_path = self.output_path.with_name(f"{self.output_path.stem}_positions.json")

        with open(output_path, 'w') as f:
            json.dump(data, f, indent=2)

        return output_path
