"""
Photo normalizer for leak report pictures
Downscales and re-encodes captured images so they fit in local storage
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import cv2
import numpy as np

from geofuite.core.constants import PHOTO_JPEG_QUALITY, PHOTO_MAX_WIDTH, PHOTO_MIME_TYPE

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = f"data:{PHOTO_MIME_TYPE};base64,"


@dataclass
class NormalizedPhoto:
    """Result of photo normalization."""
    data_url: str
    width: int
    height: int
    original_width: int
    original_height: int

    @property
    def was_resized(self) -> bool:
        return (self.width, self.height) != (self.original_width, self.original_height)

    @property
    def size_bytes(self) -> int:
        """Length of the inline string as stored."""
        return len(self.data_url)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "photo": self.data_url,
            "width": self.width,
            "height": self.height,
            "original_width": self.original_width,
            "original_height": self.original_height,
            "size_bytes": self.size_bytes,
        }


def compute_target_size(width: int, height: int, max_width: int) -> Tuple[int, int]:
    """
    Size an image down to max_width, preserving aspect ratio.

    Images already within max_width keep their dimensions.
    """
    if width <= max_width:
        return width, height
    ratio = max_width / width
    return max_width, max(1, int(round(height * ratio)))


class PhotoNormalizer:
    """
    Re-encodes captured photos as bounded-width JPEG data URLs.
    """

    def __init__(
        self,
        max_width: int = PHOTO_MAX_WIDTH,
        quality: float = PHOTO_JPEG_QUALITY
    ):
        """
        Initialize photo normalizer.

        Args:
            max_width: Maximum output width in pixels
            quality: JPEG quality on a 0.0-1.0 scale
        """
        if max_width <= 0:
            raise ValueError("max_width must be positive")
        if not 0.0 < quality <= 1.0:
            raise ValueError("quality must be in (0.0, 1.0]")

        self.max_width = max_width
        self.quality = quality

    @property
    def jpeg_quality(self) -> int:
        """Quality on OpenCV's 0-100 scale."""
        return int(round(self.quality * 100))

    def normalize(self, image_data: bytes) -> Optional[NormalizedPhoto]:
        """
        Decode, downscale and re-encode an image.

        Args:
            image_data: Raw image bytes (JPEG, PNG, WebP, ...)

        Returns:
            NormalizedPhoto, or None if the image cannot be decoded
        """
        image = self._load_image(image_data)
        if image is None:
            return None

        original_height, original_width = image.shape[:2]
        width, height = compute_target_size(original_width, original_height, self.max_width)

        if (width, height) != (original_width, original_height):
            image = cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)

        ok, buffer = cv2.imencode(
            ".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), self.jpeg_quality]
        )
        if not ok:
            logger.warning("JPEG encoding failed, photo discarded")
            return None

        payload = base64.b64encode(buffer.tobytes()).decode("ascii")

        logger.info(
            f"Photo normalized: {original_width}x{original_height} -> "
            f"{width}x{height}, {len(payload)} chars"
        )

        return NormalizedPhoto(
            data_url=DATA_URL_PREFIX + payload,
            width=width,
            height=height,
            original_width=original_width,
            original_height=original_height,
        )

    def _load_image(self, image_data: bytes):
        """Load image from bytes as a 3-channel BGR array."""
        if not image_data:
            logger.warning("Empty photo payload")
            return None
        try:
            nparr = np.frombuffer(image_data, np.uint8)
            image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        except cv2.error as e:
            logger.warning(f"Failed to decode photo: {e}")
            return None

        if image is None:
            logger.warning("Failed to decode photo: unsupported or corrupt data")
        return image


def decode_data_url(data_url: str) -> bytes:
    """
    Extract the raw image bytes from a stored photo data URL.

    Raises:
        ValueError: if the string is not a base64 data URL
    """
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URL")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def normalize_photo(
    image_data: bytes,
    max_width: int = PHOTO_MAX_WIDTH,
    quality: float = PHOTO_JPEG_QUALITY
) -> Optional[str]:
    """
    Convenience function returning the normalized photo as a data URL.

    Args:
        image_data: Raw image bytes
        max_width: Maximum output width
        quality: JPEG quality (0.0-1.0)

    Returns:
        Data URL string, or None if decoding failed
    """
    result = PhotoNormalizer(max_width=max_width, quality=quality).normalize(image_data)
    return result.data_url if result else None
