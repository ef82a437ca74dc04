"""Decoding source images and encoding the merged result.

These are the pipeline's external collaborators: everything here works on
files or byte blobs, while the pipeline itself only sees BGR numpy buffers.
"""

import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from stereoalign.buffers import to_bgr

LOGGER = logging.getLogger(__name__)

DEFAULT_QUALITY = 90


def decode_image(data: bytes) -> np.ndarray:
    """Decode an encoded image blob (JPEG, PNG, ...) into a BGR buffer."""
    buf = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if img is None:
        raise ValueError("Failed to decode image data")
    return to_bgr(img)


def load_image(path: Union[str, Path]) -> np.ndarray:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")

    img = decode_image(path.read_bytes())
    LOGGER.info("Loaded %s (%dx%d)", path, img.shape[1], img.shape[0])
    return img


def _check_quality(quality: int) -> int:
    quality = int(quality)
    if not 0 <= quality <= 100:
        raise ValueError(f"Quality must be within [0, 100], got {quality}")
    return quality


def encode_jpeg(image: np.ndarray, quality: int = DEFAULT_QUALITY) -> bytes:
    """Encode a buffer as JPEG with the given quality (0-100)."""
    if image is None or image.size == 0:
        raise ValueError("Cannot encode an empty image")

    ok, encoded = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), _check_quality(quality)])
    if not ok:
        raise ValueError("JPEG encoding failed")
    return encoded.tobytes()


def save_image(image: np.ndarray, path: Union[str, Path], quality: int = DEFAULT_QUALITY) -> Path:
    """
    Save ``image`` to ``path``. The format follows the file extension;
    ``quality`` applies to JPEG and WebP outputs.
    """
    if image is None or image.size == 0:
        raise ValueError("Cannot save an empty image")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower() or ".jpg"

    params = []
    if suffix in (".jpg", ".jpeg"):
        params = [int(cv2.IMWRITE_JPEG_QUALITY), _check_quality(quality)]
    elif suffix == ".webp":
        params = [int(cv2.IMWRITE_WEBP_QUALITY), _check_quality(quality)]

    ok, encoded = cv2.imencode(suffix, image, params)
    if not ok:
        raise ValueError(f"Encoding to {suffix} failed")

    path.write_bytes(encoded.tobytes())
    LOGGER.info("Saved %s (%dx%d)", path, image.shape[1], image.shape[0])
    return path
