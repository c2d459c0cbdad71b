"""Build PageImage objects (data URIs) from files or raw bytes using Pillow."""

import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from ..schemas.common import PageImage

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp")

_DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]+)*),(?P<data>.*)$", re.DOTALL)


@dataclass
class ImageLoadConfig:
    """Configuration for image loading.

    Attributes:
        max_side: Downscale images whose longest side exceeds this (None = keep size)
        jpeg_quality: Quality used when a resized JPEG/WebP is re-encoded
    """
    max_side: Optional[int] = None
    jpeg_quality: int = 90


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Encode bytes as a base64 data URI."""
    b64_data = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type};base64,{b64_data}"


def decode_data_uri(uri: str) -> Tuple[str, bytes]:
    """Decode a base64 data URI.

    Returns:
        Tuple of (mime_type, payload bytes)

    Raises:
        ValueError: If uri is not a base64 data URI
    """
    match = _DATA_URI_PATTERN.match(uri or "")
    if not match or ";base64" not in match.group("params"):
        raise ValueError("Not a base64 data URI")

    try:
        payload = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e

    return match.group("mime") or "application/octet-stream", payload


def is_image_data_uri(uri: str) -> bool:
    """Cheap syntactic check: data URI with an image/* media type."""
    match = _DATA_URI_PATTERN.match(uri or "")
    return bool(match and (match.group("mime") or "").startswith("image/"))


class PageImageLoader:
    """Turns image bytes into PageImage objects.

    Pillow identifies the real format (file extensions are not trusted) and
    oversized pages are downscaled before being embedded.
    """

    def __init__(self, config: Optional[ImageLoadConfig] = None):
        self.config = config or ImageLoadConfig()

    def from_bytes(self, filename: str, data: bytes) -> PageImage:
        """Build PageImage from raw bytes.

        Raises:
            ValueError: If data is not a readable image
        """
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"{filename}: not a readable image ({e})") from e
        except Image.DecompressionBombError as e:
            raise ValueError(f"{filename}: image too large to decode ({e})") from e

        fmt = img.format or "PNG"
        mime_type = Image.MIME.get(fmt, "image/png")

        max_side = self.config.max_side
        if max_side and max(img.size) > max_side:
            data, mime_type = self._downscale(img, fmt, max_side)
            logger.info(f"Downscaled {filename} to fit {max_side}px ({len(data)} bytes)")

        return PageImage(filename=filename, data=encode_data_uri(data, mime_type))

    def _downscale(self, img: Image.Image, fmt: str, max_side: int) -> Tuple[bytes, str]:
        resized = img.copy()
        resized.thumbnail((max_side, max_side), Image.LANCZOS)

        if fmt not in ("JPEG", "WEBP", "PNG"):
            fmt = "PNG"
        if fmt == "JPEG" and resized.mode not in ("RGB", "L"):
            resized = resized.convert("RGB")

        buf = io.BytesIO()
        if fmt == "PNG":
            resized.save(buf, format="PNG")
        else:
            resized.save(buf, format=fmt, quality=self.config.jpeg_quality)
        return buf.getvalue(), Image.MIME[fmt]

    def from_file(self, path: Path) -> PageImage:
        """Build PageImage from a file; the file name becomes the page filename."""
        path = Path(path)
        return self.from_bytes(path.name, path.read_bytes())

    def from_directory(self, directory: Path) -> List[PageImage]:
        """Load every image file of a directory (non-recursive).

        Files are listed alphabetically; the listing order carries no
        meaning for sorting.

        Raises:
            ValueError: If the directory holds no images
        """
        directory = Path(directory)
        paths = sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
        )
        if not paths:
            raise ValueError(f"No images found in {directory}")

        logger.info(f"Loading {len(paths)} images from {directory}")
        return [self.from_file(p) for p in paths]

    def from_data_uri(self, filename: str, uri: str) -> PageImage:
        """Re-encode an inbound data URI (validates it and applies max_side)."""
        _, payload = decode_data_uri(uri)
        return self.from_bytes(filename, payload)
