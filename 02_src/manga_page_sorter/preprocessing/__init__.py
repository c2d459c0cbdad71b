"""Image preprocessing for page sorting."""

from .images import (
    ImageLoadConfig,
    PageImageLoader,
    decode_data_uri,
    encode_data_uri,
    is_image_data_uri,
)

__all__ = [
    "ImageLoadConfig",
    "PageImageLoader",
    "decode_data_uri",
    "encode_data_uri",
    "is_image_data_uri",
]
