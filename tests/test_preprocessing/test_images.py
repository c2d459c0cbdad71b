"""Tests for page image loading."""

import base64
import io
from pathlib import Path

import pytest
from PIL import Image

from manga_page_sorter.preprocessing.images import (
    ImageLoadConfig,
    PageImageLoader,
    decode_data_uri,
    encode_data_uri,
    is_image_data_uri,
)


def _size_of(data_uri: str):
    _, payload = decode_data_uri(data_uri)
    return Image.open(io.BytesIO(payload)).size


class TestDataUri:

    def test_encode_decode(self):
        uri = encode_data_uri(b"\x00\x01binary", "image/webp")

        assert uri.startswith("data:image/webp;base64,")
        assert decode_data_uri(uri) == ("image/webp", b"\x00\x01binary")

    @pytest.mark.parametrize("uri", ["", "https://cdn.test/a.png", "data:image/png,rawtext", "data:image/png;base64,@@@"])
    def test_decode_rejects(self, uri):
        with pytest.raises(ValueError):
            decode_data_uri(uri)

    def test_is_image_data_uri(self):
        assert is_image_data_uri("data:image/jpeg;base64,AAAA")
        assert not is_image_data_uri("data:text/plain;base64,AAAA")
        assert not is_image_data_uri("a1x.webp")


class TestPageImageLoader:

    def test_from_bytes_detects_real_format(self, image_bytes):
        # JPEG content behind a .png name
        page = PageImageLoader().from_bytes("x9f.png", image_bytes(fmt="JPEG"))

        assert page.filename == "x9f.png"
        assert page.data.startswith("data:image/jpeg;base64,")

    def test_from_bytes_rejects_non_image(self):
        with pytest.raises(ValueError):
            PageImageLoader().from_bytes("notes.png", b"definitely not an image")

    def test_from_bytes_rejects_decompression_bomb(self, image_bytes, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)

        with pytest.raises(ValueError, match="too large"):
            PageImageLoader().from_bytes("huge.png", image_bytes(size=(8, 12)))

    def test_no_resize_by_default(self, image_bytes):
        data = image_bytes(size=(40, 80))
        page = PageImageLoader().from_bytes("p.png", data)

        assert decode_data_uri(page.data)[1] == data

    def test_downscale_keeps_aspect_ratio(self, image_bytes):
        loader = PageImageLoader(ImageLoadConfig(max_side=40))
        page = loader.from_bytes("tall.png", image_bytes(size=(50, 100)))

        assert _size_of(page.data) == (20, 40)
        assert page.data.startswith("data:image/png;base64,")

    def test_downscale_webp(self, image_bytes):
        loader = PageImageLoader(ImageLoadConfig(max_side=30))
        page = loader.from_bytes("w.webp", image_bytes(size=(60, 60), fmt="WEBP"))

        assert page.data.startswith("data:image/webp;base64,")
        assert _size_of(page.data) == (30, 30)

    def test_from_directory(self, tmp_path: Path, image_bytes):
        (tmp_path / "q9z.webp").write_bytes(image_bytes(fmt="WEBP"))
        (tmp_path / "a1x.png").write_bytes(image_bytes())
        (tmp_path / "readme.txt").write_text("not a page")

        pages = PageImageLoader().from_directory(tmp_path)

        assert [p.filename for p in pages] == ["a1x.png", "q9z.webp"]

    def test_from_empty_directory(self, tmp_path: Path):
        with pytest.raises(ValueError):
            PageImageLoader().from_directory(tmp_path)

    def test_from_data_uri_reencodes(self, data_uri):
        loader = PageImageLoader(ImageLoadConfig(max_side=10))
        page = loader.from_data_uri("a.png", data_uri(size=(20, 40)))

        assert _size_of(page.data) == (5, 10)

    def test_from_data_uri_rejects_garbage(self):
        bogus = "data:image/png;base64," + base64.b64encode(b"garbage").decode()

        with pytest.raises(ValueError):
            PageImageLoader().from_data_uri("a.png", bogus)
