"""Tests for decode_image and the PixelBuffer invariants."""

import numpy as np
import pytest

from errors import DecodeError, InvalidInputError, ProcessingError
from image_processor import _to_rgba, decode_image
from schemas import PixelBuffer

pytestmark = pytest.mark.unit


class TestDecodeImage:
    """Decoding uploads into RGBA buffers."""

    def test_color_png_has_rgba_stride(self, make_image_bytes):
        buf = decode_image(make_image_bytes((10, 20, 30), height=5, width=7))

        assert (buf.width, buf.height) == (7, 5)
        assert buf.data.dtype == np.uint8
        assert buf.data.size == 7 * 5 * 4

    def test_channel_order_is_rgb_with_opaque_alpha(self, make_image_bytes):
        """OpenCV decodes BGR; the buffer must be R, G, B, A."""
        buf = decode_image(make_image_bytes((255, 0, 0)))

        assert buf.data[:4].tolist() == [255, 0, 0, 255]

    def test_grayscale_gets_alpha_channel(self, encode):
        gray = np.full((4, 6), 90, dtype=np.uint8)

        buf = decode_image(encode(gray))

        assert buf.data.size == 4 * 6 * 4
        assert buf.data[:4].tolist() == [90, 90, 90, 255]

    def test_existing_alpha_is_kept(self, encode):
        rgba = np.zeros((3, 3, 4), dtype=np.uint8)
        rgba[:, :] = (1, 2, 3, 128)

        buf = decode_image(encode(rgba))

        assert buf.data[:4].tolist() == [1, 2, 3, 128]

    def test_sixteen_bit_png_scaled_to_eight_bit(self, encode):
        deep = np.full((2, 2, 3), 65535, dtype=np.uint16)

        buf = decode_image(encode(deep))

        assert buf.data[:4].tolist() == [255, 255, 255, 255]

    def test_float_samples_scaled_and_clipped(self):
        """32-bit float decodes (e.g. float TIFF) hold 0.0-1.0 intensities."""
        floats = np.array([[[1.0, 0.0, 2.0], [-0.5, 1.0, 0.0]]], dtype=np.float32)  # BGR

        rgba = _to_rgba(floats)

        assert rgba.dtype == np.uint8
        assert rgba.reshape(-1).tolist() == [255, 0, 255, 255, 0, 255, 0, 255]

    def test_jpeg_decodes(self, make_image_bytes):
        buf = decode_image(make_image_bytes((200, 200, 200), ext=".jpg"))

        assert buf.data.size == buf.width * buf.height * 4

    def test_buffer_is_read_only(self, white_png):
        buf = decode_image(white_png)

        with pytest.raises(ValueError):
            buf.data[0] = 0

    @pytest.mark.parametrize("bad", [None, b"", bytearray()])
    def test_missing_or_empty_input(self, bad):
        with pytest.raises(InvalidInputError):
            decode_image(bad)

    def test_non_bytes_input(self):
        with pytest.raises(InvalidInputError, match="must be bytes"):
            decode_image("not a blob")

    @pytest.mark.parametrize("garbage", [b"not an image at all", b"\x89PNG\r\n\x1a\n" + b"\x00" * 16])
    def test_garbage_bytes_raise_decode_error(self, garbage):
        with pytest.raises(DecodeError):
            decode_image(garbage)


class TestPixelBuffer:
    """Construction-time invariants."""

    def test_accepts_raw_bytes(self):
        buf = PixelBuffer(bytes([1, 2, 3, 4] * 6), width=3, height=2)

        assert buf.total_pixels == 6
        assert buf.data[:4].tolist() == [1, 2, 3, 4]

    def test_identity_equality_and_hashable(self):
        first = PixelBuffer(bytes(4), width=1, height=1)
        second = PixelBuffer(bytes(4), width=1, height=1)

        assert first == first
        assert first != second
        assert len({first, second}) == 2

    def test_copy_is_independent_of_source(self):
        source =np.zeros(4, dtype=np.uint8)
        buf = PixelBuffer(source, width=1, height=1)

        source[0] = 200

        assert buf.data[0] == 0

    @pytest.mark.parametrize("width,height", [(0, 1), (1, 0), (-2, 3)])
    def test_rejects_non_positive_dimensions(self, width, height):
        with pytest.raises(ProcessingError, match="positive dimensions"):
            PixelBuffer(np.zeros(16, dtype=np.uint8), width=width, height=height)

    def test_rejects_wrong_length(self):
        with pytest.raises(ProcessingError, match="length"):
            PixelBuffer(np.zeros(15, dtype=np.uint8), width=2, height=2)

    def test_rejects_empty_buffer(self):
        with pytest.raises(ProcessingError):
            PixelBuffer(np.zeros(0, dtype=np.uint8), width=1, height=1)
