"""Tests for Qt image decoding and downscaling."""

import pytest
from PySide6.QtCore import QBuffer, QByteArray, QIODevice, Qt
from PySide6.QtGui import QImage

from gardenmap.utils.image_resize import QtImageResizer, decode_image


def _png_bytes(width: int, height: int) -> bytes:
    image = QImage(width, height, QImage.Format_ARGB32)
    image.fill(Qt.green)
    byte_array = QByteArray()
    buffer = QBuffer(byte_array)
    buffer.open(QIODevice.WriteOnly)
    image.save(buffer, "PNG")
    buffer.close()
    return bytes(byte_array.data())


def test_resize_scales_down_to_max_width(qapp) -> None:
    """Wide images are reduced with their aspect ratio preserved."""
    result = QtImageResizer().resize(_png_bytes(400, 200), 100)

    assert result.startswith("data:image/jpeg;base64,")
    decoded = decode_image(result)
    assert (decoded.width(), decoded.height()) == (100, 50)


def test_resize_never_upscales(qapp) -> None:
    """Narrow images keep their natural size."""
    decoded = decode_image(QtImageResizer().resize(_png_bytes(40, 30), 1200))

    assert (decoded.width(), decoded.height()) == (40, 30)


def test_decode_image_from_file(qapp, tmp_path) -> None:
    """File paths decode like raw bytes."""
    path = tmp_path / "plot.png"
    path.write_bytes(_png_bytes(12, 8))

    assert decode_image(str(path)).size().width() == 12


def test_invalid_input_raises_value_error(qapp) -> None:
    """Undecodable input is reported as ValueError."""
    with pytest.raises(ValueError):
        decode_image(b"not an image")
    with pytest.raises(ValueError):
        QtImageResizer().resize("data:image/png;base64,AAAA", 100)
