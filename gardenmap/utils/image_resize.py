"""Qt based image decoding and downscaling."""

from __future__ import annotations

import base64
import binascii

from loguru import logger
from PySide6.QtCore import QBuffer, QByteArray, QIODevice, Qt
from PySide6.QtGui import QImage, QPainter

from gardenmap.core.collaborators import RawImage
from gardenmap.core.models import ImageRef

JPEG_QUALITY = 90


def decode_image(raw_image: RawImage) -> QImage:
    """Decode encoded bytes, a data URI or a file path into a ``QImage``.

    Raises
    ------
    ValueError
        If the input cannot be decoded.
    """
    if isinstance(raw_image, (bytes, bytearray)):
        image = QImage.fromData(bytes(raw_image))
    elif raw_image.startswith("data:"):
        _, _, payload = raw_image.partition(",")
        try:
            image = QImage.fromData(base64.b64decode(payload))
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"invalid image data URI: {exc}") from exc
    else:
        image = QImage(raw_image)
    if image.isNull():
        raise ValueError("could not decode image")
    return image


def encode_jpeg_data_uri(image: QImage, quality: int = JPEG_QUALITY) -> ImageRef:
    """Encode ``image`` as a base64 JPEG data URI, flattened onto white."""
    flat = QImage(image.size(), QImage.Format_RGB32)
    flat.fill(Qt.white)
    painter = QPainter(flat)
    painter.drawImage(0, 0, image)
    painter.end()

    byte_array = QByteArray()
    buffer = QBuffer(byte_array)
    buffer.open(QIODevice.WriteOnly)
    flat.save(buffer, "JPEG", quality)
    buffer.close()
    encoded = base64.b64encode(bytes(byte_array.data())).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"


class QtImageResizer:
    """Downscale images to a maximum width and re-encode them as JPEG."""

    def __init__(self, quality: int = JPEG_QUALITY) -> None:
        self.quality = quality

    def resize(self, raw_image: RawImage, max_width: int) -> ImageRef:
        """Return a JPEG data URI at most ``max_width`` pixels wide.

        Images narrower than ``max_width`` keep their size; the aspect ratio
        is always preserved.
        """
        image = decode_image(raw_image)
        if image.width() > max_width:
            image = image.scaledToWidth(int(max_width), Qt.SmoothTransformation)
        logger.debug(f"Resized image to {image.width()}x{image.height()}")
        return encode_jpeg_data_uri(image, self.quality)
