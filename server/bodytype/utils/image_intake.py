"""
Image Intake Module
===================

Reads an uploaded photo and encodes it as a base64 data URI.
"""

import asyncio
import base64
import mimetypes
import os
from typing import Optional, Tuple

import cv2
import numpy as np
from loguru import logger

from config import ImageConfig

from ..errors import ImageReadError
from ..models import EncodedImage

DEFAULT_MIME_TYPE = "application/octet-stream"

# Leading bytes of the formats OpenCV decodes most often
IMAGE_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
)


class ImageIntake:
    """
    Converts an image source into an ``EncodedImage``.

    Accepted sources:
        - a filesystem path (str or os.PathLike)
        - raw bytes
        - a file-like object with ``read()``, e.g. a Werkzeug ``FileStorage``;
          its ``filename`` and ``mimetype``/``content_type`` are used when present
    """

    def __init__(self, config: Optional[ImageConfig] = None):
        self.config = config or ImageConfig()

    async def encode(self, image) -> EncodedImage:
        """
        Read and encode an image.

        Args:
            image: Image source

        Returns:
            EncodedImage with a ``data:<mime>;base64,...`` URI

        Raises:
            ImageReadError: If the image cannot be read or is not a valid image
        """
        raw, filename, mime_type = await asyncio.to_thread(self._read, image)

        if not raw:
            raise ImageReadError("Image is empty")
        if self.config.max_bytes and len(raw) > self.config.max_bytes:
            raise ImageReadError(
                f"Image is {len(raw)} bytes, above the {self.config.max_bytes} byte limit"
            )
        if self.config.verify_decodable and not self._is_decodable(raw):
            raise ImageReadError("Failed to decode image")
        if mime_type == DEFAULT_MIME_TYPE:
            mime_type = self._sniff_mime(raw)

        payload = base64.b64encode(raw).decode("ascii")
        logger.debug("Encoded image {} ({} bytes, {})", filename or "<upload>", len(raw), mime_type)
        return EncodedImage(
            data_uri=f"data:{mime_type};base64,{payload}",
            mime_type=mime_type,
            size_bytes=len(raw),
            filename=filename,
        )

    def _read(self, image) -> Tuple[bytes, Optional[str], str]:
        """Blocking read; runs in a worker thread."""
        if image is None:
            raise ImageReadError("No image supplied")
        try:
            if isinstance(image, (bytes, bytearray)):
                return bytes(image), None, DEFAULT_MIME_TYPE
            if isinstance(image, (str, os.PathLike)):
                path = os.fspath(image)
                with open(path, "rb") as handle:
                    raw = handle.read()
                return raw, os.path.basename(path), self._guess_mime(path)
            if hasattr(image, "read"):
                raw = image.read()
                filename = getattr(image, "filename", None) or getattr(image, "name", None)
                filename = os.path.basename(filename) if isinstance(filename, str) else None
                mime_type = (
                    getattr(image, "mimetype", None)
                    or getattr(image, "content_type", None)
                    or self._guess_mime(filename)
                )
                return bytes(raw or b""), filename, mime_type
        except (OSError, TypeError) as exc:
            raise ImageReadError(f"Could not read image: {exc}") from exc
        raise ImageReadError(f"Unsupported image source: {type(image).__name__}")

    @staticmethod
    def _guess_mime(filename: Optional[str]) -> str:
        if not filename:
            return DEFAULT_MIME_TYPE
        guessed, _ = mimetypes.guess_type(filename)
        return guessed or DEFAULT_MIME_TYPE

    @staticmethod
    def _sniff_mime(raw: bytes) -> str:
        if raw[:4] == b"RIFF" and raw[8:12] == b"WEBP":
            return "image/webp"
        for signature, mime_type in IMAGE_SIGNATURES:
            if raw.startswith(signature):
                return mime_type
        return DEFAULT_MIME_TYPE

    @staticmethod
    def _is_decodable(raw: bytes) -> bool:
        nparr = np.frombuffer(raw, np.uint8)
        frame = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        return frame is not None and frame.size > 0
