"""
Unit tests for image intake.
"""

import base64
import io

import pytest

from bodytype.errors import ImageReadError
from bodytype.utils import ImageIntake
from config import ImageConfig

from conftest import encode_test_image


class Upload(io.BytesIO):
    """Minimal stand-in for a Werkzeug FileStorage."""

    def __init__(self, data, filename="photo.jpg", mimetype="image/jpeg"):
        super().__init__(data)
        self.filename = filename
        self.mimetype = mimetype


class TestImageIntake:
    """Test suite for ImageIntake.encode."""

    @pytest.mark.asyncio
    async def test_encode_path_produces_data_uri(self, image_file, image_bytes):
        encoded = await ImageIntake().encode(image_file)
        assert encoded.mime_type == "image/png"
        assert encoded.data_uri.startswith("data:image/png;base64,")
        assert base64.b64decode(encoded.base64_data) == image_bytes
        assert encoded.size_bytes == len(image_bytes)
        assert encoded.filename == "photo.png"

    @pytest.mark.asyncio
    async def test_encode_upload_uses_its_mimetype(self, image_bytes):
        encoded = await ImageIntake().encode(Upload(image_bytes))
        assert encoded.mime_type == "image/jpeg"
        assert encoded.filename == "photo.jpg"

    @pytest.mark.asyncio
    async def test_encode_raw_bytes_detects_format(self, image_bytes):
        encoded = await ImageIntake().encode(image_bytes)
        assert encoded.mime_type == "image/png"
        assert encoded.data_uri.startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_encode_raw_jpeg_bytes(self):
        encoded = await ImageIntake().encode(encode_test_image(".jpg"))
        assert encoded.mime_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_unrecognized_bytes_fall_back_to_octet_stream(self):
        intake = ImageIntake(ImageConfig(verify_decodable=False))
        encoded = await intake.encode(b"opaque bytes")
        assert encoded.data_uri.startswith("data:application/octet-stream;base64,")

    @pytest.mark.asyncio
    async def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ImageReadError):
            await ImageIntake().encode(tmp_path / "missing.png")

    @pytest.mark.asyncio
    async def test_corrupt_image_raises(self):
        with pytest.raises(ImageReadError, match="decode"):
            await ImageIntake().encode(Upload(b"not an image at all" * 20))

    @pytest.mark.asyncio
    async def test_corrupt_image_accepted_without_verification(self):
        intake = ImageIntake(ImageConfig(verify_decodable=False))
        encoded = await intake.encode(b"opaque bytes")
        assert encoded.size_bytes == len(b"opaque bytes")

    @pytest.mark.asyncio
    async def test_empty_image_raises(self):
        with pytest.raises(ImageReadError, match="empty"):
            await ImageIntake().encode(Upload(b""))

    @pytest.mark.asyncio
    async def test_oversized_image_raises(self, image_bytes):
        intake = ImageIntake(ImageConfig(max_bytes=len(image_bytes) - 1))
        with pytest.raises(ImageReadError, match="limit"):
            await intake.encode(image_bytes)

    @pytest.mark.asyncio
    async def test_text_mode_file_raises_read_error(self):
        with pytest.raises(ImageReadError, match="Could not read"):
            await ImageIntake().encode(io.StringIO("not binary"))

    @pytest.mark.asyncio
    async def test_none_raises(self):
        with pytest.raises(ImageReadError):
            await ImageIntake().encode(None)

    @pytest.mark.asyncio
    async def test_unsupported_source_raises(self):
        with pytest.raises(ImageReadError):
            await ImageIntake().encode(12345)

    @pytest.mark.asyncio
    async def test_repr_hides_payload(self, image_bytes):
        encoded = await ImageIntake().encode(image_bytes)
        assert encoded.base64_data not in repr(encoded)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
