"""Avatar upload validation and image normalization."""

import io
from pathlib import Path

from fastapi import UploadFile
from PIL import Image, ImageOps, UnidentifiedImageError

from app.config import get_settings

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png"}
AVATAR_SIZE = (250, 250)
AVATAR_MEDIA_TYPE = "image/png"
MAX_IMAGE_DIMENSION = 4096


class AvatarError(ValueError):
    """Raised when an uploaded avatar is rejected."""


class AvatarService:
    """Validates uploaded images and converts them to stored avatars."""

    def validate_upload_metadata(self, filename: str) -> str | None:
        """Validate the upload's file extension. Returns error message or None if valid."""
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            return "Please upload a JPG, JPEG, or PNG file."
        return None

    async def read_upload(self, upload: UploadFile) -> bytes:
        """Read the upload in chunks, stopping as soon as it exceeds the size limit.

        Raises AvatarError if the file is too large or empty.
        """
        max_bytes = get_settings().MAX_AVATAR_SIZE_BYTES
        chunk_size = 1024 * 64
        buffer = io.BytesIO()
        size = 0

        while True:
            chunk = await upload.read(chunk_size)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                raise AvatarError(f"File too large. Maximum: {max_bytes} bytes")
            buffer.write(chunk)

        if size == 0:
            raise AvatarError("Uploaded file is empty.")
        return buffer.getvalue()

    def normalize(self, data: bytes) -> bytes:
        """Crop-resize an image to the avatar canvas and encode it as PNG."""
        try:
            with Image.open(io.BytesIO(data)) as image:
                # header only so far; refuse huge canvases before decoding pixels
                width, height = image.size
                if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
                    raise AvatarError(
                        f"Image dimensions too large. Maximum: {MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION} pixels"
                    )
                image.load()
                fitted = ImageOps.fit(image.convert("RGBA"), AVATAR_SIZE)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise AvatarError("Unable to process image.") from e

        output = io.BytesIO()
        fitted.save(output, format="PNG")
        return output.getvalue()

    async def process_upload(self, upload: UploadFile) -> bytes:
        """Validate, read and normalize an uploaded avatar. Raises AvatarError on rejection."""
        error = self.validate_upload_metadata(upload.filename or "")
        if error:
            raise AvatarError(error)
        data = await self.read_upload(upload)
        return self.normalize(data)


_avatar_service: AvatarService | None = None


def get_avatar_service() -> AvatarService:
    """Get singleton avatar service instance."""
    global _avatar_service
    if _avatar_service is None:
        _avatar_service = AvatarService()
    return _avatar_service
