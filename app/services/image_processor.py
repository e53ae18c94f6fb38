"""
Blog API — Image Validation and Compression
=============================================

What:  Validates uploaded images and re-encodes them before they are sent to
       the media host.
Why:   Uploads come straight from the editor; phone photos are routinely
       4000px wide and several MB. Shrinking them locally keeps uploads fast
       and the media host's storage bill flat.
How:   Pillow. All methods are synchronous and CPU-bound; MediaService runs
       them in the threadpool.

Validation order (cheapest first):
    1. Declared MIME type in the allowed set
    2. Size: non-empty and at most settings.max_upload_size (2MB)
    3. Decodability: Pillow must recognize the bytes as an image

Compression:
    - Resize to at most `image_max_width` wide, keeping aspect ratio;
      smaller images are never enlarged
    - Re-encode as progressive, optimized JPEG at `image_quality`
    - Transparent / palette images are flattened onto white first
"""

import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from app.config import settings
from app.exceptions import MediaServiceError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
}

# Formats Pillow reports for the allowed MIME types
ALLOWED_PIL_FORMATS = {"JPEG", "PNG", "WEBP", "MPO"}


class ImageProcessor:
    """Stateless wrapper around Pillow for upload checks and compression."""

    def __init__(
        self,
        max_width: Optional[int] = None,
        quality: Optional[int] = None,
        max_size: Optional[int] = None,
    ):
        self.max_width = max_width or settings.image_max_width
        self.quality = quality or settings.image_quality
        self.max_size = max_size or settings.max_upload_size

    def validate_content_type(self, content_type: Optional[str]) -> None:
        if (content_type or "").lower() not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message="Invalid file type. Only JPEG, PNG, and WebP are allowed.",
                field="image",
                context={"content_type": content_type, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )

    def validate_size(self, content: bytes) -> None:
        if not content:
            raise ValidationError(message="Uploaded file is empty", field="image")
        if len(content) > self.max_size:
            max_mb = self.max_size / (1024 * 1024)
            raise ValidationError(
                message=f"File too large. Maximum size is {max_mb:.0f}MB.",
                field="image",
                context={"max_size": self.max_size, "actual_size": len(content)},
            )

    def validate_decodable(self, content: bytes) -> str:
        """Returns the Pillow format name; raises ValidationError if not an image."""
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
                image_format = img.format
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise ValidationError(
                message="Uploaded file is not a readable image",
                field="image",
                context={"error": str(e)},
            )
        if image_format not in ALLOWED_PIL_FORMATS:
            raise ValidationError(
                message="Invalid file type. Only JPEG, PNG, and WebP are allowed.",
                field="image",
                context={"detected_format": image_format},
            )
        return image_format

    def validate(self, content: bytes, content_type: Optional[str]) -> None:
        self.validate_content_type(content_type)
        self.validate_size(content)
        self.validate_decodable(content)

    def compress(self, content: bytes) -> bytes:
        """
        Resizes and re-encodes an image as JPEG.

        Raises:
            MediaServiceError: Pillow could not process the image
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.load()
                original_size = img.size

                if img.width > self.max_width:
                    height = max(1, round(img.height * self.max_width / img.width))
                    img = img.resize((self.max_width, height), Image.Resampling.LANCZOS)

                if img.mode in ("RGBA", "LA", "P"):
                    rgba = img.convert("RGBA")
                    background = Image.new("RGB", rgba.size, (255, 255, 255))
                    background.paste(rgba, mask=rgba.getchannel("A"))
                    img = background
                elif img.mode != "RGB":
                    img = img.convert("RGB")

                output = io.BytesIO()
                img.save(
                    output,
                    format="JPEG",
                    quality=self.quality,
                    optimize=True,
                    progressive=True,
                )
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.error("Error compressing image: %s", str(e))
            raise MediaServiceError(message="Failed to process image", detail=str(e))

        compressed = output.getvalue()
        logger.debug(
            "Compressed image %sx%s (%d bytes) -> %sx%s (%d bytes)",
            original_size[0],
            original_size[1],
            len(content),
            img.width,
            img.height,
            len(compressed),
        )
        return compressed


image_processor = ImageProcessor()
