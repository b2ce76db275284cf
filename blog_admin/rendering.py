"""
Render cropped image variants with Pillow.
"""
import io
import os

from PIL import Image, UnidentifiedImageError

from .conf import admin_settings
from .exceptions import RenderFailure

# Modes JPEG can store directly
JPEG_MODES = ("RGB", "L", "CMYK")


def _open(source):
    """Open bytes, a path, or a file-like object as a PIL image."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        source = io.BytesIO(bytes(source))
    elif isinstance(source, (str, os.PathLike)):
        source = os.fspath(source)
    elif hasattr(source, "seek"):
        source.seek(0)
    return Image.open(source)


class VariantRenderer:
    """
    Crop a source image to a pixel rectangle and re-encode it as JPEG.

    The crop is exact: no padding, no letterboxing. Output quality is fixed
    per renderer so variant sizes stay bounded.
    """

    content_type = "image/jpeg"

    def __init__(self, quality=None):
        self.quality = quality if quality is not None else admin_settings.JPEG_QUALITY

    def probe(self, source):
        """Return (width, height) of the source image."""
        try:
            with _open(source) as img:
                return img.size
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise RenderFailure(f"Could not decode source image: {exc}") from exc

    def render(self, source, crop_rect):
        """
        Crop ``source`` to ``crop_rect`` and return JPEG bytes.

        Args:
            source: image bytes, a filesystem path, or a file-like object
            crop_rect: CropRect in source pixel space

        Raises:
            RenderFailure: if the source cannot be decoded or encoded.
        """
        try:
            with _open(source) as img:
                cropped = img.crop(crop_rect.box)
                if cropped.mode not in JPEG_MODES:
                    cropped = cropped.convert("RGB")
                buffer = io.BytesIO()
                cropped.save(buffer, format="JPEG", quality=self.quality)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise RenderFailure(f"Could not render cropped image: {exc}") from exc
        return buffer.getvalue()


def render(source, crop_rect, quality=None):
    """Render one variant with a default renderer."""
    return VariantRenderer(quality=quality).render(source, crop_rect)
