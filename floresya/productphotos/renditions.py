"""
Rendition builder: decoded upload -> fixed-size WebP copies.
"""
import io
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from floresya.errors import DecodeError

from . import constants

logger = logging.getLogger(__name__)

# Pillow format names accepted after decoding
DECODABLE_FORMATS = frozenset(constants.ALLOWED_CONTENT_TYPES.values())


@dataclass(frozen=True)
class Rendition:
    size: str
    data: bytes
    width: int
    height: int


def open_upload(data: bytes) -> Image.Image:
    """
    Fully decode uploaded bytes. Raises DecodeError for anything Pillow
    cannot read or for formats outside the allowed set.
    """
    try:
        # verify() leaves the image unusable, so probe on a throwaway copy
        with Image.open(io.BytesIO(data)) as probe:
            probe.verify()
            detected = probe.format
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(reason=str(exc)) from exc

    if detected not in DECODABLE_FORMATS:
        img.close()
        raise DecodeError(detected_format=detected)
    return img


class RenditionBuilder:
    """Produces the deterministic rendition set for one source image."""

    def __init__(self, sizes: Optional[Dict[str, int]] = None, quality: Optional[int] = None):
        self.sizes = sizes or constants.rendition_sizes()
        self.quality = quality if quality is not None else constants.rendition_quality()

    @staticmethod
    def _normalise(img: Image.Image) -> Image.Image:
        img = ImageOps.exif_transpose(img)
        if img.mode in ('RGBA', 'LA', 'P'):
            # WebP keeps transparency
            return img.convert('RGBA')
        if img.mode != 'RGB':
            img = img.convert('RGB')
        return img

    def render(self, img: Image.Image, size: str, edge: int) -> Rendition:
        copy = img.copy()
        # thumbnail() preserves aspect ratio and never upscales
        copy.thumbnail((edge, edge), Image.Resampling.LANCZOS)
        buffer = io.BytesIO()
        copy.save(buffer, format=constants.RENDITION_FORMAT, quality=self.quality, method=6)
        return Rendition(size=size, data=buffer.getvalue(), width=copy.width, height=copy.height)

    def build(self, img: Image.Image) -> Dict[str, Rendition]:
        source = self._normalise(img)
        renditions = {}
        for size, edge in self.sizes.items():
            renditions[size] = self.render(source, size, edge)
        logger.debug("Built %d renditions from %sx%s source", len(renditions), *source.size)
        return renditions
