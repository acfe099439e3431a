"""Image transcoding: uploaded raster image -> AVIF main image and thumbnail.

Everything in here is CPU bound and synchronous. Request handlers must call
``process_image_async``, which runs ``process_image`` on a worker thread.
"""

import asyncio
import io
import uuid
from dataclasses import dataclass

import blurhash
from PIL import Image, ImageOps, UnidentifiedImageError

from paayo.config import settings
from paayo.core.exceptions import ImageProcessingError

ALLOWED_MIME_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/webp", "image/gif", "image/avif"}
)
ALLOWED_FORMATS = frozenset({"JPEG", "PNG", "WEBP", "GIF", "AVIF"})
OUTPUT_MIME_TYPE = "image/avif"

BLURHASH_SIZE = 32
BLURHASH_COMPONENTS = (4, 3)


@dataclass(frozen=True)
class ProcessedImage:
    filename: str
    thumbnail_filename: str
    main_bytes: bytes
    thumbnail_bytes: bytes
    width: int
    height: int
    blur_hash: str
    mime_type: str = OUTPUT_MIME_TYPE

    @property
    def size_bytes(self) -> int:
        return len(self.main_bytes)


def _fit(image: Image.Image, max_dimension: int) -> Image.Image:
    """Copy of ``image`` scaled down to fit a square box. Never upscales."""
    copy = image.copy()
    copy.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
    return copy


def _encode_avif(image: Image.Image, quality: int, speed: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="AVIF", quality=quality, speed=speed)
    return buffer.getvalue()


def compute_blur_hash(image: Image.Image) -> str:
    small = image.convert("RGB").resize(
        (BLURHASH_SIZE, BLURHASH_SIZE), Image.Resampling.BILINEAR
    )
    pixels = [
        [list(small.getpixel((x, y))) for x in range(BLURHASH_SIZE)]
        for y in range(BLURHASH_SIZE)
    ]
    x_components, y_components = BLURHASH_COMPONENTS
    return blurhash.encode(pixels, x_components, y_components)


def _normalise_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA"):
        return image
    if image.mode in ("P", "LA", "PA") or "transparency" in image.info:
        return image.convert("RGBA")
    return image.convert("RGB")


def process_image(
    data: bytes,
    *,
    max_dimension: int | None = None,
    thumbnail_dimension: int | None = None,
    quality: int | None = None,
    speed: int | None = None,
) -> ProcessedImage:
    """Decode, resize, blur-hash and AVIF-encode one uploaded image.

    Raises:
        ImageProcessingError: the bytes are not a decodable image in one of
            ``ALLOWED_FORMATS``.
    """
    max_dimension = max_dimension or settings.image_max_dimension
    thumbnail_dimension = thumbnail_dimension or settings.thumbnail_max_dimension
    quality = quality or settings.avif_quality
    speed = speed or settings.avif_speed

    try:
        with Image.open(io.BytesIO(data)) as opened:
            if opened.format not in ALLOWED_FORMATS:
                raise ImageProcessingError(f"Unsupported image format '{opened.format}'")
            opened.load()
            # first frame only for animated input
            image = ImageOps.exif_transpose(opened) or opened.copy()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageProcessingError(f"Could not decode image: {e}")

    image = _normalise_mode(image)
    main = _fit(image, max_dimension)
    thumbnail = _fit(image, thumbnail_dimension)

    try:
        main_bytes = _encode_avif(main, quality, speed)
        thumbnail_bytes = _encode_avif(thumbnail, quality, speed)
    except (OSError, ValueError, KeyError) as e:
        raise ImageProcessingError(f"Could not encode image: {e}")

    stem = str(uuid.uuid4())
    return ProcessedImage(
        filename=f"{stem}.avif",
        thumbnail_filename=f"{stem}_thumb.avif",
        main_bytes=main_bytes,
        thumbnail_bytes=thumbnail_bytes,
        width=main.width,
        height=main.height,
        blur_hash=compute_blur_hash(main),
    )


async def process_image_async(data: bytes) -> ProcessedImage:
    return await asyncio.to_thread(process_image, data)
