import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Union

from PIL import Image, ImageOps

from gallery.models import TransformOptions
from gallery.utils.image import media_type_for, pillow_format_for
from gallery.utils.performance import TRANSCODE_DURATION_SECONDS, PerformanceMonitor

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}


@dataclass(frozen=True)
class TranscodedImage:
    body: bytes
    media_type: str
    width: int
    height: int


@dataclass(frozen=True)
class PassThrough:
    """The source is served as-is; nothing in the pipeline applies to it."""

    media_type: str


@dataclass(frozen=True)
class TranscodeFailure:
    reason: str


TranscodeResult = Union[TranscodedImage, PassThrough, TranscodeFailure]


class Transcoder:
    """
    Resizes and re-encodes images with Pillow.

    The whole output is encoded before a result is returned, so a corrupt or
    unsupported source shows up as a TranscodeFailure before any response
    header is written.
    """

    async def transcode(self, file_path: str, options: TransformOptions) -> TranscodeResult:
        monitor = PerformanceMonitor().start()
        try:
            result = await asyncio.to_thread(self._render, file_path, options)
        except Exception as e:
            TRANSCODE_DURATION_SECONDS.labels(outcome="failure").observe(monitor.stop())
            logger.warning(f"Transcode failed for {file_path}: {e}")
            return TranscodeFailure(reason=f"{type(e).__name__}: {e}")

        outcome = "passthrough" if isinstance(result, PassThrough) else "success"
        TRANSCODE_DURATION_SECONDS.labels(outcome=outcome).observe(monitor.stop())
        monitor.report(f"transcode {file_path} ({outcome})")
        return result

    def _render(self, file_path: str, options: TransformOptions) -> Union[TranscodedImage, PassThrough]:
        with Image.open(file_path) as source:
            output_format = "WEBP" if options.wants_webp else pillow_format_for(file_path)
            if output_format is None or getattr(source, "is_animated", False):
                return PassThrough(media_type=media_type_for(file_path))

            # Re-encoding drops the orientation tag, so bake it into the pixels first.
            img = ImageOps.exif_transpose(source)
            img = self._fit_width(img, options.target_width)
            img = self._prepare_mode(img, output_format)

            buffer = io.BytesIO()
            img.save(buffer, format=output_format, **self._save_options(output_format, options.quality))

        return TranscodedImage(
            body=buffer.getvalue(),
            media_type=CONTENT_TYPES[output_format],
            width=img.width,
            height=img.height,
        )

    @staticmethod
    def _fit_width(img: Image.Image, target_width: int) -> Image.Image:
        # Never enlarge.
        if not target_width or img.width <= target_width:
            return img
        height = max(1, round(img.height * target_width / img.width))
        return img.resize((target_width, height), Image.Resampling.LANCZOS)

    @staticmethod
    def _prepare_mode(img: Image.Image, output_format: str) -> Image.Image:
        if output_format == "JPEG" and img.mode not in ("RGB", "L", "CMYK"):
            return img.convert("RGB")
        if output_format == "WEBP" and img.mode not in ("RGB", "RGBA"):
            has_alpha = "A" in img.mode or "transparency" in img.info
            return img.convert("RGBA" if has_alpha else "RGB")
        return img

    @staticmethod
    def _save_options(output_format: str, quality: int) -> dict:
        if output_format == "JPEG":
            return {"quality": quality, "optimize": True}
        if output_format == "WEBP":
            return {"quality": quality}
        # PNG is lossless; quality does not apply.
        return {"optimize": True}
