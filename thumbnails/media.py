"""
Media transformation capabilities used by the pipeline.

MediaTools is the only place that knows which programs and libraries do the
work: ffmpeg for video frames, PyMuPDF for PDF pages, Pillow for everything
else. Swap it out (or subclass it) to change tools without touching the
pipeline.
"""
import io
import logging
import subprocess
from contextlib import contextmanager
from pathlib import Path

import fitz  # pymupdf
from django.conf import settings
from PIL import Image, UnidentifiedImageError

from .exceptions import ConversionToolError, EncodingError

logger = logging.getLogger(__name__)

# Pillow modes that PNG (and most other output formats) can store as-is.
_STORABLE_MODES = {"1", "L", "LA", "P", "RGB", "RGBA"}


@contextmanager
def _unbounded_pixels():
    """Lift Pillow's decompression-bomb limit while only the header is read."""
    limit = Image.MAX_IMAGE_PIXELS
    Image.MAX_IMAGE_PIXELS = None
    try:
        yield
    finally:
        Image.MAX_IMAGE_PIXELS = limit


class MediaTools:
    def __init__(self, *, output_format: str = "png", ffmpeg_binary: str = "ffmpeg",
                 frame_offset: str = "00:00:01", pdf_dpi: int = 150, pdf_quality: int = 100):
        self.output_format = output_format.lower()
        self.ffmpeg_binary = ffmpeg_binary
        self.frame_offset = frame_offset
        self.pdf_dpi = pdf_dpi
        self.pdf_quality = pdf_quality

    @classmethod
    def from_settings(cls) -> "MediaTools":
        return cls(
            output_format=settings.THUMBNAIL_FORMAT,
            ffmpeg_binary=settings.THUMBNAIL_FFMPEG_BINARY,
            frame_offset=settings.THUMBNAIL_VIDEO_FRAME_OFFSET,
            pdf_dpi=settings.THUMBNAIL_PDF_DPI,
            pdf_quality=settings.THUMBNAIL_PDF_QUALITY,
        )

    @property
    def pil_format(self) -> str:
        """Pillow format name for the output extension ('jpg' -> 'JPEG')."""
        return Image.registered_extensions().get(f".{self.output_format}", self.output_format.upper())

    # -----------------------------------------------------
    # Preprocessing
    # -----------------------------------------------------
    def extract_frame(self, src: Path, dst: Path) -> Path:
        """Grab a single frame at frame_offset from a video into dst."""
        cmd = [
            self.ffmpeg_binary,
            "-i", str(src),
            "-ss", self.frame_offset,
            "-vframes", "1",
            "-n",
            str(dst),
        ]
        logger.info("Extracting frame from %s", src)
        try:
            subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except subprocess.CalledProcessError as e:
            err = e.stderr.decode("utf-8", errors="ignore") if e.stderr else str(e)
            raise ConversionToolError(f"ffmpeg failed on {src.name}: {err[-1000:]}") from e
        except OSError as e:
            raise ConversionToolError(f"Could not run {self.ffmpeg_binary}: {e}") from e
        return dst

    def rasterize_pdf_page(self, src: Path, dst: Path, page: int = 0) -> Path:
        """Render one PDF page onto an opaque background and save it as an image."""
        logger.info("Rasterizing page %d of %s at %d dpi", page, src, self.pdf_dpi)
        try:
            with fitz.open(str(src)) as doc:
                pix = doc.load_page(page).get_pixmap(dpi=self.pdf_dpi, alpha=False)
                img = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
            img.save(dst, format=self.pil_format, quality=self.pdf_quality)
        except (RuntimeError, ValueError, IndexError, OSError) as e:
            raise ConversionToolError(f"Could not rasterize {src.name}: {e}") from e
        return dst

    # -----------------------------------------------------
    # Thumbnailing
    # -----------------------------------------------------
    def image_size(self, path: Path) -> tuple[int, int]:
        """
        Intrinsic (width, height). Only the header is decoded, so a truncated
        file from a ranged download is enough.
        """
        try:
            with _unbounded_pixels(), Image.open(path) as img:
                return img.size
        except (UnidentifiedImageError, OSError) as e:
            raise EncodingError(f"Could not read image size of {path.name}: {e}") from e

    def resize(self, path: Path, size: tuple[float, float]) -> bytes:
        """Resize to size (rounded to whole pixels) and encode in the output format."""
        width = max(1, round(size[0]))
        height = max(1, round(size[1]))
        try:
            with Image.open(path) as img:
                if img.mode not in _STORABLE_MODES:
                    img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
                elif self.pil_format == "JPEG" and img.mode not in ("L", "RGB"):
                    img = img.convert("RGB")
                thumb = img.resize((width, height), Image.Resampling.LANCZOS)
            buf = io.BytesIO()
            thumb.save(buf, format=self.pil_format)
        except Image.DecompressionBombError as e:
            raise EncodingError(f"{path.name} is too large to thumbnail: {e}") from e
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise EncodingError(f"Could not create thumbnail from {path.name}: {e}") from e
        return buf.getvalue()
