"""
Thumbnail pipeline.

One ThumbnailPipeline.run call handles one object:

    classify -> check size -> convert office -> download -> preprocess
             -> render -> finalize

Every stage takes the JobContext and either returns None (advance), returns a
result (stop with that result), or raises a ThumbnailError (fail). Whatever
happens, run() removes the request's scratch files before returning.
"""
import base64
import logging
import shutil
from pathlib import Path
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from . import s3
from .convert import OfficeConverter
from .exceptions import DownloadError, MetadataError, ThumbnailError
from .media import MediaTools
from .models import (
    DimensionsOnly,
    FileType,
    JobContext,
    Skipped,
    SourceReference,
    Thumbnail,
    ThumbnailResult,
)
from .utils import classify_key, local_name, scale_dimensions

logger = logging.getLogger(__name__)


class ThumbnailPipeline:
    def __init__(self, *, tools: MediaTools | None = None, converter: OfficeConverter | None = None):
        self.tools = tools or MediaTools.from_settings()
        self.converter = converter or OfficeConverter.from_settings()

        self.max_width = settings.THUMBNAIL_MAX_WIDTH
        self.max_height = settings.THUMBNAIL_MAX_HEIGHT
        self.max_object_size = settings.THUMBNAIL_MAX_OBJECT_SIZE
        self.partial_bytes = settings.THUMBNAIL_PARTIAL_DOWNLOAD_BYTES
        self.allow_upscale = settings.THUMBNAIL_ALLOW_UPSCALE
        self.scratch_root = Path(settings.THUMBNAIL_SCRATCH_DIR)
        self.pdf_prefix = settings.THUMBNAIL_PDF_PREFIX

        self.stages = (
            self._classify,
            self._check_size,
            self._convert_office,
            self._download,
            self._preprocess,
            self._render,
            self._finalize,
        )

    def new_context(self, source: SourceReference) -> JobContext:
        return JobContext(
            source=source,
            key=source.key,
            scratch_dir=self.scratch_root / uuid4().hex,
        )

    def run(self, source: SourceReference) -> ThumbnailResult:
        ctx = self.new_context(source)
        try:
            for stage in self.stages:
                result = stage(ctx)
                if result is not None:
                    return result
            raise ThumbnailError(f"No result produced for {source.key}")
        except ThumbnailError as e:
            logger.error("Thumbnail failed for s3://%s/%s: %s", source.bucket, source.key, e)
            raise
        except Exception:
            logger.exception("Unexpected error creating thumbnail for s3://%s/%s", source.bucket, source.key)
            raise
        finally:
            self._cleanup(ctx)

    # -----------------------------------------------------
    # Stages
    # -----------------------------------------------------
    def _classify(self, ctx: JobContext) -> ThumbnailResult | None:
        file_type = classify_key(ctx.key)
        if file_type is None:
            logger.info("Skipping unknown file type %s", ctx.key)
            return Skipped("unsupported file type")
        ctx.file_type = file_type
        return None

    def _check_size(self, ctx: JobContext) -> ThumbnailResult | None:
        bucket = ctx.source.bucket
        try:
            ctx.region = s3.get_bucket_region(bucket)
            size = s3.get_object_size(bucket, ctx.key, region=ctx.region)
        except (BotoCoreError, ClientError) as e:
            raise MetadataError(f"Could not stat s3://{bucket}/{ctx.key}: {e}") from e

        if size <= self.max_object_size:
            return None

        if ctx.file_type != FileType.IMAGE:
            logger.info("Skipping s3://%s/%s: %d bytes is over the %d byte limit",
                        bucket, ctx.key, size, self.max_object_size)
            return Skipped("object too large")

        # Only the header is needed to report the size of a huge image.
        self._fetch(ctx, byte_range=f"bytes=0-{self.partial_bytes - 1}")
        width, height = self.tools.image_size(ctx.working_path)
        logger.info("Oversized image %s is %dx%d", ctx.key, width, height)
        return DimensionsOnly(width=width, height=height)

    def _convert_office(self, ctx: JobContext) -> ThumbnailResult | None:
        if ctx.file_type != FileType.OFFICE:
            return None
        destination = f"{self.pdf_prefix}{uuid4()}/"
        ctx.key = self.converter.convert(ctx.source.bucket, ctx.key, destination)
        ctx.file_type = FileType.PDF
        return None

    def _download(self, ctx: JobContext) -> ThumbnailResult | None:
        self._fetch(ctx)
        return None

    def _preprocess(self, ctx: JobContext) -> ThumbnailResult | None:
        if ctx.file_type == FileType.IMAGE:
            return None

        origin = ctx.working_path
        target = origin.with_name(f"{origin.name}.{self.tools.output_format}")
        ctx.origin_path, ctx.working_path = origin, target
        try:
            if ctx.file_type == FileType.VIDEO:
                self.tools.extract_frame(origin, target)
            elif ctx.file_type == FileType.PDF:
                self.tools.rasterize_pdf_page(origin, target)
            else:
                raise ThumbnailError(f"Cannot preprocess {ctx.file_type} files")
        finally:
            self._discard_origin(ctx)
        return None

    def _render(self, ctx: JobContext) -> ThumbnailResult | None:
        logger.info("Creating thumbnail for %s", ctx.working_path)
        width, height = self.tools.image_size(ctx.working_path)
        if ctx.file_type == FileType.IMAGE:
            ctx.width, ctx.height = width, height

        size = scale_dimensions(width, height, self.max_width, self.max_height,
                                allow_upscale=self.allow_upscale)
        ctx.buffer = self.tools.resize(ctx.working_path, size)
        return None

    def _finalize(self, ctx: JobContext) -> ThumbnailResult:
        self._remove(ctx.working_path)
        ctx.working_path = None
        return Thumbnail(
            format=self.tools.output_format,
            buffer_base64=base64.b64encode(ctx.buffer).decode("ascii"),
            width=ctx.width,
            height=ctx.height,
        )

    # -----------------------------------------------------
    # Files
    # -----------------------------------------------------
    def _fetch(self, ctx: JobContext, byte_range: str | None = None) -> Path:
        dest = ctx.scratch_dir / local_name(ctx.key)
        ctx.working_path = dest
        try:
            s3.download_object(ctx.source.bucket, ctx.key, dest, region=ctx.region, byte_range=byte_range)
        except (BotoCoreError, ClientError, OSError) as e:
            raise DownloadError(f"Could not download s3://{ctx.source.bucket}/{ctx.key}: {e}") from e
        return dest

    def _discard_origin(self, ctx: JobContext) -> None:
        if ctx.origin_path is not None:
            self._remove(ctx.origin_path)
            ctx.origin_path = None

    def _remove(self, path: Path | None) -> None:
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
            logger.debug("Deleted %s", path)
        except OSError as e:
            logger.warning("Couldn't delete file %s: %s", path, e)

    def _cleanup(self, ctx: JobContext) -> None:
        self._discard_origin(ctx)
        self._remove(ctx.working_path)
        ctx.working_path = None
        if ctx.scratch_dir.exists():
            try:
                shutil.rmtree(ctx.scratch_dir)
            except OSError as e:
                logger.warning("Couldn't delete scratch directory %s: %s", ctx.scratch_dir, e)
