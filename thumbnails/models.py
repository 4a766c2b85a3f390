from dataclasses import dataclass
from pathlib import Path
from typing import Union

from django.db import models


class FileType(models.TextChoices):
    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"
    OFFICE = "office"


@dataclass(frozen=True)
class SourceReference:
    bucket: str
    key: str


@dataclass
class JobContext:
    """
    Mutable state of a single pipeline run. Owned by ThumbnailPipeline.run and
    discarded when it returns; nothing here outlives the request.
    """
    source: SourceReference
    key: str                                # reassigned after office -> pdf
    scratch_dir: Path                       # <scratch root>/<uuid4 hex>
    file_type: FileType | None = None
    region: str | None = None
    working_path: Path | None = None
    origin_path: Path | None = None         # superseded file awaiting deletion
    width: int | None = None                # original dimensions, images only
    height: int | None = None
    buffer: bytes | None = None


@dataclass(frozen=True)
class Skipped:
    reason: str


@dataclass(frozen=True)
class DimensionsOnly:
    width: int
    height: int


@dataclass(frozen=True)
class Thumbnail:
    format: str
    buffer_base64: str
    width: int | None = None
    height: int | None = None


ThumbnailResult = Union[Skipped, DimensionsOnly, Thumbnail]
