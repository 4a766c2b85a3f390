"""
Thumbnail pipeline errors.

Each error carries its own status code and default detail so the API view can
let DRF render it directly. Skips are not errors; see models.Skipped.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class ThumbnailError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Thumbnail generation failed."
    default_code = "thumbnail_error"


# ── Storage ─────────────────────────────────────────────────────────────────

class MetadataError(ThumbnailError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Could not read object location or size."
    default_code = "metadata_error"


class DownloadError(ThumbnailError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Could not download the object."
    default_code = "download_error"


# ── Collaborators ───────────────────────────────────────────────────────────

class DelegateError(ThumbnailError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Document conversion service failed."
    default_code = "delegate_error"


class ConversionToolError(ThumbnailError):
    default_detail = "Media conversion tool failed."
    default_code = "conversion_tool_error"


class EncodingError(ThumbnailError):
    default_detail = "Could not decode or encode the image."
    default_code = "encoding_error"
