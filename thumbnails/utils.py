from urllib.parse import unquote_plus

from .models import FileType

EXTENSION_TYPES = {
    **dict.fromkeys(("jpg", "jpeg", "png", "tif", "tiff", "gif", "bmp", "webp"), FileType.IMAGE),
    **dict.fromkeys(("mp4", "wav", "m4v", "mov", "avi", "mkv", "webm"), FileType.VIDEO),
    "pdf": FileType.PDF,
    **dict.fromkeys(("doc", "docx", "ppt", "pptx", "xls", "xlsx", "odt", "odp", "rtf"), FileType.OFFICE),
}


def decode_key(raw_key: str) -> str:
    """Object keys arrive URL-encoded with '+' for spaces (S3 notification style)."""
    return unquote_plus(raw_key)


def classify_key(key: str) -> FileType | None:
    """Return the FileType for the key's trailing extension, or None to skip it."""
    _, dot, ext = key.rpartition(".")
    if not dot:
        return None
    return EXTENSION_TYPES.get(ext.lower())


def local_name(key: str) -> str:
    """Flatten an object key into a single file name."""
    return key.replace("/", "-")


def scale_dimensions(width: int, height: int, max_width: int, max_height: int,
                     allow_upscale: bool = True) -> tuple[float, float]:
    """
    Fit (width, height) into the (max_width, max_height) box keeping the aspect
    ratio. Sources smaller than the box are scaled up unless allow_upscale is off.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image dimensions {width}x{height}")
    scale = min(max_width / width, max_height / height)
    if not allow_upscale:
        scale = min(scale, 1.0)
    return scale * width, scale * height
