import math

import pytest

from thumbnails.models import FileType
from thumbnails.utils import classify_key, decode_key, local_name, scale_dimensions


@pytest.mark.parametrize("key, expected", [
    ("photo.jpg", FileType.IMAGE),
    ("photo.png", FileType.IMAGE),
    ("scan.tif", FileType.IMAGE),
    ("clip.mp4", FileType.VIDEO),
    ("sound.wav", FileType.VIDEO),
    ("clip.m4v", FileType.VIDEO),
    ("paper.pdf", FileType.PDF),
    ("letter.doc", FileType.OFFICE),
    ("deck.ppt", FileType.OFFICE),
    ("letter.docx", FileType.OFFICE),
    ("slides.pptx", FileType.OFFICE),
])
def test_classify_known_extensions(key, expected):
    assert classify_key(key) == expected


@pytest.mark.parametrize("key", ["PHOTO.PNG", "folder/Photo.Jpg", "a.b.c/clip.MP4"])
def test_classify_is_case_insensitive(key):
    assert classify_key(key) is not None


@pytest.mark.parametrize("key", ["notes.txt", "archive.tar.gz", "README", "dir.png/file", "trailingdot."])
def test_classify_unknown_is_skip(key):
    assert classify_key(key) is None


def test_classify_uses_last_extension_only():
    assert classify_key("report.pdf.png") == FileType.IMAGE
    assert classify_key("image.png.pdf") == FileType.PDF


def test_decode_key_handles_plus_and_percent_escapes():
    assert decode_key("my+holiday/caf%C3%A9+photo.png") == "my holiday/café photo.png"


def test_decode_key_keeps_encoded_plus():
    assert decode_key("a%2Bb.png") == "a+b.png"


def test_local_name_flattens_key():
    assert local_name("uploads/2024/photo.png") == "uploads-2024-photo.png"


def test_scale_wide_image():
    assert scale_dimensions(400, 100, 200, 200) == (200.0, 50.0)


@pytest.mark.parametrize("width, height", [(400, 100), (100, 400), (1920, 1080), (201, 199), (7, 3000)])
def test_scale_keeps_aspect_ratio_and_fits_box(width, height):
    out_w, out_h = scale_dimensions(width, height, 200, 200)
    assert math.isclose(out_w / out_h, width / height, rel_tol=1e-9)
    assert out_w <= 200 + 1e-9
    assert out_h <= 200 + 1e-9
    assert math.isclose(max(out_w / 200, out_h / 200), 1.0)


def test_scale_upscales_small_sources_by_default():
    assert scale_dimensions(50, 25, 200, 200) == (200.0, 100.0)


def test_scale_without_upscale_leaves_small_sources_alone():
    assert scale_dimensions(50, 25, 200, 200, allow_upscale=False) == (50.0, 25.0)


def test_scale_rejects_empty_images():
    with pytest.raises(ValueError):
        scale_dimensions(0, 10, 200, 200)
