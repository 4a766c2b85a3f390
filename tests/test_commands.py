import base64
import io
import json

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError


def test_thumbnail_command_prints_payload(fake_s3, make_png):
    fake_s3.put("media", "photos/photo.png", make_png(400, 100))
    out = io.StringIO()

    call_command("thumbnail", "media", "photos/photo.png", stdout=out)

    payload = json.loads(out.getvalue())
    assert payload["width"] == 400
    assert payload["height"] == 100
    assert payload["format"] == "png"
    assert base64.b64decode(payload["bufferBase64"]).startswith(b"\x89PNG")


def test_thumbnail_command_prints_nothing_on_skip(fake_s3):
    out = io.StringIO()
    call_command("thumbnail", "media", "notes.txt", stdout=out)
    assert out.getvalue() == ""


def test_thumbnail_command_reports_errors(fake_s3):
    with pytest.raises(CommandError, match="Could not stat"):
        call_command("thumbnail", "missing-bucket", "photo.png")
