import io
import os
import struct
import zlib

import fitz  # pymupdf
import pytest
from botocore.exceptions import ClientError
from PIL import Image

from thumbnails import s3


def _client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeS3Client:
    """In-memory stand-in for the handful of S3 calls the pipeline makes."""

    def __init__(self, region: str | None = "eu-central-1"):
        self.region = region
        self.objects: dict[tuple[str, str], bytes] = {}
        self.calls: list[tuple] = []

    def put(self, bucket: str, key: str, data: bytes) -> None:
        self.objects[(bucket, key)] = data

    def _data(self, bucket: str, key: str, operation: str) -> bytes:
        try:
            return self.objects[(bucket, key)]
        except KeyError:
            raise _client_error("404", "Not Found", operation)

    def get_bucket_location(self, Bucket):
        self.calls.append(("get_bucket_location", Bucket))
        if not any(b == Bucket for b, _ in self.objects):
            raise _client_error("NoSuchBucket", "The specified bucket does not exist", "GetBucketLocation")
        return {"LocationConstraint": self.region}

    def head_object(self, Bucket, Key):
        self.calls.append(("head_object", Bucket, Key))
        return {"ContentLength": len(self._data(Bucket, Key, "HeadObject"))}

    def get_object(self, Bucket, Key, Range=None):
        self.calls.append(("get_object", Bucket, Key, Range))
        data = self._data(Bucket, Key, "GetObject")
        if Range:
            start, end = Range.removeprefix("bytes=").split("-")
            data = data[int(start):int(end) + 1]
        return {"Body": io.BytesIO(data), "ContentLength": len(data)}


@pytest.fixture
def fake_s3(monkeypatch):
    client = FakeS3Client()
    monkeypatch.setattr(s3, "get_s3_client", lambda region=None: client)
    return client


@pytest.fixture(autouse=True)
def scratch_root(settings, tmp_path):
    settings.THUMBNAIL_SCRATCH_DIR = tmp_path / "scratch"
    return settings.THUMBNAIL_SCRATCH_DIR


@pytest.fixture
def make_png():
    """PNG bytes of the given size. noisy=True makes them incompressible."""
    def _make(width: int, height: int, *, noisy: bool = False, mode: str = "RGB") -> bytes:
        if noisy:
            img = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3)).convert(mode)
        else:
            img = Image.new(mode, (width, height), "red" if mode != "L" else 128)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
    return _make


@pytest.fixture
def make_pdf():
    def _make(width: float = 400, height: float = 300, pages: int = 1) -> bytes:
        doc = fitz.open()
        for _ in range(pages):
            page = doc.new_page(width=width, height=height)
            page.insert_text((36, 72), "Quarterly report")
        data = doc.tobytes()
        doc.close()
        return data
    return _make


@pytest.fixture
def make_png_header():
    """Signature, IHDR and an empty IDAT: a grayscale PNG of any size without its pixel data."""
    def chunk(tag: bytes, data: bytes = b"") -> bytes:
        return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data))

    def _make(width: int, height: int) -> bytes:
        ihdr = struct.pack(">IIBBBBB", width, height, 8, 0, 0, 0, 0)
        return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IDAT")
    return _make
