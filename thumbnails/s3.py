import logging
import shutil
from pathlib import Path

import boto3
from botocore.config import Config as BotoConfig
from django.conf import settings

logger = logging.getLogger(__name__)

# GetBucketLocation reports these legacy values instead of region names.
_LEGACY_LOCATIONS = {
    None: "us-east-1",
    "": "us-east-1",
    "EU": "eu-west-1",
}


def get_s3_client(region: str | None = None):
    """
    SDK client for object reads. Pass the bucket's own region once it is known.
    """
    session = boto3.session.Session(
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        region_name=region or settings.S3_REGION,
    )
    return session.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL,  # None for AWS, e.g. http://127.0.0.1:9000 for MinIO
        config=BotoConfig(
            s3={"addressing_style": settings.S3_ADDRESSING_STYLE},
            signature_version="s3v4",
        ),
    )


def get_bucket_region(bucket: str) -> str:
    """
    Resolve the region a bucket lives in.
    """
    s3 = get_s3_client()
    location = s3.get_bucket_location(Bucket=bucket).get("LocationConstraint")
    return _LEGACY_LOCATIONS.get(location, location)


def get_object_size(bucket: str, key: str, *, region: str | None = None) -> int:
    """
    Size of the object in bytes, from a HEAD request.
    """
    s3 = get_s3_client(region)
    return int(s3.head_object(Bucket=bucket, Key=key)["ContentLength"])


def download_object(bucket: str, key: str, dest: Path, *, region: str | None = None,
                    byte_range: str | None = None) -> Path:
    """
    Stream an object (or the byte range of it, e.g. 'bytes=0-102399') to dest.
    Creates the parent directory when missing.
    """
    logger.info("Downloading s3://%s/%s to %s%s", bucket, key, dest,
                f" ({byte_range})" if byte_range else "")
    dest.parent.mkdir(parents=True, exist_ok=True)

    s3 = get_s3_client(region)
    params = {"Bucket": bucket, "Key": key}
    if byte_range:
        params["Range"] = byte_range
    body = s3.get_object(**params)["Body"]
    try:
        with open(dest, "wb") as f:
            shutil.copyfileobj(body, f)
    finally:
        body.close()
    return dest
