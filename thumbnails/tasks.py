import logging

from celery import shared_task

from .models import SourceReference
from .pipeline import ThumbnailPipeline
from .serializers import serialize_result
from .utils import decode_key

logger = logging.getLogger(__name__)


@shared_task(bind=True, name="thumbnails.create_thumbnail")
def create_thumbnail(self, bucket: str, key: str):
    """
    Worker entry point, fed straight from storage notifications:
    {"bucket": ..., "key": ...} with the key still URL-encoded.

    Returns the response payload, or None when the object was skipped.
    Errors propagate so Celery records the task as failed.
    """
    source = SourceReference(bucket=bucket, key=decode_key(key))
    logger.info("Task %s: thumbnail for s3://%s/%s", self.request.id, source.bucket, source.key)
    return serialize_result(ThumbnailPipeline().run(source))
