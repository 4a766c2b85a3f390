import json
import logging
from collections.abc import Mapping

from django.conf import settings

from preview_service.celery import celery_app

from .exceptions import DelegateError

logger = logging.getLogger(__name__)


class OfficeConverter:
    """
    Office -> PDF conversion through a remote Celery task.

    The worker serving `task_name` receives bucket, key and a destination
    prefix, writes the PDF back to the same bucket, and replies with
    {"key": "<destination>...pdf"}.
    """

    def __init__(self, task_name: str, *, queue: str | None = None, timeout: int = 300):
        self.task_name = task_name
        self.queue = queue
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "OfficeConverter":
        return cls(
            settings.THUMBNAIL_PDF_TASK,
            queue=settings.THUMBNAIL_PDF_QUEUE,
            timeout=settings.THUMBNAIL_PDF_TIMEOUT,
        )

    def convert(self, bucket: str, key: str, destination: str) -> str:
        """Run the conversion and wait for it. Returns the key of the produced PDF."""
        logger.info("Converting s3://%s/%s to PDF via %s", bucket, key, self.task_name)
        options = {"queue": self.queue} if self.queue else {}
        try:
            async_result = celery_app.send_task(
                self.task_name,
                kwargs={"bucket": bucket, "key": key, "destination": destination},
                **options,
            )
            # create_thumbnail runs this inside a worker; waiting on another task is intended here.
            reply = async_result.get(timeout=self.timeout, disable_sync_subtasks=False)
        except Exception as e:
            raise DelegateError(f"PDF conversion of {key} failed: {e}") from e

        pdf_key = self._parse_reply(reply)
        logger.info("PDF conversion complete: %s", pdf_key)
        return pdf_key

    @staticmethod
    def _parse_reply(reply) -> str:
        if isinstance(reply, (str, bytes)):
            try:
                reply = json.loads(reply)
            except ValueError as e:
                raise DelegateError(f"Unreadable PDF conversion reply: {reply!r}") from e
        pdf_key = reply.get("key") if isinstance(reply, Mapping) else None
        if not isinstance(pdf_key, str) or not pdf_key:
            raise DelegateError(f"PDF conversion reply has no key: {reply!r}")
        return pdf_key
