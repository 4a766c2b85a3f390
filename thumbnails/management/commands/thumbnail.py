import json

from django.core.management.base import BaseCommand, CommandError

from thumbnails.exceptions import ThumbnailError
from thumbnails.models import SourceReference
from thumbnails.pipeline import ThumbnailPipeline
from thumbnails.serializers import serialize_result
from thumbnails.utils import decode_key


class Command(BaseCommand):
    help = "Create a thumbnail for one S3 object and print the result as JSON."

    def add_arguments(self, parser):
        parser.add_argument("container", help="Bucket name")
        parser.add_argument("key", help="Object key (URL-encoded keys are decoded)")

    def handle(self, *args, **options):
        source = SourceReference(bucket=options["container"], key=decode_key(options["key"]))
        try:
            result = ThumbnailPipeline().run(source)
        except ThumbnailError as e:
            raise CommandError(str(e.detail)) from e

        payload = serialize_result(result)
        if payload is None:
            if options["verbosity"] > 1:
                self.stderr.write(f"Skipped: {result.reason}")
            return
        self.stdout.write(json.dumps(payload))
