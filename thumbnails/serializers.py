from rest_framework import serializers

from .models import DimensionsOnly, Skipped, SourceReference, Thumbnail, ThumbnailResult
from .utils import decode_key


class ThumbnailRequestSerializer(serializers.Serializer):
    container = serializers.CharField()
    key = serializers.CharField(trim_whitespace=False)

    def validate_key(self, value):
        """
        Keys come URL-encoded ('+' for spaces, %XX for non-ASCII).
        Decode once here so the pipeline only sees literal keys.
        """
        key = decode_key(value)
        if not key:
            raise serializers.ValidationError("Key is empty after decoding.")
        return key

    def to_source(self) -> SourceReference:
        return SourceReference(
            bucket=self.validated_data["container"],
            key=self.validated_data["key"],
        )


class DimensionsSerializer(serializers.Serializer):
    width = serializers.IntegerField()
    height = serializers.IntegerField()


class ThumbnailSerializer(serializers.Serializer):
    width = serializers.IntegerField(required=False, allow_null=True)
    height = serializers.IntegerField(required=False, allow_null=True)
    format = serializers.CharField()
    bufferBase64 = serializers.CharField(source="buffer_base64")

    def to_representation(self, instance):
        # Original dimensions are only known for image sources.
        data = super().to_representation(instance)
        return {k: v for k, v in data.items() if v is not None}


def serialize_result(result: ThumbnailResult) -> dict | None:
    """Wire payload for a pipeline result; None for skips."""
    if isinstance(result, Skipped):
        return None
    if isinstance(result, DimensionsOnly):
        return dict(DimensionsSerializer(result).data)
    if isinstance(result, Thumbnail):
        return dict(ThumbnailSerializer(result).data)
    raise TypeError(f"Unexpected thumbnail result {result!r}")
