from rest_framework import status, views
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .pipeline import ThumbnailPipeline
from .serializers import ThumbnailRequestSerializer, serialize_result


class CreateThumbnailView(views.APIView):
    """
    Builds a thumbnail for an object already in S3/MinIO and returns it inline.

    200 -> {"width", "height"} for oversized images, or
           {"width"?, "height"?, "format", "bufferBase64"} for thumbnails.
    204 -> skipped (unsupported type or oversized non-image).
    Pipeline errors are rendered by DRF from their ThumbnailError status.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = ThumbnailRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = ThumbnailPipeline().run(ser.to_source())
        payload = serialize_result(result)
        if payload is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(payload, status=status.HTTP_200_OK)
