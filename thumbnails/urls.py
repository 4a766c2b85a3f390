from django.urls import path
from .views import CreateThumbnailView

urlpatterns = [
    path("thumbnails/", CreateThumbnailView.as_view(), name="create_thumbnail"),
]
