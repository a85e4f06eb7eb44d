from typing import List

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from app.core.config import Settings
from app.core.responses import ApiResponse, ok
from app.deps import CurrentUser, authenticate, get_settings, get_storage
from app.middleware.rate_limit import write_limiter
from app.modules.media.schemas import UploadedImage
from app.modules.media.service import MediaService

# Serves locally stored blobs; mounted at /media
router = APIRouter()

# Image uploads; mounted at /upload
upload_router = APIRouter()


def get_media_service(storage=Depends(get_storage), settings: Settings = Depends(get_settings)) -> MediaService:
    return MediaService(storage, settings)


@router.get("/{key:path}")
def serve_media(key: str, media_service: MediaService = Depends(get_media_service)):
    content, content_type = media_service.get_media(key)
    return Response(
        content=content,
        media_type=content_type,
        headers={"Cache-Control": "public, max-age=86400"},
    )


@upload_router.post(
    "/image",
    response_model=ApiResponse[UploadedImage],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(write_limiter)],
)
def upload_image(
    image: UploadFile = File(...),
    current_user: CurrentUser = Depends(authenticate),
    media_service: MediaService = Depends(get_media_service),
):
    """
    Upload a single JPEG, PNG or WebP image; the returned url is the key to store on posts and profiles.
    """
    return ok(media_service.upload_image(current_user.user_id, image))


@upload_router.post(
    "/images",
    response_model=ApiResponse[List[UploadedImage]],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(write_limiter)],
)
def upload_images(
    images: List[UploadFile] = File(...),
    current_user: CurrentUser = Depends(authenticate),
    media_service: MediaService = Depends(get_media_service),
):
    return ok(media_service.upload_images(current_user.user_id, images))
