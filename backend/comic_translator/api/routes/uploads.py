"""Comic page upload endpoint"""
from fastapi import APIRouter, UploadFile, File, HTTPException, Depends
import logging

from ...config import settings
from ...errors import ComicTranslatorError, FileTooLargeError, UnsupportedMediaTypeError, ValidationError
from ...models.response import UploadResponse
from ...services import ContentStore, FORMAT_EXTENSIONS, inspect_image
from ..dependencies import get_content_store

logger = logging.getLogger(__name__)
router = APIRouter(tags=["uploads"])


@router.post("/upload", response_model=UploadResponse)
async def upload_comic(
    comic: UploadFile = File(...),
    content_store: ContentStore = Depends(get_content_store)
):
    """
    Upload a comic page image

    Identical bytes are stored once; a repeat upload reports ``reused``.
    """
    try:
        if comic.content_type not in settings.allowed_mime_types:
            raise UnsupportedMediaTypeError(
                "Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed."
            )

        data = await comic.read(settings.max_file_size + 1)
        if not data:
            raise ValidationError("No file uploaded")
        if len(data) > settings.max_file_size:
            raise FileTooLargeError(len(data), settings.max_file_size)

        width, height, image_format = inspect_image(data)
        original_name = comic.filename or "upload"
        stored = content_store.put(data, original_name, extension=FORMAT_EXTENSIONS[image_format])

        logger.info(f"Uploaded {original_name} as {stored.stored_name} ({width}x{height})")
        return UploadResponse(
            message="File already exists, reusing existing file" if stored.already_existed else "File uploaded successfully",
            filename=stored.stored_name,
            hash=stored.digest,
            original_name=original_name,
            size=stored.size,
            reused=stored.already_existed,
            width=width,
            height=height
        )

    except ComicTranslatorError:
        raise
    except Exception as e:
        logger.error(f"Upload error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to upload file: {str(e)}")
