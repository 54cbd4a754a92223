from supabase import Client
from fastapi import HTTPException, UploadFile
from app.config import settings
from app.modules.media.s3_storage import S3Storage
from app.modules.media.schemas import StoredMedia
from typing import Optional
import os
import time
import uuid
import logging

logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPES = ("image/jpeg", "image/png", "image/gif")


def media_kind(content_type: str) -> str:
    return "video" if content_type.startswith("video/") else "photo"


class MediaService:
    """Stores images and videos in S3 when configured, Supabase Storage otherwise"""

    def __init__(self, supabase: Client, s3_storage: Optional[S3Storage] = None):
        self.supabase = supabase
        self.bucket = settings.supabase_storage_bucket
        self.s3_storage = s3_storage
        if self.s3_storage is None and settings.s3_enabled:
            try:
                self.s3_storage = S3Storage()
            except Exception as e:
                logger.warning(f"S3 storage initialization failed ({str(e)}), will use Supabase Storage")
                self.s3_storage = None

    def validate(self, content_type: str, size: int, allow_video: bool = False) -> None:
        if content_type in IMAGE_CONTENT_TYPES:
            limit_mb = settings.max_image_size_mb
        elif allow_video and content_type.startswith("video/"):
            limit_mb = settings.max_video_size_mb
        elif allow_video:
            raise HTTPException(
                status_code=400,
                detail="Invalid file type. Please upload a JPEG, PNG or GIF image or a video."
            )
        else:
            raise HTTPException(
                status_code=400,
                detail="Invalid file type. Please upload a JPEG, PNG, or GIF image."
            )
        if size > limit_mb * 1024 * 1024:
            raise HTTPException(
                status_code=400,
                detail=f"File size exceeds {limit_mb}MB. Please upload a smaller file."
            )

    def build_key(self, prefix: str, filename: Optional[str]) -> str:
        extension = os.path.splitext(filename or "")[1].lower()
        return f"{prefix.strip('/')}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{extension}"

    def store(self, content: bytes, key: str, content_type: str) -> str:
        """Upload bytes and return the public URL"""
        if self.s3_storage:
            try:
                return self.s3_storage.upload_file(content, key, content_type)
            except Exception as e:
                raise HTTPException(status_code=500, detail=f"Failed to upload to S3: {str(e)}")
        try:
            self.supabase.storage.from_(self.bucket).upload(
                key,
                content,
                {"content-type": content_type}
            )
            return self.supabase.storage.from_(self.bucket).get_public_url(key)
        except Exception as e:
            logger.error(f"Supabase Storage upload failed: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to upload to storage: {str(e)}")

    async def upload(self, file: UploadFile, prefix: str, allow_video: bool = False) -> StoredMedia:
        content = await file.read()
        content_type = file.content_type or "application/octet-stream"
        self.validate(content_type, len(content), allow_video=allow_video)
        key = self.build_key(prefix, file.filename)
        url = self.store(content, key, content_type)
        logger.info(f"Stored media {key} ({content_type}, {len(content)} bytes)")
        return StoredMedia(
            key=key,
            url=url,
            content_type=content_type,
            kind=media_kind(content_type),
            size=len(content)
        )

    def delete(self, key: str) -> bool:
        if self.s3_storage:
            return self.s3_storage.delete_file(key)
        try:
            self.supabase.storage.from_(self.bucket).remove([key])
            return True
        except Exception as e:
            logger.warning(f"Failed to delete from Supabase Storage ({key}): {e}")
            return False
