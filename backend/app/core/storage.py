"""
Supabase Storage staging for inline images.

Decoded images are written once into a public bucket so the inference
provider can fetch them by URL. Objects are never read back or removed
here; bucket lifecycle rules own expiry.
"""

import time
import uuid
from typing import Callable, Optional

from supabase import Client

from app.core.config import Settings
from app.core.errors import StagingError
from app.core.logger import logger
from app.core.supabase_client import get_supabase


def generate_object_name(prefix: str, extension: str, now: Optional[float] = None) -> str:
    """Time-based object name under `prefix`, e.g. uploads/1700000000000-1a2b3c4d.png"""
    millis = int((now if now is not None else time.time()) * 1000)
    name = f"{millis}-{uuid.uuid4().hex[:8]}.{extension}"
    return f"{prefix}/{name}" if prefix else name


class SupabaseStorageUploader:
    """Stages image bytes in a public Supabase Storage bucket."""

    def __init__(
        self,
        settings: Settings,
        client_factory: Callable[[Settings], Client] = get_supabase,
    ):
        self.bucket = settings.staging_bucket
        self.prefix = settings.staging_prefix
        self._settings = settings
        self._client_factory = client_factory

    def _get_public_url(self, file_path: str) -> str:
        supabase = self._client_factory(self._settings)
        return supabase.storage.from_(self.bucket).get_public_url(file_path)

    def upload(self, data: bytes, content_type: str, filename: str) -> str:
        """
        Upload image bytes to the staging bucket.

        Args:
            data: Raw image bytes
            content_type: MIME type stored with the object
            filename: Suggested filename; only its extension is kept

        Returns:
            Public URL of the uploaded object

        Raises:
            StagingError: If the upload fails
        """
        extension = filename.rsplit(".", 1)[-1] if "." in filename else "png"
        file_path = generate_object_name(self.prefix, extension)
        supabase = self._client_factory(self._settings)

        try:
            supabase.storage.from_(self.bucket).upload(
                path=file_path,
                file=data,
                file_options={"content-type": content_type, "upsert": "false"},
            )
        except Exception as e:
            logger.error(f"Failed to upload file to {self.bucket}/{file_path}: {str(e)}")
            raise StagingError(f"Storage upload failed: {str(e)}") from e

        public_url = self._get_public_url(file_path)
        logger.info(f"Uploaded file to {self.bucket}/{file_path}")
        return public_url
