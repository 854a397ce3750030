from supabase import Client
from app.config import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class ReceiptStorage:
    """Receipt images in a Supabase Storage bucket."""

    def __init__(self, supabase: Client, bucket: Optional[str] = None):
        self.supabase = supabase
        self.bucket_name = bucket or settings.receipts_bucket

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        """Upload file to the bucket and return its stored path"""
        try:
            response = self.supabase.storage.from_(self.bucket_name).upload(
                key,
                file_content,
                file_options={"content-type": content_type, "cache-control": "3600", "upsert": "false"},
            )
            return getattr(response, "path", None) or key
        except Exception as e:
            logger.error(f"Failed to upload file to bucket {self.bucket_name}: {str(e)}")
            raise

    def public_url(self, key: str) -> str:
        return self.supabase.storage.from_(self.bucket_name).get_public_url(key)

    def delete_file(self, key: str) -> bool:
        """Delete file from the bucket"""
        try:
            self.supabase.storage.from_(self.bucket_name).remove([key])
            return True
        except Exception as e:
            logger.error(f"Failed to delete file from bucket {self.bucket_name}: {str(e)}")
            return False
