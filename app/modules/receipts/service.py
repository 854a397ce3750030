from supabase import Client
from app.config import settings
from app.core.exceptions import ValidationError
from app.modules.receipts.schemas import ReceiptUploadResponse
from app.modules.receipts.storage import ReceiptStorage
import base64
import binascii
import logging
import re
import uuid

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-z]+;base64,")


def sanitize_file_name(file_name: str) -> str:
    """Keep letters, digits, dots and dashes; collapse and trim underscores"""
    name = re.sub(r"[^a-zA-Z0-9.-]", "_", file_name)
    name = re.sub(r"_{2,}", "_", name)
    return name.strip("_")


def mime_type_for(file_name: str) -> str:
    extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    mime_type = MIME_TYPES.get(extension)
    if not mime_type:
        raise ValidationError("Invalid file type. Only JPEG, PNG and WebP are allowed")
    return mime_type


def decode_base64_image(data: str) -> bytes:
    try:
        return base64.b64decode(_DATA_URL_PREFIX.sub("", data.strip()), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid base64 data")


def check_upload_size(size: int) -> None:
    if size > settings.max_upload_bytes:
        raise ValidationError(
            f"File too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)}MB"
        )


class ReceiptService:
    def __init__(self, supabase: Client):
        self.storage = ReceiptStorage(supabase)

    def upload_receipt(self, content: bytes, file_name: str, user_id: str) -> ReceiptUploadResponse:
        """Validate and store a receipt image under uploads/<uuid>-<name>"""
        mime_type = mime_type_for(file_name)
        if not content:
            raise ValidationError("File is empty")
        check_upload_size(len(content))

        unique_name = f"{uuid.uuid4()}-{sanitize_file_name(file_name)}"
        key = f"uploads/{unique_name}"
        path = self.storage.upload_file(content, key, mime_type)
        logger.info(f"Receipt uploaded by user {user_id}: {path} ({len(content)} bytes)")

        return ReceiptUploadResponse(
            path=path,
            public_url=self.storage.public_url(key),
            file_name=unique_name,
            original_name=file_name,
            size=len(content),
            mime_type=mime_type,
        )
