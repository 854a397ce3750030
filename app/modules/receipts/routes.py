from fastapi import APIRouter, Depends, File, UploadFile
from app.config import settings
from app.core.dependencies import get_current_user_id
from app.core.exceptions import ValidationError
from app.database.supabase_client import get_supabase
from app.modules.receipts.schemas import ReceiptBase64Upload, ReceiptUploadResponse
from app.modules.receipts.service import ReceiptService, check_upload_size, decode_base64_image
from supabase import Client

router = APIRouter(prefix="/receipts", tags=["receipts"])


def get_receipt_service(supabase: Client = Depends(get_supabase)) -> ReceiptService:
    return ReceiptService(supabase)


@router.post("/upload", response_model=ReceiptUploadResponse, status_code=201)
async def upload_receipt(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    service: ReceiptService = Depends(get_receipt_service)
):
    """Upload a receipt photo (JPEG, PNG or WebP, up to 10MB)"""
    if not file.filename:
        raise ValidationError("File name is required")
    if file.size is not None:
        check_upload_size(file.size)
    # Read at most one byte past the limit
    content = await file.read(settings.max_upload_bytes + 1)
    return service.upload_receipt(content, file.filename, user_id)


@router.post("/upload-base64", response_model=ReceiptUploadResponse, status_code=201)
async def upload_receipt_base64(
    upload: ReceiptBase64Upload,
    user_id: str = Depends(get_current_user_id),
    service: ReceiptService = Depends(get_receipt_service)
):
    """Upload a receipt sent as base64 (a data:image/...;base64, prefix is accepted)"""
    content = decode_base64_image(upload.file_base64)
    return service.upload_receipt(content, upload.file_name, user_id)
