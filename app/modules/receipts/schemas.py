from pydantic import BaseModel, Field


class ReceiptBase64Upload(BaseModel):
    file_base64: str = Field(min_length=1)
    file_name: str = Field(min_length=1)


class ReceiptUploadResponse(BaseModel):
    path: str
    public_url: str
    file_name: str
    original_name: str
    size: int
    mime_type: str
