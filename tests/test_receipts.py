import base64
import io
from unittest.mock import MagicMock

import pytest
from fastapi import UploadFile

from app.config import settings
from app.core.exceptions import ValidationError
from app.modules.receipts.routes import upload_receipt
from app.modules.receipts.service import ReceiptService, decode_base64_image, mime_type_for, sanitize_file_name
from app.modules.receipts.storage import ReceiptStorage
from tests.conftest import auth_headers

UPLOAD_URL = "/api/v1/receipts/upload"
UPLOAD_BASE64_URL = "/api/v1/receipts/upload-base64"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_sanitize_file_name():
    assert sanitize_file_name("recibo almoço (1).jpg") == "recibo_almo_o_1_.jpg"
    assert sanitize_file_name("__nota__fiscal__.png") == "nota_fiscal_.png"


def test_mime_type_for():
    assert mime_type_for("a.JPG") == "image/jpeg"
    assert mime_type_for("a.webp") == "image/webp"
    with pytest.raises(ValidationError):
        mime_type_for("a.pdf")
    with pytest.raises(ValidationError):
        mime_type_for("no-extension")


def test_decode_base64_image():
    encoded = base64.b64encode(PNG_BYTES).decode()
    assert decode_base64_image(encoded) == PNG_BYTES
    assert decode_base64_image(f"data:image/png;base64,{encoded}") == PNG_BYTES
    with pytest.raises(ValidationError):
        decode_base64_image("not base64!!")


def test_upload_requires_authentication(client):
    response = client.post(UPLOAD_URL, files={"file": ("recibo.png", PNG_BYTES, "image/png")})
    assert response.status_code == 401


def test_upload_multipart(client, fake_db, token):
    response = client.post(
        UPLOAD_URL,
        files={"file": ("recibo almoco.png", PNG_BYTES, "image/png")},
        headers=auth_headers(token),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["path"].startswith("uploads/")
    assert body["path"].endswith("-recibo_almoco.png")
    assert body["original_name"] == "recibo almoco.png"
    assert body["size"] == len(PNG_BYTES)
    assert body["mime_type"] == "image/png"
    assert body["public_url"].endswith(body["path"])

    stored = fake_db.storage.objects[settings.receipts_bucket][body["path"]]
    assert stored["content"] == PNG_BYTES
    assert stored["options"]["content-type"] == "image/png"


def test_upload_base64(client, token):
    encoded = base64.b64encode(PNG_BYTES).decode()
    response = client.post(
        UPLOAD_BASE64_URL,
        json={"file_base64": f"data:image/png;base64,{encoded}", "file_name": "nota.png"},
        headers=auth_headers(token),
    )
    assert response.status_code == 201
    assert response.json()["size"] == len(PNG_BYTES)


def test_upload_rejects_bad_files(client, token, monkeypatch):
    headers = auth_headers(token)

    response = client.post(UPLOAD_URL, files={"file": ("nota.pdf", b"%PDF", "application/pdf")}, headers=headers)
    assert response.status_code == 400

    response = client.post(UPLOAD_URL, files={"file": ("vazio.png", b"", "image/png")}, headers=headers)
    assert response.status_code == 400

    monkeypatch.setattr(settings, "max_upload_bytes", 16)
    response = client.post(UPLOAD_URL, files={"file": ("grande.png", PNG_BYTES, "image/png")}, headers=headers)
    assert response.status_code == 400
    assert "too large" in response.json()["message"]


def test_oversized_upload_rejected_before_reading(client, token, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_bytes", 16)
    upload = MagicMock()
    monkeypatch.setattr(ReceiptService, "upload_receipt", upload)

    response = client.post(
        UPLOAD_URL, files={"file": ("grande.png", PNG_BYTES, "image/png")}, headers=auth_headers(token)
    )

    assert response.status_code == 400
    assert "too large" in response.json()["message"]
    upload.assert_not_called()


@pytest.mark.asyncio
async def test_upload_reads_at_most_one_byte_past_limit(monkeypatch):
    monkeypatch.setattr(settings, "max_upload_bytes", 16)
    service = MagicMock()
    file = UploadFile(file=io.BytesIO(b"x" * 1024), filename="grande.png")

    await upload_receipt(file=file, user_id="u1", service=service)

    content, file_name, user_id = service.upload_receipt.call_args.args
    assert len(content) == 17
    assert file_name == "grande.png"


def test_storage_delete(fake_db):
    storage = ReceiptStorage(fake_db)
    storage.upload_file(PNG_BYTES, "uploads/x.png", "image/png")

    assert storage.delete_file("uploads/x.png")
    assert "uploads/x.png" not in fake_db.storage.objects[settings.receipts_bucket]
