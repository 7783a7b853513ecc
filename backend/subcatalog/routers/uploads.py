from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from subcatalog.core.auth import optional_auth, require_auth
from subcatalog.core.errors import NotFound
from subcatalog.dependencies import get_upload_service
from subcatalog.schemas import SessionUser, UploadDetailResponse, UploadResponse, UploadResultResponse
from subcatalog.services.upload_service import UploadService

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.get("/mine", response_model=List[UploadResponse])
def my_uploads(user: SessionUser = Depends(require_auth), uploads: UploadService = Depends(get_upload_service)):
    """Загрузки текущего пользователя, новые первыми"""
    return [UploadResponse.model_validate(upload) for upload in uploads.list_by_owner(user.id)]


@router.get("/{upload_id}", response_model=UploadDetailResponse)
def get_upload(
    upload_id: int,
    user: Optional[SessionUser] = Depends(optional_auth),
    uploads: UploadService = Depends(get_upload_service),
):
    upload = uploads.get_by_id(upload_id)
    if upload is None:
        raise NotFound("Upload not found")
    detail = UploadDetailResponse.model_validate(upload)
    detail.is_owner = user is not None and user.id == upload.user_id
    return detail


@router.delete("/{upload_id}", response_model=UploadResultResponse)
def delete_upload(
    upload_id: int,
    user: SessionUser = Depends(require_auth),
    uploads: UploadService = Depends(get_upload_service),
):
    """Удалить может только владелец"""
    deleted = uploads.delete(upload_id, user.id)
    return UploadResultResponse(message="Upload deleted", upload=deleted)


@router.get("/{upload_id}/download")
def download_upload(upload_id: int, uploads: UploadService = Depends(get_upload_service)):
    """Скачивание архива, счётчик скачиваний +1"""
    upload = uploads.get_by_id(upload_id)
    if upload is None:
        raise NotFound("Upload not found")

    file_path = Path(upload.file_path)
    if not file_path.is_file():
        raise NotFound("File missing on server")

    upload = uploads.increment_download_count(upload_id)
    if upload is None:
        raise NotFound("Upload not found")

    return FileResponse(file_path, filename=upload.original_filename)
