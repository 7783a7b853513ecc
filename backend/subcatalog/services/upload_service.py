import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from sqlalchemy.orm import Session

from subcatalog.core.errors import NotFound, Unauthorized
from subcatalog.core.models import Upload
from subcatalog.schemas import UploadResponse

logger = logging.getLogger(__name__)


@dataclass
class UploadMetadata:
    """Что сохраняем о загруженном файле"""
    title: str
    imdb: Optional[str]
    lang: str
    file_path: str
    original_filename: str
    file_size: int
    author_name: str = ""
    comment: Optional[str] = None
    releases: Optional[str] = None


class UploadService:
    """Учёт загрузок пользователей. Строка в БД - источник истины, файл вторичен"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, metadata: UploadMetadata, owner_id: int) -> Upload:
        upload = Upload(
            user_id=owner_id,
            title=metadata.title,
            imdb=metadata.imdb,
            lang=metadata.lang,
            author_name=metadata.author_name or "",
            comment=metadata.comment or None,
            releases=metadata.releases or None,
            file_path=metadata.file_path,
            original_filename=metadata.original_filename,
            file_size=metadata.file_size,
        )
        self.db.add(upload)
        self.db.commit()
        self.db.refresh(upload)

        logger.info("Загрузка сохранена: id=%s user_id=%s title=%r", upload.id, owner_id, upload.title)
        return upload

    def list_by_owner(self, owner_id: int) -> List[Upload]:
        """Загрузки пользователя, новые первыми"""
        return (
            self.db.query(Upload)
            .filter(Upload.user_id == owner_id)
            .order_by(Upload.created_at.desc(), Upload.id.desc())
            .all()
        )

    def get_by_id(self, upload_id: int) -> Optional[Upload]:
        return self.db.get(Upload, upload_id)

    def delete(self, upload_id: int, requester_id: int) -> UploadResponse:
        """
        Удаление загрузки владельцем.

        1. Удаляем строку (транзакция)
        2. Пытаемся удалить файл - ошибка только логируется
        """
        upload = self.get_by_id(upload_id)
        if upload is None:
            raise NotFound("Upload not found")

        if upload.user_id != requester_id:
            logger.warning("⚠️ user_id=%s пытался удалить чужую загрузку id=%s", requester_id, upload_id)
            raise Unauthorized("Unauthorized: You do not own this upload")

        deleted = UploadResponse.model_validate(upload)
        file_path = upload.file_path

        rows = (
            self.db.query(Upload)
            .filter(Upload.id == upload_id, Upload.user_id == requester_id)
            .delete(synchronize_session=False)
        )
        if rows == 0:
            # Кто-то удалил раньше нас
            self.db.rollback()
            raise NotFound("Upload not found")
        self.db.commit()
        logger.info("Загрузка удалена: id=%s", upload_id)

        self._remove_file(file_path)
        return deleted

    def increment_download_count(self, upload_id: int) -> Optional[Upload]:
        """Публичный счётчик скачиваний, без проверки прав"""
        rows = (
            self.db.query(Upload)
            .filter(Upload.id == upload_id)
            .update({Upload.download_count: Upload.download_count + 1}, synchronize_session=False)
        )
        self.db.commit()
        if rows == 0:
            return None
        return self.get_by_id(upload_id)

    @staticmethod
    def _remove_file(file_path: str):
        try:
            Path(file_path).unlink()
            logger.debug("Файл удалён: %s", file_path)
        except OSError as e:
            logger.warning("⚠️ Не удалось удалить файл загрузки %s: %s", file_path, e)
