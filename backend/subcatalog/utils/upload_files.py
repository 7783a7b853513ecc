import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from subcatalog.core.errors import ValidationError

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSIONS = {".zip", ".rar", ".7z"}
ARCHIVE_MIME_MARKERS = ("zip", "rar", "7z")
CHUNK_SIZE = 1024 * 1024


@dataclass
class StoredFile:
    path: Path
    original_filename: str
    size: int


def is_archive(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Архив по расширению или по MIME-типу"""
    extension = Path(filename or "").suffix.lower()
    if extension in ARCHIVE_EXTENSIONS:
        return True
    content_type = (content_type or "").lower()
    return any(marker in content_type for marker in ARCHIVE_MIME_MARKERS)


def store_upload(
    source: BinaryIO,
    filename: Optional[str],
    content_type: Optional[str],
    uploads_dir: Path,
    max_size: int,
) -> StoredFile:
    """
    Сохраняет загруженный файл в uploads_dir.

    Файл сначала пишется во временный, затем проверяется (архив, размер).
    Отклонённый файл удаляется, принятый переименовывается в <uuid><расширение>.

    :raises ValidationError: не архив или больше max_size
    """
    uploads_dir = Path(uploads_dir)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    original_filename = Path(filename or "").name
    temp_path = uploads_dir / f"upload_{uuid.uuid4().hex}.part"

    try:
        size = 0
        with open(temp_path, "wb") as buffer:
            while True:
                chunk = source.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_size:
                    logger.warning("⚠️ Файл слишком большой: %s", original_filename)
                    raise ValidationError(f"File is too large (max {max_size // (1024 * 1024)}MB)")
                buffer.write(chunk)

        if not is_archive(original_filename, content_type):
            logger.warning("⚠️ Неверный формат файла: %s (%s)", original_filename, content_type)
            raise ValidationError("Only archive files (zip, rar, 7z) are accepted")

        final_path = uploads_dir / f"{uuid.uuid4().hex}{Path(original_filename).suffix.lower()}"
        temp_path.replace(final_path)
        logger.info("Файл сохранён: %s -> %s (%d байт)", original_filename, final_path.name, size)
        return StoredFile(path=final_path, original_filename=original_filename, size=size)

    finally:
        if temp_path.exists():
            temp_path.unlink()
            logger.debug("Временный файл удалён: %s", temp_path)
