import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError

from subcatalog.config import Config
from subcatalog.core.auth import require_auth
from subcatalog.core.errors import ValidationError
from subcatalog.dependencies import get_catalog_service, get_config, get_metadata_service, get_upload_service
from subcatalog.schemas import (
    MediaLookupResponse,
    SearchResponse,
    SessionUser,
    SubtitleResponse,
    UploadResponse,
    UploadResultResponse,
)
from subcatalog.services.metadata_service import MetadataService, normalize_imdb_id
from subcatalog.services.search_service import CatalogService, parse_search_params
from subcatalog.services.upload_service import UploadMetadata, UploadService
from subcatalog.utils.upload_files import store_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Subtitles"])


@router.get("/subtitles", response_model=SearchResponse)
async def search_subtitles(
    search: Optional[str] = None,
    lang: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_order: Optional[str] = Query(default=None, alias="sortOrder"),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Поиск субтитров с фильтрами и пагинацией"""
    params = parse_search_params(search, lang, page, limit, sort_by, sort_order)
    return await catalog.search(params)


@router.get("/languages", response_model=List[str])
def list_languages(catalog: CatalogService = Depends(get_catalog_service)):
    """Языки для фильтра"""
    return catalog.list_languages()


@router.get("/subtitles/{subtitle_id}", response_model=SubtitleResponse)
def get_subtitle(subtitle_id: int, catalog: CatalogService = Depends(get_catalog_service)):
    subtitle = catalog.get_subtitle(subtitle_id)
    if subtitle.imdb:
        subtitle.imdb = normalize_imdb_id(subtitle.imdb)
    return subtitle


@router.get("/subtitles/{subtitle_id}/media", response_model=MediaLookupResponse)
async def get_subtitle_media(
    subtitle_id: int,
    catalog: CatalogService = Depends(get_catalog_service),
    metadata: MetadataService = Depends(get_metadata_service),
):
    """Метаданные фильма/сериала из TMDB для строки каталога"""
    subtitle = await run_in_threadpool(catalog.get_subtitle, subtitle_id)

    imdb_id = normalize_imdb_id(subtitle.imdb)
    if imdb_id is None:
        return MediaLookupResponse(status="no_identifier")

    media = await metadata.find_by_imdb_id(imdb_id)
    if not media:
        return MediaLookupResponse(imdb=imdb_id, status="not_found")
    return MediaLookupResponse(
        imdb=imdb_id,
        status="found",
        media=media,
        poster_url=metadata.image_url(media.get("poster_path")),
    )


@router.post("/subtitles/upload", response_model=UploadResultResponse, status_code=status.HTTP_201_CREATED)
def upload_subtitle(
    title: Optional[str] = Form(default=None),
    imdb: Optional[str] = Form(default=None),
    lang: Optional[str] = Form(default=None),
    author_name: Optional[str] = Form(default=None, alias="authorName"),
    comment: Optional[str] = Form(default=None),
    releases: Optional[str] = Form(default=None),
    subtitle: Optional[UploadFile] = File(default=None),
    user: SessionUser = Depends(require_auth),
    uploads: UploadService = Depends(get_upload_service),
    config: Config = Depends(get_config),
):
    """Загрузка архива с субтитрами (только zip/rar/7z, до 10MB)"""
    logger.info("📄 Загрузка субтитров от user_id=%s", user.id)

    title, imdb, lang = (value.strip() if value else "" for value in (title, imdb, lang))
    if not title or not imdb or not lang:
        raise ValidationError("Title, IMDb ID, and language are required")

    if subtitle is None or not subtitle.filename:
        raise ValidationError("Subtitle file is required")

    stored = store_upload(
        subtitle.file,
        subtitle.filename,
        subtitle.content_type,
        uploads_dir=Path(config.UPLOADS_DIR),
        max_size=config.MAX_UPLOAD_SIZE,
    )

    metadata = UploadMetadata(
        title=title,
        imdb=imdb,
        lang=lang,
        author_name=(author_name or "").strip(),
        comment=comment,
        releases=releases,
        file_path=str(stored.path),
        original_filename=stored.original_filename,
        file_size=stored.size,
    )
    try:
        upload = uploads.save(metadata, user.id)
    except SQLAlchemyError:
        # Строка не сохранилась - файл тоже не нужен
        stored.path.unlink(missing_ok=True)
        raise

    return UploadResultResponse(
        message="Subtitle uploaded successfully",
        upload=UploadResponse.model_validate(upload),
    )
