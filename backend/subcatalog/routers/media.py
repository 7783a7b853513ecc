from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from subcatalog.dependencies import get_metadata_service
from subcatalog.services.metadata_service import MetadataService

router = APIRouter(tags=["Media"])


@router.get("/media/search", response_model=List[Dict[str, Any]])
async def search_media(
    query: str = Query(default=""),
    media_type: str = Query(default="movie", alias="type"),
    metadata: MetadataService = Depends(get_metadata_service),
):
    """Поиск фильмов/сериалов в TMDB по названию"""
    return await metadata.search_media(query, media_type)


@router.get("/media/latest", response_model=List[Dict[str, Any]])
async def latest_movies(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=20),
    metadata: MetadataService = Depends(get_metadata_service),
):
    return await metadata.latest_movies(page, limit)


@router.get("/metadata-proxy")
async def metadata_proxy(
    request: Request,
    endpoint: Optional[str] = None,
    metadata: MetadataService = Depends(get_metadata_service),
):
    """Прокси к TMDB: ключ API остаётся на сервере"""
    data = await metadata.proxy(endpoint, dict(request.query_params))
    return JSONResponse(content=data)
