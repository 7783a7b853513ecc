"""
Клиент TMDB: метаданные фильмов и сериалов по IMDb ID.

Без кэша и без повторов. Любая ошибка TMDB превращается в пустой результат,
наружу (кроме прокси) исключения не выходят.
"""
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from subcatalog.config import Config
from subcatalog.core.errors import UpstreamUnavailable, ValidationError

logger = logging.getLogger(__name__)

IMDB_PREFIX = "tt"
IMDB_ID_PATTERN = re.compile(r"^tt\d{6,9}$")
DETAILS_APPEND = "credits,videos,images"


def normalize_imdb_id(value: Any) -> Optional[str]:
    """
    Приводит IMDb ID к виду 'tt1234567'.

    '133093' -> 'tt133093', 'tt0133093' -> без изменений, пусто/None -> None.
    Если результат не похож на IMDb ID - только предупреждение.
    """
    if value is None:
        return None
    id_str = str(value).strip()
    if not id_str:
        return None

    if not id_str.startswith(IMDB_PREFIX):
        id_str = f"{IMDB_PREFIX}{id_str}"

    if not IMDB_ID_PATTERN.match(id_str):
        logger.warning("⚠️ IMDb ID %r не похож на ожидаемый формат", id_str)
    return id_str


def _first_result(results: Any) -> Optional[Dict[str, Any]]:
    # TMDB обещает список объектов, но проверяем форму ответа
    if not isinstance(results, list) or not results:
        return None
    first = results[0]
    return first if isinstance(first, dict) else None


class MetadataService:
    """Обёртка над TMDB API"""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.themoviedb.org/3",
        image_base_url: str = "https://image.tmdb.org/t/p",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.image_base_url = image_base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_config(cls, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None) -> "MetadataService":
        return cls(
            api_key=config.TMDB_API_KEY,
            base_url=config.TMDB_BASE_URL,
            image_base_url=config.TMDB_IMAGE_BASE_URL,
            timeout=config.TMDB_TIMEOUT,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET запрос к TMDB.

        :raises UpstreamUnavailable: нет ключа, сетевая ошибка, не-2xx или не JSON
        """
        if not self.api_key:
            raise UpstreamUnavailable("Server configuration error: TMDB API key not set")

        query = {key: value for key, value in (params or {}).items() if value is not None}
        query["api_key"] = self.api_key

        logger.debug("TMDB запрос: %s %s", endpoint, {k: v for k, v in query.items() if k != "api_key"})
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(f"/{endpoint}", params=query)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("TMDB ответил ошибкой %s на %s", e.response.status_code, endpoint)
            raise UpstreamUnavailable(detail=f"TMDB API error: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error("TMDB недоступен (%s): %s", endpoint, e)
            raise UpstreamUnavailable(detail=str(e))
        except ValueError as e:
            logger.error("TMDB вернул не JSON (%s): %s", endpoint, e)
            raise UpstreamUnavailable(detail="Invalid JSON from TMDB")

    async def proxy(self, endpoint: Optional[str], params: Optional[Dict[str, Any]] = None) -> Any:
        """Сырой ответ TMDB. Единственное место, где ошибка TMDB идёт наружу"""
        endpoint = (endpoint or "").strip().strip("/")
        if not endpoint:
            raise ValidationError("Endpoint parameter is required")
        if ".." in endpoint or "://" in endpoint:
            raise ValidationError("Invalid endpoint")

        params = {key: value for key, value in (params or {}).items() if key not in ("endpoint", "api_key")}
        return await self._get(endpoint, params)

    async def find_by_imdb_id(self, imdb_id: Any) -> Optional[Dict[str, Any]]:
        """
        Фильм или сериал по IMDb ID (с деталями).

        None - нет ID, ничего не нашли или TMDB недоступен.
        """
        formatted_id = normalize_imdb_id(imdb_id)
        if formatted_id is None:
            logger.info("IMDb ID не указан, в TMDB не идём")
            return None

        try:
            data = await self._get(f"find/{formatted_id}", {"external_source": "imdb_id"})
        except UpstreamUnavailable:
            return None

        if not isinstance(data, dict):
            return None

        movie = _first_result(data.get("movie_results"))
        if movie is not None:
            logger.info("TMDB: найден фильм для %s", formatted_id)
            return await self.get_movie_details(movie.get("id"))

        tv_show = _first_result(data.get("tv_results"))
        if tv_show is not None:
            logger.info("TMDB: найден сериал для %s", formatted_id)
            return await self.get_tv_details(tv_show.get("id"))

        logger.info("TMDB: ничего не найдено для %s", formatted_id)
        return None

    async def get_movie_details(self, tmdb_id: Any) -> Optional[Dict[str, Any]]:
        return await self._get_details("movie", tmdb_id)

    async def get_tv_details(self, tmdb_id: Any) -> Optional[Dict[str, Any]]:
        return await self._get_details("tv", tmdb_id)

    async def _get_details(self, media_type: str, tmdb_id: Any) -> Optional[Dict[str, Any]]:
        if tmdb_id is None:
            return None
        try:
            details = await self._get(f"{media_type}/{tmdb_id}", {"append_to_response": DETAILS_APPEND})
        except UpstreamUnavailable:
            return None
        if not isinstance(details, dict):
            return None
        return {**details, "media_type": media_type}

    async def search_media(self, query: str, media_type: str = "movie") -> List[Dict[str, Any]]:
        """Поиск фильмов (movie) или сериалов (tv) по названию"""
        if media_type not in ("movie", "tv"):
            media_type = "movie"
        if not query or not query.strip():
            return []
        try:
            data = await self._get(f"search/{media_type}", {"query": query.strip(), "include_adult": "false"})
        except UpstreamUnavailable:
            return []
        results = data.get("results") if isinstance(data, dict) else None
        logger.info("TMDB: найдено %d результатов по %r", len(results or []), query)
        return results or []

    async def latest_movies(self, page: int = 1, limit: int = 10) -> List[Dict[str, Any]]:
        """Свежие фильмы (не меньше 100 голосов), не больше limit штук"""
        try:
            data = await self._get(
                "discover/movie",
                {
                    "sort_by": "release_date.desc",
                    "include_adult": "false",
                    "include_video": "false",
                    "page": max(1, page),
                    "vote_count.gte": 100,
                },
            )
        except UpstreamUnavailable:
            return []
        results = data.get("results") if isinstance(data, dict) else None
        return (results or [])[: max(0, limit)]

    def image_url(self, path: Optional[str], size: str = "w500") -> Optional[str]:
        if not path:
            return None
        return f"{self.image_base_url}/{size}{path}"
