"""
Поиск по каталогу субтитров: фильтры, сортировка, пагинация.
"""
import asyncio
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import String, and_, asc, cast, desc, func, or_

from subcatalog.core.database import Database
from subcatalog.core.errors import NotFound
from subcatalog.core.models import Subtitle
from subcatalog.schemas import Pagination, SearchResponse, SubtitleResponse

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
MAX_OFFSET = 2 ** 63 - 1


class SortColumn(str, Enum):
    ID = "id"
    TITLE = "title"
    DATE = "date"
    AUTHOR = "author"
    LANG = "lang"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Единственное место, где имя сортировки превращается в колонку
SORT_COLUMNS = {
    SortColumn.ID: Subtitle.id,
    SortColumn.TITLE: Subtitle.title,
    SortColumn.DATE: Subtitle.date,
    SortColumn.AUTHOR: Subtitle.author_name,
    SortColumn.LANG: Subtitle.lang,
}

_SORT_ALIASES = {"author_name": SortColumn.AUTHOR}


@dataclass
class SearchParams:
    search: Optional[str] = None
    lang: Optional[str] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: SortColumn = SortColumn.DATE
    sort_order: SortOrder = SortOrder.DESC

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _to_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_sort_column(value: Optional[str]) -> SortColumn:
    """Всё, что не из списка разрешённых, превращается в date"""
    key = (value or "").strip().lower()
    if key in _SORT_ALIASES:
        return _SORT_ALIASES[key]
    try:
        return SortColumn(key)
    except ValueError:
        return SortColumn.DATE


def parse_sort_order(value: Optional[str]) -> SortOrder:
    try:
        return SortOrder((value or "").strip().lower())
    except ValueError:
        return SortOrder.DESC


def parse_search_params(
    search: Optional[str] = None,
    lang: Optional[str] = None,
    page: Any = None,
    limit: Any = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> SearchParams:
    """
    Нормализует параметры запроса.

    - page: не число или < 1 -> 1, сверху ограничен так, чтобы OFFSET влезал в int64
    - limit: не число или 0 -> 20, затем ограничение [1, 100]
    """
    page_size = _to_int(limit, DEFAULT_PAGE_SIZE) or DEFAULT_PAGE_SIZE
    page_size = max(1, min(MAX_PAGE_SIZE, page_size))

    # OFFSET должен влезать в int64, иначе драйвер БД падает
    page_number = max(1, _to_int(page, 1))
    page_number = min(page_number, MAX_OFFSET // page_size + 1)

    return SearchParams(
        search=_clean(search),
        lang=_clean(lang),
        page=page_number,
        limit=page_size,
        sort_by=parse_sort_column(sort_by),
        sort_order=parse_sort_order(sort_order),
    )


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_filters(params: SearchParams) -> List:
    """Условия WHERE. Пустой поиск и пустой язык - без условий"""
    filters = []

    if params.search:
        pattern = _like_pattern(params.search)
        filters.append(
            or_(
                Subtitle.title.ilike(pattern, escape="\\"),
                func.coalesce(cast(Subtitle.imdb, String), "").ilike(pattern, escape="\\"),
                Subtitle.author_name.ilike(pattern, escape="\\"),
                func.coalesce(Subtitle.releases, "").ilike(pattern, escape="\\"),
            )
        )

    if params.lang:
        filters.append(Subtitle.lang == params.lang)

    return filters


def build_order_by(params: SearchParams) -> List:
    direction = asc if params.sort_order == SortOrder.ASC else desc
    column = SORT_COLUMNS[params.sort_by]
    order_by = [direction(column)]
    # Стабильный порядок страниц при одинаковых значениях
    if params.sort_by != SortColumn.ID:
        order_by.append(direction(Subtitle.id))
    return order_by


class CatalogService:
    """Чтение каталога субтитров"""

    def __init__(self, database: Database):
        self.database = database

    async def search(self, params: SearchParams) -> SearchResponse:
        """
        Поиск с пагинацией.

        COUNT и выборка страницы независимы, поэтому выполняются параллельно
        (каждая в своей сессии).
        """
        logger.info(
            "Поиск: search=%r lang=%r page=%d limit=%d sort=%s %s",
            params.search, params.lang, params.page, params.limit,
            params.sort_by.value, params.sort_order.value,
        )
        filters = build_filters(params)

        total, rows = await asyncio.gather(
            run_in_threadpool(self._count, filters),
            run_in_threadpool(self._fetch_page, filters, params),
        )

        total_pages = math.ceil(total / params.limit) if total else 0
        pagination = Pagination(
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=total_pages,
            has_more=params.page < total_pages,
            has_prev=params.page > 1,
        )
        logger.debug("Найдено %d, страниц %d", total, total_pages)
        return SearchResponse(data=rows, pagination=pagination)

    def _count(self, filters: List) -> int:
        with self.database.session() as db:
            query = db.query(func.count(Subtitle.id))
            if filters:
                query = query.filter(and_(*filters))
            return int(query.scalar() or 0)

    def _fetch_page(self, filters: List, params: SearchParams) -> List[SubtitleResponse]:
        with self.database.session() as db:
            query = db.query(Subtitle)
            if filters:
                query = query.filter(and_(*filters))
            rows = query.order_by(*build_order_by(params)).limit(params.limit).offset(params.offset).all()
            return [SubtitleResponse.model_validate(row) for row in rows]

    def get_subtitle(self, subtitle_id: int) -> SubtitleResponse:
        with self.database.session() as db:
            subtitle = db.get(Subtitle, subtitle_id)
            if subtitle is None:
                raise NotFound("Subtitle not found")
            return SubtitleResponse.model_validate(subtitle)

    def list_languages(self) -> List[str]:
        """Все языки каталога, по алфавиту"""
        with self.database.session() as db:
            rows = (
                db.query(Subtitle.lang)
                .filter(Subtitle.lang.isnot(None))
                .distinct()
                .order_by(Subtitle.lang.asc())
                .all()
            )
            return [row.lang for row in rows]
