"""
Pydantic модели запросов и ответов API.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator


# ============= AUTH =============

class UserRegister(BaseModel):
    """
    Схема для регистрации пользователя.

    POST /auth/register
    {
        "username": "testuser",
        "email": "user@example.com",
        "password": "password123",
        "fullName": "Test User"
    }
    """
    username: str = Field(
        ...,
        pattern=r"^[a-zA-Z0-9_]{3,20}$",
        description="3-20 символов: буквы, цифры, подчёркивание",
    )
    email: str = Field(..., max_length=100, description="Email пользователя")
    password: str = Field(..., min_length=8, max_length=72, description="Пароль (минимум 8 символов)")
    full_name: Optional[str] = Field(default=None, alias="fullName", max_length=100)

    class Config:
        populate_by_name = True

    @field_validator("email")
    @classmethod
    def email_is_valid(cls, value: str) -> str:
        # Проверяем формат, но сохраняем email как его ввели (регистр важен)
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(str(e))
        return value


class UserLogin(BaseModel):
    """
    Схема для входа. В username можно передать и email.
    """
    username: str = Field(..., min_length=1, description="Имя пользователя или email")
    password: str = Field(..., min_length=1, description="Пароль")


class UserResponse(BaseModel):
    """
    Данные пользователя, которые можно отдавать наружу.

    ⚠️ ВАЖНО: НЕ возвращаем пароль! (даже хешированный)
    """
    id: int
    username: str
    email: str
    full_name: Optional[str] = Field(default=None, alias="fullName")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class AuthResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: UserResponse


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class SessionUser(BaseModel):
    """Кто сделал запрос - то, что зашито в токен"""
    id: int
    username: str


# ============= SUBTITLES =============

class SubtitleResponse(BaseModel):
    """Строка каталога субтитров"""
    id: int
    title: Optional[str] = None
    imdb: Optional[str] = None
    lang: Optional[str] = None
    author_name: Optional[str] = None
    comment: Optional[str] = None
    releases: Optional[str] = None
    date: Optional[datetime] = None
    link: Optional[str] = None

    class Config:
        from_attributes = True

    @field_validator("imdb", mode="before")
    @classmethod
    def imdb_as_text(cls, value):
        # Во внешнем каталоге imdb бывает числом
        return None if value is None else str(value)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    has_more: bool = Field(alias="hasMore")
    has_prev: bool = Field(alias="hasPrev")

    class Config:
        populate_by_name = True


class SearchResponse(BaseModel):
    data: List[SubtitleResponse]
    pagination: Pagination


class MediaLookupResponse(BaseModel):
    """
    Метаданные TMDB для строки каталога.

    status: found | not_found | no_identifier
    Ошибка TMDB и "ничего не нашли" для клиента выглядят одинаково (not_found).
    """
    imdb: Optional[str] = None
    status: str
    media: Optional[Dict[str, Any]] = None
    # Полная ссылка на постер (w500), если у TMDB он есть
    poster_url: Optional[str] = None


# ============= UPLOADS =============

class UploadResponse(BaseModel):
    """Загрузка пользователя (путь на диске наружу не отдаём)"""
    id: int
    user_id: int
    title: str
    imdb: Optional[str] = None
    lang: str
    author_name: Optional[str] = None
    comment: Optional[str] = None
    releases: Optional[str] = None
    original_filename: str
    file_size: int
    download_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UploadDetailResponse(UploadResponse):
    # True, если запрос сделал владелец (кнопка "удалить" на фронте)
    is_owner: bool = False


class UploadResultResponse(BaseModel):
    success: bool = True
    message: str
    upload: UploadResponse
