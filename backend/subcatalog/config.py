"""
Конфигурация бэкенда.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Читаются один раз при импорте (имя таблицы в модели, раунды bcrypt),
# поэтому задаются только через окружение
ENV_ONLY_SETTINGS = ("CATALOG_TABLE", "BCRYPT_ROUNDS")

# Корневая директория проекта
BASE_DIR = Path(__file__).parent.parent  # backend/

# Ключ для локальной разработки. В production запуск без SECRET_KEY запрещён.
DEV_FALLBACK_SECRET = "dev-placeholder-jwt-secret-unsafe-for-production-change-me"


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


class Config:
    """Настройки приложения, читаются из окружения (.env)"""

    def __init__(self, **overrides):
        # ============= ОБЩЕЕ =============
        self.ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # ============= DATA =============
        self.DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))
        self.LOGS_DIR = Path(os.getenv("LOGS_DIR", BASE_DIR / "logs"))
        self.UPLOADS_DIR = Path(os.getenv("UPLOADS_DIR", BASE_DIR / "uploads"))
        self.DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{self.DATA_DIR / 'app.db'}"
        # Таблица каталога принадлежит внешней системе, мы её только читаем
        self.CATALOG_TABLE = os.getenv("CATALOG_TABLE", "all_subs")
        self.MAX_UPLOAD_SIZE = _int_env("MAX_UPLOAD_SIZE", 10 * 1024 * 1024)  # 10 MB

        # ============= БЕЗОПАСНОСТЬ =============
        self.SECRET_KEY = os.getenv("SECRET_KEY")
        self.ALGORITHM = os.getenv("ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES = _int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)
        self.BCRYPT_ROUNDS = _int_env("BCRYPT_ROUNDS", 10)

        # ============= API =============
        self.API_HOST = os.getenv("API_HOST", "127.0.0.1")
        self.API_PORT = _int_env("API_PORT", 8000)
        self.CORS_ORIGINS = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]

        # ============= TMDB =============
        self.TMDB_API_KEY = os.getenv("TMDB_API_KEY")
        self.TMDB_BASE_URL = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")
        self.TMDB_IMAGE_BASE_URL = os.getenv("TMDB_IMAGE_BASE_URL", "https://image.tmdb.org/t/p")
        self.TMDB_TIMEOUT = float(os.getenv("TMDB_TIMEOUT", "10"))

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Неизвестный параметр конфигурации: {key}")
            if key in ENV_ONLY_SETTINGS:
                raise AttributeError(f"{key} задаётся только через переменную окружения")
            setattr(self, key, value)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    def validate(self) -> "Config":
        """
        Проверка конфигурации при старте.

        - В production без SECRET_KEY приложение не запускается
        - В остальных режимах используется dev-ключ и громкое предупреждение
        """
        if not self.SECRET_KEY:
            if self.is_production:
                raise RuntimeError("SECRET_KEY не задан: запуск в production невозможен")
            logger.warning(
                "⚠️ SECRET_KEY не задан! Используется dev-ключ, "
                "токены НЕ защищены. Не используйте этот режим в production!"
            )
            self.SECRET_KEY = DEV_FALLBACK_SECRET

        if not self.TMDB_API_KEY:
            logger.warning("⚠️ TMDB_API_KEY не задан: метаданные фильмов недоступны")

        for directory in (self.DATA_DIR, self.LOGS_DIR, self.UPLOADS_DIR):
            Path(directory).mkdir(parents=True, exist_ok=True)

        return self


config = Config()
