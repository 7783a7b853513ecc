"""
Subtitle Catalog API - главный файл приложения.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from subcatalog.config import Config, config as default_config
from subcatalog.core.database import Database
from subcatalog.core.errors import register_exception_handlers
from subcatalog.core.logging_config import setup_logging
from subcatalog.core.security import SessionIssuer
from subcatalog.routers import auth, media, subtitles, uploads
from subcatalog.services.metadata_service import MetadataService

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(config: Optional[Config] = None, metadata_service: Optional[MetadataService] = None) -> FastAPI:
    """
    Сборка приложения.

    Конфиг проверяется сразу: в production без SECRET_KEY приложение не создаётся.
    """
    config = config or default_config

    # ===== НАСТРОЙКА ЛОГИРОВАНИЯ =====
    setup_logging(config)
    config.validate()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Код ДО yield - выполняется при старте (startup).
        Код ПОСЛЕ yield - выполняется при остановке (shutdown).
        """
        # ===== STARTUP =====
        logger.info("Subtitle Catalog API запускается (%s)...", config.ENVIRONMENT)

        database = Database(config.DATABASE_URL)
        database.create_all()
        app.state.db = database
        logger.info("База данных: %s", database.engine.url.render_as_string(hide_password=True))

        logger.info("Документация: http://%s:%s/docs", config.API_HOST, config.API_PORT)
        logger.info("API готов к работе!")

        yield  # Приложение работает

        # ===== SHUTDOWN =====
        logger.info("Остановка приложения...")
        database.dispose()
        logger.info("Приложение остановлено")

    app = FastAPI(
        title="Subtitle Catalog API",
        description="Search subtitles, enrich them with TMDB metadata and upload your own",
        version=VERSION,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.session_issuer = SessionIssuer(
        secret_key=config.SECRET_KEY,
        algorithm=config.ALGORITHM,
        expire_minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
    app.state.metadata_service = metadata_service or MetadataService.from_config(config)

    # ============= CORS =============
    # Cookie с токеном => нужны конкретные origins, не "*"
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, include_detail=config.is_development)

    app.include_router(auth.router)
    app.include_router(subtitles.router)
    app.include_router(uploads.router)
    app.include_router(media.router)

    # ============= HEALTH CHECK =============

    @app.get("/", tags=["Health"])
    async def root():
        """Проверка что API работает"""
        return {
            "message": "Subtitle Catalog API",
            "status": "healthy",
            "version": VERSION,
            "docs": "/docs",
        }

    @app.get("/health", tags=["Health"])
    async def health():
        """Проверка состояния сервисов"""
        return {
            "status": "ok",
            "services": {
                "database": getattr(app.state, "db", None) is not None,
                "tmdb": app.state.metadata_service.is_configured,
            },
        }

    return app
