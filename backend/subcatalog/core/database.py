"""
Настройка подключения к базе данных.
"""
import logging

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)

# Базовый класс для моделей
Base = declarative_base()


class Database:
    """
    Подключение к БД: движок + фабрика сессий.

    Создаётся один раз при старте приложения (lifespan) и закрывается при остановке.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.is_sqlite = url.startswith("sqlite")

        if self.is_sqlite:
            self.engine = create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},  # Только для SQLite
            )
            # SQLite по умолчанию не проверяет внешние ключи (нужно для ON DELETE CASCADE)
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_engine(url, echo=echo, pool_pre_ping=True)

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self):
        """Создание таблиц (если их нет)"""
        # Модели должны быть импортированы, чтобы попасть в Base.metadata
        from subcatalog.core import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Таблицы проверены/созданы: %s", ", ".join(Base.metadata.tables))

    def drop_all(self):
        from subcatalog.core import models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def session(self):
        return self.SessionLocal()

    def dispose(self):
        self.engine.dispose()
        logger.info("Пул подключений к БД закрыт")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_db(request: Request):
    """
    Dependency для получения сессии БД в endpoint'ах.

    Использование:
        @router.post("/users")
        def create_user(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
