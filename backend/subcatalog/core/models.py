# Модели БД: пользователи, каталог субтитров, загрузки пользователей

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from subcatalog.config import config
from subcatalog.core.database import Base


class User(Base):
    """Аккаунт пользователя"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(100), nullable=False)   # bcrypt, наружу не отдаём
    full_name = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Один пользователь -> много загрузок
    uploads = relationship(
        "Upload",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Subtitle(Base):
    """
    Каталог субтитров.

    Таблица наполняется внешней системой, API её только читает.
    imdb может быть без префикса 'tt' или вообще пустым.
    """
    __tablename__ = config.CATALOG_TABLE

    id = Column(Integer, primary_key=True)
    title = Column(String(255), index=True)
    imdb = Column(String(20))
    lang = Column(String(50), index=True)
    author_name = Column(String(100))
    comment = Column(Text)
    releases = Column(Text)
    date = Column(DateTime, index=True)
    link = Column(String(500))


class Upload(Base):
    """Субтитры, загруженные пользователем"""
    __tablename__ = "subtitle_uploads"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    imdb = Column(String(20))
    lang = Column(String(50), nullable=False)
    author_name = Column(String(100), nullable=False, default="")
    comment = Column(Text)
    releases = Column(Text)
    file_path = Column(String(255), nullable=False)          # Путь на диске
    original_filename = Column(String(255), nullable=False)  # Имя, с которым загрузили
    file_size = Column(Integer, nullable=False)              # Размер в байтах
    download_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="uploads")
