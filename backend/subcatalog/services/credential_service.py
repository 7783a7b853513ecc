import logging
from typing import Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from subcatalog.core.errors import DuplicateIdentity, InvalidCredentials
from subcatalog.core.models import User
from subcatalog.core.security import SessionIssuer, dummy_verify, hash_password, verify_password
from subcatalog.schemas import UserResponse

logger = logging.getLogger(__name__)


def to_public_user(user: User) -> UserResponse:
    """Публичное представление пользователя (без хеша пароля)"""
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        created_at=user.created_at,
    )


class CredentialService:
    """Регистрация, вход и загрузка пользователей"""

    def __init__(self, db: Session, issuer: SessionIssuer):
        self.db = db
        self.issuer = issuer

    def register(self, username: str, email: str, password: str, full_name: Optional[str] = None) -> UserResponse:
        """
        Регистрация нового пользователя.

        :raises DuplicateIdentity: username или email уже заняты (field - что именно)
        """
        logger.info("🔄 Попытка регистрации: %s", username)

        # Одна проверка сразу на оба поля
        field = self._colliding_field(username, email)
        if field is not None:
            logger.warning("⚠️ Регистрация отклонена, занят %s: %s", field, username if field == "username" else email)
            raise DuplicateIdentity(field)

        new_user = User(
            username=username,
            email=email,
            hashed_password=hash_password(password),
            full_name=full_name or None,
        )
        self.db.add(new_user)
        try:
            self.db.commit()
        except IntegrityError:
            # Параллельная регистрация с теми же данными успела раньше
            self.db.rollback()
            field = self._colliding_field(username, email) or "username"
            logger.warning("⚠️ Гонка при регистрации, занят %s", field)
            raise DuplicateIdentity(field)
        self.db.refresh(new_user)

        logger.info("Пользователь зарегистрирован: %s (id=%s)", new_user.username, new_user.id)
        return to_public_user(new_user)

    def authenticate(self, identifier: str, password: str) -> Tuple[str, UserResponse]:
        """
        Вход по username или email.

        Неизвестный пользователь и неверный пароль дают одну и ту же ошибку.
        """
        logger.info("🔄 Попытка входа: %s", identifier)

        user = self._find_by_username_or_email(identifier, identifier)
        if user is None:
            dummy_verify()
            logger.warning("⚠️ Неудачная попытка входа: %s", identifier)
            raise InvalidCredentials()

        if not verify_password(password, user.hashed_password):
            logger.warning("⚠️ Неудачная попытка входа: %s", identifier)
            raise InvalidCredentials()

        token = self.issuer.mint({"sub": str(user.id), "username": user.username})
        logger.info("Пользователь вошёл: %s", user.username)
        return token, to_public_user(user)

    def fetch_by_id(self, user_id: int) -> Optional[UserResponse]:
        user = self.db.get(User, user_id)
        return to_public_user(user) if user else None

    def _colliding_field(self, username: str, email: str) -> Optional[str]:
        """Какое поле уже занято: username важнее email"""
        matches = self.db.query(User).filter(or_(User.username == username, User.email == email)).all()
        if not matches:
            return None
        if any(user.username == username for user in matches):
            return "username"
        return "email"

    def _find_by_username_or_email(self, username: str, email: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(or_(User.username == username, User.email == email))
            .order_by(User.id)
            .first()
        )
