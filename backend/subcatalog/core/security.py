"""
Функции безопасности: хеширование паролей, выпуск и проверка JWT токенов.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from subcatalog.config import config

logger = logging.getLogger(__name__)

# Контекст для хеширования паролей (bcrypt, соль генерируется автоматически)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    """Хеширует пароль"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Проверяет пароль"""
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify():
    """Холостая проверка пароля, чтобы по времени ответа нельзя было понять, есть ли пользователь"""
    pwd_context.dummy_verify()


class SessionIssuer:
    """
    Выпуск и проверка сессионных токенов (JWT).

    Токены нигде не хранятся: всё, что нужно, зашито в сам токен.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24 * 7):
        if not secret_key:
            raise ValueError("secret_key обязателен")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.default_ttl = timedelta(minutes=expire_minutes)

    def mint(self, claims: dict, ttl: Optional[timedelta] = None) -> str:
        """
        Создаёт JWT токен.

        Args:
            claims: Данные для вшивания в токен ({"sub": user_id, "username": ...})
            ttl: Время жизни токена (по умолчанию 7 дней)
        """
        to_encode = claims.copy()
        expire = datetime.now(timezone.utc) + (ttl if ttl is not None else self.default_ttl)
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> Optional[dict]:
        """Декодирует JWT токен. None - если токен битый, чужой или просрочен"""
        if not token:
            return None
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug("Токен отклонён: %s", e)
            return None
