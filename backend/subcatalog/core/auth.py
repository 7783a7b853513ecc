"""
Dependency для проверки сессии в endpoint'ах.

Токен берётся из cookie "token", если его нет - из заголовка Authorization: Bearer.
"""
import logging
from typing import Optional

from fastapi import Depends, Request

from subcatalog.core.errors import Unauthorized
from subcatalog.core.security import SessionIssuer
from subcatalog.schemas import SessionUser

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"


def get_session_issuer(request: Request) -> SessionIssuer:
    return request.app.state.session_issuer


def extract_token(request: Request) -> Optional[str]:
    """Cookie важнее заголовка"""
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None
    return None


def _to_session_user(claims: Optional[dict]) -> Optional[SessionUser]:
    if not claims:
        return None
    try:
        return SessionUser(id=int(claims["sub"]), username=claims["username"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Токен без обязательных полей: %s", sorted(claims))
        return None


def require_auth(request: Request, issuer: SessionIssuer = Depends(get_session_issuer)) -> SessionUser:
    """Пускает только с валидным токеном, иначе 401"""
    token = extract_token(request)
    if not token:
        raise Unauthorized("Unauthorized: No token provided")

    user = _to_session_user(issuer.verify(token))
    if user is None:
        raise Unauthorized("Unauthorized: Invalid token")

    request.state.user = user
    return user


def optional_auth(request: Request, issuer: SessionIssuer = Depends(get_session_issuer)) -> Optional[SessionUser]:
    """Никогда не отказывает: нет токена или он битый - просто None"""
    user = _to_session_user(issuer.verify(extract_token(request)))
    request.state.user = user
    return user
