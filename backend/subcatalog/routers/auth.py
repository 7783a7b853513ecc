from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response, status

from subcatalog.config import Config
from subcatalog.core.auth import TOKEN_COOKIE, require_auth
from subcatalog.core.errors import NotFound
from subcatalog.dependencies import get_config, get_credential_service
from subcatalog.schemas import AuthResponse, MessageResponse, SessionUser, UserLogin, UserRegister
from subcatalog.services.credential_service import CredentialService

router = APIRouter(prefix="/auth", tags=["Authentication"])

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserRegister, service: CredentialService = Depends(get_credential_service)):
    """Регистрация нового пользователя"""
    user = service.register(
        username=user_data.username,
        email=user_data.email,
        password=user_data.password,
        full_name=user_data.full_name,
    )
    return AuthResponse(message="Registration successful", user=user)


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    response: Response,
    service: CredentialService = Depends(get_credential_service),
    config: Config = Depends(get_config),
):
    """Вход пользователя. Токен кладём в HttpOnly cookie"""
    token, user = service.authenticate(credentials.username, credentials.password)

    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=config.is_production,
        samesite="strict",
        path="/",
    )
    return AuthResponse(message="Login successful", user=user)


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response, config: Config = Depends(get_config)):
    """Выход: перезаписываем cookie уже просроченной"""
    response.set_cookie(
        TOKEN_COOKIE,
        "",
        expires=EPOCH,
        httponly=True,
        secure=config.is_production,
        samesite="strict",
        path="/",
    )
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=AuthResponse)
def current_user(
    session_user: SessionUser = Depends(require_auth),
    service: CredentialService = Depends(get_credential_service),
):
    """Текущий пользователь по токену"""
    user = service.fetch_by_id(session_user.id)
    if user is None:
        raise NotFound("User not found")
    return AuthResponse(user=user)
