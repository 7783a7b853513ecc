"""
Dependency для endpoint'ов: конфиг и сервисы, собранные из app.state.
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from subcatalog.config import Config
from subcatalog.core.auth import get_session_issuer
from subcatalog.core.database import get_db
from subcatalog.core.security import SessionIssuer
from subcatalog.services.credential_service import CredentialService
from subcatalog.services.metadata_service import MetadataService
from subcatalog.services.search_service import CatalogService
from subcatalog.services.upload_service import UploadService


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_credential_service(
    db: Session = Depends(get_db),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> CredentialService:
    return CredentialService(db, issuer)


def get_catalog_service(request: Request) -> CatalogService:
    return CatalogService(request.app.state.db)


def get_upload_service(db: Session = Depends(get_db)) -> UploadService:
    return UploadService(db)


def get_metadata_service(request: Request) -> MetadataService:
    return request.app.state.metadata_service
