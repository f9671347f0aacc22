"""FastAPI dependencies: storage, services and the authenticated user."""
import logging
from pathlib import Path
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session, select

from fitcompare.auth.identity import (
    EmailNotVerifiedError,
    IdentityVerifier,
    InvalidTokenError,
)
from fitcompare.config import get_settings
from fitcompare.db.engine import get_session
from fitcompare.models.dataset import User
from fitcompare.services.comparison import ComparisonService
from fitcompare.storage.local import LocalObjectStorage

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_storage() -> LocalObjectStorage:
    return LocalObjectStorage(Path(get_settings().storage_dir))


def get_comparison_service(
    storage: LocalObjectStorage = Depends(get_storage),
) -> ComparisonService:
    return ComparisonService(storage=storage)


def get_identity_verifier() -> IdentityVerifier:
    settings = get_settings()
    if not settings.auth_jwt_key:
        raise HTTPException(status_code=503, detail="Authentication is not configured")
    return IdentityVerifier(
        key=settings.auth_jwt_key,
        algorithm=settings.auth_jwt_algorithm,
        audience=settings.auth_audience,
        issuer=settings.auth_issuer,
        require_verified_email=settings.require_verified_email,
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    session: Session = Depends(get_session),
) -> User:
    """
    Resolve the bearer token to a User row, creating it on first sight.

    401 for a missing or invalid token, 403 for an unverified e-mail.
    """
    unauthorized = HTTPException(
        status_code=401,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized
    try:
        identity = verifier.verify(credentials.credentials)
    except InvalidTokenError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise unauthorized
    except EmailNotVerifiedError:
        raise HTTPException(status_code=403, detail="E-mail address not verified")

    user = session.exec(
        select(User).where(User.external_id == identity.subject)
    ).first()
    if user is None:
        user = User(external_id=identity.subject, email=identity.email)
        session.add(user)
        session.commit()
        session.refresh(user)
        logger.info("Created user %s for subject %s", user.id, identity.subject)
    elif identity.email and user.email != identity.email:
        user.email = identity.email
        session.add(user)
        session.commit()
        session.refresh(user)
    return user
