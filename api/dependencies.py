"""
API dependencies for dependency injection
"""

from typing import Generator, Optional
import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from adapters import identity_provider
from adapters.identity_provider import InvalidTokenError, TokenVerifier
from app.config import settings
from app.exceptions import UnauthorizedError
from domain.models import get_db_session
from domain.schemas.auth_schemas import AuthUser
from services.optimization_metrics import get_optimization_metrics
from services.optimization_service import get_optimization_client

logger = logging.getLogger("nutricoach.api.auth")

__all__ = [
    "get_db",
    "get_token_verifier",
    "get_current_user",
    "get_optional_user",
    "get_optimization_client",
    "get_optimization_metrics",
]


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    Usage:
        @router.get("/example")
        def example(db: Session = Depends(get_db)):
            # Use db session here
            pass
    """
    yield from get_db_session()


def get_token_verifier() -> TokenVerifier:
    """Token verifier used to authenticate requests"""
    return identity_provider.get_verifier()


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie"""
    auth_header = request.headers.get("Authorization")
    if auth_header:
        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return request.cookies.get(settings.auth_cookie_name) or None


def get_current_user(
    request: Request, verifier: TokenVerifier = Depends(get_token_verifier)
) -> AuthUser:
    """
    Authenticated identity of the caller.

    Raises:
        UnauthorizedError: no token, or the token does not verify (401)
    """
    token = extract_token(request)
    if not token:
        raise UnauthorizedError("Missing authorization token")
    return verifier.verify_token(token)


def get_optional_user(
    request: Request, verifier: TokenVerifier = Depends(get_token_verifier)
) -> Optional[AuthUser]:
    """Like get_current_user, but anonymous or invalid credentials yield None"""
    token = extract_token(request)
    if not token:
        return None
    try:
        return verifier.verify_token(token)
    except InvalidTokenError as e:
        logger.info(f"ignoring_invalid_token path={request.url.path}: {e}")
        return None
