from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import jwt
import logging

from app.core.exceptions import PermissionDeniedError
from app.core.security import decode_access_token
from app.db.session import get_db
from app.models.user import User
from app.services.ai.base import AIServiceError, BaseAIService
from app.services.ai.providers import AIServiceFactory
from app.services.ai.trend_analyzer import AITrendAnalyzer
from app.services.storage import TrendRepository

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

INFLUENCER_ROLE = "influencer"


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to an active user"""
    if credentials is None:
        raise _credentials_error("Not authenticated")

    try:
        payload = decode_access_token(credentials.credentials)
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise _credentials_error()

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise _credentials_error()
    return user


def require_influencer(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != INFLUENCER_ROLE:
        raise PermissionDeniedError("Access denied")
    return current_user


def get_trend_repository(db: Session = Depends(get_db)) -> TrendRepository:
    return TrendRepository(db)


@lru_cache()
def get_text_service() -> Optional[BaseAIService]:
    """Shared text generation service built from settings, None when unconfigured"""
    try:
        return AIServiceFactory.create_text_service()
    except AIServiceError as e:
        logger.warning(f"AI text service unavailable: {e}")
        return None


def get_trend_analyzer(
    repository: TrendRepository = Depends(get_trend_repository),
    text_service: Optional[BaseAIService] = Depends(get_text_service)
) -> AITrendAnalyzer:
    return AITrendAnalyzer(repository, text_service)


def get_trend_reader(repository: TrendRepository = Depends(get_trend_repository)) -> AITrendAnalyzer:
    """Analyzer for cached reads; never calls the AI provider"""
    return AITrendAnalyzer(repository)
