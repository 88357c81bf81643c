from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
import logging

from app.models import (
    SocialAccount,
    ContentCategory,
    PerformanceMilestone,
    PortfolioContent,
    BrandCollaboration,
    TrendPredictionRecord,
    TrendAnalyticsRecord,
)

logger = logging.getLogger(__name__)


class TrendRepository:
    """Database access for the trend engine and AI trend analyzer.

    Methods are coroutines so callers can gather them; the session itself is
    synchronous.
    """

    def __init__(self, db: Session):
        self.db = db

    async def get_social_accounts(self, user_id: int) -> List[SocialAccount]:
        return self.db.query(SocialAccount).filter(SocialAccount.user_id == user_id).all()

    async def get_portfolio_content(self, user_id: int, platform: Optional[str] = None) -> List[PortfolioContent]:
        """Content for a user, newest first, optionally for one platform"""
        query = self.db.query(PortfolioContent).filter(PortfolioContent.user_id == user_id)
        if platform:
            query = query.filter(PortfolioContent.platform == platform.lower())
        return query.order_by(PortfolioContent.published_at.desc()).all()

    async def get_performance_milestones(self, user_id: int) -> List[PerformanceMilestone]:
        return (
            self.db.query(PerformanceMilestone)
            .filter(PerformanceMilestone.user_id == user_id)
            .order_by(PerformanceMilestone.achieved_at.desc())
            .all()
        )

    async def get_content_categories(self, user_id: int) -> List[ContentCategory]:
        return self.db.query(ContentCategory).filter(ContentCategory.user_id == user_id).all()

    async def get_brand_collaborations(self, user_id: int, status: Optional[str] = None) -> List[BrandCollaboration]:
        query = self.db.query(BrandCollaboration).filter(BrandCollaboration.user_id == user_id)
        if status:
            query = query.filter(BrandCollaboration.status == status)
        return query.all()

    async def create_trend_prediction(self, data: Dict[str, Any]) -> TrendPredictionRecord:
        record = TrendPredictionRecord(**data)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except Exception as e:
            logger.error(f"Error storing trend prediction '{data.get('keyword')}': {e}")
            self.db.rollback()
            raise
        return record

    async def get_trend_predictions(self, user_id: int, platform: Optional[str] = None) -> List[TrendPredictionRecord]:
        """Active predictions for a user, newest first"""
        query = self.db.query(TrendPredictionRecord).filter(
            TrendPredictionRecord.user_id == user_id,
            TrendPredictionRecord.is_active.is_(True)
        )
        if platform:
            query = query.filter(TrendPredictionRecord.platform == platform)
        return query.order_by(TrendPredictionRecord.created_at.desc(), TrendPredictionRecord.id.desc()).all()

    async def create_trend_analytics(self, data: Dict[str, Any]) -> TrendAnalyticsRecord:
        record = TrendAnalyticsRecord(**data)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except Exception as e:
            logger.error(f"Error storing trend analytics for user {data.get('user_id')}: {e}")
            self.db.rollback()
            raise
        return record
