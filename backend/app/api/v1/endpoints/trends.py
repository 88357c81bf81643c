from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
import logging

from app.api.deps import (
    get_current_user, require_influencer, get_trend_repository,
    get_trend_analyzer, get_trend_reader
)
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.rate_limiting import limiter
from app.models.user import User
from app.schemas.trends import (
    TrendAnalysisRequest, TrendAnalysisResponse, PredictionsResponse,
    QuickInsightsResponse, TrendInsightsResponse, TrendAnalyticsResponse
)
from app.services.ai.trend_analyzer import AITrendAnalyzer, ANALYSIS_TIMEFRAMES
from app.services.analytics.insights import ContentRecord, SocialAccountSnapshot
from app.services.analytics.trend_engine import get_trend_engine, utc_now
from app.services.storage import TrendRepository

logger = logging.getLogger(__name__)

router = APIRouter()

ALL_PLATFORMS = "all"


def _normalize_platform(platform: Optional[str]) -> Optional[str]:
    return platform.strip().lower() if platform and platform.strip() else None


async def _load_creator_data(repository: TrendRepository, user_id: int, platform: Optional[str]):
    content_rows = await repository.get_portfolio_content(user_id, platform)
    account_rows = await repository.get_social_accounts(user_id)
    return (
        [ContentRecord.from_model(row) for row in content_rows],
        [SocialAccountSnapshot.from_model(row) for row in account_rows],
    )


@router.get("/insights", response_model=TrendInsightsResponse)
async def get_trend_insights(
    platform: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    repository: TrendRepository = Depends(get_trend_repository)
):
    """
    Heuristic trend insights from the user's own content
    """
    platform = _normalize_platform(platform)
    content, accounts = await _load_creator_data(repository, current_user.id, platform)

    if not content:
        return TrendInsightsResponse(
            insights=[],
            message="Import social media data to get trend predictions"
        )

    insights = get_trend_engine().generate_trend_predictions(content, accounts, platform or ALL_PLATFORMS)

    for insight in insights[:settings.TREND_INSIGHTS_PERSISTED]:
        await repository.create_trend_prediction({
            "user_id": current_user.id,
            "platform": platform or ALL_PLATFORMS,
            **insight.to_record_fields()
        })

    return TrendInsightsResponse(
        insights=[insight.to_dict() for insight in insights],
        dataSource={
            "contentAnalyzed": len(content),
            "platformsConnected": len(accounts),
            "generatedAt": utc_now().isoformat()
        }
    )


@router.get("/analytics", response_model=TrendAnalyticsResponse)
async def get_trend_analytics(
    platform: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    repository: TrendRepository = Depends(get_trend_repository)
):
    """
    Trend analysis dashboard for the user's content
    """
    platform = _normalize_platform(platform)
    content, accounts = await _load_creator_data(repository, current_user.id, platform)

    if not content:
        return TrendAnalyticsResponse(
            analytics=None,
            message="Import social media data to get trend analytics"
        )

    analysis = get_trend_engine().generate_trend_analysis(content, accounts, platform or ALL_PLATFORMS)

    await repository.create_trend_analytics({
        "user_id": current_user.id,
        "platform": platform or ALL_PLATFORMS,
        "analysis_date": analysis.analysis_date,
        **analysis.to_record_fields()
    })

    return TrendAnalyticsResponse(
        analytics=analysis.to_dict(),
        dataSource={
            "contentAnalyzed": len(content),
            "platformsConnected": len(accounts),
            "analysisDate": analysis.analysis_date.isoformat()
        }
    )


@router.post("/analyze", response_model=TrendAnalysisResponse)
@limiter.limit(settings.RATE_LIMIT_TREND_ANALYSIS)
async def analyze_trends(
    request: Request,
    analysis_request: TrendAnalysisRequest,
    current_user: User = Depends(require_influencer),
    analyzer: AITrendAnalyzer = Depends(get_trend_analyzer)
):
    """
    Run an AI trend analysis for one platform
    """
    if not analysis_request.platform or analysis_request.timeframe not in ANALYSIS_TIMEFRAMES:
        raise ValidationError("Valid platform and timeframe are required.")

    run = await analyzer.analyze_trends_with_report(
        current_user.id, analysis_request.platform, analysis_request.timeframe
    )

    if run.persistence.failed:
        logger.warning(
            f"{len(run.persistence.failed)} of {len(run.predictions)} predictions "
            f"were not stored for user {current_user.id}"
        )

    return TrendAnalysisResponse(
        predictions=[p.to_dict() for p in run.predictions],
        generatedAt=utc_now(),
        platform=analysis_request.platform,
        timeframe=analysis_request.timeframe,
        usedFallback=run.used_fallback,
        storedCount=len(run.persistence.stored)
    )


@router.get("/predictions", response_model=PredictionsResponse)
async def get_cached_predictions(
    platform: Optional[str] = Query(None),
    current_user: User = Depends(require_influencer),
    analyzer: AITrendAnalyzer = Depends(get_trend_reader)
):
    """
    Previously stored trend predictions
    """
    predictions = await analyzer.get_cached_predictions(current_user.id, _normalize_platform(platform))
    return PredictionsResponse(
        predictions=[p.to_dict() for p in predictions],
        count=len(predictions)
    )


@router.get("/quick-insights/{platform}", response_model=QuickInsightsResponse)
async def get_quick_insights(
    platform: str,
    current_user: User = Depends(require_influencer),
    analyzer: AITrendAnalyzer = Depends(get_trend_reader)
):
    """
    Top stored prediction for a platform, or general tips when there is none
    """
    platform = _normalize_platform(platform)
    insights = await analyzer.get_quick_insights(current_user.id, platform)
    return QuickInsightsResponse(insights=insights.to_dict(), platform=platform)
