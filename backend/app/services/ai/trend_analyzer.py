"""
AI Trend Analysis Service

Predicts upcoming content trends for a creator by sending their profile,
recent content performance and platform market context to an LLM. When the
provider is rate limited or out of quota, predictions are generated locally
from the market context instead.
"""

import asyncio
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from app.core.exceptions import InsightsUnavailableError, TrendAnalysisError
from app.services.ai.base import AIServiceError, BaseAIService, RateLimitError
from app.services.ai.prompts import TREND_ANALYSIS_TEMPLATE, build_trend_analysis_prompt
from app.services.analytics.insights import SocialAccountSnapshot, project_volume, round_half_up
from app.services.analytics.trend_engine import utc_now
from app.services.storage import TrendRepository

logger = logging.getLogger(__name__)

ANALYSIS_TIMEFRAMES: Tuple[str, ...] = ("weekly", "monthly", "quarterly")

# Static platform context until a live trends feed is wired in
MARKET_INSIGHTS: Dict[str, Dict[str, List[str]]] = {
    "instagram": {
        "trending_formats": ["Reels", "Carousel posts", "Stories with polls"],
        "popular_categories": ["Lifestyle", "Fashion", "Food", "Travel", "Tech"],
        "peak_engagement_times": ["6-9 AM", "12-2 PM", "7-9 PM"],
        "trending_hashtags": ["#contentcreator", "#lifestyle", "#trending", "#viral"],
        "algorithmic_preferences": ["High engagement rate", "Quick saves", "Comments", "Shares"],
    },
    "tiktok": {
        "trending_formats": ["Short videos", "Duets", "Trends", "Challenges"],
        "popular_categories": ["Entertainment", "Dance", "Comedy", "Education", "Lifestyle"],
        "peak_engagement_times": ["6-10 AM", "7-9 PM"],
        "trending_hashtags": ["#fyp", "#trending", "#viral", "#challenge"],
        "algorithmic_preferences": ["Watch time", "Completion rate", "Engagement", "Shares"],
    },
    "youtube": {
        "trending_formats": ["Long-form videos", "Shorts", "Live streams", "Tutorials"],
        "popular_categories": ["Education", "Entertainment", "Gaming", "Lifestyle", "Tech"],
        "peak_engagement_times": ["12-3 PM", "7-10 PM"],
        "trending_hashtags": ["#youtube", "#tutorial", "#review", "#entertainment"],
        "algorithmic_preferences": ["Watch time", "Click-through rate", "Engagement", "Subscriptions"],
    },
}
DEFAULT_MARKET = "instagram"

# Cached rows do not store these, so reads fill them with constants
CACHED_HASHTAGS = ["#trending", "#contentcreator", "#growth"]
CACHED_POST_TIMES = ["9:00 AM", "1:00 PM", "7:00 PM"]
CACHED_TARGET_AUDIENCE = "Your current follower base"

DEFAULT_REASONING = "AI-generated prediction based on performance data"
DEFAULT_CONFIDENCE = 0.5

STORED_CURRENT_VOLUME = 1000
STORED_PEAK_DAYS = 30


@dataclass
class TrendPrediction:
    """AI generated trend prediction"""
    id: str
    platform: str
    trend: str
    confidence: float  # 0-1
    timeframe: str
    predicted_growth: float
    content_suggestions: List[str] = field(default_factory=list)
    hashtag_recommendations: List[str] = field(default_factory=list)
    best_post_times: List[str] = field(default_factory=list)
    target_audience: str = "General audience"
    reasoning: str = DEFAULT_REASONING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "platform": self.platform,
            "trend": self.trend,
            "confidence": self.confidence,
            "timeframe": self.timeframe,
            "predictedGrowth": self.predicted_growth,
            "contentSuggestions": list(self.content_suggestions),
            "hashtagRecommendations": list(self.hashtag_recommendations),
            "bestPostTimes": list(self.best_post_times),
            "targetAudience": self.target_audience,
            "reasoning": self.reasoning,
        }


@dataclass
class QuickInsights:
    top_trend: str
    confidence: float
    quick_tips: List[str]
    next_analysis: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topTrend": self.top_trend,
            "confidence": self.confidence,
            "quickTips": list(self.quick_tips),
            "nextAnalysis": self.next_analysis.isoformat(),
        }


@dataclass
class PersistenceReport:
    """Outcome of writing a batch of predictions"""
    stored: List[TrendPrediction] = field(default_factory=list)
    failed: List[Tuple[TrendPrediction, Exception]] = field(default_factory=list)

    @property
    def all_stored(self) -> bool:
        return not self.failed


@dataclass
class TrendAnalysisRun:
    predictions: List[TrendPrediction]
    persistence: PersistenceReport
    used_fallback: bool = False


@dataclass
class UserTrendData:
    """Creator data handed to the prompt builder"""
    profile: Dict[str, Any]
    content: List[Dict[str, Any]]
    milestones: List[Dict[str, Any]]
    collaborations: List[Dict[str, Any]]


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def get_market_context(platform: str) -> Dict[str, List[str]]:
    """Market context for a platform; unknown platforms get Instagram's"""
    return MARKET_INSIGHTS.get((platform or "").lower(), MARKET_INSIGHTS[DEFAULT_MARKET])


class AITrendAnalyzer:
    """Generates, stores and serves AI trend predictions"""

    def __init__(
        self,
        repository: TrendRepository,
        text_service: Optional[BaseAIService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.text_service = text_service
        self.clock = clock or utc_now

    async def analyze_trends(self, user_id: int, platform: str, timeframe: str) -> List[TrendPrediction]:
        """Run a full analysis and return the predictions"""
        run = await self.analyze_trends_with_report(user_id, platform, timeframe)
        return run.predictions

    async def analyze_trends_with_report(self, user_id: int, platform: str, timeframe: str) -> TrendAnalysisRun:
        """Run a full analysis and report which predictions were stored.

        Storage failures never fail the run; anything else is logged and
        raised as TrendAnalysisError.
        """
        try:
            user_data = await self.gather_user_data(user_id, platform)
            market_context = get_market_context(platform)

            used_fallback = False
            try:
                analysis = await self.generate_ai_analysis(user_data, market_context, platform, timeframe)
            except RateLimitError as e:
                logger.warning(f"AI provider unavailable for trend analysis ({e.message}), using fallback predictions")
                analysis = self.generate_fallback_analysis(user_data, market_context, platform)
                used_fallback = True

            predictions = self.process_predictions(analysis, platform, timeframe)
            persistence = await self.store_predictions(predictions, user_id)

            logger.info(
                f"Trend analysis for user {user_id} on {platform}: {len(predictions)} predictions, "
                f"{len(persistence.stored)} stored, {len(persistence.failed)} failed"
            )
            return TrendAnalysisRun(predictions=predictions, persistence=persistence, used_fallback=used_fallback)

        except Exception as e:
            logger.error(f"Trend analysis failed for user {user_id}: {e}", exc_info=True)
            raise TrendAnalysisError() from e

    async def gather_user_data(self, user_id: int, platform: str) -> UserTrendData:
        accounts, content, milestones, categories, collaborations = await asyncio.gather(
            self.repository.get_social_accounts(user_id),
            self.repository.get_portfolio_content(user_id, platform),
            self.repository.get_performance_milestones(user_id),
            self.repository.get_content_categories(user_id),
            self.repository.get_brand_collaborations(user_id),
        )

        account = next(
            (SocialAccountSnapshot.from_model(a) for a in accounts
             if (a.platform or "").lower() == (platform or "").lower()),
            None
        )

        profile = {
            "platform": platform,
            "followers": account.follower_count if account else 0,
            "engagement": account.engagement_rate if account else 0,
            "verified": account.verified if account else False,
            "categories": [c.category for c in categories],
        }

        content_summary = [
            {
                "type": row.content_type or "post",
                "engagement": _as_float(row.engagement_rate, 0.0),
                "reach": row.reach or 0,
                "impressions": row.impressions or 0,
                "published_at": _isoformat(row.published_at),
                "category": (row.categories or ["general"])[0],
            }
            for row in content
        ]

        milestone_summary = [
            {
                "type": m.milestone_type or "general",
                "value": m.threshold,
                "target": m.threshold,
                "progress": 100,
                "achieved_at": _isoformat(m.achieved_at),
            }
            for m in milestones
        ]

        collaboration_summary = [
            {
                "brand": c.brand_name,
                "type": c.campaign_type,
                "reach": c.total_reach,
                "engagement": c.total_engagement,
                "status": c.status,
            }
            for c in collaborations
        ]

        return UserTrendData(
            profile=profile,
            content=content_summary,
            milestones=milestone_summary,
            collaborations=collaboration_summary,
        )

    async def generate_ai_analysis(
        self,
        user_data: UserTrendData,
        market_context: Dict[str, List[str]],
        platform: str,
        timeframe: str,
    ) -> Dict[str, Any]:
        if self.text_service is None:
            raise AIServiceError("No text generation service configured")

        prompt = build_trend_analysis_prompt(
            user_data.profile, user_data.content, market_context, platform, timeframe
        )
        response = await self.text_service.generate(prompt, **TREND_ANALYSIS_TEMPLATE.generation_kwargs())

        analysis = json.loads(response.content or "{}")
        if not isinstance(analysis, dict):
            logger.warning(f"Unexpected trend analysis payload type: {type(analysis).__name__}")
            return {}
        return analysis

    def generate_fallback_analysis(
        self,
        user_data: UserTrendData,
        market_context: Dict[str, List[str]],
        platform: str,
    ) -> Dict[str, Any]:
        """Two predictions built from the market context alone"""
        platform = platform.lower()
        top_format = market_context["trending_formats"][0]
        niche = ", ".join(user_data.profile.get("categories") or []) or "your content niche"

        return {
            "predictions": [
                {
                    "trend": f"{top_format} Content",
                    "confidence": 0.75,
                    "predicted_growth": 20,
                    "reasoning": (
                        f"{top_format} continues to show strong performance on {platform}. "
                        "Based on current algorithm preferences and user engagement patterns."
                    ),
                    "content_suggestions": [
                        f"Create {top_format.lower()} showcasing your expertise",
                        f"Use trending audio/music in your {top_format.lower()}",
                        f"Collaborate with other creators in {top_format.lower()} format",
                    ],
                    "hashtag_recommendations": market_context["trending_hashtags"][:3],
                    "best_post_times": list(market_context["peak_engagement_times"]),
                    "target_audience": f"Your current {platform} audience interested in {niche}",
                },
                {
                    "trend": "Engagement-Focused Content",
                    "confidence": 0.70,
                    "predicted_growth": 15,
                    "reasoning": (
                        f"Content that drives meaningful engagement is consistently rewarded "
                        f"by {platform}'s algorithm."
                    ),
                    "content_suggestions": [
                        "Ask questions to encourage comments",
                        "Share behind-the-scenes content",
                        "Create polls and interactive content",
                    ],
                    "hashtag_recommendations": ["#engagement", "#community", "#interactive"],
                    "best_post_times": list(market_context["peak_engagement_times"]),
                    "target_audience": "Highly engaged followers",
                },
            ]
        }

    def process_predictions(self, analysis: Dict[str, Any], platform: str, timeframe: str) -> List[TrendPrediction]:
        """Normalize raw predictions; never returns an empty list"""
        millis = int(self.clock().timestamp() * 1000)
        predictions = []

        for raw in _as_list(analysis.get("predictions")):
            if not isinstance(raw, dict):
                continue
            # A missing or zero confidence falls back to the default
            confidence = _as_float(raw.get("confidence") or DEFAULT_CONFIDENCE, DEFAULT_CONFIDENCE)
            predictions.append(TrendPrediction(
                id=f"trend_{millis}_{uuid.uuid4().hex[:9]}",
                platform=platform,
                trend=raw.get("trend") or "Emerging Trend",
                confidence=min(max(confidence, 0.0), 1.0),
                timeframe=timeframe,
                predicted_growth=_as_float(raw.get("predicted_growth") or 0, 0.0),
                content_suggestions=_as_list(raw.get("content_suggestions")),
                hashtag_recommendations=_as_list(raw.get("hashtag_recommendations")),
                best_post_times=_as_list(raw.get("best_post_times")),
                target_audience=raw.get("target_audience") or "General audience",
                reasoning=raw.get("reasoning") or DEFAULT_REASONING,
            ))

        if not predictions:
            predictions.append(TrendPrediction(
                id=f"trend_{millis}_fallback",
                platform=platform,
                trend="Content Optimization",
                confidence=0.7,
                timeframe=timeframe,
                predicted_growth=15,
                content_suggestions=[
                    "Focus on high-engagement content formats",
                    "Increase posting consistency",
                    "Engage more with your audience",
                ],
                hashtag_recommendations=["#contentcreator", "#growth", "#engagement"],
                best_post_times=list(CACHED_POST_TIMES),
                target_audience=CACHED_TARGET_AUDIENCE,
                reasoning="Based on general best practices for content optimization",
            ))

        return predictions

    def prediction_record(self, prediction: TrendPrediction, user_id: int) -> Dict[str, Any]:
        """Column values for a stored prediction"""
        return {
            "user_id": user_id,
            "platform": prediction.platform,
            "trend_type": "topic",
            "keyword": prediction.trend,
            "confidence": prediction.confidence,
            "timeframe": prediction.timeframe,
            "current_volume": STORED_CURRENT_VOLUME,
            "predicted_volume": project_volume(STORED_CURRENT_VOLUME, prediction.predicted_growth),
            "growth_rate": prediction.predicted_growth,
            "content_suggestions": list(prediction.content_suggestions),
            "trend_score": round_half_up(prediction.confidence * 100),
            "peak_prediction": self.clock() + timedelta(days=STORED_PEAK_DAYS),
            "recommended_action": (
                prediction.content_suggestions[0] if prediction.content_suggestions
                else "Focus on content optimization"
            ),
        }

    async def store_predictions(self, predictions: List[TrendPrediction], user_id: int) -> PersistenceReport:
        results = await asyncio.gather(
            *(self.repository.create_trend_prediction(self.prediction_record(p, user_id)) for p in predictions),
            return_exceptions=True
        )

        report = PersistenceReport()
        for prediction, result in zip(predictions, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to store prediction '{prediction.trend}': {result}")
                report.failed.append((prediction, result))
            else:
                report.stored.append(prediction)
        return report

    async def get_cached_predictions(self, user_id: int, platform: Optional[str] = None) -> List[TrendPrediction]:
        """Stored predictions for a user.

        Hashtags, post times and audience are not persisted, so they come
        back as constants rather than the values originally generated.
        """
        rows = await self.repository.get_trend_predictions(user_id, platform)
        return [
            TrendPrediction(
                id=str(row.id),
                platform=row.platform,
                trend=row.keyword or "Content Optimization",
                confidence=_as_float(row.confidence if row.confidence is not None else DEFAULT_CONFIDENCE,
                                     DEFAULT_CONFIDENCE),
                timeframe=row.timeframe or "monthly",
                predicted_growth=_as_float(row.growth_rate or 0, 0.0),
                content_suggestions=_as_list(row.content_suggestions),
                hashtag_recommendations=list(CACHED_HASHTAGS),
                best_post_times=list(CACHED_POST_TIMES),
                target_audience=CACHED_TARGET_AUDIENCE,
                reasoning=row.recommended_action or DEFAULT_REASONING,
            )
            for row in rows
        ]

    async def get_quick_insights(self, user_id: int, platform: str) -> QuickInsights:
        try:
            predictions = await self.get_cached_predictions(user_id, platform)
        except Exception as e:
            logger.error(f"Failed to get quick insights for user {user_id}: {e}", exc_info=True)
            raise InsightsUnavailableError() from e

        now = self.clock()
        if predictions:
            # max() keeps the first of equally confident predictions
            top = max(predictions, key=lambda p: p.confidence)
            return QuickInsights(
                top_trend=top.trend,
                confidence=top.confidence,
                quick_tips=top.content_suggestions[:3],
                next_analysis=now + timedelta(days=7),
            )

        return QuickInsights(
            top_trend="Content Consistency",
            confidence=0.8,
            quick_tips=[
                "Post regularly to maintain audience engagement",
                "Use trending hashtags relevant to your niche",
                "Engage with your audience through comments and stories",
            ],
            next_analysis=now + timedelta(days=1),
        )
