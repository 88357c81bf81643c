"""
Trend Insight Data Types

Input records consumed by the trend engine and the insight/analysis shapes it
produces. Everything here is plain data: no I/O, no scoring rules beyond the
clamping and volume projection every insight has to satisfy.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class InsightType(str, Enum):
    """Dimension an insight is about"""
    HASHTAG = "hashtag"
    TOPIC = "topic"
    CONTENT_TYPE = "content_type"
    POSTING_TIME = "posting_time"
    SEASONAL = "seasonal"


class Timeframe(str, Enum):
    """Horizon of an insight"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so they compare with aware ones"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class ContentRecord:
    """One published piece of content, as seen by the trend engine"""
    platform: str = ""
    categories: List[str] = field(default_factory=list)
    likes: int = 0
    comments: int = 0
    views: int = 0
    shares: int = 0
    published_at: Optional[datetime] = None
    title: str = ""
    description: str = ""
    is_top_performer: bool = False
    engagement_rate: float = 0.0

    def __post_init__(self):
        # Missing or negative counters count as zero
        for name in ("likes", "comments", "views", "shares"):
            object.__setattr__(self, name, max(0, int(getattr(self, name) or 0)))
        object.__setattr__(self, "categories", list(self.categories or []))
        object.__setattr__(self, "platform", (self.platform or "").lower())
        object.__setattr__(self, "title", self.title or "")
        object.__setattr__(self, "description", self.description or "")
        object.__setattr__(self, "engagement_rate", float(self.engagement_rate or 0.0))

    @property
    def engagement(self) -> int:
        return self.likes + self.comments

    def mentions(self, keyword: str) -> bool:
        """Case-insensitive match of keyword in title or description"""
        needle = keyword.lower()
        return needle in self.title.lower() or needle in self.description.lower()

    @classmethod
    def from_model(cls, row: Any) -> "ContentRecord":
        return cls(
            platform=row.platform,
            categories=row.categories,
            likes=row.likes,
            comments=row.comments,
            views=row.views,
            shares=row.shares,
            published_at=row.published_at,
            title=row.title,
            description=row.description,
            is_top_performer=bool(row.is_top_performer),
            engagement_rate=row.engagement_rate,
        )


@dataclass(frozen=True)
class SocialAccountSnapshot:
    """Point-in-time state of a connected account"""
    platform: str
    follower_count: int = 0
    engagement_rate: float = 0.0
    verified: bool = False

    @classmethod
    def from_model(cls, row: Any) -> "SocialAccountSnapshot":
        try:
            engagement_rate = float(row.engagement_rate or 0)
        except (TypeError, ValueError):
            engagement_rate = 0.0
        return cls(
            platform=(row.platform or "").lower(),
            follower_count=row.follower_count or 0,
            engagement_rate=engagement_rate,
            verified=bool(getattr(row, "verified", False)),
        )


@dataclass
class TrendInsight:
    """A scored, explainable prediction about one content dimension"""
    type: InsightType
    keyword: str
    current_volume: int
    predicted_volume: int
    growth_rate: float
    trend_score: int  # 0-100
    confidence: float  # 0-1
    timeframe: Timeframe
    peak_prediction: datetime
    recommended_action: str
    content_suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "keyword": self.keyword,
            "currentVolume": self.current_volume,
            "predictedVolume": self.predicted_volume,
            "growthRate": self.growth_rate,
            "trendScore": self.trend_score,
            "confidence": self.confidence,
            "timeframe": self.timeframe.value,
            "peakPrediction": self.peak_prediction.isoformat(),
            "recommendedAction": self.recommended_action,
            "contentSuggestions": list(self.content_suggestions),
        }

    def to_record_fields(self) -> Dict[str, Any]:
        """Column values for the trend_predictions table"""
        return {
            "trend_type": self.type.value,
            "keyword": self.keyword,
            "current_volume": self.current_volume,
            "predicted_volume": self.predicted_volume,
            "growth_rate": self.growth_rate,
            "trend_score": self.trend_score,
            "confidence": self.confidence,
            "timeframe": self.timeframe.value,
            "peak_prediction": self.peak_prediction,
            "recommended_action": self.recommended_action,
            "content_suggestions": list(self.content_suggestions),
        }


def round_half_up(value: float) -> int:
    """Nearest integer with .5 always rounded up"""
    return int(math.floor(value + 0.5))


def project_volume(current_volume: int, growth_rate: float) -> int:
    return round_half_up(current_volume * (1 + growth_rate / 100))


def build_insight(
    insight_type: InsightType,
    keyword: str,
    current_volume: float,
    growth_rate: float,
    trend_score: float,
    confidence: float,
    timeframe: Timeframe,
    peak_prediction: datetime,
    recommended_action: str,
    content_suggestions: List[str],
) -> TrendInsight:
    """Create an insight with clamped score/confidence and a projected volume.

    ``predicted_volume`` is always derived from the rounded ``current_volume``
    so that ``predicted == round_half_up(current * (1 + growth / 100))`` holds for
    every insight regardless of where the figures came from.
    """
    current = round_half_up(current_volume)
    return TrendInsight(
        type=insight_type,
        keyword=keyword,
        current_volume=current,
        predicted_volume=project_volume(current, growth_rate),
        growth_rate=growth_rate,
        trend_score=min(100, max(0, round_half_up(trend_score))),
        confidence=min(1.0, max(0.0, float(confidence))),
        timeframe=timeframe,
        peak_prediction=peak_prediction,
        recommended_action=recommended_action,
        content_suggestions=list(content_suggestions)[:5],
    )


@dataclass
class ContentTypePerformance:
    type: str
    avg_engagement: float
    trend_direction: TrendDirection

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "avgEngagement": self.avg_engagement,
            "trendDirection": self.trend_direction.value,
        }


@dataclass
class TrendAnalysisResult:
    """Dashboard summary derived from a creator's content"""
    platform: str
    analysis_date: datetime
    top_hashtags: List[str]
    emerging_topics: List[str]
    optimal_post_times: List[str]
    content_type_performance: List[ContentTypePerformance]
    audience_growth_trends: List[Dict[str, Any]]  # {"period", "growth"}
    engagement_trends: List[Dict[str, Any]]       # {"period", "rate"}
    competitor_insights: List[Dict[str, Any]]     # {"insight", "actionable"}
    seasonal_patterns: List[Dict[str, Any]]       # {"pattern", "likelihood"}
    predicted_viral: List[Dict[str, Any]]         # {"content", "viralProbability"}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "analysisDate": self.analysis_date.isoformat(),
            "topHashtags": list(self.top_hashtags),
            "emergingTopics": list(self.emerging_topics),
            "optimalPostTimes": list(self.optimal_post_times),
            "contentTypePerformance": [c.to_dict() for c in self.content_type_performance],
            "audienceGrowthTrends": list(self.audience_growth_trends),
            "engagementTrends": list(self.engagement_trends),
            "competitorInsights": list(self.competitor_insights),
            "seasonalPatterns": list(self.seasonal_patterns),
            "predictedViral": list(self.predicted_viral),
        }

    def to_record_fields(self) -> Dict[str, List[str]]:
        """Flatten list values to "a:b:c" strings for the analytics table"""
        return {
            "top_hashtags": list(self.top_hashtags),
            "emerging_topics": list(self.emerging_topics),
            "optimal_post_times": list(self.optimal_post_times),
            "content_type_performance": [
                f"{c.type}:{c.avg_engagement}:{c.trend_direction.value}"
                for c in self.content_type_performance
            ],
            "audience_growth_trends": [
                f"{t['period']}:{t['growth']}" for t in self.audience_growth_trends
            ],
            "engagement_trends": [
                f"{t['period']}:{t['rate']}" for t in self.engagement_trends
            ],
            "competitor_insights": [
                f"{c['insight']}:{str(c['actionable']).lower()}" for c in self.competitor_insights
            ],
            "seasonal_patterns": [
                f"{s['pattern']}:{s['likelihood']}" for s in self.seasonal_patterns
            ],
            "predicted_viral": [
                f"{p['content']}:{p['viralProbability']}" for p in self.predicted_viral
            ],
        }
