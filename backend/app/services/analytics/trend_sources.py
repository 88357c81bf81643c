"""
Trend Sources

Providers of topic and seasonal insights that are not derived from a
creator's own content. The shipped implementations are static tables; a live
trends feed can replace them without touching the merge and rank logic in
the trend engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from app.services.analytics.insights import (
    ContentRecord,
    InsightType,
    Timeframe,
    TrendInsight,
    build_insight,
)


class TrendSource(ABC):
    """Source of externally known trends"""

    @abstractmethod
    def insights(
        self,
        content: Sequence[ContentRecord],
        platform: str,
        now: datetime,
    ) -> List[TrendInsight]:
        """Return insights for the given creator content and platform"""
        pass


@dataclass(frozen=True)
class TopicTrend:
    keyword: str
    current_volume: int
    growth_rate: float
    trend_score: int
    timeframe: Timeframe
    peak_in_days: int
    recommended_action: str
    content_suggestions: Tuple[str, ...]


DEFAULT_TOPICS: Tuple[TopicTrend, ...] = (
    TopicTrend(
        keyword="sustainability",
        current_volume=50000,
        growth_rate=50,
        trend_score=85,
        timeframe=Timeframe.MONTHLY,
        peak_in_days=15,
        recommended_action="Create content around eco-friendly practices and sustainable lifestyle",
        content_suggestions=(
            "Sustainable living tips",
            "Eco-friendly product reviews",
            "Green lifestyle challenges",
        ),
    ),
    TopicTrend(
        keyword="mental health",
        current_volume=120000,
        growth_rate=25,
        trend_score=90,
        timeframe=Timeframe.WEEKLY,
        peak_in_days=7,
        recommended_action="Share authentic mental health awareness content",
        content_suggestions=(
            "Self-care routines",
            "Mental health resources",
            "Personal wellness journeys",
        ),
    ),
)


class StaticTopicSource(TrendSource):
    """Industry topics from a fixed table.

    Only the confidence depends on the creator: 0.8 when some of their content
    already mentions the topic, 0.6 otherwise. The platform is ignored.
    """

    MATCHED_CONFIDENCE = 0.8
    UNMATCHED_CONFIDENCE = 0.6

    def __init__(self, topics: Optional[Sequence[TopicTrend]] = None):
        self.topics = tuple(topics if topics is not None else DEFAULT_TOPICS)

    def insights(self, content, platform, now):
        results = []
        for topic in self.topics:
            matched = any(item.mentions(topic.keyword) for item in content)
            results.append(build_insight(
                InsightType.TOPIC,
                topic.keyword,
                current_volume=topic.current_volume,
                growth_rate=topic.growth_rate,
                trend_score=topic.trend_score,
                confidence=self.MATCHED_CONFIDENCE if matched else self.UNMATCHED_CONFIDENCE,
                timeframe=topic.timeframe,
                peak_prediction=now + timedelta(days=topic.peak_in_days),
                recommended_action=topic.recommended_action,
                content_suggestions=list(topic.content_suggestions),
            ))
        return results


@dataclass(frozen=True)
class SeasonalTrend:
    keyword: str
    months: Tuple[int, ...]  # calendar months, 1-12
    base_volume: int
    seasonal_multiplier: float
    trend_score: int
    peak_month: int
    peak_day: int
    action: str
    suggestions: Tuple[str, ...]


DEFAULT_SEASONS: Tuple[SeasonalTrend, ...] = (
    SeasonalTrend(
        keyword="spring cleaning",
        months=(3, 4, 5),
        base_volume=30000,
        seasonal_multiplier=2.5,
        trend_score=70,
        peak_month=4,
        peak_day=15,
        action="Create organization and cleaning content",
        suggestions=("Home organization tips", "Decluttering challenges", "Spring refresh routines"),
    ),
    SeasonalTrend(
        keyword="summer activities",
        months=(6, 7, 8),
        base_volume=80000,
        seasonal_multiplier=1.8,
        trend_score=75,
        peak_month=7,
        peak_day=1,
        action="Focus on outdoor and summer-themed content",
        suggestions=("Beach activities", "Summer recipes", "Vacation planning tips"),
    ),
    SeasonalTrend(
        keyword="back to school",
        months=(9, 10, 11),
        base_volume=60000,
        seasonal_multiplier=2.2,
        trend_score=80,
        peak_month=9,
        peak_day=1,
        action="Create educational and productivity content",
        suggestions=("Study tips", "School supplies hauls", "Productivity routines"),
    ),
    SeasonalTrend(
        keyword="holiday content",
        months=(12, 1, 2),
        base_volume=100000,
        seasonal_multiplier=3.0,
        trend_score=90,
        peak_month=12,
        peak_day=15,
        action="Create holiday and year-end content",
        suggestions=("Holiday recipes", "Gift guides", "Year in review content"),
    ),
)


class StaticSeasonalSource(TrendSource):
    """Seasonal themes picked by calendar month.

    Peak dates are placed in the current year, so a January run reports a
    December peak that has already passed. Confidence is fixed at 0.75.
    """

    CONFIDENCE = 0.75

    def __init__(self, seasons: Optional[Sequence[SeasonalTrend]] = None):
        self.seasons = tuple(seasons if seasons is not None else DEFAULT_SEASONS)

    def insights(self, content, platform, now):
        results = []
        for season in self.seasons:
            if now.month not in season.months:
                continue
            results.append(build_insight(
                InsightType.SEASONAL,
                season.keyword,
                current_volume=season.base_volume,
                growth_rate=round((season.seasonal_multiplier - 1) * 100, 2),
                trend_score=season.trend_score,
                confidence=self.CONFIDENCE,
                timeframe=Timeframe.MONTHLY,
                peak_prediction=now.replace(
                    month=season.peak_month, day=season.peak_day,
                    hour=0, minute=0, second=0, microsecond=0,
                ),
                recommended_action=season.action,
                content_suggestions=list(season.suggestions),
            ))
        return results
