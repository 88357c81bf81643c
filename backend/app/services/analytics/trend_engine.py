"""
Trend Insight Engine

Heuristic scoring that turns a creator's content-performance history into
ranked trend insights (hashtags, content formats, posting times, topics and
seasons) and a dashboard summary. Every call recomputes from its inputs; the
engine holds no state between calls.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from app.core.config import settings
from app.services.analytics.insights import (
    ContentRecord,
    ContentTypePerformance,
    InsightType,
    SocialAccountSnapshot,
    Timeframe,
    TrendAnalysisResult,
    TrendDirection,
    TrendInsight,
    as_utc,
    build_insight,
    round_half_up,
)
from app.services.analytics.trend_sources import (
    StaticSeasonalSource,
    StaticTopicSource,
    TrendSource,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_hashtag(category: str) -> str:
    """'Skin Care' -> '#skincare'"""
    return "#" + "".join(category.lower().split())


CONTENT_TYPES: Tuple[str, ...] = ("video", "image", "carousel", "story", "reel")

CONTENT_TYPE_GROWTH: Dict[str, float] = {
    "video": 12,
    "reel": 25,
    "story": 8,
    "image": 5,
    "carousel": 15,
}
DEFAULT_CONTENT_TYPE_GROWTH = 10

# Platforms whose content is assumed to be of a given format
PLATFORM_CONTENT_TYPES: Dict[str, str] = {
    "youtube": "video",
    "instagram": "reel",
}

CONTENT_TYPE_SUGGESTIONS: Dict[str, List[str]] = {
    "video": ["Create educational tutorials", "Share day-in-the-life content", "Make product reviews"],
    "reel": ["Quick tips and hacks", "Trending audio content", "Before/after transformations"],
    "image": ["High-quality product shots", "Inspirational quotes", "Behind-the-scenes photos"],
    "carousel": ["Step-by-step guides", "Before/after series", "Multiple product showcases"],
    "story": ["Polls and Q&As", "Quick updates", "Limited-time offers"],
}
DEFAULT_CONTENT_TYPE_SUGGESTIONS = ["Create engaging content", "Focus on quality", "Be authentic"]

# (label, short label, first hour inclusive, last hour exclusive)
TIME_SLOTS: Tuple[Tuple[str, str, int, int], ...] = (
    ("Morning (6AM-12PM)", "Morning", 6, 12),
    ("Afternoon (12PM-6PM)", "Afternoon", 12, 18),
    ("Evening (6PM-10PM)", "Evening", 18, 22),
    ("Late Night (10PM-6AM)", "Late Night", 22, 6),
)

HASHTAG_MIN_USES = 2
HASHTAG_SCORE_THRESHOLD = 30
CONTENT_TYPE_SCORE_THRESHOLD = 25
POSTING_TIME_MIN_POSTS = 3
POSTING_TIME_UPLIFT = 15


def get_time_slot(hour: int) -> str:
    for label, _, start, end in TIME_SLOTS[:-1]:
        if start <= hour < end:
            return label
    return TIME_SLOTS[-1][0]


# ---------------------------------------------------------------------------
# Hashtag growth estimation
# ---------------------------------------------------------------------------

class GrowthEstimator(ABC):
    """Estimates the growth rate (percent) of a hashtag"""

    @abstractmethod
    def __call__(self, hashtag: str, avg_views: float) -> float:
        pass

    @staticmethod
    def popularity_bonus(avg_views: float) -> float:
        """Up to 10 points for high-view hashtags"""
        return min(10.0, avg_views / 10000)


class SeededGrowthEstimator(GrowthEstimator):
    """Pseudo-random base rate in [-5, 15) plus the popularity bonus.

    No historical signal backs the base rate; pass a seed to make runs
    reproducible.
    """

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def __call__(self, hashtag, avg_views):
        base_rate = float(self.rng.uniform(-5, 15))
        return round(base_rate + self.popularity_bonus(avg_views), 2)


class FixedGrowthEstimator(GrowthEstimator):
    """Constant base rate plus the popularity bonus"""

    def __init__(self, base_rate: float = 0.0):
        self.base_rate = base_rate

    def __call__(self, hashtag, avg_views):
        return round(self.base_rate + self.popularity_bonus(avg_views), 2)


# ---------------------------------------------------------------------------
# Accumulators
# ---------------------------------------------------------------------------

@dataclass
class _Bucket:
    count: int = 0
    total_engagement: int = 0
    avg_views: float = 0.0

    def add(self, engagement: int, views: int):
        self.count += 1
        self.total_engagement += engagement
        self.avg_views = (self.avg_views * (self.count - 1) + views) / self.count

    @property
    def avg_engagement(self) -> float:
        return self.total_engagement / self.count if self.count else 0.0


def _engagement_rate(items: Sequence[ContentRecord]) -> float:
    """Mean (likes + comments) / views in percent over items with views"""
    rates = [item.engagement / item.views * 100 for item in items if item.views > 0]
    if not rates:
        return 0.0
    return float(np.mean(rates))


class TrendInsightEngine:
    """Builds trend insights and dashboard analyses from content records"""

    def __init__(
        self,
        growth_estimator: Optional[GrowthEstimator] = None,
        topic_source: Optional[TrendSource] = None,
        seasonal_source: Optional[TrendSource] = None,
        clock: Optional[Clock] = None,
        insight_limit: Optional[int] = None,
    ):
        self.growth_estimator = growth_estimator or SeededGrowthEstimator(settings.TREND_GROWTH_SEED)
        self.topic_source = topic_source or StaticTopicSource()
        self.seasonal_source = seasonal_source or StaticSeasonalSource()
        self.clock = clock or utc_now
        self.insight_limit = insight_limit if insight_limit is not None else settings.TREND_INSIGHT_LIMIT

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    def generate_trend_predictions(
        self,
        content: Sequence[ContentRecord],
        accounts: Sequence[SocialAccountSnapshot],
        platform: str,
    ) -> List[TrendInsight]:
        """Merge every insight family and keep the highest scoring ones.

        Families are concatenated hashtag, content type, posting time, topic,
        seasonal; the sort is stable so equal scores keep that order.
        """
        now = self.clock()
        insights: List[TrendInsight] = []
        insights.extend(self.analyze_hashtag_trends(content, now))
        insights.extend(self.analyze_content_type_performance(content, now))
        insights.extend(self.analyze_posting_time_performance(content, now))
        insights.extend(self.topic_source.insights(content, platform, now))
        insights.extend(self.seasonal_source.insights(content, platform, now))

        ranked = sorted(insights, key=lambda i: i.trend_score, reverse=True)
        logger.debug(
            f"Generated {len(insights)} trend insights for {platform} "
            f"from {len(content)} content records"
        )
        return ranked[:self.insight_limit]

    def analyze_hashtag_trends(
        self, content: Sequence[ContentRecord], now: Optional[datetime] = None
    ) -> List[TrendInsight]:
        now = now or self.clock()
        performance: Dict[str, _Bucket] = {}

        for item in content:
            for category in item.categories:
                hashtag = normalize_hashtag(category)
                performance.setdefault(hashtag, _Bucket()).add(item.engagement, item.views)

        insights = []
        for hashtag, bucket in performance.items():
            if bucket.count < HASHTAG_MIN_USES:
                continue

            growth_rate = self.growth_estimator(hashtag, bucket.avg_views)
            trend_score = round_half_up(min(100, (bucket.avg_engagement / 1000) * 50 + growth_rate * 2))
            if trend_score <= HASHTAG_SCORE_THRESHOLD:
                continue

            if trend_score > 70:
                action = f"Increase usage of {hashtag} - showing strong performance trending upward"
            else:
                action = f"Monitor {hashtag} performance - moderate growth potential"

            insights.append(build_insight(
                InsightType.HASHTAG,
                hashtag,
                current_volume=bucket.avg_views,
                growth_rate=growth_rate,
                trend_score=trend_score,
                confidence=min(0.95, bucket.count / 10 + 0.5),
                timeframe=Timeframe.WEEKLY,
                peak_prediction=now + timedelta(days=7),
                recommended_action=action,
                content_suggestions=self._hashtag_suggestions(hashtag),
            ))

        return insights

    def analyze_content_type_performance(
        self, content: Sequence[ContentRecord], now: Optional[datetime] = None
    ) -> List[TrendInsight]:
        now = now or self.clock()
        insights = []

        for content_type in CONTENT_TYPES:
            matches = self._content_of_type(content, content_type)
            if not matches:
                continue

            avg_engagement = sum(item.engagement for item in matches) / len(matches)
            avg_views = sum(item.views for item in matches) / len(matches)
            if avg_views == 0:
                continue

            growth_rate = CONTENT_TYPE_GROWTH.get(content_type, DEFAULT_CONTENT_TYPE_GROWTH)
            trend_score = round_half_up(min(100, (avg_engagement / avg_views) * 100 * 50))
            if trend_score <= CONTENT_TYPE_SCORE_THRESHOLD:
                continue

            direction = "positive" if growth_rate > 0 else "stable"
            advice = "prioritize this format" if trend_score > 60 else "maintain current production"

            insights.append(build_insight(
                InsightType.CONTENT_TYPE,
                content_type,
                current_volume=avg_views,
                growth_rate=growth_rate,
                trend_score=trend_score,
                confidence=min(0.9, len(matches) / 20 + 0.6),
                timeframe=Timeframe.MONTHLY,
                peak_prediction=now + timedelta(days=30),
                recommended_action=f"{content_type} content showing {direction} trend - {advice}",
                content_suggestions=CONTENT_TYPE_SUGGESTIONS.get(
                    content_type, DEFAULT_CONTENT_TYPE_SUGGESTIONS
                ),
            ))

        return insights

    def analyze_posting_time_performance(
        self, content: Sequence[ContentRecord], now: Optional[datetime] = None
    ) -> List[TrendInsight]:
        now = now or self.clock()
        slots = self._bucket_by_time_slot(content)
        if not slots:
            return []

        # Only the single best slot is considered, even when it is too sparse
        slot, bucket = sorted(
            slots.items(), key=lambda kv: kv[1].avg_engagement, reverse=True
        )[0]
        if bucket.count < POSTING_TIME_MIN_POSTS:
            return []

        return [build_insight(
            InsightType.POSTING_TIME,
            slot,
            current_volume=bucket.avg_views,
            growth_rate=POSTING_TIME_UPLIFT,
            trend_score=min(100, round_half_up(bucket.avg_engagement / 100)),
            confidence=min(0.85, bucket.count / 10 + 0.4),
            timeframe=Timeframe.DAILY,
            peak_prediction=now + timedelta(days=1),
            recommended_action=f"Optimize posting for {slot} - shows highest engagement rates",
            content_suggestions=[
                f"Schedule important content during {slot}",
                "Plan live sessions during peak hours",
            ],
        )]

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def generate_trend_analysis(
        self,
        content: Sequence[ContentRecord],
        accounts: Sequence[SocialAccountSnapshot],
        platform: str,
    ) -> TrendAnalysisResult:
        now = self.clock()
        return TrendAnalysisResult(
            platform=platform,
            analysis_date=now,
            top_hashtags=self.extract_top_hashtags(content),
            emerging_topics=self.identify_emerging_topics(content, now),
            optimal_post_times=self.calculate_optimal_post_times(content),
            content_type_performance=self.summarize_content_type_performance(content),
            audience_growth_trends=self.calculate_audience_growth_trends(accounts),
            engagement_trends=self.calculate_engagement_trends(content, now),
            competitor_insights=self.generate_competitor_insights(platform),
            seasonal_patterns=self.identify_seasonal_patterns(),
            predicted_viral=self.predict_viral_content(content),
        )

    def extract_top_hashtags(self, content: Sequence[ContentRecord], limit: int = 10) -> List[str]:
        counts: Dict[str, int] = {}
        for item in content:
            for category in item.categories:
                hashtag = normalize_hashtag(category)
                counts[hashtag] = counts.get(hashtag, 0) + 1
        ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
        return [hashtag for hashtag, _ in ranked[:limit]]

    def identify_emerging_topics(
        self, content: Sequence[ContentRecord], now: Optional[datetime] = None, limit: int = 5
    ) -> List[str]:
        now = now or self.clock()
        cutoff = now - timedelta(days=30)
        recent = [
            item for item in content
            if item.published_at is not None
            and as_utc(item.published_at) > cutoff
            and item.is_top_performer
        ][:limit]
        return [" ".join(item.title.split()[:3]) or "Trending Topic" for item in recent]

    def calculate_optimal_post_times(self, content: Sequence[ContentRecord]) -> List[str]:
        """Slot names ordered by mean engagement, unused slots last"""
        slots = self._bucket_by_time_slot(content)
        short_names = {label: short for label, short, _, _ in TIME_SLOTS}
        ranked = sorted(slots.items(), key=lambda kv: kv[1].avg_engagement, reverse=True)
        ordered = [short_names[label] for label, _ in ranked]
        ordered.extend(short for label, short, _, _ in TIME_SLOTS if label not in slots)
        return ordered

    def summarize_content_type_performance(
        self, content: Sequence[ContentRecord]
    ) -> List[ContentTypePerformance]:
        overall = _engagement_rate(content)
        summary = []
        for content_type in CONTENT_TYPES:
            matches = self._content_of_type(content, content_type)
            if not matches:
                continue
            rate = _engagement_rate(matches)
            if overall > 0 and rate > overall * 1.1:
                direction = TrendDirection.UP
            elif overall > 0 and rate < overall * 0.9:
                direction = TrendDirection.DOWN
            else:
                direction = TrendDirection.STABLE
            summary.append(ContentTypePerformance(
                type=content_type.capitalize(),
                avg_engagement=round(rate, 1),
                trend_direction=direction,
            ))
        return summary

    def calculate_audience_growth_trends(
        self, accounts: Sequence[SocialAccountSnapshot]
    ) -> List[Dict[str, float]]:
        # Snapshots carry no follower history; placeholder series until they do
        return [
            {"period": "Last 7 days", "growth": 2.3},
            {"period": "Last 30 days", "growth": 8.7},
            {"period": "Last 90 days", "growth": 25.1},
        ]

    def calculate_engagement_trends(
        self, content: Sequence[ContentRecord], now: Optional[datetime] = None
    ) -> List[Dict[str, float]]:
        now = now or self.clock()
        windows = (("This week", 7), ("This month", 30), ("Last 3 months", 90))
        trends = []
        for period, days in windows:
            cutoff = now - timedelta(days=days)
            in_window = [
                item for item in content
                if item.published_at is not None and as_utc(item.published_at) >= cutoff
            ]
            trends.append({"period": period, "rate": round(_engagement_rate(in_window), 1)})
        return trends

    def generate_competitor_insights(self, platform: str) -> List[Dict[str, object]]:
        return [
            {"insight": "Competitors are increasing video content by 30%", "actionable": True},
            {"insight": "Educational content outperforming entertainment by 15%", "actionable": True},
            {"insight": "Average posting frequency is 3-4 times per week", "actionable": True},
        ]

    def identify_seasonal_patterns(self) -> List[Dict[str, object]]:
        return [
            {"pattern": "Holiday content surge expected in December", "likelihood": 0.9},
            {"pattern": "Back-to-school content peak in September", "likelihood": 0.85},
            {"pattern": "Summer activity content trending through August", "likelihood": 0.8},
        ]

    def predict_viral_content(
        self, content: Sequence[ContentRecord], limit: int = 3
    ) -> List[Dict[str, object]]:
        top = sorted(
            (item for item in content if item.is_top_performer),
            key=lambda item: item.views,
            reverse=True,
        )[:limit]
        return [
            {
                "content": item.title or "High-performing content",
                "viralProbability": min(0.95, item.views / 100000),
            }
            for item in top
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _content_of_type(content: Sequence[ContentRecord], content_type: str) -> List[ContentRecord]:
        return [
            item for item in content
            if item.mentions(content_type)
            or PLATFORM_CONTENT_TYPES.get(item.platform) == content_type
        ]

    @staticmethod
    def _bucket_by_time_slot(content: Sequence[ContentRecord]) -> Dict[str, _Bucket]:
        slots: Dict[str, _Bucket] = {}
        for item in content:
            if item.published_at is None:
                continue
            slot = get_time_slot(item.published_at.hour)
            slots.setdefault(slot, _Bucket()).add(item.engagement, item.views)
        return slots

    @staticmethod
    def _hashtag_suggestions(hashtag: str) -> List[str]:
        suggestions = [
            f"Create tutorials featuring {hashtag}",
            f"Share behind-the-scenes content with {hashtag}",
            f"Start a series using {hashtag}",
            f"Collaborate with others using {hashtag}",
            f"Run a challenge or contest with {hashtag}",
        ]
        return suggestions[:3]


_default_engine: Optional[TrendInsightEngine] = None


def get_trend_engine() -> TrendInsightEngine:
    """Get the shared engine instance"""
    global _default_engine
    if _default_engine is None:
        _default_engine = TrendInsightEngine()
    return _default_engine


def generate_trend_predictions(
    content: Sequence[ContentRecord],
    accounts: Sequence[SocialAccountSnapshot],
    platform: str,
) -> List[TrendInsight]:
    return get_trend_engine().generate_trend_predictions(content, accounts, platform)


def generate_trend_analysis(
    content: Sequence[ContentRecord],
    accounts: Sequence[SocialAccountSnapshot],
    platform: str,
) -> TrendAnalysisResult:
    return get_trend_engine().generate_trend_analysis(content, accounts, platform)
