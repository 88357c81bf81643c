import pytest
from datetime import datetime, timedelta, timezone

from app.services.analytics.insights import InsightType, Timeframe
from app.services.analytics.trend_sources import (
    StaticTopicSource, StaticSeasonalSource, SeasonalTrend
)
from tests.factories import ContentRecordFactory


def utc(year, month, day, hour=0):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


class TestStaticTopicSource:

    @pytest.mark.unit
    def test_confidence_depends_on_matching_content(self):
        now = utc(2024, 6, 15, 12)
        content = [ContentRecordFactory.build(title="My SUSTAINABILITY journey")]

        insights = {i.keyword: i for i in StaticTopicSource().insights(content, "instagram", now)}

        assert insights["sustainability"].confidence == pytest.approx(0.8)
        assert insights["mental health"].confidence == pytest.approx(0.6)

    @pytest.mark.unit
    def test_description_counts_as_a_match(self):
        content = [ContentRecordFactory.build(description="talking about mental health today")]

        insights = {i.keyword: i for i in StaticTopicSource().insights(content, "tiktok", utc(2024, 1, 1))}

        assert insights["mental health"].confidence == pytest.approx(0.8)

    @pytest.mark.unit
    def test_topic_figures(self):
        now = utc(2024, 6, 15, 12)
        sustainability, mental_health = StaticTopicSource().insights([], "youtube", now)

        assert sustainability.type == InsightType.TOPIC
        assert sustainability.current_volume == 50000
        assert sustainability.predicted_volume == 75000
        assert sustainability.trend_score == 85
        assert sustainability.timeframe == Timeframe.MONTHLY
        assert sustainability.peak_prediction == now + timedelta(days=15)

        assert mental_health.predicted_volume == 150000
        assert mental_health.timeframe == Timeframe.WEEKLY
        assert mental_health.peak_prediction == now + timedelta(days=7)


class TestStaticSeasonalSource:

    @pytest.mark.unit
    @pytest.mark.parametrize("month,keyword", [
        (3, "spring cleaning"),
        (5, "spring cleaning"),
        (7, "summer activities"),
        (10, "back to school"),
        (12, "holiday content"),
        (2, "holiday content"),
    ])
    def test_season_by_month(self, month, keyword):
        insights = StaticSeasonalSource().insights([], "instagram", utc(2024, month, 10))
        assert [i.keyword for i in insights] == [keyword]

    @pytest.mark.unit
    def test_spring_cleaning_figures(self):
        insight = StaticSeasonalSource().insights([], "instagram", utc(2024, 3, 20, 9))[0]

        assert insight.type == InsightType.SEASONAL
        assert insight.growth_rate == 150.0
        assert insight.current_volume == 30000
        assert insight.predicted_volume == 75000
        assert insight.confidence == pytest.approx(0.75)
        assert insight.peak_prediction == utc(2024, 4, 15)

    @pytest.mark.unit
    def test_january_peak_is_placed_in_current_year(self):
        insight = StaticSeasonalSource().insights([], "instagram", utc(2024, 1, 5))[0]
        assert insight.peak_prediction == utc(2024, 12, 15)

    @pytest.mark.unit
    def test_custom_season_table(self):
        season = SeasonalTrend(
            keyword="festival season", months=(6,), base_volume=1000, seasonal_multiplier=1.5,
            trend_score=60, peak_month=6, peak_day=28, action="Cover festivals",
            suggestions=("Outfits", "Line-up reactions"),
        )
        insights = StaticSeasonalSource([season]).insights([], "tiktok", utc(2024, 6, 1))

        assert len(insights) == 1
        assert insights[0].growth_rate == 50.0
        assert insights[0].predicted_volume == 1500
        assert insights[0].content_suggestions == ["Outfits", "Line-up reactions"]
