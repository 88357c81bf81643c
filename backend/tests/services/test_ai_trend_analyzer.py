"""
Unit tests for the AI trend analyzer: data gathering, provider fallback,
prediction normalization, persistence reporting and cached reads.
"""

import json
import re
import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

from app.core.exceptions import InsightsUnavailableError, TrendAnalysisError
from app.services.ai.base import (
    AIResponse, AIUsageMetrics, ProviderError, QuotaExceededError, RateLimitError
)
from app.services.ai.trend_analyzer import AITrendAnalyzer, MARKET_INSIGHTS, get_market_context

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def ai_response(payload):
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return AIResponse(content=content, usage=AIUsageMetrics(provider="openai", model="gpt-4-turbo"))


def stored_row(**overrides):
    row = dict(
        id=1, platform="instagram", keyword="Reels Content", confidence=0.75,
        timeframe="monthly", growth_rate=20.0, recommended_action="Post more reels",
        content_suggestions=["One", "Two", "Three", "Four"],
    )
    row.update(overrides)
    return SimpleNamespace(**row)


@pytest.fixture
def repository():
    repo = AsyncMock()
    repo.get_social_accounts.return_value = [
        SimpleNamespace(platform="tiktok", follower_count=900, engagement_rate="1.0", verified=False),
        SimpleNamespace(platform="instagram", follower_count=12500, engagement_rate="4.5", verified=True),
    ]
    repo.get_portfolio_content.return_value = [
        SimpleNamespace(content_type=None, engagement_rate=3.2, reach=800, impressions=1200,
                        published_at=NOW - timedelta(days=2), categories=["beauty"]),
        SimpleNamespace(content_type="reel", engagement_rate=None, reach=None, impressions=None,
                        published_at=None, categories=[]),
    ]
    repo.get_performance_milestones.return_value = [
        SimpleNamespace(milestone_type="followers", threshold=10000, achieved_at=NOW),
    ]
    repo.get_content_categories.return_value = [
        SimpleNamespace(category="beauty"), SimpleNamespace(category="fashion"),
    ]
    repo.get_brand_collaborations.return_value = [
        SimpleNamespace(brand_name="Acme", campaign_type="sponsored_post", total_reach=50000,
                        total_engagement=2500, status="completed"),
    ]
    repo.create_trend_prediction.side_effect = lambda data: SimpleNamespace(id=1, **data)
    repo.get_trend_predictions.return_value = []
    return repo


@pytest.fixture
def text_service():
    service = AsyncMock()
    service.generate.return_value = ai_response({"predictions": []})
    return service


@pytest.fixture
def analyzer(repository, text_service):
    return AITrendAnalyzer(repository, text_service, clock=lambda: NOW)


class TestGatherUserData:

    @pytest.mark.unit
    async def test_profile_uses_account_for_platform(self, analyzer, repository):
        data = await analyzer.gather_user_data(7, "instagram")

        assert data.profile == {
            "platform": "instagram",
            "followers": 12500,
            "engagement": 4.5,
            "verified": True,
            "categories": ["beauty", "fashion"],
        }
        repository.get_portfolio_content.assert_awaited_once_with(7, "instagram")

    @pytest.mark.unit
    async def test_content_defaults(self, analyzer):
        data = await analyzer.gather_user_data(7, "instagram")

        first, second = data.content
        assert first["type"] == "post"
        assert first["category"] == "beauty"
        assert first["published_at"] == (NOW - timedelta(days=2)).isoformat()
        assert second == {
            "type": "reel", "engagement": 0.0, "reach": 0, "impressions": 0,
            "published_at": None, "category": "general",
        }
        assert data.milestones[0]["progress"] == 100
        assert data.collaborations[0]["brand"] == "Acme"

    @pytest.mark.unit
    async def test_missing_account_gives_empty_profile(self, analyzer):
        data = await analyzer.gather_user_data(7, "youtube")

        assert data.profile["followers"] == 0
        assert data.profile["engagement"] == 0
        assert data.profile["verified"] is False


class TestAnalyzeTrends:

    @pytest.mark.unit
    async def test_prompt_and_generation_parameters(self, analyzer, text_service):
        await analyzer.analyze_trends(7, "instagram", "monthly")

        prompt = text_service.generate.await_args.args[0]
        kwargs = text_service.generate.await_args.kwargs
        assert "trend predictions for instagram over the next monthly" in prompt
        assert "Followers: 12,500" in prompt
        assert "Engagement Rate: 4.5%" in prompt
        assert "- post: 3.2% engagement, 800 reach, Category: beauty" in prompt
        assert "Trending Formats: Reels, Carousel posts, Stories with polls" in prompt
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 2000

    @pytest.mark.unit
    async def test_predictions_are_normalized(self, analyzer, text_service):
        text_service.generate.return_value = ai_response({
            "predictions": [
                {"trend": "Carousel tutorials", "confidence": 0.85, "predicted_growth": 25,
                 "content_suggestions": ["Step-by-step skincare"], "hashtag_recommendations": ["#skin"],
                 "best_post_times": ["8:00 AM"], "target_audience": "Skincare fans", "reasoning": "Because"},
                {"trend": "Overconfident", "confidence": 1.4},
                {"confidence": 0},
            ]
        })

        predictions = await analyzer.analyze_trends(7, "instagram", "weekly")

        assert [p.trend for p in predictions] == ["Carousel tutorials", "Overconfident", "Emerging Trend"]
        assert [p.confidence for p in predictions] == [0.85, 1.0, 0.5]
        assert all(re.fullmatch(r"trend_\d+_[0-9a-f]{9}", p.id) for p in predictions)
        assert predictions[0].id.startswith(f"trend_{int(NOW.timestamp() * 1000)}_")

        default = predictions[2]
        assert default.predicted_growth == 0
        assert default.content_suggestions == []
        assert default.target_audience == "General audience"
        assert default.reasoning == "AI-generated prediction based on performance data"
        assert all(p.timeframe == "weekly" and p.platform == "instagram" for p in predictions)

    @pytest.mark.unit
    async def test_empty_response_yields_content_optimization(self, analyzer, text_service):
        text_service.generate.return_value = ai_response({"overall_insights": {}})

        predictions = await analyzer.analyze_trends(7, "tiktok", "monthly")

        assert len(predictions) == 1
        assert predictions[0].trend == "Content Optimization"
        assert predictions[0].confidence == 0.7
        assert predictions[0].predicted_growth == 15
        assert predictions[0].id.endswith("_fallback")

    @pytest.mark.unit
    @pytest.mark.parametrize("error", [
        RateLimitError("429 Too Many Requests", "openai"),
        QuotaExceededError("insufficient_quota", "openai"),
    ])
    async def test_rate_limit_falls_back_to_market_context(self, analyzer, text_service, error):
        text_service.generate.side_effect = error

        run = await analyzer.analyze_trends_with_report(7, "instagram", "monthly")

        assert run.used_fallback is True
        first, second = run.predictions
        assert first.trend == "Reels Content"
        assert first.confidence == 0.75
        assert first.predicted_growth == 20
        assert first.hashtag_recommendations == ["#contentcreator", "#lifestyle", "#trending"]
        assert first.best_post_times == ["6-9 AM", "12-2 PM", "7-9 PM"]
        assert first.target_audience == "Your current instagram audience interested in beauty, fashion"
        assert second.trend == "Engagement-Focused Content"
        assert second.confidence == 0.70
        assert all(0.70 <= p.confidence <= 0.75 for p in run.predictions)

    @pytest.mark.unit
    async def test_unknown_platform_uses_instagram_context(self, analyzer, text_service, repository):
        text_service.generate.side_effect = RateLimitError("429", "openai")
        repository.get_content_categories.return_value = []

        predictions = await analyzer.analyze_trends(7, "Pinterest", "monthly")

        assert get_market_context("pinterest") is MARKET_INSIGHTS["instagram"]
        assert predictions[0].trend == "Reels Content"
        assert predictions[0].target_audience == "Your current pinterest audience interested in your content niche"

    @pytest.mark.unit
    async def test_provider_error_is_wrapped(self, analyzer, text_service):
        text_service.generate.side_effect = ProviderError("500 from provider", "openai")

        with pytest.raises(TrendAnalysisError) as exc_info:
            await analyzer.analyze_trends(7, "instagram", "monthly")

        assert exc_info.value.message == "Failed to analyze trends. Please try again."
        assert isinstance(exc_info.value.__cause__, ProviderError)

    @pytest.mark.unit
    async def test_invalid_json_is_wrapped(self, analyzer, text_service):
        text_service.generate.return_value = ai_response("not json")

        with pytest.raises(TrendAnalysisError):
            await analyzer.analyze_trends(7, "instagram", "monthly")

    @pytest.mark.unit
    async def test_repository_read_failure_is_wrapped(self, analyzer, repository):
        repository.get_social_accounts.side_effect = RuntimeError("connection lost")

        with pytest.raises(TrendAnalysisError):
            await analyzer.analyze_trends(7, "instagram", "monthly")

    @pytest.mark.unit
    async def test_missing_text_service_is_wrapped(self, repository):
        analyzer = AITrendAnalyzer(repository, clock=lambda: NOW)

        with pytest.raises(TrendAnalysisError):
            await analyzer.analyze_trends(7, "instagram", "monthly")


class TestPersistence:

    @pytest.mark.unit
    async def test_stored_record_fields(self, analyzer, text_service, repository):
        text_service.generate.return_value = ai_response({
            "predictions": [
                {"trend": "Duets", "confidence": 0.85, "predicted_growth": 25,
                 "content_suggestions": ["Duet a trending creator"]},
                {"trend": "Lives", "confidence": 0.6, "predicted_growth": 10},
            ]
        })

        await analyzer.analyze_trends(7, "tiktok", "quarterly")

        first = repository.create_trend_prediction.await_args_list[0].args[0]
        assert first == {
            "user_id": 7,
            "platform": "tiktok",
            "trend_type": "topic",
            "keyword": "Duets",
            "confidence": 0.85,
            "timeframe": "quarterly",
            "current_volume": 1000,
            "predicted_volume": 1250,
            "growth_rate": 25.0,
            "content_suggestions": ["Duet a trending creator"],
            "trend_score": 85,
            "peak_prediction": NOW + timedelta(days=30),
            "recommended_action": "Duet a trending creator",
        }
        second = repository.create_trend_prediction.await_args_list[1].args[0]
        assert second["recommended_action"] == "Focus on content optimization"
        assert second["predicted_volume"] == 1100

    @pytest.mark.unit
    async def test_trend_score_rounds_half_up(self, analyzer, text_service, repository):
        text_service.generate.return_value = ai_response({
            "predictions": [{"trend": "Stitches", "confidence": 0.625, "predicted_growth": 10}]
        })

        await analyzer.analyze_trends(7, "tiktok", "weekly")

        record = repository.create_trend_prediction.await_args.args[0]
        assert record["trend_score"] == 63

    @pytest.mark.unit
    async def test_one_failed_write_does_not_fail_the_run(self, analyzer, text_service, repository):
        text_service.generate.return_value = ai_response({
            "predictions": [{"trend": "A"}, {"trend": "B"}, {"trend": "C"}]
        })
        repository.create_trend_prediction.side_effect = [
            SimpleNamespace(id=1), RuntimeError("unique violation"), SimpleNamespace(id=3),
        ]

        run = await analyzer.analyze_trends_with_report(7, "instagram", "monthly")

        assert [p.trend for p in run.predictions] == ["A", "B", "C"]
        assert [p.trend for p in run.persistence.stored] == ["A", "C"]
        assert len(run.persistence.failed) == 1
        failed_prediction, error = run.persistence.failed[0]
        assert failed_prediction.trend == "B"
        assert isinstance(error, RuntimeError)
        assert run.persistence.all_stored is False


class TestCachedReads:

    @pytest.mark.unit
    async def test_cached_predictions_fill_unstored_fields(self, analyzer, repository):
        repository.get_trend_predictions.return_value = [
            stored_row(),
            stored_row(id=2, keyword=None, confidence=None, timeframe=None, growth_rate=None,
                       recommended_action=None, content_suggestions=None),
        ]

        first, second = await analyzer.get_cached_predictions(7, "instagram")

        repository.get_trend_predictions.assert_awaited_once_with(7, "instagram")
        assert first.id == "1"
        assert first.reasoning == "Post more reels"
        assert first.hashtag_recommendations == ["#trending", "#contentcreator", "#growth"]
        assert first.best_post_times == ["9:00 AM", "1:00 PM", "7:00 PM"]
        assert first.target_audience == "Your current follower base"

        assert second.trend == "Content Optimization"
        assert second.confidence == 0.5
        assert second.timeframe == "monthly"
        assert second.predicted_growth == 0.0
        assert second.content_suggestions == []

    @pytest.mark.unit
    async def test_quick_insights_pick_most_confident(self, analyzer, repository):
        repository.get_trend_predictions.return_value = [
            stored_row(id=1, keyword="Low", confidence=0.4),
            stored_row(id=2, keyword="High", confidence=0.9),
            stored_row(id=3, keyword="Also high", confidence=0.9),
        ]

        insights = await analyzer.get_quick_insights(7, "instagram")

        assert insights.top_trend == "High"
        assert insights.confidence == 0.9
        assert insights.quick_tips == ["One", "Two", "Three"]
        assert insights.next_analysis == NOW + timedelta(days=7)

    @pytest.mark.unit
    async def test_quick_insights_without_predictions(self, analyzer):
        insights = await analyzer.get_quick_insights(7, "instagram")

        assert insights.top_trend == "Content Consistency"
        assert insights.confidence == 0.8
        assert len(insights.quick_tips) == 3
        assert insights.next_analysis == NOW + timedelta(days=1)
        assert insights.to_dict()["nextAnalysis"] == (NOW + timedelta(days=1)).isoformat()

    @pytest.mark.unit
    async def test_quick_insights_repository_failure(self, analyzer, repository):
        repository.get_trend_predictions.side_effect = RuntimeError("db down")

        with pytest.raises(InsightsUnavailableError) as exc_info:
            await analyzer.get_quick_insights(7, "instagram")

        assert exc_info.value.message == "Unable to generate insights"
