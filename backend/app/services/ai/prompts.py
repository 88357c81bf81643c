"""
AI Prompt Templates

Prompt templates used by the AI trend analyzer. Templates are plain
``str.format`` strings; literal braces in the JSON examples are doubled.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class PromptTemplate:
    """Prompt template with its generation parameters"""
    name: str
    template: str
    version: str
    description: str
    variables: List[str]
    max_tokens: int = 1000
    temperature: float = 0.7
    system_prompt: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    def format(self, **kwargs) -> str:
        """Format template with provided variables"""
        missing_vars = [var for var in self.variables if var not in kwargs]
        if missing_vars:
            raise ValueError(f"Missing required variables: {', '.join(missing_vars)}")
        return self.template.format(**kwargs)

    def generation_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for BaseAIService.generate"""
        kwargs = {
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system_prompt": self.system_prompt,
        }
        kwargs.update(self.extra)
        return kwargs


TREND_ANALYST_SYSTEM_PROMPT = (
    "You are an expert social media trend analyst. Provide accurate, actionable "
    "trend predictions based on data analysis. Always respond with valid JSON."
)

TREND_ANALYSIS_TEMPLATE = PromptTemplate(
    name="trend_analysis",
    version="1.0",
    description="Predict upcoming trends for a creator from their profile, recent content and market context",
    variables=[
        "platform", "timeframe", "followers", "engagement", "categories",
        "content_lines", "trending_formats", "popular_categories",
        "peak_times", "algorithm_preferences",
    ],
    max_tokens=settings.TREND_ANALYSIS_MAX_TOKENS,
    temperature=settings.TREND_ANALYSIS_TEMPERATURE,
    system_prompt=TREND_ANALYST_SYSTEM_PROMPT,
    extra={"response_format": {"type": "json_object"}},
    template="""
As an expert social media trend analyst, analyze the following data and provide detailed trend predictions for {platform} over the next {timeframe}.

USER PROFILE:
- Platform: {platform}
- Followers: {followers}
- Engagement Rate: {engagement}%
- Content Categories: {categories}

RECENT CONTENT PERFORMANCE:
{content_lines}

MARKET CONTEXT:
- Trending Formats: {trending_formats}
- Popular Categories: {popular_categories}
- Peak Times: {peak_times}
- Algorithm Preferences: {algorithm_preferences}

Please provide a JSON response with exactly this structure:
{{
  "predictions": [
    {{
      "trend": "Specific trend name",
      "confidence": 0.85,
      "predicted_growth": 25,
      "reasoning": "Detailed explanation of why this trend will grow",
      "content_suggestions": ["Specific content idea 1", "Specific content idea 2", "Specific content idea 3"],
      "hashtag_recommendations": ["#hashtag1", "#hashtag2", "#hashtag3"],
      "best_post_times": ["9:00 AM", "1:00 PM", "7:00 PM"],
      "target_audience": "Specific audience description"
    }}
  ],
  "overall_insights": {{
    "key_opportunities": ["Opportunity 1", "Opportunity 2"],
    "content_gaps": ["Gap 1", "Gap 2"],
    "optimization_tips": ["Tip 1", "Tip 2"]
  }}
}}

Focus on actionable, data-driven predictions that align with the user's content style and current performance patterns.
""",
)

MAX_CONTENT_LINES = 10


def build_trend_analysis_prompt(
    profile: Dict[str, Any],
    content: Sequence[Dict[str, Any]],
    market_context: Dict[str, List[str]],
    platform: str,
    timeframe: str,
) -> str:
    content_lines = "\n".join(
        f"- {c['type']}: {c['engagement']}% engagement, {c['reach']} reach, Category: {c['category']}"
        for c in list(content)[:MAX_CONTENT_LINES]
    )
    return TREND_ANALYSIS_TEMPLATE.format(
        platform=platform,
        timeframe=timeframe,
        followers=f"{profile['followers']:,}",
        engagement=profile["engagement"],
        categories=", ".join(profile["categories"]),
        content_lines=content_lines,
        trending_formats=", ".join(market_context["trending_formats"]),
        popular_categories=", ".join(market_context["popular_categories"]),
        peak_times=", ".join(market_context["peak_engagement_times"]),
        algorithm_preferences=", ".join(market_context["algorithmic_preferences"]),
    )
