from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Any, Dict, List, Optional

class TrendAnalysisRequest(BaseModel):
    # Checked by the endpoint so bad values answer 400 rather than 422
    platform: Optional[str] = None
    timeframe: Optional[str] = None

    @field_validator("platform")
    @classmethod
    def normalize_platform(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v

class TrendPredictionSchema(BaseModel):
    id: str
    platform: str
    trend: str
    confidence: float
    timeframe: str
    predictedGrowth: float
    contentSuggestions: List[str]
    hashtagRecommendations: List[str]
    bestPostTimes: List[str]
    targetAudience: str
    reasoning: str

class TrendAnalysisResponse(BaseModel):
    success: bool = True
    predictions: List[TrendPredictionSchema]
    generatedAt: datetime
    platform: str
    timeframe: str
    usedFallback: bool = False
    storedCount: int = 0

class PredictionsResponse(BaseModel):
    success: bool = True
    predictions: List[TrendPredictionSchema]
    count: int = 0

class QuickInsightsSchema(BaseModel):
    topTrend: str
    confidence: float
    quickTips: List[str]
    nextAnalysis: datetime

class QuickInsightsResponse(BaseModel):
    success: bool = True
    insights: QuickInsightsSchema
    platform: str

class TrendInsightsResponse(BaseModel):
    success: bool = True
    insights: List[Dict[str, Any]]
    message: Optional[str] = None
    dataSource: Optional[Dict[str, Any]] = None

class TrendAnalyticsResponse(BaseModel):
    success: bool = True
    analytics: Optional[Dict[str, Any]] = None
    message: Optional[str] = None
    dataSource: Optional[Dict[str, Any]] = None
