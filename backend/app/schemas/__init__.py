from .trends import (
    TrendAnalysisRequest, TrendAnalysisResponse, TrendPredictionSchema, PredictionsResponse,
    QuickInsightsSchema, QuickInsightsResponse, TrendInsightsResponse, TrendAnalyticsResponse
)
