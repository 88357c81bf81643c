from .user import User
from .portfolio import (
    SocialAccount, ContentCategory, PerformanceMilestone, PortfolioContent,
    BrandCollaboration
)
from .trends import TrendPredictionRecord, TrendAnalyticsRecord
