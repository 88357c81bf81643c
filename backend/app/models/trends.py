from sqlalchemy import Column, Integer, String, Float, Text, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.sql import func

from app.db.session import Base

class TrendPredictionRecord(Base):
    """Persisted trend insight or AI trend prediction"""
    __tablename__ = "trend_predictions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String(50), nullable=False, index=True)

    # Trend data
    trend_type = Column(String(50), nullable=False)  # hashtag, topic, content_type, posting_time, seasonal
    keyword = Column(String(500))

    # Performance metrics
    current_volume = Column(Integer)
    predicted_volume = Column(Integer)
    growth_rate = Column(Float)      # percent
    trend_score = Column(Integer)    # 0-100
    confidence = Column(Float)       # 0-1
    timeframe = Column(String(20))   # daily, weekly, monthly, quarterly

    # Guidance
    peak_prediction = Column(DateTime(timezone=True))
    recommended_action = Column(Text)
    content_suggestions = Column(JSON, default=list)

    # Metadata
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

class TrendAnalyticsRecord(Base):
    """Snapshot of a trend analysis dashboard, list values flattened to strings"""
    __tablename__ = "trend_analytics"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String(50), nullable=False)
    analysis_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    top_hashtags = Column(JSON, default=list)
    emerging_topics = Column(JSON, default=list)
    optimal_post_times = Column(JSON, default=list)
    content_type_performance = Column(JSON, default=list)  # "type:avg_engagement:direction"
    audience_growth_trends = Column(JSON, default=list)    # "period:growth"
    engagement_trends = Column(JSON, default=list)         # "period:rate"
    competitor_insights = Column(JSON, default=list)       # "insight:actionable"
    seasonal_patterns = Column(JSON, default=list)         # "pattern:likelihood"
    predicted_viral = Column(JSON, default=list)           # "content:probability"

    created_at = Column(DateTime(timezone=True), server_default=func.now())
