"""
Creator Portfolio Models

Connected social accounts, imported content samples, milestones, categories
and brand collaborations for a creator. These rows are the raw input of the
trend engine and the AI trend analyzer.
"""

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Float, Boolean, JSON, ForeignKey
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.db.session import Base


class SocialAccount(Base):
    """Point-in-time snapshot of a connected social media account"""
    __tablename__ = "social_accounts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String(50), nullable=False)  # instagram, tiktok, youtube, facebook
    platform_user_id = Column(String(255), nullable=False)
    username = Column(String(255))
    display_name = Column(String(255))
    profile_url = Column(String(1000))

    follower_count = Column(Integer, default=0)
    following_count = Column(Integer, default=0)
    post_count = Column(Integer, default=0)
    engagement_rate = Column(String(20))  # percentage kept as a decimal string, e.g. "4.25"
    verified = Column(Boolean, default=False)
    is_connected = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="social_accounts")


class ContentCategory(Base):
    """Content niche declared by (or detected for) a creator"""
    __tablename__ = "content_categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(100), nullable=False)  # fashion, beauty, tech, fitness...
    is_auto_detected = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PerformanceMilestone(Base):
    """Achievement thresholds reached by a creator"""
    __tablename__ = "performance_milestones"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    milestone_type = Column(String(50), nullable=False)  # followers, engagement, views, collaborations
    threshold = Column(Integer, nullable=False)
    platform = Column(String(50))
    achieved_at = Column(DateTime(timezone=True), server_default=func.now())
    is_celebrated = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class PortfolioContent(Base):
    """A published piece of content imported from a social platform"""
    __tablename__ = "portfolio_content"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    url = Column(String(1000), nullable=False)
    thumbnail_url = Column(String(1000))
    platform = Column(String(50), nullable=False, index=True)
    content_type = Column(String(50))  # post, video, reel, story, carousel

    # Performance metrics
    views = Column(Integer, default=0)
    likes = Column(Integer, default=0)
    comments = Column(Integer, default=0)
    shares = Column(Integer, default=0)
    engagement_rate = Column(Float, default=0.0)
    reach = Column(Integer, default=0)
    impressions = Column(Integer, default=0)

    published_at = Column(DateTime(timezone=True))
    is_top_performer = Column(Boolean, default=False)
    categories = Column(JSON, default=list)  # ["beauty", "skin care"]
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="portfolio_content")


class BrandCollaboration(Base):
    """Past, ongoing and upcoming brand campaigns of a creator"""
    __tablename__ = "brand_collaborations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    brand_name = Column(String(255), nullable=False)
    campaign_name = Column(String(255), nullable=False)
    campaign_type = Column(String(100))
    status = Column(String(50), nullable=False)  # completed, ongoing, upcoming
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    total_reach = Column(Integer)
    total_engagement = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
