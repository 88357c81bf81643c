import os

# Settings are read at import time; point them at SQLite before the app loads
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.deps import get_text_service
from app.core.rate_limiting import limiter
from app.core.security import create_access_token
from app.db.session import Base, get_db
from app.services.ai.base import AIProvider, AIResponse, AIUsageMetrics
from tests.factories import UserFactory, SocialAccountFactory, PortfolioContentFactory

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def disable_rate_limits():
    """Rate limits are exercised separately; keep them out of other tests."""
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def fixed_clock():
    """Clock that always returns 2024-06-15 12:00 UTC."""
    return lambda: FIXED_NOW


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def override_get_db(db_session):
    """Override the get_db dependency to use test database."""
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def mock_text_service(mocker):
    """Text service whose generate() returns an empty prediction payload."""
    service = mocker.Mock()
    service.provider = AIProvider.OPENAI
    service.model = "gpt-4-turbo"
    service.generate = AsyncMock(return_value=AIResponse(
        content='{"predictions": []}',
        usage=AIUsageMetrics(provider="openai", model="gpt-4-turbo")
    ))
    return service


@pytest_asyncio.fixture
async def async_client(override_get_db, mock_text_service):
    """Create an async HTTP client for testing."""
    app.dependency_overrides[get_text_service] = lambda: mock_text_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_user(db_session):
    """Create a sample influencer for testing."""
    user = UserFactory.build()
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def brand_user(db_session):
    """Create a user with the brand role."""
    user = UserFactory.build(role="brand")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def sample_account(db_session, sample_user):
    """Connected Instagram account for the sample user."""
    account = SocialAccountFactory.build(user_id=sample_user.id, platform="instagram")
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def sample_content(db_session, sample_user):
    """Five Instagram posts for the sample user."""
    items = PortfolioContentFactory.build_batch(5, user_id=sample_user.id, platform="instagram")
    db_session.add_all(items)
    db_session.commit()
    return items


@pytest.fixture
def auth_headers(sample_user):
    """Bearer token for the sample user."""
    return {"Authorization": f"Bearer {create_access_token(sample_user.id)}"}


@pytest.fixture
def brand_auth_headers(brand_user):
    return {"Authorization": f"Bearer {create_access_token(brand_user.id)}"}


# Pytest markers for test categorization
pytest.mark.unit = pytest.mark.unit
pytest.mark.integration = pytest.mark.integration
pytest.mark.ai = pytest.mark.ai
