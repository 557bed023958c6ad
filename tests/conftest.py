"""
Pytest configuration and shared fixtures.
"""
import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from startup_tracker.core.cache import TTLCache, get_cache
from startup_tracker.core.config import reset_settings
from startup_tracker.core.database import get_db, reset_engine
from startup_tracker.core.models import (
    Base, Startup, KeyPerson, CompanyContent, Product,
)


@pytest.fixture(scope="function")
def clean_env(monkeypatch):
    """
    Clean environment for testing.

    Removes all app-related env vars to ensure clean state.
    """
    env_vars = [
        "DATABASE_URL",
        "LOG_LEVEL",
        "CACHE_TTL_SECONDS",
        "CACHE_MAX_ENTRIES",
        "DB_POOL_SIZE",
        "DB_MAX_OVERFLOW",
        "SITE_URL",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)

    # Reset settings singleton
    reset_settings()

    yield

    # Reset again after test
    reset_settings()


@pytest.fixture(scope="function")
def test_engine():
    """
    In-memory SQLite engine shared by the test session and the app threads.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def test_db(test_engine):
    """
    Fresh database session for each test.
    """
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def query_counter(test_engine):
    """
    Collects every SQL statement sent to the test database.

    Call .clear() after seeding data to count only what the test triggers.
    """
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(test_engine, "before_cursor_execute", record)
    yield statements
    event.remove(test_engine, "before_cursor_execute", record)


@pytest.fixture
def cache():
    """Empty response cache."""
    return TTLCache(default_ttl=3600)


@pytest.fixture
def client(test_db, cache, monkeypatch):
    """Test client with the database session and cache overridden."""
    from startup_tracker.main import app

    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    reset_settings()
    reset_engine()

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_engine()
    reset_settings()


# =============================================================================
# Tracker Fixtures
# =============================================================================

@pytest.fixture
def now():
    return datetime.utcnow().replace(microsecond=0)


@pytest.fixture
def sample_startups(test_db, now):
    """Four startups covering the filters, funding formats and investor lists."""
    startups = [
        Startup(
            name="Acme AI",
            website="acme.ai",
            region="US",
            country="United States",
            vertical="agents",
            product="Agent platform for <enterprise> & teams",
            stage="Seed",
            funding_amount="$12,500,000",
            investors="Acme Ventures, Beta Capital",
            relevance_score=9,
            needs_database=True,
            tech_stack="Python, Postgres, ",
            source="news",
            discovered_at=now - timedelta(days=2),
            updated_at=now - timedelta(days=1),
        ),
        Startup(
            name="Beta Labs",
            website="https://betalabs.sg",
            region="SG",
            country="Singapore",
            vertical="llm",
            product="Small language models",
            stage="Series A",
            funding_amount="N/A",
            investors="acme ventures",
            relevance_score=6,
            needs_database=False,
            discovered_at=now - timedelta(days=10),
            updated_at=now - timedelta(days=9),
        ),
        Startup(
            name="Gamma Health",
            region="US",
            country="United States",
            vertical="healthcare",
            product="Clinical copilots",
            stage="Series B",
            funding_amount="$40M+",
            investors="Gamma Partners",
            relevance_score=4,
            needs_database=False,
            discovered_at=now - timedelta(days=30),
            updated_at=now - timedelta(days=20),
        ),
        Startup(
            name="Delta Code",
            region="CN",
            country="China",
            vertical="coding",
            product="Code review agents",
            funding_amount="",
            investors=None,
            relevance_score=7,
            needs_database=True,
            discovered_at=now - timedelta(days=1),
            updated_at=now - timedelta(days=1),
        ),
    ]
    test_db.add_all(startups)
    test_db.commit()
    for startup in startups:
        test_db.refresh(startup)
    return startups


@pytest.fixture
def sample_persons(test_db, sample_startups):
    """People for two startups (matched case-insensitively) and one orphan."""
    persons = [
        KeyPerson(name="Ada Lovelace", role="CEO", startup_name="acme ai"),
        KeyPerson(name="Bob Builder", role="CTO", startup_name="Gamma Health"),
        KeyPerson(name="Olga Orphan", role="Founder", startup_name="Ghost Corp"),
    ]
    test_db.add_all(persons)
    test_db.commit()
    for person in persons:
        test_db.refresh(person)
    return persons


@pytest.fixture
def sample_content(test_db, sample_startups, now):
    """News for Acme AI (two items) and Gamma Health (one item)."""
    content = [
        CompanyContent(
            startup_name="Acme AI",
            content_type="funding",
            title="Acme raises \"seed\" round",
            url="https://news.example.com/acme?a=1&b=2",
            summary="Seed round <led> by Acme Ventures",
            published_at=now - timedelta(days=3),
        ),
        CompanyContent(
            startup_name="acme ai",
            content_type="launch",
            title="Acme launches agents",
            url="https://news.example.com/acme-launch",
            summary="General availability",
            published_at=now - timedelta(days=1),
        ),
        CompanyContent(
            startup_name="Gamma Health",
            content_type="partnership",
            title="Gamma partners with hospital",
            url="https://news.example.com/gamma",
            summary="Pilot program",
            published_at=now - timedelta(days=15),
        ),
    ]
    test_db.add_all(content)
    test_db.commit()
    return content


@pytest.fixture
def sample_products(test_db, sample_startups, now):
    products = [
        Product(
            name="Acme Agent",
            company="Acme AI",
            category="agents",
            description="Autonomous agent",
            discovered_at=now - timedelta(days=2),
        ),
        Product(
            name="Gamma Scan",
            company="gamma health",
            category="healthcare",
            description="Imaging assistant",
            discovered_at=now - timedelta(days=5),
        ),
        Product(
            name="Loose Tool",
            company="Nobody Inc",
            category=None,
            discovered_at=now - timedelta(days=1),
        ),
    ]
    test_db.add_all(products)
    test_db.commit()
    return products
