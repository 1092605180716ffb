"""
Shared fixtures: throwaway SQLite database, sessions, API client
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.core.database import Base, create_db_engine, get_db, get_session_factory
from app.main import app
from app.services.translation_service import TranslationService


# Test database (file SQLite; foreign keys and full-text function enabled by create_db_engine)
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_db_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing"""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def override_get_session_factory():
    return TestingSessionLocal


@pytest.fixture(scope="function")
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def service(db_session):
    return TranslationService(db_session)


@pytest.fixture
def client(db_session):
    """Create test client (tables are created by db_session)"""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = override_get_session_factory
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seeded(service):
    """
    Small catalogue:
      auth.login.title   en/fr   tags: auth, web
      auth.logout.button en      tags: auth
      home.welcome       en/de   tags: web
      mobile.menu.open   en      tags: mobile
    """
    return {
        "login": service.create(
            "auth.login.title", {"en": "Login", "fr": "Connexion"}, ["auth", "web"]
        ),
        "logout": service.create("auth.logout.button", {"en": "Logout"}, ["auth"]),
        "welcome": service.create(
            "home.welcome", {"en": "Welcome to your account", "de": "Willkommen"}, ["web"]
        ),
        "menu": service.create("mobile.menu.open", {"en": "Open menu"}, ["mobile"]),
    }
