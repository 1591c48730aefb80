"""Shared fixtures: in-memory SQLite database, services and an API client."""

import uuid

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.deps import get_image_uploader
from app.core.security import create_access_token
from app.db.base import Database
from app.repositories.category import CategoryRepository
from app.repositories.commission_rule import CommissionRuleRepository
from app.repositories.user import UserRepository
from app.services.auth_service import AuthService
from app.services.category_service import CategoryService

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def make_database() -> Database:
    # StaticPool keeps a single connection so the in-memory DB survives between sessions
    return Database(TEST_DATABASE_URL, poolclass=StaticPool)


@pytest_asyncio.fixture
async def database():
    db = make_database()
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with database.session() as s:
        yield s


@pytest.fixture
def category_repo(session):
    return CategoryRepository(session)


@pytest.fixture
def rule_repo(session):
    return CommissionRuleRepository(session)


@pytest.fixture
def category_service(category_repo, rule_repo):
    return CategoryService(category_repo, rule_repo)


@pytest.fixture
def auth_service(session):
    return AuthService(UserRepository(session))


# ── API ────────────────────────────────────────────

class StubUploader:
    """Records uploads and discards, and hands back a fixed URL."""

    def __init__(self, url="https://img.example.com/quickmate/icon.png", error=None):
        self.url = url
        self.error = error
        self.uploaded = []
        self.discarded = []

    async def upload(self, file):
        if self.error:
            raise self.error
        self.uploaded.append(file.filename)
        return self.url

    async def discard(self, url):
        self.discarded.append(url)


@pytest.fixture
def uploader():
    return StubUploader()


@pytest.fixture
def app(tmp_path, monkeypatch, uploader):
    from app.main import create_app

    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    application = create_app(database=make_database(), create_tables=True)
    application.dependency_overrides[get_image_uploader] = lambda: uploader
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def auth_headers(role: str) -> dict:
    token = create_access_token(user_id=uuid.uuid4(), role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return auth_headers("Admin")


@pytest.fixture
def customer_headers():
    return auth_headers("Customer")
