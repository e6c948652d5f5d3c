"""
Test configuration and fixtures
"""
import base64
import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator

import pytest
from faker import Faker
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

# Set testing environment before the app reads its configuration
TEST_ROOT = Path(tempfile.mkdtemp(prefix="survey_api_tests_"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_ROOT / 'app.db'}"
os.environ["PUBLIC_DIR"] = str(TEST_ROOT / "public")
os.environ["APP_URL"] = "http://test"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from survey_api.api.deps import get_image_storage  # noqa: E402
from survey_api.database import Base, get_db_session  # noqa: E402
from survey_api.main import app  # noqa: E402
from survey_api.services.image_storage import ImageStorage  # noqa: E402

fake = Faker()

VALID_PASSWORD = "Abcdef1!"

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
async def test_engine(tmp_path: Path):
    """Fresh SQLite database per test"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    path = tmp_path / "public"
    path.mkdir()
    return path


@pytest.fixture
def storage(public_dir: Path) -> ImageStorage:
    return ImageStorage(public_dir)


@pytest.fixture
async def client(session_factory, storage) -> AsyncGenerator[AsyncClient, None]:
    """Test client with database and image storage overrides"""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_image_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def make_user_data(**overrides) -> dict:
    data = {
        "name": fake.name(),
        "email": fake.unique.free_email(),
        "password": VALID_PASSWORD,
        "password_confirmation": VALID_PASSWORD,
    }
    data.update(overrides)
    return data


@pytest.fixture
def test_user_data() -> dict:
    return make_user_data()


async def register(client: AsyncClient, **overrides) -> dict:
    response = await client.post("/register", json=make_user_data(**overrides))
    assert response.status_code == 200, response.text
    return response.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def auth_headers(client: AsyncClient) -> dict:
    data = await register(client)
    return bearer(data["token"])


@pytest.fixture
async def other_auth_headers(client: AsyncClient) -> dict:
    data = await register(client)
    return bearer(data["token"])


def survey_payload(**overrides) -> dict:
    data = {
        "title": "Customer satisfaction",
        "description": "How did we do?",
        "status": True,
        "expire_date": "2030-01-31",
        "questions": [
            {"type": "text", "text": "Your name?", "required": True},
            {
                "type": "radio",
                "text": "How satisfied are you?",
                "options": ["Very", "Somewhat", "Not at all"],
            },
        ],
    }
    data.update(overrides)
    return data
