"""
Test configuration and fixtures for the property listing API.
Provides an in-memory database per test, a recording image store, and test data factories.
"""

import base64
import io
import uuid
from decimal import Decimal
from typing import AsyncGenerator, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from listing_api.config import Settings
from listing_api.database import (
    create_engine_from_settings,
    create_session_factory,
    create_tables,
    drop_tables,
    get_db,
)
from listing_api.main import create_app
from listing_api.models.property import Property, PropertyType
from listing_api.models.user import User
from listing_api.repositories.property import PropertyRepository
from listing_api.repositories.user import UserRepository
from listing_api.schemas.property import PropertyCreate
from listing_api.services.image_store import ImageStore
from listing_api.services.property import PropertyService
from listing_api.utils.dependencies import get_image_store
from listing_api.utils.exceptions import UploadError


def make_image_data_uri(fmt: str = "PNG", mime_type: str = "image/png", size=(8, 8)) -> str:
    """Create a small image encoded as a base64 data URI."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color="red").save(buffer, format=fmt)
    return f"data:{mime_type};base64,{base64.b64encode(buffer.getvalue()).decode()}"


class RecordingImageStore(ImageStore):
    """Image store that records payloads and returns predictable URLs."""

    def __init__(self):
        self.uploads: List[str] = []
        self.error: Optional[str] = None

    async def upload(self, payload: str) -> str:
        if self.error:
            raise UploadError(self.error)
        self.uploads.append(payload)
        return f"https://images.example.com/photos/{len(self.uploads)}.jpg"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings for an in-memory SQLite database and a temporary upload directory."""
    return Settings(
        _env_file=None,
        environment="testing",
        database_url="sqlite+aiosqlite://",
        image_store_backend="local",
        upload_dir=str(tmp_path / "uploads"),
        public_base_url="http://test",
    )


@pytest.fixture
async def engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh database schema for each test."""
    engine = create_engine_from_settings(test_settings)
    await create_tables(engine)
    yield engine
    await drop_tables(engine, test_settings)
    await engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with create_session_factory(engine)() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def image_store() -> RecordingImageStore:
    return RecordingImageStore()


@pytest.fixture
def app(test_settings: Settings, engine: AsyncEngine, db_session: AsyncSession, image_store: RecordingImageStore):
    """Create an application wired to the test session and image store."""
    application = create_app(test_settings)
    application.state.session_factory = create_session_factory(engine)

    async def override_get_db():
        yield db_session

    async def override_get_image_store():
        return image_store

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_image_store] = override_get_image_store
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


# Service fixtures
@pytest.fixture
def property_service(db_session: AsyncSession, image_store: RecordingImageStore) -> PropertyService:
    return PropertyService(db_session, image_store)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: Optional[str] = None,
        name: str = "Test Owner",
        avatar: Optional[str] = None
    ) -> User:
        """Create a test user in the database."""
        return await user_repo.create_user({
            "email": email or f"owner{uuid.uuid4().hex[:8]}@example.com",
            "name": name,
            "avatar": avatar,
        })


class PropertyFactory:
    """Factory for creating test properties through the create flow."""

    @staticmethod
    def create_property_data(
        email: str,
        title: str = "Test Property",
        description: str = "A bright property close to the station",
        property_type: PropertyType = PropertyType.APARTMENT,
        location: str = "Test City",
        price: Decimal = Decimal("1000.00"),
        photo: str = "data:image/png;base64,iVBORw0KGgo="
    ) -> PropertyCreate:
        """Create a property creation request."""
        return PropertyCreate(
            title=title,
            description=description,
            propertyType=property_type,
            location=location,
            price=price,
            photo=photo,
            email=email,
        )

    @staticmethod
    async def create_property(property_service: PropertyService, email: str, **kwargs) -> Property:
        """Create a test property owned by the user with the given email."""
        property_data = PropertyFactory.create_property_data(email=email, **kwargs)
        return await property_service.create_property(property_data)


# Common test fixtures
@pytest.fixture
async def test_owner(user_repository: UserRepository) -> User:
    """Create the user a@x.com with no properties."""
    return await UserFactory.create_user(user_repository, email="a@x.com", name="Alice")


@pytest.fixture
async def test_property(property_service: PropertyService, test_owner: User) -> Property:
    """Create a property owned by test_owner."""
    return await PropertyFactory.create_property(
        property_service,
        email=test_owner.email,
        title="Flat",
        price=Decimal("100000")
    )


async def assert_ownership_consistent(db_session: AsyncSession) -> None:
    """Assert every property is listed by its creator and every listed ID exists."""
    from sqlalchemy import select

    properties = (await db_session.execute(
        select(Property).execution_options(populate_existing=True)
    )).scalars().all()
    users = (await db_session.execute(
        select(User).execution_options(populate_existing=True)
    )).scalars().all()

    users_by_id = {user.id: user for user in users}
    property_ids = {str(prop.id) for prop in properties}

    for prop in properties:
        assert prop.creator_id in users_by_id
        assert str(prop.id) in users_by_id[prop.creator_id].all_properties

    for user in users:
        for property_id in user.all_properties:
            assert property_id in property_ids
