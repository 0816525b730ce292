import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from app.models.base import Base
from app.models import user, room, room_membership, message, message_reader  # noqa: F401
from app.core.security import create_access_token
from app.repositories.sqlalchemy_chat_repository import SqlAlchemyChatRepository
from tests.utils import RecordingPublisher, create_user

DATABASE_URL = "sqlite+aiosqlite:///:memory:"

@pytest.fixture
async def async_session():
    engine = create_async_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    async with async_session_factory() as session:
        yield session
    await engine.dispose()

@pytest.fixture
def repository(async_session):
    return SqlAlchemyChatRepository(async_session)

@pytest.fixture
def publisher():
    return RecordingPublisher()

@pytest.fixture
async def alice(async_session):
    return await create_user(async_session, "Alice", "alice@example.com")

@pytest.fixture
async def bob(async_session):
    return await create_user(async_session, "Bob", "bob@example.com")

@pytest.fixture
async def carol(async_session):
    return await create_user(async_session, "Carol", "carol@example.com")

@pytest.fixture
def alice_token(alice):
    return create_access_token({"user_id": str(alice.id)})
