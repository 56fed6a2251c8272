"""
CSS Farms portal - Test Configuration and Fixtures
"""
import os
import itertools
from datetime import datetime, timedelta
from typing import AsyncGenerator

import bcrypt
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from faker import Faker

ADMIN_EMAIL = 'admin@cssfarms.org'
ADMIN_PASSWORD = 'admin-password-123'

# Set testing environment before anything reads settings
os.environ['NODE_ENV'] = 'test'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite://'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['ADMIN_EMAIL'] = ADMIN_EMAIL
os.environ['ADMIN_PASSWORD_HASH'] = bcrypt.hashpw(ADMIN_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
for var in ('SMTP_HOST', 'SMTP_USER', 'SMTP_PASS', 'EMAIL_USER', 'EMAIL_PASS', 'KICKBOX_API_KEY'):
    os.environ[var] = ''

from farmportal.main import app
from farmportal.core.config import settings
from farmportal.core.database import Base, get_db
from farmportal.core.security import create_admin_session_token
from farmportal.models import (
    AllocationStatus,
    Gender,
    PENDING,
    Room,
    RoomStatus,
    Sponsor,
    TagNumber,
    TagStatus,
    Trainee,
)
from farmportal.services.allocation_policy import resolve_bed_capacity

fake = Faker()

TEST_DATABASE_URL = 'sqlite+aiosqlite://'
BASE_TIME = datetime(2024, 1, 1, 8, 0, 0)
_sequence = itertools.count(1)


def unique_email() -> str:
    return f"{fake.user_name()}.{next(_sequence)}@cssfarms.org"


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database for each test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict:
    """Admin session cookie, sent explicitly so it does not depend on the cookie jar"""
    token = create_admin_session_token(ADMIN_EMAIL)
    return {'Cookie': f'{settings.ADMIN_COOKIE_NAME}={token}'}


# ==================== FACTORIES ====================

@pytest.fixture
def make_trainee(db_session: AsyncSession):
    """Insert a trainee; each one is created a minute after the previous"""
    async def factory(**overrides) -> Trainee:
        values = dict(
            first_name=fake.first_name(),
            surname=fake.last_name(),
            email=unique_email(),
            gender=Gender.MALE,
            tag_number=PENDING,
            room_number=PENDING,
            room_block=PENDING,
            bed_space=PENDING,
            allocation_status=AllocationStatus.PENDING,
            created_at=BASE_TIME + timedelta(minutes=next(_sequence)),
        )
        values.update(overrides)
        trainee = Trainee(**values)
        db_session.add(trainee)
        await db_session.commit()
        return trainee
    return factory


@pytest.fixture
def make_room(db_session: AsyncSession):
    async def factory(room_number: str = None, block: str = 'BlockA', bed_space: str = '1', **overrides) -> Room:
        values = dict(
            room_number=room_number or f"Room-{next(_sequence):02d}",
            block=block,
            bed_space=bed_space,
            capacity=resolve_bed_capacity(bed_space),
            status=RoomStatus.AVAILABLE,
            current_occupancy=0,
            created_at=BASE_TIME + timedelta(minutes=next(_sequence)),
        )
        values.update(overrides)
        room = Room(**values)
        db_session.add(room)
        await db_session.commit()
        return room
    return factory


@pytest.fixture
def make_tag(db_session: AsyncSession):
    async def factory(tag_no: str, status: TagStatus = TagStatus.AVAILABLE) -> TagNumber:
        tag = TagNumber(
            tag_no=tag_no,
            status=status,
            created_at=BASE_TIME + timedelta(minutes=next(_sequence)),
        )
        db_session.add(tag)
        await db_session.commit()
        return tag
    return factory


@pytest.fixture
def make_sponsor(db_session: AsyncSession):
    async def factory(name: str = None, is_active: bool = True) -> Sponsor:
        sponsor = Sponsor(name=name or fake.company(), is_active=is_active)
        db_session.add(sponsor)
        await db_session.commit()
        return sponsor
    return factory
