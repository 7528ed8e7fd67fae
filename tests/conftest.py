"""
Pytest configuration and fixtures for AssignX core tests.

Every test gets a fresh in-memory SQLite database with the full schema.
"""
import sys
import os
from datetime import datetime, timedelta

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SESSION_SECRET"] = "test-session-secret"

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from models.base import Base
from models.activation import DoerActivation
from models.profile import Doer, Profile, Supervisor
from models.project import Project
from models.quiz import QuizQuestion
from models.training import TrainingModule

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)

NOW = datetime(2026, 10, 1, 12, 0, 0)

ACTIVATED_FLAGS = dict(
    training_completed=True,
    training_completed_at=NOW,
    quiz_passed=True,
    quiz_passed_at=NOW,
    bank_details_added=True,
    bank_details_added_at=NOW,
    is_fully_activated=True,
    activated_at=NOW,
)


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the analysis rate limit."""

    def __init__(self):
        self.store = {}
        self.ttl = {}

    async def get(self, key):
        value = self.store.get(key)
        return None if value is None else str(value)

    async def incr(self, key):
        self.store[key] = int(self.store.get(key, 0)) + 1
        return self.store[key]

    async def expire(self, key, seconds):
        self.ttl[key] = seconds
        return True


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(db_engine):
    session_factory = async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """
    Sessions on a file-backed database, each with its own connection, for
    tests that interleave two callers.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shared.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def fake_redis():
    return FakeRedis()


async def create_doer(db: AsyncSession, email: str, **activation_flags) -> Doer:
    profile = Profile(email=email, full_name=email.split("@")[0].title(), role="doer")
    db.add(profile)
    await db.flush()
    doer = Doer(profile_id=profile.id)
    db.add(doer)
    await db.flush()
    db.add(DoerActivation(doer_id=doer.id, **activation_flags))
    await db.commit()
    return doer


async def create_supervisor(db: AsyncSession, email: str) -> Supervisor:
    profile = Profile(email=email, role="supervisor")
    db.add(profile)
    await db.flush()
    supervisor = Supervisor(profile_id=profile.id)
    db.add(supervisor)
    await db.commit()
    return supervisor


async def create_project(db: AsyncSession, title: str, **kwargs) -> Project:
    kwargs.setdefault("status", "paid")
    kwargs.setdefault("deadline", NOW + timedelta(days=3))
    project = Project(title=title, **kwargs)
    db.add(project)
    await db.commit()
    return project


@pytest_asyncio.fixture
async def doer(db):
    return await create_doer(db, "alice@example.com")


@pytest_asyncio.fixture
async def other_doer(db):
    return await create_doer(db, "bob@example.com")


@pytest_asyncio.fixture
async def trained_doer(db):
    return await create_doer(db, "carol@example.com", training_completed=True, training_completed_at=NOW)


@pytest_asyncio.fixture
async def activated_doer(db):
    return await create_doer(db, "dave@example.com", **ACTIVATED_FLAGS)


@pytest_asyncio.fixture
async def supervisor(db):
    return await create_supervisor(db, "sam@example.com")


@pytest_asyncio.fixture
async def training_modules(db):
    modules = [
        TrainingModule(title="Platform Basics", sequence_order=1, is_mandatory=True),
        TrainingModule(title="Quality Standards", sequence_order=2, is_mandatory=True),
        TrainingModule(title="Getting Paid", sequence_order=3, is_mandatory=False),
    ]
    db.add_all(modules)
    await db.commit()
    return modules


@pytest_asyncio.fixture
async def quiz_questions(db):
    """Five questions; option 1 is always correct, question 5 also accepts option 2."""
    questions = []
    for number in range(1, 6):
        questions.append(QuizQuestion(
            target_role="doer",
            question_text=f"Question {number}?",
            options=[{"id": 1, "label": "Right"}, {"id": 2, "label": "Maybe"}, {"id": 3, "label": "Wrong"}],
            correct_option_ids=[1, 2] if number == 5 else [1],
            sequence_order=number,
        ))
    db.add_all(questions)
    await db.commit()
    return questions


def all_correct(questions):
    return {question.id: 1 for question in questions}
