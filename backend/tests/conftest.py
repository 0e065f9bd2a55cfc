"""
Ember Ascent - Test Configuration
Pytest fixtures and configuration for testing
"""
import json
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ember_ascent.ai.core.llm import LLMResponse, get_llm_client
from ember_ascent.core.database import Base, get_db, get_session_factory
from ember_ascent.core.security import create_access_token, get_password_hash
from ember_ascent.main import app
from ember_ascent.models.practice import PracticeSession, QuestionAttempt
from ember_ascent.models.question import Question
from ember_ascent.models.user import Child, Profile, User, utcnow

# In-memory SQLite shared by every session of one test
TEST_DATABASE_URL = "sqlite+aiosqlite://"

TEST_PASSWORD = "TestPass123!"

SAMPLE_EXPLANATIONS = {
    "stepByStep": "Step 1: Add the tens.\nStep 2: Add the ones.\nStep 3: Combine them.",
    "visualIllustration": "🟦🟦🟦 + 🟦🟦\n= 🟦🟦🟦🟦🟦",
    "workedExample": "Problem: 30 + 20\nSolution: 3 tens + 2 tens = 5 tens\nAnswer: 50",
}


class FakeLLMClient:
    """Stands in for LLMClient; records prompts and replays a canned reply."""

    def __init__(self, content: str, tokens: int = 420):
        self.content = content
        self.tokens = tokens
        self.error: Exception | None = None
        self.prompts: list[str] = []

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        agent_name: str = "LLMClient",
    ) -> LLMResponse:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return LLMResponse(
            content=self.content,
            model="fake-model",
            tokens_prompt=self.tokens - 100,
            tokens_completion=100,
            tokens_total=self.tokens,
        )


class Factory:
    """Seeds committed rows for API tests."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def user(
        self,
        email: str = "parent@example.com",
        tier: str = "free",
        role: str = "user",
        full_name: str | None = "Test Parent",
    ) -> User:
        user = User(email=email, hashed_password=get_password_hash(TEST_PASSWORD))
        self.db.add(user)
        await self.db.flush()
        self.db.add(Profile(
            id=user.id,
            email=email,
            full_name=full_name,
            role=role,
            subscription_tier=tier,
        ))
        await self.db.commit()
        return user

    async def admin(self, email: str = "admin@example.com", role: str = "admin") -> User:
        return await self.user(email=email, role=role, full_name="Support Admin")

    async def child(self, parent: User, name: str = "Amelia", year_group: int = 5) -> Child:
        child = Child(parent_id=parent.id, name=name, year_group=year_group)
        self.db.add(child)
        await self.db.commit()
        return child

    async def question(
        self,
        subject: str = "mathematics",
        topic: str = "Fractions",
        difficulty: str = "standard",
        correct_answer: str = "50",
        **fields: Any,
    ) -> Question:
        question = Question(
            subject=subject,
            topic=topic,
            difficulty=difficulty,
            year_group=5,
            question_text=fields.pop("question_text", f"A {topic} question"),
            correct_answer=correct_answer,
            **fields,
        )
        self.db.add(question)
        await self.db.commit()
        return question

    async def session(self, child: Child, started_at: datetime | None = None) -> PracticeSession:
        session = PracticeSession(child_id=child.id, started_at=started_at or utcnow())
        self.db.add(session)
        await self.db.commit()
        return session

    async def attempts(
        self,
        child: Child,
        question: Question,
        correct: int,
        incorrect: int,
        when: datetime | None = None,
        time_taken: int | None = 30,
        session: PracticeSession | None = None,
    ) -> None:
        """Add ``correct`` right answers then ``incorrect`` wrong ones, a second apart."""
        when = when or utcnow() - timedelta(hours=1)
        outcomes = [True] * correct + [False] * incorrect
        for i, is_correct in enumerate(outcomes):
            self.db.add(QuestionAttempt(
                session_id=session.id if session else None,
                child_id=child.id,
                question_id=question.id,
                selected_answer=question.correct_answer if is_correct else "wrong",
                is_correct=is_correct,
                time_taken_seconds=time_taken,
                created_at=when + timedelta(seconds=i),
            ))
        await self.db.commit()

    @staticmethod
    def headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}


@pytest_asyncio.fixture(scope="function")
async def session_maker() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Fresh in-memory database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def factory(db_session: AsyncSession) -> Factory:
    return Factory(db_session)


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient(json.dumps(SAMPLE_EXPLANATIONS))


@pytest_asyncio.fixture(scope="function")
async def client(
    session_maker: async_sessionmaker[AsyncSession],
    fake_llm: FakeLLMClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database, session factory and LLM overrides."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_maker
    app.dependency_overrides[get_llm_client] = lambda: fake_llm

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def sample_user_data() -> dict[str, Any]:
    """Sample user registration data."""
    return {
        "email": "test@example.com",
        "password": TEST_PASSWORD,
        "full_name": "Test User",
    }
