"""Shared fixtures: a scripted LLM client, a temporary SQLite database and an API client."""
from __future__ import annotations

import asyncio
import json
import os

# Configure before any application module reads settings
os.environ["DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.pop("OPENAI_API_KEY", None)
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from ai.enrollment import enrollment_cache
from ai.llm import Completion, LLMError, provide_llm_client
from ai.offer_letter import offer_letter_cache
from darpan import models
from darpan.api import app
from darpan.db import get_session

OFFER_LETTER_TEXT = """University of Melbourne
Letter of Offer

Dear Ms Priya Sharma,

We are pleased to offer you a place in the following course.

Program: Master of Data Science
Campus: Parkville, Melbourne VIC
Course Start Date: 24 February 2025
Duration: 2 years
Tuition fees: AUD 48,000 per year
Nationality: Indian
GPA: 3.6/4.0
CRICOS Provider Code: 00116K
"""


class FakeLLM:
    """Stands in for ``LLMClient``: returns scripted answers in order.

    A dict is sent back as JSON, a string as raw content, an exception is
    raised, and a coroutine function is awaited (for slow or hanging calls).
    """

    def __init__(self, *responses, tokens: int = 100):
        self.responses = list(responses)
        self.tokens = tokens
        self.calls: list[dict] = []

    async def complete_json(self, **kwargs) -> Completion:
        self.calls.append(kwargs)
        if not self.responses:
            raise LLMError("No scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = await response()
        content = response if isinstance(response, str) else json.dumps(response)
        return Completion(content=content, tokens_used=self.tokens)


async def hang():
    await asyncio.sleep(3600)


@pytest.fixture(autouse=True)
def clear_caches():
    offer_letter_cache.clear()
    enrollment_cache.clear()
    yield
    offer_letter_cache.clear()
    enrollment_cache.clear()


@pytest.fixture
def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def create_all():
        async with engine.begin() as conn:
            await conn.run_sync(models.Base.metadata.create_all)

    asyncio.run(create_all())
    yield async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    asyncio.run(engine.dispose())


@pytest.fixture
def run_db(session_factory):
    """Run ``fn(session)`` to completion in a fresh session and return its result."""

    def runner(fn):
        async def wrapped():
            async with session_factory() as session:
                return await fn(session)

        return asyncio.run(wrapped())

    return runner


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def client(session_factory, fake_llm):
    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[provide_llm_client] = lambda: fake_llm
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(run_db):
    def factory(username: str = "student", analysis_count: int = 0, max_analyses: int = 3) -> int:
        async def create(session):
            user = models.User(username=username, analysis_count=analysis_count, max_analyses=max_analyses)
            session.add(user)
            await session.commit()
            return user.id

        return run_db(create)

    return factory
