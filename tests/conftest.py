# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (pure functions, no database)
- Integration tests (services and HTTP against an async SQLAlchemy engine)

The engine comes from TEST_DATABASE_URL and defaults to in-memory SQLite
through aiosqlite, so the suite runs without external services.
"""

import os

# Must be set before src.* modules read settings at import time.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.domains.access import GlobalRole, OrgRole, Principal
from src.infrastructure.database.models import (
    Base,
    Classroom,
    ClassroomEnrollment,
    Member,
    Organization,
    Parent,
    Question,
    Quiz,
    Student,
    Teacher,
    User,
)

DEFAULT_TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (uses a database)"
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def database_url() -> str:
    """Get database URL for tests."""
    return os.environ.get("TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)


@pytest_asyncio.fixture(scope="function")
async def db_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create an async engine with a fresh schema."""
    if database_url.startswith("sqlite"):
        engine = create_async_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for service tests."""
    async with session_factory() as session:
        yield session


# =============================================================================
# Seed Helpers
# =============================================================================


class Seeder:
    """Inserts rows directly, bypassing services and permission checks."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def _save(self, obj: Any) -> Any:
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def user(
        self,
        name: str | None = None,
        email: str | None = None,
        role: GlobalRole = GlobalRole.MEMBER,
    ) -> User:
        n = self._next()
        return await self._save(
            User(
                name=name or f"User {n}",
                email=email or f"user{n}@example.com",
                password_hash="not-a-real-hash",
                role=role.value,
            )
        )

    async def organization(self, name: str | None = None) -> Organization:
        n = self._next()
        name = name or f"School {n}"
        return await self._save(Organization(name=name, slug=f"school-{n}"))

    async def member(
        self,
        user: User,
        organization: Organization,
        role: OrgRole = OrgRole.MEMBER,
    ) -> Member:
        return await self._save(
            Member(user_id=user.id, organization_id=organization.id, role=role.value)
        )

    async def user_in(
        self,
        organization: Organization,
        role: OrgRole = OrgRole.MEMBER,
        **kwargs: Any,
    ) -> User:
        user = await self.user(**kwargs)
        await self.member(user, organization, role)
        return user

    async def teacher(self, organization: Organization, user: User | None = None) -> Teacher:
        user = user or await self.user_in(organization)
        return await self._save(
            Teacher(user_id=user.id, organization_id=organization.id, subjects=["Math"])
        )

    async def student(
        self,
        organization: Organization,
        user: User | None = None,
        grade: str = "5",
    ) -> Student:
        user = user or await self.user_in(organization)
        return await self._save(
            Student(user_id=user.id, organization_id=organization.id, grade=grade)
        )

    async def parent(self, organization: Organization, user: User | None = None) -> Parent:
        user = user or await self.user_in(organization)
        return await self._save(
            Parent(user_id=user.id, organization_id=organization.id, relation="Mother")
        )

    async def classroom(
        self,
        organization: Organization,
        teacher: Teacher | None = None,
        name: str | None = None,
        capacity: int | None = None,
    ) -> Classroom:
        teacher = teacher or await self.teacher(organization)
        return await self._save(
            Classroom(
                organization_id=organization.id,
                teacher_id=teacher.id,
                name=name or f"Class {self._next()}",
                grade="5",
                subject="Math",
                capacity=capacity,
            )
        )

    async def enroll(self, classroom: Classroom, student: Student) -> ClassroomEnrollment:
        return await self._save(
            ClassroomEnrollment(classroom_id=classroom.id, student_id=student.id)
        )

    async def quiz(
        self,
        organization: Organization,
        title: str | None = None,
        is_active: bool = True,
    ) -> Quiz:
        return await self._save(
            Quiz(
                organization_id=organization.id,
                title=title or f"Quiz {self._next()}",
                is_active=is_active,
            )
        )

    async def question(
        self,
        quiz: Quiz,
        correct_answer: str,
        options: list[str] | None = None,
        position: int = 0,
    ) -> Question:
        return await self._save(
            Question(
                quiz_id=quiz.id,
                text=f"Question {self._next()}",
                options=options or [correct_answer, "wrong"],
                correct_answer=correct_answer,
                position=position,
            )
        )


@pytest.fixture
def seed(db_session: AsyncSession) -> Seeder:
    return Seeder(db_session)


def as_principal(user: User) -> Principal:
    """Build the caller identity the session resolver would produce."""
    return Principal(
        id=user.id,
        email=user.email,
        name=user.name,
        role=GlobalRole(user.role),
    )


@pytest.fixture
def principal():
    return as_principal


# =============================================================================
# HTTP Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test database."""
    from src.api.app import create_app
    from src.api.dependencies import get_db, get_password_hasher
    from src.domains.auth.password import PasswordHasher

    app = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_password_hasher] = lambda: PasswordHasher(rounds=4)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
