# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the migration runner.

Runs against a throwaway SQLite file so no server is needed.
"""

import json
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from src.api.routes import health
from src.infrastructure.database.migrations.runner import (
    MIGRATIONS,
    pending_revisions,
    plan_revisions,
    run_migrations,
)
from src.infrastructure.database.models import Base

pytestmark = pytest.mark.integration


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'migrations.db'}"


@pytest_asyncio.fixture
async def file_engine(sqlite_url: str) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(sqlite_url)
    yield engine
    await engine.dispose()


class TestPlanRevisions:
    """Tests for plan_revisions."""

    def test_fresh_schema_plans_everything(self) -> None:
        assert plan_revisions(None) == MIGRATIONS

    def test_latest_schema_plans_nothing(self) -> None:
        assert plan_revisions(MIGRATIONS[-1]) == []

    def test_unknown_revisions_plan_nothing(self) -> None:
        assert plan_revisions("999_from_the_future") == []
        assert plan_revisions(None, "999_missing") == []


class TestRunMigrations:
    """Tests for run_migrations."""

    @pytest.mark.asyncio
    async def test_fresh_database_gets_every_table(
        self, sqlite_url: str, file_engine: AsyncEngine
    ) -> None:
        applied = await run_migrations(sqlite_url)

        async with file_engine.connect() as conn:
            tables = await conn.run_sync(lambda c: set(inspect(c).get_table_names()))

        assert applied == MIGRATIONS
        assert set(Base.metadata.tables) <= tables
        assert "alembic_version" in tables

    @pytest.mark.asyncio
    async def test_second_run_is_a_no_op(
        self, sqlite_url: str, file_engine: AsyncEngine
    ) -> None:
        await run_migrations(sqlite_url)

        assert await run_migrations(sqlite_url) == []
        async with file_engine.connect() as conn:
            assert await pending_revisions(conn) == []

    @pytest.mark.asyncio
    async def test_unknown_target_applies_nothing(self, sqlite_url: str) -> None:
        assert await run_migrations(sqlite_url, target_revision="999_missing") == []


class TestReadinessMigrations:
    """Tests for the migration check behind /health/ready."""

    @pytest.mark.asyncio
    async def test_unmigrated_schema_is_not_ready(
        self, file_engine: AsyncEngine, monkeypatch
    ) -> None:
        monkeypatch.setattr(health, "get_engine", lambda: file_engine)

        response = await health.readiness_check()
        body = json.loads(response.body)

        assert response.status_code == 503
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["migrations"] == {
            "status": "pending",
            "message": ", ".join(MIGRATIONS),
        }

    @pytest.mark.asyncio
    async def test_migrated_schema_is_ready(
        self, sqlite_url: str, file_engine: AsyncEngine, monkeypatch
    ) -> None:
        await run_migrations(sqlite_url)
        monkeypatch.setattr(health, "get_engine", lambda: file_engine)

        response = await health.readiness_check()
        body = json.loads(response.body)

        assert response.status_code == 200
        assert body["ready"] is True
        assert body["checks"]["migrations"]["status"] == "healthy"
