"""
Pytest fixtures for form engine testing.

This module provides:
1. Database fixtures (in-memory SQLite through aiosqlite, ORM metadata
   created per test)
2. Sample form schema documents
3. Settings overrides for the draft/version store
"""

from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from formengine.config import Settings
from formengine.models.contracts.forms import FormSchema
from formengine.models.orm import Base

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ==================== DATABASE ====================


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database with all tables for a single test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()

    await engine.dispose()


@pytest.fixture
def store_settings() -> Settings:
    """Settings with automatic pruning disabled so history is fully visible."""
    return Settings(
        environment="testing",
        auto_prune_versions=False,
        version_retention_count=10,
        draft_retention_days=30,
    )


# ==================== SCHEMAS ====================


@pytest.fixture
def two_step_document() -> dict[str, Any]:
    """Structural schema: contact step (required name) then details step."""
    return {
        "version": "1",
        "steps": [
            {
                "id": "contact",
                "title": "Contact",
                "fields": [
                    {
                        "id": "f-name",
                        "name": "name",
                        "type": "text",
                        "label": "Business name",
                        "required": True,
                    },
                    {
                        "id": "f-email",
                        "name": "email",
                        "type": "email",
                        "label": "Email",
                    },
                ],
            },
            {
                "id": "details",
                "title": "Details",
                "fields": [
                    {"id": "f-intro", "name": "intro", "type": "heading", "label": "About you"},
                    {
                        "id": "f-industry",
                        "name": "industry",
                        "type": "select",
                        "label": "Industry",
                        "required": True,
                        "options": [
                            {"value": "retail", "label": "Retail"},
                            {"value": "health", "label": "Healthcare"},
                        ],
                    },
                    {
                        "id": "f-newsletter",
                        "name": "newsletter",
                        "type": "checkbox",
                        "label": "Subscribe",
                    },
                ],
            },
        ],
    }


@pytest.fixture
def two_step_schema(two_step_document) -> FormSchema:
    return FormSchema.model_validate(two_step_document)


@pytest.fixture
def three_step_schema() -> FormSchema:
    """Three single-field steps, every field required."""
    return FormSchema.model_validate({
        "steps": [
            {
                "id": f"step-{i}",
                "title": f"Step {i}",
                "fields": [
                    {"id": f"f-{i}", "name": f"answer_{i}", "type": "text", "required": True}
                ],
            }
            for i in range(3)
        ]
    })
