"""Shared pytest fixtures for the document search engine."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from docsearch.core.config import Settings
from docsearch.core.container import ServiceContainer, build_container
from docsearch.core.scoring_config import ScoringConfig
from docsearch.domain.entities import SearchableDocument
from docsearch.infrastructure.persistence import (
    InMemoryDocumentStore,
    InMemoryEmbeddingRepository,
    InMemorySimilarityRepository,
)
from tests.mocks.fake_services import FakeEmbeddingProvider

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_document(document_id: str, title: str, **overrides) -> SearchableDocument:
    """Build a searchable document with sensible defaults."""
    values = {
        "id": document_id,
        "title": title,
        "description": overrides.pop("description", f"About {title}"),
        "created_at": overrides.pop("created_at", BASE_TIME),
    }
    values.update(overrides)
    return SearchableDocument(**values)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(_env_file=None, ENVIRONMENT="test", OPENAI_API_KEY=None, EMBEDDING_DIMENSION=8)


@pytest.fixture
def scoring(settings) -> ScoringConfig:
    return ScoringConfig.from_settings(settings)


@pytest.fixture
def corpus() -> List[SearchableDocument]:
    """Small corpus covering tags, categories and approval states."""
    return [
        make_document(
            "doc-react",
            "ReactJS Tutorial for Beginners",
            description="Learn React hooks and components step by step",
            summary="A beginner friendly React guide",
            tags=["javascript", "react"],
            category_id="cat-web",
            parent_category_id="cat-tech",
            language="en",
            average_rating=4.5,
            download_count=120,
            view_count=900,
            created_at=BASE_TIME + timedelta(days=3),
        ),
        make_document(
            "doc-python",
            "Python Data Analysis",
            description="Pandas and numpy for tabular data",
            tags=["python", "data"],
            category_id="cat-data",
            language="en",
            average_rating=4.0,
            download_count=300,
            view_count=400,
            created_at=BASE_TIME + timedelta(days=2),
        ),
        make_document(
            "doc-cooking",
            "Italian Cooking Basics",
            description="Pasta, sauces and regional recipes",
            tags=["food"],
            category_id="cat-life",
            language="it",
            average_rating=3.0,
            download_count=50,
            view_count=1000,
            created_at=BASE_TIME + timedelta(days=1),
        ),
        make_document(
            "doc-hidden",
            "ReactJS Internals",
            description="Unreviewed React notes",
            tags=["react"],
            is_approved=False,
            created_at=BASE_TIME,
        ),
    ]


@pytest.fixture
def fake_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider(dimension=8)


@pytest.fixture
async def container(settings, corpus, fake_provider) -> AsyncIterator[ServiceContainer]:
    """Fully wired container over in-memory adapters and a fake embedding provider."""
    services = build_container(
        settings,
        document_store=InMemoryDocumentStore(corpus),
        embedding_repository=InMemoryEmbeddingRepository(),
        similarity_repository=InMemorySimilarityRepository(),
        embedding_provider=fake_provider,
    )
    try:
        yield services
    finally:
        await services.task_manager.shutdown()
