"""Tests for embedding model consistency and regeneration."""

import asyncio

import pytest

from docsearch.application.embedding.embedding_migration import EmbeddingMigrationService
from docsearch.domain.entities import EmbeddingRecord
from docsearch.domain.exceptions import ConcurrencyError
from docsearch.infrastructure.ai.embedding_cache import EmbeddingCache
from docsearch.infrastructure.ai.embedding_service import EmbeddingService
from docsearch.infrastructure.persistence import InMemoryDocumentStore, InMemoryEmbeddingRepository
from docsearch.infrastructure.task_manager import TaskManager
from tests.conftest import make_document
from tests.mocks.fake_services import FakeEmbeddingProvider, SlowEmbeddingProvider


@pytest.fixture
def store():
    return InMemoryDocumentStore([make_document(f"d{i}", f"Document {i}") for i in range(1, 4)])


@pytest.fixture
async def repository():
    repo = InMemoryEmbeddingRepository()
    await repo.save(EmbeddingRecord(document_id="d1", vector=[1.0, 0.0], model_version="fake-v1"))
    await repo.save(EmbeddingRecord(document_id="d2", vector=[1.0, 0.0], model_version="old-model"))
    return repo


@pytest.fixture
def provider():
    return FakeEmbeddingProvider(dimension=4)


@pytest.fixture
async def task_manager():
    manager = TaskManager()
    yield manager
    await manager.shutdown()


@pytest.fixture
def migration_service(store, repository, provider, task_manager):
    embedding_service = EmbeddingService(provider, EmbeddingCache(), repository)
    return EmbeddingMigrationService(
        store, repository, embedding_service, task_manager, batch_size=2, batch_delay_seconds=0
    )


class TestConsistency:

    @pytest.mark.asyncio
    async def test_reports_outdated_embeddings(self, migration_service):
        report = await migration_service.check_model_consistency()

        assert report.total_embeddings == 2
        assert report.outdated_embeddings == 1
        assert report.current_model == "fake-v1"
        assert report.models_found == {"fake-v1": 1, "old-model": 1}
        assert report.regeneration_required


class TestRegeneration:

    @pytest.mark.asyncio
    async def test_missing_and_stale_records_are_regenerated(self, migration_service, repository, provider):
        progress = await migration_service.run_regeneration()

        assert progress.total == 2
        assert progress.processed == 2
        assert progress.failed == 0
        assert progress.percentage == 100.0
        assert not progress.is_running
        assert (await repository.get("d2")).model_version == "fake-v1"
        assert (await repository.get("d3")) is not None
        assert (await migration_service.check_model_consistency()).outdated_embeddings == 0

    @pytest.mark.asyncio
    async def test_force_regenerates_everything(self, migration_service):
        progress = await migration_service.run_regeneration(force=True)

        assert progress.total == 3
        assert progress.processed == 3

    @pytest.mark.asyncio
    async def test_partial_run(self, migration_service, repository):
        progress = await migration_service.run_regeneration(document_ids=["d2", "d2"])

        assert progress.total == 1
        assert (await repository.get("d3")) is None

    @pytest.mark.asyncio
    async def test_failures_are_counted(self, migration_service):
        progress = await migration_service.run_regeneration(document_ids=["d3", "ghost"])

        assert progress.processed == 1
        assert progress.failed == 1
        assert progress.percentage == 100.0

    @pytest.mark.asyncio
    async def test_background_run(self, migration_service, task_manager):
        started = await migration_service.start_regeneration()
        assert started.is_running

        await task_manager.wait_for_subject("embeddings")

        progress = await migration_service.get_progress()
        assert progress.processed == 2
        assert not progress.is_running

    @pytest.mark.asyncio
    async def test_migrate_if_needed(self, migration_service, task_manager):
        assert await migration_service.migrate_if_needed() is not None
        await task_manager.wait_for_subject("embeddings")

        assert await migration_service.migrate_if_needed() is None


class TestConcurrency:

    @pytest.fixture
    def provider(self):
        return SlowEmbeddingProvider(delay_seconds=0.5, dimension=4)

    @pytest.mark.asyncio
    async def test_only_one_run_at_a_time(self, migration_service):
        await migration_service.start_regeneration(force=True)

        with pytest.raises(ConcurrencyError):
            await migration_service.start_regeneration()

        assert await migration_service.cancel_regeneration() is True

    @pytest.mark.asyncio
    async def test_cancel_keeps_counts(self, migration_service):
        await migration_service.start_regeneration(force=True)
        await asyncio.sleep(0.05)

        assert await migration_service.cancel_regeneration() is True

        progress = await migration_service.get_progress()
        assert progress.cancelled
        assert not progress.is_running
        assert progress.processed < progress.total

    @pytest.mark.asyncio
    async def test_cancel_before_first_step_allows_restart(self, migration_service):
        await migration_service.start_regeneration(force=True)

        assert await migration_service.cancel_regeneration() is True

        progress = await migration_service.get_progress()
        assert progress.cancelled
        assert not progress.is_running
        assert progress.finished_at is not None

        restarted = await migration_service.start_regeneration(force=True)
        assert restarted.is_running
        assert await migration_service.cancel_regeneration() is True

    @pytest.mark.asyncio
    async def test_cancel_without_run(self, migration_service):
        assert await migration_service.cancel_regeneration() is False
