"""
Tests for the job stores. Both backends must honour the same contract.
"""
import asyncio

import pytest

from app.db import MemoryJobStore, SqlJobStore, build_job_store
from app.errors import JobStateError
from app.models import JobStatus

from conftest import POST_URL


@pytest.fixture(params=["memory", "sql"])
async def job_store(request, tmp_path):
    if request.param == "memory":
        yield MemoryJobStore()
        return
    store = SqlJobStore(f"sqlite+aiosqlite:///{tmp_path / 'jobs.db'}")
    await store.init()
    yield store
    await store.close()


class TestJobStoreContract:

    async def test_create_starts_pending_with_empty_results(self, job_store):
        job = await job_store.create(POST_URL)

        assert job.id == 1
        assert job.status == JobStatus.PENDING
        assert job.post_url == POST_URL
        assert job.comment_count is None and job.json_data is None and job.text_data is None
        assert job.error is None and job.completed_at is None
        assert job.created_at is not None

    async def test_ids_increase_monotonically(self, job_store):
        ids = [(await job_store.create(POST_URL)).id for _ in range(3)]

        assert ids == [1, 2, 3]

    async def test_get_unknown_returns_none(self, job_store):
        assert await job_store.get(999) is None

    async def test_update_unknown_returns_none(self, job_store):
        assert await job_store.update(999, status=JobStatus.PROCESSING) is None

    async def test_update_merges_fields(self, job_store):
        job = await job_store.create(POST_URL)

        await job_store.update(job.id, status=JobStatus.PROCESSING)
        updated = await job_store.update(
            job.id, status=JobStatus.COMPLETED, comment_count=2,
            json_data={"total_comments": 2}, text_data="txt",
        )

        assert updated.status == JobStatus.COMPLETED
        assert updated.comment_count == 2
        assert updated.json_data == {"total_comments": 2}
        assert updated.post_url == POST_URL
        assert (await job_store.get(job.id)).text_data == "txt"

    async def test_terminal_job_cannot_change(self, job_store):
        job = await job_store.create(POST_URL)
        await job_store.update(job.id, status=JobStatus.FAILED, error="boom")

        with pytest.raises(JobStateError):
            await job_store.update(job.id, status=JobStatus.COMPLETED)

        assert (await job_store.get(job.id)).error == "boom"

    async def test_unknown_field_is_rejected(self, job_store):
        job = await job_store.create(POST_URL)

        with pytest.raises(ValueError):
            await job_store.update(job.id, post_url="https://elsewhere")

    async def test_concurrent_jobs_do_not_interfere(self, job_store):
        async def run(n):
            job = await job_store.create(f"{POST_URL}?n={n}")
            await job_store.update(job.id, status=JobStatus.PROCESSING)
            await asyncio.sleep(0)
            return await job_store.update(job.id, status=JobStatus.COMPLETED, comment_count=n)

        results = await asyncio.gather(*(run(n) for n in range(5)))

        for job in results:
            assert job.post_url.endswith(f"?n={job.comment_count}")
            assert job.status == JobStatus.COMPLETED


class TestMemoryJobStore:

    async def test_returned_jobs_are_copies(self):
        store = MemoryJobStore()
        job = await store.create(POST_URL)

        job.status = JobStatus.COMPLETED

        assert (await store.get(job.id)).status == JobStatus.PENDING


class TestBuildJobStore:

    def test_memory_is_default_kind(self):
        assert isinstance(build_job_store(kind="memory"), MemoryJobStore)

    def test_sql_kind(self, tmp_path):
        store = build_job_store(f"sqlite+aiosqlite:///{tmp_path / 'x.db'}", kind="sql")

        assert isinstance(store, SqlJobStore)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            build_job_store(kind="redis")
