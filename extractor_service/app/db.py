import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Integer, Text, DateTime, JSON

from .config import settings, DATABASE_PATH
from .errors import JobStateError
from .models import ExtractionJob, JobStatus, TERMINAL_STATUSES

logger = logging.getLogger(__name__)

JOB_FIELDS = ("status", "comment_count", "json_data", "text_data", "error", "completed_at")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStore(ABC):
    """create/get/update contract shared by every job backend."""

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def create(self, post_url: str) -> ExtractionJob: ...

    @abstractmethod
    async def get(self, job_id: int) -> Optional[ExtractionJob]: ...

    @abstractmethod
    async def update(self, job_id: int, **fields: Any) -> Optional[ExtractionJob]: ...


def _check_fields(fields: dict) -> None:
    unknown = set(fields) - set(JOB_FIELDS)
    if unknown:
        raise ValueError(f"Unknown job fields: {sorted(unknown)}")


# ── In-memory ────────────────────────────────────────────────────────

class MemoryJobStore(JobStore):
    """
    Process-local job map with an incrementing id.

    No method awaits between reading and writing a record, so coroutines
    working on different jobs never see each other's half-applied changes.
    """

    def __init__(self):
        self._jobs: dict[int, ExtractionJob] = {}
        self._next_id = 1

    async def create(self, post_url: str) -> ExtractionJob:
        job = ExtractionJob(id=self._next_id, post_url=post_url, created_at=utcnow())
        self._next_id += 1
        self._jobs[job.id] = job
        logger.debug(f"[Jobs] Created job {job.id} for {post_url}")
        return job.model_copy(deep=True)

    async def get(self, job_id: int) -> Optional[ExtractionJob]:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    async def update(self, job_id: int, **fields: Any) -> Optional[ExtractionJob]:
        _check_fields(fields)
        job = self._jobs.get(job_id)
        if job is None:
            return None
        if job.is_terminal:
            raise JobStateError(f"Job {job_id} already {job.status.value}")

        updated = job.model_copy(update=fields, deep=True)
        self._jobs[job_id] = updated
        return updated.model_copy(deep=True)


# ── SQL (SQLAlchemy async) ───────────────────────────────────────────

class Base(DeclarativeBase):
    pass

class JobRow(Base):
    __tablename__ = "extraction_jobs"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_url: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String, default=JobStatus.PENDING.value)
    comment_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    json_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    text_data: Mapped[str | None] = mapped_column(Text, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def to_job(self) -> ExtractionJob:
        return ExtractionJob(
            id=self.id,
            post_url=self.post_url,
            status=JobStatus(self.status),
            comment_count=self.comment_count,
            json_data=self.json_data,
            text_data=self.text_data,
            error=self.error,
            created_at=self.created_at,
            completed_at=self.completed_at,
        )


class SqlJobStore(JobStore):
    def __init__(self, database_url: str):
        self.engine = create_async_engine(database_url, echo=False)
        self.sessions = async_sessionmaker(self.engine, expire_on_commit=False)

    async def init(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    async def create(self, post_url: str) -> ExtractionJob:
        async with self.sessions() as session:
            row = JobRow(post_url=post_url, status=JobStatus.PENDING.value, created_at=utcnow())
            session.add(row)
            await session.commit()
            logger.debug(f"[Jobs] Created job {row.id} for {post_url}")
            return row.to_job()

    async def get(self, job_id: int) -> Optional[ExtractionJob]:
        async with self.sessions() as session:
            row = await session.get(JobRow, job_id)
            return row.to_job() if row else None

    async def update(self, job_id: int, **fields: Any) -> Optional[ExtractionJob]:
        _check_fields(fields)
        async with self.sessions() as session:
            row = await session.get(JobRow, job_id)
            if row is None:
                return None
            if row.status in {s.value for s in TERMINAL_STATUSES}:
                raise JobStateError(f"Job {job_id} already {row.status}")

            for key, value in fields.items():
                if isinstance(value, JobStatus):
                    value = value.value
                setattr(row, key, value)
            await session.commit()
            return row.to_job()


def build_job_store(database_url: Optional[str] = None, kind: Optional[str] = None) -> JobStore:
    kind = kind or settings.JOB_STORE
    if kind == "memory":
        return MemoryJobStore()
    if kind == "sql":
        url = database_url or settings.DATABASE_URL
        if url == settings.DATABASE_URL and url.endswith(str(DATABASE_PATH)):
            DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
        return SqlJobStore(url)
    raise ValueError(f"Unknown JOB_STORE '{kind}' (expected 'memory' or 'sql')")
