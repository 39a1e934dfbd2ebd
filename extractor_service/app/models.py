from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Any
from datetime import datetime
from enum import Enum

class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED)

# ── Reddit data ──────────────────────────────────────────────────────

class RedditPost(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    author: str
    url: str
    score: int = 0
    num_comments: int = 0
    created_utc: Optional[float] = None

class RedditComment(BaseModel):
    id: str
    parent_id: Optional[str] = None   # None => top-level
    author: str = "[deleted]"
    body: str
    score: int = 0
    created_utc: Optional[float] = None
    depth: int = 0

class RedditCredentials(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(alias="clientId", min_length=1)
    client_secret: str = Field(alias="clientSecret", min_length=1)
    username: str = Field(min_length=1)

# ── Jobs ─────────────────────────────────────────────────────────────

class ExtractionJob(BaseModel):
    id: int
    post_url: str
    status: JobStatus = JobStatus.PENDING
    comment_count: Optional[int] = None
    json_data: Optional[dict[str, Any]] = None
    text_data: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

class ExtractionSummary(BaseModel):
    job_id: int
    comment_count: int
    post_title: str

# ── HTTP request / response bodies (camelCase on the wire) ──────────

class ExtractRequest(RedditCredentials):
    post_url: str = Field(alias="postUrl", min_length=1)

    def credentials(self) -> RedditCredentials:
        return RedditCredentials(
            client_id=self.client_id,
            client_secret=self.client_secret,
            username=self.username,
        )

class ExtractResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    job_id: int = Field(alias="jobId")
    comment_count: int = Field(alias="commentCount")
    post_title: str = Field(alias="postTitle")

class ValidateResponse(BaseModel):
    valid: bool
    error: Optional[str] = None

class JobStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: int = Field(alias="jobId")
    post_url: str = Field(alias="postUrl")
    status: JobStatus
    comment_count: Optional[int] = Field(default=None, alias="commentCount")
    error: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")
