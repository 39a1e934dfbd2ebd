"""
pipeline.py: one extraction, start to finish.
Creates the job, fetches from Reddit, flattens, renders both payloads and
stores them on the job. Updates job status at each stage.
"""
import logging

from pydantic import ValidationError

from .db import JobStore, utcnow
from .errors import FetchError, InvalidRequestError
from .flattener import flatten_comments
from .models import ExtractionSummary, JobStatus, RedditCredentials
from .scrapers.reddit_client import RedditClient, parse_post_url
from .text_formatter import format_as_text

logger = logging.getLogger(__name__)


def _check_credentials(credentials: RedditCredentials) -> None:
    for name in ("client_id", "client_secret", "username"):
        if not getattr(credentials, name, "").strip():
            raise InvalidRequestError(f"{name} is required")


class ExtractionPipeline:
    def __init__(self, store: JobStore, reddit: RedditClient):
        self.store = store
        self.reddit = reddit

    async def extract(self, post_url: str, credentials: RedditCredentials) -> ExtractionSummary:
        """
        Stages:
          0. Validate URL + credentials (no job on failure)
          1. Job created (pending) and moved to processing
          2. Token exchange
          3. Comment fetch
          4. Flatten + render JSON and text
          5. Job completed

        Any failure after the job exists marks it failed, then re-raises.
        """
        subreddit, post_id = parse_post_url(post_url)
        _check_credentials(credentials)

        job = await self.store.create(post_url)
        await self.store.update(job.id, status=JobStatus.PROCESSING)
        logger.info(f"[Extract] Job {job.id}: r/{subreddit} post {post_id}")

        try:
            token = await self.reddit.get_access_token(credentials)
            post, children = await self.reddit.fetch_post_and_comments(
                subreddit, post_id, token, username=credentials.username
            )

            try:
                comments = flatten_comments(children)
            except ValidationError as e:
                raise FetchError("Unexpected Reddit API response format: bad comment data") from e
            json_data = {
                "post": post.model_dump(),
                "comments": [c.model_dump() for c in comments],
                "extracted_at": utcnow().isoformat(),
                "total_comments": len(comments),
            }
            text_data = format_as_text(post, comments)
        except Exception as e:
            logger.warning(f"[Extract] Job {job.id} failed: {e}")
            await self.store.update(
                job.id,
                status=JobStatus.FAILED,
                error=str(e),
                completed_at=utcnow(),
            )
            raise

        await self.store.update(
            job.id,
            status=JobStatus.COMPLETED,
            comment_count=len(comments),
            json_data=json_data,
            text_data=text_data,
            completed_at=utcnow(),
        )
        logger.info(f"[Extract] Job {job.id} complete: {len(comments)} comments from '{post.title}'")

        return ExtractionSummary(job_id=job.id, comment_count=len(comments), post_title=post.title)

    async def validate_credentials(self, credentials: RedditCredentials) -> None:
        """Raises AuthenticationError if Reddit rejects the credentials."""
        _check_credentials(credentials)
        await self.reddit.get_access_token(credentials)
