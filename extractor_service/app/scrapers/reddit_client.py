import logging
import re
from typing import Any, Optional
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from ..config import settings
from ..errors import AuthenticationError, FetchError, InvalidRequestError
from ..models import RedditCredentials, RedditPost

logger = logging.getLogger(__name__)

POST_PATH_RE = re.compile(r"/r/(\w+)/comments/(\w+)")


def parse_post_url(post_url: str) -> tuple[str, str]:
    """Return (subreddit, post_id) for a Reddit post URL, or raise InvalidRequestError."""
    parsed = urlparse((post_url or "").strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidRequestError("Must be a valid URL")

    match = POST_PATH_RE.search(parsed.path)
    if not match:
        raise InvalidRequestError("Invalid Reddit post URL format")
    return match.group(1), match.group(2)


class RedditClient:
    """
    Talks to Reddit's OAuth API: one token exchange and one comment-listing
    call per extraction. No retries; a failed call surfaces straight away.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: Optional[float] = None):
        self.transport = transport
        self.timeout = timeout or settings.REDDIT_TIMEOUT_SECONDS

    def _client(self, username: str) -> httpx.AsyncClient:
        headers = {"User-Agent": settings.REDDIT_USER_AGENT.format(username=username)}
        return httpx.AsyncClient(transport=self.transport, headers=headers, timeout=self.timeout)

    async def get_access_token(self, credentials: RedditCredentials) -> str:
        try:
            async with self._client(credentials.username) as client:
                resp = await client.post(
                    settings.REDDIT_AUTH_URL,
                    auth=(credentials.client_id, credentials.client_secret),
                    data={"grant_type": "client_credentials"},
                )
        except httpx.HTTPError as e:
            logger.warning(f"[Reddit] Token request failed: {e}")
            raise AuthenticationError(f"Failed to get access token: {e}") from e

        if resp.status_code != 200:
            raise AuthenticationError(
                f"Failed to get access token: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        try:
            token = resp.json().get("access_token")
        except (ValueError, AttributeError):
            token = None
        if not token:
            # Reddit answers 200 with {"error": ...} for some bad credentials
            raise AuthenticationError("Failed to get access token: no access_token in response", status_code=resp.status_code)
        return token

    async def fetch_post_and_comments(
        self, subreddit: str, post_id: str, token: str, username: str = "anonymous"
    ) -> tuple[RedditPost, list[Any]]:
        url = f"{settings.REDDIT_API_BASE}/r/{subreddit}/comments/{post_id}.json"
        try:
            async with self._client(username) as client:
                resp = await client.get(url, headers={"Authorization": f"bearer {token}"})
        except httpx.HTTPError as e:
            logger.warning(f"[Reddit] Comment request failed for {subreddit}/{post_id}: {e}")
            raise FetchError(f"Failed to fetch Reddit data: {e}") from e

        if resp.status_code != 200:
            raise FetchError(
                f"Failed to fetch Reddit data: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise FetchError("Unexpected Reddit API response format: body is not JSON") from e

        return parse_listing(data)


def parse_listing(data: Any) -> tuple[RedditPost, list[Any]]:
    """Split Reddit's [post listing, comment listing] pair into a post and its raw children."""
    if not isinstance(data, list) or len(data) < 2:
        raise FetchError("Unexpected Reddit API response format")

    try:
        post_data = data[0]["data"]["children"][0]["data"]
        children = data[1]["data"]["children"]
    except (KeyError, IndexError, TypeError) as e:
        raise FetchError("Unexpected Reddit API response format: missing post data") from e

    if not isinstance(post_data, dict) or not isinstance(children, list):
        raise FetchError("Unexpected Reddit API response format: missing post data")

    try:
        post = RedditPost(
            title=post_data.get("title") or "",
            author=post_data.get("author") or "[deleted]",
            url=post_data.get("url") or "",
            score=post_data.get("score") or 0,
            num_comments=post_data.get("num_comments") or 0,
            created_utc=post_data.get("created_utc"),
        )
    except ValidationError as e:
        raise FetchError("Unexpected Reddit API response format: bad post data") from e
    return post, children
