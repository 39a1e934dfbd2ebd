"""
Plain-text rendering of an extracted post, plus the download filename rule.
"""
import re
from datetime import datetime, timezone
from typing import Optional

from .config import settings
from .models import RedditPost, RedditComment

HEADER_RULE = "=" * 80
COMMENT_RULE = "-" * 40
INDENT = "    "


def format_timestamp(created_utc: Optional[float]) -> str:
    """Epoch seconds -> 'YYYY-MM-DD HH:MM:SS UTC'. Never depends on the local clock or zone."""
    if created_utc is None:
        return "unknown"
    return datetime.fromtimestamp(created_utc, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_as_text(post: RedditPost, comments: list[RedditComment]) -> str:
    lines = [
        f"Reddit Post: {post.title}",
        f"Author: u/{post.author}",
        f"Score: {post.score}",
        f"Total Comments: {post.num_comments}",
        f"Posted: {format_timestamp(post.created_utc)}",
        f"URL: {post.url}",
        "",
        HEADER_RULE,
        "COMMENTS",
        HEADER_RULE,
        "",
    ]

    for c in comments:
        indent = INDENT * c.depth
        lines.append(f"{indent}Author: {c.author}")
        lines.append(f"{indent}Score: {c.score}")
        lines.append(f"{indent}Posted: {format_timestamp(c.created_utc)}")
        lines.append(f"{indent}Comment:")
        for body_line in c.body.replace("\r\n", "\n").split("\n"):
            lines.append(f"{indent}{body_line}")
        lines.append(f"{indent}{COMMENT_RULE}")

    return "\n".join(lines) + "\n"


def suggested_filename(title: Optional[str], job_id: int, extension: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", (title or "").lower()).strip("_")
    slug = slug[:settings.FILENAME_MAX_LENGTH].rstrip("_")
    if not slug:
        slug = str(job_id)
    return f"reddit-comments-{slug}.{extension}"
