"""
Shared fixtures: raw Reddit payload builders and a fake Reddit API.
"""
import json
from typing import Optional

import httpx
import pytest

from app.db import MemoryJobStore
from app.models import RedditCredentials
from app.scrapers.reddit_client import RedditClient

POST_URL = "https://www.reddit.com/r/test/comments/abc123/title/"


def t1(comment_id: str, body: Optional[str], replies: Optional[list] = None, **extra) -> dict:
    """Build a raw t1 node the way Reddit's listing returns it."""
    data = {"id": comment_id, "created_utc": 1000, **extra}
    if body is not None:
        data["body"] = body
    data["replies"] = {"kind": "Listing", "data": {"children": replies}} if replies else ""
    return {"kind": "t1", "data": data}


def more(*ids: str) -> dict:
    return {"kind": "more", "data": {"id": "_", "children": list(ids), "count": len(ids)}}


def listing(children: list, **post_fields) -> list:
    post = {
        "title": "What is your favourite editor?",
        "author": "op_user",
        "url": POST_URL,
        "score": 42,
        "num_comments": 3,
        "created_utc": 1700000000,
        **post_fields,
    }
    return [
        {"kind": "Listing", "data": {"children": [{"kind": "t3", "data": post}]}},
        {"kind": "Listing", "data": {"children": children}},
    ]


@pytest.fixture
def scenario_tree():
    return [
        t1("a", "hi", author="u1", score=5, created_utc=1000, replies=[
            t1("b", "[deleted]", created_utc=1001, replies=[
                t1("c", "reply", author="u2", score=1, created_utc=1002),
            ]),
        ]),
    ]


@pytest.fixture
def credentials():
    return RedditCredentials(client_id="cid", client_secret="secret", username="tester")


class FakeReddit:
    """Routes token and listing requests; records what was asked."""

    def __init__(self, payload=None, token_status=200, listing_status=200, token_body=None):
        self.payload = payload if payload is not None else listing([t1("a", "hello", author="u1", score=2)])
        self.token_status = token_status
        self.listing_status = listing_status
        self.token_body = token_body if token_body is not None else {"access_token": "tok-123", "token_type": "bearer"}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/v1/access_token":
            return httpx.Response(self.token_status, json=self.token_body)
        if self.listing_status != 200:
            return httpx.Response(self.listing_status, json={"message": "nope"})
        if isinstance(self.payload, (bytes, str)):
            return httpx.Response(200, content=self.payload)
        return httpx.Response(200, content=json.dumps(self.payload).encode())

    def client(self) -> RedditClient:
        return RedditClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_reddit():
    return FakeReddit()


@pytest.fixture
def store():
    return MemoryJobStore()
