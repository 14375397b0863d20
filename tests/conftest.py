"""Pytest fixtures for reddit-archiver tests."""

from unittest.mock import AsyncMock

import pytest

from config.options import ArchiveOptions, NamingScheme
from src.collectors.base import Comment, MoreComments, Post

CREATED = 1700000000  # 2023-11-14 22:13:20 UTC


def post_json(**overrides) -> dict:
    """Raw listing-child data for a self post; override fields per test."""
    post_id = overrides.pop("id", "abc123")
    data = {
        "id": post_id,
        "name": f"t3_{post_id}",
        "title": "A post",
        "author": "alice",
        "subreddit": "pics",
        "permalink": f"/r/pics/comments/{post_id}/a_post/",
        "url": f"https://www.reddit.com/r/pics/comments/{post_id}/a_post/",
        "domain": "self.pics",
        "post_hint": "self",
        "is_self": True,
        "selftext": "Hello there",
        "score": 42,
        "created_utc": CREATED,
        "over_18": False,
    }
    data.update(overrides)
    return data


def listing_json(posts: list[dict], after: str | None = None) -> dict:
    return {
        "kind": "Listing",
        "data": {
            "after": after,
            "children": [{"kind": "t3", "data": p} for p in posts],
        },
    }


@pytest.fixture
def make_post():
    """Factory: make_post(title="x", is_self=False, ...) -> Post."""
    def _make(**overrides) -> Post:
        return Post.from_json(post_json(**overrides))
    return _make


@pytest.fixture
def options() -> ArchiveOptions:
    """Options with a predictable date+title naming scheme."""
    return ArchiveOptions(
        local_logs=False,
        file_naming_scheme=NamingScheme(
            show_date=True,
            show_score=False,
            show_subreddit=False,
            show_author=False,
            show_title=True,
        ),
    )


@pytest.fixture
def comment_tree() -> list:
    return [
        Comment(author="bob", body="Top level", replies=[
            Comment(author="carol", body="First reply\nsecond line", replies=[MoreComments(count=3)]),
        ]),
        Comment(author="dave", body="Another"),
    ]


@pytest.fixture
def collector(comment_tree):
    """Stand-in RedditCollector whose thread lookups always succeed."""
    stub = AsyncMock()
    stub.fetch_comments = AsyncMock(return_value=comment_tree)
    return stub


@pytest.fixture
def resolver():
    stub = AsyncMock()
    stub.resolve_post = AsyncMock(return_value=None)
    return stub
