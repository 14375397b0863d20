"""Tests for the Reddit listing / post / comments collector."""

import httpx
import pytest
import respx

from src.collectors.base import Comment, MoreComments
from src.collectors.reddit import RedditCollector, Source
from src.errors import SourceUnavailable
from tests.conftest import listing_json, post_json

BASE = "https://www.reddit.com"


class TestSource:
    """Tests for Source.parse()."""

    @pytest.mark.parametrize("raw, name, is_user", [
        ("pics", "pics", False),
        ("r/pics", "pics", False),
        ("/r/pics/", "pics", False),
        ("u/spez", "spez", True),
        ("/u/spez", "spez", True),
        ("user/spez", "spez", True),
        (" earth porn ", "earthporn", False),
    ])
    def test_parse(self, raw, name, is_user):
        source = Source.parse(raw)
        assert (source.name, source.is_user) == (name, is_user)

    def test_label(self):
        assert Source("pics").label == "r/pics"
        assert Source("spez", is_user=True).label == "u/spez"


class TestFetchPage:
    """Tests for RedditCollector.fetch_page()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_subreddit_request(self):
        route = respx.get(f"{BASE}/r/pics/new/.json").mock(return_value=httpx.Response(
            200, json=listing_json([post_json(id="a"), post_json(id="b")], after="t3_b"),
        ))

        async with httpx.AsyncClient() as client:
            page = await RedditCollector(client, BASE).fetch_page(Source("pics"), 2, None, "new", "week")

        params = route.calls.last.request.url.params
        assert params["sort"] == "new"
        assert params["t"] == "week"
        assert params["limit"] == "2"
        assert params["after"] == ""
        assert [p.name for p in page.posts] == ["t3_a", "t3_b"]
        assert page.last_page is False
        assert page.last_name == "t3_b"

    @pytest.mark.asyncio
    @respx.mock
    async def test_user_request(self):
        route = respx.get(f"{BASE}/user/spez/submitted/.json").mock(return_value=httpx.Response(
            200, json=listing_json([post_json(id="a")], after=None),
        ))

        async with httpx.AsyncClient() as client:
            page = await RedditCollector(client, BASE).fetch_page(Source("spez", True), 5, "t3_z")

        params = route.calls.last.request.url.params
        assert params["after"] == "t3_z"
        assert "sort" not in params
        assert page.last_page is True

    @pytest.mark.asyncio
    @respx.mock
    async def test_limit_is_capped(self):
        route = respx.get(f"{BASE}/r/pics/top/.json").mock(return_value=httpx.Response(
            200, json=listing_json([post_json(id="a")]),
        ))

        async with httpx.AsyncClient() as client:
            page = await RedditCollector(client, BASE).fetch_page(Source("pics"), 500)

        assert route.calls.last.request.url.params["limit"] == "100"
        assert page.requested == 100

    @pytest.mark.parametrize("response", [
        httpx.Response(404, json={"message": "Not Found", "error": 404}),
        httpx.Response(403, json={"reason": "private"}),
        httpx.Response(200, json={"message": "Not Found"}),
        httpx.Response(200, json=listing_json([])),
        httpx.Response(200, text="<html>not json</html>"),
    ])
    @pytest.mark.asyncio
    @respx.mock
    async def test_unavailable_sources(self, response):
        respx.get(f"{BASE}/r/gone/top/.json").mock(return_value=response)

        async with httpx.AsyncClient() as client:
            with pytest.raises(SourceUnavailable) as exc_info:
                await RedditCollector(client, BASE).fetch_page(Source("gone"), 10)

        assert exc_info.value.source == "r/gone"


class TestFetchPost:
    """Tests for RedditCollector.fetch_post()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_reads_first_child(self):
        respx.get(f"{BASE}/r/pics/comments/abc/title/.json").mock(return_value=httpx.Response(
            200, json=[listing_json([post_json(id="abc", title="Single")]), listing_json([])],
        ))

        async with httpx.AsyncClient() as client:
            post = await RedditCollector(client, BASE).fetch_post(f"{BASE}/r/pics/comments/abc/title/")

        assert post.title == "Single"
        assert post.name == "t3_abc"


class TestFetchComments:
    """Tests for RedditCollector.fetch_comments()."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_parses_thread(self, make_post):
        thread = {"kind": "Listing", "data": {"children": [
            {"kind": "t1", "data": {"author": "bob", "body": "nice", "replies": ""}},
            {"kind": "more", "data": {"count": 12}},
        ]}}
        respx.get(f"{BASE}/r/pics/comments/abc123/a_post/.json").mock(return_value=httpx.Response(
            200, json=[listing_json([post_json()]), thread],
        ))

        async with httpx.AsyncClient() as client:
            nodes = await RedditCollector(client, BASE).fetch_comments(make_post())

        assert nodes == [Comment(author="bob", body="nice"), MoreComments(count=12)]

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_thread_is_none(self, make_post):
        respx.get(f"{BASE}/r/pics/comments/abc123/a_post/.json").mock(return_value=httpx.Response(500))

        async with httpx.AsyncClient() as client:
            assert await RedditCollector(client, BASE).fetch_comments(make_post()) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_thread_is_none(self, make_post):
        respx.get(f"{BASE}/r/pics/comments/abc123/a_post/.json").mock(return_value=httpx.Response(
            200, json={"unexpected": True},
        ))

        async with httpx.AsyncClient() as client:
            assert await RedditCollector(client, BASE).fetch_comments(make_post()) is None
