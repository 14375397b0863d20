"""Tests for RedGIFs detection and resolution."""

import httpx
import pytest
import respx

from src.collectors.redgifs import (
    RedgifsResolver,
    extract_redgifs_id,
    is_redgifs_post,
    redgifs_id_from_post,
)
from src.errors import CredentialUnavailable, ResolutionFailed

API = "https://api.redgifs.test/v2"


def _gif(**urls) -> dict:
    return {"gif": {"id": "abc", "urls": urls}}


class TestExtractRedgifsId:
    """Tests for extract_redgifs_id()."""

    @pytest.mark.parametrize("text, expected", [
        ("https://www.redgifs.com/watch/tastyhungrycat", "tastyhungrycat"),
        ("https://redgifs.com/ifr/tastyhungrycat?autoplay=1", "tastyhungrycat"),
        ("https://redgifs.com/tastyhungrycat", "tastyhungrycat"),
        ("https://thumbs2.redgifs.com/TastyHungryCat-mobile.jpg", "TastyHungryCat"),
        ("https://i.redgifs.com/TastyHungryCat.jpg", "TastyHungryCat"),
        (
            '<iframe src="https://www.redgifs.com/ifr/tastyhungrycat" frameborder="0"></iframe>',
            "tastyhungrycat",
        ),
    ])
    def test_known_shapes(self, text, expected):
        assert extract_redgifs_id(text) == expected

    def test_unrelated_url(self):
        assert extract_redgifs_id("https://i.imgur.com/abc.gifv") is None

    def test_empty(self):
        assert extract_redgifs_id("") is None


class TestIsRedgifsPost:
    """Tests for is_redgifs_post()."""

    def test_domain(self, make_post):
        assert is_redgifs_post(make_post(domain="redgifs.com", url="https://redgifs.com/watch/x"))

    def test_embed_html_only(self, make_post):
        post = make_post(
            domain="reddit.com",
            url="https://www.reddit.com/r/x/comments/1/",
            media={"oembed": {"html": '<iframe src="https://www.redgifs.com/ifr/abc"></iframe>'}},
        )
        assert is_redgifs_post(post)
        assert redgifs_id_from_post(post) == "abc"

    def test_other_post(self, make_post):
        assert not is_redgifs_post(make_post(domain="i.redd.it", url="https://i.redd.it/a.png"))


class TestRedgifsResolver:
    """Tests for RedgifsResolver."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_prefers_hd_rendition(self):
        respx.get(f"{API}/auth/temporary").mock(return_value=httpx.Response(200, json={"token": "t1"}))
        respx.get(f"{API}/gifs/abc").mock(return_value=httpx.Response(200, json=_gif(
            sd="https://media.redgifs.com/Abc-mobile.mp4",
            hd="https://media.redgifs.com/Abc.mp4",
        )))

        async with httpx.AsyncClient() as client:
            url = await RedgifsResolver(client, API).fetch_video_url("abc")

        assert url == "https://media.redgifs.com/Abc.mp4"

    @pytest.mark.asyncio
    @respx.mock
    async def test_token_is_cached(self):
        auth = respx.get(f"{API}/auth/temporary").mock(return_value=httpx.Response(200, json={"token": "t1"}))
        respx.get(f"{API}/gifs/abc").mock(return_value=httpx.Response(200, json=_gif(sd="https://m/abc.mp4")))

        async with httpx.AsyncClient() as client:
            resolver = RedgifsResolver(client, API)
            await resolver.fetch_video_url("abc")
            await resolver.fetch_video_url("abc")

        assert auth.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_refreshes_token_once_on_401(self):
        """A rejected token is refreshed exactly once and the lookup retried."""
        auth = respx.get(f"{API}/auth/temporary").mock(side_effect=[
            httpx.Response(200, json={"token": "stale"}),
            httpx.Response(200, json={"token": "fresh"}),
        ])
        lookup = respx.get(f"{API}/gifs/abc").mock(side_effect=[
            httpx.Response(401),
            httpx.Response(200, json=_gif(hd="https://media.redgifs.com/Abc.mp4")),
        ])

        async with httpx.AsyncClient() as client:
            url = await RedgifsResolver(client, API).fetch_video_url("abc")

        assert url == "https://media.redgifs.com/Abc.mp4"
        assert auth.call_count == 2
        assert lookup.call_count == 2
        assert lookup.calls.last.request.headers["Authorization"] == "Bearer fresh"

    @pytest.mark.asyncio
    @respx.mock
    async def test_second_401_fails(self):
        respx.get(f"{API}/auth/temporary").mock(return_value=httpx.Response(200, json={"token": "t"}))
        respx.get(f"{API}/gifs/abc").mock(return_value=httpx.Response(401))

        async with httpx.AsyncClient() as client:
            with pytest.raises(ResolutionFailed):
                await RedgifsResolver(client, API).fetch_video_url("abc")

    @pytest.mark.asyncio
    @respx.mock
    async def test_auth_failure(self):
        respx.get(f"{API}/auth/temporary").mock(return_value=httpx.Response(503))

        async with httpx.AsyncClient() as client:
            with pytest.raises(CredentialUnavailable):
                await RedgifsResolver(client, API).get_token()

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_rendition(self):
        respx.get(f"{API}/auth/temporary").mock(return_value=httpx.Response(200, json={"token": "t"}))
        respx.get(f"{API}/gifs/abc").mock(return_value=httpx.Response(200, json={"gif": {"urls": {}}}))

        async with httpx.AsyncClient() as client:
            with pytest.raises(ResolutionFailed):
                await RedgifsResolver(client, API).fetch_video_url("abc")

    @pytest.mark.asyncio
    @respx.mock
    @pytest.mark.parametrize("payload", [
        {"gif": ["abc"]},
        {"gif": {"id": "abc", "urls": ["https://media.redgifs.com/Abc.mp4"]}},
        {"gif": {"id": "abc", "urls": {"hd": 42}}},
        ["abc"],
    ])
    async def test_malformed_payload_is_a_resolution_failure(self, payload):
        respx.get(f"{API}/auth/temporary").mock(return_value=httpx.Response(200, json={"token": "t"}))
        respx.get(f"{API}/gifs/abc").mock(return_value=httpx.Response(200, json=payload))

        async with httpx.AsyncClient() as client:
            with pytest.raises(ResolutionFailed):
                await RedgifsResolver(client, API).fetch_video_url("abc")

    @pytest.mark.asyncio
    @respx.mock
    async def test_resolve_post_returns_none_on_malformed_payload(self, make_post):
        respx.get(f"{API}/auth/temporary").mock(return_value=httpx.Response(200, json={"token": "t"}))
        respx.get(f"{API}/gifs/abc").mock(return_value=httpx.Response(200, json={"gif": "abc"}))
        post = make_post(domain="redgifs.com", url="https://redgifs.com/watch/abc")

        async with httpx.AsyncClient() as client:
            assert await RedgifsResolver(client, API).resolve_post(post) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_resolve_post_returns_none_on_failure(self, make_post):
        respx.get(f"{API}/auth/temporary").mock(return_value=httpx.Response(200, json={"token": "t"}))
        respx.get(f"{API}/gifs/abc").mock(return_value=httpx.Response(404))
        post = make_post(domain="redgifs.com", url="https://redgifs.com/watch/abc")

        async with httpx.AsyncClient() as client:
            assert await RedgifsResolver(client, API).resolve_post(post) is None

    @pytest.mark.asyncio
    async def test_resolve_post_without_id(self, make_post):
        async with httpx.AsyncClient() as client:
            post = make_post(domain="example.com", url="https://example.com/x")
            assert await RedgifsResolver(client, API).resolve_post(post) is None
