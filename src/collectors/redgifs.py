"""
RedGIFs resolver — turns a post that points at RedGIFs into a direct MP4 URL.

RedGIFs needs a temporary bearer token (GET /auth/temporary). The token is
cached on the resolver and reused for TOKEN_TTL_S; a 401 on lookup forces one
refresh and one retry. Anything else is a ResolutionFailed, and callers fall
back to treating the post as a normal media/link post.
"""
import asyncio
import re
import time

import httpx
from loguru import logger

from config.settings import REDGIFS_API_BASE, USER_AGENT
from src.collectors.base import Post
from src.errors import CredentialUnavailable, ResolutionFailed

TOKEN_TTL_S = 25 * 60

# Best first.
RENDITION_ORDER = ("hd", "sd", "mobile", "vmobile", "nhd")

# Checked in order against each candidate field; first match wins.
_ID_PATTERNS = [
    re.compile(r"redgifs\.com/(?:watch|ifr)/([\w-]+)(?:[/?#].*)?$", re.I),
    re.compile(r"redgifs\.com/(?!watch/|ifr/)([\w-]+)(?:[/?#].*)?$", re.I),
    re.compile(r"thumbs\d*\.redgifs\.com/([\w-]+)-", re.I),
    re.compile(r"i\.redgifs\.com/([\w-]+)\.[a-z0-9]+", re.I),
    re.compile(r"src=[\"']https?://(?:www\.)?redgifs\.com/(?:ifr|watch)/([\w-]+)[\"']", re.I),
]


def _detection_fields(post: Post) -> list[str]:
    return [
        post.domain,
        post.url_overridden_by_dest,
        post.url,
        post.permalink,
        post.oembed.get("html") or "",
        post.oembed.get("provider_name") or "",
        post.preview_source_url,
    ]


def is_redgifs_post(post: Post) -> bool:
    """True if any URL-ish field of the post mentions redgifs.com."""
    haystack = " ".join(f for f in _detection_fields(post) if f).lower()
    return "redgifs.com" in haystack


def extract_redgifs_id(text: str) -> str | None:
    if not text:
        return None
    for pattern in _ID_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def redgifs_id_from_post(post: Post) -> str | None:
    candidates = [
        post.url_overridden_by_dest,
        post.url,
        post.permalink,
        post.domain,
        post.oembed.get("html"),
        post.oembed.get("thumbnail_url"),
        post.preview_source_url,
    ]
    for candidate in candidates:
        gif_id = extract_redgifs_id(str(candidate)) if candidate else None
        if gif_id:
            return gif_id
    return None


class RedgifsResolver:
    """
    Holds the RedGIFs token for the whole process. Concurrent refreshes are
    serialised by a lock so they converge on a single token.
    """

    def __init__(self, client: httpx.AsyncClient, api_base: str = REDGIFS_API_BASE):
        self.client     = client
        self.api_base   = api_base.rstrip("/")
        self._token:      str | None = None
        self._fetched_at: float = 0.0
        self._lock = asyncio.Lock()

    @property
    def _headers(self) -> dict:
        return {"Accept": "application/json", "User-Agent": USER_AGENT}

    async def get_token(self, force_refresh: bool = False) -> str:
        """Return a cached token, fetching a new one when expired or forced."""
        async with self._lock:
            fresh = time.monotonic() - self._fetched_at < TOKEN_TTL_S
            if self._token and fresh and not force_refresh:
                return self._token
            try:
                resp = await self.client.get(f"{self.api_base}/auth/temporary", headers=self._headers)
                resp.raise_for_status()
                token = resp.json().get("token")
            except (httpx.HTTPError, ValueError, AttributeError) as exc:
                raise CredentialUnavailable(f"Failed to obtain RedGIFs temporary token: {exc}") from exc
            if not token:
                raise CredentialUnavailable("No token in RedGIFs auth response")
            self._token = token
            self._fetched_at = time.monotonic()
            logger.debug("[RedGIFs] obtained temporary token")
            return token

    async def fetch_video_url(self, gif_id: str) -> str:
        """Direct URL of the best rendition of `gif_id`."""
        if not gif_id:
            raise ResolutionFailed("Missing RedGIFs id")

        token = await self.get_token()
        resp = await self._lookup(gif_id, token)
        if resp.status_code == 401:
            logger.debug(f"[RedGIFs] token rejected for {gif_id}, refreshing once")
            token = await self.get_token(force_refresh=True)
            resp = await self._lookup(gif_id, token)

        try:
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ResolutionFailed(f"RedGIFs lookup failed for {gif_id}: {exc}") from exc

        url = _best_rendition(data)
        if not url:
            raise ResolutionFailed(f"No usable video URL in RedGIFs response for {gif_id}")
        return url

    async def resolve_post(self, post: Post) -> str | None:
        """
        Direct MP4 URL for a RedGIFs post, or None when it can't be resolved
        (the reason is logged; callers fall back to default handling).
        """
        gif_id = redgifs_id_from_post(post)
        if not gif_id:
            logger.debug(f"[RedGIFs] no id found in {post.url}")
            return None
        try:
            url = await self.fetch_video_url(gif_id)
        except (CredentialUnavailable, ResolutionFailed) as exc:
            logger.debug(f"[RedGIFs] resolution failed for {post.url}: {exc}")
            return None
        logger.debug(f"[RedGIFs] resolved {gif_id} → {url}")
        return url

    # ── Internal ──────────────────────────────────────────────────────────────

    async def _lookup(self, gif_id: str, token: str) -> httpx.Response:
        try:
            return await self.client.get(
                f"{self.api_base}/gifs/{gif_id}",
                headers={**self._headers, "Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise ResolutionFailed(f"RedGIFs lookup failed for {gif_id}: {exc}") from exc


def _best_rendition(data) -> str | None:
    if not isinstance(data, dict):
        return None
    gif = data.get("gif") or data
    if not isinstance(gif, dict):
        return None
    urls = gif.get("urls")
    if not isinstance(urls, dict):
        urls = {}
    candidates = [urls.get(key) for key in RENDITION_ORDER] + [gif.get("hdUrl"), gif.get("sdUrl")]
    for url in candidates:
        if url and isinstance(url, str):
            return url
    return None
