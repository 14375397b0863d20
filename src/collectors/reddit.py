"""
Reddit collector — pages through the public JSON listing API with httpx.
No credentials needed: every endpoint is the `.json` variant of a web page.

Subreddit pages are cursored by the fullname of the last post we saw;
user pages carry the `after` value Reddit returns.
"""
from dataclasses import dataclass

import httpx
from loguru import logger

from config.settings import REDDIT_BASE_URL
from src.collectors.base import CommentNode, ListingPage, Post, parse_comment_tree
from src.errors import SourceUnavailable, ThreadFetchFailed

PAGE_SIZE = 100     # max Reddit allows per listing request

_USER_PREFIXES = ("user/", "u/")


@dataclass(frozen=True)
class Source:
    name:    str
    is_user: bool = False

    @classmethod
    def parse(cls, raw: str) -> "Source":
        text = raw.replace(" ", "").strip().lstrip("/")
        for prefix in _USER_PREFIXES:
            if text.startswith(prefix):
                return cls(name=text[len(prefix):].strip("/"), is_user=True)
        if text.startswith("r/"):
            text = text[2:]
        return cls(name=text.strip("/"))

    @property
    def label(self) -> str:
        return f"u/{self.name}" if self.is_user else f"r/{self.name}"


class RedditCollector:
    """Listing, single-post and comment requests against reddit.com."""

    def __init__(self, client: httpx.AsyncClient, base_url: str = REDDIT_BASE_URL):
        self.client   = client
        self.base_url = base_url.rstrip("/")

    def listing_request(
        self, source: Source, limit: int, after: str | None, sorting: str, time: str
    ) -> tuple[str, dict]:
        """URL + query params for one listing page."""
        if source.is_user:
            url = f"{self.base_url}/user/{source.name}/submitted/.json"
            params = {"limit": limit, "after": after or ""}
        else:
            url = f"{self.base_url}/r/{source.name}/{sorting}/.json"
            params = {"sort": sorting, "t": time, "limit": limit, "after": after or ""}
        return url, params

    async def fetch_page(
        self,
        source:  Source,
        limit:   int,
        after:   str | None = None,
        sorting: str = "top",
        time:    str = "all",
    ) -> ListingPage:
        """
        Fetch one listing page of at most `limit` posts.
        Raises SourceUnavailable for HTTP errors, "Not Found" bodies and empty pages.
        """
        limit = max(1, min(limit, PAGE_SIZE))
        url, params = self.listing_request(source, limit, after, sorting, time)
        logger.debug(f"[Reddit] requesting {url} {params}")

        try:
            resp = await self.client.get(url, params=params, follow_redirects=True)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SourceUnavailable(source.label, str(exc)) from exc

        if not isinstance(data, dict) or data.get("message") == "Not Found":
            raise SourceUnavailable(source.label, "not found")
        listing  = data.get("data") or {}
        children = listing.get("children") or []
        if not children:
            raise SourceUnavailable(source.label, "no posts returned")

        posts = [Post.from_json(c.get("data") or {}) for c in children if isinstance(c, dict)]
        page = ListingPage(posts=posts, after=listing.get("after"), requested=limit)
        logger.info(
            f"[Reddit] {source.label} → {len(posts)} posts"
            f"{' (last page)' if page.last_page else ''}"
        )
        return page

    async def fetch_post(self, post_url: str) -> Post:
        """Fetch a single post from its comments URL (post-list mode)."""
        url = post_url.rstrip("/") + "/.json" if not post_url.endswith(".json") else post_url
        resp = await self.client.get(url, follow_redirects=True)
        resp.raise_for_status()
        data = resp.json()
        return Post.from_json(data[0]["data"]["children"][0]["data"])

    async def fetch_comments(self, post: Post) -> list[CommentNode] | None:
        """
        Fetch the discussion thread of `post`.
        Returns None when the thread is unavailable; callers render no comments section.
        """
        try:
            return await self._get_comments(post)
        except ThreadFetchFailed as exc:
            logger.debug(f"[Reddit] failed to fetch comments for {post.permalink or post.url}: {exc}")
            return None

    # ── Internal ──────────────────────────────────────────────────────────────

    async def _get_comments(self, post: Post) -> list[CommentNode]:
        if post.permalink:
            url = f"{self.base_url}{post.permalink}.json"
        else:
            url = f"{post.url}.json"
        try:
            resp = await self.client.get(url, follow_redirects=True)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ThreadFetchFailed(str(exc)) from exc

        # Reddit answers [post listing, comments listing]
        if not isinstance(data, list) or len(data) < 2:
            raise ThreadFetchFailed(f"unexpected comments payload from {url}")
        return parse_comment_tree(data[1])
