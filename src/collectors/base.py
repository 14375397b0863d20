"""
Post / ListingPage / comment-tree dataclasses.

Every field of a listing child is optional in practice (which ones are present
depends on the kind of post), so Post.from_json never raises on missing keys.
"""
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass
class Post:
    id:           str = ""
    name:         str = ""          # fullname, e.g. "t3_abc123"; the listing cursor
    title:        str = ""
    author:       str = ""
    subreddit:    str = ""
    permalink:    str = ""
    url:          str = ""
    url_overridden_by_dest: str = ""
    domain:       str = ""
    post_hint:    str = ""
    selftext:     str = ""
    score:        int = 0
    created_utc:  float | None = None
    is_self:      bool = False
    is_gallery:   bool = False
    over_18:      bool = False
    preview:      dict[str, Any] | None = None
    media:        dict[str, Any] | None = None
    poll_data:    dict[str, Any] | None = None
    gallery_data: dict[str, Any] | None = None
    media_metadata: dict[str, Any] | None = None
    raw:          dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_json(cls, data: dict) -> "Post":
        """Build a Post from the `data` object of a listing child."""
        return cls(
            id           = data.get("id") or "",
            name         = data.get("name") or "",
            title        = data.get("title") or "",
            author       = data.get("author") or "",
            subreddit    = data.get("subreddit") or "",
            permalink    = data.get("permalink") or "",
            url          = data.get("url") or "",
            url_overridden_by_dest = data.get("url_overridden_by_dest") or "",
            domain       = data.get("domain") or "",
            post_hint    = data.get("post_hint") or "",
            selftext     = data.get("selftext") or "",
            score        = data.get("score") or 0,
            created_utc  = data.get("created_utc") or data.get("created"),
            is_self      = bool(data.get("is_self")),
            is_gallery   = bool(data.get("is_gallery")),
            over_18      = bool(data.get("over_18")),
            preview      = data.get("preview"),
            media        = data.get("media"),
            poll_data    = data.get("poll_data"),
            gallery_data = data.get("gallery_data"),
            media_metadata = data.get("media_metadata"),
            raw          = data,
        )

    # ── Nested field helpers ───────────────────────────────────────────────────

    @property
    def oembed(self) -> dict:
        return (self.media or {}).get("oembed") or {}

    @property
    def preview_source_url(self) -> str:
        """URL of the first preview image's source rendition, HTML-unescaped."""
        try:
            url = self.preview["images"][0]["source"]["url"]
        except (TypeError, KeyError, IndexError):
            return ""
        return (url or "").replace("&amp;", "&")

    @property
    def permalink_url(self) -> str:
        if self.permalink:
            return f"https://www.reddit.com{self.permalink}"
        return self.url


@dataclass
class ListingPage:
    """One page of a listing. `last_page` is set when fewer posts came back than requested."""
    posts:     list[Post]
    after:     str | None
    requested: int

    @property
    def last_page(self) -> bool:
        return len(self.posts) < self.requested

    @property
    def last_name(self) -> str | None:
        return self.posts[-1].name if self.posts else None


# ── Discussion thread ─────────────────────────────────────────────────────────

@dataclass
class MoreComments:
    """Placeholder for replies the listing did not include."""
    count: int = 0


@dataclass
class Comment:
    author:  str
    body:    str
    replies: list["CommentNode"] = field(default_factory=list)


CommentNode = Union[Comment, MoreComments]


def parse_comment_tree(listing: Any) -> list[CommentNode]:
    """
    Turn a comments listing ({"kind": "Listing", "data": {"children": [...]}})
    into Comment / MoreComments nodes. Unknown child kinds are dropped.
    """
    if not isinstance(listing, dict):
        return []
    children = (listing.get("data") or {}).get("children")
    if not isinstance(children, list):
        return []

    nodes: list[CommentNode] = []
    for child in children:
        if not isinstance(child, dict):
            continue
        kind = child.get("kind")
        data = child.get("data") or {}
        if kind == "more":
            nodes.append(MoreComments(count=data.get("count") or 0))
        elif kind == "t1":
            nodes.append(Comment(
                author  = data.get("author") or "[deleted]",
                body    = data.get("body") or "",
                replies = parse_comment_tree(data.get("replies")),
            ))
    return nodes
