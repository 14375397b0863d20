"""
Content classifier — maps a Post to one of five content kinds.

Checked in order; first match wins. Explicit hints beat domain guesses, and
YouTube "rich:video" posts are excluded from media because they play in an
embedded player rather than pointing at a file.
"""
from enum import Enum

from src.collectors.base import Post

_MEDIA_HINTS      = {"image", "hosted:video"}
_MEDIA_CDN_DOMAINS = ("i.redd.it", "i.reddituploads.com")


class ContentKind(str, Enum):
    SELF    = "self"
    MEDIA   = "media"
    LINK    = "link"
    POLL    = "poll"
    GALLERY = "gallery"


def classify(post: Post) -> ContentKind:
    hint   = post.post_hint or ""
    domain = (post.domain or "").lower()

    if hint == "self" or post.is_self:
        return ContentKind.SELF
    if _is_media(hint, domain, post.url_overridden_by_dest or ""):
        return ContentKind.MEDIA
    if post.poll_data is not None:
        return ContentKind.POLL
    if "reddit.com" in domain and post.is_gallery:
        return ContentKind.GALLERY
    return ContentKind.LINK


def _is_media(hint: str, domain: str, dest_url: str) -> bool:
    if hint in _MEDIA_HINTS:
        return True
    if hint == "rich:video" and "youtu" not in domain:
        return True
    if hint == "link" and "imgur" in domain and "gallery" not in dest_url:
        return True
    if any(cdn in domain for cdn in _MEDIA_CDN_DOMAINS):
        return True
    return hint == "link" and "redgifs.com" in domain
