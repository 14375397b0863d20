"""
Media handling — works out where a post's file actually lives, decides whether
it still needs downloading, and streams it to disk.

Location rules for media posts (later rules override earlier ones):
  1. post.url, or the RedGIFs MP4 when the resolver found one
  2. preview fallbacks, unless RedGIFs already gave us a direct file:
     reddit_video_preview → .gifv→.mp4 on the destination URL → preview image
  3. Reddit-hosted video always wins; an embed thumbnail wins unless RedGIFs resolved
"""
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import httpx
from loguru import logger

from config.settings import USER_AGENT
from src.collectors.base import Post
from src.collectors.reddit import Source
from src.errors import TransportError

# Searched in order inside preview URLs
PREVIEW_FORMATS = ("jpeg", "jpg", "gif", "png", "mp4", "webm", "gifv")

_CHUNK_SIZE = 64 * 1024


@dataclass
class MediaTarget:
    url:       str
    file_type: str


@dataclass
class GalleryEntry:
    item_id:   str
    url:       str
    file_type: str


def url_extension(url: str, default: str = "jpg") -> str:
    """Extension of the URL path without the dot, ignoring any query string."""
    suffix = PurePosixPath(urlparse(url or "").path).suffix.lstrip(".")
    return suffix.lower() or default


def resolve_media_target(post: Post, redgifs_url: str | None = None) -> MediaTarget:
    """Pick the URL and file type to download for a media post."""
    url = post.url
    file_type = url_extension(url)

    if redgifs_url:
        url, file_type = redgifs_url, "mp4"

    preview = post.preview
    if preview and not redgifs_url:
        video_preview = preview.get("reddit_video_preview")
        if video_preview and video_preview.get("fallback_url"):
            logger.debug(f"[Media] using reddit_video_preview fallback for {post.name}")
            url, file_type = video_preview["fallback_url"], "mp4"
        elif ".gifv" in post.url_overridden_by_dest:
            logger.debug(f"[Media] replacing gifv with mp4 for {post.name}")
            url, file_type = post.url_overridden_by_dest.replace(".gifv", ".mp4"), "mp4"
        elif post.preview_source_url:
            url = post.preview_source_url
            lowered = url.lower()
            file_type = next((fmt for fmt in PREVIEW_FORMATS if fmt in lowered), file_type)

    reddit_video = (post.media or {}).get("reddit_video") or {}
    thumbnail = post.oembed.get("thumbnail_url")
    if post.post_hint == "hosted:video" and reddit_video.get("fallback_url"):
        url, file_type = reddit_video["fallback_url"], "mp4"
    elif post.post_hint == "rich:video" and thumbnail and not redgifs_url:
        url, file_type = thumbnail, "gif"

    return MediaTarget(url=url, file_type=file_type)


def gallery_entries(post: Post) -> list[GalleryEntry]:
    """Direct-file URL and extension for every item of a gallery post."""
    items = (post.gallery_data or {}).get("items") or []
    metadata = post.media_metadata or {}
    entries = []
    for item in items:
        media = metadata.get(item.get("media_id")) or {}
        source = media.get("s") or {}
        raw_url = source.get("u") or source.get("mp4") or source.get("gif")
        if not raw_url:
            logger.debug(f"[Media] gallery item {item.get('id')} of {post.name} has no source, skipping")
            continue
        url = raw_url.replace("&amp;", "&")
        entries.append(GalleryEntry(
            item_id   = str(item.get("id") or item.get("media_id")),
            url       = url,
            file_type = url_extension(url.split("?")[0]),
        ))
    return entries


def target_directory(base: Path, source: Source, post: Post, separate_nsfw: bool) -> Path:
    """Directory a post is archived into (created if needed)."""
    if source.is_user:
        directory = base / f"user_{source.name}"
    elif separate_nsfw:
        directory = base / ("nsfw" if post.over_18 else "clean") / post.subreddit
    else:
        directory = base / (post.subreddit or source.name)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def should_download(path: Path, redownload: bool) -> bool:
    """False when the file already exists and redownloading is off."""
    if redownload:
        return True
    return not path.exists()


def write_summary(path: Path, content: str, redownload: bool) -> bool:
    """Write a summary document unless one already exists (and redownload is off)."""
    if not should_download(path, redownload):
        logger.debug(f"[Media] summary exists, not rewriting: {path.name}")
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return True


async def download_file(client: httpx.AsyncClient, url: str, dest: Path) -> Path:
    """
    Stream `url` into `dest`. The body goes to `<dest>.part` first and only
    replaces `dest` once complete, so a failed redownload keeps the old copy.
    Raises TransportError on any HTTP/IO failure.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    part = dest.with_name(dest.name + ".part")
    try:
        async with client.stream(
            "GET", url, headers={"User-Agent": USER_AGENT}, follow_redirects=True
        ) as resp:
            resp.raise_for_status()
            with part.open("wb") as fh:
                async for chunk in resp.aiter_bytes(_CHUNK_SIZE):
                    fh.write(chunk)
        part.replace(dest)
    except (httpx.HTTPError, OSError) as exc:
        part.unlink(missing_ok=True)
        raise TransportError(url, str(exc)) from exc

    logger.debug(f"[Media] saved {dest.name} ({dest.stat().st_size / 1024:.0f} KB)")
    return dest
