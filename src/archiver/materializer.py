"""
Item materializer — archives one post: classify, resolve where its content
lives, write content + summary document, and report a single Outcome.

One handler per content kind. Handlers never raise for expected failures
(download errors, RedGIFs misses, missing threads); those become Failed /
fallback outcomes. Anything unexpected propagates to the driver, which counts
it as failed.
"""
import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Union

import httpx
from loguru import logger

from config.options import ArchiveOptions
from src.collectors.base import CommentNode, Post
from src.collectors.reddit import RedditCollector, Source
from src.collectors.redgifs import RedgifsResolver, is_redgifs_post
from src.errors import TransportError
from src.formatter.classifier import ContentKind, classify
from src.formatter.media import (
    download_file,
    gallery_entries,
    resolve_media_target,
    should_download,
    target_directory,
    write_summary,
)
from src.formatter.naming import build_filename
from src.formatter.templates import (
    SummaryDetails,
    build_self_summary,
    build_summary,
    redirect_document,
)
from src.formatter.video import download_streaming_video, is_streaming_domain


# ── Outcomes ──────────────────────────────────────────────────────────────────

class SkipReason(str, Enum):
    DUPLICATE = "duplicate"
    FILTERED  = "filtered"


@dataclass
class Saved:
    counter: str                # "self" | "media" | "link"
    files:   list[str] = field(default_factory=list)
    note:    str = ""


@dataclass
class Skipped:
    reason: SkipReason
    note:   str = ""


@dataclass
class Failed:
    error: str


Outcome = Union[Saved, Skipped, Failed]

VideoDownloader = Callable[[str, Path, str], Awaitable[Path]]


@dataclass
class _Item:
    post:      Post
    directory: Path
    filename:  str              # base name without extension

    def path(self, suffix: str) -> Path:
        return self.directory / f"{self.filename}{suffix}"


# ── Materializer ──────────────────────────────────────────────────────────────

class Materializer:
    def __init__(
        self,
        client:    httpx.AsyncClient,
        collector: RedditCollector,
        resolver:  RedgifsResolver,
        options:   ArchiveOptions,
        base_dir:  Path,
        video_downloader: VideoDownloader = download_streaming_video,
    ):
        self.client    = client
        self.collector = collector
        self.resolver  = resolver
        self.options   = options
        self.base_dir  = Path(base_dir)
        self.video_downloader = video_downloader
        self._handlers = {
            ContentKind.SELF:    self._save_self,
            ContentKind.MEDIA:   self._save_media,
            ContentKind.LINK:    self._save_link,
            ContentKind.POLL:    self._save_poll,
            ContentKind.GALLERY: self._save_gallery,
        }

    @property
    def redownload(self) -> bool:
        return self.options.redownload_posts

    async def materialize(self, post: Post, source: Source) -> Outcome:
        kind = classify(post)
        logger.debug(
            f"[Archive] {post.name} '{post.title}' → {kind.value}"
            f" (hint={post.post_hint or '-'}, domain={post.domain or '-'})"
        )
        if kind in (ContentKind.MEDIA, ContentKind.LINK) and not post.url:
            return Failed(f"{kind.value} post {post.name} has no URL")

        item = _Item(
            post      = post,
            directory = target_directory(self.base_dir, source, post, self.options.separate_clean_nsfw),
            filename  = build_filename(post, self.options.file_naming_scheme),
        )
        return await self._handlers[kind](item)

    # ── Handlers ──────────────────────────────────────────────────────────────

    async def _save_self(self, item: _Item) -> Outcome:
        path = item.path(".md")
        if not should_download(path, self.redownload):
            return Skipped(SkipReason.DUPLICATE)
        if not self.options.download_self_posts:
            logger.debug(f"[Archive] skipping self post: {item.post.title}")
            return Skipped(SkipReason.FILTERED, "Self post skipped by configuration.")

        comments = await self.collector.fetch_comments(item.post)
        path.write_text(build_self_summary(item.post, comments), encoding="utf-8")
        return Saved("self", [path.name])

    async def _save_media(self, item: _Item) -> Outcome:
        post = item.post
        redgifs_url = None
        if self.options.download_redgifs_videos and is_redgifs_post(post):
            redgifs_url = await self.resolver.resolve_post(post)
            if not redgifs_url:
                logger.debug(f"[Archive] RedGIFs resolution failed ({post.url}), falling back to previews")

        target = resolve_media_target(post, redgifs_url)
        file_name = f"{item.filename}.{target.file_type}"
        comments = await self.collector.fetch_comments(post)

        if not self.options.download_media_posts:
            note = "Media skipped by configuration."
            logger.debug(f"[Archive] skipping media post: {post.title}")
            self._write_sidecar(item, "media", SummaryDetails(
                files=[file_name], source_url=target.url, note=note,
            ), comments)
            return Skipped(SkipReason.FILTERED, note)

        return await self._download_media(item, target.url, file_name, comments)

    async def _save_link(self, item: _Item) -> Outcome:
        post = item.post
        comments = await self.collector.fetch_comments(post)

        if self.options.download_redgifs_videos and is_redgifs_post(post):
            redgifs_url = await self.resolver.resolve_post(post)
            if redgifs_url:
                return await self._download_media(
                    item, redgifs_url, f"{item.filename}.mp4", comments,
                    note="Original post was a link; video downloaded from RedGIFs.",
                )
            logger.debug(f"[Archive] RedGIFs link resolution failed ({post.url}), saving redirect instead")

        if not self.options.download_link_posts:
            logger.debug(f"[Archive] skipping link post: {post.title}")
            self._write_sidecar(item, "link", SummaryDetails(
                link_target="(not saved due to configuration)",
            ), comments)
            return Skipped(SkipReason.FILTERED, "Link skipped by configuration.")

        if self.options.download_youtube_videos_experimental and is_streaming_domain(post.domain):
            logger.info(f"[Archive] downloading {item.filename} from YouTube… this may take a while")
            try:
                video = await self.video_downloader(post.url, item.directory, item.filename)
            except Exception as exc:
                logger.warning(
                    f"[Archive] failed to download {item.filename} from YouTube "
                    f"(is ffmpeg installed?): {exc}"
                )
                return self._save_redirect(item, comments, note="Saved as HTML redirect (YouTube fallback).")
            self._write_sidecar(item, "link", SummaryDetails(
                link_target=video.name, note="Video fetched via YouTube.",
            ), comments)
            return Saved("link", [video.name])

        return self._save_redirect(item, comments)

    async def _save_gallery(self, item: _Item) -> Outcome:
        post = item.post
        comments = await self.collector.fetch_comments(post)

        if not self.options.download_gallery_posts:
            note = "Gallery skipped by configuration."
            logger.debug(f"[Archive] skipping gallery post: {post.title}")
            self._write_sidecar(item, "gallery", SummaryDetails(note=note), comments)
            return Skipped(SkipReason.FILTERED, note)

        planned: list[str] = []
        downloads = []
        for entry in gallery_entries(post):
            rel = f"{item.filename}/{entry.item_id}.{entry.file_type}"
            planned.append(rel)
            dest = item.directory / rel
            if should_download(dest, self.redownload):
                downloads.append(download_file(self.client, entry.url, dest))

        self._write_sidecar(item, "gallery", SummaryDetails(gallery_items=planned), comments)

        if not planned:
            return Failed(f"gallery {post.name} has no downloadable items")
        if not downloads:
            return Skipped(SkipReason.DUPLICATE)

        results = await asyncio.gather(*downloads, return_exceptions=True)
        errors = [r for r in results if isinstance(r, Exception)]
        for err in errors:
            logger.warning(f"[Archive] gallery item failed for {post.name}: {err}")
        if len(errors) == len(downloads):
            return Failed(f"all {len(errors)} gallery downloads failed for {post.name}")
        return Saved("media", planned)

    async def _save_poll(self, item: _Item) -> Outcome:
        comments = await self.collector.fetch_comments(item.post)
        self._write_sidecar(item, "poll", SummaryDetails(), comments)
        # polls are text-like, so they count as self posts
        return Saved("self", [item.path(".md").name])

    # ── Shared steps ──────────────────────────────────────────────────────────

    async def _download_media(
        self,
        item:      _Item,
        url:       str,
        file_name: str,
        comments:  list[CommentNode] | None,
        note:      str = "",
    ) -> Outcome:
        self._write_sidecar(item, "media", SummaryDetails(
            files=[file_name], source_url=url, note=note,
        ), comments)

        dest = item.directory / file_name
        if not should_download(dest, self.redownload):
            return Skipped(SkipReason.DUPLICATE)
        try:
            await download_file(self.client, url, dest)
        except TransportError as exc:
            logger.warning(f"[Archive] download failed for {item.post.name}: {exc}")
            return Failed(str(exc))
        return Saved("media", [file_name], note)

    def _save_redirect(self, item: _Item, comments: list[CommentNode] | None, note: str = "") -> Outcome:
        html_path = item.path(".html")
        html_path.write_text(redirect_document(item.post.url), encoding="utf-8")
        self._write_sidecar(item, "link", SummaryDetails(link_target=html_path.name, note=note), comments)
        return Saved("link", [html_path.name], note)

    def _write_sidecar(
        self,
        item:     _Item,
        kind:     str,
        details:  SummaryDetails,
        comments: list[CommentNode] | None,
    ) -> None:
        write_summary(item.path(".md"), build_summary(kind, item.post, details, comments), self.redownload)
