"""
Pagination driver — walks each source page by page and hands every post to
the materializer.

    FETCHING ──page──▶ DISPATCHING ──more──▶ FETCHING
        │                   │
        │ error/target      │ source done
        ▼                   ▼
    ADVANCING_SOURCE ──next source──▶ FETCHING
        │
        ├── repeat_forever ──▶ SLEEPING ──▶ FETCHING (first source)
        └──────────────────▶ FINISHED

Posts on a page are dispatched one at a time with POST_DELAY_S between
dispatches; their downloads may overlap. The page is acted on once every
post on it has finished.
"""
import asyncio
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable

from loguru import logger

from config.options import RunParameters
from src.archiver.materializer import Failed, Materializer
from src.archiver.progress import (
    Decision,
    PageProgress,
    ProgressCounters,
    ProgressTracker,
)
from src.collectors.base import ListingPage, Post
from src.collectors.post_list import read_post_list
from src.collectors.reddit import PAGE_SIZE, RedditCollector, Source
from src.errors import ConfigurationInvalid, SourceUnavailable

POST_DELAY_S = 0.25

Sleep = Callable[[float], Awaitable[None]]


class DriverState(str, Enum):
    FETCHING         = "fetching"
    DISPATCHING      = "dispatching"
    ADVANCING_SOURCE = "advancing_source"
    SLEEPING         = "sleeping"
    FINISHED         = "finished"


class PaginationDriver:
    def __init__(
        self,
        collector:    RedditCollector,
        materializer: Materializer,
        params:       RunParameters,
        post_delay:   float = POST_DELAY_S,
        sleep:        Sleep = asyncio.sleep,
    ):
        self.collector    = collector
        self.materializer = materializer
        self.params       = params
        self.post_delay   = post_delay
        self.sleep        = sleep

        self.sources = [Source.parse(s) for s in params.sources]
        self.tracker = ProgressTracker(params.number_of_posts, PAGE_SIZE)
        self.state   = DriverState.FINISHED
        self.index   = 0
        self.cursor: str | None = None
        self.page:   ListingPage | None = None
        self.pages_requested = 0
        self.runs            = 0
        self.finished_sources: list[tuple[str, ProgressCounters]] = []
        self._unavailable = False
        self._stopped = False

    @property
    def current_source(self) -> Source:
        return self.sources[self.index]

    def stop(self) -> None:
        """Finish after the current step instead of continuing / repeating."""
        self._stopped = True

    async def run(self) -> None:
        if not self.sources:
            logger.warning("[Archive] no sources to download")
            return
        self.runs = 1
        self.tracker.start_run()
        self._begin_source(0)
        self.state = DriverState.FETCHING
        while self.state is not DriverState.FINISHED:
            self.state = await self.step(self.state)

    async def step(self, state: DriverState) -> DriverState:
        transitions = {
            DriverState.FETCHING:         self._fetch,
            DriverState.DISPATCHING:      self._dispatch,
            DriverState.ADVANCING_SOURCE: self._advance_source,
            DriverState.SLEEPING:         self._sleep_between_runs,
        }
        return await transitions[state]()

    # ── States ────────────────────────────────────────────────────────────────

    async def _fetch(self) -> DriverState:
        if self._stopped:
            return DriverState.FINISHED
        limit = self.tracker.next_page_size()
        if limit <= 0:
            return DriverState.ADVANCING_SOURCE

        source = self.current_source
        logger.info(f"👀 Requesting posts from {source.label} (limit={limit}, after={self.cursor or '-'})")
        self.pages_requested += 1
        try:
            page = await self.collector.fetch_page(
                source, limit, self.cursor, self.params.sorting, self.params.time
            )
        except SourceUnavailable as exc:
            logger.error(
                f"[Archive] There was a problem fetching posts for {source.label}. This is likely "
                f"because it is private, banned, or doesn't exist. ({exc.reason})"
            )
            self._unavailable = True
            return DriverState.ADVANCING_SOURCE

        self.page = page
        self.cursor = page.after if source.is_user else page.last_name
        return DriverState.DISPATCHING

    async def _dispatch(self) -> DriverState:
        page, source = self.page, self.current_source
        progress = PageProgress(size=len(page.posts), last_page=page.last_page)

        tasks = []
        for post in page.posts:
            await self.sleep(self.post_delay)
            tasks.append(asyncio.create_task(self._archive(post, source, progress)))
        await asyncio.gather(*tasks)

        self.page = None
        self.tracker.report()
        decision = self.tracker.decide(progress)
        if decision is Decision.SOURCE_DONE or not self.cursor:
            return DriverState.ADVANCING_SOURCE
        return DriverState.FETCHING

    async def _advance_source(self) -> DriverState:
        is_last = self.index >= len(self.sources) - 1
        counters = self.tracker.finish_source(is_last=is_last, skipped=self._unavailable)
        self.finished_sources.append((self.current_source.label, counters))

        if not is_last:
            self._begin_source(self.index + 1)
            return DriverState.FETCHING
        if self.params.repeat_forever and not self._stopped:
            return DriverState.SLEEPING
        return DriverState.FINISHED

    async def _sleep_between_runs(self) -> DriverState:
        logger.info(f"⏲️ Waiting {self.params.time_between_runs:g} seconds before rerunning...")
        await self.sleep(self.params.time_between_runs)
        if self._stopped:
            return DriverState.FINISHED
        self.runs += 1
        self.tracker.start_run()
        self._begin_source(0)
        return DriverState.FETCHING

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _begin_source(self, index: int) -> None:
        self.index = index
        self.cursor = None
        self._unavailable = False
        self.tracker.start_source(self.current_source.label)

    async def _archive(self, post: Post, source: Source, progress: PageProgress) -> None:
        try:
            outcome = await self.materializer.materialize(post, source)
        except Exception as exc:
            logger.error(f"[Archive] {post.name or post.id} '{post.title}' raised: {exc!r}")
            outcome = Failed(repr(exc))
        self.tracker.record(post.name or post.id, outcome, progress)


class PostListRunner:
    """Archives the posts listed in download_post_list.txt."""

    def __init__(
        self,
        collector:    RedditCollector,
        materializer: Materializer,
        path:         Path,
        repeat_forever:    bool = False,
        time_between_runs: float = 0,
        post_delay:   float = POST_DELAY_S,
        sleep:        Sleep = asyncio.sleep,
    ):
        self.collector    = collector
        self.materializer = materializer
        self.path         = Path(path)
        self.repeat_forever    = repeat_forever
        self.time_between_runs = time_between_runs
        self.post_delay   = post_delay
        self.sleep        = sleep
        self.tracker: ProgressTracker | None = None
        self.runs = 0
        self._stopped = False

    def stop(self) -> None:
        self._stopped = True

    async def run(self) -> None:
        while True:
            urls = read_post_list(self.path)
            if not urls:
                raise ConfigurationInvalid(
                    f"There are no posts in {self.path}. Add some posts to the file, or set "
                    "post_list.enabled to false to download from subreddits instead."
                )
            await self.run_once(urls)
            if not self.repeat_forever or self._stopped:
                return
            logger.info(f"⏲️ Waiting {self.time_between_runs:g} seconds before rerunning...")
            await self.sleep(self.time_between_runs)
            if self._stopped:
                return

    async def run_once(self, urls: list[str]) -> ProgressCounters:
        logger.info(f"Starting download of {len(urls)} posts from {self.path.name}")
        self.runs += 1
        self.tracker = ProgressTracker(len(urls), PAGE_SIZE)
        self.tracker.start_run()
        self.tracker.start_source(self.path.name)

        tasks = []
        for url in urls:
            await self.sleep(self.post_delay)
            tasks.append(asyncio.create_task(self._archive(url)))
        await asyncio.gather(*tasks)

        self.tracker.report()
        return self.tracker.finish_source(is_last=True)

    async def _archive(self, url: str) -> None:
        try:
            post = await self.collector.fetch_post(url)
            outcome = await self.materializer.materialize(post, Source(post.subreddit))
        except Exception as exc:
            logger.error(f"[Archive] {url} raised: {exc!r}")
            outcome = Failed(repr(exc))
        self.tracker.record(url, outcome)
