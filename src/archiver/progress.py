"""
Progress tracker — per-source counters and the "what next?" decision.

Every archived post bumps exactly one counter, so the counter total is the
number of posts handled for the current source. Counters reset whenever a
source finishes.
"""
import sys
import time
from dataclasses import asdict, dataclass, fields
from enum import Enum

from loguru import logger

from src.archiver.materializer import Failed, Outcome, Saved, SkipReason, Skipped

UNBOUNDED = sys.maxsize     # target used when the user asks for "all posts"


@dataclass
class ProgressCounters:
    self:  int = 0
    media: int = 0
    link:  int = 0
    failed: int = 0
    skipped_due_to_duplicate: int = 0
    skipped_due_to_fileType:  int = 0

    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class Decision(str, Enum):
    PENDING     = "pending"        # page still has posts in flight
    NEXT_PAGE   = "next_page"      # page done, source not exhausted
    SOURCE_DONE = "source_done"


@dataclass
class PageProgress:
    size:      int                 # posts returned on this page
    last_page: bool                # fewer posts came back than requested
    completed: int = 0


class ProgressTracker:
    def __init__(self, target: int = UNBOUNDED, page_size: int = 100):
        self.target    = target if target and target > 0 else UNBOUNDED
        self.page_size = page_size
        self.counters  = ProgressCounters()
        self.source    = ""
        self.started_at = time.monotonic()
        self.run_total  = 0        # posts handled across all sources of this run

    # ── Counting ──────────────────────────────────────────────────────────────

    def remaining(self) -> tuple[int, int]:
        """(posts left for this source, posts handled so far for this source)."""
        total = self.counters.total()
        return self.target - total, total

    def next_page_size(self) -> int:
        return min(self.remaining()[0], self.page_size)

    def record(self, post_name: str, outcome: Outcome, page: PageProgress | None = None) -> Decision:
        """Count one finished post and report progress."""
        if isinstance(outcome, Saved):
            setattr(self.counters, outcome.counter, getattr(self.counters, outcome.counter) + 1)
        elif isinstance(outcome, Skipped):
            if outcome.reason is SkipReason.DUPLICATE:
                self.counters.skipped_due_to_duplicate += 1
            else:
                self.counters.skipped_due_to_fileType += 1
        elif isinstance(outcome, Failed):
            self.counters.failed += 1
            logger.warning(f"[Progress] {post_name} failed: {outcome.error}")

        self.run_total += 1
        if page is not None:
            page.completed += 1
        logger.debug(f"[Progress] {post_name} done, {self.progress_label()} {self.counters.as_dict()}")
        return self.decide(page)

    def report(self) -> None:
        logger.info(f"Still downloading posts from {self.source}... ({self.progress_label()})")

    def progress_label(self) -> str:
        done = self.remaining()[1]
        return f"{done}/all" if self.target == UNBOUNDED else f"{done}/{self.target}"

    # ── Decisions ─────────────────────────────────────────────────────────────

    def decide(self, page: PageProgress | None, forced: bool = False) -> Decision:
        posts_left, _ = self.remaining()
        page_settled = page is not None and page.completed >= page.size
        if forced or posts_left <= 0:
            return Decision.SOURCE_DONE
        if page_settled and page.last_page:
            return Decision.SOURCE_DONE
        if page_settled:
            return Decision.NEXT_PAGE
        return Decision.PENDING

    # ── Source lifecycle ──────────────────────────────────────────────────────

    def start_source(self, label: str) -> None:
        self.source = label
        self.counters = ProgressCounters()

    def start_run(self) -> None:
        self.started_at = time.monotonic()
        self.run_total = 0

    def finish_source(self, is_last: bool, skipped: bool = False) -> ProgressCounters:
        """
        Log the per-source summary (and run throughput on the last source), then reset.
        `skipped` marks a source that could not be fetched; it gets a skip line
        instead of the completion line.
        """
        finished = self.counters
        if skipped:
            logger.info(f"[Progress] skipped {self.source}: source unavailable")
        else:
            logger.info(f"🎉 All done downloading posts from {self.source}!")
        logger.info(f"[Progress] {self.source}: {finished.as_dict()}")
        if is_last:
            elapsed = time.monotonic() - self.started_at
            per_post = elapsed / self.run_total if self.run_total else 0.0
            logger.info(f"📈 Downloading took {elapsed:.1f} seconds, at about {per_post:.3f} seconds/post")
        self.counters = ProgressCounters()
        return finished
