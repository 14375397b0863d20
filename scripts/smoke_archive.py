"""
Live smoke test — hits the real Reddit (and optionally RedGIFs) endpoints
without touching your download directory.

Fetches one small listing page, classifies what came back, pulls one comment
thread, then archives the page into a temporary directory and prints the tree.

Usage:
    python scripts/smoke_archive.py                 # r/pics
    python scripts/smoke_archive.py earthporn 5
    python scripts/smoke_archive.py u/spez 3
"""
import asyncio
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import httpx
from loguru import logger

from config.options import ArchiveOptions, RunParameters
from config.settings import HTTP_TIMEOUT, USER_AGENT
from src.archiver.driver import PaginationDriver
from src.archiver.materializer import Materializer
from src.collectors.reddit import RedditCollector, Source
from src.collectors.redgifs import RedgifsResolver, is_redgifs_post
from src.errors import ArchiveError
from src.formatter.classifier import classify
from src.formatter.templates import walk_comments


async def main(source_name: str = "pics", limit: int = 5) -> None:
    logger.info("=" * 60)
    logger.info("reddit-archiver smoke test")
    logger.info("=" * 60)

    source = Source.parse(source_name)
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT, headers={"User-Agent": USER_AGENT}) as client:
        collector = RedditCollector(client)
        resolver  = RedgifsResolver(client)

        # ── 1. Listing page ───────────────────────────────────────────────────
        logger.info(f"\n[1] Listing {source.label} (limit={limit})")
        try:
            page = await collector.fetch_page(source, limit, sorting="new")
        except ArchiveError as exc:
            logger.error(f"    {exc}")
            return
        for post in page.posts:
            tag = " [redgifs]" if is_redgifs_post(post) else ""
            logger.info(f"    {classify(post).value:<8} {post.name} {post.title[:60]}{tag}")
        logger.info(f"    after={page.after} last_page={page.last_page}")

        # ── 2. Comment thread ─────────────────────────────────────────────────
        first = page.posts[0]
        logger.info(f"\n[2] Comments for {first.name}")
        comments = await collector.fetch_comments(first)
        if comments is None:
            logger.info("    thread unavailable")
        else:
            logger.info(f"    {sum(1 for _ in walk_comments(comments))} comment nodes")

        # ── 3. RedGIFs token ──────────────────────────────────────────────────
        logger.info("\n[3] RedGIFs temporary token")
        try:
            await resolver.get_token()
            logger.info("    ok")
        except ArchiveError as exc:
            logger.warning(f"    {exc}")

        # ── 4. Archive into a temp dir ────────────────────────────────────────
        logger.info("\n[4] Archiving into a temporary directory")
        with tempfile.TemporaryDirectory(prefix="reddit-archiver-") as tmp:
            params = RunParameters(
                sources            = [source_name],
                number_of_posts    = limit,
                sorting            = "new",
                download_directory = Path(tmp),
            )
            options = ArchiveOptions(local_logs=False)
            materializer = Materializer(client, collector, resolver, options, Path(tmp))
            driver = PaginationDriver(collector, materializer, params)
            await driver.run()

            for path in sorted(Path(tmp).rglob("*")):
                if path.is_file():
                    logger.info(f"    {path.relative_to(tmp)} ({path.stat().st_size} bytes)")

    logger.info("\n" + "=" * 60)
    logger.info("Smoke test complete.")
    logger.info("=" * 60)


if __name__ == "__main__":
    args = sys.argv[1:]
    asyncio.run(main(args[0] if args else "pics", int(args[1]) if len(args) > 1 else 5))
