"""
Entry point — loads user options, sets up logging, asks what to download
(unless a preset, CLI options or the post list say so), then runs the driver.

Usage:
    reddit-archiver                          # interactive
    reddit-archiver -s pics -s u/spez --limit 50 --sort new --time week
    python -m src.main --config my_config.yaml
"""
import asyncio
import sys
from pathlib import Path

import click
import httpx
from loguru import logger

from config.options import (
    SORT_OPTIONS,
    TIME_OPTIONS,
    ArchiveOptions,
    RunParameters,
    load_options,
)
from config.settings import (
    DOWNLOAD_DIR,
    HTTP_TIMEOUT,
    LOG_LEVEL,
    LOGS_DIR,
    POST_LIST_PATH,
    USER_AGENT,
)
from src.archiver.driver import PaginationDriver, PostListRunner
from src.archiver.materializer import Materializer
from src.collectors.post_list import ensure_post_list
from src.collectors.reddit import RedditCollector
from src.collectors.redgifs import RedgifsResolver
from src.errors import ConfigurationInvalid
from src.formatter.naming import check_naming_scheme


# ── Logging ────────────────────────────────────────────────────────────────────

def setup_logging(options: ArchiveOptions, debug: bool = False) -> None:
    level = "DEBUG" if (debug or options.detailed_logs) else LOG_LEVEL
    logger.remove()
    logger.add(sys.stderr, level=level)
    if options.local_logs:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        logger.add(
            LOGS_DIR / "archive_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="14 days",
            level="DEBUG",
            encoding="utf-8",
        )


# ── Run parameters ─────────────────────────────────────────────────────────────

def _split_sources(values) -> list[str]:
    sources: list[str] = []
    for value in values:
        sources.extend(s for s in value.split(",") if s.strip())
    return sources


def prompt_parameters() -> RunParameters:
    """Ask the user what to download."""
    raw_sources = click.prompt(
        "Which subreddits or users would you like to download? "
        "You may submit multiple separated by commas (no spaces)"
    )
    number = click.prompt(
        "How many posts would you like to attempt to download? "
        "If you would like to download all posts, enter 0",
        type=int, default=0,
    )
    sorting = click.prompt("How would you like to sort?", type=click.Choice(SORT_OPTIONS), default="top")
    period = click.prompt("During what time period?", type=click.Choice(TIME_OPTIONS), default="month")
    repeat = click.confirm("Would you like to run this on repeat?", default=False)
    interval = 0.0
    if repeat:
        interval = click.prompt("How often would you like to run this? (in seconds)", type=float, default=0.0)
    directory = click.prompt(
        f"Change the download path, defaults to {DOWNLOAD_DIR}", default="", show_default=False
    )
    return RunParameters(
        sources            = _split_sources([raw_sources]),
        number_of_posts    = number,
        sorting            = sorting,
        time               = period,
        repeat_forever     = repeat,
        time_between_runs  = interval,
        download_directory = Path(directory) if directory else DOWNLOAD_DIR,
    )


def preset_parameters(options: ArchiveOptions) -> RunParameters:
    preset = options.preset
    return RunParameters(
        sources            = list(preset.sources),
        number_of_posts    = preset.number_of_posts,
        sorting            = preset.sorting,
        time               = preset.time,
        repeat_forever     = preset.repeat_forever,
        time_between_runs  = preset.time_between_runs,
        download_directory = Path(preset.download_directory) if preset.download_directory else DOWNLOAD_DIR,
    )


# ── Run ────────────────────────────────────────────────────────────────────────

async def archive(options: ArchiveOptions, params: RunParameters | None, post_list: Path | None = None) -> None:
    base_dir = params.download_directory if params else DOWNLOAD_DIR
    base_dir.mkdir(parents=True, exist_ok=True)
    if options.separate_clean_nsfw:
        (base_dir / "clean").mkdir(exist_ok=True)
        (base_dir / "nsfw").mkdir(exist_ok=True)

    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT, headers={"User-Agent": USER_AGENT}) as client:
        collector = RedditCollector(client)
        materializer = Materializer(
            client    = client,
            collector = collector,
            resolver  = RedgifsResolver(client),
            options   = options,
            base_dir  = base_dir,
        )
        if post_list is not None:
            runner = PostListRunner(
                collector, materializer, post_list,
                repeat_forever    = options.post_list.repeat_forever,
                time_between_runs = options.post_list.time_between_runs,
            )
        else:
            runner = PaginationDriver(collector, materializer, params)
        await runner.run()


@click.command()
@click.option("--source", "-s", "sources", multiple=True, help="Subreddit or u/user (repeatable, or comma separated)")
@click.option("--limit", type=int, default=0, show_default=True, help="Posts per source, 0 = all")
@click.option("--sort", "sorting", type=click.Choice(SORT_OPTIONS), default="top", show_default=True)
@click.option("--time", "period", type=click.Choice(TIME_OPTIONS), default="all", show_default=True)
@click.option("--repeat/--no-repeat", default=False, help="Rerun forever")
@click.option("--interval", type=float, default=0.0, help="Seconds between repeated runs")
@click.option("--output", type=click.Path(file_okay=False, path_type=Path), default=None, help="Download directory")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="User config YAML (default: user_config.yaml)")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(sources, limit, sorting, period, repeat, interval, output, config_path, debug) -> None:
    """Download posts, media and comments from subreddits and users."""
    try:
        options = load_options(config_path)
        setup_logging(options, debug)
        check_naming_scheme(options.file_naming_scheme)

        post_list = None
        params = None
        if options.post_list.enabled:
            ensure_post_list(POST_LIST_PATH)
            post_list = POST_LIST_PATH
        elif sources:
            params = RunParameters(
                sources            = _split_sources(sources),
                number_of_posts    = limit,
                sorting            = sorting,
                time               = period,
                repeat_forever     = repeat,
                time_between_runs  = interval,
                download_directory = output or DOWNLOAD_DIR,
            )
        elif options.preset.enabled:
            params = preset_parameters(options)
        else:
            params = prompt_parameters()
    except ConfigurationInvalid as exc:
        logger.error(f"ALERT: {exc}")
        sys.exit(1)

    logger.info("👋 Welcome to reddit-archiver!")
    try:
        asyncio.run(archive(options, params, post_list))
    except ConfigurationInvalid as exc:
        logger.error(f"ERROR: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down…")


if __name__ == "__main__":
    main()
