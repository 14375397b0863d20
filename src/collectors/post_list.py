"""
download_post_list.txt — explicit list of post URLs to archive instead of feeds.
"""
from pathlib import Path

from loguru import logger

_DEFAULT_CONTENT = (
    "# Below, please list any posts that you wish to download. #\n"
    "# They must follow this format below: #\n"
    "# https://www.reddit.com/r/gadgets/comments/ptt967/eu_proposes_mandatory_usbc_on_all_devices/ #\n"
    "# Lines with \"#\" at the start will be ignored (treated as comments). #\n"
)


def ensure_post_list(path: Path) -> None:
    """Create the post list with an explanatory header if it does not exist."""
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_DEFAULT_CONTENT, encoding="utf-8")
    logger.info(f"{path} was created with default content.")


def read_post_list(path: Path) -> list[str]:
    """Return the post URLs in the file, skipping comments and anything that isn't a post link."""
    urls = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("https://www.reddit.com") and "/comments/" in line:
            urls.append(line)
        else:
            logger.debug(f"Ignoring post list line: {line}")
    return urls
