"""
File naming — builds the base filename for a post from the user's naming scheme.

    2024-03-01_score=1234_pics_someuser_A title with -slashes- removed
"""
import re
from datetime import datetime, timezone

from loguru import logger

from config.options import NamingScheme
from src.collectors.base import Post
from src.errors import ConfigurationInvalid

MAX_FILENAME_LEN = 240

_FORBIDDEN_RE = re.compile(r'[/\\?%*:|"<>]')
_STRIP_RE     = re.compile("[\t\r\n\ufe0e\ufe0f]")


def sanitize_filename(text: str) -> str:
    """Make `text` safe as a filename. Idempotent."""
    text = _FORBIDDEN_RE.sub("-", text or "")
    text = _STRIP_RE.sub("", text)
    return text[:MAX_FILENAME_LEN]


def build_filename(post: Post, scheme: NamingScheme) -> str:
    """Filename (without extension) for `post`; parts are joined with '_'."""
    parts: list[str] = []
    if scheme.show_date:
        parts.append(_post_date(post))
    if scheme.show_score:
        parts.append(f"score={post.score}")
    if scheme.show_subreddit:
        parts.append(post.subreddit)
    if scheme.show_author:
        parts.append(post.author)
    if scheme.show_title:
        parts.append(post.title)
    return sanitize_filename("_".join(parts))


def check_naming_scheme(scheme: NamingScheme) -> None:
    """
    Raise ConfigurationInvalid if no identifying part (date, author, title) is
    enabled; warn if only one is.
    """
    count = sum([scheme.show_date, scheme.show_author, scheme.show_title])
    if count == 0:
        raise ConfigurationInvalid(
            "Your file naming scheme does not have any options set. "
            "You can not download posts without filenames."
        )
    if count < 2:
        logger.warning(
            "Your file naming scheme is poorly set, we recommend enabling at least "
            "two of show_date, show_author and show_title."
        )


def _post_date(post: Post) -> str:
    try:
        created = datetime.fromtimestamp(float(post.created_utc or 0), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        created = datetime.fromtimestamp(0, tz=timezone.utc)
    return created.strftime("%Y-%m-%d")
