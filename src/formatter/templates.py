"""
Summary document templates — the Markdown file written next to every post.

Layout:
    # Title
    - Author / Subreddit / Score / Created / Type / Permalink
    ---
    ## <kind-specific section>
    ---
    ## Comments          (only when the thread was fetched)

Comments nest as blockquotes, one '>' per reply depth.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator

from src.collectors.base import Comment, CommentNode, MoreComments, Post

REDIRECT_HTML = (
    "<html><body><script type='text/javascript'>"
    'window.location.href = "{url}";'
    "</script></body></html>"
)


@dataclass
class SummaryDetails:
    files:         list[str] = field(default_factory=list)
    source_url:    str = ""
    link_target:   str = ""
    gallery_items: list[str] = field(default_factory=list)
    note:          str = ""


def redirect_document(url: str) -> str:
    """HTML page that sends the browser on to `url`."""
    return REDIRECT_HTML.format(url=url.replace('"', "%22"))


def format_utc(timestamp: float | None) -> str:
    try:
        dt = datetime.fromtimestamp(float(timestamp or 0), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return "N/A"
    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def metadata_block(post: Post, kind_label: str) -> str:
    lines = [
        f"- Author: u/{post.author}",
        f"- Subreddit: r/{post.subreddit}",
        f"- Score: {post.score}",
        f"- Created: {format_utc(post.created_utc)}",
        f"- Type: {kind_label}",
    ]
    if post.permalink_url:
        lines.append(f"- Permalink: {post.permalink_url}")
    return "\n".join(lines)


# ── Comments ──────────────────────────────────────────────────────────────────

def walk_comments(nodes: list[CommentNode], depth: int = 0) -> Iterator[tuple[int, CommentNode]]:
    """Depth-first (depth, node) pairs; replies are one level deeper than their parent."""
    for node in nodes:
        yield depth, node
        if isinstance(node, Comment):
            yield from walk_comments(node.replies, depth + 1)


def render_comments(nodes: list[CommentNode]) -> str:
    out: list[str] = []
    for depth, node in walk_comments(nodes):
        lead = ">" * depth + " " if depth else ""
        if isinstance(node, MoreComments):
            out.append(f"{lead}[more comments]\n\n")
            continue
        body = "\n".join(f"{lead}{line}" for line in node.body.split("\n"))
        out.append(f"{lead}u/{node.author}:\n{body}\n\n")
    return "".join(out)


def comments_section(comments: list[CommentNode] | None) -> str:
    if comments is None:
        return ""
    return "\n---\n\n## Comments\n\n" + render_comments(comments)


# ── Documents ─────────────────────────────────────────────────────────────────

def build_self_summary(post: Post, comments: list[CommentNode] | None) -> str:
    return "".join([
        f"# {post.title}\n",
        metadata_block(post, "self"),
        "\n---\n",
        f"## Post\n\n{post.selftext}\n",
        comments_section(comments),
    ])


def build_summary(
    kind:     str,
    post:     Post,
    details:  SummaryDetails | None = None,
    comments: list[CommentNode] | None = None,
) -> str:
    """Summary for media / link / gallery / poll posts."""
    details = details or SummaryDetails()
    md = [f"# {post.title}\n", metadata_block(post, kind), "\n---\n"]

    if kind == "media":
        md.append("## Media\n")
        if details.files:
            md.append(f"\nSaved file{'s' if len(details.files) > 1 else ''}:")
            md.extend(f"\n- {f}" for f in details.files)
            md.append("\n")
        if details.source_url:
            md.append(f"\nSource URL: {details.source_url}\n")
    elif kind == "link":
        md.append("## Link\n")
        md.append(f"\nTarget: {post.url}\n")
        if details.link_target:
            md.append(f"\nSaved as: {details.link_target}\n")
    elif kind == "gallery":
        md.append("## Gallery\n")
        if details.gallery_items:
            md.append("\nItems:")
            md.extend(f"\n- {g}" for g in details.gallery_items)
            md.append("\n")
    elif kind == "poll":
        md.append("## Poll\n")
        md.append(_poll_section(post))
    else:
        md.append("## Content\n")

    if details.note:
        md.append(f"\n{details.note}\n")
    md.append(comments_section(comments))
    return "".join(md)


def _poll_section(post: Post) -> str:
    options = (post.poll_data or {}).get("options")
    if not options:
        return "\nPoll details unavailable.\n"
    lines = []
    for opt in options:
        votes = opt.get("vote_count")
        suffix = f" ({votes} votes)" if isinstance(votes, int) else ""
        lines.append(f"\n- {opt.get('text', '')}{suffix}")
    text = "".join(lines) + "\n"
    total = post.poll_data.get("total_vote_count")
    if total is not None:
        text += f"\nTotal votes: {total}\n"
    return text
