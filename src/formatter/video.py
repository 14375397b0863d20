"""
Experimental YouTube download — fetches the best video-only and audio-only
streams with yt-dlp, then muxes them into one MP4 with ffmpeg.

Any failure raises StreamingVideoError; the caller falls back to an HTML redirect.
"""
import asyncio
import shutil
from pathlib import Path

import yt_dlp
from loguru import logger

from src.errors import StreamingVideoError

STREAMING_DOMAINS = ("youtu",)


def is_streaming_domain(domain: str) -> bool:
    return any(d in (domain or "").lower() for d in STREAMING_DOMAINS)


async def download_streaming_video(url: str, directory: Path, basename: str) -> Path:
    """Download `url` into `directory/basename.mp4`. Returns the muxed file path."""
    ffmpeg_bin = shutil.which("ffmpeg")
    if not ffmpeg_bin:
        raise StreamingVideoError("ffmpeg not found on PATH")

    video_path = directory / f"{basename}.video"
    audio_path = directory / f"{basename}.audio"
    target     = directory / f"{basename}.mp4"

    try:
        await asyncio.to_thread(_fetch_stream, url, "bestvideo[ext=mp4]/bestvideo", video_path)
        await asyncio.to_thread(_fetch_stream, url, "bestaudio[ext=m4a]/bestaudio", audio_path)
        await _mux(ffmpeg_bin, video_path, audio_path, target)
    finally:
        video_path.unlink(missing_ok=True)
        audio_path.unlink(missing_ok=True)

    logger.info(f"[Video] saved {target.name}")
    return target


def _fetch_stream(url: str, fmt: str, dest: Path) -> None:
    opts = {
        "format":      fmt,
        "outtmpl":     str(dest),
        "quiet":       True,
        "no_warnings": True,
        "noplaylist":  True,
    }
    try:
        with yt_dlp.YoutubeDL(opts) as ydl:
            ydl.download([url])
    except yt_dlp.utils.DownloadError as exc:
        raise StreamingVideoError(f"stream download failed for {url}: {exc}") from exc
    if not dest.exists():
        raise StreamingVideoError(f"yt-dlp produced no file for {url} ({fmt})")


async def _mux(ffmpeg_bin: str, video: Path, audio: Path, target: Path) -> None:
    """Mux into `<target>.part`, then move it over `target`; a failed mux leaves `target` untouched."""
    part = target.with_name(target.name + ".part")
    cmd = [
        ffmpeg_bin,
        "-y",
        "-loglevel", "error",
        "-i", str(video),
        "-i", str(audio),
        "-c", "copy",
        "-f", "mp4",
        str(part),
    ]
    proc = await asyncio.create_subprocess_exec(
        *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
    )
    _, stderr = await proc.communicate()
    if proc.returncode != 0 or not part.exists() or part.stat().st_size <= 0:
        part.unlink(missing_ok=True)
        raise StreamingVideoError(f"ffmpeg mux failed: {stderr.decode(errors='replace').strip()}")
    part.replace(target)
