"""
Global settings — loads from .env and exposes typed config values to the rest of the app.
User-facing archive options live in user_config.yaml (see config/options.py).
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────────
ROOT_DIR = Path(__file__).resolve().parent.parent
CONFIG_DIR = Path(__file__).resolve().parent
DEFAULT_USER_CONFIG = CONFIG_DIR / "user_config.default.yaml"
LOGS_DIR = Path(os.getenv("LOGS_DIR", "logs"))
DOWNLOAD_DIR = Path(os.getenv("DOWNLOAD_DIR", "downloads"))
USER_CONFIG_PATH = Path(os.getenv("USER_CONFIG_PATH", "user_config.yaml"))
POST_LIST_PATH = Path(os.getenv("POST_LIST_PATH", "download_post_list.txt"))

# ── General ────────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
USER_AGENT = os.getenv("USER_AGENT", "reddit-archiver/1.0")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))

# ── Reddit ─────────────────────────────────────────────────────────────────────
REDDIT_BASE_URL = os.getenv("REDDIT_BASE_URL", "https://www.reddit.com")

# ── RedGIFs ────────────────────────────────────────────────────────────────────
REDGIFS_API_BASE = os.getenv("REDGIFS_API_BASE", "https://api.redgifs.com/v2")
