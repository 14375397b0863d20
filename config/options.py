"""
User options — parses user_config.yaml into an ArchiveOptions dataclass.

If the file does not exist yet it is created from user_config.default.yaml so
the user has something to edit. Sort/time values are validated here; the file
naming scheme is validated by src.formatter.naming.check_naming_scheme.
"""
import shutil
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml
from loguru import logger

from config.settings import DEFAULT_USER_CONFIG, DOWNLOAD_DIR, USER_CONFIG_PATH
from src.errors import ConfigurationInvalid

SORT_OPTIONS = ("top", "new", "hot", "rising", "controversial")
TIME_OPTIONS = ("hour", "day", "week", "month", "year", "all")


@dataclass
class NamingScheme:
    show_date:      bool = True
    show_score:     bool = True
    show_subreddit: bool = True
    show_author:    bool = True
    show_title:     bool = True


@dataclass
class PostListOptions:
    enabled:           bool = False
    repeat_forever:    bool = False
    time_between_runs: float = 0     # seconds


@dataclass
class RunPreset:
    """Pre-seeded run parameters; when enabled the interactive prompt is skipped."""
    enabled:            bool = False
    sources:            list[str] = field(default_factory=list)
    number_of_posts:    int = 0      # 0 = unbounded
    sorting:            str = "top"
    time:               str = "all"
    repeat_forever:     bool = False
    time_between_runs:  float = 0    # seconds
    download_directory: str = ""


@dataclass
class ArchiveOptions:
    download_self_posts:                  bool = True
    download_media_posts:                 bool = True
    download_link_posts:                  bool = True
    download_gallery_posts:               bool = True
    download_youtube_videos_experimental: bool = False
    download_redgifs_videos:              bool = False
    redownload_posts:                     bool = False
    separate_clean_nsfw:                  bool = False
    detailed_logs:                        bool = False
    local_logs:                           bool = True
    file_naming_scheme: NamingScheme    = field(default_factory=NamingScheme)
    post_list:          PostListOptions = field(default_factory=PostListOptions)
    preset:             RunPreset       = field(default_factory=RunPreset)


@dataclass
class RunParameters:
    """What to archive on this run (from the preset, the CLI or the prompt)."""
    sources:           list[str]
    number_of_posts:   int            # 0 = unbounded
    sorting:           str = "top"
    time:              str = "all"
    repeat_forever:    bool = False
    time_between_runs: float = 0
    download_directory: Path = DOWNLOAD_DIR

    def __post_init__(self) -> None:
        self.sources = [s.replace(" ", "").strip() for s in self.sources if s.strip()]
        self.sorting = self.sorting.replace(" ", "").lower()
        self.time = self.time.replace(" ", "").lower()
        self.download_directory = Path(self.download_directory)
        self.time_between_runs = max(0.0, float(self.time_between_runs or 0))
        validate_listing_params(self.sorting, self.time)


def validate_listing_params(sorting: str, time: str) -> None:
    if sorting not in SORT_OPTIONS:
        raise ConfigurationInvalid(f"Invalid sorting {sorting!r}, expected one of {', '.join(SORT_OPTIONS)}")
    if time not in TIME_OPTIONS:
        raise ConfigurationInvalid(f"Invalid time period {time!r}, expected one of {', '.join(TIME_OPTIONS)}")


def load_options(path: Path | None = None) -> ArchiveOptions:
    """Read user options from YAML, creating the file from the defaults if missing."""
    path = Path(path or USER_CONFIG_PATH)
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(DEFAULT_USER_CONFIG, path)
        logger.info(f"{path} was created. Edit it to manage user options.")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationInvalid(f"Could not parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationInvalid(f"{path} must contain a mapping at the top level")

    options = options_from_dict(data)
    logger.debug(f"User config: {options}")
    return options


def options_from_dict(data: dict) -> ArchiveOptions:
    nested = {
        "file_naming_scheme": NamingScheme,
        "post_list":          PostListOptions,
        "preset":             RunPreset,
    }
    kwargs = {}
    for key, value in _coerce(ArchiveOptions, _known(ArchiveOptions, data, ""), "").items():
        if key in nested:
            section = value or {}
            if not isinstance(section, dict):
                raise ConfigurationInvalid(f"Config option {key} must be a mapping")
            kwargs[key] = nested[key](**_coerce(nested[key], _known(nested[key], section, f"{key}."), f"{key}."))
        else:
            kwargs[key] = value

    options = ArchiveOptions(**kwargs)
    if options.preset.enabled:
        validate_listing_params(options.preset.sorting, options.preset.time)
    return options


def _known(cls, data: dict, prefix: str) -> dict:
    """Keep only keys that are dataclass fields of `cls`; warn about the rest."""
    names = {f.name for f in fields(cls)}
    for key in data:
        if key not in names:
            logger.warning(f"Ignoring unknown config option {prefix}{key}")
    return {k: v for k, v in data.items() if k in names}


_TRUE  = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def _coerce(cls, values: dict, prefix: str) -> dict:
    """
    Convert scalar values to the field types of `cls`. Quoted numbers and
    booleans ("60", "true") are accepted; empty values fall back to defaults.
    """
    types = {f.name: f.type for f in fields(cls)}
    coerced = {}
    for key, value in values.items():
        kind = types[key]
        if value is None and kind in (bool, int, float, str):
            continue
        try:
            if kind is bool:
                coerced[key] = _to_bool(value)
            elif kind is int:
                coerced[key] = int(value)
            elif kind is float:
                coerced[key] = float(value)
            elif kind is str:
                coerced[key] = str(value)
            elif getattr(kind, "__origin__", None) is list:
                if value is None:
                    value = []
                coerced[key] = [str(v) for v in ([value] if isinstance(value, str) else value)]
            else:
                coerced[key] = value
        except (TypeError, ValueError) as exc:
            raise ConfigurationInvalid(f"Invalid value {value!r} for config option {prefix}{key}") from exc
    return coerced


def _to_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")
