import re
from typing import Any, Optional, Sequence

import tik_config
from tik_errors import EmptyUrlError, InvalidUrlError, NoDownloadUrlsError
from tik_models import DownloadUrls, Music, Uploader, VideoInfo

# Host must end at a path, query, port or the end of input, so tiktok.com.evil.example is rejected
TIKTOK_URL_RE = re.compile(
    r"^https?://(www\.)?(tiktok\.com|vm\.tiktok\.com|m\.tiktok\.com)(?=[/?#:]|$)", re.IGNORECASE
)

# Candidate paths cover both upstream shapes: fields nested under "data", or at the top level
TITLE_PATHS = ("data.title", "title")
ID_PATHS = ("data.id", "data.aweme_id", "id", "aweme_id")
USERNAME_PATHS = (
    "data.author.unique_id",
    "data.author.nickname",
    "author.unique_id",
    "author.nickname",
    "data.author.username",
    "author.username",
)
AVATAR_PATHS = (
    "data.author.avatar_larger",
    "data.author.avatar_medium",
    "data.author.avatar_thumb",
    "author.avatar_larger",
    "author.avatar_medium",
    "author.avatar_thumb",
    "data.author.avatar",
    "author.avatar",
)
SONG_PATHS = ("data.music.title", "music.title")
ARTIST_PATHS = ("data.music.author", "music.author", "data.author.nickname")
DURATION_PATHS = ("data.duration", "duration")
NO_WATERMARK_PATHS = ("data.hdplay", "data.play", "hdplay", "play")
WITH_WATERMARK_PATHS = ("data.wmplay", "wmplay", "data.play", "play")


def is_valid_tiktok_url(url: str) -> bool:
    return bool(TIKTOK_URL_RE.match(url or ""))


def validate_url(raw: Optional[str]) -> str:
    """Return the stripped URL, or raise a ValidationError describing what is wrong."""
    url = (raw or "").strip()
    if not url:
        raise EmptyUrlError()
    if not is_valid_tiktok_url(url):
        raise InvalidUrlError()
    return url


def get_path(payload: Any, path: str) -> Any:
    node = payload
    for key in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def first_present(payload: Any, paths: Sequence[str]) -> Any:
    """First candidate that is neither None nor an empty string."""
    for path in paths:
        value = get_path(payload, path)
        if value is None or value == "":
            continue
        return value
    return None


def _text(payload: Any, paths: Sequence[str], default: str = "") -> str:
    value = first_present(payload, paths)
    return default if value is None else str(value)


def normalize_username(raw: Optional[str]) -> str:
    username = raw or "unknown"
    return username if username.startswith("@") else f"@{username}"


def format_duration(seconds: Any) -> str:
    if isinstance(seconds, bool) or seconds is None:
        return "0:00"
    try:
        total = int(float(seconds))
    except (TypeError, ValueError, OverflowError):
        return "0:00"
    if total <= 0:
        return "0:00"
    return f"{total // 60}:{total % 60:02d}"


def truncate_title(title: str, max_length: int = tik_config.TITLE_MAX_LENGTH) -> str:
    if len(title) <= max_length:
        return title
    return f"{title[:max_length]}..."


def normalize_video_info(payload: Any) -> VideoInfo:
    """Build a VideoInfo from a raw upstream payload.

    Every field is taken from the first non-empty candidate path, falling back
    to a fixed default. Raises NoDownloadUrlsError when neither the
    watermarked nor the unwatermarked URL resolves.
    """
    download_urls = DownloadUrls(
        no_watermark=_text(payload, NO_WATERMARK_PATHS),
        with_watermark=_text(payload, WITH_WATERMARK_PATHS),
    )
    if not download_urls.no_watermark and not download_urls.with_watermark:
        raise NoDownloadUrlsError()

    return VideoInfo(
        title=_text(payload, TITLE_PATHS, "TikTok Video"),
        id=_text(payload, ID_PATHS, "Unknown"),
        uploader=Uploader(
            username=normalize_username(_text(payload, USERNAME_PATHS)),
            profile_picture=_text(payload, AVATAR_PATHS, tik_config.PLACEHOLDER_AVATAR),
        ),
        music=Music(
            song_name=_text(payload, SONG_PATHS, "Original Sound"),
            artist=_text(payload, ARTIST_PATHS, "TikTok"),
        ),
        duration=format_duration(first_present(payload, DURATION_PATHS)),
        download_urls=download_urls,
    )
