import os
from pathlib import Path
from typing import Optional

BASE_DIR = Path(__file__).parent

API_URL = os.environ.get("TSUN_API_URL", "https://tiktok-video-no-watermark2.p.rapidapi.com/")
API_HOST = os.environ.get("TSUN_API_HOST", "tiktok-video-no-watermark2.p.rapidapi.com")
API_KEY = os.environ.get("TSUN_API_KEY", "")


def _read_timeout(raw: Optional[str]) -> Optional[float]:
    # Unset or blank means the upstream call may wait indefinitely
    if not raw or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


REQUEST_TIMEOUT = _read_timeout(os.environ.get("TSUN_REQUEST_TIMEOUT"))

DOWNLOAD_DIR = Path(os.environ.get("TSUN_DOWNLOAD_DIR", str(Path.cwd() / "downloads")))
LOG_DIR = Path(os.environ.get("TSUN_LOG_DIR", str(BASE_DIR / "logs")))
LOG_LEVEL = os.environ.get("TSUN_LOG_LEVEL", "INFO").upper()

FILENAME_PREFIX = "tsun"
PLACEHOLDER_AVATAR = (
    "https://images.pexels.com/photos/1239291/pexels-photo-1239291.jpeg"
    "?auto=compress&cs=tinysrgb&w=48&h=48&fit=crop"
)
TITLE_MAX_LENGTH = 75


def api_headers() -> dict:
    return {
        "X-RapidAPI-Key": API_KEY,
        "X-RapidAPI-Host": API_HOST,
    }
