import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import requests

import tik_config
from tik import normalize_video_info, validate_url
from tik_errors import (
    DownloadUnavailableError,
    TikTokDownloaderError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from tik_log import logger
from tik_models import DownloadKind, VideoInfo, ViewState


def get_basic_headers():
    return {"User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/128.0.0.0 Safari/537.36"}


# -------- Metadata fetcher ---------

def fetch_payload(url: str) -> dict:
    """Single GET against the extraction API. No retry."""
    logger.info("Fetching video info for {}", url)
    try:
        response = requests.get(
            tik_config.API_URL,
            params={"url": url},
            headers=tik_config.api_headers(),
            timeout=tik_config.REQUEST_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        logger.warning("Upstream request failed: {}", e)
        raise TransportError(f"API Error: {e}") from e

    if not response.ok:
        logger.warning("Upstream answered HTTP {} {}", response.status_code, response.reason)
        raise TransportError.from_status(response.status_code, response.reason or "")

    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamError("Failed to fetch video information") from e

    if not isinstance(payload, dict):
        raise UpstreamError("Failed to fetch video information")

    code = payload.get("code")
    if code not in (0, 200) or isinstance(code, bool):
        logger.warning("Upstream returned code={} msg={}", code, payload.get("msg"))
        raise UpstreamError(payload.get("msg") or "Failed to fetch video information")
    return payload


def fetch_video_info(url: str) -> VideoInfo:
    return normalize_video_info(fetch_payload(url))


# -------- Download trigger ---------

def download_filename(video_id: str, kind: Union[DownloadKind, str]) -> str:
    kind = DownloadKind(kind)
    safe_id = re.sub(r'[^a-zA-Z0-9_-]+', '_', video_id or '').strip('_') or 'Unknown'
    return f"{tik_config.FILENAME_PREFIX}-{safe_id}-{kind.value}.mp4"


@dataclass
class DownloadRequest:
    url: str
    filename: str


def open_video_stream(video_url: str) -> requests.Response:
    """Open the remote video for streaming, raising TransportError when it can't be read."""
    try:
        r = requests.get(video_url, stream=True, headers=get_basic_headers(), timeout=tik_config.REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Download failed: {e}") from e
    if r.status_code != 200:
        r.close()
        raise TransportError.from_status(r.status_code, r.reason or "")
    return r


def download_video_file(video_url: str, filename: str, dest_dir: Optional[Path] = None) -> Path:
    """Save the video to dest_dir, printing progress. Returns the written path."""
    dest_dir = Path(dest_dir or tik_config.DOWNLOAD_DIR)
    dest_dir.mkdir(parents=True, exist_ok=True)
    target = dest_dir / filename
    partial = target.with_suffix(target.suffix + ".part")

    r = open_video_stream(video_url)
    try:
        total_size = int(r.headers.get('content-length', 0) or 0)
        downloaded = 0
        with open(partial, 'wb') as f:
            for chunk in r.iter_content(chunk_size=8192):
                if not chunk:
                    continue
                f.write(chunk)
                downloaded += len(chunk)
                if total_size > 0:
                    print(f"\r📥 Progress: {downloaded / total_size * 100:5.1f}%", end='', flush=True)
    finally:
        r.close()

    partial.replace(target)
    if total_size > 0:
        print()
    logger.info("Saved {} ({} bytes)", target, downloaded)
    return target


# -------- Page component ---------

class TikTokDownloader:
    """Transient state behind the single page.

    idle -> fetching -> info-displayed | error-displayed, back to idle on edit.
    """

    def __init__(self, url: str = ""):
        self.url = url
        self.state = ViewState.IDLE
        self.is_loading = False
        self.video_info: Optional[VideoInfo] = None
        self.error: Optional[str] = None

    def edit(self, url: str):
        self.url = url
        self.error = None
        if self.state in (ViewState.INFO_DISPLAYED, ViewState.ERROR_DISPLAYED):
            self.state = ViewState.IDLE

    def _fail(self, message: str) -> ViewState:
        self.error = message
        self.state = ViewState.ERROR_DISPLAYED
        return self.state

    def fetch(self) -> ViewState:
        if self.is_loading:
            logger.debug("Fetch already in flight, ignoring duplicate submission")
            return self.state

        try:
            url = validate_url(self.url)
        except ValidationError as e:
            logger.info("Rejected input {!r}: {}", self.url, e)
            return self._fail(str(e))

        self.is_loading = True
        self.state = ViewState.FETCHING
        self.error = None
        self.video_info = None
        try:
            self.video_info = fetch_video_info(url)
        except TikTokDownloaderError as e:
            logger.error("Failed to fetch video: {}", e)
            return self._fail(f"Failed to fetch video: {e}")
        finally:
            self.is_loading = False

        self.state = ViewState.INFO_DISPLAYED
        return self.state

    def resolve_download(self, kind: Union[DownloadKind, str]) -> DownloadRequest:
        kind = DownloadKind(kind)
        if self.video_info is None:
            raise DownloadUnavailableError("Please fetch video information first")
        url = self.video_info.download_urls.for_kind(kind)
        if not url:
            raise DownloadUnavailableError(
                f"Download URL not available for {kind.value}. This might be due to API limitations "
                "or the video doesn't have this format available."
            )
        return DownloadRequest(url=url, filename=download_filename(self.video_info.id, kind))

    def download(self, kind: Union[DownloadKind, str], dest_dir: Optional[Path] = None) -> Optional[Path]:
        """Save the chosen variant locally. Errors end up in self.error."""
        try:
            req = self.resolve_download(kind)
        except DownloadUnavailableError as e:
            self.error = str(e)
            return None
        try:
            return download_video_file(req.url, req.filename, dest_dir)
        except TransportError as e:
            logger.warning("Download of {} failed: {}", req.url, e)
            self.error = f"Failed to download. Open this URL in your browser instead: {req.url}"
            return None


# -------- Console ---------

def print_video_info(info: VideoInfo):
    print(f"\n✅ {info.title}")
    print(f"   ID:       {info.id}")
    print(f"   Uploader: {info.uploader.username}")
    print(f"   Music:    {info.music.song_name} - {info.music.artist}")
    print(f"   Duration: {info.duration}")
    print(f"   No watermark:   {'available' if info.download_urls.no_watermark else 'unavailable'}")
    print(f"   With watermark: {'available' if info.download_urls.with_watermark else 'unavailable'}")


def main():
    print("🎬 TSun Studio TikTok Downloader")
    print("=" * 34)
    component = TikTokDownloader()
    component.edit(input("Enter TikTok video URL: "))
    print("🔍 Fetching...")
    if component.fetch() == ViewState.ERROR_DISPLAYED:
        print(f"❌ {component.error}")
        return

    print_video_info(component.video_info)
    print("\n1. Download without watermark")
    print("2. Download with watermark")
    print("3. Exit")
    choices = {'1': DownloadKind.NO_WATERMARK, '2': DownloadKind.WITH_WATERMARK}
    while True:
        choice = input("\n👉 Choose an option (1-3): ").strip()
        if choice == '3':
            print("👋 Goodbye!")
            return
        if choice not in choices:
            print("❌ Invalid choice. Enter 1-3.")
            continue
        path = component.download(choices[choice])
        if path:
            print(f"✅ Video downloaded successfully: {path}")
        else:
            print(f"❌ {component.error}")
        return


if __name__ == "__main__":
    main()
