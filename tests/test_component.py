import pytest

from conftest import FakeResponse
from tik_errors import DownloadUnavailableError
from tik_models import DownloadKind, ViewState
from tiktok_downloader import TikTokDownloader, download_filename

VIDEO_URL = "https://www.tiktok.com/@dancer/video/7301234567890"


def test_starts_idle():
    component = TikTokDownloader()
    assert component.state == ViewState.IDLE
    assert not component.is_loading
    assert component.video_info is None
    assert component.error is None


@pytest.mark.parametrize("url,message", [
    ("", "Please enter a TikTok URL"),
    ("https://www.youtube.com/watch?v=abc", "Please enter a valid TikTok URL"),
])
def test_invalid_input_never_fetches(upstream, url, message):
    component = TikTokDownloader(url)
    assert component.fetch() == ViewState.ERROR_DISPLAYED
    assert component.error == message
    assert upstream.calls == []


def test_successful_fetch_displays_info(upstream, nested_payload):
    upstream.queue(FakeResponse(json_data=nested_payload))
    component = TikTokDownloader(VIDEO_URL)

    assert component.fetch() == ViewState.INFO_DISPLAYED
    assert component.error is None
    assert not component.is_loading
    assert component.video_info.download_urls.no_watermark == "https://cdn.example.com/hd.mp4"


def test_failed_fetch_prefixes_message(upstream):
    upstream.queue(FakeResponse(json_data={"code": 0, "data": {"title": "no urls"}}))
    component = TikTokDownloader(VIDEO_URL)

    assert component.fetch() == ViewState.ERROR_DISPLAYED
    assert component.error == "Failed to fetch video: No download URLs available for this video"
    assert component.video_info is None
    assert not component.is_loading


def test_loading_flag_blocks_duplicate_fetch(upstream):
    component = TikTokDownloader(VIDEO_URL)
    component.is_loading = True
    component.state = ViewState.FETCHING

    assert component.fetch() == ViewState.FETCHING
    assert upstream.calls == []


def test_new_fetch_discards_previous_info(upstream, nested_payload):
    upstream.queue(FakeResponse(json_data=nested_payload))
    upstream.queue(FakeResponse(status_code=500, reason="Internal Server Error"))
    component = TikTokDownloader(VIDEO_URL)
    component.fetch()

    assert component.fetch() == ViewState.ERROR_DISPLAYED
    assert component.video_info is None
    assert component.error == "Failed to fetch video: API Error: 500 - Internal Server Error"


def test_edit_resets_terminal_state(upstream):
    component = TikTokDownloader("nope")
    component.fetch()
    assert component.state == ViewState.ERROR_DISPLAYED

    component.edit(VIDEO_URL)
    assert component.state == ViewState.IDLE
    assert component.error is None
    assert component.url == VIDEO_URL


def test_download_before_fetch():
    with pytest.raises(DownloadUnavailableError, match="Please fetch video information first"):
        TikTokDownloader().resolve_download(DownloadKind.NO_WATERMARK)


def test_resolve_download(upstream, nested_payload):
    upstream.queue(FakeResponse(json_data=nested_payload))
    component = TikTokDownloader(VIDEO_URL)
    component.fetch()

    req = component.resolve_download("with-watermark")
    assert req.url == "https://cdn.example.com/wm.mp4"
    assert req.filename == "tsun-7301234567890-with-watermark.mp4"

    with pytest.raises(DownloadUnavailableError, match="Download URL not available for audio-only"):
        component.resolve_download(DownloadKind.AUDIO_ONLY)


def test_download_filename_sanitizes_id():
    assert download_filename("12/34", DownloadKind.NO_WATERMARK) == "tsun-12_34-no-watermark.mp4"
    assert download_filename("视频", DownloadKind.NO_WATERMARK) == "tsun-Unknown-no-watermark.mp4"
    assert download_filename("ab 视频 12", "with-watermark") == "tsun-ab_12-with-watermark.mp4"
    assert download_filename("", "with-watermark") == "tsun-Unknown-with-watermark.mp4"


def test_download_writes_file(upstream, nested_payload, tmp_path):
    upstream.queue(FakeResponse(json_data=nested_payload))
    component = TikTokDownloader(VIDEO_URL)
    component.fetch()

    video = upstream.queue(FakeResponse(headers={"content-length": "6"}, chunks=[b"abc", b"def"]))
    path = component.download(DownloadKind.NO_WATERMARK, dest_dir=tmp_path)

    assert path == tmp_path / "tsun-7301234567890-no-watermark.mp4"
    assert path.read_bytes() == b"abcdef"
    assert video.closed
    assert upstream.calls[-1]["url"] == "https://cdn.example.com/hd.mp4"
    assert upstream.calls[-1]["stream"] is True


def test_download_failure_sets_error(upstream, nested_payload, tmp_path):
    upstream.queue(FakeResponse(json_data=nested_payload))
    component = TikTokDownloader(VIDEO_URL)
    component.fetch()

    upstream.queue(FakeResponse(status_code=404, reason="Not Found"))
    assert component.download(DownloadKind.NO_WATERMARK, dest_dir=tmp_path) is None
    assert "https://cdn.example.com/hd.mp4" in component.error
    assert list(tmp_path.iterdir()) == []
