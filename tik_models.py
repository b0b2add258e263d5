from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ViewState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    INFO_DISPLAYED = "info-displayed"
    ERROR_DISPLAYED = "error-displayed"


class DownloadKind(str, Enum):
    NO_WATERMARK = "no-watermark"
    WITH_WATERMARK = "with-watermark"
    AUDIO_ONLY = "audio-only"


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Uploader(_Model):
    username: str
    profile_picture: str = Field(..., alias="profilePicture")


class Music(_Model):
    song_name: str = Field(..., alias="songName")
    artist: str


class DownloadUrls(_Model):
    no_watermark: str = Field("", alias="noWatermark")
    with_watermark: str = Field("", alias="withWatermark")
    # Audio extraction is disabled, always empty
    audio_only: str = Field("", alias="audioOnly")

    def for_kind(self, kind: DownloadKind) -> str:
        if kind == DownloadKind.NO_WATERMARK:
            return self.no_watermark
        if kind == DownloadKind.WITH_WATERMARK:
            return self.with_watermark
        return self.audio_only


class VideoInfo(_Model):
    """Normalized metadata of one TikTok video, as shown on the page."""

    title: str
    id: str
    uploader: Uploader
    music: Music
    duration: str
    download_urls: DownloadUrls = Field(..., alias="downloadUrls")
