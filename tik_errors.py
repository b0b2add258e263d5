from typing import Optional


class TikTokDownloaderError(Exception):
    """Base class for every error shown to the user."""


class ValidationError(TikTokDownloaderError):
    pass


class EmptyUrlError(ValidationError):
    def __init__(self):
        super().__init__("Please enter a TikTok URL")


class InvalidUrlError(ValidationError):
    def __init__(self):
        super().__init__("Please enter a valid TikTok URL")


class TransportError(TikTokDownloaderError):
    """The upstream could not be reached or answered with a non-OK status."""

    def __init__(self, message: str, status_code: Optional[int] = None, reason: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason

    @classmethod
    def from_status(cls, status_code: int, reason: str) -> "TransportError":
        return cls(f"API Error: {status_code} - {reason}", status_code=status_code, reason=reason)


class UpstreamError(TikTokDownloaderError):
    """The upstream answered, but with a payload we cannot use."""


class NoDownloadUrlsError(UpstreamError):
    def __init__(self):
        super().__init__("No download URLs available for this video")


class DownloadUnavailableError(TikTokDownloaderError):
    pass
