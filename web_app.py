from html import escape
from pathlib import Path
from urllib.parse import urlencode

from fastapi import FastAPI, Request, Form
from fastapi.responses import HTMLResponse, RedirectResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

import tik_config
from tik import truncate_title, validate_url
from tik_errors import DownloadUnavailableError, TransportError, ValidationError
from tik_log import logger
from tik_models import DownloadKind, ViewState
from tiktok_downloader import TikTokDownloader, download_filename, open_video_stream

app = FastAPI(title="TSun Studio TikTok Downloader")
BASE_DIR = Path(__file__).parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

DOWNLOAD_LABELS = {
    DownloadKind.NO_WATERMARK: "No Watermark",
    DownloadKind.WITH_WATERMARK: "With Watermark",
    DownloadKind.AUDIO_ONLY: "Audio Only",
}


# -------- Utility ---------

def download_links(component: TikTokDownloader) -> list:
    info = component.video_info
    page_url = (component.url or '').strip()
    links = []
    for kind, label in DOWNLOAD_LABELS.items():
        url = info.download_urls.for_kind(kind) if info else ""
        link = {'kind': kind.value, 'label': label, 'enabled': bool(url), 'href': None, 'filename': None}
        if url:
            # The server re-resolves the page URL, media URLs never travel through the query string
            link['href'] = '/download?' + urlencode({'url': page_url, 'kind': kind.value})
            link['filename'] = download_filename(info.id, kind)
        links.append(link)
    return links


def render_page(request: Request, component: TikTokDownloader):
    info = component.video_info
    context = {
        'component': component,
        'state': component.state.value,
        'url': component.url,
        'error': component.error,
        'info': info,
        'short_title': truncate_title(info.title) if info else '',
        'downloads': download_links(component),
        'placeholder_avatar': tik_config.PLACEHOLDER_AVATAR,
    }
    return templates.TemplateResponse(request, 'index.html', context)


# -------- Routes ---------

@app.get('/', response_class=HTMLResponse)
def index(request: Request):
    return render_page(request, TikTokDownloader())


@app.post('/preview', response_class=HTMLResponse)
def preview(request: Request, url: str = Form('')):
    component = TikTokDownloader()
    component.edit(url)
    component.fetch()
    return render_page(request, component)


@app.get('/download')
def download(url: str = '', kind: str = DownloadKind.NO_WATERMARK.value):
    # Only media URLs resolved by the extraction API are ever streamed or redirected to
    try:
        page_url = validate_url(url)
    except ValidationError as e:
        return HTMLResponse(f"<h3>{escape(str(e))}</h3>", status_code=400)
    try:
        kind = DownloadKind(kind)
    except ValueError:
        return HTMLResponse("<h3>Unknown download type</h3>", status_code=400)
    if kind == DownloadKind.AUDIO_ONLY:
        return HTMLResponse("<h3>Audio download is disabled</h3>", status_code=400)

    component = TikTokDownloader(page_url)
    if component.fetch() != ViewState.INFO_DISPLAYED:
        return HTMLResponse(f"<h3>{escape(component.error or 'Failed to fetch TikTok video.')}</h3>", status_code=502)
    try:
        req = component.resolve_download(kind)
    except DownloadUnavailableError as e:
        return HTMLResponse(f"<h3>{escape(str(e))}</h3>", status_code=400)

    try:
        r = open_video_stream(req.url)
    except TransportError as e:
        # Fall back to letting the browser open the file itself
        logger.warning("Streaming {} failed ({}), redirecting instead", req.url, e)
        return RedirectResponse(req.url, status_code=307)

    def vstream():
        try:
            for chunk in r.iter_content(chunk_size=8192):
                if chunk:
                    yield chunk
        finally:
            r.close()

    return StreamingResponse(
        vstream(),
        media_type=r.headers.get('content-type') or 'video/mp4',
        headers={'Content-Disposition': f'attachment; filename="{req.filename}"'},
    )


@app.get('/api/preview')
def api_preview(url: str = ''):
    component = TikTokDownloader()
    component.edit(url)
    component.fetch()
    info = component.video_info
    return {
        'ok': info is not None,
        'preview': info.model_dump(by_alias=True) if info else None,
        'error': component.error,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000, log_config=None)
