"""Blog CMS Gatekeeper — FastAPI application entry point.

Every route under the API prefix passes through the gatekeeper middleware
(CORS allow-list, per-client sliding window rate limit, security headers).
The short link redirect at /s/{code} is public and not gated.
"""

from contextlib import asynccontextmanager

from fastapi import BackgroundTasks, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from gatekeeper.config.settings import get_settings
from gatekeeper.links.factory import get_link_store
from gatekeeper.links.service import (
    LinkError,
    create_asset_link,
    create_link,
    link_listing,
    link_summary,
    resolve_link,
    short_url,
    track_click,
)
from gatekeeper.logging.audit import get_audit_logger, setup_logging
from gatekeeper.security.auth import Editor, verify_editor
from gatekeeper.security.middleware import GatekeeperMiddleware
from gatekeeper.windows.factory import get_window_store
from gatekeeper.windows.sweeper import EvictionSweeper

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging()
    settings = get_settings()
    sweeper = EvictionSweeper(
        get_window_store(),
        interval_seconds=settings.eviction_interval_seconds,
        idle_ms=settings.eviction_idle_ms,
    )
    sweeper.start()
    app.state.sweeper = sweeper
    get_audit_logger().info("Gatekeeper started")
    yield
    await sweeper.stop()
    get_audit_logger().info("Gatekeeper stopped")


app = FastAPI(
    title="Blog CMS Gatekeeper",
    description="Rate-limited, CORS-gated API for the blog CMS",
    version=VERSION,
    lifespan=lifespan,
)
app.add_middleware(GatekeeperMiddleware)


@app.exception_handler(LinkError)
async def link_error_handler(request: Request, exc: LinkError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}


@app.post("/api/shorten", status_code=201)
async def shorten(request: Request, editor: Editor = Depends(verify_editor)):
    body = await _json_body(request)
    link = await create_link(get_link_store(), body, editor.email)
    return link_summary(link, _base_url(request))


@app.get("/api/shorten")
async def list_links(request: Request, editor: Editor = Depends(verify_editor)):
    links = await get_link_store().list_by_owner(editor.email)
    base_url = _base_url(request)
    return {"urls": [link_listing(link, base_url) for link in links]}


@app.post("/api/auto-shorten", status_code=201)
async def auto_shorten(request: Request, editor: Editor = Depends(verify_editor)):
    body = await _json_body(request)
    link = await create_asset_link(get_link_store(), body, editor.email)
    return {
        "id": link.id,
        "originalUrl": link.original_url,
        "shortCode": link.short_code,
        "shortUrl": short_url(_base_url(request), link.short_code),
        "title": link.title,
    }


@app.get("/s/{code}")
async def redirect_short_link(code: str, request: Request, background_tasks: BackgroundTasks):
    """Redirect to the link target; the click is recorded after the response."""
    store = get_link_store()
    link = await resolve_link(store, code)
    background_tasks.add_task(
        track_click,
        store,
        link,
        user_agent=request.headers.get("user-agent", ""),
        referer=request.headers.get("referer", ""),
        forwarded_for=request.headers.get("x-forwarded-for", ""),
    )
    return RedirectResponse(link.original_url, status_code=307)


async def _json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError as e:
        raise LinkError(400, "Invalid JSON body") from e
    if not isinstance(body, dict):
        raise LinkError(400, "Invalid JSON body")
    return body


def _base_url(request: Request) -> str:
    """Public base URL as seen by the caller (proxy-aware)."""
    host = request.headers.get("host") or "localhost:3000"
    protocol = request.headers.get("x-forwarded-proto") or "http"
    return f"{protocol}://{host}"
