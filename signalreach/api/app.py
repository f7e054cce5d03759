"""
SignalReach Gateway - FastAPI Backend
Draft generation proxy, cron scrape trigger, and the dashboard's workspace,
signal and profile endpoints.

Run: uvicorn signalreach.api.app:create_app --factory --port 8080
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from signalreach import __version__
from signalreach.agents.llm_gateway import LLMGateway, create_openai_client
from signalreach.agents.scrape_runner import ScrapeRunner
from signalreach.agents.scraper import RedditScraper, create_apify_client
from signalreach.api.routers import cron, drafts, profiles, signals, workspaces
from signalreach.config import Settings, validate
from signalreach.db.client import create_supabase_client
from signalreach.db.profiles import SocialProfileRepository
from signalreach.db.signals import SignalRepository
from signalreach.db.workspaces import WorkspaceRepository
from signalreach.errors import SignalReachError
from signalreach.logging_config import setup_logging

logger = logging.getLogger("signalreach.api")


def _build_clients(settings: Settings, supabase, llm, apify):
    if llm is None:
        validate(settings, strict=True)
        llm = LLMGateway(
            create_openai_client(settings.llm_api_key, settings.llm_base_url or None,
                                 timeout=settings.llm_timeout),
            model=settings.llm_model,
        )
    if supabase is None and settings.supabase_url and settings.supabase_key:
        supabase = create_supabase_client(settings.supabase_url, settings.supabase_key)
    if apify is None and settings.apify_token:
        apify = create_apify_client(settings.apify_token)
    return supabase, llm, apify


def create_app(settings: Settings = None, supabase=None, llm=None, apify=None) -> FastAPI:
    """Build the gateway application.

    Clients passed in are used as-is; missing ones are built from settings.
    The LLM credential is the only one required at startup: without it a
    ConfigError is raised and the process must not start.
    """
    settings = settings or Settings.from_env()
    setup_logging(level=settings.log_level, fmt=settings.log_format, log_file=settings.log_file)
    supabase, llm, apify = _build_clients(settings, supabase, llm, apify)

    app = FastAPI(
        title="SignalReach Gateway",
        description="Keyword signal monitoring and AI reply drafting API.",
        version=__version__,
    )

    app.state.settings = settings
    app.state.supabase = supabase
    app.state.llm = llm
    app.state.workspaces = WorkspaceRepository(supabase) if supabase is not None else None
    app.state.signals = SignalRepository(supabase) if supabase is not None else None
    app.state.profiles = SocialProfileRepository(supabase) if supabase is not None else None
    app.state.scrape_runner = None
    if supabase is not None and apify is not None:
        scraper = RedditScraper(apify, actor_id=settings.reddit_actor,
                                max_items=settings.scrape_max_items,
                                wait_secs=settings.scrape_wait_secs)
        app.state.scrape_runner = ScrapeRunner(
            app.state.workspaces, app.state.signals, scraper,
            max_workers=settings.scrape_max_workers, dedupe=settings.scrape_dedupe,
        )

    # ─── CORS ────────────────────────────────────────────────
    allowed_origins = settings.allowed_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def reject_unknown_origins(request: Request, call_next):
        origin = request.headers.get("origin")
        if origin and origin not in allowed_origins:
            logger.warning("CORS blocked: %s", origin)
            return JSONResponse(status_code=403,
                                content={"error": f"Origin {origin} is not allowed by CORS"})
        return await call_next(request)

    # ─── ERRORS ──────────────────────────────────────────────

    @app.exception_handler(SignalReachError)
    async def handle_signalreach_error(request: Request, exc: SignalReachError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        if first.get("type") == "json_invalid":
            return JSONResponse(status_code=400, content={"error": "Request body must be valid JSON."})
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = first.get("msg", "Invalid request.")
        # Model-level checks carry their own complete message
        if first.get("type") == "value_error" and "error" in first.get("ctx", {}):
            message = str(first["ctx"]["error"])
        return JSONResponse(status_code=400,
                            content={"error": f"{field}: {message}" if field else message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Route not found."})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    # ─── ROUTERS ─────────────────────────────────────────────
    app.include_router(drafts.router)
    app.include_router(cron.router)
    app.include_router(workspaces.router)
    app.include_router(signals.router)
    app.include_router(profiles.router)

    @app.get("/")
    def root():
        return {"status": "SignalReach Gateway Active"}

    @app.get("/api/health")
    def health():
        return {
            "status": "ok",
            "version": __version__,
            "llm": llm.health(),
            "database": supabase is not None,
            "scraper": app.state.scrape_runner is not None,
        }

    logger.info("SignalReach gateway ready (origins=%s)", ", ".join(allowed_origins))
    return app
