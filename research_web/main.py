from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .analyzer import SiteAnalyzer
from .cache import TTLCache
from .config import Settings
from .errors import AnalysisError, ConfigError, InvalidURLError
from .fetcher import FETCH_TIMEOUT_S, PageFetcher
from .llm import ModelClient
from .models import AnalyzeRequest, AnalyzeResponse, ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

_CSP = (
    "default-src 'self'; script-src 'self'; style-src 'self' 'unsafe-inline'; "
    "img-src 'self' data:; connect-src 'self'"
)
_SECURITY_HEADERS = {
    "Content-Security-Policy": _CSP,
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_analyzer(settings: Settings) -> SiteAnalyzer:
    """Wire the pipeline; the caller closes it with ``aclose()``."""
    return SiteAnalyzer(
        fetcher=PageFetcher(httpx.AsyncClient(timeout=httpx.Timeout(FETCH_TIMEOUT_S))),
        model=ModelClient(
            api_key=settings.api_key,
            base_url=settings.base_url,
            model=settings.model,
            timeout_s=settings.model_timeout_s,
        ),
        cache=TTLCache(),
    )


class SPAStaticFiles(StaticFiles):
    """Static assets, falling back to index.html for client-side routes."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


def create_app(settings: Settings | None = None, analyzer: SiteAnalyzer | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned: SiteAnalyzer | None = None
        if app.state.analyzer is None:
            # Fails closed here when no credential is configured.
            owned = app.state.analyzer = build_analyzer(settings or Settings.from_env())
        try:
            yield
        finally:
            if owned is not None:
                app.state.analyzer = None
                await owned.aclose()

    app = FastAPI(title="RESEARCH-WEB", version="1.0.0", lifespan=lifespan)
    app.state.analyzer = analyzer

    cors_origins = settings.cors_origins if settings else []
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.exception_handler(AnalysisError)
    async def analysis_error_handler(request: Request, exc: AnalysisError):
        if exc.status_code >= 500:
            logger.error("analysis failed: %s", exc.message, exc_info=exc.__cause__)
        else:
            logger.info("rejected request: %s", exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("unreadable analyze body: %s", exc.errors())
        return JSONResponse(status_code=400, content={"error": InvalidURLError().message})

    @app.exception_handler(ConfigError)
    async def config_error_handler(request: Request, exc: ConfigError):
        logger.error("configuration error: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Model API credential is not configured"})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("unexpected error while handling %s", request.url.path)
        return JSONResponse(status_code=500, content={"error": "Analysis failed"})

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return {"ok": True}

    @app.post(
        "/analyze",
        response_model=AnalyzeResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def analyze_endpoint(req: AnalyzeRequest, request: Request):
        outcome = await request.app.state.analyzer.analyze(req.url)
        return {"cached": outcome.cached, "data": outcome.data}

    static_dir = settings.static_dir if settings else Path("public")
    if static_dir.is_dir():
        app.mount("/", SPAStaticFiles(directory=static_dir, html=True), name="static")

    return app


# For `uvicorn research_web.main:app`: credentials are read from the
# environment at startup.
app = create_app()


def run() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info("RESEARCH-WEB server running on http://localhost:%d", settings.port)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
