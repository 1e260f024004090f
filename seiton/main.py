"""
FastAPI application factory
"""
import logging
import os
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from seiton.config import Settings, get_settings
from seiton.infrastructure.db.session import Backend, BackendNotConfiguredError
from seiton.api.v1 import auth, inventory, pages, profile, subscription, tasks, transactions
from seiton.api.v1.pages import render

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Logs the traceback of anything the routes did not handle."""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return Response(content="Internal Server Error", status_code=500)


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/")


def create_app(settings: Settings | None = None, backend: Backend | None = None) -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app

    Args:
        settings: Defaults to get_settings()
        backend: Defaults to a Backend built from settings (started in lifespan)
    """
    settings = settings or get_settings()
    backend = backend or Backend(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.backend.start()
        yield
        app.state.backend.dispose()

    app = FastAPI(
        title="Seiton",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.backend = backend
    app.state.settings = settings

    app.add_middleware(ErrorLoggingMiddleware)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        max_age=settings.SESSION_MAX_AGE,
    )

    _static_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "static")
    app.mount("/static", StaticFiles(directory=_static_dir), name="static")

    # Routers - API first, then SSR pages
    app.include_router(profile.router)
    app.include_router(tasks.router)
    app.include_router(transactions.router)
    app.include_router(inventory.router)
    app.include_router(subscription.router)
    app.include_router(auth.router)
    app.include_router(pages.router)

    @app.exception_handler(BackendNotConfiguredError)
    async def backend_not_configured(request: Request, exc: BackendNotConfiguredError):
        if _wants_json(request):
            return JSONResponse({"detail": str(exc)}, status_code=503)
        return render(request, "backend_unavailable.html", {"message": str(exc)}, status_code=503)

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and not _wants_json(request):
            return render(request, "404.html", {"path": request.url.path}, status_code=404)
        return await http_exception_handler(request, exc)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready(request: Request):
        """Readiness check endpoint (pings the database)"""
        request.app.state.backend.check_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "seiton.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
