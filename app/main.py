import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.config import settings, Settings
from app.core.events import profile_events, log_profile_event
from app.modules.auth import routes as auth_routes
from app.modules.users import routes as users_routes
from app.modules.matches import routes as matches_routes
from app.modules.chat import routes as chat_routes
from app.modules.contracts import routes as contracts_routes

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
ROUTERS = (
    auth_routes.router,
    users_routes.router,
    matches_routes.router,
    chat_routes.router,
    contracts_routes.router,
)

SECURITY_HEADERS = [
    (b"X-Content-Type-Options", b"nosniff"),
    (b"X-Frame-Options", b"DENY"),
    (b"X-XSS-Protection", b"1; mode=block"),
]


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend(SECURITY_HEADERS)
            await send(message)

        await self.app(scope, receive, send_with_headers)


def configure_logging(app_settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, app_settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log profile refresh/update notifications for as long as the app runs"""
    unsubscribe = profile_events.subscribe(log_profile_event)
    logger.info("Marketplace API started")
    try:
        yield
    finally:
        unsubscribe()
        logger.info("Marketplace API stopped")


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Build the marketplace API. Every route is rate limited per client address
    with `app_settings.rate_limit`, except the health endpoints.
    """
    configure_logging(app_settings)

    limiter = Limiter(key_func=get_remote_address, default_limits=[app_settings.rate_limit])
    app = FastAPI(
        title=app_settings.app_name,
        debug=app_settings.debug,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    async def unhandled_exception(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
        detail = "Internal server error" if app_settings.is_production else str(exc)
        return JSONResponse(status_code=500, content={"detail": detail})

    app.add_exception_handler(Exception, unhandled_exception)

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {app_settings.app_name}", "status": "healthy"}

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"status": "healthy"}

    @app.get("/ready")
    @limiter.exempt
    async def ready():
        return {"status": "ready"}

    return app


app = create_app()
