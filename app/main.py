import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.clock import utcnow
from app.core.config import Settings, settings as default_settings
from app.core.storage import build_storage
import app.db.base  # noqa: F401  registers every model before any mapper is configured
from app.db.session import Database
from app.middleware.auth_logging import AuthLoggingMiddleware
from app.middleware.error_handlers import register_exception_handlers
from app.middleware.rate_limit import build_rate_limiter
from app.middleware.request_logging import RequestLoggingMiddleware
from app.modules.auth.api.router import router as auth_router
from app.modules.auth.services.oauth import OAuthClient
from app.modules.categories.api.router import router as categories_router
from app.modules.home_feed.api.router import router as home_feed_router
from app.modules.media.router import router as media_router, upload_router
from app.modules.messages.api.router import router as messages_router
from app.modules.payments.api.router import router as payments_router, tiers_router
from app.modules.posts.api.router import router as posts_router
from app.modules.posts.likes.api.router import router as likes_router
from app.modules.user_management.api.router import router as user_router

logger = logging.getLogger("app")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting server in {settings.ENVIRONMENT} mode")
        logger.info(f"BASE_URL: {settings.BASE_URL}")
        app.state.db.create_all()
        yield
        app.state.db.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        debug=settings.DEBUG,
        description="Classifieds marketplace API",
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        swagger_ui_parameters={"defaultModelsExpandDepth": -1},
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = Database.from_settings(settings)
    app.state.storage = build_storage(settings)
    app.state.rate_limiter = build_rate_limiter(settings)
    app.state.oauth_client = OAuthClient(settings)

    # Add middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(AuthLoggingMiddleware)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Register API routers
    api = settings.API_V1_STR
    app.include_router(auth_router, prefix=f"{api}/auth", tags=["authentication"])
    app.include_router(user_router, prefix=f"{api}/users", tags=["users"])
    app.include_router(categories_router, prefix=f"{api}/categories", tags=["categories"])
    # Feed paths must be matched before /posts/{post_id}
    app.include_router(home_feed_router, prefix=f"{api}/posts", tags=["home feed"])
    app.include_router(posts_router, prefix=f"{api}/posts", tags=["posts"])
    app.include_router(likes_router, prefix=f"{api}/posts/{{post_id}}", tags=["likes"])
    app.include_router(payments_router, prefix=f"{api}/payments", tags=["payments"])
    app.include_router(tiers_router, prefix=f"{api}/pricing-tiers", tags=["payments"])
    app.include_router(messages_router, prefix=f"{api}/messages", tags=["messages"])
    app.include_router(upload_router, prefix=f"{api}/upload", tags=["upload"])
    app.include_router(media_router, prefix=f"{api}/media", tags=["media"])

    @app.get("/health")
    def health_check():
        return {"status": "ok", "timestamp": utcnow().isoformat()}

    return app


app = create_app()
