from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from apinotice.config import Settings, get_settings
from apinotice.infrastructure.database import SessionLocal, engine, initialize_database
from apinotice.infrastructure.email import build_mailer
from apinotice.infrastructure.scheduler import NotificationDispatchLoop
from apinotice.interfaces.api.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from apinotice.interfaces.api.routes import register_routes
from apinotice.interfaces.api.security_headers import SecurityHeadersMiddleware
from apinotice.logging_config import configure_logging


def _build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Prepare the database and run the dispatcher for the app's lifetime."""

        configure_logging(settings.log_level)
        initialize_database()

        dispatcher: NotificationDispatchLoop | None = None
        if settings.notify_dispatcher_enabled:
            dispatcher = NotificationDispatchLoop.from_settings(
                settings,
                session_factory=SessionLocal,
                mailer=build_mailer(settings),
            )
            dispatcher.start()
        app.state.dispatcher = dispatcher
        try:
            yield
        finally:
            if dispatcher is not None:
                await dispatcher.stop()
            engine.dispose()

    return lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()
    app = FastAPI(title="apinotice", lifespan=_build_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        limiter=FixedWindowRateLimiter(
            settings.rate_limit_requests, settings.rate_limit_window_seconds
        ),
    )
    app.add_middleware(SecurityHeadersMiddleware)

    register_routes(app)
    return app


app = create_app()
