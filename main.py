import uvicorn
from loguru import logger

from config.base import get_settings
from core.infrastructure.logging import RequestTrackingMiddleware, setup_logging


def create_app():
    """Create and configure FastAPI application instance

    Sets up application lifespan events, middleware, exception handlers,
    and API routers.

    Returns
    -------
    FastAPI
        Deployment-ready FastAPI instance.
    """
    from contextlib import asynccontextmanager

    from fastapi import FastAPI, HTTPException
    from fastapi.exceptions import RequestValidationError, ResponseValidationError
    from fastapi.middleware.cors import CORSMiddleware
    from pydantic import ValidationError
    from sqlalchemy.exc import IntegrityError, SQLAlchemyError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    from config.database import close_database_engine, create_tables
    from core.domain.exceptions import ApplicationError
    from core.infrastructure.exceptions import global_exception_handler
    from core.infrastructure.factory import close_redis_service, get_redis_service
    from notifications.application.dispatcher import wait_for_pending_pushes
    from notifications.infrastructure.factory import reset_delivery_channel
    from notifications.infrastructure.tasks import (
        start_expiry_sweeper,
        stop_expiry_sweeper,
    )

    settings = get_settings()

    @asynccontextmanager
    async def custom_lifespan(app):
        """Manage application startup and shutdown lifecycle.

        Sets up logging, creates missing tables, checks Redis and starts the
        expired-notification sweeper. On shutdown, pending pushes get a short
        grace period before connections are released.

        Parameters
        ----------
        app : FastAPI
            FastAPI application instance.

        Yields
        ------
        None
            Control to application after startup, and before shutdown.

        Raises
        ------
        Exception
            If database table creation fails.
        """
        setup_logging()

        try:
            logger.debug("🔧 Creating non-existent database tables...")
            await create_tables()

        except Exception as e:
            logger.error(f"📝 Table creation failed: {e}")
            raise e

        try:
            logger.debug("🔧 Initializing Redis connection...")
            redis_service = await get_redis_service()
            ping_result = await redis_service.ping()
            logger.info(f"🟢 Redis pinged: <green>{ping_result}</green>.")

        except Exception as e:
            logger.warning(
                f"🟠 Redis unavailable, user lookups will bypass the cache: {e}"
            )

        sweeper = start_expiry_sweeper(settings.notification_purge_interval_seconds)

        logger.info("🟢 Application startup completed.")
        logger.info("🚀✨ <green>Construction QA notifications are now running!</green>")

        yield

        logger.debug("🔧 Starting shutdown cleanup...")

        await stop_expiry_sweeper(sweeper)

        try:
            await wait_for_pending_pushes(timeout=5)
        except Exception as e:
            logger.error(f"🟠 Error draining notification pushes: {e}")
        reset_delivery_channel()

        try:
            logger.debug("🔧 Closing Redis connection...")
            await close_redis_service()
        except Exception as e:
            logger.error(f"🟠 Error closing Redis: {e}")

        try:
            logger.info("🔧 Closing database connections 🔧")
            await close_database_engine()
        except Exception as e:
            logger.error(f"🟠 Error closing database: {e}")

        logger.debug("👋 Application shutting down...")

    app = FastAPI(title="Construction QA Pro", lifespan=custom_lifespan)

    app.add_middleware(RequestTrackingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ApplicationError, global_exception_handler)
    app.add_exception_handler(ValueError, global_exception_handler)
    app.add_exception_handler(IntegrityError, global_exception_handler)
    app.add_exception_handler(SQLAlchemyError, global_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(ValidationError, global_exception_handler)
    app.add_exception_handler(RequestValidationError, global_exception_handler)
    app.add_exception_handler(ResponseValidationError, global_exception_handler)
    app.add_exception_handler(HTTPException, global_exception_handler)
    app.add_exception_handler(StarletteHTTPException, global_exception_handler)

    from notifications.presentation import router as notification_router
    from users.presentation import router as user_router

    app.include_router(user_router)
    app.include_router(notification_router)

    return app


if __name__ == "__main__":
    """Application entry point for direct execution.

    Configures logging with Loguru and starts Uvicorn server with SSL support.
    """
    setup_logging()
    settings = get_settings()
    logger.debug(
        f"🟢 Starting Construction QA Pro in '{settings.environment.upper()}' mode!"
    )
    uvicorn.run(
        "main:create_app",
        port=settings.server_port,
        reload=settings.debug,
        factory=True,
        log_config=None,
        ssl_keyfile=settings.ssl_keyfile_path,
        ssl_certfile=settings.ssl_certfile_path,
    )
