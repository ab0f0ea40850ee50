import signal
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from homesphere.api.api import api_router
from homesphere.config import Settings
from homesphere.exceptions import HomeSphereError
from homesphere.system import HomeSphereSystem
from homesphere.utils.initial_data import seed_demo_household
from homesphere.utils.logger import configure_logging


def create_app(system: Optional[HomeSphereSystem] = None) -> FastAPI:
    """Build the FastAPI application around an explicit system instance"""
    system = system or HomeSphereSystem()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("HomeSphere API starting")
        yield
        if app.state.system.store is not None:
            try:
                app.state.system.save()
            except Exception as e:
                logger.error(f"Error saving household on shutdown: {str(e)}")
        app.state.system.close()
        logger.info("HomeSphere API stopped")

    app = FastAPI(title="HomeSphere", lifespan=lifespan)
    app.state.system = system
    app.include_router(api_router)

    @app.exception_handler(HomeSphereError)
    async def homesphere_error_handler(request: Request, exc: HomeSphereError):
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(content={"detail": str(exc)}, status_code=400)

    return app


def init(settings: Optional[Settings] = None) -> FastAPI:
    """Initialize the application"""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_file, settings.log_level)
    try:
        logger.info("Initializing application")
        system = HomeSphereSystem.from_settings(settings)
        if settings.seed_demo and not system.household.devices:
            seed_demo_household(system)
            system.save()
        app = create_app(system)
        logger.info("Application initialized successfully")
        return app
    except Exception as e:
        logger.error(f"Error initializing application: {str(e)}")
        raise


def handle_shutdown(signum, frame):
    logger.warning("Received shutdown signal")
    sys.exit(0)


def main():
    settings = Settings.from_env()
    app = init(settings)
    signal.signal(signal.SIGTERM, handle_shutdown)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
