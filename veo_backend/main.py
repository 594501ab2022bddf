"""
FastAPI application factory — entry point for the Vertical Veo 3 backend.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from veo_backend.api.v1.router import v1_router
from veo_backend.config import Settings, settings as default_settings
from veo_backend.middleware.cleanup import TempFileCleanupMiddleware
from veo_backend.middleware.error_handler import ErrorHandlerMiddleware, RequestIdMiddleware, upload_error_handler
from veo_backend.middleware.upload import IntakeConfig, ensure_temp_dir
from veo_backend.services.upload_errors import UploadError
from veo_backend.utils.log_config import configure_logging
from veo_backend.utils.storage import LocalStorage
from veo_backend.workers.cleanup_worker import temp_sweep_loop

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hooks."""
    app_settings: Settings = app.state.settings
    intake_config: IntakeConfig = app.state.intake_config

    app.state.temp_dir_ready = await ensure_temp_dir(intake_config.temp_dir)

    sweeper = None
    if app_settings.TEMP_SWEEP_INTERVAL_MINUTES > 0:
        sweeper = asyncio.create_task(
            temp_sweep_loop(
                intake_config.temp_dir,
                app_settings.TEMP_MAX_AGE_HOURS,
                app_settings.TEMP_SWEEP_INTERVAL_MINUTES,
            )
        )

    logger.info("Upload intake ready: temp_dir=%s max_file_size=%dMB",
                intake_config.temp_dir, intake_config.limits.max_file_size_mb)
    yield

    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE_PATH)

    app = FastAPI(
        title="Vertical Veo 3 API",
        description="Backend API for vertical video generation with Veo 3.",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.intake_config = IntakeConfig.from_settings(settings)
    app.state.storage = LocalStorage(settings.media_dir.resolve())
    app.state.temp_dir_ready = False

    # ── Middleware (order matters — last added is outermost) ──
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Outermost, so its send is the server's own
    app.add_middleware(TempFileCleanupMiddleware)

    app.add_exception_handler(UploadError, upload_error_handler)

    # ── API Routes ───────────────────────────────────────
    app.include_router(v1_router)

    # ── Static file serving for stored media ─────────────
    app.mount("/media", StaticFiles(directory=str(app.state.storage.base)), name="media")

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "veo_backend.main:create_app",
        factory=True,
        host=default_settings.BACKEND_HOST,
        port=default_settings.BACKEND_PORT,
        reload=default_settings.ENVIRONMENT == "development",
    )
