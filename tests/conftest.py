"""Shared test fixtures for the upload backend."""

from pathlib import Path

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from veo_backend.config import Settings
from veo_backend.main import create_app
from veo_backend.middleware.upload import IntakeResult, upload_fields, upload_multiple, upload_single

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def settings(tmp_path):
    return Settings(
        STORAGE_LOCAL_PATH=tmp_path / "storage",
        MAX_FILE_SIZE_MB=1,
        TEMP_SWEEP_INTERVAL_MINUTES=0,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def temp_dir(settings) -> Path:
    return settings.temp_dir.resolve()


def _describe(intake: IntakeResult) -> dict:
    return {
        "category": intake.category.value,
        "files": [
            {
                "field": f.field_name,
                "filename": f.filename,
                "original_name": f.original_name,
                "size": f.size,
                "exists": f.path.exists(),
            }
            for f in intake.files
        ],
    }


@pytest.fixture
def app(settings):
    app = create_app(settings)

    # Routes that echo what the intake handed to downstream handlers.
    @app.post("/intake/single")
    async def intake_single(intake: IntakeResult = Depends(upload_single)):
        return _describe(intake)

    @app.post("/intake/multiple")
    async def intake_multiple(intake: IntakeResult = Depends(upload_multiple)):
        return _describe(intake)

    @app.post("/intake/fields")
    async def intake_fields(intake: IntakeResult = Depends(upload_fields)):
        return _describe(intake)

    @app.post("/intake/explode")
    async def intake_explode(intake: IntakeResult = Depends(upload_single)):
        raise RuntimeError("job store unavailable")

    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def temp_listing(temp_dir: Path) -> list[str]:
    return sorted(p.name for p in temp_dir.iterdir())
