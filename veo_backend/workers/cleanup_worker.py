"""
Periodic cleanup worker — removes temp uploads orphaned by aborted requests.
Runs inside the app lifespan, or standalone as a cron job or scheduled task.
"""

import asyncio
import logging
import time
from pathlib import Path

import aiofiles.os

from veo_backend.config import settings

logger = logging.getLogger(__name__)


async def sweep_orphaned_temp_files(temp_dir: Path, max_age_hours: int) -> int:
    """Remove temp files older than ``max_age_hours``. Returns count removed."""
    if not await aiofiles.os.path.isdir(temp_dir):
        return 0

    cutoff = time.time() - (max_age_hours * 3600)
    removed = 0

    for entry in await aiofiles.os.scandir(temp_dir):
        try:
            if not entry.is_file(follow_symlinks=False):
                continue
            if entry.stat().st_mtime < cutoff:
                await aiofiles.os.remove(entry.path)
                removed += 1
                logger.info("Removed orphaned temp file: %s", entry.name)
        except OSError as e:
            logger.warning("Failed to clean %s: %s", entry.path, e)

    return removed


async def temp_sweep_loop(temp_dir: Path, max_age_hours: int, interval_minutes: int) -> None:
    """Background task that sweeps the temp directory every ``interval_minutes``."""
    while True:
        await asyncio.sleep(interval_minutes * 60)
        removed = await sweep_orphaned_temp_files(temp_dir, max_age_hours)
        if removed:
            logger.info("Temp sweep removed %d orphaned files", removed)


def run_cleanup() -> int:
    """Synchronous entry point for a one-off sweep."""
    logger.info("Starting cleanup...")
    removed = asyncio.run(sweep_orphaned_temp_files(settings.temp_dir, settings.TEMP_MAX_AGE_HOURS))
    logger.info("Cleanup complete: %d orphaned temp files removed", removed)
    return removed


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_cleanup()
