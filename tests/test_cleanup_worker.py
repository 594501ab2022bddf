"""Tests for the orphaned temp file sweep."""

import os
import time

import pytest

from veo_backend.workers.cleanup_worker import sweep_orphaned_temp_files


@pytest.mark.asyncio
async def test_sweep_removes_only_old_files(tmp_path):
    old = tmp_path / "1600000000000_abcdef_old.png"
    fresh = tmp_path / "1700000000000_ghijkl_fresh.png"
    nested = tmp_path / "job-dir"
    old.write_bytes(b"old")
    fresh.write_bytes(b"fresh")
    nested.mkdir()

    two_days_ago = time.time() - 48 * 3600
    os.utime(old, (two_days_ago, two_days_ago))
    os.utime(nested, (two_days_ago, two_days_ago))

    removed = await sweep_orphaned_temp_files(tmp_path, max_age_hours=24)

    assert removed == 1
    assert not old.exists()
    assert fresh.exists()
    assert nested.exists()


@pytest.mark.asyncio
async def test_sweep_of_missing_directory(tmp_path):
    assert await sweep_orphaned_temp_files(tmp_path / "nope", max_age_hours=24) == 0
