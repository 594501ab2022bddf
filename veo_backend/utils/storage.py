"""File storage abstraction — local filesystem implementation."""

import asyncio
import os
import shutil
from pathlib import Path

import aiofiles.os


class LocalStorage:
    """Stores media files on the local filesystem under one flat directory."""

    def __init__(self, base: Path):
        self.base = base
        self.base.mkdir(parents=True, exist_ok=True)

    def _resolve(self, key: str) -> Path:
        # Keys are generated storage filenames; anything with a path part is refused.
        if not key or key in (".", "..") or Path(key).name != key or "\\" in key:
            raise FileNotFoundError(f"Storage key not found: {key}")
        return self.base / key

    async def store(self, local_path: Path, key: str) -> str:
        dest = self._resolve(key)
        await asyncio.to_thread(shutil.copy2, str(local_path), str(dest))
        return key

    async def retrieve(self, key: str) -> Path:
        path = self._resolve(key)
        if not await aiofiles.os.path.isfile(path):
            raise FileNotFoundError(f"Storage key not found: {key}")
        return path

    async def stat(self, key: str) -> os.stat_result:
        path = await self.retrieve(key)
        return await aiofiles.os.stat(path)

    async def delete(self, key: str) -> None:
        path = self._resolve(key)
        if await aiofiles.os.path.exists(path):
            await aiofiles.os.remove(path)

    async def get_url(self, key: str) -> str:
        return f"/media/{key}"
