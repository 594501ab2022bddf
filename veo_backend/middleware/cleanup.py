"""
Post-response temp file cleanup.

Wraps the ASGI ``send`` callable and, once the wrapped application has
finished, deletes every temp file the upload intake registered on the
request. Deletion happens after the final body chunk has been handed to the
server, so handlers never race with it and the client never sees its failures.
"""

import logging
from pathlib import Path
from typing import Any, Iterable

import aiofiles.os
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


def collect_cleanup_paths(state: dict[str, Any]) -> list[Path]:
    """Temp paths registered by the intake, in registration order, without duplicates."""
    candidates: list = []

    single = state.get("upload_file")
    if single is not None:
        candidates.append(single)

    many = state.get("upload_files")
    if many:
        candidates.extend(many)

    by_field = state.get("upload_fields")
    if by_field:
        for files in by_field.values():
            if isinstance(files, (list, tuple)):
                candidates.extend(files)

    paths: list[Path] = []
    seen: set[Path] = set()
    for f in candidates:
        path = Path(f.path)
        if path not in seen:
            seen.add(path)
            paths.append(path)
    return paths


async def remove_temp_files(paths: Iterable[Path]) -> int:
    """Delete each path independently. Returns the number removed."""
    removed = 0
    for path in paths:
        try:
            await aiofiles.os.remove(path)
        except OSError as e:
            logger.warning(
                "Failed to cleanup temp file %s: %s", path, e,
                extra={"file_path": str(path), "error": str(e)},
            )
            continue
        removed += 1
        logger.debug("Temp file cleaned up: %s", path, extra={"file_path": str(path)})
    return removed


class TempFileCleanupMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_sent = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_sent
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                response_sent = True

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            paths = collect_cleanup_paths(scope.get("state") or {})
            if paths:
                if not response_sent:
                    logger.debug("Request ended without a response; removing %d temp files", len(paths))
                await remove_temp_files(paths)
