"""Tests for the post-response temp file cleanup hook."""

import logging
from pathlib import Path

import pytest

from veo_backend.middleware.cleanup import TempFileCleanupMiddleware, collect_cleanup_paths, remove_temp_files
from veo_backend.middleware.upload import IncomingFile


def make_file(tmp_path: Path, name: str, field: str = "file", create: bool = True) -> IncomingFile:
    path = tmp_path / name
    if create:
        path.write_bytes(b"data")
    return IncomingFile(
        field_name=field,
        original_name=name,
        mime_type="image/png",
        size=4,
        filename=name,
        path=path,
    )


async def receive():
    return {"type": "http.request", "body": b"", "more_body": False}


class TestCollectCleanupPaths:
    def test_empty_state(self):
        assert collect_cleanup_paths({}) == []

    def test_single_array_and_fields(self, tmp_path):
        single = make_file(tmp_path, "a.png")
        many = [make_file(tmp_path, "b.png"), make_file(tmp_path, "c.png")]
        fields = {"referenceImage": [make_file(tmp_path, "d.png")], "videoFile": [make_file(tmp_path, "e.mp4")]}

        paths = collect_cleanup_paths({"upload_file": single, "upload_files": many, "upload_fields": fields})

        assert [p.name for p in paths] == ["a.png", "b.png", "c.png", "d.png", "e.mp4"]

    def test_each_path_appears_once(self, tmp_path):
        f = make_file(tmp_path, "a.png")
        paths = collect_cleanup_paths({"upload_file": f, "upload_files": [f], "upload_fields": {"file": [f]}})
        assert paths == [f.path]


class TestRemoveTempFiles:
    @pytest.mark.asyncio
    async def test_failure_does_not_stop_other_deletions(self, tmp_path, caplog):
        caplog.set_level(logging.DEBUG, logger="veo_backend.middleware.cleanup")
        missing = tmp_path / "already-gone.png"
        a = make_file(tmp_path, "a.png").path
        b = make_file(tmp_path, "b.png").path

        removed = await remove_temp_files([a, missing, b])

        assert removed == 2
        assert not a.exists()
        assert not b.exists()
        records = [r for r in caplog.records if r.name == "veo_backend.middleware.cleanup"]
        warnings = [r for r in records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].file_path == str(missing)
        debug = [r for r in records if r.levelno == logging.DEBUG]
        assert {r.file_path for r in debug} == {str(a), str(b)}


class TestTempFileCleanupMiddleware:
    @pytest.mark.asyncio
    async def test_deletes_only_after_response_is_sent(self, tmp_path):
        incoming = make_file(tmp_path, "a.png")
        seen = []

        async def app(scope, receive, send):
            scope["state"]["upload_file"] = incoming
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await send({"type": "http.response.body", "body": b"ok"})

        async def send(message):
            seen.append((message["type"], incoming.path.exists()))

        middleware = TempFileCleanupMiddleware(app)
        await middleware({"type": "http", "state": {}}, receive, send)

        assert seen == [("http.response.start", True), ("http.response.body", True)]
        assert not incoming.path.exists()

    @pytest.mark.asyncio
    async def test_streamed_response_keeps_files_until_last_chunk(self, tmp_path):
        incoming = make_file(tmp_path, "a.png")
        seen = []

        async def app(scope, receive, send):
            scope["state"]["upload_files"] = [incoming]
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await send({"type": "http.response.body", "body": b"o", "more_body": True})
            await send({"type": "http.response.body", "body": b"k"})

        async def send(message):
            seen.append(incoming.path.exists())

        await TempFileCleanupMiddleware(app)({"type": "http", "state": {}}, receive, send)

        assert seen == [True, True, True]
        assert not incoming.path.exists()

    @pytest.mark.asyncio
    async def test_files_removed_when_app_raises(self, tmp_path):
        incoming = make_file(tmp_path, "a.png")

        async def app(scope, receive, send):
            scope["state"]["upload_fields"] = {"videoFile": [incoming]}
            raise RuntimeError("boom")

        async def send(message):
            pass

        with pytest.raises(RuntimeError):
            await TempFileCleanupMiddleware(app)({"type": "http", "state": {}}, receive, send)
        assert not incoming.path.exists()

    @pytest.mark.asyncio
    async def test_non_http_scopes_pass_through(self):
        calls = []

        async def app(scope, receive, send):
            calls.append(scope["type"])

        await TempFileCleanupMiddleware(app)({"type": "lifespan"}, receive, None)
        assert calls == ["lifespan"]
