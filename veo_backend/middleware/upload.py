"""
Upload intake — parses multipart bodies, enforces size/count/field limits,
gates content types and writes accepted files into the temp directory.

Every per-part check runs inside the multipart parse, so a rejected part
ends the read instead of being spooled in full.

Each configured ``UploadIntake`` is a FastAPI dependency. Accepted files are
registered on ``request.state`` as soon as they land so that
``TempFileCleanupMiddleware`` can remove them once the response is sent.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles
import aiofiles.os
from fastapi import Request
from starlette.datastructures import FormData, UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from veo_backend.config import Settings
from veo_backend.services.content_types import UploadCategory, check_content_type, resolve_category
from veo_backend.services.upload_errors import FileTooLarge, OtherUploadError, TooManyFiles, UnexpectedField
from veo_backend.utils.filenames import generate_storage_filename

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class UploadLimits:
    max_file_size_mb: int = 100
    max_files: int = 10
    max_fields: int = 20


@dataclass(frozen=True)
class IntakeConfig:
    """Built once at startup and stored on ``app.state.intake_config``."""

    temp_dir: Path
    limits: UploadLimits = field(default_factory=UploadLimits)

    @classmethod
    def from_settings(cls, settings: Settings) -> "IntakeConfig":
        return cls(
            temp_dir=settings.temp_dir.resolve(),
            limits=UploadLimits(
                max_file_size_mb=settings.MAX_FILE_SIZE_MB,
                max_files=settings.UPLOAD_MAX_FILES,
                max_fields=settings.UPLOAD_MAX_FIELDS,
            ),
        )


@dataclass
class IncomingFile:
    field_name: str
    original_name: str
    mime_type: str
    size: int
    filename: str
    path: Path


@dataclass
class IntakeResult:
    category: UploadCategory
    form_fields: dict[str, str] = field(default_factory=dict)
    files: list[IncomingFile] = field(default_factory=list)

    @property
    def file(self) -> IncomingFile | None:
        return self.files[0] if self.files else None

    def by_field(self) -> dict[str, list[IncomingFile]]:
        grouped: dict[str, list[IncomingFile]] = {}
        for f in self.files:
            grouped.setdefault(f.field_name, []).append(f)
        return grouped


async def ensure_temp_dir(temp_dir: Path) -> bool:
    """Create the temp directory. Failure is logged, not raised."""
    try:
        await aiofiles.os.makedirs(temp_dir, exist_ok=True)
    except OSError as e:
        logger.error(
            "Failed to create upload directory %s: %s",
            temp_dir, e,
            extra={"upload_dir": str(temp_dir), "error": str(e)},
        )
        return False
    return True


FileGate = Callable[[str, str, str | None], None]


class GatedMultiPartParser(MultiPartParser):
    """``MultiPartParser`` that rejects file parts while the body is streaming.

    ``gate(field_name, mime_type, form_type)`` runs as soon as a file part's
    headers are parsed; ``form_type`` is the ``type`` form field if it came
    earlier in the body. File bytes are counted as they arrive and the parse
    stops with ``FileTooLarge`` once a part passes ``max_file_size_mb``, so an
    oversized or disallowed upload is never read to the end.
    """

    def __init__(self, headers, stream, *, gate: FileGate, max_file_size_mb: int, **limits):
        super().__init__(headers, stream, **limits)
        self.gate = gate
        self.max_file_size_mb = max_file_size_mb
        self.max_file_size = max_file_size_mb * 1024 * 1024
        self._file_bytes = 0

    def on_headers_finished(self) -> None:
        super().on_headers_finished()
        upload = self._current_part.file
        if upload is None:
            return
        self._file_bytes = 0
        form_type = next((v for k, v in self.items if k == "type" and isinstance(v, str)), None)
        self.gate(self._current_part.field_name, upload.content_type or "", form_type)

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._current_part.file is not None:
            self._file_bytes += end - start
            if self._file_bytes > self.max_file_size:
                raise FileTooLarge(self._current_part.field_name, self.max_file_size_mb)
        super().on_part_data(data, start, end)


async def _discard(path: Path) -> None:
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to discard partial upload %s: %s", path, e, extra={"file_path": str(path)})


class UploadIntake:
    """Accepts files for a fixed set of form fields.

    ``single`` accepts one file, ``array`` up to ``max_count`` files under one
    field, and ``named`` a map of field name to per-field maximum. Fields may
    be pinned to an upload category; otherwise the ``type`` query parameter
    (or form field) selects the allow-list for every file.
    """

    def __init__(
        self,
        mode: str,
        fields: dict[str, int],
        max_files: int | None = None,
        categories: dict[str, UploadCategory] | None = None,
    ):
        self.mode = mode
        self.fields = dict(fields)
        self.max_files = max_files
        self.categories = dict(categories or {})

    @classmethod
    def single(cls, field_name: str) -> "UploadIntake":
        return cls("single", {field_name: 1}, max_files=1)

    @classmethod
    def array(cls, field_name: str, max_count: int) -> "UploadIntake":
        return cls("array", {field_name: max_count})

    @classmethod
    def named(
        cls,
        fields: dict[str, int],
        categories: dict[str, UploadCategory] | None = None,
    ) -> "UploadIntake":
        return cls("fields", fields, categories=categories)

    async def __call__(self, request: Request) -> IntakeResult:
        config: IntakeConfig = request.app.state.intake_config
        query_type = request.query_params.get("type")

        content_type = request.headers.get("content-type", "")
        if not content_type.startswith("multipart/form-data"):
            return IntakeResult(category=resolve_category(query_type))

        form = await self._parse(request, config, self._gate_for(query_type))
        try:
            form_fields = {k: v for k, v in form.multi_items() if isinstance(v, str)}
            result = IntakeResult(
                category=resolve_category(query_type or form_fields.get("type")),
                form_fields=form_fields,
            )
            for field_name, value in form.multi_items():
                if not isinstance(value, UploadFile):
                    continue
                incoming = await self._store(value, field_name, config)
                result.files.append(incoming)
                self._register(request, incoming)
        finally:
            await form.close()

        return result

    def _gate_for(self, query_type: str | None) -> FileGate:
        """Per-request check run on each file part before its bytes are read."""
        counts: dict[str, int] = {}

        def gate(field_name: str, mime_type: str, form_type: str | None) -> None:
            counts[field_name] = counts.get(field_name, 0) + 1
            if counts[field_name] > self.fields.get(field_name, 0):
                raise UnexpectedField(field_name)
            category = self.categories.get(field_name) or resolve_category(query_type or form_type)
            check_content_type(category, mime_type, field=field_name)

        return gate

    async def _parse(self, request: Request, config: IntakeConfig, gate: FileGate) -> FormData:
        max_files = self.max_files or config.limits.max_files
        parser = GatedMultiPartParser(
            request.headers,
            request.stream(),
            gate=gate,
            max_file_size_mb=config.limits.max_file_size_mb,
            max_files=max_files,
            max_fields=config.limits.max_fields,
        )
        try:
            return await parser.parse()
        except MultiPartException as exc:
            if exc.message.startswith("Too many files"):
                raise TooManyFiles(max_files) from exc
            raise OtherUploadError(exc.message) from exc

    async def _store(self, upload: UploadFile, field_name: str, config: IntakeConfig) -> IncomingFile:
        original_name = upload.filename or ""
        filename = generate_storage_filename(original_name)
        path = config.temp_dir / filename

        written = 0
        # "xb": a name collision fails instead of overwriting another request's file
        async with aiofiles.open(path, "xb") as out:
            try:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    await out.write(chunk)
            except Exception:
                await _discard(path)
                raise

        logger.debug(
            "Upload stored: %s (%d bytes)", filename, written,
            extra={"file_path": str(path), "field": field_name},
        )
        return IncomingFile(
            field_name=field_name,
            original_name=original_name,
            mime_type=upload.content_type or "",
            size=written,
            filename=filename,
            path=path,
        )

    def _register(self, request: Request, incoming: IncomingFile) -> None:
        state = request.state
        if self.mode == "single":
            state.upload_file = incoming
        elif self.mode == "array":
            if getattr(state, "upload_files", None) is None:
                state.upload_files = []
            state.upload_files.append(incoming)
        else:
            if getattr(state, "upload_fields", None) is None:
                state.upload_fields = {}
            state.upload_fields.setdefault(incoming.field_name, []).append(incoming)


upload_single = UploadIntake.single("file")
upload_multiple = UploadIntake.array("files", 10)
upload_fields = UploadIntake.named({"referenceImage": 1, "videoFile": 1, "audioFile": 1})
upload_assets = UploadIntake.named(
    {"referenceImage": 1, "videoFile": 1, "audioFile": 1},
    categories={
        "referenceImage": UploadCategory.IMAGE,
        "videoFile": UploadCategory.VIDEO,
        "audioFile": UploadCategory.AUDIO,
    },
)
