"""Collision-resistant storage filenames for uploaded files."""

import re
import secrets
import string
import time
from pathlib import PurePosixPath

TOKEN_ALPHABET = string.ascii_lowercase + string.digits
TOKEN_LENGTH = 6
MAX_STEM_LENGTH = 50

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.-]")


def split_client_filename(original_name: str) -> tuple[str, str]:
    """Return (stem, extension) of the last path component of a client filename."""
    # Browsers on Windows may send either separator.
    basename = re.split(r"[\\/]", original_name or "")[-1]
    path = PurePosixPath(basename)
    extension = path.suffix
    stem = basename[: len(basename) - len(extension)] if extension else basename
    return stem, extension


def sanitize_stem(stem: str) -> str:
    return _UNSAFE_CHARS.sub("_", stem)[:MAX_STEM_LENGTH]


def random_token(length: int = TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def generate_storage_filename(original_name: str) -> str:
    """Build ``{epoch_millis}_{token}_{safe_stem}{ext}`` for a client filename."""
    stem, extension = split_client_filename(original_name)
    timestamp = int(time.time() * 1000)
    return f"{timestamp}_{random_token()}_{sanitize_stem(stem)}{extension}"
