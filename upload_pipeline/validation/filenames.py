"""Filename sanitation and collision-resistant storage keys.

Keys have the shape ``{epoch_ms}-{uuid_hex}-{sanitized_name}``. The uuid part
is drawn per call, so two uploads of ``photo.png`` in the same millisecond
still get distinct keys.
"""

import os
import re
import time
import uuid

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]")
_FALLBACK_STEM = "upload"


def base_name(filename: str) -> str:
    """Strip any client-side directory part (POSIX or Windows separators)."""
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


def file_extension(filename: str) -> str:
    """Lower-cased final extension including the dot, or '' when absent."""
    _, ext = os.path.splitext(base_name(filename))
    return ext.lower()


def sanitize_filename(filename: str) -> str:
    """Drop characters outside [A-Za-z0-9._-] and lower-case the rest."""
    raw_stem, _ = os.path.splitext(base_name(filename))
    stem = _UNSAFE_RE.sub("", raw_stem).lower().lstrip(".")
    ext = _UNSAFE_RE.sub("", file_extension(filename))
    if not stem.strip("-_."):
        stem = _FALLBACK_STEM
    return f"{stem}{ext}"


def make_storage_key(
    sanitized_filename: str,
    *,
    now_ms: int | None = None,
    suffix: str | None = None,
) -> str:
    epoch_ms = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    unique = suffix if suffix is not None else uuid.uuid4().hex
    return f"{epoch_ms}-{unique}-{sanitized_filename}"


def storage_public_id(storage_key: str) -> str:
    """Provider identifiers carry no extension; the provider tracks the format."""
    stem, _ = os.path.splitext(storage_key)
    return stem
