from __future__ import annotations

import logging
import re
import time
from pathlib import Path

from skillsense.core.config import settings
from skillsense.core.errors import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

BUCKETS = ("resumes", "cvs")

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _root() -> Path:
    return Path(settings.storage_root)


def init_storage() -> None:
    for bucket in BUCKETS:
        (_root() / bucket).mkdir(parents=True, exist_ok=True)


def sanitize_filename(filename: str, max_len: int = 120) -> str:
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    if not name:
        name = "document"
    if len(name) > max_len:
        stem, dot, ext = name.rpartition(".")
        if dot and len(ext) <= 10:
            name = f"{stem[: max_len - len(ext) - 1]}.{ext}"
        else:
            name = name[:max_len]
    return name


def object_path(user_id: str, filename: str, *, timestamp_ms: int | None = None) -> str:
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    return f"{user_id}/{stamp}_{sanitize_filename(filename)}"


def _resolve(bucket: str, path: str) -> Path:
    if bucket not in BUCKETS:
        raise ValidationError(f"Unknown storage bucket '{bucket}'.")
    base = (_root() / bucket).resolve()
    target = (base / path).resolve()
    if base not in target.parents:
        raise ValidationError("Invalid storage path.")
    return target


def upload(bucket: str, user_id: str, filename: str, content: bytes) -> str:
    path = object_path(user_id, filename)
    target = _resolve(bucket, path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError as exc:
        logger.warning("storage_upload_failed bucket=%s path=%s: %s", bucket, path, exc)
        raise StorageError("Failed to store the uploaded file.") from exc
    logger.info("storage_upload bucket=%s path=%s bytes=%s", bucket, path, len(content))
    return path


def exists(bucket: str, path: str) -> bool:
    return _resolve(bucket, path).is_file()


def download(bucket: str, path: str) -> bytes:
    target = _resolve(bucket, path)
    if not target.is_file():
        raise NotFoundError("File not found in storage.")
    try:
        return target.read_bytes()
    except OSError as exc:
        raise StorageError("Failed to download file.") from exc


def delete(bucket: str, path: str) -> None:
    target = _resolve(bucket, path)
    try:
        target.unlink(missing_ok=True)
    except OSError as exc:
        raise StorageError("Failed to delete file from storage.") from exc


def owner_of(path: str) -> str:
    """Object paths are namespaced by the uploading user's id."""
    segments = path.split("/")
    if len(segments) < 2 or any(segment in {"", ".", ".."} for segment in segments):
        raise ValidationError("Invalid storage path.")
    return segments[0]
