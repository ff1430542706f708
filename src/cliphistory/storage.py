import base64
import contextlib
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from cliphistory.config import LEGACY_PINNED_KEY, PINNED_IMAGES_PATH, PINNED_PATH
from cliphistory.models import ClipboardEntry, ContentKind, ImageEntry

logger = logging.getLogger(__name__)

# Numeric timestamps are seconds since the Cocoa reference date
COCOA_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)

PinnedEntry = ClipboardEntry | ImageEntry

# Anything a malformed document can raise while being decoded
DECODE_ERRORS = (ValueError, KeyError, TypeError, OverflowError, RecursionError)


def _encode_timestamp(value: datetime) -> str:
    return value.isoformat()


def _decode_timestamp(value) -> datetime:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (COCOA_EPOCH + timedelta(seconds=value)).astimezone().replace(tzinfo=None)
    if not isinstance(value, str):
        raise TypeError(f"unsupported timestamp {value!r}")
    return datetime.fromisoformat(value)


def _entry_to_dict(entry: PinnedEntry) -> dict:
    data = {"id": entry.id}
    if isinstance(entry, ImageEntry):
        data["imageData"] = base64.b64encode(entry.image_data).decode("ascii")
    else:
        data["content"] = entry.content
    data["capturedAt"] = _encode_timestamp(entry.captured_at)
    data["isPinned"] = True
    return data


def _dict_to_entry(kind: ContentKind, item: dict) -> PinnedEntry:
    entry_id = item["id"]
    if not isinstance(entry_id, str):
        raise TypeError(f"unsupported id {entry_id!r}")
    captured_at = _decode_timestamp(item["capturedAt"])
    if kind == ContentKind.IMAGE:
        image_data = base64.b64decode(item["imageData"], validate=True)
        return ImageEntry(id=entry_id, image_data=image_data, captured_at=captured_at, pinned=True)
    content = item["content"]
    if not isinstance(content, str):
        raise TypeError(f"unsupported content {content!r}")
    return ClipboardEntry(id=entry_id, content=content, captured_at=captured_at, pinned=True)


def decode_pinned(kind: ContentKind, data: bytes | str) -> list[PinnedEntry]:
    """Decode a pinned document. Raises one of DECODE_ERRORS if malformed."""
    items = json.loads(data)
    if not isinstance(items, list):
        raise TypeError("pinned document is not a JSON array")
    return [_dict_to_entry(kind, item) for item in items]


def encode_pinned(entries: Iterable[PinnedEntry]) -> bytes:
    return json.dumps([_entry_to_dict(e) for e in entries], ensure_ascii=False).encode("utf-8")


def atomic_write(path: Path, data: bytes) -> None:
    """Write ``data`` to a temp file beside ``path`` and rename it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


class PinnedStorage:
    """Reads and writes the pinned text and image collections as JSON files.

    Failures never propagate: a missing or corrupt file loads as an empty
    list, and a failed write is logged and reported as ``False`` while the
    caller's in-memory state stays authoritative.
    """

    def __init__(
        self,
        text_path: str | Path | None = None,
        images_path: str | Path | None = None,
        defaults=None,
        legacy_key: str = LEGACY_PINNED_KEY,
    ):
        self._paths = {
            ContentKind.TEXT: Path(text_path) if text_path else PINNED_PATH,
            ContentKind.IMAGE: Path(images_path) if images_path else PINNED_IMAGES_PATH,
        }
        self._defaults = defaults
        self._legacy_key = legacy_key

    def load_pinned(self, kind: ContentKind) -> list[PinnedEntry]:
        path = self._paths[kind]
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            if kind == ContentKind.TEXT:
                return self._migrate_legacy()
            return []
        except OSError:
            logger.warning("Could not read %s", path, exc_info=True)
            return []

        try:
            entries = decode_pinned(kind, data)
        except DECODE_ERRORS as e:
            logger.warning("Ignoring corrupt pinned file %s: %s", path, e)
            return []
        logger.debug("Loaded %d pinned %s entries from %s", len(entries), kind.value, path)
        return entries

    def save_pinned(self, kind: ContentKind, entries: Iterable[PinnedEntry]) -> bool:
        path = self._paths[kind]
        try:
            atomic_write(path, encode_pinned(entries))
        except OSError:
            logger.warning("Failed to write pinned %s entries to %s", kind.value, path, exc_info=True)
            return False
        return True

    def _migrate_legacy(self) -> list[PinnedEntry]:
        if self._defaults is None:
            return []
        legacy = self._defaults.get(self._legacy_key)
        if legacy is None:
            return []

        try:
            entries = decode_pinned(ContentKind.TEXT, legacy)
        except DECODE_ERRORS as e:
            logger.warning("Leaving undecodable legacy pinned data in place: %s", e)
            return []

        if self.save_pinned(ContentKind.TEXT, entries):
            self._defaults.remove(self._legacy_key)
            logger.info("Migrated %d pinned entries from user defaults", len(entries))
        return entries
