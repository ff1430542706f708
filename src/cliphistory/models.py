import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from cliphistory.utils import get_image_dimensions


class ContentKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


def _new_id() -> str:
    return str(uuid.uuid4()).upper()


@dataclass(frozen=True)
class ClipboardEntry:
    """A captured text clip. ``content`` is already trimmed and never empty."""

    content: str
    captured_at: datetime = field(default_factory=datetime.now)
    pinned: bool = False
    id: str = field(default_factory=_new_id)

    kind = ContentKind.TEXT


@dataclass(frozen=True)
class ImageEntry:
    """A captured image, always stored as PNG bytes."""

    image_data: bytes = field(repr=False)
    captured_at: datetime = field(default_factory=datetime.now)
    pinned: bool = False
    id: str = field(default_factory=_new_id)

    kind = ContentKind.IMAGE

    @property
    def dimensions(self) -> tuple[int, int]:
        return get_image_dimensions(self.image_data)
