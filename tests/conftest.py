import struct
from concurrent.futures import Executor, Future

import pytest

from cliphistory.preferences import Preferences
from cliphistory.storage import PinnedStorage
from cliphistory.store import ClipboardHistoryStore


class MemoryDefaults:
    """Dict-backed stand-in for NSUserDefaults."""

    def __init__(self, values: dict | None = None):
        self.values = dict(values or {})

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value

    def remove(self, key):
        self.values.pop(key, None)


class FakePasteboard:
    """Pasteboard double whose change count moves on every write, like NSPasteboard."""

    def __init__(self):
        self.count = 0
        self.text: str | None = None
        self.image: bytes | None = None

    def copy_text(self, text: str | None) -> None:
        """Simulate another app copying text."""
        self.text = text
        self.image = None
        self.count += 1

    def copy_image(self, png: bytes, text: str | None = None) -> None:
        self.image = png
        self.text = text
        self.count += 1

    def change_count(self) -> int:
        return self.count

    def read_text(self):
        return self.text

    def read_image(self):
        return self.image

    def write_text(self, text: str) -> bool:
        self.copy_text(text)
        return True

    def write_image(self, png_bytes: bytes) -> bool:
        self.copy_image(png_bytes)
        return True


class ManualTimer:
    def __init__(self, callback, interval):
        self.callback = callback
        self.interval = interval
        self.running = False

    def start(self):
        self.running = True

    def stop(self):
        self.running = False

    def fire(self):
        self.callback(self)


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


def _png(width: int = 100, height: int = 50, padding: bytes = b"\x00" * 100) -> bytes:
    header = b"\x89PNG\r\n\x1a\n"
    ihdr = b"\x00\x00\x00\rIHDR"
    return header + ihdr + struct.pack(">I", width) + struct.pack(">I", height) + padding


@pytest.fixture
def make_png():
    """Factory fixture for PNG bytes with a valid IHDR header."""
    return _png


@pytest.fixture
def defaults():
    return MemoryDefaults()


@pytest.fixture
def preferences(defaults):
    return Preferences(defaults)


@pytest.fixture
def pasteboard():
    return FakePasteboard()


@pytest.fixture
def storage(tmp_path, defaults):
    return PinnedStorage(
        text_path=tmp_path / "pinned.json",
        images_path=tmp_path / "pinned-images.json",
        defaults=defaults,
    )


@pytest.fixture
def timers():
    return []


@pytest.fixture
def timer_factory(timers):
    def _factory(callback, interval):
        timer = ManualTimer(callback, interval)
        timers.append(timer)
        return timer

    return _factory


@pytest.fixture
def make_store(preferences, pasteboard, storage, timer_factory):
    """Factory so tests can build a fresh store over the same collaborators (a restart)."""
    created = []

    def _make_store(**kwargs):
        kwargs.setdefault("executor", InlineExecutor())
        store = ClipboardHistoryStore(preferences, pasteboard, storage, timer_factory, **kwargs)
        created.append(store)
        return store

    yield _make_store
    for store in created:
        store.close()


@pytest.fixture
def store(make_store):
    return make_store()
