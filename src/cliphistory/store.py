import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import replace
from itertools import chain

from cliphistory.config import MAX_IMAGE_SIZE, MAX_RECENT_IMAGES, MIN_POLL_INTERVAL
from cliphistory.models import ClipboardEntry, ContentKind, ImageEntry
from cliphistory.pasteboard import Pasteboard
from cliphistory.preferences import Preference, Preferences
from cliphistory.storage import PinnedStorage
from cliphistory.utils import is_valid_png

logger = logging.getLogger(__name__)

# Called as factory(callback, interval); the result must support start() and stop().
# rumps.Timer fits, and invokes callback(timer) on the main run loop.
TimerFactory = Callable[[Callable, float], object]


class ClipboardHistoryStore:
    """Polls the pasteboard and keeps recent and pinned clipboard history.

    All state is owned by the thread that drives the poll timer and calls the
    public methods (the main run loop in the app). Pinned collections are
    written through a single background writer so a slow disk never stalls a
    poll cycle; each write is queued before the pin call returns.
    """

    def __init__(
        self,
        preferences: Preferences,
        pasteboard: Pasteboard,
        storage: PinnedStorage,
        timer_factory: TimerFactory,
        on_change: Callable[[], None] | None = None,
        executor: Executor | None = None,
    ):
        self._preferences = preferences
        self._pasteboard = pasteboard
        self._storage = storage
        self._timer_factory = timer_factory
        self._timer = None
        self._on_change = on_change
        self._owns_writer = executor is None
        self._writer = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="cliphistory-writer")
        self._pending_writes: set[Future] = set()

        self._entries: list[ClipboardEntry] = []
        self._pinned_entries: list[ClipboardEntry] = storage.load_pinned(ContentKind.TEXT)
        self._image_entries: list[ImageEntry] = []
        self._pinned_image_entries: list[ImageEntry] = []
        if preferences.save_images:
            self._pinned_image_entries = storage.load_pinned(ContentKind.IMAGE)

        # Whatever is on the clipboard at launch is not a new copy
        self._last_change_count = pasteboard.change_count()
        preferences.subscribe(self._on_preference_changed)

    @property
    def entries(self) -> tuple[ClipboardEntry, ...]:
        return tuple(self._entries)

    @property
    def pinned_entries(self) -> tuple[ClipboardEntry, ...]:
        return tuple(self._pinned_entries)

    @property
    def image_entries(self) -> tuple[ImageEntry, ...]:
        return tuple(self._image_entries)

    @property
    def pinned_image_entries(self) -> tuple[ImageEntry, ...]:
        return tuple(self._pinned_image_entries)

    def find_entry(self, entry_id: str) -> ClipboardEntry | ImageEntry | None:
        lists = (self._pinned_entries, self._entries, self._pinned_image_entries, self._image_entries)
        for entry in chain.from_iterable(lists):
            if entry.id == entry_id:
                return entry
        return None

    # Polling

    def start(self) -> None:
        self._start_polling()

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def _start_polling(self) -> None:
        self.stop()
        interval = max(self._preferences.poll_interval, MIN_POLL_INTERVAL)
        self._timer = self._timer_factory(self._poll, interval)
        self._timer.start()
        logger.debug("Polling clipboard every %.2fs", interval)

    def _poll(self, _sender) -> None:
        self.check_clipboard()

    def check_clipboard(self) -> bool:
        """Run one poll cycle. Returns True if a new entry was captured."""
        try:
            current_count = self._pasteboard.change_count()
            if current_count == self._last_change_count:
                return False

            self._last_change_count = current_count

            if not self._capture():
                return False

            self._notify()
            return True
        except Exception:
            logger.exception("Error reading clipboard")
            return False

    def sync_change_count(self) -> None:
        self._last_change_count = self._pasteboard.change_count()

    def _capture(self) -> bool:
        # A clipboard write is classified as exactly one kind per cycle
        if self._preferences.save_images:
            png = self._pasteboard.read_image()
            if png is not None:
                return self._add_image(png)
        return self._add_text(self._pasteboard.read_text())

    def _add_text(self, text: str | None) -> bool:
        if text is None:
            return False
        content = text.strip()
        if not content:
            return False

        if self._preferences.prevent_duplicates and any(
            e.content == content for e in chain(self._entries, self._pinned_entries)
        ):
            logger.debug("Skipping duplicate text entry")
            return False

        self._entries.insert(0, ClipboardEntry(content=content))
        self._enforce_history_limit()
        return True

    def _add_image(self, png: bytes) -> bool:
        if len(png) > MAX_IMAGE_SIZE:
            logger.warning("Image too large (%d bytes), skipping", len(png))
            return False
        if not is_valid_png(png):
            logger.debug("Skipping image without valid dimensions")
            return False

        if self._preferences.prevent_duplicates and any(
            e.image_data == png for e in chain(self._image_entries, self._pinned_image_entries)
        ):
            logger.debug("Skipping duplicate image entry")
            return False

        self._image_entries.insert(0, ImageEntry(image_data=png))
        self._enforce_image_limit()
        return True

    def _enforce_history_limit(self) -> None:
        del self._entries[self._preferences.history_limit:]

    def _enforce_image_limit(self) -> None:
        del self._image_entries[MAX_RECENT_IMAGES:]

    # Clipboard output

    def copy_to_clipboard(self, entry: ClipboardEntry) -> None:
        try:
            self._pasteboard.write_text(entry.content)
            self.sync_change_count()
        except Exception:
            logger.exception("Error copying entry to clipboard")

    def copy_image_to_clipboard(self, entry: ImageEntry) -> None:
        try:
            self._pasteboard.write_image(entry.image_data)
            self.sync_change_count()
        except Exception:
            logger.exception("Error copying image to clipboard")

    # Pinning

    def toggle_pin(self, entry: ClipboardEntry) -> None:
        if entry.pinned:
            self._unpin(entry, self._entries, self._pinned_entries, ContentKind.TEXT)
            self._enforce_history_limit()
        else:
            self._pin(entry, self._entries, self._pinned_entries, ContentKind.TEXT)
        self._notify()

    def toggle_image_pin(self, entry: ImageEntry) -> None:
        if not self._preferences.save_images:
            # Pinned images on disk are not loaded; writing now would clobber them
            logger.debug("Ignoring image pin toggle while image saving is off")
            return
        if entry.pinned:
            self._unpin(entry, self._image_entries, self._pinned_image_entries, ContentKind.IMAGE)
            self._enforce_image_limit()
        else:
            self._pin(entry, self._image_entries, self._pinned_image_entries, ContentKind.IMAGE)
        self._notify()

    def _pin(self, entry, recent: list, pinned: list, kind: ContentKind) -> None:
        if any(e.id == entry.id for e in pinned):
            return
        recent[:] = [e for e in recent if e.id != entry.id]
        pinned.insert(0, replace(entry, pinned=True))
        self._persist(kind)

    def _unpin(self, entry, recent: list, pinned: list, kind: ContentKind) -> None:
        for index, existing in enumerate(pinned):
            if existing.id == entry.id:
                break
        else:
            return
        del pinned[index]
        recent.insert(0, replace(existing, pinned=False))
        self._persist(kind)

    # Deletion

    def delete_entry(self, entry: ClipboardEntry) -> None:
        if entry.pinned:
            return
        self._entries[:] = [e for e in self._entries if e.id != entry.id]
        self._notify()

    def delete_image_entry(self, entry: ImageEntry) -> None:
        if entry.pinned:
            return
        self._image_entries[:] = [e for e in self._image_entries if e.id != entry.id]
        self._notify()

    def clear(self) -> None:
        self._entries.clear()
        self._notify()

    def clear_images(self) -> None:
        self._image_entries.clear()
        self._notify()

    def clear_pinned(self) -> None:
        self._pinned_entries.clear()
        self._persist(ContentKind.TEXT)
        self._notify()

    def clear_pinned_images(self) -> None:
        if not self._preferences.save_images:
            return
        self._pinned_image_entries.clear()
        self._persist(ContentKind.IMAGE)
        self._notify()

    # Persistence

    def _persist(self, kind: ContentKind) -> None:
        pinned = self._pinned_entries if kind == ContentKind.TEXT else self._pinned_image_entries
        future = self._writer.submit(self._storage.save_pinned, kind, tuple(pinned))
        self._pending_writes.add(future)
        future.add_done_callback(self._write_done)

    def _write_done(self, future: Future) -> None:
        self._pending_writes.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error("Pinned write failed", exc_info=future.exception())

    def flush(self) -> None:
        """Block until every queued pinned write has finished."""
        wait(self._pending_writes.copy())

    def close(self) -> None:
        self.stop()
        self.flush()
        if self._owns_writer:
            self._writer.shutdown(wait=True)

    # Preferences

    def _on_preference_changed(self, pref: Preference, value) -> None:
        if pref == Preference.HISTORY_LIMIT:
            self._enforce_history_limit()
            self._notify()
        elif pref == Preference.POLL_INTERVAL:
            if self._timer is not None:
                self._start_polling()
        elif pref == Preference.SAVE_IMAGES:
            if value:
                self._pinned_image_entries = self._storage.load_pinned(ContentKind.IMAGE)
            else:
                # Pinned images stay on disk and come back when re-enabled
                self._image_entries = []
                self._pinned_image_entries = []
            self._notify()

    def _notify(self) -> None:
        if self._on_change:
            self._on_change()
