import logging
from dataclasses import dataclass
from typing import Callable

import rumps

from cliphistory import __version__
from cliphistory.config import MENU_DISPLAY_COUNT, PREVIEW_LENGTH
from cliphistory.defaults import UserDefaults
from cliphistory.models import ClipboardEntry, ImageEntry
from cliphistory.pasteboard import Pasteboard
from cliphistory.preferences import Preferences
from cliphistory.storage import PinnedStorage
from cliphistory.store import ClipboardHistoryStore
from cliphistory.utils import ensure_dirs, truncate_text

logger = logging.getLogger(__name__)

ENTRY_KEY_PREFIX = "cliphistory_entry_"


@dataclass
class MenuItemSpec:
    """Specification for a menu item, separating logic from rumps rendering."""

    title: str
    callback: Callable | None = None
    entry_id: str | None = None
    state: bool | None = None
    is_submenu: bool = False
    children: list["MenuItemSpec | None"] | None = None


def entry_title(entry: ClipboardEntry | ImageEntry) -> str:
    if isinstance(entry, ImageEntry):
        width, height = entry.dimensions
        return f"[Image: {width}x{height}]"
    return truncate_text(entry.content, PREVIEW_LENGTH)


class ClipHistoryApp(rumps.App):
    def __init__(self):
        super().__init__("ClipHistory", title="📋", quit_button=None)
        self._init_app()

    def _init_app(self) -> None:
        """Wire up the store. This is the only place the collaborators are built."""
        ensure_dirs()
        defaults = UserDefaults()
        self._preferences = Preferences(defaults)
        self._store = ClipboardHistoryStore(
            preferences=self._preferences,
            pasteboard=Pasteboard(),
            storage=PinnedStorage(defaults=defaults),
            timer_factory=rumps.Timer,
            on_change=self._refresh_menu,
        )
        self._build_menu()
        self._store.start()

    def _build_menu(self) -> None:
        self.menu.clear()
        self._render_menu_specs(self._compute_menu_specs())

    def _compute_menu_specs(self) -> list[MenuItemSpec | None]:
        """Compute menu item specifications. Pure logic, no rumps dependency."""
        store = self._store
        specs: list[MenuItemSpec | None] = [
            MenuItemSpec(f"ClipHistory v{__version__}"),
            None,
        ]

        pinned = store.pinned_entries
        if pinned:
            children: list[MenuItemSpec | None] = [self._compute_entry_spec(e) for e in pinned]
            children.extend([None, MenuItemSpec("Clear Pinned", callback=self._on_clear_pinned)])
            specs.extend([MenuItemSpec("📌 Pinned", is_submenu=True, children=children), None])

        recent = store.entries[:MENU_DISPLAY_COUNT]
        if recent:
            specs.extend(self._compute_entry_spec(e) for e in recent)
        elif not pinned:
            specs.append(MenuItemSpec("(No clipboard history)"))

        if self._preferences.save_images:
            images: list[MenuItemSpec | None] = [
                self._compute_entry_spec(e) for e in store.pinned_image_entries + store.image_entries
            ]
            if not images:
                images.append(MenuItemSpec("(No images)"))
            images.extend([None, MenuItemSpec("Clear Images", callback=self._on_clear_images)])
            specs.extend([None, MenuItemSpec("🖼 Images", is_submenu=True, children=images)])

        specs.extend([
            None,
            MenuItemSpec("Settings", is_submenu=True, children=[
                MenuItemSpec(
                    "Skip Duplicates",
                    callback=self._on_toggle_duplicates,
                    state=self._preferences.prevent_duplicates,
                ),
                MenuItemSpec("Save Images", callback=self._on_toggle_images, state=self._preferences.save_images),
                None,
                MenuItemSpec("Reset to Defaults", callback=self._on_reset_preferences),
            ]),
            MenuItemSpec("Clear History", callback=self._on_clear),
            None,
            MenuItemSpec("Quit ClipHistory", callback=self._on_quit),
        ])
        return specs

    def _compute_entry_spec(self, entry: ClipboardEntry | ImageEntry) -> MenuItemSpec:
        title = entry_title(entry)
        if entry.pinned:
            title = f"📌 {title}"
        return MenuItemSpec(title, callback=self._on_entry_click, entry_id=entry.id)

    def _render_menu_specs(self, specs: list[MenuItemSpec | None]) -> None:
        self.menu = [self._render_single_spec(spec) for spec in specs]

    def _render_single_spec(self, spec: MenuItemSpec | None) -> rumps.MenuItem | None:
        if spec is None:
            return None

        if spec.is_submenu and spec.children:
            submenu = rumps.MenuItem(spec.title)
            for child in spec.children:
                submenu.add(self._render_single_spec(child))
            return submenu

        item = rumps.MenuItem(spec.title, callback=spec.callback)
        if spec.state is not None:
            item.state = int(spec.state)
        if spec.entry_id is not None:
            item._id = f"{ENTRY_KEY_PREFIX}{spec.entry_id}"
        return item

    def _refresh_menu(self) -> None:
        self._build_menu()

    def _on_entry_click(self, sender) -> None:
        key = getattr(sender, "_id", "")
        if not key.startswith(ENTRY_KEY_PREFIX):
            return
        entry = self._store.find_entry(key[len(ENTRY_KEY_PREFIX):])
        if entry is None:
            return

        # Option-click toggles pin instead of copying
        try:
            from AppKit import NSAlternateKeyMask, NSEvent

            if NSEvent.modifierFlags() & NSAlternateKeyMask:
                if isinstance(entry, ImageEntry):
                    self._store.toggle_image_pin(entry)
                else:
                    self._store.toggle_pin(entry)
                return
        except Exception:
            logger.debug("Could not read modifier flags", exc_info=True)

        if isinstance(entry, ImageEntry):
            self._store.copy_image_to_clipboard(entry)
        else:
            self._store.copy_to_clipboard(entry)

    def _on_toggle_duplicates(self, _sender) -> None:
        self._preferences.prevent_duplicates = not self._preferences.prevent_duplicates
        self._refresh_menu()

    def _on_toggle_images(self, _sender) -> None:
        self._preferences.save_images = not self._preferences.save_images

    def _on_reset_preferences(self, _sender) -> None:
        self._preferences.reset_to_defaults()
        self._refresh_menu()

    def _on_clear_pinned(self, _sender) -> None:
        if rumps.alert("ClipHistory", "Remove all pinned entries?", ok="Remove", cancel="Cancel"):
            self._store.clear_pinned()

    def _on_clear_images(self, _sender) -> None:
        self._store.clear_images()

    def _on_clear(self, _sender) -> None:
        if rumps.alert("ClipHistory", "Clear clipboard history? Pinned entries are kept.", ok="Clear", cancel="Cancel"):
            self._store.clear()

    def _on_quit(self, _sender) -> None:
        self._store.close()
        rumps.quit_application()
