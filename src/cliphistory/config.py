import os
from pathlib import Path

APP_NAME = "ClipHistory"

DATA_DIR = Path(os.environ.get("CLIPHISTORY_DATA_DIR", Path.home() / "Library" / "Application Support" / APP_NAME))
PINNED_PATH = DATA_DIR / "pinned.json"
PINNED_IMAGES_PATH = DATA_DIR / "pinned-images.json"
LOG_PATH = DATA_DIR / "cliphistory.log"

LEGACY_PINNED_KEY = "com.cliphistory.pinned"  # pre-JSON-file builds kept pins in user defaults

MIN_POLL_INTERVAL = 0.3  # seconds, enforced by the poller regardless of preferences
MAX_IMAGE_SIZE = 10_000_000  # 10MB image limit
MAX_RECENT_IMAGES = 50  # independent of the text history limit
PREVIEW_LENGTH = 60  # characters shown in menu item

# Preference defaults and clamp ranges
DEFAULT_HISTORY_LIMIT = 25
HISTORY_LIMIT_RANGE = (10, 100)
DEFAULT_POLL_INTERVAL = 0.8
POLL_INTERVAL_RANGE = (0.3, 2.0)
DEFAULT_PREVENT_DUPLICATES = True
DEFAULT_SAVE_IMAGES = False
DEFAULT_AUTO_START_ON_LOGIN = False


def _parse_menu_display_count() -> int:
    raw = os.environ.get("CLIPHISTORY_MENU_DISPLAY_COUNT")
    if raw is None:
        return 10
    try:
        value = int(raw)
    except ValueError:
        return 10
    return max(5, min(50, value))


MENU_DISPLAY_COUNT = _parse_menu_display_count()
