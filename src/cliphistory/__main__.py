import argparse
import logging
import sys

from cliphistory import __version__
from cliphistory.config import LOG_PATH, PREVIEW_LENGTH
from cliphistory.models import ContentKind
from cliphistory.storage import PinnedStorage
from cliphistory.utils import ensure_dirs, truncate_text


def setup_logging(verbose: bool = False) -> None:
    ensure_dirs()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(LOG_PATH),
            logging.StreamHandler(sys.stderr),
        ],
    )


def list_pinned(storage: PinnedStorage | None = None) -> int:
    """Print pinned text entries from disk, newest pin first."""
    storage = storage or PinnedStorage()
    entries = storage.load_pinned(ContentKind.TEXT)
    if not entries:
        print("No pinned entries.")
        return 0
    for entry in entries:
        stamp = entry.captured_at.strftime("%Y-%m-%d %H:%M")
        print(f"{stamp}  {truncate_text(entry.content, PREVIEW_LENGTH)}")
    return 0


def run_app(verbose: bool = False) -> None:
    """Run the ClipHistory menu-bar application."""
    setup_logging(verbose)

    from cliphistory.app import ClipHistoryApp

    app = ClipHistoryApp()
    app.run()


def main():
    parser = argparse.ArgumentParser(
        description="ClipHistory - Clipboard history manager for macOS",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  (none)      Run ClipHistory in the menu bar
  pinned      List pinned text entries

Examples:
  cliphistory            # Start the menu-bar app
  cliphistory pinned     # Show what is pinned on disk
""",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["pinned"],
        help="Command to run",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args()

    if args.command == "pinned":
        sys.exit(list_pinned())
    else:
        run_app(verbose=args.verbose)


if __name__ == "__main__":
    main()
