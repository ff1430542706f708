"""Adapter over the macOS general pasteboard (AppKit via pyobjc).

Reads never raise: a missing or malformed payload is reported as ``None``,
which the capture loop treats as an empty cycle.
"""

import logging

logger = logging.getLogger(__name__)

PNG_FILE_TYPE = 4  # NSBitmapImageFileTypePNG


class Pasteboard:
    def __init__(self, pasteboard=None):
        import AppKit
        import Foundation

        self._appkit = AppKit
        self._foundation = Foundation
        self._pasteboard = pasteboard if pasteboard is not None else AppKit.NSPasteboard.generalPasteboard()

    def change_count(self) -> int:
        return int(self._pasteboard.changeCount())

    def read_text(self) -> str | None:
        try:
            text = self._pasteboard.stringForType_(self._appkit.NSPasteboardTypeString)
        except Exception:
            logger.debug("Could not read text from pasteboard", exc_info=True)
            return None
        return str(text) if text else None

    def read_image(self) -> bytes | None:
        """Return the pasteboard image as PNG bytes, or None.

        Probes a native NSImage object first, then raw TIFF data, then raw
        PNG data. The first payload that normalizes to PNG wins.
        """
        for probe in (self._read_image_object, self._read_tiff, self._read_png):
            try:
                data = probe()
            except Exception:
                logger.debug("Image probe %s failed", probe.__name__, exc_info=True)
                continue
            if not data:
                continue
            png = self.to_png(data)
            if png:
                return png
        return None

    def _read_image_object(self):
        objects = self._pasteboard.readObjectsForClasses_options_([self._appkit.NSImage], None)
        if not objects:
            return None
        return objects[0].TIFFRepresentation()

    def _read_tiff(self):
        return self._pasteboard.dataForType_(self._appkit.NSPasteboardTypeTIFF)

    def _read_png(self):
        return self._pasteboard.dataForType_(self._appkit.NSPasteboardTypePNG)

    def to_png(self, data) -> bytes | None:
        """Normalize any image container NSBitmapImageRep understands to PNG."""
        try:
            if isinstance(data, (bytes, bytearray)):
                data = self._foundation.NSData.dataWithBytes_length_(bytes(data), len(data))
            rep = self._appkit.NSBitmapImageRep.imageRepWithData_(data)
            if rep is None:
                return None
            png = rep.representationUsingType_properties_(PNG_FILE_TYPE, None)
        except Exception:
            logger.debug("Could not convert image to PNG", exc_info=True)
            return None
        return bytes(png) if png else None

    def write_text(self, text: str) -> bool:
        try:
            self._pasteboard.clearContents()
            return bool(self._pasteboard.setString_forType_(text, self._appkit.NSPasteboardTypeString))
        except Exception:
            logger.exception("Error writing text to clipboard")
            return False

    def write_image(self, png_bytes: bytes) -> bool:
        try:
            ns_data = self._foundation.NSData.dataWithBytes_length_(png_bytes, len(png_bytes))
            self._pasteboard.clearContents()
            image = self._appkit.NSImage.alloc().initWithData_(ns_data)
            if image is not None:
                return bool(self._pasteboard.writeObjects_([image]))
            return bool(self._pasteboard.setData_forType_(ns_data, self._appkit.NSPasteboardTypePNG))
        except Exception:
            logger.exception("Error writing image to clipboard")
            return False
