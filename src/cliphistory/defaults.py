"""Key-value preference storage backed by NSUserDefaults."""


def _to_python(value):
    """Convert a bridged Foundation value to a plain Python value."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return str(value)
    try:
        return bytes(value)  # NSData
    except TypeError:
        return value


class UserDefaults:
    """Thin wrapper over ``NSUserDefaults`` exposing get/set/remove.

    Anything with the same three methods can stand in for it, which is how
    ``Preferences`` and ``PinnedStorage`` are exercised off macOS.
    """

    def __init__(self, suite_name: str | None = None):
        from Foundation import NSUserDefaults

        if suite_name:
            self._defaults = NSUserDefaults.alloc().initWithSuiteName_(suite_name)
        else:
            self._defaults = NSUserDefaults.standardUserDefaults()

    def get(self, key: str):
        return _to_python(self._defaults.objectForKey_(key))

    def set(self, key: str, value) -> None:
        if isinstance(value, (bytes, bytearray)):
            from Foundation import NSData

            value = NSData.dataWithBytes_length_(bytes(value), len(value))
        self._defaults.setObject_forKey_(value, key)

    def remove(self, key: str) -> None:
        self._defaults.removeObjectForKey_(key)
