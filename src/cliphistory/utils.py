import struct

from cliphistory.config import DATA_DIR

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def truncate_text(text: str, max_len: int) -> str:
    single_line = " ".join(text.split())
    if len(single_line) <= max_len:
        return single_line
    return single_line[: max_len - 3] + "..."


def ensure_dirs() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)


def get_image_dimensions(png_bytes: bytes) -> tuple[int, int]:
    if len(png_bytes) < 24 or png_bytes[:8] != PNG_SIGNATURE or png_bytes[12:16] != b"IHDR":
        return (0, 0)
    width = struct.unpack(">I", png_bytes[16:20])[0]
    height = struct.unpack(">I", png_bytes[20:24])[0]
    return (width, height)


def is_valid_png(png_bytes: bytes) -> bool:
    width, height = get_image_dimensions(png_bytes)
    return width > 0 and height > 0
