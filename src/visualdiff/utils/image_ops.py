from pathlib import Path
from typing import Tuple

import fitz
import numpy as np

WHITE = 0xFFFFFF
RED = 0xFF0000
MAGENTA = 0xFF00FF


def pack_rgb(rgb: np.ndarray) -> np.ndarray:
    """Pack an ``(h, w, 3)`` uint8 array into ``0xRRGGBB`` integers."""

    channels = rgb.astype(np.uint32)
    return (channels[..., 0] << 16) | (channels[..., 1] << 8) | channels[..., 2]


def unpack_rgb(packed: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return the red, green and blue channels of packed pixels as int32 arrays."""

    values = packed.astype(np.int64)
    r = ((values >> 16) & 0xFF).astype(np.int32)
    g = ((values >> 8) & 0xFF).astype(np.int32)
    b = (values & 0xFF).astype(np.int32)
    return r, g, b


def blank_canvas(height: int, width: int, color: int = WHITE) -> np.ndarray:
    return np.full((height, width), color, dtype=np.uint32)


def save_packed_png(pixels: np.ndarray, path: Path) -> None:
    """Write packed pixels to ``path`` as an RGB PNG using PyMuPDF."""

    height, width = pixels.shape
    r, g, b = unpack_rgb(pixels)
    rgb = np.stack([r, g, b], axis=-1).astype(np.uint8)
    pix = fitz.Pixmap(fitz.csRGB, width, height, rgb.tobytes(), 0)
    pix.save(str(path))
