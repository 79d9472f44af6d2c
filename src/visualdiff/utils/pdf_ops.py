"""Document loading and rasterisation helpers built on PyMuPDF."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Tuple

import fitz
import numpy as np

from ..core.types import RenderedPage
from ..errors import DocumentLoadError, FileNotFound, ImageConversionError, ImageReadError
from .image_ops import pack_rgb

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS: Tuple[str, ...] = (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tif", ".tiff")


def is_supported_image(path: str | Path) -> bool:
    return str(path).lower().endswith(IMAGE_EXTENSIONS)


def is_supported_file(path: str | Path) -> bool:
    return str(path).lower().endswith(".pdf") or is_supported_image(path)


def _load_image_as_pdf(path: Path) -> fitz.Document:
    try:
        image_doc = fitz.open(str(path))
    except Exception as exc:
        raise ImageReadError(path, exc) from exc
    try:
        pdf_bytes = image_doc.convert_to_pdf()
        return fitz.open("pdf", pdf_bytes)
    except Exception as exc:
        raise ImageConversionError(path, exc) from exc
    finally:
        image_doc.close()


def load_document(path: str | Path) -> fitz.Document:
    """Open ``path`` as a PDF, converting supported images on the fly.

    The caller owns the returned document and must close it; prefer
    :func:`open_document` which does so automatically.
    """

    path = Path(path)
    if not path.is_file():
        raise FileNotFound(path)
    if is_supported_image(path):
        logger.debug("Converting image %s to PDF", path)
        return _load_image_as_pdf(path)
    try:
        return fitz.open(str(path))
    except Exception as exc:
        raise DocumentLoadError(path, exc) from exc


@contextmanager
def open_document(path: str | Path) -> Iterator[fitz.Document]:
    doc = load_document(path)
    try:
        yield doc
    finally:
        doc.close()


def render_page(doc: fitz.Document, page_index: int, dpi: int) -> RenderedPage:
    """Rasterise ``page_index`` of ``doc`` to packed RGB pixels at ``dpi``."""

    zoom = dpi / 72.0
    mat = fitz.Matrix(zoom, zoom)
    pix = doc[page_index].get_pixmap(matrix=mat, colorspace=fitz.csRGB, alpha=False)
    rgb = np.frombuffer(pix.samples, dtype=np.uint8).reshape(pix.height, pix.width, 3)
    return RenderedPage(width=pix.width, height=pix.height, pixels=pack_rgb(rgb))
