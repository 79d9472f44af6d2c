"""Utility functions used across the project."""

from .file_io import sanitize_filename
from .pdf_ops import is_supported_file, is_supported_image, open_document, render_page

__all__ = [
    "is_supported_file",
    "is_supported_image",
    "open_document",
    "render_page",
    "sanitize_filename",
]
