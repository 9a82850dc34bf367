"""Searchable reading for scanned documents: OCR, page text cache and search."""

__version__ = "0.1.0"
