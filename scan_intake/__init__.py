"""Scan intake agent: watches a drop folder and files scanned documents by barcode."""

__version__ = "0.1.0"
