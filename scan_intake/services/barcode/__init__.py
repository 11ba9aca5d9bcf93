# Adapters (PdfPageRenderer, OpenCvBarcodeIdentifier) are imported from their modules directly
from .code_extractor import CodeExtractor
from .orientation import ORIENTATIONS, Orientation, rotate_image
from .protocols import ContentIdentifier, PageRenderer

__all__ = [
    "CodeExtractor",
    "ContentIdentifier",
    "ORIENTATIONS",
    "Orientation",
    "PageRenderer",
    "rotate_image",
]
