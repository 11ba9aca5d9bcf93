import logging
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF
from PIL import Image


class PdfPageRenderer:
    """Renders PDF pages to RGB Pillow images, one page at a time."""

    def render(self, document: Path, dpi: int) -> Iterator[Image.Image]:
        try:
            pdf_doc = fitz.open(document)
        except Exception as e:
            raise OSError(f"Cannot open document {document}: {e}") from e

        return self._iter_pages(pdf_doc, document, dpi)

    @staticmethod
    def _iter_pages(pdf_doc: "fitz.Document", document: Path, dpi: int) -> Iterator[Image.Image]:
        with pdf_doc:
            logging.debug(f"Rendering {pdf_doc.page_count} page(s) of {document.name} at {dpi} DPI")
            for page in pdf_doc:
                pix = page.get_pixmap(dpi=dpi, alpha=False)
                yield Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
