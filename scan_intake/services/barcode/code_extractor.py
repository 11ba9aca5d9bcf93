"""
Code Extractor - walks the rendered pages of a document and returns the first identifying code.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Sequence

from .orientation import ORIENTATIONS, Orientation, RotateFunc, rotate_image
from .protocols import ContentIdentifier, PageRenderer


class CodeExtractor:
    """
    Page-by-page code lookup with orientation retries.

    Each page is tried in every orientation before moving on to the next page.
    The first non-blank decoder result wins. Blocking; run it in a worker
    thread.
    """

    def __init__(
        self,
        renderer: PageRenderer,
        identifier: ContentIdentifier,
        dpi: int = 200,
        orientations: Sequence[Orientation] = ORIENTATIONS,
        rotate: RotateFunc = rotate_image,
    ):
        self.renderer = renderer
        self.identifier = identifier
        self.dpi = dpi
        self.orientations = tuple(orientations)
        self._rotate = rotate

    def extract_first_code(self, document: Path) -> Optional[str]:
        pages = self.renderer.render(document, self.dpi)
        try:
            for page_index, page in enumerate(pages):
                code = self._identify_page(page, page_index)
                if code is not None:
                    return code
        finally:
            close = getattr(pages, "close", None)
            if close is not None:
                close()

        logging.info(f"No barcode found in {document.name}")
        return None

    def _identify_page(self, page: Any, page_index: int) -> Optional[str]:
        for orientation in self.orientations:
            image = orientation.apply(page, self._rotate)
            raw = self.identifier.identify(image)
            if raw is not None and raw.strip():
                logging.debug(
                    f"Found barcode on page {page_index + 1} at {orientation}: {raw!r}"
                )
                return raw
        return None
