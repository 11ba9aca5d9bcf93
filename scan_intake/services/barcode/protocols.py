from pathlib import Path
from typing import Any, Iterable, Optional, Protocol


class PageRenderer(Protocol):
    """Rasterizes a document into page images, first page first."""

    def render(self, document: Path, dpi: int) -> Iterable[Any]:
        """Raise OSError if the document cannot be opened."""
        ...


class ContentIdentifier(Protocol):
    """Finds an identifying code in a single page image."""

    def identify(self, image: Any) -> Optional[str]:
        """Return the decoded text, or None when no code is present. Never raises for a valid image."""
        ...
