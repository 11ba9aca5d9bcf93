from dataclasses import dataclass
from typing import Any, Callable

RotateFunc = Callable[[Any, int], Any]


def rotate_image(image: Any, angle: int) -> Any:
    """Rotate a Pillow image counter-clockwise by angle degrees, growing the canvas to fit."""
    if angle % 360 == 0:
        return image
    return image.rotate(angle, expand=True)


@dataclass(frozen=True)
class Orientation:
    angle: int

    def apply(self, image: Any, rotate: RotateFunc = rotate_image) -> Any:
        if self.angle % 360 == 0:
            return image
        return rotate(image, self.angle)

    def __str__(self) -> str:
        return f"{self.angle}°"


# Base orientation first, then the fixed retries for a page without a code
ORIENTATIONS: tuple[Orientation, ...] = (
    Orientation(0),
    Orientation(90),
    Orientation(180),
    Orientation(270),
)
