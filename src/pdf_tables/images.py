"""Cell images and the per-draw image registry."""

import itertools
from dataclasses import dataclass, field, replace
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from .constants import (
    IMAGE_RESOURCE_PREFIX,
    OVERLAY_BAR_HEIGHT,
    OVERLAY_FONT_SIZE,
    OVERLAY_PADDING,
)
from .errors import DimensionError, TableError
from .style import Padding

if TYPE_CHECKING:
    from .table import Table


# Issued once per decoded payload; copies made with replace() share the id
_image_ids = itertools.count()

SUPPORTED_FORMATS = ("JPEG", "PNG")


class ImageFit(Enum):
    """How an image is scaled into its cell."""
    CONTAIN = "contain"  # Scale to fit, preserving aspect ratio


@dataclass(frozen=True)
class ImageOverlay:
    """Semi-transparent bar with white text drawn along the top of an image."""
    text: str
    font_size: float = OVERLAY_FONT_SIZE
    bar_height: float = OVERLAY_BAR_HEIGHT
    padding: float = OVERLAY_PADDING


@dataclass(frozen=True)
class TableImage:
    """A JPEG or PNG payload that can be placed in table cells."""
    data: bytes = field(repr=False, compare=False)
    width_px: int
    height_px: int
    format: str
    image_id: int
    mode: str = "RGB"
    max_height: Optional[float] = None  # Points; caps the rendered height
    fit: ImageFit = ImageFit.CONTAIN
    overlay: Optional[ImageOverlay] = None

    @classmethod
    def from_bytes(cls, data: bytes) -> "TableImage":
        """Validate raw image bytes and capture their pixel size."""
        try:
            with Image.open(BytesIO(data)) as img:
                img_format = img.format
                width, height = img.size
                mode = img.mode
        except (UnidentifiedImageError, OSError) as exc:
            raise TableError(f"Invalid image data: {exc}", cause=exc) from exc

        if img_format not in SUPPORTED_FORMATS:
            raise TableError(f"Unsupported image format {img_format!r}, expected JPEG or PNG")
        if width <= 0 or height <= 0:
            raise DimensionError(f"Image has no pixels ({width}x{height})")

        return cls(
            data=bytes(data),
            width_px=width,
            height_px=height,
            format=img_format,
            image_id=next(_image_ids),
            mode=mode,
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TableImage":
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise TableError(f"Cannot read image file {path}", cause=exc) from exc
        return cls.from_bytes(data)

    @property
    def aspect_ratio(self) -> float:
        return self.width_px / self.height_px

    @property
    def resource_name(self) -> str:
        return f"{IMAGE_RESOURCE_PREFIX}{self.image_id}"

    def with_max_height(self, points: float) -> "TableImage":
        if points <= 0:
            raise DimensionError(f"Image max height must be positive, got {points}")
        return replace(self, max_height=points)

    def with_overlay(self, overlay: Union[ImageOverlay, str]) -> "TableImage":
        if isinstance(overlay, str):
            overlay = ImageOverlay(overlay)
        return replace(self, overlay=overlay)


@dataclass
class ImageBounds:
    """Where an image lands inside a cell."""
    x: float
    y: float
    width: float
    height: float


def fit_image(
    image: TableImage,
    x: float,
    y_top: float,
    width: float,
    height: float,
    padding: Padding,
) -> Optional[ImageBounds]:
    """
    Contain-fit an image in the padded interior of a cell, centered.

    Returns None when the interior has no area.
    """
    available_w = width - padding.left - padding.right
    available_h = height - padding.top - padding.bottom
    if available_w <= 0 or available_h <= 0:
        return None

    aspect = image.aspect_ratio
    render_h = available_w / aspect
    if image.max_height is not None:
        render_h = min(render_h, image.max_height)
    render_h = min(render_h, available_h)
    render_w = render_h * aspect

    inner_x = x + padding.left
    inner_bottom = y_top - height + padding.bottom
    return ImageBounds(
        x=inner_x + (available_w - render_w) / 2,
        y=inner_bottom + (available_h - render_h) / 2,
        width=render_w,
        height=render_h,
    )


class ImageRegistry:
    """
    Deduplicates the images of a draw call by their image id.

    Registering the same image (or a replace()'d copy of it) twice yields one
    resource; two separately decoded payloads get two resources even when
    their bytes match. The overlay graphics state is requested lazily, the
    first time an image with an overlay is registered.
    """

    def __init__(self):
        self._entries: Dict[int, Tuple[str, TableImage]] = {}
        self.needs_overlay_state = False

    @classmethod
    def from_table(cls, table: "Table") -> "ImageRegistry":
        registry = cls()
        for row in table.rows:
            for cell in row.cells:
                registry.register_all(cell.images)
        return registry

    def register(self, image: TableImage) -> str:
        if image.overlay is not None:
            self.needs_overlay_state = True
        entry = self._entries.get(image.image_id)
        if entry is None:
            entry = (image.resource_name, image)
            self._entries[image.image_id] = entry
        return entry[0]

    def register_all(self, images: Iterable[TableImage]) -> List[str]:
        return [self.register(image) for image in images]

    def resource_name(self, image: TableImage) -> Optional[str]:
        entry = self._entries.get(image.image_id)
        return entry[0] if entry else None

    def entries(self) -> List[Tuple[str, TableImage]]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, image: TableImage) -> bool:
        return image.image_id in self._entries
