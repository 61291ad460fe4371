"""Raster drawing surface for freehand stroke capture.

The surface mirrors an HTML canvas: a transparent RGBA bitmap sized from
its container, drawn on with connected line segments while a stroke is
active, and exported as a PNG snapshot for recognition.
"""

import base64
import io
from dataclasses import dataclass

from PIL import Image, ImageDraw

from sketchtext.utils.config import SurfaceConfig
from sketchtext.utils.logger import get_logger

from .coordinates import Bounds, Point

logger = get_logger(__name__)

_TRANSPARENT = (0, 0, 0, 0)


class SurfaceNotInitializedError(RuntimeError):
    """Raised when an operation needs a backing surface that does not exist."""


@dataclass(frozen=True)
class StrokeStyle:
    """Fixed pen style used for every segment."""

    color: str = "#000000"
    width: int = 3


@dataclass
class StrokeSession:
    """Transient pen state while a gesture is in progress."""

    x: float = 0.0
    y: float = 0.0
    is_drawing: bool = False


@dataclass(frozen=True)
class Snapshot:
    """Immutable PNG export of the surface pixels at one point in time."""

    data: bytes
    width: int
    height: int
    format: str = "PNG"

    def to_image(self) -> Image.Image:
        """Decode the snapshot into a Pillow image."""
        image = Image.open(io.BytesIO(self.data))
        image.load()
        return image

    def to_data_url(self) -> str:
        """Encode the snapshot as a ``data:`` URL."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:image/{self.format.lower()};base64,{encoded}"


class StrokeSurface:
    """Pointer-driven drawing surface backed by a Pillow image.

    The surface has no pixels until :meth:`initialize` is called; before
    that, gesture calls are silently ignored.

    Args:
        config: Surface dimensions and stroke style settings.
    """

    def __init__(self, config: SurfaceConfig | None = None) -> None:
        self.config = config or SurfaceConfig()
        self.style = StrokeStyle(
            color=self.config.stroke_color,
            width=self.config.stroke_width,
        )
        self.session = StrokeSession()
        self._image: Image.Image | None = None
        self._draw: ImageDraw.ImageDraw | None = None

    @property
    def is_initialized(self) -> bool:
        return self._image is not None

    @property
    def is_drawing(self) -> bool:
        return self.session.is_drawing

    @property
    def size(self) -> tuple[int, int] | None:
        """Pixel dimensions of the backing surface, if it exists."""
        return self._image.size if self._image is not None else None

    def initialize(self, container: Bounds) -> None:
        """Create the backing surface sized to fit ``container``.

        Args:
            container: Layout box of the element hosting the surface.
        """
        self._allocate(container)
        logger.info("Surface initialized at %dx%d", *self._image.size)

    def resize(self, container: Bounds) -> None:
        """Recompute surface dimensions from the container's layout box.

        Resizing discards all drawn content. Does nothing before
        :meth:`initialize`.

        Args:
            container: Current layout box of the hosting element.
        """
        if self._image is None:
            return
        self._allocate(container)
        logger.debug("Surface resized to %dx%d, content cleared", *self._image.size)

    def _allocate(self, container: Bounds) -> None:
        width = max(int(container.width) - self.config.padding, 1)
        height = self.config.height
        self._image = Image.new("RGBA", (width, height), _TRANSPARENT)
        self._draw = ImageDraw.Draw(self._image)

    def begin_stroke(self, point: Point) -> None:
        """Start a stroke with the pen at ``point``."""
        if self._image is None:
            return
        self.session.is_drawing = True
        self.session.x = point.x
        self.session.y = point.y
        logger.debug("Stroke started at (%.1f, %.1f)", point.x, point.y)

    def extend_stroke(self, point: Point) -> None:
        """Draw a segment from the pen position to ``point`` and move the pen."""
        if not self.session.is_drawing or self._draw is None:
            return
        start = (self.session.x, self.session.y)
        end = (point.x, point.y)
        self._draw.line([start, end], fill=self.style.color, width=self.style.width)
        # Round caps: a disc at each end also rounds the joins between segments.
        radius = self.style.width / 2
        for cx, cy in (start, end):
            self._draw.ellipse(
                [cx - radius, cy - radius, cx + radius, cy + radius],
                fill=self.style.color,
            )
        self.session.x = point.x
        self.session.y = point.y

    def end_stroke(self) -> None:
        """Finish the current stroke. Safe to call when not drawing."""
        if not self.session.is_drawing:
            return
        self.session.is_drawing = False
        logger.debug("Stroke ended at (%.1f, %.1f)", self.session.x, self.session.y)

    def clear(self) -> None:
        """Erase all pixels, leaving the stroke session as it is."""
        if self._image is None or self._draw is None:
            return
        self._draw.rectangle([(0, 0), self._image.size], fill=_TRANSPARENT)
        logger.debug("Surface cleared")

    def has_ink(self) -> bool:
        """Return True if any pixel has been drawn on."""
        if self._image is None:
            return False
        return self._image.getchannel("A").getbbox() is not None

    def export_snapshot(self) -> Snapshot:
        """Encode the current pixels as a PNG snapshot.

        Raises:
            SurfaceNotInitializedError: If the surface was never initialized.
        """
        if self._image is None:
            raise SurfaceNotInitializedError("Drawing surface has not been initialized")
        buf = io.BytesIO()
        self._image.save(buf, format="PNG")
        width, height = self._image.size
        return Snapshot(data=buf.getvalue(), width=width, height=height)
