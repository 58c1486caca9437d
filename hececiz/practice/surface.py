#!/usr/bin/env python3
"""
Capture surface for free-form handwriting.

Strokes are rasterized with Pillow into an RGBA buffer at device-pixel
density. The pen paints opaque ink; the eraser punches pixels back to fully
transparent. Snapshots flatten the buffer onto white and encode as JPEG, so
erased areas read as paper to a classifier that assumes an opaque page.
"""

import base64
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageDraw

from .state import Tool

logger = logging.getLogger(__name__)


INK_COLOR = (37, 99, 235, 255)   # #2563EB
INK_WIDTH = 8
ERASER_WIDTH = 40
BACKGROUND = (255, 255, 255, 255)
JPEG_QUALITY = 90
TRANSPARENT = (0, 0, 0, 0)


@dataclass(frozen=True)
class Bounds:
    """On-screen box of the surface, in the input's coordinate space"""
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class Snapshot:
    """A flattened, encoded drawing"""
    data: bytes
    mime_type: str
    width: int
    height: int

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode('ascii')

    def to_image(self) -> Image.Image:
        return Image.open(io.BytesIO(self.data))

    def save(self, path) -> Path:
        path = Path(path)
        path.write_bytes(self.data)
        return path


@dataclass
class _Stroke:
    """The stroke in progress; its tool is fixed when it starts"""
    tool: Tool
    last: Tuple[float, float]


class CaptureSurface:
    """Stateful ink buffer with pen and eraser tools"""

    def __init__(
        self,
        width: float,
        height: float,
        device_pixel_ratio: float = 1.0,
        ink_color: Tuple[int, int, int, int] = INK_COLOR,
        ink_width: int = INK_WIDTH,
        eraser_width: int = ERASER_WIDTH,
    ):
        if eraser_width < ink_width:
            raise ValueError("The eraser must be at least as wide as the pen")
        self.ink_color = ink_color
        self.ink_width = ink_width
        self.eraser_width = eraser_width
        self.tool = Tool.INK
        self.bounds = Bounds(0, 0, width, height)
        self._disabled = False
        self._has_ink = False
        self._stroke: Optional[_Stroke] = None
        self._raster: Optional[Image.Image] = None
        self._scale = 1.0
        self.resize(width, height, device_pixel_ratio)

    # ------------------------------------------------------------------
    # Raster provisioning
    # ------------------------------------------------------------------

    @property
    def size(self) -> Tuple[int, int]:
        """Physical raster size in device pixels"""
        return self._raster.size

    @property
    def scale(self) -> float:
        """Device pixels per surface unit"""
        return self._scale

    def resize(self, width: float, height: float, device_pixel_ratio: float = 1.0) -> bool:
        """
        Match the raster to a layout size at a device pixel ratio.

        Nothing happens unless the physical size actually changes, so
        repeated layout queries never disturb a drawing. When it does
        change, existing ink is carried over at the new density.
        Returns True if the raster was re-provisioned.
        """
        if width <= 0 or height <= 0 or device_pixel_ratio <= 0:
            raise ValueError("Surface dimensions and pixel ratio must be positive")

        physical = (round(width * device_pixel_ratio), round(height * device_pixel_ratio))
        self.bounds = Bounds(self.bounds.left, self.bounds.top, width, height)
        if self._raster is not None and self._raster.size == physical:
            self._scale = device_pixel_ratio
            return False

        raster = Image.new('RGBA', physical, TRANSPARENT)
        if self._raster is not None:
            old = self._raster
            ratio = device_pixel_ratio / self._scale
            if ratio != 1:
                old = old.resize((max(1, round(old.width * ratio)), max(1, round(old.height * ratio))))
            raster.paste(old, (0, 0))
            logger.debug("Surface re-provisioned %s -> %s", self._raster.size, physical)

        self._raster = raster
        self._scale = device_pixel_ratio
        self._stroke = None
        return True

    def place(self, left: float, top: float):
        """Record where the surface sits on screen"""
        self.bounds = Bounds(left, top, self.bounds.width, self.bounds.height)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def disabled(self) -> bool:
        return self._disabled

    def set_disabled(self, disabled: bool):
        """Ignore all input while disabled; any open stroke ends"""
        self._disabled = disabled
        if disabled:
            self._stroke = None

    def is_empty(self) -> bool:
        """True until a stroke lands after construction or clear().
        Erasing everything does not make the surface empty again."""
        return not self._has_ink

    def clear(self):
        """Wipe all ink and return to a fresh pen. Safe to call repeatedly."""
        self._raster = Image.new('RGBA', self._raster.size, TRANSPARENT)
        self._has_ink = False
        self._stroke = None
        self.tool = Tool.INK

    # ------------------------------------------------------------------
    # Pointer input
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, y: float, bounds: Optional[Bounds] = None):
        """Start a stroke at (x, y) given in the input's coordinate space"""
        if self._disabled:
            return
        point = self._to_local(x, y, bounds)
        self._stroke = _Stroke(tool=self.tool, last=point)
        self._has_ink = True
        self._paint(point, point, self._stroke.tool)

    def pointer_move(self, x: float, y: float, bounds: Optional[Bounds] = None):
        """Extend the open stroke; ignored when no stroke is open"""
        if self._disabled or self._stroke is None:
            return
        point = self._to_local(x, y, bounds)
        self._paint(self._stroke.last, point, self._stroke.tool)
        self._stroke.last = point

    def pointer_up(self):
        """Finish the open stroke"""
        if self._disabled:
            return
        self._stroke = None

    pointer_leave = pointer_up

    def draw_stroke(self, points, bounds: Optional[Bounds] = None):
        """Feed a whole down-move-up path"""
        points = list(points)
        if not points:
            return
        self.pointer_down(*points[0], bounds=bounds)
        for x, y in points[1:]:
            self.pointer_move(x, y, bounds=bounds)
        self.pointer_up()

    def _to_local(self, x: float, y: float, bounds: Optional[Bounds]) -> Tuple[float, float]:
        box = bounds or self.bounds
        return (x - box.left, y - box.top)

    def _paint(self, start: Tuple[float, float], end: Tuple[float, float], tool: Tool):
        if tool is Tool.ERASE:
            width, fill = self.eraser_width, TRANSPARENT
        else:
            width, fill = self.ink_width, self.ink_color

        # ImageDraw writes RGBA values straight into the buffer, which makes
        # the transparent eraser destructive rather than a no-op blend
        s = self._scale
        x0, y0 = start[0] * s, start[1] * s
        x1, y1 = end[0] * s, end[1] * s
        w = max(1, round(width * s))
        r = w / 2

        draw = ImageDraw.Draw(self._raster)
        if (x0, y0) != (x1, y1):
            draw.line([(x0, y0), (x1, y1)], fill=fill, width=w)
        # Round caps and joins
        for cx, cy in ((x0, y0), (x1, y1)):
            draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=fill)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_snapshot(self) -> Optional[Snapshot]:
        """JPEG of the drawing on white, or None if nothing was drawn"""
        if self.is_empty():
            return None

        page = Image.new('RGBA', self._raster.size, BACKGROUND)
        flat = Image.alpha_composite(page, self._raster).convert('RGB')

        buffer = io.BytesIO()
        flat.save(buffer, format='JPEG', quality=JPEG_QUALITY)
        return Snapshot(
            data=buffer.getvalue(),
            mime_type='image/jpeg',
            width=flat.width,
            height=flat.height,
        )

    def ink_coverage(self) -> float:
        """Fraction of device pixels currently carrying ink"""
        alpha = self._raster.getchannel('A')
        histogram = alpha.histogram()
        total = self._raster.width * self._raster.height
        return (total - histogram[0]) / total if total else 0.0
