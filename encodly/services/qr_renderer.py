"""Styled QR code renderer.

Redraws a QR module matrix with custom shapes using Pillow:

- data modules are drawn with a shape primitive (circle, star, heart, ...)
- the three 7x7 finder patterns are replaced by a frame and a center glyph
- frames are cut from an offscreen mask (fill outer shape, punch inner shape)
  and pasted through it, so any outer/inner shape pair yields a clean ring

Everything is drawn at ``supersample`` times the target resolution and
downsampled, which keeps curved shapes smooth.
"""

import logging
import math
from enum import Enum
from typing import Callable, Optional, Sequence

from PIL import Image, ImageColor, ImageDraw

logger = logging.getLogger(__name__)

FINDER_SIZE = 7
FINDER_CENTER_OFFSET = 2
FINDER_CENTER_SIZE = 3


class ShapeStyle(str, Enum):
    """Data module shapes."""
    SQUARE = "square"
    ROUNDED = "rounded"
    CIRCLE = "circle"
    DIAMOND = "diamond"
    STAR = "star"
    HEART = "heart"
    HEXAGON = "hexagon"
    PLUS = "plus"
    TRIANGLE = "triangle"
    PENTAGON = "pentagon"
    OCTAGON = "octagon"
    CROSS = "cross"
    DOTS = "dots"
    FLOWER = "flower"


class BorderStyle(str, Enum):
    """Finder pattern frame shapes."""
    SQUARE = "square"
    CIRCLE = "circle"
    ROUNDED = "rounded"
    ROUNDED_SMALL = "rounded-small"
    ROUNDED_INNER = "rounded-inner"
    LEAF_TL = "leaf-tl"
    LEAF_TR = "leaf-tr"
    LEAF_BL = "leaf-bl"
    LEAF_BR = "leaf-br"
    LEAF_MIXED = "leaf-mixed"
    EXTRA_ROUNDED = "extra-rounded"
    THICK = "thick"


class CenterStyle(str, Enum):
    """Finder pattern center shapes."""
    SQUARE = "square"
    ROUNDED = "rounded"
    CIRCLE = "circle"
    DIAMOND = "diamond"
    STAR = "star"
    HEART = "heart"
    GEM = "gem"
    LEAF = "leaf"
    RING = "ring"


# Corner radius as a fraction of the frame side
_FRAME_RADII = {
    BorderStyle.ROUNDED: 0.2,
    BorderStyle.ROUNDED_SMALL: 0.1,
    BorderStyle.EXTRA_ROUNDED: 0.4,
}
_LEAF_RADIUS = 0.4

# Which corner a leaf frame keeps sharp: (top_left, top_right, bottom_right, bottom_left)
_LEAF_CORNERS = {
    "tl": (False, True, True, True),
    "tr": (True, False, True, True),
    "br": (True, True, False, True),
    "bl": (True, True, True, False),
}

_LEAF_STYLES = {
    BorderStyle.LEAF_TL: "tl",
    BorderStyle.LEAF_TR: "tr",
    BorderStyle.LEAF_BL: "bl",
    BorderStyle.LEAF_BR: "br",
}

Point = tuple[float, float]


def finder_origins(count: int) -> list[tuple[int, int, str]]:
    """Top-left module (x, y) of each finder pattern, with its corner name."""
    return [
        (0, 0, "tl"),
        (count - FINDER_SIZE, 0, "tr"),
        (0, count - FINDER_SIZE, "bl"),
    ]


def in_finder_pattern(x: int, y: int, count: int) -> bool:
    for fx, fy, _ in finder_origins(count):
        if fx <= x < fx + FINDER_SIZE and fy <= y < fy + FINDER_SIZE:
            return True
    return False


def _regular_polygon(cx: float, cy: float, radius: float, sides: int, start: float = 0.0) -> list[Point]:
    return [
        (cx + math.cos(start + i * 2 * math.pi / sides) * radius,
         cy + math.sin(start + i * 2 * math.pi / sides) * radius)
        for i in range(sides)
    ]


def _star(cx: float, cy: float, outer: float, inner: float, spikes: int = 5) -> list[Point]:
    points = []
    for i in range(spikes * 2):
        angle = i * math.pi / spikes - math.pi / 2
        r = outer if i % 2 == 0 else inner
        points.append((cx + math.cos(angle) * r, cy + math.sin(angle) * r))
    return points


def _cubic(p0: Point, p1: Point, p2: Point, p3: Point, steps: int) -> list[Point]:
    points = []
    for i in range(1, steps + 1):
        t = i / steps
        u = 1 - t
        points.append((
            u ** 3 * p0[0] + 3 * u * u * t * p1[0] + 3 * u * t * t * p2[0] + t ** 3 * p3[0],
            u ** 3 * p0[1] + 3 * u * u * t * p1[1] + 3 * u * t * t * p2[1] + t ** 3 * p3[1],
        ))
    return points


def _quadratic(p0: Point, p1: Point, p2: Point, steps: int) -> list[Point]:
    points = []
    for i in range(1, steps + 1):
        t = i / steps
        u = 1 - t
        points.append((
            u * u * p0[0] + 2 * u * t * p1[0] + t * t * p2[0],
            u * u * p0[1] + 2 * u * t * p1[1] + t * t * p2[1],
        ))
    return points


def _heart(cx: float, cy: float, size: float, steps: int = 16) -> list[Point]:
    bottom = (cx, cy + size * 0.3)
    top = (cx, cy - size * 0.3)
    left = _cubic(bottom, (cx - size, cy - size * 0.5), (cx - size * 0.5, cy - size), top, steps)
    right = _cubic(top, (cx + size * 0.5, cy - size), (cx + size, cy - size * 0.5), bottom, steps)
    return [bottom] + left + right


def _leaf(x: float, y: float, size: float, steps: int = 16) -> list[Point]:
    cx, cy = x + size / 2, y + size / 2
    start = (cx, y)
    end = (cx, y + size)
    return [start] + _quadratic(start, (x + size, cy), end, steps) + _quadratic(end, (x, cy), start, steps)


def _circle(draw: ImageDraw.ImageDraw, cx: float, cy: float, radius: float, fill) -> None:
    draw.ellipse([cx - radius, cy - radius, cx + radius, cy + radius], fill=fill)


def _rect(draw: ImageDraw.ImageDraw, x: float, y: float, w: float, h: float, fill) -> None:
    # Pillow boxes are inclusive of the far edge
    draw.rectangle([round(x), round(y), round(x + w) - 1, round(y + h) - 1], fill=fill)


def _rounded_rect(
    draw: ImageDraw.ImageDraw,
    x: float,
    y: float,
    size: float,
    radius: float,
    fill,
    corners: Optional[tuple[bool, bool, bool, bool]] = None,
) -> None:
    box = [round(x), round(y), round(x + size) - 1, round(y + size) - 1]
    draw.rounded_rectangle(box, radius=round(radius), fill=fill, corners=corners)


def draw_module(draw: ImageDraw.ImageDraw, x: float, y: float, size: float, style: ShapeStyle, fill) -> None:
    """Draw one dark data module inside the square at (x, y)."""
    cx, cy = x + size / 2, y + size / 2
    radius = size / 2 * 0.8

    if style == ShapeStyle.CIRCLE:
        _circle(draw, cx, cy, radius, fill)
    elif style == ShapeStyle.ROUNDED:
        _rounded_rect(draw, x, y, size, size * 0.3, fill)
    elif style == ShapeStyle.DIAMOND:
        draw.polygon([(cx, y), (x + size, cy), (cx, y + size), (x, cy)], fill=fill)
    elif style == ShapeStyle.STAR:
        draw.polygon(_star(cx, cy, radius, radius * 0.4), fill=fill)
    elif style == ShapeStyle.HEART:
        draw.polygon(_heart(cx, cy, radius * 0.8), fill=fill)
    elif style == ShapeStyle.HEXAGON:
        draw.polygon(_regular_polygon(cx, cy, radius, 6), fill=fill)
    elif style in (ShapeStyle.PLUS, ShapeStyle.CROSS):
        thickness = size * (0.3 if style == ShapeStyle.PLUS else 0.25)
        length = size * 0.8
        _rect(draw, cx - length / 2, cy - thickness / 2, length, thickness, fill)
        _rect(draw, cx - thickness / 2, cy - length / 2, thickness, length, fill)
    elif style == ShapeStyle.TRIANGLE:
        draw.polygon([(cx, y), (x, y + size), (x + size, y + size)], fill=fill)
    elif style == ShapeStyle.PENTAGON:
        draw.polygon(_regular_polygon(cx, cy, radius, 5, -math.pi / 2), fill=fill)
    elif style == ShapeStyle.OCTAGON:
        draw.polygon(_regular_polygon(cx, cy, radius, 8), fill=fill)
    elif style == ShapeStyle.DOTS:
        dot = size * 0.15
        for i in range(4):
            angle = i * math.pi / 2
            _circle(draw, cx + math.cos(angle) * size * 0.25, cy + math.sin(angle) * size * 0.25, dot, fill)
        _circle(draw, cx, cy, dot, fill)
    elif style == ShapeStyle.FLOWER:
        for i in range(4):
            angle = i * math.pi / 2
            _circle(draw, cx + math.cos(angle) * radius * 0.6, cy + math.sin(angle) * radius * 0.6, radius * 0.4, fill)
    else:
        _rect(draw, x, y, size, size, fill)


def _paste_through_mask(
    canvas: Image.Image,
    x: int,
    y: int,
    size: int,
    color: tuple[int, ...],
    outer: Callable[[ImageDraw.ImageDraw], None],
    hole: Callable[[ImageDraw.ImageDraw], None],
) -> None:
    """Fill ``outer`` minus ``hole`` with color, using an offscreen mask."""
    mask = Image.new("L", (size, size), 0)
    mask_draw = ImageDraw.Draw(mask)
    outer(mask_draw)
    hole(mask_draw)
    canvas.paste(color, (x, y, x + size, y + size), mask)


def draw_center(draw: ImageDraw.ImageDraw, x: float, y: float, size: float, style: CenterStyle, fill) -> None:
    """Draw a finder pattern's center glyph in the square at (x, y)."""
    cx, cy = x + size / 2, y + size / 2
    radius = size / 2 * 0.9

    if style == CenterStyle.CIRCLE:
        _circle(draw, cx, cy, radius, fill)
    elif style == CenterStyle.ROUNDED:
        _rounded_rect(draw, x, y, size, size * 0.3, fill)
    elif style == CenterStyle.DIAMOND:
        draw.polygon([(cx, y), (x + size, cy), (cx, y + size), (x, cy)], fill=fill)
    elif style == CenterStyle.STAR:
        draw.polygon(_star(cx, cy, radius, radius * 0.4), fill=fill)
    elif style == CenterStyle.HEART:
        draw.polygon(_heart(cx, cy, radius * 0.8), fill=fill)
    elif style == CenterStyle.GEM:
        points = [
            (cx + math.cos(i * 2 * math.pi / 8) * (radius if i % 2 == 0 else radius * 0.7),
             cy + math.sin(i * 2 * math.pi / 8) * (radius if i % 2 == 0 else radius * 0.7))
            for i in range(8)
        ]
        draw.polygon(points, fill=fill)
    elif style == CenterStyle.LEAF:
        draw.polygon(_leaf(x, y, size), fill=fill)
    else:
        _rect(draw, x, y, size, size, fill)


def _draw_ring_center(canvas: Image.Image, x: int, y: int, size: int, color: tuple[int, ...]) -> None:
    half = size / 2
    radius = half * 0.9
    _paste_through_mask(
        canvas, x, y, size, color,
        lambda d: _circle(d, half, half, radius, 255),
        lambda d: _circle(d, half, half, radius * 0.5, 0),
    )


def _frame_shapes(style: BorderStyle, corner: str, size: int):
    """Outer and hole drawing callables for a finder frame of side ``size``."""
    ring = size / FINDER_SIZE * (1.5 if style == BorderStyle.THICK else 1)
    inner = size - 2 * ring

    if style == BorderStyle.CIRCLE:
        half = size / 2
        return (
            lambda d: _circle(d, half, half, half, 255),
            lambda d: _circle(d, half, half, half - ring, 0),
        )

    if style in _FRAME_RADII:
        factor = _FRAME_RADII[style]
        return (
            lambda d: _rounded_rect(d, 0, 0, size, size * factor, 255),
            lambda d: _rounded_rect(d, ring, ring, inner, inner * factor, 0),
        )

    if style == BorderStyle.ROUNDED_INNER:
        return (
            lambda d: _rect(d, 0, 0, size, size, 255),
            lambda d: _rounded_rect(d, ring, ring, inner, inner * 0.2, 0),
        )

    if style in _LEAF_STYLES or style == BorderStyle.LEAF_MIXED:
        corners = _LEAF_CORNERS[_LEAF_STYLES.get(style, corner)]
        return (
            lambda d: _rounded_rect(d, 0, 0, size, size * _LEAF_RADIUS, 255, corners),
            lambda d: _rounded_rect(d, ring, ring, inner, inner * _LEAF_RADIUS, 0, corners),
        )

    return (
        lambda d: _rect(d, 0, 0, size, size, 255),
        lambda d: _rect(d, ring, ring, inner, inner, 0),
    )


def draw_finder_pattern(
    canvas: Image.Image,
    x: int,
    y: int,
    module: int,
    border: BorderStyle,
    center: CenterStyle,
    corner: str,
    dark: tuple[int, ...],
    light: tuple[int, ...],
) -> None:
    """
    Replace one finder pattern with a styled frame and center.

    Args:
        canvas: Target image
        x: Left pixel of the pattern
        y: Top pixel of the pattern
        module: Module size in pixels
        border: Frame style
        center: Center style
        corner: Which finder this is (tl, tr or bl); used by leaf-mixed frames
        dark: Foreground color
        light: Background color
    """
    size = FINDER_SIZE * module
    draw = ImageDraw.Draw(canvas)
    _rect(draw, x, y, size, size, light)

    outer, hole = _frame_shapes(border, corner, size)
    _paste_through_mask(canvas, x, y, size, dark, outer, hole)

    center_x = x + FINDER_CENTER_OFFSET * module
    center_y = y + FINDER_CENTER_OFFSET * module
    center_size = FINDER_CENTER_SIZE * module
    if center == CenterStyle.RING:
        _draw_ring_center(canvas, center_x, center_y, center_size, dark)
    else:
        draw_center(ImageDraw.Draw(canvas), center_x, center_y, center_size, center, dark)


def render_styled_qr(
    matrix: Sequence[Sequence[bool]],
    size: int,
    margin: int,
    dark: str,
    light: str,
    shape: ShapeStyle = ShapeStyle.SQUARE,
    border: BorderStyle = BorderStyle.SQUARE,
    center: CenterStyle = CenterStyle.SQUARE,
    supersample: int = 1,
) -> Image.Image:
    """
    Render a module matrix with custom shapes.

    Args:
        matrix: Rows of booleans (True = dark), without quiet zone
        size: Requested image side in pixels
        margin: Quiet zone width in modules
        dark: Foreground color
        light: Background color
        shape: Data module shape
        border: Finder frame style
        center: Finder center style
        supersample: Drawing scale factor before downsampling

    Returns:
        RGB image whose side is the largest multiple of the module count
        (including margins) that fits in ``size``

    Raises:
        ValueError: If ``size`` is too small to give each module a pixel
    """
    count = len(matrix)
    cells = count + 2 * margin
    module = size // cells
    if module < 1:
        raise ValueError(f"Size {size}px is too small for a {count}x{count} QR code")

    scale = max(1, supersample)
    actual = module * cells
    scaled_module = module * scale

    dark_rgb = ImageColor.getrgb(dark)[:3]
    light_rgb = ImageColor.getrgb(light)[:3]

    canvas = Image.new("RGB", (actual * scale, actual * scale), light_rgb)
    draw = ImageDraw.Draw(canvas)

    for y, row in enumerate(matrix):
        for x, is_dark in enumerate(row):
            if not is_dark or in_finder_pattern(x, y, count):
                continue
            draw_module(
                draw,
                (x + margin) * scaled_module,
                (y + margin) * scaled_module,
                scaled_module,
                shape,
                dark_rgb,
            )

    for fx, fy, corner in finder_origins(count):
        draw_finder_pattern(
            canvas,
            (fx + margin) * scaled_module,
            (fy + margin) * scaled_module,
            scaled_module,
            border,
            center,
            corner,
            dark_rgb,
            light_rgb,
        )

    if scale > 1:
        canvas = canvas.resize((actual, actual), Image.Resampling.LANCZOS)

    logger.debug(f"Rendered {count}x{count} QR at {actual}px (shape={shape.value}, border={border.value})")
    return canvas
