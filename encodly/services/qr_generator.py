"""QR code generation service.

Generates QR codes using qrcode + Pillow.
Supports:
- Custom colors (foreground/background)
- Styled data modules, finder frames and finder centers
- "Generated by Encodly" branding card
- Multiple formats (PNG, SVG, PDF)
"""

import base64
import io
import logging
import re
from dataclasses import dataclass
from enum import Enum
from html import escape
from typing import Optional
from urllib.parse import urlsplit

import qrcode
import qrcode.image.svg
from qrcode.exceptions import DataOverflowError
from PIL import Image, ImageColor, ImageDraw, ImageFont

from encodly.config import Config, get_config
from encodly.services.qr_renderer import (
    BorderStyle,
    CenterStyle,
    ShapeStyle,
    render_styled_qr,
)

logger = logging.getLogger(__name__)


class QRGenerationError(ValueError):
    """Raised when a QR code cannot be produced."""


class QRFormat(str, Enum):
    """QR code output formats."""
    PNG = "png"
    SVG = "svg"
    PDF = "pdf"


class ErrorCorrection(str, Enum):
    """QR error correction levels."""
    L = "L"  # 7% recovery
    M = "M"  # 15% recovery (default)
    Q = "Q"  # 25% recovery
    H = "H"  # 30% recovery


ERROR_CORRECTION_MAP = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}

BRANDING_PADDING = 12
BRANDING_CORNER_RADIUS = 8
BRANDING_FONT_FAMILY = "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif"

MIN_SIZE = 64
MAX_SIZE = 4096
MAX_MARGIN = 10


@dataclass(slots=True)
class QROptions:
    """QR code rendering options."""
    size: int = Config.QR_DEFAULT_SIZE
    margin: int = 2
    error_correction: ErrorCorrection = ErrorCorrection.M
    dark_color: str = "#000000"
    light_color: str = "#FFFFFF"
    show_branding: bool = True
    shape_style: ShapeStyle = ShapeStyle.SQUARE
    border_style: BorderStyle = BorderStyle.SQUARE
    center_style: CenterStyle = CenterStyle.SQUARE

    def __post_init__(self):
        """Validate options."""
        if self.size < MIN_SIZE or self.size > MAX_SIZE:
            self.size = Config.QR_DEFAULT_SIZE
        if self.margin < 0 or self.margin > MAX_MARGIN:
            self.margin = 2

        self.error_correction = ErrorCorrection(self.error_correction)
        self.shape_style = ShapeStyle(self.shape_style)
        self.border_style = BorderStyle(self.border_style)
        self.center_style = CenterStyle(self.center_style)

        for color in (self.dark_color, self.light_color):
            ImageColor.getrgb(color)

    @property
    def is_standard(self) -> bool:
        """True when every style is plain squares."""
        return (
            self.shape_style == ShapeStyle.SQUARE
            and self.border_style == BorderStyle.SQUARE
            and self.center_style == CenterStyle.SQUARE
        )

    def to_dict(self) -> dict:
        return {
            "size": self.size,
            "margin": self.margin,
            "error_correction": self.error_correction.value,
            "dark_color": self.dark_color,
            "light_color": self.light_color,
            "show_branding": self.show_branding,
            "shape_style": self.shape_style.value,
            "border_style": self.border_style.value,
            "center_style": self.center_style.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "QROptions":
        """Build options from a stored dict, ignoring unknown keys."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)


@dataclass(slots=True, frozen=True)
class QRInputValidation:
    """Result of checking text before encoding."""
    is_valid: bool
    error: Optional[str] = None


def validate_qr_input(text: str, max_length: int = Config.QR_MAX_INPUT_LENGTH) -> QRInputValidation:
    """Check that text is non-blank and short enough to encode."""
    if not text.strip():
        return QRInputValidation(False, "Please enter some text or URL")
    if len(text) > max_length:
        return QRInputValidation(False, f"Text is too long (max {max_length} characters)")
    return QRInputValidation(True)


_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")


def is_valid_url(text: str) -> bool:
    """True when text parses as an absolute URL (any scheme)."""
    if not text or any(ch.isspace() for ch in text):
        return False
    parts = urlsplit(text)
    if not parts.scheme or not _SCHEME_PATTERN.match(parts.scheme):
        return False
    return bool(parts.netloc or parts.path)


def get_qr_code_type(text: str) -> str:
    return "url" if is_valid_url(text) else "text"


def branding_metrics(size: int) -> tuple[int, int]:
    """Branding band height and font size for a QR image size."""
    if size <= 128:
        return 30, 14
    if size <= 256:
        return 40, 18
    if size <= 512:
        return 50, 24
    return 60, 48


def build_matrix(text: str, error_correction: ErrorCorrection = ErrorCorrection.M) -> list[list[bool]]:
    """Module matrix (True = dark) without the quiet zone."""
    return [[bool(cell) for cell in row] for row in _make_qr(text, error_correction).modules]


def _make_qr(text: str, error_correction: ErrorCorrection) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,  # Auto-size
        error_correction=ERROR_CORRECTION_MAP[ErrorCorrection(error_correction).value],
        border=0,
    )
    qr.add_data(text)
    qr.make(fit=True)
    return qr


class QRGenerator:
    """QR code generator with styling options."""

    def __init__(self, supersample: Optional[int] = None):
        """Initialize QR generator.

        Args:
            supersample: Drawing scale for styled rendering; defaults to
                the active configuration's QR_SUPERSAMPLE.
        """
        self.supersample = supersample if supersample is not None else get_config().QR_SUPERSAMPLE

    def generate(
        self,
        text: str,
        options: Optional[QROptions] = None,
        output_format: QRFormat = QRFormat.PNG,
    ) -> bytes:
        """Generate a QR code as bytes.

        Args:
            text: Text or URL to encode.
            options: Rendering options.
            output_format: Output format (PNG, SVG, PDF).

        Returns:
            Encoded image (SVG as UTF-8).

        Raises:
            QRGenerationError: If the input is invalid or rendering fails.
        """
        options = options or QROptions()
        validation = validate_qr_input(text)
        if not validation.is_valid:
            raise QRGenerationError(validation.error)

        if output_format == QRFormat.SVG:
            return self.render_svg(text, options).encode("utf-8")
        elif output_format == QRFormat.PDF:
            return self._generate_pdf(text, options)
        else:
            return self._image_bytes(self.render_image(text, options), "PNG")

    def render_image(self, text: str, options: QROptions) -> Image.Image:
        """Render the QR code (with branding when enabled) as a Pillow image."""
        try:
            qr = _make_qr(text, options.error_correction)
            if options.is_standard:
                img = self._standard_image(qr, options)
            else:
                img = render_styled_qr(
                    qr.modules,
                    size=options.size,
                    margin=options.margin,
                    dark=options.dark_color,
                    light=options.light_color,
                    shape=options.shape_style,
                    border=options.border_style,
                    center=options.center_style,
                    supersample=self.supersample,
                )
        except (DataOverflowError, ValueError) as e:
            logger.error(f"QR rendering failed for {len(text)} characters: {e}")
            raise QRGenerationError(f"Failed to generate QR code: {e}") from e

        if options.show_branding:
            img = self._add_branding(img, options)
        return img

    def _standard_image(self, qr: qrcode.QRCode, options: QROptions) -> Image.Image:
        cells = qr.modules_count + 2 * options.margin
        module = options.size // cells
        if module < 1:
            raise ValueError(f"Size {options.size}px is too small for a {qr.modules_count}x{qr.modules_count} QR code")

        qr.box_size = module
        qr.border = options.margin
        img = qr.make_image(
            fill_color=options.dark_color,
            back_color=options.light_color,
        ).get_image()

        # Convert to RGB if needed
        if img.mode != "RGB":
            img = img.convert("RGB")
        return img

    def _add_branding(self, qr_img: Image.Image, options: QROptions) -> Image.Image:
        """Place the QR code on a rounded card with the branding line below."""
        size = options.size
        band_height, font_size = branding_metrics(size)
        padding = BRANDING_PADDING
        width = size + padding * 2
        height = size + band_height + padding * 2

        card = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(card)
        draw.rounded_rectangle(
            [0, 0, width - 1, height - 1],
            radius=BRANDING_CORNER_RADIUS,
            fill=options.light_color,
        )

        if qr_img.size != (size, size):
            qr_img = qr_img.resize((size, size), Image.Resampling.NEAREST)
        card.paste(qr_img, (padding, padding))

        font = ImageFont.load_default(size=font_size)
        text = get_config().QR_BRANDING_TEXT
        left, _, right, bottom = draw.textbbox((0, 0), text, font=font)
        baseline = size + padding + band_height * 0.7
        draw.text(
            ((width - (right - left)) / 2 - left, baseline - bottom),
            text,
            font=font,
            fill=options.dark_color,
        )
        return card

    def render_svg(self, text: str, options: QROptions) -> str:
        """Render the QR code as an SVG document.

        The module path comes from qrcode's SvgPathImage factory. Shape styles
        are raster-only; the SVG always uses plain squares.
        """
        try:
            qr = _make_qr(text, options.error_correction)
        except (DataOverflowError, ValueError) as e:
            raise QRGenerationError(f"Failed to generate QR code SVG: {e}") from e

        # qrcode maps a box_size of 10 to one viewBox unit per module
        qr.box_size = 10
        qr.border = options.margin
        img = qr.make_image(image_factory=qrcode.image.svg.SvgPathImage)

        svg = img.get_image()
        svg.set("shape-rendering", "crispEdges")
        img.path.set("fill", options.dark_color)

        # Add background rect
        svg.insert(0, svg.makeelement("rect", {"width": "100%", "height": "100%", "fill": options.light_color}))

        if not options.show_branding:
            svg.set("width", str(options.size))
            svg.set("height", str(options.size))
            return img.to_string(encoding="unicode")

        size = options.size
        band_height, font_size = branding_metrics(size)
        padding = BRANDING_PADDING
        radius = BRANDING_CORNER_RADIUS
        width = size + padding * 2
        height = size + band_height + padding * 2
        text_y = size + padding + band_height * 0.7
        label = escape(get_config().QR_BRANDING_TEXT)
        dark = escape(options.dark_color, quote=True)
        light = escape(options.light_color, quote=True)

        svg.set("x", str(padding))
        svg.set("y", str(padding))
        svg.set("width", str(size))
        svg.set("height", str(size))

        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
            f'viewBox="0 0 {width} {height}">'
            f'<defs><clipPath id="roundedCorners">'
            f'<rect width="{width}" height="{height}" rx="{radius}" ry="{radius}"/>'
            f'</clipPath></defs>'
            f'<g clip-path="url(#roundedCorners)">'
            f'<rect width="{width}" height="{height}" rx="{radius}" ry="{radius}" fill="{light}"/>'
            f'{img.to_string(encoding="unicode")}'
            f'<text x="{width / 2:g}" y="{text_y:g}" text-anchor="middle" '
            f'font-family="{BRANDING_FONT_FAMILY}" font-size="{font_size}" fill="{dark}">{label}</text>'
            f'</g></svg>'
        )

    def _generate_pdf(self, text: str, options: QROptions) -> bytes:
        """Generate PDF QR code from the raster rendering."""
        img = self.render_image(text, options)

        # PDF has no alpha channel
        if img.mode != "RGB":
            background = Image.new("RGB", img.size, "#FFFFFF")
            background.paste(img, mask=img.getchannel("A") if img.mode == "RGBA" else None)
            img = background

        return self._image_bytes(img, "PDF", resolution=300)

    @staticmethod
    def _image_bytes(img: Image.Image, fmt: str, **params) -> bytes:
        buffer = io.BytesIO()
        img.save(buffer, format=fmt, **params)
        return buffer.getvalue()


# Global generator instance
_qr_generator: Optional[QRGenerator] = None


def get_qr_generator() -> QRGenerator:
    """Get the global QR generator.

    Returns:
        QRGenerator instance.
    """
    global _qr_generator

    if _qr_generator is None:
        _qr_generator = QRGenerator()

    return _qr_generator


def generate_qr_code(text: str, options: Optional[QROptions] = None) -> bytes:
    """Generate a PNG QR code.

    Args:
        text: Text or URL to encode.
        options: Rendering options (defaults apply when omitted).

    Returns:
        PNG bytes.
    """
    return get_qr_generator().generate(text, options, QRFormat.PNG)


def generate_qr_code_svg(text: str, options: Optional[QROptions] = None) -> str:
    """Generate an SVG QR code document."""
    return get_qr_generator().generate(text, options, QRFormat.SVG).decode("utf-8")


def generate_qr_code_pdf(text: str, options: Optional[QROptions] = None) -> bytes:
    return get_qr_generator().generate(text, options, QRFormat.PDF)


def format_from_filename(path: str) -> QRFormat:
    """Pick the output format from a file extension (defaults to PNG)."""
    extension = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    try:
        return QRFormat(extension)
    except ValueError:
        return QRFormat.PNG


def to_data_url(png_bytes: bytes) -> str:
    """Wrap PNG bytes in a data: URL."""
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
