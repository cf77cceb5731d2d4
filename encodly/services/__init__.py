"""QR code services."""

from encodly.services.qr_generator import (
    QRGenerationError,
    QRGenerator,
    QROptions,
    generate_qr_code,
    generate_qr_code_pdf,
    generate_qr_code_svg,
    get_qr_generator,
)
from encodly.services.qr_renderer import (
    BorderStyle,
    CenterStyle,
    ShapeStyle,
    render_styled_qr,
)

__all__ = [
    "QRGenerationError",
    "QRGenerator",
    "QROptions",
    "generate_qr_code",
    "generate_qr_code_pdf",
    "generate_qr_code_svg",
    "get_qr_generator",
    "BorderStyle",
    "CenterStyle",
    "ShapeStyle",
    "render_styled_qr",
]
