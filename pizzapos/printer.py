"""Order summary receipts on an ESC/POS thermal printer."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pizzapos.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_TAIL_SPACER_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from pizzapos.models import DELIVERY, OrderView
from pizzapos.rendering import format_money, order_type_label

logger = logging.getLogger(__name__)

RECEIPT_SEPARATOR = "__SEP__"
_SEPARATOR_HEIGHT_PX = 14
_SEPARATOR_THICKNESS_PX = 3
_LINE_EXTRA_PX = 12
_RECEIPT_TITLE = "Pizza Counter"
_FONT_OVERRIDE_ENV = "RECEIPT_PRINTER_FONT_PATH"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
)


def resolve_printer_font_path() -> str:
    """
    Resolve a printer font path.

    Resolution order:
    1. RECEIPT_PRINTER_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise RuntimeError(
        f"No usable printer font found. Set {_FONT_OVERRIDE_ENV} to a valid .ttf/.otf file. "
        f"Tried: {', '.join(seen)}"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether printer dependencies are importable."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        font_path = resolve_printer_font_path()
        ImageFont.truetype(font_path, PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer unavailable: {exc}")
    return (True, "Printer ready")


def _two_columns(left: str, right: str, width: int = 32) -> str:
    gap = max(1, width - len(left) - len(right))
    return f"{left}{' ' * gap}{right}"


def receipt_lines(order: OrderView) -> list[str]:
    """Lay out the order summary as printable text lines."""
    lines = [
        _RECEIPT_TITLE,
        f"Order #{order.display_id}",
        order.created_at.astimezone().strftime("%Y-%m-%d %H:%M"),
        RECEIPT_SEPARATOR,
        order_type_label(order.order_type),
    ]
    if order.order_type == DELIVERY:
        lines.extend(
            [
                f"Customer: {order.customer_name}",
                f"Address: {order.customer_address}",
                f"Location: {order.customer_location}",
            ]
        )
    else:
        lines.append(f"Table: {order.table_number}")
    lines.append(RECEIPT_SEPARATOR)

    for line in order.items:
        lines.append(_two_columns(f"{line.quantity}x {line.product_name}", format_money(line.subtotal)))
        if line.quantity > 1:
            lines.append(f"   @ {format_money(line.unit_price)}")

    lines.append(RECEIPT_SEPARATOR)
    lines.append(_two_columns("TOTAL", format_money(order.total_amount)))
    lines.append(f"Served by {order.creator_label}")
    return lines


def _render_line(text: str, font: object) -> object:
    from PIL import Image, ImageDraw

    canvas_height = PRINTER_FONT_SIZE + _LINE_EXTRA_PX
    img = Image.new("1", (PRINTER_WIDTH_PX, canvas_height), color=1)
    draw = ImageDraw.Draw(img)

    bbox = draw.textbbox((0, 0), text, font=font)
    text_height = bbox[3] - bbox[1]

    x = PRINTER_LEFT_INDENT_PX
    # Offset by bbox top so descenders (g, y, p, etc.) are not clipped.
    y = (canvas_height - text_height) // 2 - bbox[1]
    draw.text((x, y), text, font=font, fill=0)
    return img


def _render_separator() -> object:
    from PIL import Image, ImageDraw

    img = Image.new("1", (PRINTER_WIDTH_PX, _SEPARATOR_HEIGHT_PX), color=1)
    draw = ImageDraw.Draw(img)
    top = max(0, (_SEPARATOR_HEIGHT_PX - _SEPARATOR_THICKNESS_PX) // 2)
    bottom = min(_SEPARATOR_HEIGHT_PX - 1, top + _SEPARATOR_THICKNESS_PX - 1)
    draw.rectangle((0, top, PRINTER_WIDTH_PX - 1, bottom), fill=0)
    return img


def _render_spacer(height_px: int) -> object:
    from PIL import Image

    return Image.new("1", (PRINTER_WIDTH_PX, max(1, height_px)), color=1)


def print_order_receipt(order: OrderView, printer: object | None = None) -> None:
    """Print the order summary and cut the ticket at the end."""
    if not order.items:
        return

    try:
        from escpos.printer import Usb
        from PIL import ImageFont
    except Exception as exc:
        raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc

    if printer is None:
        printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    font = ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)

    for line in receipt_lines(order):
        if line == RECEIPT_SEPARATOR:
            printer.image(_render_separator())
            continue
        printer.image(_render_line(line, font))

    # Minimal extra tail for easier tearing.
    printer.image(_render_spacer(PRINTER_TAIL_SPACER_PX))
    printer.cut()
    logger.info("receipt_printed order_id=%s lines=%d", order.order_id, len(order.items))
