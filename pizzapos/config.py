"""Runtime configuration defaults for persistence, storage and printing."""

from __future__ import annotations

import logging
import os
from pathlib import Path

DB_PATH = os.environ.get("PIZZAPOS_DB_PATH", "data/pizzapos.db")
STORAGE_ROOT = os.environ.get("PIZZAPOS_STORAGE_ROOT", "data/storage")
LOG_PATH = os.environ.get("PIZZAPOS_LOG_PATH", "/tmp/pizzapos-debug.log")

CURRENCY_PLACES = 2
CURRENCY_SYMBOL = "$"

SALES_BUCKET = "sales"
LISTINGS_BUCKET = "listings"

DEFAULT_ADMIN_EMAIL = "admin@pizzapos.local"
DEFAULT_ADMIN_NAME = "System Administrator"

PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 28
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_LEFT_INDENT_PX = 8
PRINTER_TAIL_SPACER_PX = 70

_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def configure_logging(path: str | None = None) -> None:
    """Attach a file handler to the package logger once."""
    logger = logging.getLogger("pizzapos")
    if logger.handlers:
        return
    logger.setLevel(logging.DEBUG)
    log_file = Path(path or LOG_PATH)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError:
        # Logging must never interfere with app flow.
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
