"""Entry point for the pizzapos Textual app."""

from __future__ import annotations

from pizzapos.config import DB_PATH, STORAGE_ROOT, configure_logging
from pizzapos.persistence import Store
from pizzapos.pos_app import PizzaPosApp
from pizzapos.storage import BlobStore


def main() -> None:
    configure_logging()
    app = PizzaPosApp(Store(DB_PATH), BlobStore(STORAGE_ROOT))
    app.run()


if __name__ == "__main__":
    main()
