"""SQLite persistence for the catalog, employees, orders and reports."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Iterator, Sequence
from uuid import uuid4

from pizzapos.config import DB_PATH
from pizzapos.errors import NotFound, PersistenceError, ValidationError
from pizzapos.models import (
    PENDING,
    AutoReportSettings,
    Employee,
    OrderDetails,
    OrderItem,
    OrderLine,
    OrderView,
    Product,
    ProductListing,
    SalesReport,
    to_money,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS employees (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
    full_name TEXT,
    role TEXT NOT NULL DEFAULT 'employee' CHECK (role IN ('employee', 'admin')),
    password_hash TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS products (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    price TEXT NOT NULL CHECK (CAST(price AS REAL) >= 0),
    image_url TEXT,
    description TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    quantity INTEGER NOT NULL DEFAULT 0 CHECK (quantity >= 0),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS orders (
    id TEXT PRIMARY KEY,
    employee_id TEXT NOT NULL,
    order_type TEXT NOT NULL CHECK (order_type IN ('dine_in', 'delivery')),
    table_number INTEGER,
    customer_name TEXT,
    customer_address TEXT,
    customer_location TEXT,
    total_amount TEXT NOT NULL DEFAULT '0.00',
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'in_progress', 'completed', 'cancelled')),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY(employee_id) REFERENCES employees(id) ON DELETE RESTRICT
);

CREATE TABLE IF NOT EXISTS order_items (
    id TEXT PRIMARY KEY,
    order_id TEXT NOT NULL,
    line_index INTEGER NOT NULL,
    product_id TEXT NOT NULL,
    quantity INTEGER NOT NULL CHECK (quantity > 0),
    unit_price TEXT NOT NULL,
    subtotal TEXT NOT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY(order_id) REFERENCES orders(id) ON DELETE CASCADE,
    FOREIGN KEY(product_id) REFERENCES products(id) ON DELETE RESTRICT
);

CREATE TABLE IF NOT EXISTS sales_reports (
    id TEXT PRIMARY KEY,
    report_date TEXT NOT NULL UNIQUE,
    total_orders INTEGER NOT NULL DEFAULT 0,
    total_revenue TEXT NOT NULL DEFAULT '0.00',
    report_data TEXT,
    file_path TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS product_listings (
    id TEXT PRIMARY KEY,
    listing_name TEXT NOT NULL,
    file_path TEXT NOT NULL,
    listing_data TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS auto_report_settings (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    updated_by TEXT,
    report_time TEXT NOT NULL DEFAULT '00:00:00',
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_orders_created_at ON orders(created_at);
CREATE INDEX IF NOT EXISTS idx_order_items_order_id_line ON order_items(order_id, line_index);
CREATE INDEX IF NOT EXISTS idx_products_quantity ON products(quantity);
"""

# Columns added after the first schema version: (table, column, DDL).
_ADDITIVE_COLUMNS = (
    ("products", "quantity", "ALTER TABLE products ADD COLUMN quantity INTEGER NOT NULL DEFAULT 0"),
    ("employees", "is_active", "ALTER TABLE employees ADD COLUMN is_active INTEGER NOT NULL DEFAULT 1"),
)

_ORDER_SELECT = """
    SELECT o.*, e.full_name AS creator_name, e.email AS creator_email
    FROM orders o
    LEFT JOIN employees e ON e.id = o.employee_id
"""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    """Normalize to a fixed-width UTC ISO string so text ordering is time ordering."""
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _money(value: str | None) -> Decimal:
    return to_money(value or "0")


class Store:
    """Connection factory plus typed reads and writes over the SQLite file."""

    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection whose statements commit together or not at all."""
        try:
            conn = self._connect()
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceError(f"Cannot open database {self.db_path}: {exc}") from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            logger.warning("store_error db=%s error=%r", self.db_path, exc)
            raise PersistenceError(str(exc)) from exc
        finally:
            conn.close()

    def bootstrap_schema(self) -> None:
        """Create persistence schema if it does not already exist."""
        with self.transaction() as conn:
            conn.executescript(_SCHEMA)
            for table, column, ddl in _ADDITIVE_COLUMNS:
                columns = {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}
                if column not in columns:
                    conn.execute(ddl)

    # products

    def insert_product(
        self,
        name: str,
        price: Decimal,
        image_url: str | None = None,
        description: str | None = None,
        quantity: int = 0,
        is_active: bool = True,
    ) -> Product:
        product = Product(
            product_id=uuid4().hex,
            name=name,
            price=to_money(price),
            image_url=image_url,
            description=description,
            is_active=is_active,
            quantity=quantity,
        )
        now = to_db_timestamp(utc_now())
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO products
                    (id, name, price, image_url, description, is_active, quantity, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    product.product_id,
                    product.name,
                    str(product.price),
                    product.image_url,
                    product.description,
                    int(product.is_active),
                    product.quantity,
                    now,
                    now,
                ),
            )
        return product

    def update_product(self, product: Product) -> Product:
        with self.transaction() as conn:
            cur = conn.execute(
                """
                UPDATE products
                SET name = ?, price = ?, image_url = ?, description = ?, is_active = ?, quantity = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    product.name,
                    str(to_money(product.price)),
                    product.image_url,
                    product.description,
                    int(product.is_active),
                    product.quantity,
                    to_db_timestamp(utc_now()),
                    product.product_id,
                ),
            )
            if cur.rowcount == 0:
                raise NotFound(f"Product {product.product_id} not found")
        return product

    def set_product_active(self, product_id: str, is_active: bool) -> None:
        with self.transaction() as conn:
            cur = conn.execute(
                "UPDATE products SET is_active = ?, updated_at = ? WHERE id = ?",
                (int(is_active), to_db_timestamp(utc_now()), product_id),
            )
            if cur.rowcount == 0:
                raise NotFound(f"Product {product_id} not found")

    def get_product(self, product_id: str) -> Product:
        with self.transaction() as conn:
            row = conn.execute("SELECT * FROM products WHERE id = ?", (product_id,)).fetchone()
        if row is None:
            raise NotFound(f"Product {product_id} not found")
        return _product_from_row(row)

    def list_products(self, active_only: bool = False) -> list[Product]:
        query = "SELECT * FROM products"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY name COLLATE NOCASE"
        with self.transaction() as conn:
            rows = conn.execute(query).fetchall()
        return [_product_from_row(row) for row in rows]

    def count_active_products(self) -> int:
        with self.transaction() as conn:
            return int(conn.execute("SELECT COUNT(*) FROM products WHERE is_active = 1").fetchone()[0])

    # employees

    def insert_employee(self, email: str, password_hash: str, full_name: str | None, role: str) -> Employee:
        employee_id = uuid4().hex
        created_at = utc_now()
        now = to_db_timestamp(created_at)
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO employees (id, email, full_name, role, password_hash, is_active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, 1, ?, ?)
                """,
                (employee_id, email.strip(), full_name, role, password_hash, now, now),
            )
        return Employee(employee_id, email.strip(), full_name, role, True, created_at)

    def get_employee(self, employee_id: str) -> Employee:
        with self.transaction() as conn:
            row = conn.execute("SELECT * FROM employees WHERE id = ?", (employee_id,)).fetchone()
        if row is None:
            raise NotFound(f"Employee {employee_id} not found")
        return _employee_from_row(row)

    def find_employee_credentials(self, email: str) -> tuple[Employee, str] | None:
        """Return the employee and stored password hash for an email, if any."""
        with self.transaction() as conn:
            row = conn.execute("SELECT * FROM employees WHERE email = ?", (email.strip(),)).fetchone()
        if row is None:
            return None
        return (_employee_from_row(row), row["password_hash"])

    def list_employees(self) -> list[Employee]:
        with self.transaction() as conn:
            rows = conn.execute("SELECT * FROM employees ORDER BY created_at DESC").fetchall()
        return [_employee_from_row(row) for row in rows]

    def update_employee(self, employee_id: str, **fields: object) -> None:
        allowed = {"full_name", "role", "is_active", "password_hash"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(f"Cannot update employee fields: {', '.join(sorted(unknown))}")
        if not fields:
            return
        assignments = ", ".join(f"{name} = ?" for name in fields)
        values = [int(v) if isinstance(v, bool) else v for v in fields.values()]
        with self.transaction() as conn:
            cur = conn.execute(
                f"UPDATE employees SET {assignments}, updated_at = ? WHERE id = ?",
                (*values, to_db_timestamp(utc_now()), employee_id),
            )
            if cur.rowcount == 0:
                raise NotFound(f"Employee {employee_id} not found")

    # orders

    def insert_order(
        self,
        employee_id: str,
        details: OrderDetails,
        items: Sequence[OrderItem],
        total_amount: Decimal,
        created_at: datetime | None = None,
    ) -> str:
        """Persist an order and all its line items in one transaction."""
        order_id = uuid4().hex
        created = to_db_timestamp(created_at or utc_now())
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO orders
                    (id, employee_id, order_type, table_number, customer_name, customer_address,
                     customer_location, total_amount, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    order_id,
                    employee_id,
                    details.order_type,
                    details.table_number,
                    details.customer_name,
                    details.customer_address,
                    details.customer_location,
                    str(to_money(total_amount)),
                    PENDING,
                    created,
                    created,
                ),
            )
            conn.executemany(
                """
                INSERT INTO order_items
                    (id, order_id, line_index, product_id, quantity, unit_price, subtotal, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        uuid4().hex,
                        order_id,
                        idx,
                        item.product_id,
                        item.quantity,
                        str(to_money(item.unit_price)),
                        str(to_money(item.subtotal)),
                        created,
                    )
                    for idx, item in enumerate(items)
                ],
            )
        return order_id

    def update_order_status(self, order_id: str, status: str) -> None:
        """Update status for a persisted order."""
        with self.transaction() as conn:
            cur = conn.execute(
                "UPDATE orders SET status = ?, updated_at = ? WHERE id = ?",
                (status, to_db_timestamp(utc_now()), order_id),
            )
            if cur.rowcount == 0:
                raise NotFound(f"Order {order_id} not found")

    def get_order(self, order_id: str) -> OrderView:
        with self.transaction() as conn:
            row = conn.execute(f"{_ORDER_SELECT} WHERE o.id = ?", (order_id,)).fetchone()
            if row is None:
                raise NotFound(f"Order {order_id} not found")
            lines = _fetch_lines(conn, "o.id = ?", [order_id])
        return _order_from_row(row, lines.get(order_id, ()))

    def fetch_orders(
        self,
        status: str | None = None,
        order_type: str | None = None,
        created_from: datetime | None = None,
        created_before: datetime | None = None,
    ) -> list[OrderView]:
        """Read orders with their lines and creator, newest first."""
        where, params = _order_where(status, order_type, created_from, created_before)
        query = f"{_ORDER_SELECT} WHERE {where} ORDER BY o.created_at DESC"

        with self.transaction() as conn:
            rows = conn.execute(query, params).fetchall()
            lines = _fetch_lines(conn, where, params)
        return [_order_from_row(row, lines.get(row["id"], ())) for row in rows]

    def count_orders(self) -> tuple[int, int]:
        """Return (all orders, pending orders)."""
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total, COALESCE(SUM(status = ?), 0) AS pending FROM orders",
                (PENDING,),
            ).fetchone()
        return (int(row["total"]), int(row["pending"]))

    def sum_order_totals(self, created_from: datetime, created_before: datetime) -> Decimal:
        """Exact sum of order totals created in [created_from, created_before)."""
        where, params = _order_where(created_from=created_from, created_before=created_before)
        with self.transaction() as conn:
            rows = conn.execute(f"SELECT o.total_amount FROM orders o WHERE {where}", params).fetchall()
        return to_money(sum((_money(row["total_amount"]) for row in rows), Decimal(0)))

    # reports

    def upsert_sales_report(
        self,
        report_date: date,
        total_orders: int,
        total_revenue: Decimal,
        report_data: dict,
        file_path: str | None,
    ) -> SalesReport:
        now = to_db_timestamp(utc_now())
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO sales_reports
                    (id, report_date, total_orders, total_revenue, report_data, file_path, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(report_date) DO UPDATE SET
                    total_orders = excluded.total_orders,
                    total_revenue = excluded.total_revenue,
                    report_data = excluded.report_data,
                    file_path = excluded.file_path,
                    updated_at = excluded.updated_at
                """,
                (
                    uuid4().hex,
                    report_date.isoformat(),
                    total_orders,
                    str(to_money(total_revenue)),
                    json.dumps(report_data),
                    file_path,
                    now,
                    now,
                ),
            )
        return SalesReport(report_date, total_orders, to_money(total_revenue), file_path, report_data)

    def list_sales_reports(self) -> list[SalesReport]:
        with self.transaction() as conn:
            rows = conn.execute("SELECT * FROM sales_reports ORDER BY report_date DESC").fetchall()
        return [
            SalesReport(
                report_date=date.fromisoformat(row["report_date"]),
                total_orders=int(row["total_orders"]),
                total_revenue=_money(row["total_revenue"]),
                file_path=row["file_path"],
                report_data=json.loads(row["report_data"] or "{}"),
            )
            for row in rows
        ]

    def insert_product_listing(self, listing_name: str, file_path: str, listing_data: dict) -> ProductListing:
        listing = ProductListing(
            listing_id=uuid4().hex,
            listing_name=listing_name,
            file_path=file_path,
            listing_data=listing_data,
            created_at=utc_now(),
        )
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO product_listings (id, listing_name, file_path, listing_data, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    listing.listing_id,
                    listing.listing_name,
                    listing.file_path,
                    json.dumps(listing.listing_data),
                    to_db_timestamp(listing.created_at),
                ),
            )
        return listing

    def list_product_listings(self) -> list[ProductListing]:
        with self.transaction() as conn:
            rows = conn.execute("SELECT * FROM product_listings ORDER BY created_at DESC").fetchall()
        return [
            ProductListing(
                listing_id=row["id"],
                listing_name=row["listing_name"],
                file_path=row["file_path"],
                listing_data=json.loads(row["listing_data"] or "{}"),
                created_at=_from_db_timestamp(row["created_at"]),
            )
            for row in rows
        ]

    # settings

    def get_auto_report_settings(self) -> AutoReportSettings:
        with self.transaction() as conn:
            row = conn.execute("SELECT * FROM auto_report_settings WHERE id = 1").fetchone()
        if row is None:
            return AutoReportSettings()
        return AutoReportSettings(
            report_time=row["report_time"],
            is_active=bool(row["is_active"]),
            updated_by=row["updated_by"],
        )

    def save_auto_report_settings(self, settings: AutoReportSettings) -> None:
        now = to_db_timestamp(utc_now())
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT INTO auto_report_settings (id, updated_by, report_time, is_active, created_at, updated_at)
                VALUES (1, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    updated_by = excluded.updated_by,
                    report_time = excluded.report_time,
                    is_active = excluded.is_active,
                    updated_at = excluded.updated_at
                """,
                (settings.updated_by, settings.report_time, int(settings.is_active), now, now),
            )


def _order_where(
    status: str | None = None,
    order_type: str | None = None,
    created_from: datetime | None = None,
    created_before: datetime | None = None,
) -> tuple[str, list[object]]:
    """Build a WHERE clause over the `o` orders alias; "1=1" when unfiltered."""
    clauses: list[str] = []
    params: list[object] = []
    if status is not None:
        clauses.append("o.status = ?")
        params.append(status)
    if order_type is not None:
        clauses.append("o.order_type = ?")
        params.append(order_type)
    if created_from is not None:
        clauses.append("o.created_at >= ?")
        params.append(to_db_timestamp(created_from))
    if created_before is not None:
        clauses.append("o.created_at < ?")
        params.append(to_db_timestamp(created_before))
    return (" AND ".join(clauses) or "1=1", params)


def _fetch_lines(conn: sqlite3.Connection, where: str, params: Sequence[object]) -> dict[str, tuple[OrderLine, ...]]:
    # Lines of every order matching `where`, keyed by order id.
    rows = conn.execute(
        f"""
        SELECT oi.*, p.name AS product_name
        FROM order_items oi
        JOIN orders o ON o.id = oi.order_id
        JOIN products p ON p.id = oi.product_id
        WHERE {where}
        ORDER BY oi.order_id, oi.line_index
        """,
        list(params),
    ).fetchall()

    grouped: dict[str, list[OrderLine]] = {}
    for row in rows:
        grouped.setdefault(row["order_id"], []).append(
            OrderLine(
                line_id=row["id"],
                product_id=row["product_id"],
                product_name=row["product_name"],
                quantity=int(row["quantity"]),
                unit_price=_money(row["unit_price"]),
                subtotal=_money(row["subtotal"]),
            )
        )
    return {order_id: tuple(lines) for order_id, lines in grouped.items()}


def _product_from_row(row: sqlite3.Row) -> Product:
    return Product(
        product_id=row["id"],
        name=row["name"],
        price=_money(row["price"]),
        image_url=row["image_url"],
        description=row["description"],
        is_active=bool(row["is_active"]),
        quantity=int(row["quantity"]),
    )


def _employee_from_row(row: sqlite3.Row) -> Employee:
    return Employee(
        employee_id=row["id"],
        email=row["email"],
        full_name=row["full_name"],
        role=row["role"],
        is_active=bool(row["is_active"]),
        created_at=_from_db_timestamp(row["created_at"]),
    )


def _order_from_row(row: sqlite3.Row, lines: tuple[OrderLine, ...]) -> OrderView:
    return OrderView(
        order_id=row["id"],
        employee_id=row["employee_id"],
        order_type=row["order_type"],
        total_amount=_money(row["total_amount"]),
        status=row["status"],
        created_at=_from_db_timestamp(row["created_at"]),
        table_number=row["table_number"],
        customer_name=row["customer_name"],
        customer_address=row["customer_address"],
        customer_location=row["customer_location"],
        creator_name=row["creator_name"],
        creator_email=row["creator_email"],
        items=lines,
    )
