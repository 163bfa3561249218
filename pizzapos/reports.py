"""Daily sales reports and product-listing exports."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from decimal import Decimal

from pizzapos.accounts import require_admin
from pizzapos.config import LISTINGS_BUCKET, SALES_BUCKET
from pizzapos.models import Actor, OrderView, Product, ProductListing, SalesReport, to_money
from pizzapos.persistence import Store, utc_now
from pizzapos.queries import orders_for_day
from pizzapos.storage import BlobStore

logger = logging.getLogger(__name__)


def _money_json(value: Decimal) -> float:
    return float(to_money(value))


def _order_document(order: OrderView) -> dict:
    return {
        "id": order.order_id,
        "type": order.order_type,
        "status": order.status,
        "amount": _money_json(order.total_amount),
        "createdAt": order.created_at.isoformat(),
        "employee": order.creator_label,
        "items": [
            {
                "product": line.product_name,
                "quantity": line.quantity,
                "price": _money_json(line.unit_price),
                "subtotal": _money_json(line.subtotal),
            }
            for line in order.items
        ],
    }


def build_sales_document(reference_date: date, orders: list[OrderView]) -> dict:
    """Serialize one day's orders plus their count and revenue."""
    total_revenue = to_money(sum((order.total_amount for order in orders), Decimal(0)))
    return {
        "date": reference_date.isoformat(),
        "totalOrders": len(orders),
        "totalRevenue": _money_json(total_revenue),
        "orders": [_order_document(order) for order in orders],
    }


def sales_report_path(reference_date: date) -> str:
    """Storage key for a day's report: <year>/<month>/sales-<date>.json."""
    file_name = f"sales-{reference_date.isoformat()}.json"
    return f"{reference_date.year}/{reference_date.month}/{file_name}"


def generate_sales_report(store: Store, blobs: BlobStore, actor: Actor, reference_date: date) -> SalesReport:
    """Snapshot a day's orders into the report table and a JSON file.

    Re-generating a date overwrites both the report row and the stored file.
    """
    require_admin(actor)
    orders = orders_for_day(store, reference_date)
    document = build_sales_document(reference_date, orders)
    total_revenue = to_money(sum((order.total_amount for order in orders), Decimal(0)))

    payload = json.dumps(document, indent=2).encode("utf-8")
    path = blobs.upload(SALES_BUCKET, sales_report_path(reference_date), payload, upsert=True)
    report = store.upsert_sales_report(
        report_date=reference_date,
        total_orders=len(orders),
        total_revenue=total_revenue,
        report_data=document,
        file_path=path,
    )
    logger.info(
        "sales_report date=%s orders=%d revenue=%s path=%s by=%s",
        reference_date,
        len(orders),
        total_revenue,
        path,
        actor.employee_id,
    )
    return report


def list_sales_reports(store: Store, actor: Actor) -> list[SalesReport]:
    require_admin(actor)
    return store.list_sales_reports()


def download_report(blobs: BlobStore, actor: Actor, report: SalesReport) -> dict:
    require_admin(actor)
    path = report.file_path or sales_report_path(report.report_date)
    return json.loads(blobs.download(SALES_BUCKET, path).decode("utf-8"))


def _product_document(product: Product) -> dict:
    return {
        "id": product.product_id,
        "name": product.name,
        "price": _money_json(product.price),
        "description": product.description,
        "image_url": product.image_url,
        "is_active": product.is_active,
        "quantity": product.quantity,
    }


def export_product_listing(
    store: Store,
    blobs: BlobStore,
    actor: Actor,
    now: datetime | None = None,
) -> ProductListing:
    """Write the full catalog to a timestamped file and record the listing."""
    require_admin(actor)
    now = now or utc_now()
    products = store.list_products()
    document = {
        "exportDate": now.isoformat(),
        "products": [_product_document(product) for product in products],
    }
    file_name = f"product-listing-{now.strftime('%Y-%m-%dT%H-%M-%S-%f')}.json"
    path = blobs.upload(LISTINGS_BUCKET, file_name, json.dumps(document, indent=2).encode("utf-8"))
    listing = store.insert_product_listing(file_name, path, document)
    logger.info("product_listing file=%s products=%d by=%s", file_name, len(products), actor.employee_id)
    return listing
