"""Inventory repository: products, stock units, pricing tiers and reservations.

Maps DynamoDB items to validated records. Catalog amounts are stored as
integer minor units; reservation totals are stored as DECIMAL major units and
converted here.

Each stock unit item carries ``lock_version`` and the set of reservation ids
currently holding it. A reservation is written in one transaction together
with its line items and a conditional bump of every chosen unit's
``lock_version``, so two writers that resolved availability from the same
snapshot of a unit cannot both commit.
"""

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Key

from rental_shared.models import (
    CustomerDetails,
    OrderStatus,
    PaymentStatus,
    PricingTier,
    Product,
    Reservation,
    StockUnit,
)
from rental_shared.utils.logging import get_logger
from rental_shared.utils.money import cents_to_decimal

from .dynamodb import serialize_item

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


class InventoryRepository:
    """Data access for the rental catalog and its reservations."""

    PRODUCTS = "products"
    STOCK_ITEMS = "stock-items"
    RESERVATIONS = "reservations"
    RESERVATION_ITEMS = "reservation-items"
    PRICING_TIERS = "pricing-tiers"

    STOCK_PRODUCT_INDEX = "product_id-index"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    # Products

    def get_product(self, product_id: str) -> Product | None:
        item = self.db.get_item(self.PRODUCTS, {"product_id": product_id})
        if not item:
            return None
        return self._item_to_product(item)

    def list_products(self) -> list[Product]:
        """All products ordered by name. The catalog is small, so a scan is fine."""
        products = [self._item_to_product(item) for item in self.db.scan(self.PRODUCTS)]
        return sorted(products, key=lambda p: (p.name, p.product_id))

    # Stock units

    def list_stock_units(
        self, product_id: str, consistent: bool = False
    ) -> list[StockUnit]:
        """Stock units of a product ordered by id.

        Args:
            product_id: Owning product
            consistent: Re-read the units with strongly consistent reads so
                their ``lock_version`` is current (the GSI is eventually
                consistent)

        Returns:
            List of StockUnit
        """
        items = self.db.query_by_gsi(
            self.STOCK_ITEMS,
            self.STOCK_PRODUCT_INDEX,
            "product_id",
            product_id,
        )
        if consistent and items:
            keys = [{"stock_item_id": item["stock_item_id"]} for item in items]
            items = [
                item
                for item in self.db.batch_get(self.STOCK_ITEMS, keys, consistent_read=True)
                if item.get("product_id") == product_id
            ]
        units = [self._item_to_stock_unit(item) for item in items]
        return sorted(units, key=lambda u: u.stock_item_id)

    # Pricing tiers

    def list_pricing_tiers(self, product_id: str) -> list[PricingTier]:
        """Pricing tiers of a product ordered by day threshold."""
        items = self.db.query(self.PRICING_TIERS, Key("product_id").eq(product_id))
        tiers = [
            PricingTier(
                tier_days=int(item["tier_days"]),
                multiplier=Decimal(str(item["multiplier"])),
                label=item.get("label"),
                sort_order=int(item.get("sort_order", 0)),
            )
            for item in items
        ]
        return sorted(tiers, key=lambda t: t.tier_days)

    def replace_pricing_tiers(
        self,
        product_id: str,
        tiers: list[PricingTier],
        auto_increment_multiplier: Decimal | None = None,
    ) -> bool:
        """Atomically replace a product's tiers and optionally its multiplier.

        Returns:
            False if the product no longer exists
        """
        existing = {
            int(item["tier_days"])
            for item in self.db.query(self.PRICING_TIERS, Key("product_id").eq(product_id))
        }
        wanted = {t.tier_days for t in tiers}
        tiers_table = self.db.table_name(self.PRICING_TIERS)
        products_table = self.db.table_name(self.PRODUCTS)
        product_key = serialize_item({"product_id": product_id})

        transact_items: list[dict[str, Any]] = [
            {
                "Delete": {
                    "TableName": tiers_table,
                    "Key": serialize_item({"product_id": product_id, "tier_days": days}),
                }
            }
            for days in sorted(existing - wanted)
        ]
        transact_items.extend(
            {
                "Put": {
                    "TableName": tiers_table,
                    "Item": serialize_item(
                        {
                            "product_id": product_id,
                            "tier_days": tier.tier_days,
                            "multiplier": tier.multiplier,
                            "label": tier.label,
                            "sort_order": tier.sort_order,
                        }
                    ),
                }
            }
            for tier in tiers
        )
        if auto_increment_multiplier is not None:
            transact_items.append(
                {
                    "Update": {
                        "TableName": products_table,
                        "Key": product_key,
                        "UpdateExpression": "SET auto_increment_multiplier = :m",
                        "ConditionExpression": "attribute_exists(product_id)",
                        "ExpressionAttributeValues": serialize_item(
                            {":m": auto_increment_multiplier}
                        ),
                    }
                }
            )
        else:
            transact_items.append(
                {
                    "ConditionCheck": {
                        "TableName": products_table,
                        "Key": product_key,
                        "ConditionExpression": "attribute_exists(product_id)",
                    }
                }
            )
        return self.db.transact_write(transact_items)

    # Reservations

    def get_reservation(self, reservation_id: str) -> Reservation | None:
        item = self.db.get_item(
            self.RESERVATIONS, {"reservation_id": reservation_id}, consistent_read=True
        )
        if not item:
            return None
        return self._item_to_reservation(item)

    def get_reservations(self, reservation_ids: list[str]) -> dict[str, Reservation]:
        """Strongly consistent batch load of reservations keyed by id."""
        keys = [{"reservation_id": rid} for rid in sorted(set(reservation_ids))]
        items = self.db.batch_get(self.RESERVATIONS, keys, consistent_read=True)
        reservations = (self._item_to_reservation(item) for item in items)
        return {r.reservation_id: r for r in reservations}

    def reservations_by_unit(
        self, units: list[StockUnit], blocking_only: bool = True
    ) -> dict[str, list[Reservation]]:
        """Reservations holding each unit, ordered by start date then id."""
        loaded = self.get_reservations(
            [rid for unit in units for rid in unit.reservation_ids]
        )
        by_unit: dict[str, list[Reservation]] = {}
        for unit in units:
            held = [
                loaded[rid]
                for rid in unit.reservation_ids
                if rid in loaded and (loaded[rid].is_blocking or not blocking_only)
            ]
            by_unit[unit.stock_item_id] = sorted(
                held, key=lambda r: (r.start_date, r.reservation_id)
            )
        return by_unit

    def create_reservation(
        self,
        reservation: Reservation,
        units: list[StockUnit],
        unit_rental_cents: int,
        unit_deposit_cents: int,
    ) -> bool:
        """Write a reservation, its line items and the unit locks in one transaction.

        Args:
            reservation: Reservation to create (its ``stock_item_ids`` match ``units``)
            units: Units as observed when availability was resolved
            unit_rental_cents: Rental price per unit
            unit_deposit_cents: Deposit per unit

        Returns:
            False if any unit changed since it was read (lost race)
        """
        reservation_id = reservation.reservation_id
        transact_items: list[dict[str, Any]] = [
            {
                "Put": {
                    "TableName": self.db.table_name(self.RESERVATIONS),
                    "Item": serialize_item(self._reservation_to_item(reservation)),
                    "ConditionExpression": "attribute_not_exists(reservation_id)",
                }
            }
        ]
        for unit in units:
            transact_items.append(
                {
                    "Put": {
                        "TableName": self.db.table_name(self.RESERVATION_ITEMS),
                        "Item": serialize_item(
                            {
                                "reservation_id": reservation_id,
                                "stock_item_id": unit.stock_item_id,
                                "product_id": reservation.product_id,
                                "rental_price": cents_to_decimal(unit_rental_cents),
                                "deposit": cents_to_decimal(unit_deposit_cents),
                            }
                        ),
                    }
                }
            )
            transact_items.append(self._lock_unit(unit, reservation_id))

        committed = self.db.transact_write(transact_items)
        if committed:
            logger.info(
                "Reservation created",
                extra={
                    "reservation_id": reservation_id,
                    "product_id": reservation.product_id,
                    "stock_item_ids": reservation.stock_item_ids,
                    "payment_status": reservation.payment_status.value,
                },
            )
        return committed

    def update_reservation_status(
        self,
        reservation: Reservation,
        payment_status: PaymentStatus,
        order_status: OrderStatus,
        **fields: Any,
    ) -> Reservation | None:
        """Move a reservation to new statuses, conditioned on its current ones.

        Units are released in the same transaction when the reservation stops
        being blocking.

        Args:
            reservation: Reservation as last read
            payment_status: New payment status
            order_status: New order status
            **fields: Extra attributes to set (e.g. ``payment_method``)

        Returns:
            The updated reservation, or None if it changed concurrently
        """
        now = dt.datetime.now(dt.UTC)
        values: dict[str, Any] = {
            ":ps": payment_status.value,
            ":os": order_status.value,
            ":now": now.isoformat(),
            ":cur_ps": reservation.payment_status.value,
            ":cur_os": reservation.order_status.value,
        }
        set_clauses = ["payment_status = :ps", "order_status = :os", "updated_at = :now"]
        for i, (name, value) in enumerate(sorted(fields.items())):
            if value is None:
                continue
            set_clauses.append(f"{name} = :f{i}")
            values[f":f{i}"] = value

        transact_items: list[dict[str, Any]] = [
            {
                "Update": {
                    "TableName": self.db.table_name(self.RESERVATIONS),
                    "Key": serialize_item({"reservation_id": reservation.reservation_id}),
                    "UpdateExpression": "SET " + ", ".join(set_clauses),
                    "ConditionExpression": (
                        "payment_status = :cur_ps AND order_status = :cur_os"
                    ),
                    "ExpressionAttributeValues": serialize_item(values),
                }
            }
        ]
        if reservation.is_blocking and not payment_status.is_blocking:
            transact_items.extend(
                self._release_unit(stock_item_id, reservation.reservation_id)
                for stock_item_id in reservation.stock_item_ids
            )

        if not self.db.transact_write(transact_items):
            return None
        updates = {k: v for k, v in fields.items() if v is not None}
        return reservation.model_copy(
            update={
                "payment_status": payment_status,
                "order_status": order_status,
                "updated_at": now,
                **updates,
            }
        )

    def attach_checkout_session(self, reservation_id: str, session_id: str) -> None:
        self.db.update_item(
            self.RESERVATIONS,
            {"reservation_id": reservation_id},
            "SET stripe_session_id = :sid, updated_at = :now",
            {":sid": session_id, ":now": dt.datetime.now(dt.UTC).isoformat()},
        )

    # Transaction parts

    def _lock_unit(self, unit: StockUnit, reservation_id: str) -> dict[str, Any]:
        if unit.lock_version == 0:
            condition = (
                "attribute_exists(stock_item_id) AND "
                "(attribute_not_exists(lock_version) OR lock_version = :seen)"
            )
        else:
            condition = "lock_version = :seen"
        return {
            "Update": {
                "TableName": self.db.table_name(self.STOCK_ITEMS),
                "Key": serialize_item({"stock_item_id": unit.stock_item_id}),
                "UpdateExpression": "SET lock_version = :next ADD reservation_ids :rid",
                "ConditionExpression": condition,
                "ExpressionAttributeValues": serialize_item(
                    {
                        ":seen": unit.lock_version,
                        ":next": unit.lock_version + 1,
                        ":rid": {reservation_id},
                    }
                ),
            }
        }

    def _release_unit(self, stock_item_id: str, reservation_id: str) -> dict[str, Any]:
        return {
            "Update": {
                "TableName": self.db.table_name(self.STOCK_ITEMS),
                "Key": serialize_item({"stock_item_id": stock_item_id}),
                "UpdateExpression": "DELETE reservation_ids :rid",
                "ConditionExpression": "attribute_exists(stock_item_id)",
                "ExpressionAttributeValues": serialize_item({":rid": {reservation_id}}),
            }
        }

    # Item mapping

    def _item_to_product(self, item: dict[str, Any]) -> Product:
        buffer_before = item.get("buffer_before")
        buffer_after = item.get("buffer_after")
        return Product(
            product_id=item["product_id"],
            name=item.get("name", ""),
            daily_rate_cents=int(item["daily_rate_cents"]),
            deposit_cents=int(item.get("deposit_cents", 0)),
            buffer_before=int(buffer_before) if buffer_before is not None else None,
            buffer_after=int(buffer_after) if buffer_after is not None else None,
            auto_increment_multiplier=Decimal(
                str(item.get("auto_increment_multiplier", "1.0"))
            ),
        )

    def _item_to_stock_unit(self, item: dict[str, Any]) -> StockUnit:
        def _date(name: str) -> dt.date | None:
            value = item.get(name)
            return dt.date.fromisoformat(value) if value else None

        return StockUnit(
            stock_item_id=item["stock_item_id"],
            product_id=item["product_id"],
            serial_number=item.get("serial_number"),
            unavailable_from=_date("unavailable_from"),
            unavailable_to=_date("unavailable_to"),
            unavailable_reason=item.get("unavailable_reason"),
            lock_version=int(item.get("lock_version", 0)),
            reservation_ids=sorted(item.get("reservation_ids", set())),
        )

    def _item_to_reservation(self, item: dict[str, Any]) -> Reservation:
        return Reservation(
            reservation_id=item["reservation_id"],
            product_id=item["product_id"],
            stock_item_ids=list(item.get("stock_item_ids", [])),
            start_date=dt.date.fromisoformat(item["start_date"]),
            end_date=dt.date.fromisoformat(item["end_date"]),
            payment_status=PaymentStatus(item["payment_status"]),
            order_status=OrderStatus(item.get("order_status", OrderStatus.PENDING.value)),
            customer=CustomerDetails(
                email=item.get("customer_email"),
                full_name=item.get("customer_name"),
                phone=item.get("customer_phone"),
                company_name=item.get("company_name"),
                tax_id=item.get("tax_id"),
            ),
            total_rental_price=Decimal(str(item.get("total_rental_price", "0.00"))),
            total_deposit=Decimal(str(item.get("total_deposit", "0.00"))),
            payment_method=item.get("payment_method"),
            stripe_session_id=item.get("stripe_session_id"),
            notes=item.get("notes"),
            invoice_sent=bool(item.get("invoice_sent", False)),
            created_at=dt.datetime.fromisoformat(item["created_at"]),
            updated_at=dt.datetime.fromisoformat(item["updated_at"]),
        )

    def _reservation_to_item(self, reservation: Reservation) -> dict[str, Any]:
        customer = reservation.customer
        return {
            "reservation_id": reservation.reservation_id,
            "product_id": reservation.product_id,
            "stock_item_ids": list(reservation.stock_item_ids),
            "start_date": reservation.start_date.isoformat(),
            "end_date": reservation.end_date.isoformat(),
            "payment_status": reservation.payment_status.value,
            "order_status": reservation.order_status.value,
            "customer_email": customer.email,
            "customer_name": customer.full_name,
            "customer_phone": customer.phone,
            "company_name": customer.company_name,
            "tax_id": customer.tax_id,
            "total_rental_price": reservation.total_rental_price,
            "total_deposit": reservation.total_deposit,
            "payment_method": reservation.payment_method,
            "stripe_session_id": reservation.stripe_session_id,
            "notes": reservation.notes,
            "invoice_sent": reservation.invoice_sent,
            "created_at": reservation.created_at.isoformat(),
            "updated_at": reservation.updated_at.isoformat(),
        }
