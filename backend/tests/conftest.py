"""Pytest configuration and fixtures for the rental backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto and the real table definitions
- Repository and service instances wired to the mocked tables
- Sample catalog and reservation data
"""

import datetime as dt
import hashlib
import hmac
import os
import time
from collections.abc import Generator
from decimal import Decimal
from typing import Any

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("RENTAL_ENVIRONMENT", "test")
os.environ.setdefault("RENTAL_DYNAMODB_TABLE_PREFIX", "test-rental")
os.environ.setdefault("RENTAL_AWS_REGION", "eu-central-1")
os.environ.setdefault("RENTAL_OFFICE_API_TOKEN", "office-test-token")
os.environ.setdefault("RENTAL_STRIPE_SECRET_KEY", "sk_test_abc123")
os.environ.setdefault("RENTAL_STRIPE_WEBHOOK_SECRET", "whsec_test_secret123")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-central-1")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from rental_shared.config import Settings  # noqa: E402
from rental_shared.models import (  # noqa: E402
    CustomerDetails,
    OrderStatus,
    PaymentStatus,
    PricingTier,
    Product,
    Reservation,
    StockUnit,
)
from rental_shared.tables import create_tables  # noqa: E402

TABLE_PREFIX = "test-rental"
OFFICE_TOKEN = "office-test-token"


@pytest.fixture(autouse=True)
def reset_services() -> Generator[None, None, None]:
    """Reset cached settings, services and the DynamoDB singleton around each test.

    Tests using mock_aws then get fresh boto3 resources created inside the
    mock context rather than ones left over from a previous test.
    """
    from rental_api.dependencies import reset_services as _reset

    _reset()
    yield
    _reset()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        dynamodb_table_prefix=TABLE_PREFIX,
        aws_region="eu-central-1",
        default_buffer_days=1,
        reservation_max_attempts=3,
        office_api_token=OFFICE_TOKEN,
        stripe_secret_key="sk_test_abc123",
        stripe_webhook_secret="whsec_test_secret123",
    )


# === DynamoDB Fixtures ===


@pytest.fixture
def dynamodb_tables(settings: Settings) -> Generator[Any, None, None]:
    """Mocked DynamoDB with every table created; yields the boto3 resource."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name=settings.aws_region)
        create_tables(client, TABLE_PREFIX)
        yield boto3.resource("dynamodb", region_name=settings.aws_region)


@pytest.fixture
def db(dynamodb_tables: Any, settings: Settings):
    from rental_shared.services.dynamodb import DynamoDBService

    return DynamoDBService(settings)


@pytest.fixture
def repository(db):
    from rental_shared.services.inventory import InventoryRepository

    return InventoryRepository(db)


@pytest.fixture
def availability_service(repository, settings: Settings):
    from rental_shared.services.availability import AvailabilityService

    return AvailabilityService(repository, settings)


@pytest.fixture
def pricing_service(repository):
    from rental_shared.services.pricing import PricingService

    return PricingService(repository)


@pytest.fixture
def booking_service(repository, availability_service, settings: Settings):
    from rental_shared.services.booking import BookingService

    return BookingService(repository, availability_service, settings)


@pytest.fixture
def seeded_catalog(dynamodb_tables: Any) -> dict[str, Any]:
    """A trailer with two units and 1/3/7-day tiers, and a cargo box without tiers."""
    products = dynamodb_tables.Table(f"{TABLE_PREFIX}-products")
    stock = dynamodb_tables.Table(f"{TABLE_PREFIX}-stock-items")
    tiers = dynamodb_tables.Table(f"{TABLE_PREFIX}-pricing-tiers")

    products.put_item(
        Item={
            "product_id": "trailer-01",
            "name": "Camping trailer",
            "daily_rate_cents": 10000,
            "deposit_cents": 50000,
            "auto_increment_multiplier": Decimal("0.3"),
        }
    )
    products.put_item(
        Item={
            "product_id": "cargo-box-01",
            "name": "Roof cargo box",
            "daily_rate_cents": 3500,
            "deposit_cents": 0,
        }
    )
    for unit_id, product_id in (
        ("trailer-01-a", "trailer-01"),
        ("trailer-01-b", "trailer-01"),
        ("cargo-box-01-a", "cargo-box-01"),
    ):
        stock.put_item(
            Item={"stock_item_id": unit_id, "product_id": product_id, "lock_version": 0}
        )
    for order, (days, multiplier) in enumerate(((1, "1"), (3, "2.5"), (7, "5"))):
        tiers.put_item(
            Item={
                "product_id": "trailer-01",
                "tier_days": days,
                "multiplier": Decimal(multiplier),
                "label": f"{days} days",
                "sort_order": order,
            }
        )
    return {"products": products, "stock": stock, "tiers": tiers}


# === Sample Data Fixtures ===


@pytest.fixture
def sample_product() -> Product:
    return Product(
        product_id="trailer-01",
        name="Camping trailer",
        daily_rate_cents=10000,
        deposit_cents=50000,
        auto_increment_multiplier=Decimal("0.3"),
    )


@pytest.fixture
def sample_tiers() -> list[PricingTier]:
    return [
        PricingTier(tier_days=1, multiplier=Decimal("1"), label="1 day"),
        PricingTier(tier_days=3, multiplier=Decimal("2.5"), label="3 days"),
        PricingTier(tier_days=7, multiplier=Decimal("5"), label="Week"),
    ]


@pytest.fixture
def sample_units() -> list[StockUnit]:
    return [
        StockUnit(stock_item_id="unit-a", product_id="trailer-01"),
        StockUnit(stock_item_id="unit-b", product_id="trailer-01"),
    ]


def make_reservation(
    reservation_id: str = "RES-2026-AAAA0001",
    start: str = "2026-06-10",
    end: str = "2026-06-15",
    payment_status: PaymentStatus = PaymentStatus.PAID,
    order_status: OrderStatus = OrderStatus.PENDING,
    stock_item_ids: list[str] | None = None,
    product_id: str = "trailer-01",
) -> Reservation:
    """Build a reservation record for tests."""
    now = dt.datetime(2026, 5, 1, 12, 0, tzinfo=dt.UTC)
    return Reservation(
        reservation_id=reservation_id,
        product_id=product_id,
        stock_item_ids=stock_item_ids if stock_item_ids is not None else ["unit-a"],
        start_date=dt.date.fromisoformat(start),
        end_date=dt.date.fromisoformat(end),
        payment_status=payment_status,
        order_status=order_status,
        customer=CustomerDetails(email="anna@example.com", full_name="Anna Nowak"),
        total_rental_price=Decimal("250.00"),
        total_deposit=Decimal("500.00"),
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def reservation_factory():
    return make_reservation


@pytest.fixture
def sign_payload():
    """Build a valid Stripe-Signature header for a payload.

    Stripe signatures use HMAC-SHA256 with format: t={timestamp},v1={signature}
    """

    def _sign(payload: bytes, secret: str = "whsec_test_secret123") -> str:
        timestamp = str(int(time.time()))
        signed_payload = f"{timestamp}.{payload.decode('utf-8')}"
        signature = hmac.new(
            secret.encode("utf-8"),
            signed_payload.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return f"t={timestamp},v1={signature}"

    return _sign
