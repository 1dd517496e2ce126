#!/usr/bin/env python3
"""Seed a development database with demo rental data.

Creates demo products with stock units and pricing tiers:
- A camping trailer with two units and 1/3/7-day tiers
- A cargo box with three units (one in service), linear pricing
- A roof tent with one unit and custom buffers

Usage:
    python backend/scripts/seed_data.py --env dev
    python backend/scripts/seed_data.py --env dev --create-tables
    python backend/scripts/seed_data.py --env dev --clear-first
"""

import argparse
import os
import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "shared" / "src"))

import boto3  # noqa: E402

from rental_shared.tables import TABLE_DEFINITIONS, create_tables  # noqa: E402

PRODUCTS = [
    {
        "product_id": "trailer-01",
        "name": "Camping trailer",
        "daily_rate_cents": 10000,  # 100.00 PLN
        "deposit_cents": 50000,
        "auto_increment_multiplier": Decimal("0.3"),
    },
    {
        "product_id": "cargo-box-01",
        "name": "Roof cargo box 420 l",
        "daily_rate_cents": 3500,
        "deposit_cents": 20000,
    },
    {
        "product_id": "roof-tent-01",
        "name": "Roof tent",
        "daily_rate_cents": 8000,
        "deposit_cents": 30000,
        "buffer_before": 1,
        "buffer_after": 2,
        "auto_increment_multiplier": Decimal("0.5"),
    },
]

STOCK_ITEMS = [
    {"stock_item_id": "trailer-01-a", "product_id": "trailer-01", "serial_number": "TR-2024-001"},
    {"stock_item_id": "trailer-01-b", "product_id": "trailer-01", "serial_number": "TR-2024-002"},
    {"stock_item_id": "cargo-box-01-a", "product_id": "cargo-box-01", "serial_number": "CB-420-11"},
    {"stock_item_id": "cargo-box-01-b", "product_id": "cargo-box-01", "serial_number": "CB-420-12"},
    {
        "stock_item_id": "cargo-box-01-c",
        "product_id": "cargo-box-01",
        "serial_number": "CB-420-13",
        "unavailable_from": "2026-01-01",
        "unavailable_reason": "Broken hinge, waiting for parts",
    },
    {"stock_item_id": "roof-tent-01-a", "product_id": "roof-tent-01", "serial_number": "RT-77"},
]

PRICING_TIERS = [
    {"product_id": "trailer-01", "tier_days": 1, "multiplier": Decimal("1"), "label": "1 day"},
    {"product_id": "trailer-01", "tier_days": 3, "multiplier": Decimal("2.5"), "label": "3 days"},
    {"product_id": "trailer-01", "tier_days": 7, "multiplier": Decimal("5"), "label": "Week"},
    {"product_id": "roof-tent-01", "tier_days": 2, "multiplier": Decimal("1.8"), "label": "Weekend"},
    {"product_id": "roof-tent-01", "tier_days": 7, "multiplier": Decimal("5.5"), "label": "Week"},
]


def seed(dynamodb, prefix: str) -> None:
    """Write demo products, stock units and tiers."""
    for table_name, items in (
        ("products", PRODUCTS),
        ("stock-items", [{**item, "lock_version": 0} for item in STOCK_ITEMS]),
        ("pricing-tiers", [{**t, "sort_order": i} for i, t in enumerate(PRICING_TIERS)]),
    ):
        table = dynamodb.Table(f"{prefix}-{table_name}")
        print(f"Seeding {table.name}")
        with table.batch_writer() as batch:
            for item in items:
                batch.put_item(Item=item)
        print(f"  {len(items)} items")


def clear_table(dynamodb, table_name: str) -> int:
    """Delete all items from a table.

    Returns:
        Number of items deleted
    """
    table = dynamodb.Table(table_name)
    key_attrs = [k["AttributeName"] for k in table.key_schema]
    deleted = 0
    kwargs: dict = {}
    while True:
        response = table.scan(**kwargs)
        with table.batch_writer() as batch:
            for item in response.get("Items", []):
                batch.delete_item(Key={k: item[k] for k in key_attrs})
                deleted += 1
        if not response.get("LastEvaluatedKey"):
            return deleted
        kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]


def main() -> int:
    """Run the seed script."""
    parser = argparse.ArgumentParser(description="Seed development database with demo rental data")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="Target environment (default: dev)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION", "eu-central-1"),
        help="AWS region (default: eu-central-1 or AWS_DEFAULT_REGION env var)",
    )
    parser.add_argument(
        "--prefix",
        default=None,
        help="Table name prefix (default: rental-{env})",
    )
    parser.add_argument(
        "--endpoint-url",
        default=os.environ.get("DYNAMODB_ENDPOINT_URL"),
        help="DynamoDB endpoint, e.g. http://localhost:8000 for DynamoDB Local",
    )
    parser.add_argument("--create-tables", action="store_true", help="Create the tables first")
    parser.add_argument(
        "--clear-first", action="store_true", help="Clear existing data before seeding"
    )
    args = parser.parse_args()

    prefix = args.prefix or f"rental-{args.env}"

    if args.env == "prod":
        confirm = input("WARNING: You are about to modify PRODUCTION data. Type 'yes' to continue: ")
        if confirm.lower() != "yes":
            print("Aborted.")
            return 1

    dynamodb = boto3.resource("dynamodb", region_name=args.region, endpoint_url=args.endpoint_url)
    print(f"\nSeeding {args.env} environment (prefix: {prefix}, region: {args.region})\n")

    if args.create_tables:
        for name in create_tables(dynamodb.meta.client, prefix):
            print(f"  Created {name}")
        print()

    if args.clear_first:
        for definition in TABLE_DEFINITIONS:
            name = f"{prefix}-{definition['TableName']}"
            print(f"  Cleared {clear_table(dynamodb, name)} items from {name}")
        print()

    seed(dynamodb, prefix)
    print("\nSeed completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
