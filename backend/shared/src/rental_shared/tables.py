"""DynamoDB table definitions.

Names are relative to the table prefix (``{prefix}-{name}``). Used by the
seed script to create tables locally and by the test suite under moto.
"""

from typing import Any

TABLE_DEFINITIONS: list[dict[str, Any]] = [
    {
        "TableName": "products",
        "KeySchema": [{"AttributeName": "product_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "product_id", "AttributeType": "S"}],
    },
    {
        "TableName": "stock-items",
        "KeySchema": [{"AttributeName": "stock_item_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "stock_item_id", "AttributeType": "S"},
            {"AttributeName": "product_id", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": "product_id-index",
                "KeySchema": [{"AttributeName": "product_id", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
        ],
    },
    {
        "TableName": "reservations",
        "KeySchema": [{"AttributeName": "reservation_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "reservation_id", "AttributeType": "S"}],
    },
    {
        "TableName": "reservation-items",
        "KeySchema": [
            {"AttributeName": "reservation_id", "KeyType": "HASH"},
            {"AttributeName": "stock_item_id", "KeyType": "RANGE"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "reservation_id", "AttributeType": "S"},
            {"AttributeName": "stock_item_id", "AttributeType": "S"},
        ],
    },
    {
        "TableName": "pricing-tiers",
        "KeySchema": [
            {"AttributeName": "product_id", "KeyType": "HASH"},
            {"AttributeName": "tier_days", "KeyType": "RANGE"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "product_id", "AttributeType": "S"},
            {"AttributeName": "tier_days", "AttributeType": "N"},
        ],
    },
    {
        "TableName": "stripe-webhook-events",
        "KeySchema": [{"AttributeName": "event_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "event_id", "AttributeType": "S"}],
    },
]


def create_tables(client: Any, prefix: str) -> list[str]:
    """Create every table with on-demand billing.

    Args:
        client: boto3 DynamoDB client
        prefix: Table name prefix, e.g. ``rental-dev``

    Returns:
        Full names of the created tables
    """
    names = []
    for definition in TABLE_DEFINITIONS:
        name = f"{prefix}-{definition['TableName']}"
        client.create_table(**{**definition, "TableName": name, "BillingMode": "PAY_PER_REQUEST"})
        names.append(name)
    return names
