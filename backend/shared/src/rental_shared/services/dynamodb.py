"""DynamoDB access with environment-prefixed table names.

Reads and simple writes go through the boto3 resource (plain Python values,
``Decimal`` for numbers). Transactions go through the low-level client and
take typed attribute values; build them with ``serialize_item``.

``ClientError`` other than a failed condition propagates; the API layer
reports it as an upstream failure.
"""

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

import boto3
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from rental_shared.utils.logging import get_logger

if TYPE_CHECKING:
    from rental_shared.config import Settings

logger = get_logger(__name__)

BATCH_GET_LIMIT = 100

# Module-level singleton for connection reuse across warm Lambda invocations
_dynamodb_service_instance: "DynamoDBService | None" = None

_serializer = TypeSerializer()


def get_dynamodb_service(settings: "Settings | None" = None) -> "DynamoDBService":
    """Get or create the shared DynamoDBService. ``settings`` is used on first call only."""
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        if settings is None:
            from rental_shared.config import get_settings

            settings = get_settings()
        _dynamodb_service_instance = DynamoDBService(settings)
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Drop the singleton so tests can build one inside a mock_aws context."""
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


def serialize_item(item: dict[str, Any]) -> dict[str, Any]:
    """Convert a plain item into DynamoDB typed attribute values.

    ``None`` values are dropped so optional attributes stay absent.
    """
    return {k: _serializer.serialize(v) for k, v in item.items() if v is not None}


def _condition_failed(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "ConditionalCheckFailedException"


def _pages(call: Callable[..., dict[str, Any]], **kwargs: Any) -> Iterator[dict[str, Any]]:
    while True:
        response = call(**kwargs)
        yield from response.get("Items", [])
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return
        kwargs["ExclusiveStartKey"] = last_key


class DynamoDBService:
    """Table access for one environment, e.g. ``rental-prod-reservations``."""

    def __init__(self, settings: "Settings") -> None:
        self.name_prefix = settings.table_prefix
        self._dynamodb = boto3.resource("dynamodb", region_name=settings.aws_region)
        self._client = boto3.client("dynamodb", region_name=settings.aws_region)

    def table_name(self, table: str) -> str:
        return f"{self.name_prefix}-{table}"

    def _table(self, table: str) -> Any:
        return self._dynamodb.Table(self.table_name(table))

    # Single items

    def get_item(
        self, table: str, key: dict[str, Any], consistent_read: bool = False
    ) -> dict[str, Any] | None:
        response = self._table(table).get_item(Key=key, ConsistentRead=consistent_read)
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Put an item. Returns False if ``condition_expression`` did not hold."""
        kwargs: dict[str, Any] = {"Item": item}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            self._table(table).put_item(**kwargs)
        except ClientError as e:
            if _condition_failed(e):
                return False
            raise
        return True

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Update an item and return its new attributes, or None if the condition failed."""
        kwargs: dict[str, Any] = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": expression_attribute_values,
            "ReturnValues": "ALL_NEW",
        }
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            response = self._table(table).update_item(**kwargs)
        except ClientError as e:
            if _condition_failed(e):
                return None
            raise
        attrs: dict[str, Any] | None = response.get("Attributes")
        return attrs

    # Multiple items

    def query(
        self, table: str, key_condition: Any, index_name: str | None = None
    ) -> list[dict[str, Any]]:
        """All items matching a key condition, across pages."""
        kwargs: dict[str, Any] = {"KeyConditionExpression": key_condition}
        if index_name:
            kwargs["IndexName"] = index_name
        return list(_pages(self._table(table).query, **kwargs))

    def query_by_gsi(
        self, table: str, index_name: str, partition_key_name: str, partition_key_value: str
    ) -> list[dict[str, Any]]:
        return self.query(
            table, Key(partition_key_name).eq(partition_key_value), index_name=index_name
        )

    def scan(self, table: str) -> list[dict[str, Any]]:
        """Whole-table scan. Only used for the small products table."""
        return list(_pages(self._table(table).scan))

    def batch_get(
        self, table: str, keys: list[dict[str, Any]], consistent_read: bool = False
    ) -> list[dict[str, Any]]:
        """Fetch items by key in chunks of 100, retrying unprocessed keys.

        Missing keys are skipped; order is not preserved.
        """
        table_name = self.table_name(table)
        items: list[dict[str, Any]] = []
        for start in range(0, len(keys), BATCH_GET_LIMIT):
            request: dict[str, Any] = {
                table_name: {
                    "Keys": keys[start : start + BATCH_GET_LIMIT],
                    "ConsistentRead": consistent_read,
                }
            }
            while request:
                response = self._dynamodb.batch_get_item(RequestItems=request)
                items.extend(response.get("Responses", {}).get(table_name, []))
                request = response.get("UnprocessedKeys") or {}
        return items

    def transact_write(self, items: list[dict[str, Any]]) -> bool:
        """Run a write transaction.

        Returns:
            False if DynamoDB cancelled it (a condition failed or a
            conflicting transaction touched the same item)
        """
        try:
            self._client.transact_write_items(TransactItems=items)  # type: ignore[arg-type]
        except ClientError as e:
            if e.response["Error"]["Code"] != "TransactionCanceledException":
                raise
            reasons = [r.get("Code") for r in e.response.get("CancellationReasons", [])]
            logger.info("Transaction cancelled: %s", reasons)
            return False
        return True
