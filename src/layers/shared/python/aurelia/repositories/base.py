"""Base repository class for DynamoDB operations."""

import os
from typing import Any, Generic, TypeVar

import boto3
import structlog
from botocore.exceptions import ClientError

from aurelia.models.base import BaseModel

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)


def is_conditional_check_failure(exc: ClientError) -> bool:
    """True if a ClientError is a failed ConditionExpression."""
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


def build_set_expression(
    values: dict[str, Any],
    if_not_exists: dict[str, Any] | None = None,
) -> tuple[str, dict[str, str], dict[str, Any]]:
    """Build a ``SET`` clause with placeholder names for every attribute.

    Args:
        values: Attributes to overwrite.
        if_not_exists: Attributes to initialise only when absent.

    Returns:
        Tuple of (expression, attribute names, attribute values).
    """
    parts: list[str] = []
    names: dict[str, str] = {}
    expr_values: dict[str, Any] = {}

    for attr, value in values.items():
        names[f"#{attr}"] = attr
        expr_values[f":{attr}"] = value
        parts.append(f"#{attr} = :{attr}")

    for attr, value in (if_not_exists or {}).items():
        names[f"#{attr}"] = attr
        expr_values[f":{attr}"] = value
        parts.append(f"#{attr} = if_not_exists(#{attr}, :{attr})")

    return f"SET {', '.join(parts)}", names, expr_values


class BaseRepository(Generic[T]):
    """Base repository for DynamoDB single-table design."""

    def __init__(
        self,
        model_class: type[T],
        table_name: str | None = None,
    ):
        """Initialize repository.

        Args:
            model_class: The Pydantic model class for this repository.
            table_name: DynamoDB table name. Defaults to TABLE_NAME env var.
        """
        self.model_class = model_class
        self.table_name = table_name or os.environ.get("TABLE_NAME", "aurelia-dev")
        self._dynamodb = None
        self._table = None

    @property
    def dynamodb(self):
        """Get DynamoDB resource (lazy initialization)."""
        if self._dynamodb is None:
            self._dynamodb = boto3.resource("dynamodb")
        return self._dynamodb

    @property
    def table(self):
        """Get DynamoDB table (lazy initialization)."""
        if self._table is None:
            self._table = self.dynamodb.Table(self.table_name)
        return self._table

    def get(self, pk: str, sk: str) -> T | None:
        """Get an item by its primary key.

        Args:
            pk: Partition key value.
            sk: Sort key value.

        Returns:
            Model instance or None if not found.
        """
        try:
            response = self.table.get_item(Key={"PK": pk, "SK": sk}, ConsistentRead=True)
        except ClientError as e:
            logger.error("DynamoDB get_item failed", error=str(e), pk=pk, sk=sk)
            raise

        item = response.get("Item")
        if not item:
            return None
        return self.model_class.from_dynamodb(item)

    def to_item(self, model: T) -> dict[str, Any]:
        """Build the full DynamoDB item (attributes plus keys) for a model."""
        item = model.to_dynamodb()
        item.update(model.get_keys())
        if hasattr(model, "get_gsi1_keys"):
            gsi_keys = model.get_gsi1_keys()
            if gsi_keys:
                item.update(gsi_keys)
        return item

    def query_gsi1(
        self,
        gsi1_pk: str,
        scan_forward: bool = True,
        filter_expression: str | None = None,
        expression_names: dict[str, str] | None = None,
        expression_values: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[T]:
        """Query GSI1 by partition key, following pagination.

        Args:
            gsi1_pk: GSI1 partition key value.
            scan_forward: Sort direction (True = ascending).
            filter_expression: Optional filter expression.
            expression_names: Extra expression attribute names.
            expression_values: Extra expression attribute values.
            limit: Stop once this many matching items are collected.

        Returns:
            List of model instances.
        """
        kwargs: dict[str, Any] = {
            "IndexName": "GSI1",
            "KeyConditionExpression": "GSI1PK = :gsi1pk",
            "ExpressionAttributeValues": {":gsi1pk": gsi1_pk, **(expression_values or {})},
            "ScanIndexForward": scan_forward,
        }
        if filter_expression:
            kwargs["FilterExpression"] = filter_expression
        if expression_names:
            kwargs["ExpressionAttributeNames"] = expression_names

        items: list[T] = []
        try:
            while True:
                response = self.table.query(**kwargs)
                items.extend(
                    self.model_class.from_dynamodb(item) for item in response.get("Items", [])
                )
                last_key = response.get("LastEvaluatedKey")
                if not last_key or (limit is not None and len(items) >= limit):
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error("DynamoDB query failed", error=str(e), gsi1_pk=gsi1_pk)
            raise

        return items[:limit] if limit is not None else items
