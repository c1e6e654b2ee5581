"""
DynamoDB access layer for the cycle tracker table.

All items of a user share the partition key USER#<user_id>. Sort keys:
    LOG#<utc timestamp>#<id>   daily log entries
    COUNTER#LOG                 per-user log id sequence
    SETTINGS                    cycle settings
"""
import os
from typing import Any, Dict, Iterable, List, Optional
import boto3
from boto3.dynamodb.conditions import Key

LOG_SK_PREFIX = "LOG#"
LOG_COUNTER_SK = "COUNTER#LOG"
SETTINGS_SK = "SETTINGS"

_dynamo_instance = None

def get_dynamo() -> 'DynamoDBClient':
    """
    Get the shared DynamoDB client for the tracker table.

    Stores receive this client by default; tests pass a mock instead.

    Returns:
        DynamoDBClient bound to TRACKER_TABLE_NAME

    Raises:
        EnvironmentError: If TRACKER_TABLE_NAME is not set
    """
    global _dynamo_instance
    if _dynamo_instance is None:
        table_name = os.environ.get('TRACKER_TABLE_NAME')
        if not table_name:
            raise EnvironmentError(
                "TRACKER_TABLE_NAME environment variable not set. "
                "This variable must be set to the DynamoDB table name."
            )
        _dynamo_instance = DynamoDBClient(table_name)
    return _dynamo_instance

class DynamoDBClient:
    """Thin wrapper over a boto3 Table with the operations the stores need."""

    def __init__(self, table_name: str, resource=None):
        self.table = (resource or boto3.resource('dynamodb')).Table(table_name)

    def put_item(self, item: Dict[str, Any]) -> None:
        """Write an item, replacing any item with the same key."""
        self.table.put_item(Item=item)

    def get_item(self, key: Dict[str, str]) -> Optional[Dict[str, Any]]:
        """Read one item, None if it does not exist."""
        return self.table.get_item(Key=key).get('Item')

    def query_items(
        self,
        partition_key: str,
        partition_value: str,
        sort_key_condition=None
    ) -> List[Dict[str, Any]]:
        """
        Query a partition, optionally narrowed by a sort key condition.

        Pages are followed through LastEvaluatedKey, so large partitions come
        back complete and in ascending sort key order.

        Args:
            partition_key: Name of the partition key attribute
            partition_value: Partition to read
            sort_key_condition: boto3 Key condition on the sort key

        Returns:
            All matching items
        """
        condition = Key(partition_key).eq(partition_value)
        if sort_key_condition is not None:
            condition = condition & sort_key_condition

        kwargs = {"KeyConditionExpression": condition}
        items = []
        while True:
            page = self.table.query(**kwargs)
            items.extend(page.get('Items', []))
            if 'LastEvaluatedKey' not in page:
                return items
            kwargs["ExclusiveStartKey"] = page['LastEvaluatedKey']

    def increment_counter(self, key: Dict[str, str], attribute: str) -> int:
        """
        Atomically add one to a numeric attribute, creating it at 1.

        Returns:
            The value after the increment
        """
        response = self.table.update_item(
            Key=key,
            UpdateExpression="ADD #counter :one",
            ExpressionAttributeNames={"#counter": attribute},
            ExpressionAttributeValues={":one": 1},
            ReturnValues="UPDATED_NEW"
        )
        return int(response["Attributes"][attribute])

    def set_attributes(self, key: Dict[str, str], values: Dict[str, Any]) -> Dict[str, Any]:
        """
        Set attributes on an item without touching the others.

        Args:
            key: Item key
            values: Attribute names mapped to their new values

        Returns:
            The item after the update
        """
        names = {}
        expression_values = {}
        assignments = []
        for index, (name, value) in enumerate(values.items()):
            names[f"#a{index}"] = name
            expression_values[f":v{index}"] = value
            assignments.append(f"#a{index} = :v{index}")

        response = self.table.update_item(
            Key=key,
            UpdateExpression="SET " + ", ".join(assignments),
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=expression_values,
            ReturnValues="ALL_NEW"
        )
        return response.get("Attributes", {})

    def batch_delete(self, keys: Iterable[Dict[str, str]]) -> int:
        """
        Delete items by key in batches.

        Returns:
            Number of delete requests sent
        """
        count = 0
        with self.table.batch_writer() as batch:
            for key in keys:
                batch.delete_item(Key=key)
                count += 1
        return count

def create_pk(user_id: str) -> str:
    """Create partition key from user ID."""
    return f"USER#{user_id}"

def create_log_sk(timestamp_key: str, log_id: int) -> str:
    """
    Create sort key for a daily log entry.

    The UTC timestamp comes first so a sort key range selects an absolute
    time range; the zero-padded id keeps duplicate rows for the same
    timestamp apart and ordered.

    Args:
        timestamp_key: UTC timestamp formatted by log_timestamp_key
        log_id: Monotonic entry id

    Returns:
        Sort key in format "LOG#{timestamp_key}#{log_id:012d}"
    """
    return f"{LOG_SK_PREFIX}{timestamp_key}#{log_id:012d}"

def create_log_range_sk(timestamp_key: str) -> str:
    """Create a sort key bound for log range queries."""
    return f"{LOG_SK_PREFIX}{timestamp_key}"
