"""
Tests for the DynamoDB wrapper, logging helpers and shared clients.
"""
import sys
import pytest
from decimal import Decimal
from unittest.mock import MagicMock, Mock, patch
from aws_lambda_powertools import Logger

import src.utils.clients as clients
import src.utils.dynamo as dynamo
from src.services.cycle import CycleService
from src.services.log_store import DynamoLogStore
from src.utils.dynamo import DynamoDBClient, create_log_sk
from src.utils.logging import SingleLineLogger, format_exception


@pytest.fixture
def table():
    """Create DynamoDBClient over a mocked boto3 table."""
    resource = MagicMock()
    return DynamoDBClient("tracker", resource=resource), resource.Table.return_value


def test_query_items_follows_pages(table):
    """Test every page of a query is returned."""
    client, mock_table = table
    mock_table.query.side_effect = [
        {"Items": [{"SK": "LOG#1"}], "LastEvaluatedKey": {"SK": "LOG#1"}},
        {"Items": [{"SK": "LOG#2"}]},
    ]

    items = client.query_items("PK", "USER#123")

    assert [item["SK"] for item in items] == ["LOG#1", "LOG#2"]
    first, second = mock_table.query.call_args_list
    assert "ExclusiveStartKey" not in first.kwargs
    assert second.kwargs["ExclusiveStartKey"] == {"SK": "LOG#1"}


def test_increment_counter(table):
    """Test counters are incremented atomically and returned as int."""
    client, mock_table = table
    mock_table.update_item.return_value = {"Attributes": {"log_seq": Decimal(3)}}

    assert client.increment_counter({"PK": "USER#123", "SK": "COUNTER#LOG"}, "log_seq") == 3
    kwargs = mock_table.update_item.call_args.kwargs
    assert kwargs["UpdateExpression"] == "ADD #counter :one"
    assert kwargs["ExpressionAttributeNames"] == {"#counter": "log_seq"}


def test_set_attributes(table):
    """Test attributes are set by placeholder names."""
    client, mock_table = table
    mock_table.update_item.return_value = {"Attributes": {"last_period_start": "2026-03-01"}}

    result = client.set_attributes({"PK": "USER#123", "SK": "SETTINGS"}, {"last_period_start": "2026-03-01"})

    assert result == {"last_period_start": "2026-03-01"}
    kwargs = mock_table.update_item.call_args.kwargs
    assert kwargs["UpdateExpression"] == "SET #a0 = :v0"
    assert kwargs["ExpressionAttributeNames"] == {"#a0": "last_period_start"}
    assert kwargs["ExpressionAttributeValues"] == {":v0": "2026-03-01"}


def test_batch_delete(table):
    """Test every key is sent through the batch writer."""
    client, mock_table = table
    batch = mock_table.batch_writer.return_value.__enter__.return_value

    assert client.batch_delete([{"PK": "USER#123", "SK": "LOG#1"}, {"PK": "USER#123", "SK": "LOG#2"}]) == 2
    assert batch.delete_item.call_count == 2


def test_get_dynamo_requires_table_name(monkeypatch):
    """Test a missing table name is reported."""
    monkeypatch.setattr(dynamo, "_dynamo_instance", None)
    monkeypatch.delenv("TRACKER_TABLE_NAME", raising=False)

    with pytest.raises(EnvironmentError):
        dynamo.get_dynamo()


def test_create_log_sk_pads_id():
    """Test ids are zero padded so sort keys order by id."""
    assert create_log_sk("2026-03-01T00:00:00.000000Z", 42) == "LOG#2026-03-01T00:00:00.000000Z#000000000042"


def test_format_exception_single_line():
    """Test tracebacks are folded into one line."""
    assert format_exception(None) is None
    try:
        raise ValueError("bad day")
    except ValueError:
        formatted = format_exception(sys.exc_info())
    assert "ValueError: bad day" in formatted
    assert "\n" not in formatted


def test_single_line_logger_exception_folds_traceback():
    """Test the handled exception is attached to the record on one line."""
    single_line_logger = SingleLineLogger(service="cycle_engine_test")
    with patch.object(Logger, "exception") as base_exception:
        try:
            raise RuntimeError("throttled")
        except RuntimeError:
            single_line_logger.exception("Error loading day entry", extra={"user_id": "123"})

    message = base_exception.call_args.args[0]
    kwargs = base_exception.call_args.kwargs
    assert message == "Error loading day entry"
    assert kwargs["exc_info"] is False
    assert kwargs["extra"]["user_id"] == "123"
    assert "RuntimeError: throttled" in kwargs["extra"]["exception"]
    assert "\n" not in kwargs["extra"]["exception"]


def test_shared_clients(monkeypatch):
    """Test services are wired over the shared DynamoDB client."""
    mock_dynamo = Mock()
    monkeypatch.setattr(clients, "get_dynamo", lambda: mock_dynamo)
    monkeypatch.setattr(clients, "_config", None)
    monkeypatch.setattr(clients, "_log_store", None)
    monkeypatch.setattr(clients, "_settings_store", None)
    monkeypatch.setenv("CYCLE_TIMEZONE", "Europe/Moscow")

    service = clients.get_cycle_service()

    assert isinstance(service, CycleService)
    assert isinstance(service.days.logs, DynamoLogStore)
    assert service.days.logs.dynamo is mock_dynamo
    assert service.config.timezone == "Europe/Moscow"
    assert clients.get_log_store() is service.days.logs
