"""Pytest configuration and fixtures."""

import json
import os

import pytest

# Set environment variables before imports
os.environ["TABLE_NAME"] = "aurelia-test"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

# Notification channels stay off unless a test configures them explicitly
for _var in (
    "ADMIN_NOTIFICATION_EMAIL",
    "ADMIN_NOTIFICATION_PHONE",
    "VIP_ALERT_WEBHOOK_URL",
    "SES_FROM_EMAIL",
):
    os.environ.pop(_var, None)


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def dynamodb_table(aws_credentials):
    """Create mocked DynamoDB table."""
    import boto3
    from moto import mock_aws

    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")

        table = dynamodb.create_table(
            TableName="aurelia-test",
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
                {"AttributeName": "GSI1PK", "AttributeType": "S"},
                {"AttributeName": "GSI1SK", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": "GSI1",
                    "KeySchema": [
                        {"AttributeName": "GSI1PK", "KeyType": "HASH"},
                        {"AttributeName": "GSI1SK", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                },
            ],
            BillingMode="PAY_PER_REQUEST",
        )

        table.wait_until_exists()

        yield table


@pytest.fixture
def ultra_snapshot():
    """Snapshot that scores 98 (qualified tier, ultra_high_intent)."""
    from aurelia.models.lead_score import SignalSnapshot

    return SignalSnapshot(
        pages_visited=["/pricing"],
        time_on_site_seconds=650,
        scroll_depth_percent=95,
        return_visits=3,
        utm_source="linkedin",
    )


@pytest.fixture
def warm_snapshot():
    """Snapshot that scores 30 (warm, not VIP)."""
    from aurelia.models.lead_score import SignalSnapshot

    return SignalSnapshot(
        pages_visited=["/pricing", "/services"],
        time_on_site_seconds=130,
    )


@pytest.fixture
def fake_clock():
    """Controllable epoch-seconds clock for SignalStore."""

    class FakeClock:
        def __init__(self, now: float = 1_700_000_000.0):
            self.now = now

        def __call__(self) -> float:
            return self.now

        def advance(self, seconds: float) -> None:
            self.now += seconds

    return FakeClock()


@pytest.fixture
def api_gateway_event():
    """Create a sample API Gateway event."""
    def _create_event(
        method: str = "GET",
        path: str = "/",
        path_params: dict = None,
        query_params: dict = None,
        body: dict = None,
        user_id: str = "admin-user-123",
        is_admin: bool = True,
        source_ip: str = "1.2.3.4",
    ):
        return {
            "httpMethod": method,
            "path": path,
            "pathParameters": path_params or {},
            "queryStringParameters": query_params or {},
            "body": body if isinstance(body, str) else (json.dumps(body) if body else None),
            "headers": {
                "Authorization": "Bearer test-token",
                "Content-Type": "application/json",
            },
            "requestContext": {
                "identity": {"sourceIp": source_ip},
                "authorizer": {
                    "userId": user_id,
                    "email": "admin@example.com",
                    "isAdmin": "true" if is_admin else "false",
                },
            },
        }

    return _create_event


class LambdaContext:
    """Mock Lambda context."""

    def __init__(self):
        self.function_name = "test-function"
        self.memory_limit_in_mb = 128
        self.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789:function:test"
        self.aws_request_id = "test-request-id"

    def get_remaining_time_in_millis(self):
        return 30000


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context."""
    return LambdaContext()
