"""Shared fixtures for integration tests against moto DynamoDB."""

import pytest
from types import SimpleNamespace
from moto import mock_aws
import boto3
import sys
import os

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from shared.config import Settings

OWNER = 'owner-user'
PARTNER = 'partner-user'
STRANGER = 'stranger-user'


@pytest.fixture
def aws_credentials():
    """Mock AWS Credentials for moto."""
    os.environ['AWS_ACCESS_KEY_ID'] = 'testing'
    os.environ['AWS_SECRET_ACCESS_KEY'] = 'testing'
    os.environ['AWS_SECURITY_TOKEN'] = 'testing'
    os.environ['AWS_SESSION_TOKEN'] = 'testing'
    os.environ['AWS_DEFAULT_REGION'] = 'us-east-1'


@pytest.fixture
def settings():
    """Settings with test table names."""
    return Settings(
        groups_table='test-groups',
        members_table='test-members',
        categories_table='test-categories',
        recurring_expenses_table='test-recurring-expenses',
        one_time_expenses_table='test-one-time-expenses',
        expense_payments_table='test-expense-payments',
        payments_table='test-payments',
        receipt_ocr_enabled=False
    )


def _create_table(dynamodb, name, sort_key=None, indexes=None, extra_attributes=()):
    key_schema = [{'AttributeName': 'group_id', 'KeyType': 'HASH'}]
    attributes = [{'AttributeName': 'group_id', 'AttributeType': 'S'}]

    if sort_key:
        key_schema.append({'AttributeName': sort_key, 'KeyType': 'RANGE'})
        attributes.append({'AttributeName': sort_key, 'AttributeType': 'S'})

    for attribute in extra_attributes:
        attributes.append({'AttributeName': attribute, 'AttributeType': 'S'})

    kwargs = {
        'TableName': name,
        'KeySchema': key_schema,
        'AttributeDefinitions': attributes,
        'BillingMode': 'PAY_PER_REQUEST'
    }
    if indexes:
        kwargs['GlobalSecondaryIndexes'] = indexes

    return dynamodb.create_table(**kwargs)


@pytest.fixture
def dynamodb(aws_credentials, settings):
    """Create mock DynamoDB tables."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')

        _create_table(dynamodb, settings.groups_table)
        _create_table(
            dynamodb,
            settings.members_table,
            sort_key='member_id',
            extra_attributes=('user_id',),
            indexes=[
                {
                    'IndexName': 'user-index',
                    'KeySchema': [{'AttributeName': 'user_id', 'KeyType': 'HASH'}],
                    'Projection': {'ProjectionType': 'ALL'}
                }
            ]
        )
        _create_table(dynamodb, settings.categories_table, sort_key='category_id')
        _create_table(dynamodb, settings.recurring_expenses_table, sort_key='expense_id')
        _create_table(dynamodb, settings.one_time_expenses_table, sort_key='one_time_expense_id')
        _create_table(dynamodb, settings.expense_payments_table, sort_key='payment_key')
        _create_table(dynamodb, settings.payments_table, sort_key='payment_id')

        yield dynamodb


@pytest.fixture
def services(dynamodb, settings):
    """All services wired to the mock tables."""
    from groups.service import GroupService
    from members.service import MemberService
    from categories.service import CategoryService
    from expenses.service import RecurringExpenseService
    from one_time_expenses.service import OneTimeExpenseService
    from expense_payments.service import ExpensePaymentService
    from settlement.service import SettlementService
    from receipts.service import ReceiptService

    return SimpleNamespace(
        groups=GroupService(settings),
        members=MemberService(settings),
        categories=CategoryService(settings),
        expenses=RecurringExpenseService(settings),
        one_time_expenses=OneTimeExpenseService(settings),
        expense_payments=ExpensePaymentService(settings),
        settlement=SettlementService(settings),
        receipts=ReceiptService(settings)
    )


@pytest.fixture
def household(services):
    """A group owned by OWNER with PARTNER as a linked member (60/40)."""
    group = services.groups.create_group(OWNER, 'Casa', owner_name='Anna')
    group_id = group['group_id']

    owner_member = services.members.list_members(OWNER, group_id)[0]
    services.members.record_member_quota(
        OWNER, group_id, None, 60, member_id=owner_member['member_id']
    )
    partner = services.members.record_member_quota(
        OWNER, group_id, 'Marco', 40, member_user_id=PARTNER
    )

    return {
        'group_id': group_id,
        'owner_member_id': owner_member['member_id'],
        'partner_member_id': partner['member_id']
    }
