#!/usr/bin/env python3
"""
Seed data script for trying out the household ledger.
Creates a sample household with members, categories, recurring expenses,
a few one-time expenses and settlement payments for the current month.
"""

import boto3
import os
import sys
from datetime import datetime
import random

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from shared.config import Settings
from groups.service import GroupService
from members.service import MemberService
from categories.service import CategoryService
from expenses.service import RecurringExpenseService
from one_time_expenses.service import OneTimeExpenseService
from expense_payments.service import ExpensePaymentService
from settlement.service import SettlementService

# Stack output key fragment -> Settings field
STACK_OUTPUT_TABLES = {
    'GroupsTable': 'groups_table',
    'MembersTable': 'members_table',
    'CategoriesTable': 'categories_table',
    'RecurringExpensesTable': 'recurring_expenses_table',
    'OneTimeExpensesTable': 'one_time_expenses_table',
    'ExpensePaymentsTable': 'expense_payments_table',
    'PaymentsTable': 'payments_table'
}

RECURRING_EXPENSES = [
    {'name': 'Mutuo', 'amount': 850, 'frequency_type': 'monthly', 'category': 'Mutuo', 'day_of_month': 5},
    {'name': 'Luce', 'amount': 140, 'frequency_type': 'months', 'frequency_value': 2, 'category': 'Utenze'},
    {'name': 'Gas', 'amount': 95, 'frequency_type': 'monthly', 'category': 'Utenze'},
    {'name': 'Internet', 'amount': 29.90, 'frequency_type': 'monthly', 'category': 'Utenze', 'day_of_month': 20},
    {'name': 'Assicurazione auto', 'amount': 620, 'frequency_type': 'yearly', 'category': 'Assicurazioni'},
    {'name': 'Spesa settimanale', 'amount': 110, 'frequency_type': 'weekly', 'category': 'Alimentari'},
    {'name': 'Abbonamento bus', 'amount': 35, 'frequency_type': 'monthly', 'category': 'Trasporti'},
    {'name': 'Streaming', 'amount': 12.99, 'frequency_type': 'monthly', 'category': 'Svago'}
]

ONE_TIME_EXPENSES = [
    ('Idraulico', 'Altro', 80, 180),
    ('Cena fuori', 'Svago', 40, 120),
    ('Farmacia', 'Altro', 10, 45),
    ('Benzina', 'Trasporti', 50, 90)
]


def get_settings_from_stack(stack_name='household-ledger'):
    """Get table names from CloudFormation stack."""
    cf = boto3.client('cloudformation')
    table_names = {}

    try:
        response = cf.describe_stacks(StackName=stack_name)
        outputs = response['Stacks'][0]['Outputs']

        for output in outputs:
            for fragment, field in STACK_OUTPUT_TABLES.items():
                if fragment in output['OutputKey']:
                    table_names[field] = output['OutputValue']
    except Exception as e:
        print(f"Error getting table names from stack: {e}")
        print("Using table names from the environment...")

    return Settings(**table_names)


def seed_household(settings, owner_id, partner_id=None):
    """Seed a group with two members and its categories."""
    groups = GroupService(settings)
    members = MemberService(settings)
    categories = CategoryService(settings)

    group = groups.create_group(owner_id, 'Casa', owner_name='Anna')
    group_id = group['group_id']
    print(f"Created group {group_id}")

    owner_member = members.list_members(owner_id, group_id)[0]
    members.record_member_quota(owner_id, group_id, None, 60, member_id=owner_member['member_id'])
    partner = members.record_member_quota(owner_id, group_id, 'Marco', 40, member_user_id=partner_id)
    print("Created members Anna (60%) and Marco (40%)")

    seeded = categories.list_categories(owner_id, group_id)
    print(f"Seeded {len(seeded)} categories")

    return group_id, {c['name']: c['category_id'] for c in seeded}, [owner_member, partner]


def seed_expenses(settings, owner_id, group_id, category_ids, month, year):
    """Seed recurring expenses, one-time expenses and recurring payments."""
    recurring = RecurringExpenseService(settings)
    one_time = OneTimeExpenseService(settings)
    expense_payments = ExpensePaymentService(settings)

    print(f"Creating {len(RECURRING_EXPENSES)} recurring expenses...")

    created = []
    for data in RECURRING_EXPENSES:
        data = dict(data)
        data['category_id'] = category_ids.get(data.pop('category'))
        created.append(recurring.create_recurring_expense(owner_id, group_id, data))

    # Pay the monthly bills of the current month
    paid = 0
    for expense in created:
        if expense['frequency_type'] == 'monthly':
            expense_payments.record_recurring_payment(
                owner_id, group_id, expense['expense_id'], month, year, expense['amount']
            )
            paid += 1

    print(f"Recorded {paid} recurring payments")

    for name, category, low, high in ONE_TIME_EXPENSES:
        day = random.randint(1, 28)
        one_time.create_one_time_expense(owner_id, group_id, {
            'name': name,
            'amount': round(random.uniform(low, high), 2),
            'date': f"{year:04d}-{month:02d}-{day:02d}",
            'category_id': category_ids.get(category)
        })

    print(f"Created {len(ONE_TIME_EXPENSES)} one-time expenses")
    return created


def seed_settlement(settings, owner_id, group_id, members, month, year):
    """Record a partial settlement payment for each member."""
    settlement = SettlementService(settings)
    report = settlement.compute_monthly_settlement(owner_id, group_id, month, year)

    shares = {quota['member']['member_id']: quota['calculated'] for quota in report['member_quotas']}

    for member in members:
        share = shares.get(member['member_id'], 0)
        settlement.record_member_settlement_payment(
            owner_id, group_id, member['member_id'], month, year, round(share / 2, 2)
        )

    print(f"Monthly total: {report['total_monthly']:.2f}")
    return report


def main():
    """Main function."""
    print("=" * 50)
    print("Household Ledger - Seed Data Script")
    print("=" * 50)

    # Get stack name
    stack_name = input("Enter stack name (default: household-ledger): ").strip()
    if not stack_name:
        stack_name = 'household-ledger'

    # Get table names
    print("\nGetting table names from CloudFormation...")
    settings = get_settings_from_stack(stack_name)

    print("\nTable names:")
    for field in STACK_OUTPUT_TABLES.values():
        print(f"  {field}: {getattr(settings, field)}")

    # Get user IDs
    owner_id = input("\nEnter owner user ID (Cognito sub): ").strip()
    if not owner_id:
        print("Error: Owner user ID is required")
        sys.exit(1)

    partner_id = input("Enter partner user ID (optional): ").strip() or None

    now = datetime.utcnow()

    print("\nSeeding household...")
    group_id, category_ids, members = seed_household(settings, owner_id, partner_id)

    print("\nSeeding expenses...")
    expenses = seed_expenses(settings, owner_id, group_id, category_ids, now.month, now.year)

    print("\nSeeding settlement payments...")
    seed_settlement(settings, owner_id, group_id, members, now.month, now.year)

    print("\n" + "=" * 50)
    print("Data seeding complete!")
    print("=" * 50)
    print(f"\nCreated:")
    print(f"  - group {group_id}")
    print(f"  - {len(members)} members")
    print(f"  - {len(expenses)} recurring expenses")
    print(f"\nFor owner: {owner_id}")


if __name__ == '__main__':
    main()
