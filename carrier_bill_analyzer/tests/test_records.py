from decimal import Decimal

import pytest

from carrier_bill_analyzer.datatypes import EnhancedBill, MinimalBill
from carrier_bill_analyzer.records import (merge_with_defaults, parse_raw_record, snake_keys,
                                           to_decimal, to_text)


@pytest.mark.parametrize("value, expected", [
    ('$1,204.50', Decimal('1204.50')),
    ('  -12.00 ', Decimal('-12.00')),
    (12.1, Decimal('12.1')),
    (7, Decimal('7')),
    (Decimal('3.33'), Decimal('3.33')),
    (None, Decimal('0')),
    (True, Decimal('0')),
    ('', Decimal('0')),
    ('abc', Decimal('0')),
    ('NaN', Decimal('0')),
    ([1, 2], Decimal('0')),
    ('1e1000000', Decimal('0')),
    ('9e999999', Decimal('0')),
    (Decimal('1E+400'), Decimal('0')),
    (10 ** 30, Decimal('0')),
    ('1e3', Decimal('1000')),
])
def test_to_decimal(value, expected):
    assert to_decimal(value) == expected


def test_to_text():
    assert to_text('  Dana ') == 'Dana'
    assert to_text('', 'fallback') == 'fallback'
    assert to_text(None, 'fallback') == 'fallback'
    assert to_text(12345) == '12345'
    assert to_text({'a': 1}) is None


def test_snake_keys():
    assert snake_keys({'averageMonthlyBill': 1, 'avg_data_usage_gb': 2, 'trend': 3}) == {
        'average_monthly_bill': 1, 'avg_data_usage_gb': 2, 'trend': 3}


def test_merge_with_defaults():
    defaults = {'trend': 'stable', 'percentage_change': 0, 'avg_talk_minutes': 120}
    merged = merge_with_defaults(defaults, {'trend': 'increasing', 'percentageChange': None,
                                            'somethingElse': 'dropped'})
    assert merged == {'trend': 'increasing', 'percentage_change': 0, 'avg_talk_minutes': 120}
    # defaults are never mutated
    assert defaults['trend'] == 'stable'


def test_merge_with_non_dict_overrides():
    assert merge_with_defaults({'trend': 'stable'}, None) == {'trend': 'stable'}
    assert merge_with_defaults({'trend': 'stable'}, ['increasing']) == {'trend': 'stable'}


def test_enhanced_marker_with_lines():
    record = parse_raw_record({
        'billVersion': 'claude-parser-v1.2',
        'phoneLines': [{'deviceName': 'iPhone 15'}],
        'usageAnalysis': {'trend': 'decreasing'},
        'costAnalysis': 'not an object',
    })
    assert isinstance(record, EnhancedBill)
    assert record.usage_analysis == {'trend': 'decreasing'}
    assert record.cost_analysis is None
    assert record.plan_recommendation is None


@pytest.mark.parametrize("payload", [
    {'billVersion': 'claude-parser-v1.2', 'phoneLines': []},
    {'billVersion': 'claude-parser-v1.2', 'phoneLines': ['junk']},
    {'billVersion': 'textract-1', 'phoneLines': [{'deviceName': 'iPhone 15'}]},
    {'phoneLines': [{'deviceName': 'iPhone 15'}]},
])
def test_minimal_variants(payload):
    assert isinstance(parse_raw_record(payload), MinimalBill)


def test_non_object_payload_is_empty_minimal():
    record = parse_raw_record('{"phoneLines": []}')
    assert isinstance(record, MinimalBill)
    assert record.phone_lines == []
    assert record.total_amount is None


def test_common_fields():
    record = parse_raw_record({
        'accountInfo': {'customerName': 'Dana Smith', 'accountNumber': '111', 'billingPeriod': 'Jan 2025'},
        'accountNumber': '222',
        'totalAmount': '$310.25',
        'upcomingChanges': ['Price increase in May', 3],
        'networkPreference': 'verizon',
        'phoneLines': [{'deviceName': 'Galaxy S24', 'ownerName': 'Sam',
                        'details': {'planCost': '55.00', 'perksDiscount': 5}}, None],
    })
    assert record.account_number == '222'
    assert record.billing_period == 'Jan 2025'
    assert record.customer_name == 'Dana Smith'
    assert record.total_amount == Decimal('310.25')
    assert record.upcoming_changes == ['Price increase in May', '3']
    assert record.network_preference == 'verizon'
    assert len(record.phone_lines) == 1
    line = record.phone_lines[0]
    assert line.owner_name == 'Sam'
    assert line.plan_name == 'Unknown Plan'
    assert line.details.plan_cost == Decimal('55.00')
    assert line.details.perks_discount == Decimal('5')
