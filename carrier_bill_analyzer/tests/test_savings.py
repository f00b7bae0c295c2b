"""
Savings estimator tests.

Quotes are priced at a flat $44 per line regardless of which alternative
plan the carrier resolves to.
"""
from dataclasses import replace
from decimal import Decimal

import pytest

from carrier_bill_analyzer.normalizer import normalize
from carrier_bill_analyzer.savings import estimate_savings, find_best_carrier_match, network_for


def _analysis(total, lines):
    return normalize({
        'totalAmount': total,
        'phoneLines': [{'deviceName': f'Phone {n}', 'details': {'planCost': 70}} for n in range(lines)],
    })


def test_no_analysis_returns_na_quote():
    quote = estimate_savings('verizon', None)
    assert quote.monthly_savings == 0
    assert quote.annual_savings == 0
    assert quote.plan_name == 'N/A'
    assert quote.price == 0


def test_verizon_three_lines():
    analysis = _analysis(250, 3)
    quote = estimate_savings('verizon', analysis)

    assert quote.price == Decimal('132')
    assert quote.monthly_savings == analysis.total_amount - Decimal('132')
    assert quote.monthly_savings == Decimal('118')
    assert quote.annual_savings == Decimal('1416')
    assert quote.plan_name == 'Warp Premium'


@pytest.mark.parametrize("carrier, plan_name", [
    ('darkstar', 'Dark Star Premium'),
    ('warp', 'Warp Premium'),
    ('lightspeed', 'Light Speed Premium'),
    ('T-Mobile', 'Light Speed Premium'),
    ('AT&T', 'Dark Star Premium'),
    ('warp-starter', 'Warp Unlimited Starter'),
])
def test_carrier_resolution(carrier, plan_name):
    quote = estimate_savings(carrier, _analysis(200, 2))
    assert quote.plan_name == plan_name
    # price ignores the matched plan's own listing
    assert quote.price == Decimal('88')


def test_unknown_carrier_has_no_matching_plan():
    quote = estimate_savings('sprint', _analysis(200, 2))
    assert quote.plan_name == 'No matching plan'
    assert quote.price == 0
    assert quote.monthly_savings == 0
    assert quote.annual_savings == 0


def test_switch_costing_more_gives_negative_savings():
    quote = estimate_savings('verizon', _analysis(100, 8))
    assert quote.price == Decimal('352')
    assert quote.monthly_savings == Decimal('-252')
    assert quote.annual_savings == Decimal('-3024')


def test_analysis_without_lines_priced_as_one_line():
    analysis = replace(_analysis(60, 1), phone_lines=[])
    quote = estimate_savings('att', analysis)
    assert quote.price == Decimal('44')
    assert quote.monthly_savings == Decimal('16')


def test_find_best_carrier_match():
    assert find_best_carrier_match('Verizon') == 'warp-premium'
    assert find_best_carrier_match('vzw') == 'warp-premium'
    assert find_best_carrier_match('darkstar-starter') == 'darkstar-starter'
    assert find_best_carrier_match('light') == 'lightspeed-premium'
    assert find_best_carrier_match('cricket') is None
    assert find_best_carrier_match('') is None
    assert find_best_carrier_match(None) is None


def test_network_for():
    assert network_for('AT&T') == 'att'
    assert network_for('t-mobile') == 'tmobile'
    assert network_for('verizon') == 'verizon'
    assert network_for('sprint') is None
