from datetime import date
from decimal import Decimal

import pytest

from carrier_bill_analyzer.datatypes import LineDetails, PhoneLine
from carrier_bill_analyzer.errors import ValidationError
from carrier_bill_analyzer.manual_entry import ManualEntryForm, analyze_manual_entry, read_manual_lines


def _lines():
    return [
        PhoneLine(device_name='iPhone 15 Pro', phone_number='(410) 555-0101', plan_name='Unlimited Plus',
                  monthly_total=Decimal('0'),
                  details=LineDetails(plan_cost=Decimal('70'), plan_discount=Decimal('5'),
                                      device_payment=Decimal('20'), protection=Decimal('10'))),
        PhoneLine(device_name='iPhone 13', phone_number='(410) 555-0102', plan_name='Unlimited Welcome',
                  monthly_total=Decimal('0'), details=LineDetails(plan_cost=Decimal('40'))),
    ]


@pytest.mark.parametrize("preference", [None, '', 'sprint', 'vzw', 'AT&T', 'T-Mobile'])
def test_carrier_preference_required(preference):
    form = ManualEntryForm(phone_lines=_lines(), network_preference=preference)
    with pytest.raises(ValidationError, match='carrier works best'):
        analyze_manual_entry(form)


def test_carrier_key_is_case_insensitive():
    form = ManualEntryForm(phone_lines=_lines(), network_preference=' TMobile ')
    assert analyze_manual_entry(form).network_preference == 'tmobile'


def test_at_least_one_line_required():
    form = ManualEntryForm(phone_lines=[], network_preference='verizon', total_amount=Decimal('120'))
    with pytest.raises(ValidationError, match='Please enter at least one line'):
        analyze_manual_entry(form)


def test_manual_analysis():
    form = ManualEntryForm(phone_lines=_lines(), network_preference='verizon')
    analysis = analyze_manual_entry(form, today=date(2025, 3, 4))

    assert analysis.account_number == 'Manual Entry'
    assert analysis.billing_period == '03/04/2025'
    assert analysis.bill_version == 'Manual Entry v1.0'
    assert analysis.customer_name == 'Manual Entry User'
    assert analysis.network_preference == 'verizon'
    assert analysis.ocr_provider == 'manual'

    assert [l.monthly_total for l in analysis.phone_lines] == [Decimal('95'), Decimal('40')]
    assert analysis.total_amount == Decimal('135')

    charges = analysis.charges_by_category
    assert charges['Plan Charges'] == Decimal('105')
    assert charges['Device Payments'] == Decimal('20')
    assert charges['Services & Add-ons'] == Decimal('10')
    assert charges['Taxes & Fees'] == Decimal('10.80')


def test_manual_profile_defaults():
    form = ManualEntryForm(phone_lines=_lines(), network_preference='tmobile')
    analysis = analyze_manual_entry(form)

    assert analysis.usage_analysis.avg_data_usage_gb == Decimal('15.2')
    assert analysis.usage_analysis.avg_talk_minutes == 110
    assert analysis.cost_analysis.projected_next_bill == Decimal('141.75')
    assert analysis.plan_recommendation.confidence_score == Decimal('0.7')
    assert analysis.plan_recommendation.estimated_monthly_savings == Decimal('45.95')
    assert analysis.plan_recommendation.alternative_plans[0].monthly_cost == Decimal('114.75')


def test_stated_totals_win():
    lines = _lines()
    lines[1].monthly_total = Decimal('42.50')
    form = ManualEntryForm(phone_lines=lines, network_preference='att', total_amount=Decimal('150'))
    analysis = analyze_manual_entry(form)

    assert analysis.network_preference == 'att'
    assert analysis.total_amount == Decimal('150')
    assert analysis.phone_lines[1].monthly_total == Decimal('42.50')


def test_read_manual_lines(tmp_path):
    csv_path = tmp_path / 'lines.csv'
    csv_path.write_text(
        'device_name,phone_number,plan_name,plan_cost,plan_discount,device_payment,monthly_total,owner_name\n'
        'iPhone 15,(410) 555-0101,Unlimited Plus,90.00,10.00,33.34,113.34,Priya\n'
        ',(410) 555-0102,,45,,,,\n'
    )
    lines = read_manual_lines(csv_path)

    assert len(lines) == 2
    assert lines[0].device_name == 'iPhone 15'
    assert lines[0].details.plan_cost == Decimal('90.00')
    assert lines[0].details.device_payment == Decimal('33.34')
    assert lines[0].monthly_total == Decimal('113.34')
    assert lines[0].owner_name == 'Priya'

    assert lines[1].device_name == 'Line 2'
    assert lines[1].plan_name == 'Unknown Plan'
    assert lines[1].details.plan_cost == Decimal('45')
    assert lines[1].details.plan_discount == Decimal('0')
    assert lines[1].monthly_total == Decimal('0')
    assert lines[1].owner_name is None
