"""
Bill normalizer.

Turns a raw bill record of unknown completeness into a fully populated
``BillAnalysis``. Every missing value is replaced with a default from the
active profile in ``analyzer_config.yaml``; nothing here raises for bad input.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from .aggregator import aggregate
from .config import load_config, profile as load_profile, decimal_setting
from .datatypes import (AlternativePlan, BillAnalysis, CostAnalysis, EnhancedBill, LineDetails,
                        MinimalBill, PhoneLine, PlanRecommendation, SavingsItem, UsageAnalysis,
                        TRENDS)
from .records import merge_with_defaults, parse_raw_record, snake_keys, to_decimal, to_text

logger = logging.getLogger(__name__)

def normalize(raw: Union[Dict[str, Any], MinimalBill, EnhancedBill, None],
              profile: str = 'extracted') -> BillAnalysis:
    record = raw if isinstance(raw, (MinimalBill, EnhancedBill)) else parse_raw_record(raw)
    cfg = load_config()
    prof = load_profile(profile)
    total = record.total_amount if record.total_amount is not None else Decimal(0)
    defaults = _section_defaults(prof, total)

    lines = list(record.phone_lines)
    if isinstance(record, EnhancedBill):
        logger.info("Bill already analyzed upstream, filling only missing sections")
        usage = merge_with_defaults(defaults['usage'], record.usage_analysis)
        cost = merge_with_defaults(defaults['cost'], record.cost_analysis)
        recommendation = merge_with_defaults(defaults['recommendation'], record.plan_recommendation)
        ocr_provider = record.ocr_provider or prof['enhanced_ocr_provider']
    else:
        usage, cost, recommendation = defaults['usage'], defaults['cost'], defaults['recommendation']
        ocr_provider = record.ocr_provider or prof['ocr_provider']
        if not lines and total > 0:
            logger.info("No phone lines detected in bill, adding placeholder")
            lines = [_placeholder_line(cfg['placeholder_line'], total, record.customer_name)]
        elif lines and record.customer_name and not lines[0].owner_name:
            lines[0] = replace(lines[0], owner_name=record.customer_name)

    if not lines:
        logger.info("No phone lines available, showing example lines")
        lines = _example_lines(cfg['example_lines'])

    max_lines = cfg['max_phone_lines']
    if len(lines) > max_lines:
        logger.info(f"Bill has {len(lines)} phone lines, keeping the first {max_lines}")
        lines = lines[:max_lines]

    return BillAnalysis(
        account_number=record.account_number or 'Unknown',
        billing_period=record.billing_period or 'Unknown',
        total_amount=total,
        usage_analysis=_usage(usage),
        cost_analysis=_cost(cost, decimal_setting(cfg['projection_factor'])),
        plan_recommendation=_recommendation(recommendation),
        phone_lines=lines,
        charges_by_category=aggregate(lines),
        bill_version=record.bill_version,
        ocr_provider=ocr_provider,
        customer_name=record.customer_name or '',
        network_preference=record.network_preference,
        upcoming_changes=list(record.upcoming_changes),
    )

# -------------------- defaults --------------------

def _section_defaults(prof: Dict[str, Any], total: Decimal) -> Dict[str, Dict[str, Any]]:
    alt = prof['alternative']
    return {
        'usage': dict(prof['usage']),
        'cost': {
            'average_monthly_bill': total,
            'projected_next_bill': None,   # derived from the average once merged
            'potential_savings': [dict(item) for item in prof['potential_savings']],
            'unusual_charges': [],
        },
        'recommendation': {
            'recommended_plan': prof['recommendation']['recommended_plan'],
            'reasons': list(prof['recommendation']['reasons']),
            'estimated_monthly_savings': prof['recommendation']['estimated_monthly_savings'],
            'confidence_score': prof['recommendation']['confidence_score'],
            'alternative_plans': [{
                'name': alt['name'],
                'monthly_cost': total * decimal_setting(alt['cost_factor']),
                'pros': list(alt['pros']),
                'cons': list(alt['cons']),
                'estimated_savings': alt['estimated_savings'],
            }],
        },
    }

def _placeholder_line(spec: Dict[str, Any], total: Decimal, customer_name: Optional[str]) -> PhoneLine:
    shares = spec['shares']
    return PhoneLine(
        device_name=spec['device_name'],
        phone_number=spec['phone_number'],
        plan_name=spec['plan_name'],
        monthly_total=total,
        details=LineDetails(
            plan_cost=total * decimal_setting(shares['plan_cost']),
            device_payment=total * decimal_setting(shares['device_payment']),
            protection=total * decimal_setting(shares['protection']),
        ),
        owner_name=customer_name or spec['owner_name'],
    )

def _example_lines(specs: List[Dict[str, Any]]) -> List[PhoneLine]:
    return [
        PhoneLine(
            device_name=s['device_name'],
            phone_number=s['phone_number'],
            plan_name=s['plan_name'],
            monthly_total=decimal_setting(s['monthly_total']),
            details=LineDetails(**{k: decimal_setting(v) for k, v in s.get('details', {}).items()}),
        )
        for s in specs
    ]

# -------------------- section builders --------------------

def _usage(values: Dict[str, Any]) -> UsageAnalysis:
    trend = to_text(values['trend'], 'stable').lower()
    if trend not in TRENDS:
        logger.debug(f"Unknown usage trend {trend!r}, using 'stable'")
        trend = 'stable'
    return UsageAnalysis(
        trend=trend,
        percentage_change=to_decimal(values['percentage_change']),
        avg_data_usage_gb=to_decimal(values['avg_data_usage_gb']),
        avg_talk_minutes=int(to_decimal(values['avg_talk_minutes'])),
        avg_text_messages=int(to_decimal(values['avg_text_messages'])),
    )

def _cost(values: Dict[str, Any], projection_factor: Decimal) -> CostAnalysis:
    average = to_decimal(values['average_monthly_bill'])
    projected = values['projected_next_bill']
    return CostAnalysis(
        average_monthly_bill=average,
        projected_next_bill=average * projection_factor if projected is None else to_decimal(projected),
        potential_savings=[_savings_item(i) for i in _objects(values['potential_savings'])],
        unusual_charges=[str(c) for c in _as_list(values['unusual_charges'])],
    )

def _savings_item(raw: Dict[str, Any]) -> SavingsItem:
    values = snake_keys(raw)
    return SavingsItem(description=to_text(values.get('description'), ''),
                       estimated_saving=to_decimal(values.get('estimated_saving')))

def _recommendation(values: Dict[str, Any]) -> PlanRecommendation:
    confidence = min(max(to_decimal(values['confidence_score']), Decimal(0)), Decimal(1))
    return PlanRecommendation(
        recommended_plan=to_text(values['recommended_plan'], ''),
        reasons=[str(r) for r in _as_list(values['reasons'])],
        estimated_monthly_savings=to_decimal(values['estimated_monthly_savings']),
        confidence_score=confidence,
        alternative_plans=[_alternative(p) for p in _objects(values['alternative_plans'])],
    )

def _alternative(raw: Dict[str, Any]) -> AlternativePlan:
    values = snake_keys(raw)
    return AlternativePlan(
        name=to_text(values.get('name'), ''),
        monthly_cost=to_decimal(values.get('monthly_cost')),
        pros=[str(p) for p in _as_list(values.get('pros'))],
        cons=[str(c) for c in _as_list(values.get('cons'))],
        estimated_savings=to_decimal(values.get('estimated_savings')),
    )

def _as_list(value) -> list:
    return value if isinstance(value, list) else []

def _objects(value) -> List[dict]:
    return [v for v in _as_list(value) if isinstance(v, dict)]
