from decimal import Decimal, ROUND_HALF_UP
from collections import defaultdict
from typing import Dict, Iterable, Optional
from .datatypes import (PhoneLine, LineDetails, CATEGORIES, PLAN_CHARGES,
                        DEVICE_PAYMENTS, SERVICES, TAXES_AND_FEES)
from .config import load_config, decimal_setting

def aggregate(phone_lines: Iterable[PhoneLine], tax_rate: Optional[Decimal] = None) -> Dict[str, Decimal]:
    """
    Sum per-line charges into the four display categories.

    Taxes & Fees is not read from the lines' tax fields; it is a flat
    ``tax_rate`` share of the other three categories combined.
    """
    if tax_rate is None:
        tax_rate = decimal_setting(load_config()['tax_rate'])

    totals = defaultdict(Decimal)
    for line in phone_lines:
        d = line.details
        totals[PLAN_CHARGES] += d.plan_cost - d.plan_discount
        totals[DEVICE_PAYMENTS] += d.device_payment - d.device_credit
        totals[SERVICES] += d.protection

    subtotal = totals[PLAN_CHARGES] + totals[DEVICE_PAYMENTS] + totals[SERVICES]
    totals[TAXES_AND_FEES] = subtotal * tax_rate
    return {cat: totals[cat] for cat in CATEGORIES}

def line_total(details: LineDetails) -> Decimal:
    """Everything billed on one line, credits and discounts taken off."""
    return (details.plan_cost - details.plan_discount
            + details.device_payment - details.device_credit
            + details.protection
            + details.perks - details.perks_discount
            + details.surcharges + details.taxes)

def round_cents(x) -> Decimal:  # round 2dp HALF_UP
    return Decimal(x).quantize(Decimal('0.01'), ROUND_HALF_UP)
