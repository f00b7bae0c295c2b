"""
Boundary between extraction payloads and the normalizer.

A payload from the extraction service (or a saved JSON file) is loosely typed:
any key may be missing, null, or of the wrong type. ``parse_raw_record`` looks
at it once and returns either an ``EnhancedBill`` (the service already ran its
own analysis) or a ``MinimalBill`` (everything else). Downstream code only
ever sees these two dataclasses.
"""

import re
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from .config import load_config
from .datatypes import EnhancedBill, LineDetails, MinimalBill, PhoneLine, RawBillRecord

logger = logging.getLogger(__name__)

# snake_case field → camelCase payload key
DETAIL_KEYS = {
    'plan_cost': 'planCost',
    'plan_discount': 'planDiscount',
    'device_payment': 'devicePayment',
    'device_credit': 'deviceCredit',
    'protection': 'protection',
    'perks': 'perks',
    'perks_discount': 'perksDiscount',
    'surcharges': 'surcharges',
    'taxes': 'taxes',
}

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')

# no bill amount comes anywhere near 10**15; larger exponents overflow later arithmetic
MAX_AMOUNT_EXPONENT = 15

def to_decimal(value: Any) -> Decimal:
    """Coerce a payload value to Decimal, falling back to 0.

    Accepts ints, floats, Decimals and strings such as "$1,204.50".
    Anything else (None, booleans, lists, garbage text) becomes 0, as do
    non-finite values and amounts with absurd exponents like "1e1000000".
    """
    if value is None or isinstance(value, bool):
        return Decimal(0)
    if isinstance(value, Decimal):
        return _bounded(value, value)
    if isinstance(value, int):
        return _bounded(Decimal(value), value)
    if isinstance(value, float):
        value = str(value)
    if not isinstance(value, str):
        return Decimal(0)

    clean_str = value.replace('$', '').replace(',', '').strip()
    if clean_str == '':
        return Decimal(0)
    try:
        amount = Decimal(clean_str)
    except InvalidOperation:
        logger.warning(f"Could not parse amount: {value!r}")
        return Decimal(0)
    return _bounded(amount, value)

def _bounded(amount: Decimal, original: Any) -> Decimal:
    if not amount.is_finite():
        return Decimal(0)
    if abs(amount.adjusted()) > MAX_AMOUNT_EXPONENT:
        logger.warning(f"Amount out of range: {original!r}")
        return Decimal(0)
    return amount

def to_text(value: Any, default: Optional[str] = None) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default

def snake_keys(values: Dict[str, Any]) -> Dict[str, Any]:
    return {_CAMEL_BOUNDARY.sub('_', str(k)).lower(): v for k, v in values.items()}

def merge_with_defaults(defaults: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Fill every key of ``defaults`` from ``overrides`` where it carries a value.

    Override keys may be camelCase; unknown keys are dropped and ``None``
    never replaces a default.
    """
    merged = dict(defaults)
    if not isinstance(overrides, dict):
        return merged
    for key, value in snake_keys(overrides).items():
        if key in merged and value is not None:
            merged[key] = value
    return merged

def parse_line_details(raw: Any) -> LineDetails:
    if not isinstance(raw, dict):
        return LineDetails()
    return LineDetails(**{field: to_decimal(raw.get(key)) for field, key in DETAIL_KEYS.items()})

def parse_phone_line(raw: Any) -> Optional[PhoneLine]:
    if not isinstance(raw, dict):
        return None
    return PhoneLine(
        device_name=to_text(raw.get('deviceName'), 'Unknown Device'),
        phone_number=to_text(raw.get('phoneNumber'), 'Unknown'),
        plan_name=to_text(raw.get('planName'), 'Unknown Plan'),
        monthly_total=to_decimal(raw.get('monthlyTotal')),
        details=parse_line_details(raw.get('details')),
        owner_name=to_text(raw.get('ownerName')),
    )

def parse_phone_lines(raw: Any) -> List[PhoneLine]:
    if not isinstance(raw, list):
        return []
    lines = []
    for entry in raw:
        line = parse_phone_line(entry)
        if line is None:
            logger.debug(f"Skipping phone line entry that is not an object: {entry!r}")
            continue
        lines.append(line)
    return lines

def parse_raw_record(payload: Any) -> RawBillRecord:
    """Decide which bill variant a payload is and coerce its common fields."""
    if not isinstance(payload, dict):
        logger.warning(f"Bill payload is {type(payload).__name__}, not an object; treating as empty")
        return MinimalBill()

    account_info = payload.get('accountInfo')
    if not isinstance(account_info, dict):
        account_info = {}

    total = payload.get('totalAmount')
    upcoming = payload.get('upcomingChanges')
    common = dict(
        account_number=to_text(payload.get('accountNumber')) or to_text(account_info.get('accountNumber')),
        billing_period=to_text(payload.get('billingPeriod')) or to_text(account_info.get('billingPeriod')),
        total_amount=None if total is None else to_decimal(total),
        customer_name=to_text(account_info.get('customerName')) or to_text(payload.get('customerName')),
        phone_lines=parse_phone_lines(payload.get('phoneLines')),
        bill_version=to_text(payload.get('billVersion'), ''),
        ocr_provider=to_text(payload.get('ocrProvider')),
        network_preference=to_text(payload.get('networkPreference')),
        upcoming_changes=[str(c) for c in upcoming] if isinstance(upcoming, list) else [],
    )

    marker = load_config()['enhanced_marker']
    if marker in common['bill_version'] and common['phone_lines']:
        logger.debug(f"Payload {common['bill_version']!r} is in enhanced format")
        return EnhancedBill(
            usage_analysis=_section(payload, 'usageAnalysis'),
            cost_analysis=_section(payload, 'costAnalysis'),
            plan_recommendation=_section(payload, 'planRecommendation'),
            **common,
        )
    return MinimalBill(**common)

def _section(payload: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    value = payload.get(key)
    return value if isinstance(value, dict) else None
