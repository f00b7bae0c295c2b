import re
import logging
from decimal import Decimal
from typing import List, Optional
from .config import load_config, load_carrier_plans, decimal_setting
from .datatypes import BillAnalysis, CarrierPlan, SavingsQuote

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r'[^a-z0-9]')

def estimate_savings(carrier_id: str, analysis: Optional[BillAnalysis]) -> SavingsQuote:
    """
    Quote the cost of moving every line on ``analysis`` to an alternative plan.

    The price is a flat per-line rate from config, whatever the matched plan
    lists. Savings are negative when the switch costs more than today's bill.
    """
    if analysis is None:
        return _zero_quote('N/A')

    number_of_lines = len(analysis.phone_lines) or 1
    cfg = load_config()
    plans = load_carrier_plans()

    plan_id = cfg['premium_plans'].get(_key(carrier_id)) or find_best_carrier_match(carrier_id, plans)
    plan = next((p for p in plans if p.id == plan_id), None)
    if plan is None:
        logger.info(f"No alternative plan matches carrier {carrier_id!r}")
        return _zero_quote('No matching plan')

    final_price = decimal_setting(cfg['per_line_rate']) * number_of_lines
    monthly_savings = analysis.total_amount - final_price
    logger.debug(f"{plan.name}: {number_of_lines} lines at ${final_price}, monthly savings ${monthly_savings}")
    return SavingsQuote(
        monthly_savings=monthly_savings,
        annual_savings=monthly_savings * 12,
        plan_name=plan.name,
        price=final_price,
    )

def find_best_carrier_match(carrier_id: str, plans: Optional[List[CarrierPlan]] = None) -> Optional[str]:
    """
    Resolve a free-form carrier name ("Verizon", "T-Mobile", "warp") to a plan id.

    Tries an exact plan id, then the underlying network, then a plan id
    starting with the given brand. Returns None when nothing fits.
    """
    if plans is None:
        plans = load_carrier_plans()
    key = _key(carrier_id)
    if not key:
        return None

    for p in plans:
        if _key(p.id) == key:
            return p.id

    network = network_for(key)
    if network:
        for p in plans:
            if p.network == network:
                return p.id

    for p in plans:
        if _key(p.id).startswith(key) or _key(p.name).startswith(key):
            return p.id
    return None

def network_for(name) -> Optional[str]:
    """Map a carrier name or alias ("AT&T", "vzw") to its network key."""
    key = _key(name)
    for network, aliases in load_config()['network_aliases'].items():
        if key == network or key in aliases:
            return network
    return None

def _key(value) -> str:
    if not isinstance(value, str):
        return ''
    return _NON_ALNUM.sub('', value.lower())

def _zero_quote(plan_name: str) -> SavingsQuote:
    return SavingsQuote(monthly_savings=Decimal(0), annual_savings=Decimal(0),
                        plan_name=plan_name, price=Decimal(0))
