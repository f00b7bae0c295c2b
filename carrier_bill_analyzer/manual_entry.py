import logging
import pandas as pd
from dataclasses import dataclass, field, replace
from datetime import date
from pathlib import Path
from typing import List, Optional
from .aggregator import line_total
from .config import load_config
from .datatypes import BillAnalysis, LineDetails, MinimalBill, Money, PhoneLine
from .errors import ValidationError
from .normalizer import normalize
from .records import DETAIL_KEYS, to_decimal

logger = logging.getLogger(__name__)

MANUAL_ACCOUNT = 'Manual Entry'
MANUAL_VERSION = 'Manual Entry v1.0'
MANUAL_CUSTOMER = 'Manual Entry User'

@dataclass
class ManualEntryForm:
    phone_lines: List[PhoneLine] = field(default_factory=list)
    network_preference: Optional[str] = None   # which network works best where the customer lives
    total_amount: Optional[Money] = None       # defaults to the sum of the lines

def analyze_manual_entry(form: ManualEntryForm, today: Optional[date] = None) -> BillAnalysis:
    """
    Build an analysis from hand-entered line charges.

    The carrier preference is required and must be one of the configured
    network keys (``verizon``, ``tmobile``, ``att``). At least one line must
    be entered. Otherwise nothing is built and ``ValidationError`` is raised.
    """
    network = (form.network_preference or '').strip().lower()
    if network not in load_config()['network_aliases']:
        raise ValidationError("Please select which carrier works best in your area")
    if not form.phone_lines:
        raise ValidationError("Please enter at least one line")

    lines = [_with_total(line) for line in form.phone_lines]
    total = form.total_amount if form.total_amount is not None else sum((l.monthly_total for l in lines), Money(0))
    today = today or date.today()
    logger.info(f"Analyzing manual entry: {len(lines)} lines, total ${total}, network {network}")

    record = MinimalBill(
        account_number=MANUAL_ACCOUNT,
        billing_period=today.strftime('%m/%d/%Y'),
        total_amount=total,
        customer_name=MANUAL_CUSTOMER,
        phone_lines=lines,
        bill_version=MANUAL_VERSION,
        network_preference=network,
    )
    return normalize(record, profile='manual')

def read_manual_lines(csv_path: Path) -> List[PhoneLine]:
    """Read manual line charges from a CSV, one row per phone line.

    Expected columns: device_name, phone_number, plan_name and any of the
    detail fields (plan_cost, plan_discount, ...). monthly_total and
    owner_name are optional.
    """
    df = pd.read_csv(csv_path, dtype=str)
    logger.debug(f"Read {len(df)} manual lines from {csv_path}")

    lines = []
    for i, row in df.iterrows():
        details = LineDetails(**{name: to_decimal(_cell(row, name)) for name in DETAIL_KEYS})
        lines.append(PhoneLine(
            device_name=_cell(row, 'device_name') or f'Line {i + 1}',
            phone_number=_cell(row, 'phone_number') or 'Unknown',
            plan_name=_cell(row, 'plan_name') or 'Unknown Plan',
            monthly_total=to_decimal(_cell(row, 'monthly_total')),
            details=details,
            owner_name=_cell(row, 'owner_name'),
        ))
    return lines

def _with_total(line: PhoneLine) -> PhoneLine:
    if line.monthly_total:
        return line
    return replace(line, monthly_total=line_total(line.details))

def _cell(row, column) -> Optional[str]:
    value = row.get(column)
    if value is None or pd.isna(value) or str(value).strip() == '':
        return None
    return str(value).strip()
