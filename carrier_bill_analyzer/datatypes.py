from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Dict, Optional, Union

Money = Decimal       # keep full-precision cents

PLAN_CHARGES = "Plan Charges"
DEVICE_PAYMENTS = "Device Payments"
SERVICES = "Services & Add-ons"
TAXES_AND_FEES = "Taxes & Fees"
CATEGORIES = (PLAN_CHARGES, DEVICE_PAYMENTS, SERVICES, TAXES_AND_FEES)

TRENDS = ("stable", "increasing", "decreasing")

@dataclass
class LineDetails:
    plan_cost: Money = Money(0)
    plan_discount: Money = Money(0)
    device_payment: Money = Money(0)     # installment before credits
    device_credit: Money = Money(0)      # promo credit against the installment
    protection: Money = Money(0)         # insurance / device protection
    perks: Money = Money(0)
    perks_discount: Money = Money(0)
    surcharges: Money = Money(0)
    taxes: Money = Money(0)

@dataclass
class PhoneLine:
    device_name: str             # "iPhone 15"
    phone_number: str            # as printed on the bill
    plan_name: str
    monthly_total: Money
    details: LineDetails = field(default_factory=LineDetails)
    owner_name: Optional[str] = None

@dataclass
class UsageAnalysis:
    trend: str                   # "stable" | "increasing" | "decreasing"
    percentage_change: Decimal
    avg_data_usage_gb: Decimal
    avg_talk_minutes: int
    avg_text_messages: int

@dataclass
class SavingsItem:
    description: str
    estimated_saving: Money

@dataclass
class CostAnalysis:
    average_monthly_bill: Money
    projected_next_bill: Money
    potential_savings: List[SavingsItem] = field(default_factory=list)
    unusual_charges: List[str] = field(default_factory=list)

@dataclass
class AlternativePlan:
    name: str
    monthly_cost: Money
    pros: List[str] = field(default_factory=list)
    cons: List[str] = field(default_factory=list)
    estimated_savings: Money = Money(0)

@dataclass
class PlanRecommendation:
    recommended_plan: str
    reasons: List[str]
    estimated_monthly_savings: Money
    confidence_score: Decimal    # 0..1
    alternative_plans: List[AlternativePlan] = field(default_factory=list)

@dataclass
class BillAnalysis:
    account_number: str
    billing_period: str
    total_amount: Money
    usage_analysis: UsageAnalysis
    cost_analysis: CostAnalysis
    plan_recommendation: PlanRecommendation
    phone_lines: List[PhoneLine]
    charges_by_category: Dict[str, Money]     # category name → total
    bill_version: str = ""
    ocr_provider: str = "standard"
    customer_name: str = ""
    network_preference: Optional[str] = None  # "verizon" | "tmobile" | "att"
    upcoming_changes: List[str] = field(default_factory=list)

@dataclass
class SavingsQuote:
    monthly_savings: Money       # negative when switching costs more
    annual_savings: Money
    plan_name: str
    price: Money

@dataclass
class CarrierPlan:
    id: str                      # "warp-premium"
    name: str                    # "Warp Premium"
    network: str                 # underlying network, "verizon" | "tmobile" | "att"
    price_per_line: Money
    features: List[str] = field(default_factory=list)

# -------------------- raw input variants --------------------

@dataclass
class _RawBill:
    account_number: Optional[str] = None
    billing_period: Optional[str] = None
    total_amount: Optional[Money] = None
    customer_name: Optional[str] = None
    phone_lines: List[PhoneLine] = field(default_factory=list)
    bill_version: str = ""
    ocr_provider: Optional[str] = None
    network_preference: Optional[str] = None
    upcoming_changes: List[str] = field(default_factory=list)

@dataclass
class MinimalBill(_RawBill):
    """Partial extraction or manual entry; analysis sections get synthesized."""

@dataclass
class EnhancedBill(_RawBill):
    """Already-analyzed extraction; its own sections are kept when present."""
    usage_analysis: Optional[dict] = None
    cost_analysis: Optional[dict] = None
    plan_recommendation: Optional[dict] = None

RawBillRecord = Union[MinimalBill, EnhancedBill]
