import json
import pandas as pd
from pathlib import Path
from .datatypes import BillAnalysis, PhoneLine, SavingsQuote
from .aggregator import round_cents
from .records import DETAIL_KEYS
import logging

logger = logging.getLogger(__name__)

# Column order of the analyses CSV
COLUMNS = [
    'account_number',
    'billing_period',
    'total_amount',
    'analysis_data',
]

def save_analysis(csv_path: Path, analysis: BillAnalysis) -> bool:
    """Append one analysis to the store. Failures are logged, never raised."""
    try:
        df_new = pd.DataFrame([_analysis_to_row(analysis)], columns=COLUMNS)
        if csv_path.exists():
            df_old = pd.read_csv(csv_path, dtype=str)
            df_new = pd.concat([df_old, df_new], ignore_index=True)
        df_new.to_csv(csv_path, index=False)
    except Exception as e:
        logger.error(f"Error saving bill analysis to {csv_path}: {e}")
        return False
    logger.info(f"Saved analysis for account {analysis.account_number} to {csv_path}")
    return True

def read_analyses(csv_path: Path) -> list[dict]:
    """Read stored analyses back as canonical dicts (newest last)."""
    if not csv_path.exists():
        logger.info(f"Analysis store {csv_path} does not exist, returning no analyses")
        return []

    df = pd.read_csv(csv_path, dtype=str)
    logger.debug(f"Read {len(df)} rows from {csv_path}")
    return [json.loads(row['analysis_data']) for _, row in df.iterrows()]

def _analysis_to_row(analysis: BillAnalysis) -> dict:
    """Convert a BillAnalysis to dictionary format for CSV writing"""
    return {
        'account_number': analysis.account_number,
        'billing_period': analysis.billing_period,
        'total_amount': _format_money(analysis.total_amount),
        'analysis_data': json.dumps(analysis_to_dict(analysis)),
    }

def analysis_to_dict(analysis: BillAnalysis) -> dict:
    """Canonical camelCase JSON form, money rounded to cents."""
    usage = analysis.usage_analysis
    cost = analysis.cost_analysis
    rec = analysis.plan_recommendation
    return {
        'accountNumber': analysis.account_number,
        'billingPeriod': analysis.billing_period,
        'totalAmount': _money(analysis.total_amount),
        'customerName': analysis.customer_name,
        'billVersion': analysis.bill_version,
        'ocrProvider': analysis.ocr_provider,
        'networkPreference': analysis.network_preference,
        'usageAnalysis': {
            'trend': usage.trend,
            'percentageChange': float(usage.percentage_change),
            'avg_data_usage_gb': float(usage.avg_data_usage_gb),
            'avg_talk_minutes': usage.avg_talk_minutes,
            'avg_text_messages': usage.avg_text_messages,
        },
        'costAnalysis': {
            'averageMonthlyBill': _money(cost.average_monthly_bill),
            'projectedNextBill': _money(cost.projected_next_bill),
            'unusualCharges': list(cost.unusual_charges),
            'potentialSavings': [
                {'description': s.description, 'estimatedSaving': _money(s.estimated_saving)}
                for s in cost.potential_savings
            ],
        },
        'planRecommendation': {
            'recommendedPlan': rec.recommended_plan,
            'reasons': list(rec.reasons),
            'estimatedMonthlySavings': _money(rec.estimated_monthly_savings),
            'confidenceScore': float(rec.confidence_score),
            'alternativePlans': [
                {
                    'name': p.name,
                    'monthlyCost': _money(p.monthly_cost),
                    'pros': list(p.pros),
                    'cons': list(p.cons),
                    'estimatedSavings': _money(p.estimated_savings),
                }
                for p in rec.alternative_plans
            ],
        },
        'phoneLines': [_line_to_dict(line) for line in analysis.phone_lines],
        'chargesByCategory': {cat: _money(amt) for cat, amt in analysis.charges_by_category.items()},
        'upcomingChanges': list(analysis.upcoming_changes),
    }

def quote_to_dict(quote: SavingsQuote) -> dict:
    return {
        'monthlySavings': _money(quote.monthly_savings),
        'annualSavings': _money(quote.annual_savings),
        'planName': quote.plan_name,
        'price': _money(quote.price),
    }

def _line_to_dict(line: PhoneLine) -> dict:
    out = {
        'deviceName': line.device_name,
        'phoneNumber': line.phone_number,
        'planName': line.plan_name,
        'monthlyTotal': _money(line.monthly_total),
        'details': {key: _money(getattr(line.details, field)) for field, key in DETAIL_KEYS.items()},
    }
    if line.owner_name:
        out['ownerName'] = line.owner_name
    return out

def _money(amount) -> float:
    return float(round_cents(amount))

def _format_money(amount):
    """Format money amount with $ prefix"""
    return f'${round_cents(amount):.2f}'
