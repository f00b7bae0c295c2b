'''
To Run:
python -m carrier_bill_analyzer.cli analyze VerizonBill.pdf --extractor-url https://.../analyze-verizon-bill
python -m carrier_bill_analyzer.cli manual lines.csv --carrier verizon
'''
import json
import click
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional
from carrier_bill_analyzer import persistence
from carrier_bill_analyzer.datatypes import BillAnalysis, SavingsQuote
from carrier_bill_analyzer.errors import AnalyzerError
from carrier_bill_analyzer.extraction import load_extraction_json
from carrier_bill_analyzer.manual_entry import ManualEntryForm, read_manual_lines
from carrier_bill_analyzer.normalizer import normalize
from carrier_bill_analyzer.records import MAX_AMOUNT_EXPONENT
from carrier_bill_analyzer.savings import estimate_savings
from carrier_bill_analyzer.session import AnalyzerSession, SessionState

CARRIERS = ['verizon', 'tmobile', 'att']

logger = logging.getLogger(__name__)

def format_analysis_report(analysis: BillAnalysis, quote: Optional[SavingsQuote] = None) -> str:
    """
    Format an analysis (and optional switch quote) as a plain-text report.
    """
    report_lines = []
    report_lines.append("=== WIRELESS BILL ANALYSIS ===")
    report_lines.append("")
    report_lines.append(f"Account: {analysis.account_number}")
    report_lines.append(f"Billing period: {analysis.billing_period}")
    report_lines.append(f"Total: ${analysis.total_amount:.2f}")
    report_lines.append("")

    report_lines.append(f"Phone lines ({len(analysis.phone_lines)}):")
    for line in analysis.phone_lines:
        owner = f" ({line.owner_name})" if line.owner_name else ""
        report_lines.append(f"  {line.phone_number} {line.device_name}{owner} - "
                            f"{line.plan_name}: ${line.monthly_total:.2f}")
    report_lines.append("")

    report_lines.append("Charges by category:")
    for category, amount in analysis.charges_by_category.items():
        report_lines.append(f"  {category}: ${amount:.2f}")
    report_lines.append("")

    cost = analysis.cost_analysis
    report_lines.append(f"Projected next bill: ${cost.projected_next_bill:.2f}")
    for item in cost.potential_savings:
        report_lines.append(f"  {item.description}: save ${item.estimated_saving:.2f}")

    rec = analysis.plan_recommendation
    report_lines.append("")
    report_lines.append(f"Recommended plan: {rec.recommended_plan} "
                        f"(confidence {rec.confidence_score:.0%})")
    for reason in rec.reasons:
        report_lines.append(f"  - {reason}")

    if quote is not None:
        report_lines.append("")
        report_lines.append(f"Switch to {quote.plan_name}: ${quote.price:.2f}/month")
        if quote.monthly_savings >= 0:
            report_lines.append(f"  Saves ${quote.monthly_savings:.2f}/month, ${quote.annual_savings:.2f}/year")
        else:
            report_lines.append(f"  Costs ${abs(quote.monthly_savings):.2f}/month more")

    return "\n".join(report_lines)

def _emit(analysis: BillAnalysis, carrier: Optional[str], as_json: bool) -> None:
    quote = estimate_savings(carrier, analysis) if carrier else None
    if as_json:
        out = {'analysis': persistence.analysis_to_dict(analysis)}
        if quote is not None:
            out['quote'] = persistence.quote_to_dict(quote)
        click.echo(json.dumps(out, indent=2))
    else:
        click.echo(format_analysis_report(analysis, quote))

def _saver(store: Optional[Path]):
    if store is None:
        return None
    return lambda analysis: persistence.save_analysis(store, analysis)

def _parse_total(ctx, param, value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        amount = Decimal(value.replace('$', '').replace(',', '').strip())
    except InvalidOperation:
        raise click.BadParameter(f"{value!r} is not a dollar amount")
    if not amount.is_finite() or abs(amount.adjusted()) > MAX_AMOUNT_EXPONENT:
        raise click.BadParameter(f"{value!r} is not a dollar amount")
    return amount

@click.group()
@click.option('--verbose', is_flag=True, help='Show debug logging')
def main(verbose):
    """Analyze wireless bills and quote an alternative carrier plan."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format='%(levelname)s: %(message)s')

@main.command()
@click.argument('bill', type=click.Path(exists=True, path_type=Path))
@click.option('--extractor-url', envvar='BILL_EXTRACTOR_URL', required=True, help='Bill extraction service endpoint')
@click.option('--api-key', envvar='BILL_EXTRACTOR_KEY', default=None, help='Extraction service API key')
@click.option('--carrier', type=str, default=None, help='Quote a switch to this carrier')
@click.option('--store', type=click.Path(path_type=Path), default=None, help='Append the analysis to this CSV store')
@click.option('--json', 'as_json', is_flag=True, help='Print canonical JSON instead of a report')
def analyze(bill, extractor_url, api_key, carrier, store, as_json):
    """Send a bill PDF to the extraction service and analyze the result."""
    session = AnalyzerSession(saver=_saver(store))
    if not as_json:
        click.echo(f"📄 Analyzing {bill.name}...", err=True)
    session.analyze_upload(bill, url=extractor_url, api_key=api_key)
    if session.state is SessionState.FAILED:
        raise click.ClickException(f"Failed to analyze bill: {session.error_message}")
    _emit(session.analysis, carrier, as_json)

@main.command('normalize')
@click.argument('payload', type=click.Path(exists=True, path_type=Path))
@click.option('--carrier', type=str, default=None, help='Quote a switch to this carrier')
@click.option('--store', type=click.Path(path_type=Path), default=None, help='Append the analysis to this CSV store')
@click.option('--json', 'as_json', is_flag=True, help='Print canonical JSON instead of a report')
def normalize_cmd(payload, carrier, store, as_json):
    """Analyze a saved extraction JSON payload."""
    try:
        data = load_extraction_json(payload)
    except AnalyzerError as e:
        raise click.ClickException(str(e))
    session = AnalyzerSession(saver=_saver(store))
    session.analyze_payload(data)
    _emit(session.analysis, carrier, as_json)

@main.command()
@click.argument('lines_csv', type=click.Path(exists=True, path_type=Path))
@click.option('--carrier', type=click.Choice(CARRIERS), default=None, help='Network that works best in your area (required)')
@click.option('--total', type=str, default=None, callback=_parse_total, help='Bill total, if different from the sum of the lines')
@click.option('--store', type=click.Path(path_type=Path), default=None, help='Append the analysis to this CSV store')
@click.option('--json', 'as_json', is_flag=True, help='Print canonical JSON instead of a report')
def manual(lines_csv, carrier, total, store, as_json):
    """Analyze line charges entered by hand in a CSV file."""
    form = ManualEntryForm(
        phone_lines=read_manual_lines(lines_csv),
        network_preference=carrier,
        total_amount=total,
    )
    session = AnalyzerSession(saver=_saver(store))
    try:
        analysis = session.submit_manual(form)
    except AnalyzerError as e:
        raise click.ClickException(str(e))
    if not as_json:
        click.echo("✔ Manual bill data analyzed", err=True)
    _emit(analysis, carrier, as_json)

@main.command()
@click.argument('payload', type=click.Path(exists=True, path_type=Path))
@click.argument('carrier')
def quote(payload, carrier):
    """Quote a carrier switch for a saved extraction payload."""
    try:
        analysis = normalize(load_extraction_json(payload))
    except AnalyzerError as e:
        raise click.ClickException(str(e))
    q = estimate_savings(carrier, analysis)
    click.echo(json.dumps(persistence.quote_to_dict(q), indent=2))

if __name__ == '__main__':
    main()
