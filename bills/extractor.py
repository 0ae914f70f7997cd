"""
Bill Text Extractor
===================
Heuristic, regex-driven extraction of billing facts from raw bill text.

Each field is resolved by an ordered tuple of independent strategies; the
first strategy that returns a value wins. Every strategy is total: a miss
returns None, never raises. Output is best-effort and always tagged
low-confidence.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Callable, Optional, Sequence, Tuple

from .models import AuditMeta, BillAudit, BillingPeriod, BillTotals, BillUsage, Quantity
from .money import compile_labels, extract_money
from .text_cleaner import CleaningResult, TextCleaner
from .utilities import identify_utility, normalize_utility_name

logger = logging.getLogger(__name__)

_cleaner = TextCleaner()

Strategy = Callable[[CleaningResult], Optional[object]]


def first_success(strategies: Sequence[Strategy], doc: CleaningResult):
    for strategy in strategies:
        value = strategy(doc)
        if value is not None:
            return value
    return None


def _regex_strategy(pattern: str, flags: int = re.IGNORECASE, group: int = 1) -> Strategy:
    compiled = re.compile(pattern, flags)

    def _search(doc: CleaningResult) -> Optional[str]:
        match = compiled.search(doc.text)
        if not match:
            return None
        value = match.group(group).strip()
        return value or None

    return _search


# ========== CHARGES ==========
# Label phrases per money concept. Order inside a concept does not matter;
# the scan order is the document's line order.
TOTAL_DUE_LABELS = compile_labels([
    r"total\s*amount\s*due",
    r"total\s*amount\s*you\s*owe",
    r"total\s*amount\s*owed",
    r"total\s*due",
    r"amount\s*(?:now\s*)?due",
    r"balance\s*due",
    r"please\s*pay",
])
DELIVERY_LABELS = compile_labels([
    r"(?:electric\s*|gas\s*)?(?:delivery|distribution)\s*(?:charges?|services?)",
])
SUPPLY_LABELS = compile_labels([
    r"(?:electric\s*|gas\s*)?supply\s*(?:charges?|services?)",
    r"generation\s*charges?",
])
TAX_LABELS = compile_labels([
    r"sales\s*tax",
    r"gross\s*receipts\s*tax",
    r"\bGRT\b",
    r"total\s*taxes",
    r"taxes\s*(?:and|&)\s*(?:fees|surcharges)",
])
BASIC_SERVICE_LABELS = compile_labels([
    r"basic\s*(?:service|customer)\s*charge",
    r"customer\s*charge",
])
ADJUSTMENT_LABELS = compile_labels([
    r"(?:fuel|monthly|rate|rider)\s*(?:adj(?:ustment)?|factor)",
])


def extract_totals(doc: CleaningResult) -> BillTotals:
    lines, text = doc.lines, doc.text
    return BillTotals(
        total_due=extract_money(lines, text, TOTAL_DUE_LABELS, fallback_to_max=True),
        delivery_charges=extract_money(lines, text, DELIVERY_LABELS),
        supply_charges=extract_money(lines, text, SUPPLY_LABELS),
        taxes=extract_money(lines, text, TAX_LABELS),
        basic_service_charge=extract_money(lines, text, BASIC_SERVICE_LABELS),
        adjustments=extract_money(lines, text, ADJUSTMENT_LABELS),
    )


# ========== BILLING PERIOD ==========
_LONG_DATE = r"[A-Za-z]{3,9}\.?\s*\d{1,2},?\s*\d{4}"
_NUMERIC_DATE = r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"
_DATE_JOIN = r"\s*(?:to|-|–)\s*"

PERIOD_PATTERNS: Tuple[re.Pattern, ...] = (
    # "Billing period: Sep 3, 2024 to Oct 2, 2024"
    re.compile(rf"billing\s*period[:\s]*(?P<start>{_LONG_DATE}){_DATE_JOIN}(?P<end>{_LONG_DATE})", re.IGNORECASE),
    # "09/03/2024 - 10/02/2024" anywhere
    re.compile(rf"(?<![\d/-])(?P<start>{_NUMERIC_DATE}){_DATE_JOIN}(?P<end>{_NUMERIC_DATE})(?![\d/-])", re.IGNORECASE),
    # "Service from Sep 3, 2024 to Oct 2, 2024"
    re.compile(rf"service\s*(?:from|period)[:\s]*(?P<start>{_LONG_DATE}){_DATE_JOIN}(?P<end>{_LONG_DATE})", re.IGNORECASE),
)


def extract_billing_period(doc: CleaningResult) -> BillingPeriod:
    for pattern in PERIOD_PATTERNS:
        match = pattern.search(doc.text)
        if match:
            return BillingPeriod(start=match.group("start").strip(), end=match.group("end").strip())
    return BillingPeriod()


# ========== USAGE ==========
_QTY = r"(?<![\d.,$])(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"

KWH_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(rf"Total\s*(?:Electric(?:ity)?\s*)?(?:Use|Usage|Consumption)[:\s]*{_QTY}\s*kWh\b", re.IGNORECASE),
    re.compile(rf"{_QTY}\s*kWh\b", re.IGNORECASE),
)
THERM_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(rf"Total\s*Gas\s*(?:Use|Usage|Consumption)[:\s]*{_QTY}\s*therms?\b", re.IGNORECASE),
    # "1.037 therm factor" is a multiplier, not usage
    re.compile(rf"{_QTY}\s*therms?\b(?!\s*(?:conversion\s*)?(?:factor|multiplier))", re.IGNORECASE),
)
CCF_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(rf"Total\s*Gas\s*(?:Use|Usage|Consumption)[:\s]*{_QTY}\s*ccf\b", re.IGNORECASE),
    re.compile(rf"{_QTY}\s*ccf\b", re.IGNORECASE),
)
CONVERSION_FACTOR_PATTERNS: Tuple[re.Pattern, ...] = (
    # "Therm factor: 1.037"
    re.compile(
        r"(?:therms?|btu|conversion)\s*(?:conversion\s*)?(?:factor|multiplier)[:\s=x]*(\d*\.\d+|\d+)",
        re.IGNORECASE,
    ),
    # "100 CCF x 1.037 therm factor"
    re.compile(
        r"(?<![\d.,])(\d*\.\d+|\d+)\s*(?:therms?|btu)\s*(?:conversion\s*)?(?:factor|multiplier)\b",
        re.IGNORECASE,
    ),
)


def parse_quantity(raw: Optional[str]) -> Optional[Quantity]:
    """'1,234' -> 1234, '12.5' -> 12.5; whole numbers come back as int."""
    if raw is None:
        return None
    try:
        value = float(str(raw).replace(",", "").strip())
    except ValueError:
        return None
    if value < 0 or not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def _first_quantity(patterns: Sequence[re.Pattern], text: str) -> Optional[Quantity]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = parse_quantity(match.group(1))
            if value is not None:
                return value
    return None


def extract_conversion_factor(text: str) -> Optional[float]:
    for pattern in CONVERSION_FACTOR_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        try:
            factor = float(match.group(1))
        except ValueError:
            continue
        if factor > 0 and math.isfinite(factor):
            return factor
    return None


def extract_usage(doc: CleaningResult) -> BillUsage:
    text = doc.text
    kwh = _first_quantity(KWH_PATTERNS, text)
    therms = _first_quantity(THERM_PATTERNS, text)
    ccf = _first_quantity(CCF_PATTERNS, text)

    derived = False
    if therms is None and ccf is not None:
        factor = extract_conversion_factor(text)
        if factor is not None:
            therms = parse_quantity(str(round(ccf * factor, 2)))
            derived = therms is not None

    return BillUsage(electricity_kwh=kwh, gas_therms=therms, gas_ccf=ccf, therms_derived=derived)


# ========== ACCOUNT NUMBER ==========
_ACCOUNT_VALUE = r"(\d[\d\-]{5,})"
# Value on the label line or the line right below it.
_ACCOUNT_SEP = r"[:#\t ]*(?:\n[:#\t ]*)?"
ACCOUNT_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(rf"Account\s*(?:Number|No\.?|#){_ACCOUNT_SEP}{_ACCOUNT_VALUE}", re.IGNORECASE),
    re.compile(rf"Acct(?:\.|ount)?\s*(?:Number|No\.?|#)?{_ACCOUNT_SEP}{_ACCOUNT_VALUE}", re.IGNORECASE),
    re.compile(rf"Account(?=[:\s]){_ACCOUNT_SEP}{_ACCOUNT_VALUE}", re.IGNORECASE),
)
_DASHED_DATE = re.compile(r"\d{1,2}-\d{1,2}-(?:\d{2}|\d{4})|\d{4}-\d{1,2}-\d{1,2}")


def extract_account_number(doc: CleaningResult) -> Optional[str]:
    for pattern in ACCOUNT_PATTERNS:
        for match in pattern.finditer(doc.text):
            account = match.group(1).strip("-")
            if len(account) >= 6 and not _DASHED_DATE.fullmatch(account):
                return account
    return None


# ========== CUSTOMER / ADDRESS / DUE DATE ==========
CUSTOMER_STRATEGIES: Tuple[Strategy, ...] = (
    _regex_strategy(r"Customer\s*Name[:\s]*([^\n]+?)\s*(?:\n|$)"),
    _regex_strategy(r"^([A-Z0-9][A-Z0-9 .,'&-]{2,}?)\s+Account\s*Number", re.MULTILINE),
)
SERVICE_ADDRESS_STRATEGIES: Tuple[Strategy, ...] = (
    _regex_strategy(r"Service\s*(?:Address|Location|delivered\s*to)[:\s]*([^\n]+?)\s*(?:\n|$)"),
)
DUE_DATE_STRATEGIES: Tuple[Strategy, ...] = tuple(
    _regex_strategy(rf"{label}\s*[:\-]?\s*({date})")
    for label in (r"Due\s*Date", r"Payment\s*Due(?:\s*Date)?", r"(?:Please\s*)?Pay\s*By")
    for date in (_NUMERIC_DATE, _LONG_DATE)
)


# ========== ASSEMBLY ==========
def extract_bill_audit(raw_text: Optional[str], *, utility: Optional[str] = None) -> BillAudit:
    """
    Extract a BillAudit from raw bill text.

    Args:
        raw_text: Full text of the bill (may be empty or None)
        utility: Optional caller-supplied utility name; canonicalized and used
            instead of text-based identification

    Returns:
        BillAudit; fields that could not be recovered are None
    """
    doc = _cleaner.clean(raw_text or "")

    audit = BillAudit(
        utility=normalize_utility_name(utility) if utility else identify_utility(doc.text),
        account_number=extract_account_number(doc),
        customer=first_success(CUSTOMER_STRATEGIES, doc),
        service_address=first_success(SERVICE_ADDRESS_STRATEGIES, doc),
        due_date=first_success(DUE_DATE_STRATEGIES, doc),
        billing_period=extract_billing_period(doc),
        totals=extract_totals(doc),
        usage=extract_usage(doc),
        meta=AuditMeta(),
    )

    logger.debug(
        "bill audit: utility=%s account=%s period=%s total_due=%s kwh=%s therms=%s ccf=%s lines=%s",
        audit.utility,
        bool(audit.account_number),
        bool(audit.billing_period.start),
        audit.totals.total_due,
        audit.usage.electricity_kwh,
        audit.usage.gas_therms,
        audit.usage.gas_ccf,
        doc.stats.get("lines_kept"),
    )
    return audit
