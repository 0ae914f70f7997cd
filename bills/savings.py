"""
Supply-rate savings calculator.

Rate policy: an explicit, finite current rate from the caller always wins.
Without one, the current rate is inferred as supply charges / monthly
quantity. No reference constant is ever substituted, and the offer rate is
never inferred. Missing inputs yield an "insufficient data" result, not zeros.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Optional, Tuple

from .models import BillAudit, Quantity, SavingsResult

logger = logging.getLogger(__name__)

# (unit, commodity, BillUsage attribute) in preference order.
UNIT_PREFERENCE: Tuple[Tuple[str, str, str], ...] = (
    ("kWh", "electric", "electricity_kwh"),
    ("therms", "gas", "gas_therms"),
    ("ccf", "gas", "gas_ccf"),
)
TERM_YEARS: Tuple[int, ...] = (2, 3, 4, 5)
MONTHS_PER_YEAR = 12

CENTS = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")

# Reported in ``missing`` when usage x rate is too large to price to the cent.
OUT_OF_RANGE = "outOfRange"


def coerce_rate(value: Any) -> Optional[float]:
    """
    Parse a caller-supplied $/unit rate.

    Numbers and numeric strings ('1.20', '$0.69', ' 1,200.5 ') are accepted.
    None, blanks, booleans, junk, NaN and infinities all mean "absent".
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        rate = float(value)
    else:
        cleaned = re.sub(r"[$,\s]", "", str(value))
        if not cleaned:
            return None
        try:
            rate = float(cleaned)
        except ValueError:
            return None
    return rate if math.isfinite(rate) else None


def _to_decimal(value: Quantity) -> Decimal:
    return Decimal(str(value))


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def select_quantity(audit: BillAudit) -> Tuple[Optional[str], Optional[str], Optional[Quantity]]:
    """First available finite usage in kWh > therms > ccf order as (unit, commodity, quantity)."""
    for unit, commodity, attr in UNIT_PREFERENCE:
        quantity = getattr(audit.usage, attr)
        if quantity is not None and math.isfinite(quantity):
            return unit, commodity, quantity
    return None, None, None


def infer_current_rate(audit: BillAudit, quantity: Optional[Quantity]) -> Optional[float]:
    """Effective rate = supply charges / quantity, when both exist and the quotient is finite."""
    supply = audit.totals.supply_charges
    if supply is None or quantity is None or quantity <= 0:
        return None
    try:
        rate = (_to_decimal(supply) / _to_decimal(quantity)).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ZeroDivisionError):
        return None
    rate = float(rate)
    return rate if math.isfinite(rate) else None


def compute_savings(audit: BillAudit, current_rate: Any = None, offer_rate: Any = None) -> SavingsResult:
    """
    Compare the bill's monthly supply cost at the current rate against the offer.

    Args:
        audit: Extraction result for one bill
        current_rate: Caller's current $/unit rate (number, numeric string or None)
        offer_rate: Offered $/unit rate (number, numeric string or None)

    Returns:
        SavingsResult; monetary fields are None and ``insufficient_data`` is
        True unless quantity, current rate and offer rate are all known and
        their products fit in cents at the default Decimal precision
    """
    unit, commodity, quantity = select_quantity(audit)

    current = coerce_rate(current_rate)
    source = "explicit" if current is not None else None
    if current is None:
        current = infer_current_rate(audit, quantity)
        source = "inferred" if current is not None else None
    offer = coerce_rate(offer_rate)

    missing = tuple(
        name for name, value in (("quantity", quantity), ("currentRate", current), ("offerRate", offer))
        if value is None
    )
    annual_quantity = None
    if quantity is not None:
        annual_quantity = _plain_number(_to_decimal(quantity) * MONTHS_PER_YEAR)

    insufficient = SavingsResult(
        unit=unit,
        commodity=commodity,
        monthly_quantity=quantity,
        annual_quantity=annual_quantity,
        current_rate=current,
        offer_rate=offer,
        current_rate_source=source,
        missing=missing,
    )
    if missing:
        logger.debug("savings: insufficient data, missing=%s", ",".join(missing))
        return insufficient

    try:
        qty = _to_decimal(quantity)
        cost_current = _cents(qty * _to_decimal(current))
        cost_offer = _cents(qty * _to_decimal(offer))
        monthly = _cents(cost_current - cost_offer)
        annual = _cents(monthly * MONTHS_PER_YEAR)
        terms = MappingProxyType({f"{years}yr": _cents(annual * years) for years in TERM_YEARS})
        annual_current = _cents(cost_current * MONTHS_PER_YEAR)
        annual_offer = _cents(cost_offer * MONTHS_PER_YEAR)
    except (InvalidOperation, OverflowError):
        logger.warning("savings: %s %s at rates %s/%s is out of range", quantity, unit, current, offer)
        return replace(insufficient, missing=(OUT_OF_RANGE,))

    return SavingsResult(
        unit=unit,
        commodity=commodity,
        monthly_quantity=quantity,
        annual_quantity=annual_quantity,
        current_rate=current,
        offer_rate=offer,
        current_rate_source=source,
        monthly_cost_at_current=cost_current,
        monthly_cost_at_offer=cost_offer,
        annual_cost_at_current=annual_current,
        annual_cost_at_offer=annual_offer,
        monthly_savings=monthly,
        annual_savings=annual,
        term_savings=terms,
    )


def _plain_number(value: Decimal) -> Optional[Quantity]:
    if not value.is_finite():
        return None
    return int(value) if value == value.to_integral_value() else float(value)
