"""
Bill audit records.

Both records are frozen: they are built once per request and only read
afterwards. ``to_dict()`` produces the camelCase JSON shape served by the API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .utilities import UNKNOWN_UTILITY

Quantity = Union[int, float]

LOW_CONFIDENCE = "low"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class BillingPeriod:
    start: Optional[str] = None
    end: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class BillTotals:
    total_due: Optional[float] = None
    delivery_charges: Optional[float] = None
    supply_charges: Optional[float] = None
    taxes: Optional[float] = None
    basic_service_charge: Optional[float] = None
    adjustments: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalDue": self.total_due,
            "deliveryCharges": self.delivery_charges,
            "supplyCharges": self.supply_charges,
            "taxes": self.taxes,
            "basicServiceCharge": self.basic_service_charge,
            "adjustments": self.adjustments,
        }


@dataclass(frozen=True)
class BillUsage:
    electricity_kwh: Optional[Quantity] = None
    gas_therms: Optional[Quantity] = None
    gas_ccf: Optional[Quantity] = None
    therms_derived: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "electricityKwh": self.electricity_kwh,
            "gasTherms": self.gas_therms,
            "gasCcf": self.gas_ccf,
            "thermsDerived": self.therms_derived,
        }


@dataclass(frozen=True)
class AuditMeta:
    parsed_at: str = field(default_factory=_utc_now_iso)
    confidence: str = LOW_CONFIDENCE

    def to_dict(self) -> Dict[str, Any]:
        return {"parsedAt": self.parsed_at, "confidence": self.confidence}


@dataclass(frozen=True)
class BillAudit:
    """Structured facts recovered from one bill. Every field but ``utility`` may be None."""
    utility: str = UNKNOWN_UTILITY
    account_number: Optional[str] = None
    customer: Optional[str] = None
    service_address: Optional[str] = None
    due_date: Optional[str] = None
    billing_period: BillingPeriod = field(default_factory=BillingPeriod)
    totals: BillTotals = field(default_factory=BillTotals)
    usage: BillUsage = field(default_factory=BillUsage)
    meta: AuditMeta = field(default_factory=AuditMeta)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "utility": self.utility,
            "accountNumber": self.account_number,
            "customer": self.customer,
            "serviceAddress": self.service_address,
            "dueDate": self.due_date,
            "billingPeriod": self.billing_period.to_dict(),
            "totals": self.totals.to_dict(),
            "usage": self.usage.to_dict(),
            "meta": self.meta.to_dict(),
        }


def _money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class SavingsResult:
    """
    Supply-rate comparison for one bill.

    Monetary fields are Decimals quantized to cents. When ``insufficient_data``
    is set every monetary field is None and ``term_savings`` is empty; callers
    must not read None as zero savings.
    """
    unit: Optional[str] = None
    commodity: Optional[str] = None
    monthly_quantity: Optional[Quantity] = None
    annual_quantity: Optional[Quantity] = None
    current_rate: Optional[float] = None
    offer_rate: Optional[float] = None
    current_rate_source: Optional[str] = None
    monthly_cost_at_current: Optional[Decimal] = None
    monthly_cost_at_offer: Optional[Decimal] = None
    annual_cost_at_current: Optional[Decimal] = None
    annual_cost_at_offer: Optional[Decimal] = None
    monthly_savings: Optional[Decimal] = None
    annual_savings: Optional[Decimal] = None
    term_savings: Mapping[str, Decimal] = field(default_factory=lambda: MappingProxyType({}))
    missing: Tuple[str, ...] = ()

    @property
    def insufficient_data(self) -> bool:
        return bool(self.missing)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unit": self.unit,
            "commodity": self.commodity,
            "monthlyQuantity": self.monthly_quantity,
            "annualQuantity": self.annual_quantity,
            "currentRate": self.current_rate,
            "offerRate": self.offer_rate,
            "currentRateSource": self.current_rate_source,
            "monthlyCostAtCurrent": _money(self.monthly_cost_at_current),
            "monthlyCostAtOffer": _money(self.monthly_cost_at_offer),
            "annualCostAtCurrent": _money(self.annual_cost_at_current),
            "annualCostAtOffer": _money(self.annual_cost_at_offer),
            "monthlySavings": _money(self.monthly_savings),
            "annualSavings": _money(self.annual_savings),
            "termSavings": {k: _money(v) for k, v in self.term_savings.items()},
            "insufficientData": self.insufficient_data,
            "missing": list(self.missing),
        }
