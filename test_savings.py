"""
Unit tests for the supply-rate savings calculator (bills/savings.py).
"""

import json
from decimal import Decimal

import pytest

from bills.extractor import extract_bill_audit
from bills.models import BillAudit, BillTotals, BillUsage
from bills.savings import OUT_OF_RANGE, TERM_YEARS, coerce_rate, compute_savings, infer_current_rate, select_quantity


def _audit(kwh=None, therms=None, ccf=None, supply=None):
    return BillAudit(
        usage=BillUsage(electricity_kwh=kwh, gas_therms=therms, gas_ccf=ccf),
        totals=BillTotals(supply_charges=supply),
    )


def test_gas_therms_scenario():
    audit = extract_bill_audit("Total Gas Use 122 therms")
    result = compute_savings(audit, 1.20, 0.69)

    assert result.unit == "therms"
    assert result.commodity == "gas"
    assert result.monthly_quantity == 122
    assert result.monthly_cost_at_current == Decimal("146.40")
    assert result.monthly_cost_at_offer == Decimal("84.18")
    assert result.monthly_savings == Decimal("62.22")
    assert result.annual_savings == Decimal("746.64")
    assert result.term_savings["3yr"] == Decimal("2239.92")
    assert result.insufficient_data is False

    data = result.to_dict()
    assert data["monthlySavings"] == 62.22
    assert data["annualSavings"] == 746.64
    assert data["termSavings"]["3yr"] == 2239.92
    assert data["annualQuantity"] == 1464
    assert data["currentRateSource"] == "explicit"


def test_no_rates_is_insufficient_data():
    audit = extract_bill_audit("Total amount due $128.47\n412 kWh")
    result = compute_savings(audit)
    data = result.to_dict()

    assert data["unit"] == "kWh"
    assert data["monthlyQuantity"] == 412
    assert data["monthlySavings"] is None
    assert data["annualSavings"] is None
    assert data["termSavings"] == {}
    assert data["insufficientData"] is True
    assert data["missing"] == ["currentRate", "offerRate"]


def test_empty_document_is_insufficient_for_any_rates():
    result = compute_savings(extract_bill_audit(""), 1.20, 0.69)
    assert result.insufficient_data
    assert result.missing == ("quantity",)
    assert result.unit is None
    assert result.monthly_cost_at_current is None
    assert result.monthly_savings is None


def test_unit_preference_order():
    assert select_quantity(_audit(kwh=500, therms=40, ccf=38))[:2] == ("kWh", "electric")
    assert select_quantity(_audit(therms=40, ccf=38))[:2] == ("therms", "gas")
    assert select_quantity(_audit(ccf=38)) == ("ccf", "gas", 38)
    assert select_quantity(_audit()) == (None, None, None)


def test_current_rate_inferred_from_supply_charges():
    result = compute_savings(_audit(kwh=400, supply=48.00), None, 0.10)
    assert result.current_rate == 0.12
    assert result.current_rate_source == "inferred"
    assert result.monthly_savings == Decimal("8.00")


def test_explicit_current_rate_wins_over_inference():
    result = compute_savings(_audit(kwh=400, supply=48.00), "0.15", "0.10")
    assert result.current_rate == 0.15
    assert result.current_rate_source == "explicit"
    assert result.monthly_savings == Decimal("20.00")


def test_offer_rate_is_never_inferred():
    result = compute_savings(_audit(kwh=400, supply=48.00), None, None)
    assert result.missing == ("offerRate",)
    assert result.monthly_savings is None


def test_no_inference_without_positive_quantity():
    assert infer_current_rate(_audit(kwh=0, supply=48.00), 0) is None
    assert infer_current_rate(_audit(kwh=400), 400) is None


def test_worse_offer_gives_negative_savings():
    result = compute_savings(_audit(kwh=1000), 0.10, 0.12)
    assert result.monthly_savings == Decimal("-20.00")
    assert result.annual_savings == Decimal("-240.00")
    assert result.term_savings["5yr"] == Decimal("-1200.00")
    assert result.insufficient_data is False


def test_doubling_quantity_doubles_savings():
    single = compute_savings(_audit(therms=122), 1.20, 0.69)
    double = compute_savings(_audit(therms=244), 1.20, 0.69)
    assert double.monthly_savings == single.monthly_savings * 2
    assert double.annual_savings == single.annual_savings * 2


@pytest.mark.parametrize("quantity, current, offer", [
    (122, 1.20, 0.69),
    (1873, 0.1432, 0.0991),
    (57.5, 0.98, 1.07),
])
def test_term_savings_are_exact_multiples(quantity, current, offer):
    result = compute_savings(_audit(kwh=quantity), current, offer)
    assert tuple(result.term_savings) == tuple(f"{y}yr" for y in TERM_YEARS)
    for years in TERM_YEARS:
        assert result.term_savings[f"{years}yr"] == result.annual_savings * years


@pytest.mark.parametrize("raw", [None, "", "   ", "abc", float("nan"), float("inf"), "-inf", "NaN", True])
def test_bad_rates_are_absent(raw):
    assert coerce_rate(raw) is None
    result = compute_savings(_audit(kwh=100), raw, 0.5)
    assert result.current_rate is None
    assert result.monthly_savings is None
    assert "currentRate" in result.missing


@pytest.mark.parametrize("raw, expected", [
    (1.2, 1.2),
    (0, 0.0),
    ("0.69", 0.69),
    ("$1,200.50", 1200.5),
    (" 0.1234 ", 0.1234),
])
def test_coerce_rate_accepts_numbers(raw, expected):
    assert coerce_rate(raw) == expected


def test_zero_rate_is_a_rate_not_missing():
    result = compute_savings(_audit(kwh=100), 0.10, 0)
    assert result.insufficient_data is False
    assert result.monthly_savings == Decimal("10.00")


def test_result_is_immutable():
    result = compute_savings(_audit(kwh=100), 0.10, 0.05)
    with pytest.raises(AttributeError):
        result.monthly_savings = Decimal("0")
    with pytest.raises(TypeError):
        result.term_savings["2yr"] = Decimal("0")


def test_oversized_rate_is_out_of_range_not_an_error():
    result = compute_savings(_audit(kwh=412), "1e30", 0.5)
    assert result.insufficient_data
    assert result.missing == (OUT_OF_RANGE,)
    assert result.monthly_savings is None
    assert result.term_savings == {}
    assert result.current_rate == 1e30


def test_oversized_extracted_usage_is_out_of_range():
    audit = extract_bill_audit("Usage " + "1" * 30 + " kWh")
    result = compute_savings(audit, 1.2, 0.69)
    assert result.missing == (OUT_OF_RANGE,)
    assert result.monthly_cost_at_current is None


@pytest.mark.parametrize("quantity, current, offer", [
    (412, "1e30", 0.5),
    (1e29, 1.2, 0.69),
    (1.7e308, 1.2, 0.69),
    (1e300, None, None),
    (412, 1e-30, 0.5),
    (0.0001, 1e20, 0),
    (float("inf"), 1.2, 0.69),
    (float("nan"), None, 0.69),
])
def test_compute_savings_is_total(quantity, current, offer):
    result = compute_savings(_audit(kwh=quantity, supply=48.00), current, offer)
    json.dumps(result.to_dict(), allow_nan=False)
    if result.insufficient_data:
        assert result.monthly_savings is None
        assert result.annual_cost_at_current is None
    else:
        assert result.annual_savings == result.monthly_savings * 12
