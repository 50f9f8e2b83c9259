"""PULSE — Currency Conversion.

Budget exports report spend in each account's billing currency. Totals are
rolled up in USD with fixed approximate rates; unknown codes pass through
at 1:1.
"""

from typing import Optional

# 1 unit of currency = X USD
FALLBACK_RATES = {
    "USD": 1.0,
    "EUR": 1.08,
    "GBP": 1.27,
    "CAD": 0.74,
    "AUD": 0.66,
    "SGD": 0.75,
    "INR": 0.012,
    "JPY": 0.0067,
    "CNY": 0.14,
    "HKD": 0.13,
    "MYR": 0.22,
    "THB": 0.028,
    "IDR": 0.000063,
    "PHP": 0.018,
    "VND": 0.000040,
    "AED": 0.27,
    "SAR": 0.27,
    "ZAR": 0.055,
    "BRL": 0.20,
    "MXN": 0.058,
}


def usd_rate(currency: Optional[str]) -> float:
    code = (currency or "").strip().upper()
    if not code:
        return 1.0
    return FALLBACK_RATES.get(code, 1.0)


def convert_to_usd(amount: float, currency: Optional[str]) -> float:
    if not amount or amount != amount:
        return 0.0
    return amount * usd_rate(currency)
