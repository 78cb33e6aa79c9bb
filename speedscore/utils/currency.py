"""Entry fee currencies and formatting."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Union

# Minimum amounts are the payment processor's per-currency transaction floor
SUPPORTED_CURRENCIES: Dict[str, Dict[str, Union[str, float]]] = {
    "USD": {"code": "USD", "symbol": "$", "name": "US Dollar", "min_amount": 0.5},
    "EUR": {"code": "EUR", "symbol": "€", "name": "Euro", "min_amount": 0.5},
    "GBP": {"code": "GBP", "symbol": "£", "name": "British Pound", "min_amount": 0.3},
    "CAD": {"code": "CAD", "symbol": "C$", "name": "Canadian Dollar", "min_amount": 0.5},
    "AUD": {"code": "AUD", "symbol": "A$", "name": "Australian Dollar", "min_amount": 0.5},
    "JPY": {"code": "JPY", "symbol": "¥", "name": "Japanese Yen", "min_amount": 50},
    "CHF": {"code": "CHF", "symbol": "CHF", "name": "Swiss Franc", "min_amount": 0.5},
}

ZERO_DECIMAL_CURRENCIES = {"JPY"}


def format_currency(amount: float, currency_code: str = "USD") -> str:
    """
    Format an amount with its currency symbol and thousands separators.

    Unknown currencies fall back to a dollar amount with two decimals.
    """
    currency = SUPPORTED_CURRENCIES.get(currency_code)
    if currency is None:
        return f"${amount:,.2f}"

    decimals = 0 if currency_code in ZERO_DECIMAL_CURRENCIES else 2
    quantum = Decimal(1) if decimals == 0 else Decimal("0.01")
    rounded = Decimal(str(amount)).quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{currency['symbol']}{abs(rounded):,.{decimals}f}"


def get_currency_multiplier(currency_code: str = "USD") -> int:
    """Factor converting an amount to the smallest currency unit."""
    return 1 if currency_code in ZERO_DECIMAL_CURRENCIES else 100


def validate_entry_fee(amount: float, currency_code: str = "USD") -> Dict[str, Union[bool, str]]:
    """
    Check an entry fee against the currency's minimum amount.

    Returns:
        ``{"valid": True}`` or ``{"valid": False, "message": ...}``
    """
    currency = SUPPORTED_CURRENCIES.get(currency_code)
    if currency is None:
        return {"valid": False, "message": "Invalid currency"}

    if amount < currency["min_amount"]:
        minimum = format_currency(currency["min_amount"], currency_code)
        return {"valid": False, "message": f"Minimum entry fee for {currency_code} is {minimum}"}

    return {"valid": True}
