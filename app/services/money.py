"""Integer-cent money helpers. Balances are never stored as floats."""

from decimal import Decimal, InvalidOperation

from app.core.errors import InvalidInput

# Bounds keep every balance and delta well inside a signed 64-bit BIGINT.
MAX_DELTA_CENTS = 10**15
MAX_BALANCE_CENTS = 10**17


def parse_amount_to_cents(amount: str) -> int:
    """
    Parse a decimal amount like "12.34" or "-5" into integer cents.
    Raises InvalidInput for blank, non-numeric, non-finite or sub-cent values and
    for amounts beyond MAX_DELTA_CENTS in either direction.
    """
    s = str(amount if amount is not None else "").strip()
    if not s:
        raise InvalidInput("Amount must be non-empty.")
    try:
        value = Decimal(s)
    except InvalidOperation as e:
        raise InvalidInput(f"Amount '{s}' is not a number.") from e
    if not value.is_finite():
        raise InvalidInput("Amount must be finite.")
    cents = value * 100
    if abs(cents) > MAX_DELTA_CENTS:
        raise InvalidInput(f"Amount must be at most {format_cents(MAX_DELTA_CENTS)} in either direction.")
    if cents != cents.to_integral_value():
        raise InvalidInput("Amount must not have more than two decimal places.")
    return int(cents)


def format_cents(cents: int) -> str:
    """Format cents as a decimal string with two places, e.g. 1234 -> '12.34'."""
    sign = "-" if cents < 0 else ""
    whole, frac = divmod(abs(int(cents)), 100)
    return f"{sign}{whole}.{frac:02d}"
