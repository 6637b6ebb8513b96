# storefront/utils/money.py
"""Money is kept as integer minor units (cents) everywhere."""


def to_cents(value) -> int:
    """Coerce a request value to a non-negative int of cents, or raise ValueError."""
    if isinstance(value, bool):
        raise ValueError("price must be an integer number of cents")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("price must be an integer number of cents")
        value = int(value)
    cents = int(value)
    if cents < 0:
        raise ValueError("price must not be negative")
    return cents


def format_price(cents, symbol="$") -> str:
    cents = int(cents or 0)
    whole, frac = divmod(abs(cents), 100)
    sign = "-" if cents < 0 else ""
    if frac:
        return f"{sign}{symbol}{whole:,}.{frac:02d}"
    return f"{sign}{symbol}{whole:,}"
