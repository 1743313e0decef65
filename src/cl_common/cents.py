"""Integer arithmetic utilities for money.

All prices and amounts are int cents (HKD). No float, no Decimal.
"""


def validate_amount(amount: int) -> None:
    """Validate that a price or amount is a positive number of cents."""
    if amount <= 0:
        raise ValueError(f"Amount must be positive cents, got {amount}")


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> 'HKD 65.00', -1200 -> '-HKD 12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-HKD {abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"HKD {cents // 100:,}.{cents % 100:02d}"


def calculate_fee(subtotal: int, fee_rate_bps: int) -> int:
    """Calculate the platform fee with ceiling division (platform never loses).

    fee = ceil(subtotal * fee_rate_bps / 10000)
    Using integer ceiling: (a + b - 1) // b
    """
    if subtotal == 0 or fee_rate_bps == 0:
        return 0
    return (subtotal * fee_rate_bps + 9999) // 10000
