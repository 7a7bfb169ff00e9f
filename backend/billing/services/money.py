"""Integer minor-unit money arithmetic.

All monetary amounts are ints in minor currency units. Rates are ``Decimal``
and are never converted through ``float``.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


# Stored in Numeric(10, 6); finer rates would not reproduce the stored tax
TAX_RATE_PLACES = 6
_RATE_QUANTUM = Decimal(1).scaleb(-TAX_RATE_PLACES)


def to_rate(value: Decimal | str | int) -> Decimal:
    """Coerce a tax rate to ``Decimal`` without going through float.

    Raises:
        TypeError: for floats
        ValueError: for rates with more than ``TAX_RATE_PLACES`` significant decimals
    """
    if isinstance(value, float):
        raise TypeError("Tax rates must not be passed as float")
    rate = value if isinstance(value, Decimal) else Decimal(str(value))
    if rate != rate.quantize(_RATE_QUANTUM):
        raise ValueError(f"Tax rate {rate} has more than {TAX_RATE_PLACES} decimal places")
    return rate


def compute_tax(amount: int, rate: Decimal | str) -> int:
    """Return ``amount * rate`` rounded half up (ties away from zero) to an int."""
    product = Decimal(amount) * to_rate(rate)
    return int(product.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass
class LineTax:
    amount: int
    tax_amount: int
    total: int


def allocate_line_taxes(amounts: list[int], rate: Decimal, tax_amount: int) -> list[LineTax]:
    """Tax each line on its own, then push the rounding residue onto the first line.

    ``tax_amount`` is the tax computed once on the summed amounts. After
    allocation ``sum(tax_amount)`` over the lines equals it exactly, and so
    does the sum of line totals against ``sum(amounts) + tax_amount``.
    """
    lines = []
    for amount in amounts:
        line_tax = compute_tax(amount, rate)
        lines.append(LineTax(amount=amount, tax_amount=line_tax, total=amount + line_tax))

    delta = tax_amount - sum(line.tax_amount for line in lines)
    if lines and delta:
        lines[0].tax_amount += delta
        lines[0].total += delta
    return lines
