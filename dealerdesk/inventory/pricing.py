"""Trailer pricing rules.

A listed price comes from cost: 25% markup, but never less than $1,400 profit.
A quote may go at most 30% under the listed price and at most 100% over it.
Amounts are Decimals rounded to cents; floats, ints and numeric strings are
accepted on the way in.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

MIN_RATIO = Decimal('0.7')
MAX_RATIO = Decimal('2.0')

_CENTS = Decimal('0.01')

MARKUP = Decimal('1.25')
MIN_PROFIT = Decimal('1400')

PRICED = 'PRICED'
ASK_FOR_PRICING = 'ASK_FOR_PRICING'

# Cost sheets say things like "Call", "TBD" or "Contact for price"
_ASK_RE = re.compile(r'call|offer|tbd|n/a|price|contact', re.IGNORECASE)
_NON_NUMERIC_RE = re.compile(r'[^0-9.]')


@dataclass(frozen=True)
class PriceCheck:
    valid: bool
    min: Decimal
    max: Decimal
    message: Optional[str] = None

    def to_dict(self):
        return {
            'valid': self.valid,
            'min': float(self.min),
            'max': float(self.max),
            'message': self.message,
        }


def _money(value, name) -> Decimal:
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f'{name} must be a number')
    if not amount.is_finite():
        raise ValueError(f'{name} must be a number')
    return amount


def validate_price_range(selling_price, listed_price) -> PriceCheck:
    """Check `selling_price` against 70%-200% of `listed_price` (both bounds inclusive)."""
    selling = _money(selling_price, 'sellingPrice')
    listed = _money(listed_price, 'listedPrice')
    if listed <= 0:
        raise ValueError('listedPrice must be positive')

    low = (listed * MIN_RATIO).quantize(_CENTS, rounding=ROUND_HALF_UP)
    high = (listed * MAX_RATIO).quantize(_CENTS, rounding=ROUND_HALF_UP)
    valid = low <= selling <= high

    message = None
    if not valid:
        message = (f'Price must be between ${low:,.2f} and ${high:,.2f} '
                   f'(-30% to +100% of listed price ${listed:,.2f})')
    return PriceCheck(valid=valid, min=low, max=high, message=message)


@dataclass(frozen=True)
class SellingPrice:
    price: Optional[Decimal]
    status: str

    @property
    def priced(self) -> bool:
        return self.status == PRICED

    def to_dict(self):
        return {
            'price': float(self.price) if self.price is not None else None,
            'pricingStatus': self.status,
        }


def _cost(raw) -> Optional[Decimal]:
    """Numeric cost from a number or a cost-sheet string, None when there is none."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        if not raw.strip() or _ASK_RE.search(raw):
            return None
        raw = _NON_NUMERIC_RE.sub('', raw)
    try:
        cost = raw if isinstance(raw, Decimal) else Decimal(str(raw))
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not cost.is_finite() or cost <= 0:
        return None
    return cost


def compute_selling_price(cost_raw) -> SellingPrice:
    """Listed price for a trailer bought at `cost_raw`.

    max(cost * 1.25, cost + 1400): $3,425 lists at $4,825 and $18,425 at
    $23,031.25. Missing, non-positive or "call for price" costs come back
    as ASK_FOR_PRICING with no price.
    """
    cost = _cost(cost_raw)
    if cost is None:
        return SellingPrice(price=None, status=ASK_FOR_PRICING)
    price = max(cost * MARKUP, cost + MIN_PROFIT)
    return SellingPrice(price=price.quantize(_CENTS, rounding=ROUND_HALF_UP), status=PRICED)
