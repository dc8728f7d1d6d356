from decimal import ROUND_HALF_UP, Context, Decimal

_CENTS = Decimal("0.01")
# Wide enough for every finite float (max ~1.8e308) plus two decimals
_MONEY_CONTEXT = Context(prec=400, rounding=ROUND_HALF_UP)


def _quantize(value: float) -> Decimal:
    # Half-up on the exact binary value: 0.125 -> 0.13, 1.005 -> 1.00
    return Decimal(value).quantize(_CENTS, context=_MONEY_CONTEXT)


def round_money(value: float) -> float:
    return float(_quantize(value))


def format_money(value: float) -> str:
    return str(_quantize(value))
