from decimal import Decimal, ROUND_DOWN, ROUND_UP, localcontext

from launchpad_core.common.errors import InvalidDecimalError

# Working precision for chained exponentials/logarithms on the curve.
CURVE_PRECISION = 50


def decimal_approx_equal(a: Decimal, b: Decimal, tol: Decimal = Decimal(10**14)) -> bool:
    return abs(a - b) < tol


def decimal_places(value: Decimal) -> int:
    """Number of significant fractional digits in value (trailing zeros ignored)."""
    if value == 0:
        return 0
    exponent = value.normalize().as_tuple().exponent
    return max(0, -exponent)


def round_to_decimals(value: Decimal, decimals: int, rounding: str = ROUND_DOWN) -> Decimal:
    """
    Quantizes value to a token's decimal ceiling.

    :param value: Decimal - quantity to round
    :param decimals: int - fractional digits the token supports
    :param rounding: decimal rounding mode (ROUND_UP for amounts owed by the trader,
                     ROUND_DOWN for amounts paid to the trader)
    """
    with localcontext() as ctx:
        ctx.prec = CURVE_PRECISION
        return value.quantize(Decimal(1).scaleb(-decimals), rounding=rounding)


def round_up(value: Decimal, decimals: int) -> Decimal:
    return round_to_decimals(value, decimals, ROUND_UP)


def round_down(value: Decimal, decimals: int) -> Decimal:
    return round_to_decimals(value, decimals, ROUND_DOWN)


def ensure_decimals(value: Decimal, decimals: int) -> Decimal:
    """Rejects a user-supplied quantity finer than the token's precision."""
    if decimal_places(value) > decimals:
        raise InvalidDecimalError(value, decimals)
    return value


def round_computed(value: Decimal, decimals: int, rounding: str) -> Decimal:
    """
    Rounds a derived quantity. A positive value that disappears entirely at the
    token's precision cannot be transferred and is reported as InvalidDecimalError.
    """
    rounded = round_to_decimals(value, decimals, rounding)
    if value > 0 and rounded == 0:
        raise InvalidDecimalError(value, decimals)
    return rounded


def to_plain_str(value: Decimal) -> str:
    """Fixed-point string without exponent or trailing zeros ("500", "0.00825575")."""
    if value == 0:
        return "0"
    return format(value.normalize(), "f")
