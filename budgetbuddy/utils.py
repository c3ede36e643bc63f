"""
Pure helpers shared by the ledger managers.

Nothing in here reads the clock or touches storage; callers pass
"now" explicitly.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Any, Optional


CENT = Decimal("0.01")
DESCRIPTION_MAX_LENGTH = 80

# Larger magnitudes are not treated as money at all
MAX_AMOUNT = Decimal("1e15")

# Wide enough that quantizing anything below MAX_AMOUNT to cents never overflows
_MONEY_CONTEXT = Context(prec=60)

# Non-ISO layouts still accepted from older form inputs
_DATE_FORMATS = ["%Y/%m/%d", "%m/%d/%Y"]

_CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "CNY": "CN¥",
    "CAD": "CA$",
    "AUD": "A$",
}
_ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW", "VND", "CLP", "ISK", "HUF"}


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Coerce a raw form value to a finite Decimal.

    Returns None for anything that isn't a finite number
    (empty strings, "abc", NaN, infinities, booleans) and for
    magnitudes of MAX_AMOUNT or more.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    else:
        try:
            parsed = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not parsed.is_finite() or parsed.copy_abs() >= MAX_AMOUNT:
        return None
    return parsed


def numeric(value: Any) -> Decimal:
    """Like to_decimal, but non-numeric input becomes zero."""
    parsed = to_decimal(value)
    return parsed if parsed is not None else Decimal("0")


def round_money(value: Any) -> Decimal:
    """Round to 2 decimal places, half-up. Non-numeric input becomes 0.00."""
    return numeric(value).quantize(CENT, rounding=ROUND_HALF_UP, context=_MONEY_CONTEXT)


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a calendar date from a date, datetime or string.

    Aware datetimes are converted to local time before the date is taken.
    Returns None when the value can't be read as a real calendar date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return parse_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def month_key(value: Any) -> str:
    """
    Month bucket for a date, as "YYYY-MM" in local time.

    Invalid input gives "" which never matches a real month.
    """
    parsed = parse_date(value)
    if parsed is None:
        return ""
    return f"{parsed.year:04d}-{parsed.month:02d}"


def today_iso(now: datetime | date) -> str:
    """Default value for the expense form's date field."""
    return parse_date(now).isoformat()


def sanitize_text(value: Any, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    """Trim free text and cap its length."""
    if value is None:
        return ""
    return str(value).strip()[:max_length]


def format_currency(amount: Any, currency: str = "USD") -> str:
    """
    Human-readable money string, e.g. "$1,234.50" or "CHF 12.00".

    Unknown codes fall back to "<CODE> 12.00".
    """
    code = (currency or "USD").upper()
    value = numeric(amount)
    places = Decimal("1") if code in _ZERO_DECIMAL_CURRENCIES else CENT
    rounded = value.quantize(places, rounding=ROUND_HALF_UP, context=_MONEY_CONTEXT)

    digits = 0 if code in _ZERO_DECIMAL_CURRENCIES else 2
    body = f"{abs(rounded):,.{digits}f}"
    prefix = _CURRENCY_SYMBOLS.get(code, f"{code} ")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{prefix}{body}"
