"""PULSE — Value Parsers.

Sheet exports carry display-formatted values ("$1,234.50", "4x", "85%").
Every parser here degrades to a safe default instead of raising; the
upstream source is an uncontrolled spreadsheet.
"""

import re
from datetime import date, datetime
from typing import Any, Optional

# Leading numeric prefix, so "12.5 USD" → 12.5 the way spreadsheet exports
# are usually read.
_NUMBER_PREFIX = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")

_MONEY_CHARS = re.compile(r"[$,]")
_AUDIT_CHARS = re.compile(r"[$,%]")
_ROAS_MARK = re.compile(r"[xX]")

# "3/5/24" is 2024-03-05
TWO_DIGIT_YEAR_BASE = 2000

_FALLBACK_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
    "%Y-%m-%dT%H:%M:%S",
)


def parse_float(value: Any) -> float:
    """Parse a leading number from ``value``. Returns 0.0 when there is none."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return 0.0 if value != value else float(value)  # NaN → 0
    m = _NUMBER_PREFIX.match(str(value))
    if not m:
        return 0.0
    try:
        return float(m.group(1))
    except ValueError:
        return 0.0


def parse_money(value: Any) -> float:
    """"$1,234.50" → 1234.5"""
    if value is None:
        return 0.0
    return parse_float(_MONEY_CHARS.sub("", str(value)))


def parse_audit_number(value: Any) -> float:
    """Audit sheet numerics may also carry a percent sign."""
    if value is None or value == "":
        return 0.0
    return parse_float(_AUDIT_CHARS.sub("", str(value)))


def parse_target_roas(value: Any) -> float:
    """"4x" / "X4" / "4.5x" → float; anything unparseable → 0.

    Only the first multiplier mark is dropped; "1,5x" reads as 1.
    """
    if value is None:
        return 0.0
    return parse_float(_ROAS_MARK.sub("", str(value), count=1))


def actual_roas(cost: Any, conversion_value: Any) -> float:
    spend = parse_money(cost)
    return parse_money(conversion_value) / spend if spend > 0 else 0.0


def format_number(value: float) -> str:
    """Render a summed float back into the string form records carry."""
    return repr(float(value))


# ─────────────────────────────────────────────
# DATES
# ─────────────────────────────────────────────


def _split_slashed(value: str) -> Optional[tuple[int, int, int]]:
    parts = value.split("/")
    if len(parts) != 3:
        return None
    try:
        a, b, y = (int(p.strip()) for p in parts)
    except ValueError:
        return None
    if y < 100:
        y += TWO_DIGIT_YEAR_BASE
    return a, b, y


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse a day-level date, preferring ``M/D/YYYY``.

    Returns ``None`` for empty or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None

    if "/" in text:
        parts = _split_slashed(text)
        if parts:
            month, day, year = parts
            parsed = _safe_date(year, month, day)
            if parsed:
                return parsed

    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_month_label(value: Any) -> Optional[date]:
    """Parse the period label of a monthly row to the first of its month.

    Monthly rows are keyed by the first day of the month, written either
    ``1/M/YYYY`` or ``M/1/YYYY``; whichever slot is not the day-of-month 1
    is the month. Anything else falls back to :func:`parse_date`.
    """
    if value is None:
        return None
    text = str(value).strip()
    parts = _split_slashed(text) if "/" in text else None
    if parts:
        first, second, year = parts
        if first == 1 and 1 <= second <= 12:
            return _safe_date(year, second, 1)
        if second == 1 and 1 <= first <= 12:
            return _safe_date(year, first, 1)
    parsed = parse_date(text)
    return parsed.replace(day=1) if parsed else None


def month_display(d: date) -> str:
    """date → "January 2024" (the label periods are selected by)."""
    return d.strftime("%B %Y")


def month_short(d: date) -> str:
    """date → "Jan 24" (the heatmap column label)."""
    return d.strftime("%b %y")


def month_display_for(value: Any) -> str:
    parsed = parse_month_label(value)
    return month_display(parsed) if parsed else ""


def parse_month_display(label: str) -> Optional[date]:
    """Inverse of :func:`month_display`; also accepts "Jan 24"."""
    for fmt in ("%B %Y", "%b %y", "%b %Y"):
        try:
            return datetime.strptime(label.strip(), fmt).date()
        except (ValueError, AttributeError):
            continue
    return None
