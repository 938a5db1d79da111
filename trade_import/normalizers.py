"""
trade_import.normalizers - Raw cell text → typed values.

Every function here is total: unreadable input yields None (or the
documented default), never an exception.  None means "unknown", not
zero; the only text that maps to 0 is a bare currency dash.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

# ── Status table (source word → canonical shipment status) ────────────
STATUS_MAP: dict[str, str] = {
    "أبحر":       "sailed",
    "تخطيط":      "planning",
    "محجوز":      "booked",
    "وصل":        "arrived",
    "تم التسليم":  "delivered",
    "قيد الشحن":   "loading",
    "في الميناء":  "gate_in",
}
DEFAULT_STATUS = "planning"

MONTHS: dict[str, int] = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
}

# Words that qualify a price ("1250 + - التكلفة", "678 FOB")
CURRENCY_QUALIFIERS = ("التكلفة", "cost", "fob")

_YMD_SLASH   = re.compile(r"^(\d{4})[/.](\d{1,2})[/.](\d{1,2})$")
_YMD_DASH    = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_MONTH_YEAR  = re.compile(r"^([A-Za-z]+)-(\d{2})$")
_AR_MONTH    = re.compile(r"^شهر\s*(\d{1,2})$")
_AR_SHIP     = re.compile(r"^شحن\s*(\d{1,2})-(\d{1,2})$")
_DMY_DASH    = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
_ISO_DATE    = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_DASH_ONLY   = re.compile(r"^[$€£]?\s*-?\s*$")
_NUMERIC_RUN = re.compile(r"[\d,.]+")
_LEADING_NUM = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")
_LEADING_INT = re.compile(r"^[+-]?\d+")


# ── Dates ─────────────────────────────────────────────────────────────

def _iso(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_date(text: Optional[str], today: Optional[date] = None) -> Optional[str]:
    """
    Parse the date spellings found in the exports into 'YYYY-MM-DD'.

    Recognised, in priority order:
        2025/12/01, 2025.12.01   year-first with slash or dot
        2025-12-01               year-first with dash
        October-25               month name + 2-digit year (day 1, 20YY)
        شهر 10                   "month N" (current year, day 1)
        شحن 10-12                "ship DD-MM" (current year)
        9-11-2025                day-first with dash

    Returns None for anything else, including impossible calendar dates.
    """
    if not text or not text.strip():
        return None
    cleaned = text.strip()
    year_now = (today or date.today()).year

    m = _YMD_SLASH.match(cleaned) or _YMD_DASH.match(cleaned)
    if m:
        return _iso(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _MONTH_YEAR.match(cleaned)
    if m:
        month = MONTHS.get(m.group(1).lower())
        if month is None:
            return None
        return _iso(2000 + int(m.group(2)), month, 1)

    m = _AR_MONTH.match(cleaned)
    if m:
        return _iso(year_now, int(m.group(1)), 1)

    m = _AR_SHIP.match(cleaned)
    if m:
        return _iso(year_now, int(m.group(2)), int(m.group(1)))

    m = _DMY_DASH.match(cleaned)
    if m:
        return _iso(int(m.group(3)), int(m.group(2)), int(m.group(1)))

    return None


def is_iso_date(value: Optional[str]) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if not value or not _ISO_DATE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


# ── Numbers ───────────────────────────────────────────────────────────

def _leading_float(text: str) -> Optional[float]:
    m = _LEADING_NUM.match(text)
    if not m:
        return None
    try:
        return float(m.group(0))
    except ValueError:
        return None


def is_blank_value(text: Optional[str]) -> bool:
    """Empty, '-', or a bare currency dash such as '$ -'."""
    if text is None:
        return True
    return bool(_DASH_ONLY.match(text.strip()))


def parse_currency(text: Optional[str]) -> Optional[float]:
    """
    Parse a money cell written with either decimal convention.

    '$ 1,234.50' → 1234.5     '1.234,50' → 1234.5
    '1,234'      → 1234.0     '12,5'     → 12.5
    '-' / '$ -'  → 0.0        '678 FOB'  → 678.0
    """
    if not text or not text.strip():
        return None
    cleaned = text.strip()

    lowered = cleaned.lower()
    if any(q in lowered for q in CURRENCY_QUALIFIERS):
        m = _NUMERIC_RUN.search(cleaned)
        if not m:
            return None
        cleaned = m.group(0)

    if _DASH_ONLY.match(cleaned) and "-" in cleaned:
        return 0.0

    cleaned = re.sub(r"[$€£\s]", "", cleaned)

    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            # 1.234,50 - comma is the decimal separator
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        head, _, tail = cleaned.rpartition(",")
        if len(tail) == 3 and tail.isdigit():
            cleaned = cleaned.replace(",", "")
        else:
            cleaned = head.replace(",", "") + "." + tail

    return _leading_float(cleaned)


def format_currency(value: Optional[float]) -> str:
    """Render a USD amount the way the exports do ('$1,234.50')."""
    if value is None:
        return "$ -"
    return f"${value:,.2f}"


def parse_weight(text: Optional[str]) -> Optional[float]:
    """Tons; '12,5' → 12.5 and a range '1800-1200' → 1800."""
    if not text or not text.strip():
        return None
    cleaned = re.sub(r"\s", "", text).replace(",", ".", 1)

    if "-" in cleaned and not cleaned.startswith("-"):
        lo, sep, hi = cleaned.partition("-")
        if sep and "-" not in hi and _leading_float(lo) is not None \
                and _leading_float(hi) is not None:
            cleaned = lo

    return _leading_float(cleaned)


def parse_integer(text: Optional[str]) -> Optional[int]:
    if not text or not text.strip():
        return None
    m = _LEADING_INT.match(text.strip())
    return int(m.group(0)) if m else None


# ── Status ────────────────────────────────────────────────────────────

def map_status(text: Optional[str]) -> str:
    return STATUS_MAP.get((text or "").strip(), DEFAULT_STATUS)
