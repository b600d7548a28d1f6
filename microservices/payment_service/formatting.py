"""
Display formatting for payment views

Rupiah amounts and Indonesian date/time strings shown in the admin and
reseller payment lists.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from core.config import get_settings

INDONESIAN_MONTHS = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)

NOT_AVAILABLE = "N/A"


def format_rupiah(amount) -> str:
    """Decimal(1500000) -> 'Rp 1.500.000'"""
    whole = Decimal(amount or 0).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if whole < 0 else ""
    grouped = f"{abs(int(whole)):,}".replace(",", ".")
    return f"Rp {sign}{grouped}"


def _localize(moment: datetime, tz_name: Optional[str]) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name or get_settings().display_timezone))


def format_indonesian_date(moment: Optional[datetime], tz_name: Optional[str] = None) -> str:
    """'19 Oktober 2026'"""
    if moment is None:
        return NOT_AVAILABLE
    local = _localize(moment, tz_name)
    return f"{local.day} {INDONESIAN_MONTHS[local.month - 1]} {local.year}"


def format_time(moment: Optional[datetime], tz_name: Optional[str] = None) -> str:
    """24-hour 'HH:MM'"""
    if moment is None:
        return NOT_AVAILABLE
    return f"{_localize(moment, tz_name):%H:%M}"


def date_time_projection(moment: Optional[datetime], tz_name: Optional[str] = None) -> Tuple[str, str]:
    return format_indonesian_date(moment, tz_name), format_time(moment, tz_name)
