"""
Human-readable identifiers

Order numbers, payment transaction numbers, courier tracking numbers and
shipment numbers are built from the tail of the millisecond clock plus a
random base36 suffix. Only the shipment number is sequential; its counter is
read from the store by the shipment repository.
"""

import secrets
import string
import time
from datetime import datetime, timezone
from typing import Optional

_ALPHABET = string.ascii_uppercase + string.digits

# 36**8 combinations per millisecond
RANDOM_SUFFIX_LENGTH = 8


def _millis_tail(digits: int) -> str:
    return str(time.time_ns() // 1_000_000)[-digits:]


def _random_suffix(length: int = RANDOM_SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_order_number() -> str:
    """ORD + 6-digit millisecond tail + random suffix"""
    return f"ORD{_millis_tail(6)}{_random_suffix()}"


def generate_transaction_number(now: Optional[datetime] = None) -> str:
    """TXN + year + 6-digit millisecond tail + random suffix"""
    year = (now or datetime.now(timezone.utc)).year
    return f"TXN{year}{_millis_tail(6)}{_random_suffix()}"


def generate_tracking_number(now: Optional[datetime] = None) -> str:
    """SHIP + year + 6-digit millisecond tail + random suffix"""
    year = (now or datetime.now(timezone.utc)).year
    return f"SHIP{year}{_millis_tail(6)}{_random_suffix()}"


def shipment_number_prefix(day: datetime) -> str:
    """SHP + YYMMDD, the shared prefix of every shipment created on ``day``"""
    return f"SHP{day:%y%m%d}"


def format_shipment_number(day: datetime, sequence: int) -> str:
    """SHP + YYMMDD + zero-padded 4-digit daily sequence"""
    return f"{shipment_number_prefix(day)}{sequence:04d}"


def fallback_shipment_number() -> str:
    """Used when the daily sequence cannot be read from the store"""
    return f"SHP{_millis_tail(8)}"
