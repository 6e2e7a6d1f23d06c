from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
import math
import secrets
import string
from typing import Any, Dict, Optional

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
REDEMPTION_ALPHABET = string.ascii_uppercase + string.digits


def now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def timestamp(value: Optional[datetime] = None, **delta: float) -> str:
    """Database timestamp string (UTC), optionally shifted by a timedelta."""
    value = value or now()
    if delta:
        value = value + timedelta(**delta)
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str | datetime | None) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.strptime(str(value)[:19], TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def generate_token(nbytes: int = 32) -> str:
    return secrets.token_hex(nbytes)


def generate_redemption_code(length: int = 10) -> str:
    return "".join(secrets.choice(REDEMPTION_ALPHABET) for _ in range(length))


def money(value: Any) -> Decimal:
    """Round to cents the way order totals are stored."""
    return Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
