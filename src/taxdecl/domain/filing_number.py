import re
from datetime import datetime, timezone

FILING_NUMBER_PREFIX = "DECL"
FILING_NUMBER_PATTERN = re.compile(r"^DECL-\d{4}-\d{6}$")
SEQUENCE_MODULUS = 1_000_000

# 100 ns ticks between 0001-01-01 and the Unix epoch
_TICKS_AT_EPOCH = 621_355_968_000_000_000


def clock_ticks(now: datetime) -> int:
    """Time in 100 ns ticks since 0001-01-01 UTC."""
    delta = now.astimezone(timezone.utc) - datetime(1970, 1, 1, tzinfo=timezone.utc)
    micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    return _TICKS_AT_EPOCH + micros * 10


def generate_filing_number(now: datetime, probe: int = 0) -> str:
    """``DECL-<year>-<sequence>`` where the sequence is the clock tick count mod 10^6.

    Not unique by construction: numbers generated 0.1 s apart collide. On a
    collision the caller retries with ``probe`` incremented, which moves to
    the next sequence slot.
    """
    sequence = (clock_ticks(now) + probe) % SEQUENCE_MODULUS
    return f"{FILING_NUMBER_PREFIX}-{now.year}-{sequence:06d}"
