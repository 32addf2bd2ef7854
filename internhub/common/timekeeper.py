from datetime import datetime, timedelta, timezone
from typing import Optional

# Process-local clock offset. Not persistent; lets demos and tests move
# resubmission windows and unlock delays forward without waiting.
_offset: timedelta = timedelta(0)
_frozen_at: Optional[datetime] = None


def now() -> datetime:
    """Current UTC time with the active offset (or the frozen instant) applied."""
    base = _frozen_at if _frozen_at is not None else datetime.now(timezone.utc)
    return base + _offset


def advance(delta: timedelta) -> timedelta:
    global _offset
    _offset += delta
    return _offset


def get_offset() -> timedelta:
    return _offset


def freeze(at: datetime) -> datetime:
    global _frozen_at
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    _frozen_at = at
    return _frozen_at


def reset() -> None:
    global _offset, _frozen_at
    _offset = timedelta(0)
    _frozen_at = None
