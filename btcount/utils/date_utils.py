"""Hour arithmetic and clock helpers"""

from datetime import datetime, timedelta, timezone
from typing import Callable

HOUR = timedelta(hours=1)

# Seed timestamp used when nothing has been materialized yet
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize to aware UTC; naive values are taken to be UTC already"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def truncate_to_hour(value: datetime) -> datetime:
    """Round down to the start of the hour"""
    return as_utc(value).replace(minute=0, second=0, microsecond=0)


def hour_end(value: datetime) -> datetime:
    """Boundary that closes the hour containing ``value``.

    A timestamp sitting exactly on a boundary belongs to the hour that starts
    there, so ``hour_end(10:00) == 11:00``.
    """
    return truncate_to_hour(value) + HOUR


def round_up_to_hour(value: datetime) -> datetime:
    """Round up to the next hour boundary unless already on one"""
    start = truncate_to_hour(value)
    if start < as_utc(value):
        return start + HOUR
    return start


def until_next_hour(now: datetime) -> timedelta:
    """Time left before the next hour boundary"""
    return hour_end(now) - as_utc(now)
