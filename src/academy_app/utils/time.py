from __future__ import annotations

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_timestamp(moment: datetime) -> str:
    """Format ``moment`` the way ``Date.toISOString`` does: UTC, milliseconds, ``Z``."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def now_iso() -> str:
    return to_iso_timestamp(utc_now())


def today_iso(today: date | None = None) -> str:
    return (today or utc_now().date()).isoformat()


def coerce_datetime(value: datetime | date | str) -> datetime:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        candidate = value.strip().replace(" ", "T", 1)
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise ValueError(f"Unsupported datetime value: {value!r}") from exc
    else:
        raise ValueError(f"Unsupported datetime value: {value!r}")

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def sort_key(value: str) -> datetime:
    """Sort key for stored date strings; unparsable values sort first."""

    try:
        return coerce_datetime(value)
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
