from .time import coerce_datetime, now_iso, sort_key, to_iso_timestamp, today_iso, utc_now

__all__ = ["coerce_datetime", "now_iso", "sort_key", "to_iso_timestamp", "today_iso", "utc_now"]
