from datetime import datetime, timezone


def utcnow() -> datetime:
    """Текущий момент в UTC (timezone-aware)"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite возвращает naive datetime; все метки времени хранятся в UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
