from datetime import timezone


def as_utc(dt):
    # SQLite hands back naive datetimes; they are stored as UTC
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt
