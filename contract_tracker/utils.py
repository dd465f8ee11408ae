from datetime import datetime, timezone


def utcnow():
    """Naive UTC timestamp, the form SQLite hands back on reload."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_datetime(value, fmt='%d/%m/%Y %H:%M'):
    if value is None:
        return ''
    return value.strftime(fmt)


def format_date(value):
    return format_datetime(value, '%d/%m/%Y')
