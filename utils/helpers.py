import uuid
from datetime import datetime, timezone

def new_uuid():
    return str(uuid.uuid4())

def utcnow():
    return datetime.now(timezone.utc)

def as_utc(value):
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

def format_datetime(datetime_obj):
    """Format datetime as an ISO-8601 UTC string."""
    if not datetime_obj:
        return None
    return as_utc(datetime_obj).isoformat()

def full_name(first_name, last_name):
    return " ".join(part for part in (first_name, last_name) if part) or None

def pagination_payload(pagination, items):
    return {
        "success": True,
        "count": len(items),
        "total": pagination.total,
        "totalPages": pagination.pages,
        "currentPage": pagination.page,
        "data": items,
    }
