"""Best-effort parsing of feed timestamps into naive UTC datetimes."""

from datetime import datetime, timezone

import structlog

logger = structlog.get_logger()

# Wall-clock layouts accepted once the separator and offset are stripped
_RELAXED_FORMATS = ("%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S")


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse a feed timestamp, returning ``None`` when it cannot be understood.

    ISO-8601 is tried first; offset-aware values are shifted to UTC and made
    naive. Otherwise the ``T`` separator is replaced, anything from the first
    ``+`` is dropped and the rest is read as a zone-less wall-clock time.
    Never raises.
    """
    if value is None or not value.strip():
        return None

    raw = value.strip()
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        pass
    else:
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    cleaned = raw.replace("T", " ").split("+", 1)[0].strip()
    for fmt in _RELAXED_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt)
        except ValueError:
            continue

    logger.warning("Failed to parse timestamp", value=value)
    return None
