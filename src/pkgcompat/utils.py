import logging

from dateutil.parser import ParserError
from dateutil.parser import parse as parse_date

logger = logging.getLogger(__name__)


def http_date_timestamp(value: str | None) -> float | None:
    """POSIX timestamp of an HTTP date header such as Last-Modified.

    Returns None when the header is missing or not a date.
    """
    if not value:
        return None
    try:
        return parse_date(value).timestamp()
    except (ParserError, OverflowError) as e:
        logger.debug(f"Ignoring unparseable date header {value!r}: {e}")
        return None


def format_size(size: int) -> str:
    """Format a byte count as a human-readable string."""
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.2f} GB"
